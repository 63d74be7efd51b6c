"""Media browser, rich text editing shell and alt-text functions for the lodge CMS."""

__version__ = "0.1.0"
