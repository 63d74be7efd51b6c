"""HTML content model for the rich text editor: nodes, cursor and image selection."""

from __future__ import annotations

from enum import Enum

from bs4 import BeautifulSoup, Tag

CAPTION_CLASS = "image-caption"


class ImagePosition(str, Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"
    FULL = "full"


class ImageSize(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    FULL = "full"


POSITION_STYLES: dict[ImagePosition, dict[str, str]] = {
    ImagePosition.LEFT: {"margin": "0", "float": "left", "max-width": "45%"},
    ImagePosition.CENTER: {"margin": "1rem auto", "float": "none", "max-width": "60%"},
    ImagePosition.RIGHT: {"margin": "0 0 0 auto", "float": "right", "max-width": "45%"},
    ImagePosition.FULL: {"margin": "1rem 0", "float": "none", "max-width": "100%"},
}

SIZE_WIDTHS: dict[ImageSize, str] = {
    ImageSize.SMALL: "30%",
    ImageSize.MEDIUM: "50%",
    ImageSize.LARGE: "70%",
    ImageSize.FULL: "100%",
}

CAPTION_STYLE = {
    "font-size": "0.9rem",
    "text-align": "center",
    "color": "#666",
    "margin-top": "6px",
}


def parse_style(style: str | None) -> dict[str, str]:
    """Parse an inline ``style`` attribute into an ordered property map."""
    props: dict[str, str] = {}
    for declaration in (style or "").split(";"):
        name, sep, value = declaration.partition(":")
        if sep and name.strip():
            props[name.strip().lower()] = value.strip()
    return props


def format_style(props: dict[str, str]) -> str:
    return "; ".join(f"{name}: {value}" for name, value in props.items() if value != "")


def update_style(node: Tag, **changes: str | None) -> None:
    """Set (or, with None, remove) inline style properties on ``node``.

    Keyword names use underscores for dashes: ``max_width`` is ``max-width``.
    """
    props = parse_style(node.get("style"))  # type: ignore[arg-type]
    for name, value in changes.items():
        css_name = name.replace("_", "-")
        if value is None:
            props.pop(css_name, None)
        else:
            props[css_name] = value
    styled = format_style(props)
    if styled:
        node["style"] = styled
    elif node.has_attr("style"):
        del node["style"]


def style_value(node: Tag, name: str) -> str | None:
    return parse_style(node.get("style")).get(name)  # type: ignore[arg-type]


class RichTextDocument:
    """Parsed HTML content with a cursor and an optional selected image.

    The cursor is an index into the top-level nodes; ``None`` means no
    selection, and insertions then go to the end of the document.
    """

    def __init__(self, html: str = "") -> None:
        self._soup = BeautifulSoup(html or "", "html.parser")
        self.cursor: int | None = None
        self.selected_image: Tag | None = None

    @property
    def images(self) -> list[Tag]:
        return list(self._soup.find_all("img"))

    def node_count(self) -> int:
        """Number of element nodes in the document."""
        return len(self._soup.find_all(True))

    def to_html(self) -> str:
        return str(self._soup)

    def new_tag(self, name: str, text: str | None = None, **attrs: str) -> Tag:
        node = self._soup.new_tag(name, attrs=attrs)
        if text is not None:
            node.string = text
        return node

    def set_cursor(self, index: int | None) -> None:
        if index is None:
            self.cursor = None
            return
        self.cursor = max(0, min(index, len(self._soup.contents)))

    def select_image(self, index: int) -> Tag:
        """Select the ``index``-th image of the document.

        Raises:
            IndexError: If there is no such image.
        """
        image = self.images[index]
        self.selected_image = image
        return image

    def clear_selection(self) -> None:
        self.selected_image = None

    def insert_at_cursor(self, node: Tag) -> None:
        """Insert ``node`` at the cursor (or the end) and move the cursor past it."""
        position = len(self._soup.contents) if self.cursor is None else self.cursor
        self._soup.insert(position, node)
        self.cursor = position + 1

    def insert_after(self, anchor: Tag, node: Tag) -> None:
        """Insert ``node`` as the next sibling of ``anchor``, keeping the cursor in place."""
        anchor.insert_after(node)
        if node.parent is self._soup and self.cursor is not None:
            if self._soup.index(node) < self.cursor:
                self.cursor += 1

    def remove(self, node: Tag) -> None:
        """Detach ``node`` from the document, keeping the cursor in place."""
        if node.parent is self._soup and self.cursor is not None:
            if self._soup.index(node) < self.cursor:
                self.cursor -= 1
        node.decompose()
        if self.selected_image is node:
            self.selected_image = None
