"""Cache-aware image text generation."""

from __future__ import annotations

from typing import TYPE_CHECKING

from cms_media.alt_text.describer import resolve_mode

if TYPE_CHECKING:
    from cms_media.alt_text.cache import AltTextCache
    from cms_media.alt_text.describer import AnthropicDescriber


def generate_image_text(
    image_url: str,
    describer: AnthropicDescriber,
    mode: str | None = None,
    cache: AltTextCache | None = None,
) -> tuple[str, str]:
    """Return cached text for an image or generate and cache it.

    Args:
        image_url: Public URL of the image.
        describer: AnthropicDescriber for generating new text.
        mode: Requested prompt mode; unknown or missing modes mean ``alt``.
        cache: Optional cache to check/populate.

    Returns:
        Tuple of (text, resolved_mode).
    """
    resolved = resolve_mode(mode)
    if cache is not None:
        cached = cache.get(image_url, resolved)
        if cached is not None:
            return cached, resolved
        text = describer.describe_image(image_url, resolved)
        if text:
            cache.put(image_url, resolved, text)
        return text, resolved
    return describer.describe_image(image_url, resolved), resolved
