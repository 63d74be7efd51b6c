"""Image alt text, captions and OCR via the Anthropic Messages API."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import anthropic
from anthropic.types import ImageBlockParam, Message, TextBlock, TextBlockParam
from anthropic.types.url_image_source_param import URLImageSourceParam

if TYPE_CHECKING:
    from cms_media.config import AppConfig

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3
DEFAULT_MODE = "alt"

PROMPTS: dict[str, str] = {
    "alt": (
        "Generate a single alt text sentence (14-18 words). "
        'Do NOT say "Image of". '
        "Describe the subject, mood, setting, colours and key detail."
    ),
    "caption": (
        "Write a 1-sentence caption suitable for a blog article. "
        "Must be human-sounding, warm, descriptive, and under 20 words."
    ),
    "ocr": "Extract ALL text that is visible inside the image. Return ONLY the detected words.",
}

_MAX_TOKENS: dict[str, int] = {"alt": 100, "caption": 100, "ocr": 1024}


def resolve_mode(mode: str | None) -> str:
    """Return ``mode`` if it is a known prompt, else the alt-text default."""
    return mode if mode in PROMPTS else DEFAULT_MODE


def _extract_text(message: Message) -> str:
    """Extract the text from the first TextBlock in a message response.

    Args:
        message: Anthropic Message response.

    Returns:
        Text content from the first TextBlock.

    Raises:
        ValueError: If no TextBlock is found in the response.
    """
    for block in message.content:
        if isinstance(block, TextBlock):
            return block.text
    raise ValueError("No TextBlock found in Anthropic response")


class AnthropicDescriber:
    """Describes publicly reachable images using Claude."""

    def __init__(
        self,
        api_key: str,
        model: str = "claude-haiku-4-5-20251001",
        max_retries: int = DEFAULT_MAX_RETRIES,
    ) -> None:
        """Initialise the Anthropic client.

        Args:
            api_key: Anthropic API key.
            model: Model identifier to use for generation.
            max_retries: Max retry attempts for rate-limited requests (SDK built-in).
        """
        self._client = anthropic.Anthropic(api_key=api_key, max_retries=max_retries)
        self._model = model

    def describe_image(self, image_url: str, mode: str = DEFAULT_MODE) -> str:
        """Generate alt text, a caption or the visible text of an image.

        Args:
            image_url: Public URL of the image; fetched by the API, not by us.
            mode: One of ``alt``, ``caption`` or ``ocr``; unknown values fall
                back to ``alt``.

        Returns:
            The generated text, stripped.
        """
        mode = resolve_mode(mode)
        image_block = ImageBlockParam(
            type="image",
            source=URLImageSourceParam(type="url", url=image_url),
        )
        text_block = TextBlockParam(
            type="text",
            text="Please analyse the attached image and respond accordingly.",
        )
        logger.info("[describe_image] sending image block; mode:%s;url:%s", mode, image_url)
        message = self._client.messages.create(
            model=self._model,
            max_tokens=_MAX_TOKENS[mode],
            system=PROMPTS[mode],
            messages=[{"role": "user", "content": [image_block, text_block]}],
        )
        result = _extract_text(message).strip()
        logger.info(
            "[describe_image] received response; mode:%s;url:%s;chars:%d",
            mode,
            image_url,
            len(result),
        )
        return result


def anthropic_describer_from_config(config: AppConfig) -> AnthropicDescriber:
    """Construct an AnthropicDescriber from application configuration.

    Args:
        config: Application configuration instance.

    Returns:
        Configured AnthropicDescriber instance.
    """
    return AnthropicDescriber(
        api_key=config.anthropic_api_key,
        model=config.anthropic_model,
        max_retries=config.anthropic_max_retries,
    )
