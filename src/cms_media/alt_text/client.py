"""HTTP client for the generate-alt-text function, used by the editor."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any
from urllib import request as urllib_request
from urllib.error import HTTPError, URLError

if TYPE_CHECKING:
    from cms_media.config import AppConfig

logger = logging.getLogger(__name__)


class AltTextError(Exception):
    """Raised when the alt-text function fails or returns no ``alt`` field."""


class AltTextClient:
    """Calls ``POST /generate-alt-text`` with ``{image_url}`` and reads ``{alt}``."""

    def __init__(self, endpoint: str) -> None:
        self._endpoint = endpoint

    def generate(self, image_url: str) -> str:
        """Request alt text for one image.

        Args:
            image_url: Public URL of the image.

        Returns:
            The generated alt text.

        Raises:
            AltTextError: On transport failure, a non-2xx status, or a
                response without a non-empty ``alt`` string.
        """
        body = json.dumps({"image_url": image_url}).encode("utf-8")
        req = urllib_request.Request(
            self._endpoint,
            data=body,
            headers={"Content-Type": "application/json", "Accept": "application/json"},
            method="POST",
        )
        try:
            with urllib_request.urlopen(req) as resp:
                payload: Any = json.loads(resp.read())
        except HTTPError as exc:
            raw = exc.read()
            try:
                detail = json.loads(raw).get("error", exc.reason)
            except Exception:
                detail = exc.reason
            logger.error(
                "[generate] alt-text function failed; status:%d;url:%s", exc.code, image_url
            )
            raise AltTextError(f"Alt text generation failed ({exc.code}): {detail}") from exc
        except (URLError, ValueError) as exc:
            logger.error("[generate] alt-text request failed; url:%s", image_url)
            raise AltTextError(f"Alt text generation failed: {exc}") from exc

        alt = payload.get("alt") if isinstance(payload, dict) else None
        if not isinstance(alt, str) or not alt.strip():
            raise AltTextError("Alt text generation returned no alt text")
        logger.info("[generate] alt text received; url:%s;chars:%d", image_url, len(alt))
        return alt.strip()


def alt_text_client_from_config(config: AppConfig) -> AltTextClient:
    """Construct an AltTextClient from application configuration."""
    return AltTextClient(endpoint=config.alt_text_endpoint)
