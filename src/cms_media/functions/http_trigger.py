"""HTTP trigger blueprint — health check and alt-text generation endpoints."""

import json
import logging

import azure.functions as func

from cms_media import __version__
from cms_media.alt_text.cache import alt_text_cache_from_config
from cms_media.alt_text.describer import anthropic_describer_from_config
from cms_media.alt_text.generator import generate_image_text
from cms_media.config import load_config

logger = logging.getLogger(__name__)

bp = func.Blueprint()


def _json_response(payload: dict, status_code: int) -> func.HttpResponse:  # type: ignore[type-arg]
    return func.HttpResponse(
        json.dumps(payload), status_code=status_code, mimetype="application/json"
    )


@bp.route(route="health", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def health_check(req: func.HttpRequest) -> func.HttpResponse:
    """Health check endpoint.

    Returns service status and version.
    """
    logger.info("[health_check] health check requested")

    try:
        return _json_response({"status": "ok", "version": __version__}, 200)

    except Exception:
        logger.error("[health_check] health check failed", exc_info=True)
        return _json_response({"status": "error", "message": "Internal server error"}, 500)


@bp.route(route="generate-alt-text", methods=["POST"], auth_level=func.AuthLevel.ANONYMOUS)
def generate_alt_text(req: func.HttpRequest) -> func.HttpResponse:
    """Generate alt text (or a caption, or the visible text) for an image.

    Body: ``{"image_url": str, "mode": "alt" | "caption" | "ocr"}``; ``mode``
    is optional. Responds with ``{"alt": str, "mode": str}``.
    """
    try:
        body = req.get_json()
    except ValueError:
        body = {}
    image_url = body.get("image_url") if isinstance(body, dict) else None
    if not image_url or not isinstance(image_url, str):
        logger.warning("[generate_alt_text] request without image_url")
        return _json_response({"error": "Missing image_url"}, 400)

    try:
        config = load_config()
        describer = anthropic_describer_from_config(config)
        cache = alt_text_cache_from_config(config)
        text, mode = generate_image_text(image_url, describer, body.get("mode"), cache)
        logger.info("[generate_alt_text] generated; mode:%s;chars:%d", mode, len(text))
        return _json_response({"alt": text, "mode": mode}, 200)

    except Exception:
        logger.error("[generate_alt_text] alt text generation failed", exc_info=True)
        return _json_response({"error": "Failed to generate alt text"}, 500)
