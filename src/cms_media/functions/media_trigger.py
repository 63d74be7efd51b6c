"""HTTP trigger blueprint — media browser listing and upload endpoints."""

import json
import logging

import azure.functions as func

from cms_media.browser.engine import ListError, UploadError, media_browser_from_config
from cms_media.browser.navigation import is_within, normalize_path
from cms_media.browser.upload import UploadFile
from cms_media.config import load_config
from cms_media.storage.client import StorageConflictError, StorageError

logger = logging.getLogger(__name__)

bp = func.Blueprint()


def _json_response(payload: dict, status_code: int) -> func.HttpResponse:  # type: ignore[type-arg]
    return func.HttpResponse(
        json.dumps(payload), status_code=status_code, mimetype="application/json"
    )


def _start_path(path: str, folder: str) -> str:
    """Express ``path`` relative to the locked ``folder``."""
    if folder and path.startswith(folder):
        return path[len(folder) :].lstrip("/")
    return path


@bp.route(route="media", methods=["GET"], auth_level=func.AuthLevel.FUNCTION)
def list_media(req: func.HttpRequest) -> func.HttpResponse:
    """List one page of a media folder.

    Query parameters: ``path`` (folder), ``page`` (1-based), ``q`` (name
    filter) and ``folder`` (lock navigation under this folder).
    """
    path = normalize_path(req.params.get("path"))
    folder = normalize_path(req.params.get("folder"))
    query = req.params.get("q", "")
    try:
        page = max(1, int(req.params.get("page", "1")))
    except ValueError:
        return _json_response({"error": "page must be an integer"}, 400)

    if folder and not is_within(path or folder, folder):
        logger.warning("[list_media] path outside locked folder; path:%s;folder:%s", path, folder)
        return _json_response({"error": "Path is outside the locked folder"}, 403)

    try:
        browser = media_browser_from_config(load_config())
        browser.open(
            initial_folder=folder or None, start_path=_start_path(path, folder), page=page
        )
        browser.search(query)
        return _json_response(browser.state_dict(), 200)

    except ListError as exc:
        return _json_response({"error": exc.message}, 502)

    except Exception:
        logger.error("[list_media] listing failed", exc_info=True)
        return _json_response({"error": "Internal server error"}, 500)


@bp.route(route="media/upload", methods=["POST"], auth_level=func.AuthLevel.FUNCTION)
def upload_media(req: func.HttpRequest) -> func.HttpResponse:
    """Upload the raw request body into a media folder.

    Query parameters: ``filename`` (required), ``path`` and ``folder`` as for
    the listing endpoint. Responds with the public URL and the refreshed listing.
    """
    filename = req.params.get("filename", "")
    path = normalize_path(req.params.get("path"))
    folder = normalize_path(req.params.get("folder"))
    if not filename:
        return _json_response({"error": "No file chosen"}, 400)
    if folder and not is_within(path or folder, folder):
        return _json_response({"error": "Path is outside the locked folder"}, 403)

    file = UploadFile(
        filename=filename,
        content=req.get_body(),
        content_type=req.headers.get("Content-Type"),
    )
    try:
        browser = media_browser_from_config(load_config())
        browser.open(initial_folder=folder or None, start_path=_start_path(path, folder))
        outcome = browser.upload(file)
        if not outcome:
            return _json_response({"error": outcome.reason}, 400)
        return _json_response({"url": outcome.url, "listing": browser.state_dict()}, 201)

    except UploadError as exc:
        if isinstance(exc.__cause__, StorageConflictError):
            status = 409
        elif isinstance(exc.__cause__, StorageError):
            status = 502
        else:
            status = 400
        return _json_response({"error": exc.message}, status)

    except ListError as exc:
        return _json_response({"error": exc.message}, 502)

    except Exception:
        logger.error("[upload_media] upload failed", exc_info=True)
        return _json_response({"error": "Internal server error"}, 500)
