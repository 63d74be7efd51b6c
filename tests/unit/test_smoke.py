"""Smoke tests — validate the function app endpoints end-to-end."""

import json
from unittest.mock import MagicMock, patch

import azure.functions as func

from cms_media.browser.engine import MediaBrowser
from tests.conftest import PUBLIC_BASE, FakeStorage

CLOCK = 1760000000000


def _browser(storage: FakeStorage) -> MediaBrowser:
    return MediaBrowser(storage=storage, clock=lambda: CLOCK)  # type: ignore[arg-type]


def _request(
    method: str,
    url: str,
    params: dict[str, str] | None = None,
    body: bytes = b"",
    headers: dict[str, str] | None = None,
) -> func.HttpRequest:
    return func.HttpRequest(
        method=method, url=url, params=params or {}, body=body, headers=headers or {}
    )


def test_health_check_returns_status() -> None:
    """Health endpoint returns ok status with version from the package."""
    from cms_media.functions.http_trigger import health_check

    response = health_check(MagicMock(spec=func.HttpRequest))

    assert response.status_code == 200
    body = json.loads(response.get_body())
    assert body["status"] == "ok"
    assert body["version"] == "0.1.0"


# ---------------------------------------------------------------------------
# generate-alt-text
# ---------------------------------------------------------------------------


def test_generate_alt_text_requires_image_url() -> None:
    from cms_media.functions.http_trigger import generate_alt_text

    response = generate_alt_text(_request("POST", "/api/generate-alt-text", body=b"{}"))

    assert response.status_code == 400
    assert json.loads(response.get_body()) == {"error": "Missing image_url"}


def test_generate_alt_text_rejects_invalid_json() -> None:
    from cms_media.functions.http_trigger import generate_alt_text

    response = generate_alt_text(_request("POST", "/api/generate-alt-text", body=b"not json"))

    assert response.status_code == 400


def test_generate_alt_text_returns_alt_and_mode() -> None:
    from cms_media.functions.http_trigger import generate_alt_text

    body = json.dumps({"image_url": "https://x/a.png", "mode": "caption"}).encode()
    with (
        patch("cms_media.functions.http_trigger.load_config"),
        patch("cms_media.functions.http_trigger.anthropic_describer_from_config"),
        patch("cms_media.functions.http_trigger.alt_text_cache_from_config"),
        patch(
            "cms_media.functions.http_trigger.generate_image_text",
            return_value=("A warm welcome at the lodge door.", "caption"),
        ) as mock_generate,
    ):
        response = generate_alt_text(_request("POST", "/api/generate-alt-text", body=body))

    assert response.status_code == 200
    assert json.loads(response.get_body()) == {
        "alt": "A warm welcome at the lodge door.",
        "mode": "caption",
    }
    assert mock_generate.call_args.args[0] == "https://x/a.png"
    assert mock_generate.call_args.args[2] == "caption"


def test_generate_alt_text_failure_returns_500() -> None:
    from cms_media.functions.http_trigger import generate_alt_text

    body = json.dumps({"image_url": "https://x/a.png"}).encode()
    with (
        patch("cms_media.functions.http_trigger.load_config"),
        patch("cms_media.functions.http_trigger.anthropic_describer_from_config"),
        patch("cms_media.functions.http_trigger.alt_text_cache_from_config"),
        patch(
            "cms_media.functions.http_trigger.generate_image_text",
            side_effect=RuntimeError("model unavailable"),
        ),
    ):
        response = generate_alt_text(_request("POST", "/api/generate-alt-text", body=body))

    assert response.status_code == 500
    assert json.loads(response.get_body()) == {"error": "Failed to generate alt text"}


# ---------------------------------------------------------------------------
# media listing and upload
# ---------------------------------------------------------------------------


def test_list_media_returns_locked_listing() -> None:
    from cms_media.functions.media_trigger import list_media

    storage = FakeStorage()
    storage.add("events/2025/ball.jpg")
    storage.add("events/summons.pdf")
    with (
        patch("cms_media.functions.media_trigger.load_config"),
        patch(
            "cms_media.functions.media_trigger.media_browser_from_config",
            return_value=_browser(storage),
        ),
    ):
        response = list_media(_request("GET", "/api/media", params={"folder": "events"}))

    assert response.status_code == 200
    body = json.loads(response.get_body())
    assert body["cwd"] == "events"
    assert body["locked_root"] == "events"
    assert [e["name"] for e in body["entries"]] == ["2025", "summons.pdf"]
    assert body["entries"][1]["url"] == f"{PUBLIC_BASE}/events/summons.pdf"


def test_list_media_filters_by_query() -> None:
    from cms_media.functions.media_trigger import list_media

    storage = FakeStorage()
    storage.add("news/Lodge-Photo.png")
    storage.add("news/minutes.pdf")
    with (
        patch("cms_media.functions.media_trigger.load_config"),
        patch(
            "cms_media.functions.media_trigger.media_browser_from_config",
            return_value=_browser(storage),
        ),
    ):
        response = list_media(_request("GET", "/api/media", params={"path": "news", "q": "photo"}))

    body = json.loads(response.get_body())
    assert [e["name"] for e in body["entries"]] == ["Lodge-Photo.png"]


def test_list_media_later_page_lists_storage_once() -> None:
    from cms_media.functions.media_trigger import list_media

    storage = FakeStorage()
    storage.add("news/a.png")
    with (
        patch("cms_media.functions.media_trigger.load_config"),
        patch(
            "cms_media.functions.media_trigger.media_browser_from_config",
            return_value=_browser(storage),
        ),
    ):
        response = list_media(_request("GET", "/api/media", params={"path": "news", "page": "2"}))

    assert response.status_code == 200
    assert json.loads(response.get_body())["page"] == 2
    assert storage.list_calls == [("news", 48, 48)]


def test_list_media_outside_locked_folder_is_forbidden() -> None:
    from cms_media.functions.media_trigger import list_media

    response = list_media(
        _request("GET", "/api/media", params={"path": "news", "folder": "events"})
    )

    assert response.status_code == 403


def test_list_media_storage_failure_returns_502() -> None:
    from cms_media.functions.media_trigger import list_media

    storage = FakeStorage()
    storage.fail_list = "Service unavailable"
    with (
        patch("cms_media.functions.media_trigger.load_config"),
        patch(
            "cms_media.functions.media_trigger.media_browser_from_config",
            return_value=_browser(storage),
        ),
    ):
        response = list_media(_request("GET", "/api/media"))

    assert response.status_code == 502
    assert json.loads(response.get_body()) == {"error": "Service unavailable"}


def test_upload_media_stores_file_and_returns_url() -> None:
    from cms_media.functions.media_trigger import upload_media

    storage = FakeStorage()
    with (
        patch("cms_media.functions.media_trigger.load_config"),
        patch(
            "cms_media.functions.media_trigger.media_browser_from_config",
            return_value=_browser(storage),
        ),
    ):
        response = upload_media(
            _request(
                "POST",
                "/api/media/upload",
                params={"filename": "ball.png", "folder": "events"},
                body=b"png-bytes",
                headers={"Content-Type": "image/png"},
            )
        )

    assert response.status_code == 201
    body = json.loads(response.get_body())
    assert body["url"] == f"{PUBLIC_BASE}/events/{CLOCK}_ball.png"
    assert storage.objects[f"events/{CLOCK}_ball.png"] == b"png-bytes"
    assert [e["name"] for e in body["listing"]["entries"]] == [f"{CLOCK}_ball.png"]


def test_upload_media_existing_key_returns_409() -> None:
    from cms_media.functions.media_trigger import upload_media

    storage = FakeStorage()
    storage.add(f"events/{CLOCK}_ball.png", b"original")
    with (
        patch("cms_media.functions.media_trigger.load_config"),
        patch(
            "cms_media.functions.media_trigger.media_browser_from_config",
            return_value=_browser(storage),
        ),
    ):
        response = upload_media(
            _request(
                "POST",
                "/api/media/upload",
                params={"filename": "ball.png", "folder": "events"},
                body=b"new",
                headers={"Content-Type": "image/png"},
            )
        )

    assert response.status_code == 409
    assert storage.objects[f"events/{CLOCK}_ball.png"] == b"original"


def test_upload_media_unsupported_type_returns_400() -> None:
    from cms_media.functions.media_trigger import upload_media

    with (
        patch("cms_media.functions.media_trigger.load_config"),
        patch(
            "cms_media.functions.media_trigger.media_browser_from_config",
            return_value=_browser(FakeStorage()),
        ),
    ):
        response = upload_media(
            _request(
                "POST",
                "/api/media/upload",
                params={"filename": "page.html"},
                body=b"<html>",
                headers={"Content-Type": "text/html"},
            )
        )

    assert response.status_code == 400
    assert "not supported" in json.loads(response.get_body())["error"]


def test_upload_media_requires_filename() -> None:
    from cms_media.functions.media_trigger import upload_media

    response = upload_media(_request("POST", "/api/media/upload", body=b"x"))

    assert response.status_code == 400
    assert json.loads(response.get_body()) == {"error": "No file chosen"}
