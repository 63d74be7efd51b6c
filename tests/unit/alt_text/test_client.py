"""Unit tests for alt_text/client.py — AltTextClient HTTP behaviour."""

import io
import json
from unittest.mock import MagicMock, patch
from urllib.error import HTTPError, URLError

import pytest

from cms_media.alt_text.client import AltTextClient, AltTextError, alt_text_client_from_config
from cms_media.config import AppConfig

ENDPOINT = "https://cms.example.test/api/generate-alt-text"
IMAGE_URL = "https://media.example.test/cms-media/news/1_a.png"


def _mock_response(payload: object) -> MagicMock:
    resp = MagicMock()
    resp.read.return_value = json.dumps(payload).encode()
    resp.__enter__.return_value = resp
    return resp


def _http_error(code: int, body: bytes) -> HTTPError:
    return HTTPError(ENDPOINT, code, "Server Error", {}, io.BytesIO(body))  # type: ignore[arg-type]


class TestGenerate:
    def test_posts_image_url_as_json(self) -> None:
        client = AltTextClient(ENDPOINT)
        with patch("cms_media.alt_text.client.urllib_request.urlopen") as mock_open:
            mock_open.return_value = _mock_response({"alt": "A lodge room", "mode": "alt"})
            client.generate(IMAGE_URL)

        req = mock_open.call_args.args[0]
        assert req.full_url == ENDPOINT
        assert req.get_method() == "POST"
        assert json.loads(req.data) == {"image_url": IMAGE_URL}

    def test_returns_stripped_alt(self) -> None:
        client = AltTextClient(ENDPOINT)
        with patch("cms_media.alt_text.client.urllib_request.urlopen") as mock_open:
            mock_open.return_value = _mock_response({"alt": " A lodge room \n"})
            assert client.generate(IMAGE_URL) == "A lodge room"

    def test_http_error_carries_server_message(self) -> None:
        client = AltTextClient(ENDPOINT)
        with patch("cms_media.alt_text.client.urllib_request.urlopen") as mock_open:
            mock_open.side_effect = _http_error(500, b'{"error": "Failed to generate alt text"}')
            with pytest.raises(AltTextError, match=r"\(500\): Failed to generate alt text"):
                client.generate(IMAGE_URL)

    def test_network_error_raises(self) -> None:
        client = AltTextClient(ENDPOINT)
        with patch("cms_media.alt_text.client.urllib_request.urlopen") as mock_open:
            mock_open.side_effect = URLError("connection refused")
            with pytest.raises(AltTextError):
                client.generate(IMAGE_URL)

    def test_missing_alt_raises(self) -> None:
        client = AltTextClient(ENDPOINT)
        with patch("cms_media.alt_text.client.urllib_request.urlopen") as mock_open:
            mock_open.return_value = _mock_response({"mode": "alt"})
            with pytest.raises(AltTextError, match="no alt text"):
                client.generate(IMAGE_URL)

    def test_blank_alt_raises(self) -> None:
        client = AltTextClient(ENDPOINT)
        with patch("cms_media.alt_text.client.urllib_request.urlopen") as mock_open:
            mock_open.return_value = _mock_response({"alt": "   "})
            with pytest.raises(AltTextError):
                client.generate(IMAGE_URL)


class TestAltTextClientFromConfig:
    def test_uses_configured_endpoint(self) -> None:
        config = AppConfig(
            storage_connection_string="conn",
            anthropic_api_key="sk",
            alt_text_endpoint=ENDPOINT,
        )
        assert alt_text_client_from_config(config)._endpoint == ENDPOINT
