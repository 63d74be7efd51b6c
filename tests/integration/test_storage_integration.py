"""Integration tests for Azure Blob Storage connectivity.

These tests require a real storage account and are skipped in CI/CD unless
the CMS_STORAGE_CONNECTION_STRING environment variable is set. Files are
written under a throwaway ``integration-tests/`` prefix and removed again.
"""

import os

import pytest

pytestmark = pytest.mark.skipif(
    not os.getenv("CMS_STORAGE_CONNECTION_STRING"),
    reason="Real storage credentials not available",
)


def test_upload_list_and_remove_real() -> None:
    """Upload a file through the browser, see it listed, then delete it."""
    from cms_media.browser.engine import media_browser_from_config
    from cms_media.browser.upload import UploadFile
    from cms_media.config import load_config

    config = load_config()
    browser = media_browser_from_config(config)
    browser.open(initial_folder="integration-tests")

    outcome = browser.upload(UploadFile("probe.txt", b"integration probe", "text/plain"))
    assert outcome.url

    uploaded = [e for e in browser.entries if e.name.endswith("_probe.txt")]
    assert uploaded

    for entry in uploaded:
        browser.delete(entry)
    assert not [e for e in browser.entries if e.name.endswith("_probe.txt")]
