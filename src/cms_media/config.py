"""Application configuration loaded from environment variables."""

import os
from dataclasses import dataclass

DEFAULT_ROOT_FOLDERS: tuple[str, ...] = (
    "events",
    "news",
    "blog-images",
    "testimonials",
    "documents",
    "officers",
    "images",
    "resources",
    "uploads",
)


@dataclass(frozen=True)
class AppConfig:
    """Centralized application configuration.

    Required fields have no defaults and will cause a KeyError at startup
    if the corresponding environment variable is missing. Domain constants
    have sensible defaults but can be overridden via environment variables.
    """

    # Required — no defaults, fail at startup if missing
    storage_connection_string: str
    anthropic_api_key: str

    # Domain constants — defaults provided, overridable via env
    media_container: str = "cms-media"
    public_base_url: str = ""
    page_size: int = 48
    root_folders: tuple[str, ...] = DEFAULT_ROOT_FOLDERS
    max_upload_bytes: int = 10 * 1024 * 1024
    anthropic_model: str = "claude-haiku-4-5-20251001"
    anthropic_max_retries: int = 3
    state_container: str = "cms-media-state"
    alt_text_cache_prefix: str = "alt-text-cache/"
    alt_text_endpoint: str = "http://localhost:7071/api/generate-alt-text"


def _parse_folders(raw: str | None) -> tuple[str, ...]:
    """Split a comma-separated folder list, falling back to the defaults."""
    if not raw:
        return DEFAULT_ROOT_FOLDERS
    folders = tuple(part.strip().strip("/") for part in raw.split(","))
    return tuple(f for f in folders if f) or DEFAULT_ROOT_FOLDERS


def load_config() -> AppConfig:
    """Construct an AppConfig from environment variables.

    Required environment variables:
        CMS_STORAGE_CONNECTION_STRING: Azure Storage connection string for the media bucket.
        CMS_ANTHROPIC_API_KEY: Anthropic API key for alt-text generation.

    Optional environment variables (with defaults):
        CMS_MEDIA_CONTAINER: Blob container holding the media assets (default: cms-media).
        CMS_PUBLIC_BASE_URL: Public base URL for assets, e.g. a CDN origin
            (default: the container URL).
        CMS_PAGE_SIZE: Entries per media browser page (default: 48).
        CMS_ROOT_FOLDERS: Comma-separated canonical top-level folders.
        CMS_MAX_UPLOAD_BYTES: Largest accepted upload (default: 10 MiB).
        CMS_ANTHROPIC_MODEL: Anthropic model identifier (default: claude-haiku-4-5-20251001).
        CMS_ANTHROPIC_MAX_RETRIES: SDK retry budget for rate-limited requests (default: 3).
        CMS_STATE_CONTAINER: Blob container for the alt-text cache (default: cms-media-state).
        CMS_ALT_TEXT_CACHE_PREFIX: Blob prefix for cached alt texts (default: alt-text-cache/).
        CMS_ALT_TEXT_ENDPOINT: URL of the generate-alt-text function used by the editor.

    Returns:
        Configured AppConfig instance.
    """
    return AppConfig(
        storage_connection_string=os.environ["CMS_STORAGE_CONNECTION_STRING"],
        anthropic_api_key=os.environ["CMS_ANTHROPIC_API_KEY"],
        media_container=os.environ.get("CMS_MEDIA_CONTAINER", "cms-media"),
        public_base_url=os.environ.get("CMS_PUBLIC_BASE_URL", ""),
        page_size=int(os.environ.get("CMS_PAGE_SIZE", "48")),
        root_folders=_parse_folders(os.environ.get("CMS_ROOT_FOLDERS")),
        max_upload_bytes=int(os.environ.get("CMS_MAX_UPLOAD_BYTES", str(10 * 1024 * 1024))),
        anthropic_model=os.environ.get("CMS_ANTHROPIC_MODEL", "claude-haiku-4-5-20251001"),
        anthropic_max_retries=int(os.environ.get("CMS_ANTHROPIC_MAX_RETRIES", "3")),
        state_container=os.environ.get("CMS_STATE_CONTAINER", "cms-media-state"),
        alt_text_cache_prefix=os.environ.get("CMS_ALT_TEXT_CACHE_PREFIX", "alt-text-cache/"),
        alt_text_endpoint=os.environ.get(
            "CMS_ALT_TEXT_ENDPOINT", "http://localhost:7071/api/generate-alt-text"
        ),
    )
