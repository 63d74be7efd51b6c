"""Generated alt-text cache backed by Azure Blob Storage."""

from __future__ import annotations

import contextlib
import hashlib
import logging
from typing import TYPE_CHECKING

from azure.core.exceptions import ResourceNotFoundError
from azure.storage.blob import BlobServiceClient

if TYPE_CHECKING:
    from cms_media.config import AppConfig

logger = logging.getLogger(__name__)

# Named constants for cache configuration defaults
DEFAULT_CACHE_CONTAINER = "cms-media-state"
DEFAULT_CACHE_BLOB_PREFIX = "alt-text-cache/"


class AltTextCache:
    """Generated image text cached as UTF-8 blobs.

    Keys are the SHA-256 of the prompt mode and the image URL, so the same
    image described in the same mode is only sent to the model once. Media
    keys carry an upload timestamp, so a replaced asset gets a new URL.
    """

    def __init__(
        self,
        storage_connection_string: str,
        container: str = DEFAULT_CACHE_CONTAINER,
        blob_prefix: str = DEFAULT_CACHE_BLOB_PREFIX,
    ) -> None:
        """Initialise the alt-text cache.

        Args:
            storage_connection_string: Azure Storage connection string.
            container: Blob container name for cache storage.
            blob_prefix: Prefix for cache blob paths (e.g. "alt-text-cache/").
        """
        self._blob_service = BlobServiceClient.from_connection_string(storage_connection_string)
        self._container = container
        self._blob_prefix = blob_prefix

    @staticmethod
    def cache_key(image_url: str, mode: str) -> str:
        """Return the lowercase SHA-256 hex digest identifying a cache entry."""
        return hashlib.sha256(f"{mode}\n{image_url}".encode()).hexdigest()

    def get(self, image_url: str, mode: str) -> str | None:
        """Retrieve cached text for an image, or None if not cached."""
        key = self.cache_key(image_url, mode)
        blob_path = f"{self._blob_prefix}{key}"
        try:
            container_client = self._blob_service.get_container_client(self._container)
            blob_client = container_client.get_blob_client(blob_path)
            data = blob_client.download_blob().readall()
            logger.info("[alt_text_cache] cache hit; key:%s;mode:%s", key, mode)
            return data.decode("utf-8")
        except ResourceNotFoundError:
            logger.info("[alt_text_cache] cache miss; key:%s;mode:%s", key, mode)
            return None

    def put(self, image_url: str, mode: str, text: str) -> None:
        """Store generated text, creating the container if it does not exist."""
        key = self.cache_key(image_url, mode)
        blob_path = f"{self._blob_prefix}{key}"
        container_client = self._blob_service.get_container_client(self._container)
        with contextlib.suppress(Exception):
            container_client.create_container()

        blob_client = container_client.get_blob_client(blob_path)
        blob_client.upload_blob(text.encode("utf-8"), overwrite=True)
        logger.info("[alt_text_cache] stored; key:%s;mode:%s", key, mode)


def alt_text_cache_from_config(config: AppConfig) -> AltTextCache:
    """Construct an AltTextCache from application configuration.

    Args:
        config: Application configuration instance.

    Returns:
        Configured AltTextCache instance.
    """
    return AltTextCache(
        storage_connection_string=config.storage_connection_string,
        container=config.state_container,
        blob_prefix=config.alt_text_cache_prefix,
    )
