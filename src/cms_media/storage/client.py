"""Object-storage client over Azure Blob Storage.

Blob Storage is a flat namespace; folders are the ``/``-delimited prefix
convention. A hierarchical listing reports each prefix as an item with no
identifier, which callers treat as a folder marker.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from azure.core.exceptions import AzureError, ResourceExistsError
from azure.storage.blob import BlobPrefix, BlobServiceClient, ContentSettings

from cms_media.storage.models import (
    SORT_ORDER_DESC,
    ItemMetadata,
    SortBy,
    StorageItem,
)

if TYPE_CHECKING:
    from cms_media.config import AppConfig

logger = logging.getLogger(__name__)

PREFIX_DELIMITER = "/"


class StorageError(Exception):
    """Raised when a storage operation fails; carries the transport message."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class StorageConflictError(StorageError):
    """Raised when an upload targets a key that already exists."""


def _error_message(exc: AzureError) -> str:
    return str(getattr(exc, "message", None) or exc)


class BlobStorageClient:
    """Lists, uploads and removes media objects in one blob container."""

    def __init__(
        self,
        storage_connection_string: str,
        container: str,
        public_base_url: str = "",
    ) -> None:
        """Initialise the storage client.

        Args:
            storage_connection_string: Azure Storage connection string.
            container: Blob container acting as the media bucket.
            public_base_url: Base URL used to build public asset URLs. Falls
                back to the container URL when empty.
        """
        self._blob_service = BlobServiceClient.from_connection_string(storage_connection_string)
        self._container = container
        self._public_base_url = public_base_url.rstrip("/")

    @property
    def container(self) -> str:
        return self._container

    def _container_client(self) -> Any:
        return self._blob_service.get_container_client(self._container)

    def list(
        self,
        prefix: str,
        limit: int,
        offset: int = 0,
        sort_by: SortBy | None = None,
    ) -> list[StorageItem]:
        """List the direct children of a folder prefix.

        Args:
            prefix: Folder prefix without trailing slash; empty for the bucket root.
            limit: Maximum number of items to return.
            offset: Number of items to skip in the sorted listing.
            sort_by: Sort instruction; only the name column is supported.

        Returns:
            One page of StorageItem values; folders have ``id=None``.

        Raises:
            StorageError: If the listing request fails.
        """
        sort_by = sort_by or SortBy()
        name_starts_with = f"{prefix}{PREFIX_DELIMITER}" if prefix else None
        try:
            raw_items = list(
                self._container_client().walk_blobs(
                    name_starts_with=name_starts_with, delimiter=PREFIX_DELIMITER
                )
            )
        except AzureError as exc:
            logger.error("[list] listing failed; prefix:%s", prefix)
            raise StorageError(_error_message(exc)) from exc

        items = [
            item
            for item in (self._parse_item(raw, name_starts_with or "") for raw in raw_items)
            if item.name
        ]
        descending = sort_by.order == SORT_ORDER_DESC
        items.sort(key=lambda i: (i.name.casefold(), i.name), reverse=descending)
        page = items[offset : offset + limit]
        logger.info(
            "[list] listed prefix; prefix:%s;total:%d;returned:%d",
            prefix,
            len(items),
            len(page),
        )
        return page

    def upload(
        self,
        path: str,
        data: bytes,
        content_type: str | None = None,
        overwrite: bool = False,
    ) -> None:
        """Upload an object.

        Args:
            path: Destination key relative to the container root.
            data: Object content.
            content_type: MIME type stored with the object.
            overwrite: Replace an existing object with the same key.

        Raises:
            StorageConflictError: If the key exists and overwrite is disabled.
            StorageError: If the upload fails for any other reason.
        """
        settings = ContentSettings(content_type=content_type) if content_type else None
        try:
            self._container_client().upload_blob(
                name=path, data=data, overwrite=overwrite, content_settings=settings
            )
        except ResourceExistsError as exc:
            logger.warning("[upload] key already exists; path:%s", path)
            raise StorageConflictError(f"An object already exists at {path}") from exc
        except AzureError as exc:
            logger.error("[upload] upload failed; path:%s", path)
            raise StorageError(_error_message(exc)) from exc
        logger.info("[upload] uploaded object; path:%s;bytes:%d", path, len(data))

    def remove(self, paths: list[str]) -> None:
        """Delete objects by key.

        Raises:
            StorageError: If any deletion fails; earlier deletions are kept.
        """
        container_client = self._container_client()
        for path in paths:
            try:
                container_client.delete_blob(path)
            except AzureError as exc:
                logger.error("[remove] delete failed; path:%s", path)
                raise StorageError(_error_message(exc)) from exc
            logger.info("[remove] deleted object; path:%s", path)

    def get_public_url(self, path: str) -> str:
        """Compute the unauthenticated URL of an object from its key."""
        base = self._public_base_url or str(self._container_client().url).rstrip("/")
        return f"{base}/{quote(path, safe='/')}"

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_item(raw: Any, listed_prefix: str) -> StorageItem:
        """Map a walk_blobs result to a StorageItem relative to the listed prefix."""
        name = str(raw.name)[len(listed_prefix) :]
        if isinstance(raw, BlobPrefix):
            return StorageItem(name=name.rstrip(PREFIX_DELIMITER), id=None)
        settings = getattr(raw, "content_settings", None)
        return StorageItem(
            name=name,
            id=getattr(raw, "etag", None) or name,
            metadata=ItemMetadata(
                size=getattr(raw, "size", None),
                mimetype=getattr(settings, "content_type", None) if settings else None,
            ),
            created_at=getattr(raw, "creation_time", None),
        )


def storage_client_from_config(config: AppConfig) -> BlobStorageClient:
    """Construct a BlobStorageClient from application configuration.

    Args:
        config: Application configuration instance.

    Returns:
        Configured BlobStorageClient instance.
    """
    return BlobStorageClient(
        storage_connection_string=config.storage_connection_string,
        container=config.media_container,
        public_base_url=config.public_base_url,
    )
