"""Pytest configuration — adds src/ to sys.path and provides an in-memory bucket."""

from __future__ import annotations

import os
import sys
from collections.abc import Callable
from datetime import UTC, datetime

import pytest

# Add src/ to Python path so tests can import from cms_media
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from cms_media.storage.client import StorageConflictError, StorageError  # noqa: E402
from cms_media.storage.models import ItemMetadata, SortBy, StorageItem  # noqa: E402

CREATED_AT = datetime(2025, 10, 11, 16, 41, tzinfo=UTC)
PUBLIC_BASE = "https://media.example.test/cms-media"


class FakeStorage:
    """In-memory stand-in for BlobStorageClient with the same surface."""

    container = "cms-media"

    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.list_calls: list[tuple[str, int, int]] = []
        self.uploads: list[str] = []
        self.removed: list[str] = []
        self.fail_list: str | None = None
        self.fail_upload: str | None = None
        self.fail_remove: str | None = None
        self.on_list: Callable[[str], None] | None = None

    def add(self, key: str, data: bytes = b"data") -> None:
        self.objects[key] = data

    def list(
        self, prefix: str, limit: int, offset: int = 0, sort_by: SortBy | None = None
    ) -> list[StorageItem]:
        self.list_calls.append((prefix, limit, offset))
        if self.on_list is not None:
            hook, self.on_list = self.on_list, None
            hook(prefix)
        if self.fail_list:
            raise StorageError(self.fail_list)
        base = f"{prefix}/" if prefix else ""
        folders: set[str] = set()
        files: dict[str, str] = {}
        for key in self.objects:
            if not key.startswith(base):
                continue
            rest = key[len(base) :]
            if "/" in rest:
                folders.add(rest.split("/", 1)[0])
            else:
                files[rest] = key
        items = [StorageItem(name=name, id=None) for name in folders]
        items += [
            StorageItem(
                name=name,
                id=f"id-{key}",
                metadata=ItemMetadata(size=len(self.objects[key])),
                created_at=CREATED_AT,
            )
            for name, key in files.items()
        ]
        items.sort(key=lambda i: (i.name.casefold(), i.name))
        return items[offset : offset + limit]

    def upload(
        self, path: str, data: bytes, content_type: str | None = None, overwrite: bool = False
    ) -> None:
        if self.fail_upload:
            raise StorageError(self.fail_upload)
        if path in self.objects and not overwrite:
            raise StorageConflictError(f"An object already exists at {path}")
        self.objects[path] = data
        self.uploads.append(path)

    def remove(self, paths: list[str]) -> None:
        if self.fail_remove:
            raise StorageError(self.fail_remove)
        for path in paths:
            self.objects.pop(path, None)
            self.removed.append(path)

    def get_public_url(self, path: str) -> str:
        return f"{PUBLIC_BASE}/{path}"


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()
