"""Data models for object-storage items and media browser entries."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

# Storage listing sort options
SORT_COLUMN_NAME = "name"
SORT_ORDER_ASC = "asc"
SORT_ORDER_DESC = "desc"

# Media kinds used by the preview pane
MEDIA_IMAGE = "image"
MEDIA_PDF = "pdf"
MEDIA_FILE = "file"

_IMAGE_PATTERN = re.compile(r"\.(png|jpe?g|webp|gif|svg)$", re.IGNORECASE)
_PDF_PATTERN = re.compile(r"\.pdf$", re.IGNORECASE)


@dataclass(frozen=True)
class SortBy:
    """Sort instruction passed to a storage listing."""

    column: str = SORT_COLUMN_NAME
    order: str = SORT_ORDER_ASC


@dataclass(frozen=True)
class ItemMetadata:
    """Optional metadata attached to a stored object."""

    size: int | None = None
    mimetype: str | None = None


@dataclass(frozen=True)
class StorageItem:
    """One raw item from a storage listing.

    Attributes:
        name: Last path segment of the object or prefix.
        id: Object identifier, or None for a folder (prefix) marker.
        metadata: Object metadata; empty for folders.
        created_at: Creation time of the object, if known.
    """

    name: str
    id: str | None
    metadata: ItemMetadata = field(default_factory=ItemMetadata)
    created_at: datetime | None = None

    @property
    def is_folder(self) -> bool:
        return self.id is None


class EntryKind(str, Enum):
    FILE = "file"
    FOLDER = "folder"


@dataclass(frozen=True)
class Entry:
    """A file or folder as shown in the media browser."""

    name: str
    kind: EntryKind
    path: str
    size: int | None = None
    created_at: datetime | None = None
    public_url: str | None = None

    @property
    def is_folder(self) -> bool:
        return self.kind is EntryKind.FOLDER

    @classmethod
    def folder(cls, name: str, path: str) -> Entry:
        return cls(name=name, kind=EntryKind.FOLDER, path=path)

    def to_dict(self) -> dict[str, object]:
        """Serialize for JSON responses."""
        return {
            "name": self.name,
            "type": self.kind.value,
            "path": self.path,
            "size": self.size,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "url": self.public_url,
        }


def entry_path(cwd: str, name: str) -> str:
    """Return the full key of ``name`` listed under ``cwd``."""
    return f"{cwd}/{name}" if cwd else name


def entry_from_item(cwd: str, item: StorageItem, public_url: str | None = None) -> Entry:
    """Map a raw storage item listed under ``cwd`` to an Entry.

    Folder entries never carry size, timestamp or URL, whatever the item holds.
    """
    path = entry_path(cwd, item.name)
    if item.is_folder:
        return Entry.folder(item.name, path)
    return Entry(
        name=item.name,
        kind=EntryKind.FILE,
        path=path,
        size=item.metadata.size,
        created_at=item.created_at,
        public_url=public_url,
    )


def sort_entries(entries: list[Entry]) -> list[Entry]:
    """Folders first, then case-insensitive name ascending."""
    return sorted(entries, key=lambda e: (not e.is_folder, e.name.casefold(), e.name))


def is_image(name: str) -> bool:
    return bool(_IMAGE_PATTERN.search(name))


def is_pdf(name: str) -> bool:
    return bool(_PDF_PATTERN.search(name))


def media_kind(name: str) -> str:
    """Classify a file name as image, pdf or generic file."""
    if is_image(name):
        return MEDIA_IMAGE
    if is_pdf(name):
        return MEDIA_PDF
    return MEDIA_FILE


def format_bytes(size: int | None) -> str:
    """Render a byte count as B, KB (one decimal) or MB (two decimals)."""
    if size is None:
        return ""
    if size < 1024:
        return f"{size} B"
    kb = size / 1024
    if kb < 1024:
        return f"{kb:.1f} KB"
    return f"{kb / 1024:.2f} MB"
