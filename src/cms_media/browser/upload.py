"""Upload validation and destination naming for the media browser."""

from __future__ import annotations

import mimetypes
import time
from dataclasses import dataclass
from pathlib import PurePosixPath

DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024
GENERIC_CONTENT_TYPE = "application/octet-stream"

ALLOWED_CONTENT_TYPES = frozenset(
    {
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/gif",
        "image/webp",
        "image/svg+xml",
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "text/plain",
    }
)


@dataclass(frozen=True)
class UploadFile:
    """A file handed to the browser by a picker or a drop.

    Attributes:
        filename: Original file name as chosen by the user.
        content: Raw file bytes.
        content_type: MIME type reported by the client, if any.
    """

    filename: str
    content: bytes
    content_type: str | None = None

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def basename(self) -> str:
        """File name without any directory part a client may have sent."""
        return PurePosixPath(self.filename.replace("\\", "/")).name

    def resolved_content_type(self) -> str | None:
        """Reported MIME type without parameters; guessed from the name when generic."""
        reported = (self.content_type or "").split(";")[0].strip().lower()
        if reported and reported != GENERIC_CONTENT_TYPE:
            return reported
        guessed, _ = mimetypes.guess_type(self.basename)
        return guessed


def validate_upload(
    file: UploadFile,
    max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
    allowed_types: frozenset[str] = ALLOWED_CONTENT_TYPES,
) -> str | None:
    """Return a user-facing reason the file cannot be uploaded, or None."""
    if file.size > max_bytes:
        limit_mb = max_bytes // (1024 * 1024)
        return f'File "{file.basename}" is too large. Maximum size is {limit_mb}MB.'
    content_type = file.resolved_content_type()
    if content_type not in allowed_types:
        return f'File type "{content_type or "unknown"}" is not supported.'
    return None


def now_millis() -> int:
    return time.time_ns() // 1_000_000


def destination_key(folder: str, filename: str, timestamp_ms: int) -> str:
    """Build ``folder/<timestamp>_<filename>``; no leading slash at the root."""
    name = f"{timestamp_ms}_{filename}"
    return f"{folder}/{name}" if folder else name
