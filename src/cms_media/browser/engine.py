"""Media browser engine — folder navigation, paging, search and uploads over a flat bucket."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

from cms_media.browser.navigation import (
    Breadcrumb,
    breadcrumbs,
    is_within,
    join_path,
    normalize_path,
    parent_path,
)
from cms_media.browser.upload import (
    DEFAULT_MAX_UPLOAD_BYTES,
    UploadFile,
    destination_key,
    now_millis,
    validate_upload,
)
from cms_media.config import DEFAULT_ROOT_FOLDERS
from cms_media.storage.client import StorageError, storage_client_from_config
from cms_media.storage.models import (
    Entry,
    SortBy,
    entry_from_item,
    entry_path,
    format_bytes,
    media_kind,
    sort_entries,
)

if TYPE_CHECKING:
    from cms_media.config import AppConfig
    from cms_media.storage.client import BlobStorageClient

logger = logging.getLogger(__name__)

PAGE_SIZE = 48


class MediaBrowserError(Exception):
    """Base class for media browser failures; carries the transport message."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ListError(MediaBrowserError):
    """Raised when a directory listing fails."""


class UploadError(MediaBrowserError):
    """Raised when an upload is rejected or the storage write fails."""


class DeleteError(MediaBrowserError):
    """Raised when removing a file from storage fails."""


@dataclass(frozen=True)
class Outcome:
    """Result of a guarded browser action.

    A falsy Outcome means a precondition was not met and nothing happened.
    """

    reason: str | None = None
    url: str | None = None

    @property
    def ok(self) -> bool:
        return self.reason is None

    def __bool__(self) -> bool:
        return self.ok


class PreconditionNotMet(Outcome):
    """A guard fired: the action was skipped without touching state."""


OK = Outcome()


@dataclass(frozen=True)
class Preview:
    """Details shown in the preview pane for a file entry."""

    entry: Entry
    media_kind: str
    size_label: str
    created_at: datetime | None

    @classmethod
    def from_entry(cls, entry: Entry) -> Preview:
        return cls(
            entry=entry,
            media_kind=media_kind(entry.name),
            size_label=format_bytes(entry.size),
            created_at=entry.created_at,
        )


class MediaBrowser:
    """Navigable, searchable, paginated view over a flat object-storage bucket.

    Navigation state lives only between ``open`` and ``close``. When opened
    with a locked folder, every effective ``cwd`` is that folder or lies
    beneath it.
    """

    def __init__(
        self,
        storage: BlobStorageClient,
        page_size: int = PAGE_SIZE,
        root_folders: Sequence[str] = DEFAULT_ROOT_FOLDERS,
        max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
        bucket_label: str = "cms-media",
        on_select: Callable[[str], None] | None = None,
        on_upload: Callable[[str], None] | None = None,
        clock: Callable[[], int] = now_millis,
    ) -> None:
        """Initialise the browser.

        Args:
            storage: Object-storage client for the media bucket.
            page_size: Entries requested per page.
            root_folders: Canonical top-level folders always shown at the root.
            max_upload_bytes: Largest accepted upload.
            bucket_label: Label of the root breadcrumb.
            on_select: Called with the public URL of a chosen or uploaded file.
            on_upload: Called with the public URL of each uploaded file.
            clock: Millisecond timestamp source for upload keys.
        """
        self._storage = storage
        self._page_size = page_size
        self._root_folders = tuple(normalize_path(f) for f in root_folders if normalize_path(f))
        self._max_upload_bytes = max_upload_bytes
        self._bucket_label = bucket_label
        self._clock = clock
        self.on_select = on_select
        self.on_upload = on_upload
        self._list_seq = 0
        self._is_open = False
        self._reset()

    def _reset(self, locked_root: str | None = None) -> None:
        self._cwd = ""
        self._page = 1
        self._query = ""
        self._locked_root = locked_root
        self._entries: list[Entry] = []
        self._preview: Preview | None = None
        self._error: str | None = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def cwd(self) -> str:
        return self._cwd

    @property
    def page(self) -> int:
        return self._page

    @property
    def query(self) -> str:
        return self._query

    @property
    def locked_root(self) -> str | None:
        return self._locked_root

    @property
    def root_folders(self) -> tuple[str, ...]:
        return self._root_folders

    @property
    def entries(self) -> list[Entry]:
        """All entries of the loaded page, unfiltered."""
        return list(self._entries)

    @property
    def visible_entries(self) -> list[Entry]:
        """Loaded entries narrowed by the current search query."""
        q = self._query.strip().lower()
        if not q:
            return list(self._entries)
        return [e for e in self._entries if q in e.name.lower()]

    @property
    def error(self) -> str | None:
        """Message of the last failed listing, for inline display."""
        return self._error

    @property
    def preview_pane(self) -> Preview | None:
        return self._preview

    @property
    def breadcrumbs(self) -> list[Breadcrumb]:
        return breadcrumbs(self._cwd, self._locked_root, root_label=self._bucket_label)

    @property
    def can_go_up(self) -> bool:
        return bool(self._cwd) and self._cwd != self._locked_root

    @property
    def can_go_previous(self) -> bool:
        return self._page > 1

    @property
    def can_go_next(self) -> bool:
        # No total count is available; next stays enabled.
        return True

    def state_dict(self) -> dict[str, Any]:
        """Serialize the visible browser state for JSON responses."""
        return {
            "cwd": self._cwd,
            "page": self._page,
            "query": self._query,
            "locked_root": self._locked_root,
            "breadcrumbs": [
                {"label": b.label, "path": b.path, "clickable": b.clickable}
                for b in self.breadcrumbs
            ],
            "entries": [e.to_dict() for e in self.visible_entries],
            "can_go_up": self.can_go_up,
            "can_go_previous": self.can_go_previous,
            "can_go_next": self.can_go_next,
            "error": self._error,
        }

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def open(
        self, initial_folder: str | None = None, start_path: str = "", page: int = 1
    ) -> None:
        """Reset navigation state and load the starting directory.

        Args:
            initial_folder: Folder to lock navigation under, if any.
            start_path: Starting sub-path (under the locked folder when locked).
            page: 1-based page of the starting directory to load.

        Raises:
            ListError: If the starting directory cannot be listed.
        """
        lock = normalize_path(initial_folder) or None
        start = normalize_path(start_path)
        self._reset(locked_root=lock)
        self._is_open = True
        self._cwd = join_path(lock, start) if lock else start
        logger.info("[open] media browser opened; locked_root:%s;cwd:%s", lock, self._cwd)
        self.list(self._cwd, page)

    def close(self) -> None:
        """Discard navigation state; responses still in flight are ignored."""
        self._is_open = False
        self._list_seq += 1
        self._reset()

    # ------------------------------------------------------------------
    # Listing and navigation
    # ------------------------------------------------------------------

    def list(self, cwd: str, page: int = 1) -> list[Entry]:
        """List one page of a directory and make it the displayed directory.

        Only the most recently requested listing is applied; a response that
        resolves after a newer request was issued is returned but not shown.

        Args:
            cwd: Directory prefix; empty for the bucket root.
            page: 1-based page number.

        Returns:
            Folders then files, each sorted case-insensitively by name.

        Raises:
            ListError: If the storage listing fails or ``cwd`` is outside the
                locked folder.
        """
        cwd = normalize_path(cwd)
        page = max(1, page)
        if not is_within(cwd, self._locked_root):
            raise ListError(f"{cwd or '/'} is outside the locked folder {self._locked_root}")

        self._list_seq += 1
        seq = self._list_seq
        try:
            items = self._storage.list(
                cwd,
                limit=self._page_size,
                offset=(page - 1) * self._page_size,
                sort_by=SortBy(),
            )
        except StorageError as exc:
            logger.error("[list] listing failed; cwd:%s;page:%d;error:%s", cwd, page, exc.message)
            if seq == self._list_seq:
                self._error = exc.message
            raise ListError(exc.message) from exc

        entries = [
            entry_from_item(cwd, item, None if item.is_folder else self._public_url(cwd, item.name))
            for item in items
        ]
        if not cwd and not self._locked_root and page == 1:
            entries = self._inject_root_folders(entries)
        entries = sort_entries(entries)

        if seq != self._list_seq:
            logger.info("[list] discarding stale listing; cwd:%s;page:%d", cwd, page)
            return entries

        self._entries = entries
        self._cwd = cwd
        self._page = page
        self._preview = None
        self._error = None
        logger.info(
            "[list] listing applied; cwd:%s;page:%d;entry_count:%d", cwd, page, len(entries)
        )
        return entries

    def _public_url(self, cwd: str, name: str) -> str:
        return self._storage.get_public_url(entry_path(cwd, name))

    def _inject_root_folders(self, entries: list[Entry]) -> list[Entry]:
        """Add whitelisted root folders missing from a live root listing."""
        existing = {e.name for e in entries}
        injected = [Entry.folder(name, name) for name in self._root_folders if name not in existing]
        return entries + injected

    def refresh(self) -> list[Entry]:
        return self.list(self._cwd, self._page)

    def open_folder(self, path: str) -> Outcome:
        """Navigate into ``path``.

        A path outside the locked folder is ignored. When the listing fails
        the browser stays on the last successfully loaded directory.

        Raises:
            ListError: If the target directory cannot be listed.
        """
        target = normalize_path(path)
        if not is_within(target, self._locked_root):
            logger.warning(
                "[open_folder] ignored path outside locked folder; path:%s;locked_root:%s",
                target,
                self._locked_root,
            )
            return PreconditionNotMet("Folder is outside the locked folder")
        self.list(target, 1)
        return OK

    def go_up(self) -> Outcome:
        """Navigate to the parent directory, never above the locked folder."""
        if not self._cwd:
            return PreconditionNotMet("Already at the bucket root")
        if self._cwd == self._locked_root:
            return PreconditionNotMet("Already at the locked folder")
        parent = parent_path(self._cwd)
        if self._locked_root and not is_within(parent, self._locked_root):
            parent = self._locked_root
        self.list(parent, 1)
        return OK

    def search(self, query: str) -> list[Entry]:
        """Filter the loaded page by name; storage is not queried again."""
        self._query = query
        return self.visible_entries

    def next_page(self) -> Outcome:
        self.list(self._cwd, self._page + 1)
        return OK

    def previous_page(self) -> Outcome:
        if self._page <= 1:
            return PreconditionNotMet("Already on the first page")
        self.list(self._cwd, self._page - 1)
        return OK

    # ------------------------------------------------------------------
    # Selection and preview
    # ------------------------------------------------------------------

    def select(self, entry: Entry) -> Outcome:
        """Pick a file (notifies ``on_select``) or open a folder."""
        if entry.is_folder:
            return self.open_folder(entry.path)
        if not is_within(entry.path, self._locked_root):
            return PreconditionNotMet("File is outside the locked folder")
        url = entry.public_url or self._storage.get_public_url(entry.path)
        logger.info("[select] file selected; path:%s", entry.path)
        if self.on_select is not None:
            self.on_select(url)
        return Outcome(url=url)

    def preview(self, entry: Entry) -> Outcome:
        if entry.is_folder:
            return PreconditionNotMet("Folders have no preview")
        self._preview = Preview.from_entry(entry)
        return OK

    def confirm_preview(self) -> Outcome:
        """Select the file currently shown in the preview pane."""
        if self._preview is None:
            return PreconditionNotMet("No file is being previewed")
        return self.select(self._preview.entry)

    # ------------------------------------------------------------------
    # Uploads and deletion
    # ------------------------------------------------------------------

    def upload(self, file: UploadFile | None) -> Outcome:
        """Upload one file into the current directory.

        The key is ``<folder>/<millis>_<filename>``. An existing key is never
        overwritten; the clash surfaces as an UploadError.

        Returns:
            Outcome carrying the public URL of the stored file.

        Raises:
            UploadError: If the file is rejected or the storage write fails.
        """
        if file is None or not file.basename:
            return PreconditionNotMet("No file chosen")
        reason = validate_upload(file, self._max_upload_bytes)
        if reason is not None:
            logger.warning("[upload] file rejected; filename:%s;reason:%s", file.basename, reason)
            raise UploadError(reason)

        folder = self._cwd or self._locked_root or ""
        dest = destination_key(folder, file.basename, self._clock())
        try:
            self._storage.upload(dest, file.content, content_type=file.resolved_content_type())
        except StorageError as exc:
            logger.error("[upload] upload failed; path:%s;error:%s", dest, exc.message)
            raise UploadError(exc.message) from exc

        url = self._storage.get_public_url(dest)
        logger.info("[upload] upload complete; path:%s;bytes:%d", dest, file.size)
        if self.on_upload is not None:
            self.on_upload(url)
        if self.on_select is not None:
            self.on_select(url)
        self._refresh_after_write()
        return Outcome(url=url)

    def drop(self, files: Sequence[UploadFile]) -> Outcome:
        """Handle a drag-and-drop; only the first dropped file is uploaded."""
        if not files:
            return PreconditionNotMet("No file dropped")
        return self.upload(files[0])

    def delete(self, entry: Entry) -> Outcome:
        """Remove a file from storage and reload the directory.

        Raises:
            DeleteError: If storage refuses the deletion.
        """
        if entry.is_folder:
            return PreconditionNotMet("Only files can be deleted")
        if not is_within(entry.path, self._locked_root):
            logger.warning(
                "[delete] refused path outside locked folder; path:%s;locked_root:%s",
                entry.path,
                self._locked_root,
            )
            return PreconditionNotMet("File is outside the locked folder")
        try:
            self._storage.remove([entry.path])
        except StorageError as exc:
            logger.error("[delete] delete failed; path:%s;error:%s", entry.path, exc.message)
            raise DeleteError(exc.message) from exc
        if self._preview is not None and self._preview.entry.path == entry.path:
            self._preview = None
        self._refresh_after_write()
        return OK

    def _refresh_after_write(self) -> None:
        """Reload after a successful write; a failed reload is shown inline only."""
        if not self._is_open:
            return
        try:
            self.refresh()
        except ListError as exc:
            logger.warning("[_refresh_after_write] reload failed; cwd:%s;error:%s", self._cwd, exc)


def media_browser_from_config(
    config: AppConfig,
    on_select: Callable[[str], None] | None = None,
    on_upload: Callable[[str], None] | None = None,
) -> MediaBrowser:
    """Construct a MediaBrowser from application configuration.

    Args:
        config: Application configuration instance.
        on_select: Optional selection callback.
        on_upload: Optional upload callback.

    Returns:
        Configured MediaBrowser instance.
    """
    return MediaBrowser(
        storage=storage_client_from_config(config),
        page_size=config.page_size,
        root_folders=config.root_folders,
        max_upload_bytes=config.max_upload_bytes,
        bucket_label=config.media_container,
        on_select=on_select,
        on_upload=on_upload,
    )
