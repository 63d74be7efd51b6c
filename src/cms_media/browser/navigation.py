"""Pure path helpers for navigating a flat bucket as a folder tree."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Breadcrumb:
    label: str
    path: str
    clickable: bool = True


def normalize_path(path: str | None) -> str:
    """Strip surrounding slashes, drop empty and ``.`` segments, resolve ``..``.

    ``..`` never climbs above the bucket root.
    """
    if not path:
        return ""
    parts: list[str] = []
    for segment in path.strip().split("/"):
        if segment == "..":
            if parts:
                parts.pop()
        elif segment and segment != ".":
            parts.append(segment)
    return "/".join(parts)


def join_path(*parts: str) -> str:
    return normalize_path("/".join(p for p in parts if p))


def parent_path(path: str) -> str:
    """Drop the last segment of ``path``; the root's parent is the root."""
    parts = normalize_path(path).split("/")
    return "/".join(parts[:-1])


def is_within(path: str, root: str | None) -> bool:
    """True when ``path`` equals ``root`` or lies beneath it.

    A bare prefix match is not enough: ``documents-old`` is not inside ``documents``.
    """
    if not root:
        return True
    return path == root or path.startswith(f"{root}/")


def breadcrumbs(cwd: str, locked_root: str | None = None, root_label: str = "") -> list[Breadcrumb]:
    """Derive breadcrumbs for ``cwd``.

    Unlocked, the trail starts with a root crumb (path ``""``). Locked, there
    is no root crumb and segments above the locked folder are not clickable.
    """
    trail: list[Breadcrumb] = []
    if not locked_root:
        trail.append(Breadcrumb(label=root_label, path=""))
    parts = [p for p in cwd.split("/") if p]
    for i, segment in enumerate(parts):
        path = "/".join(parts[: i + 1])
        trail.append(Breadcrumb(label=segment, path=path, clickable=is_within(path, locked_root)))
    return trail
