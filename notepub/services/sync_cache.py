"""Sync cache and change detection.

The cache maps an entry path to the modification time (epoch ms) that was last
written to the remote record store. It is a value object: the record writer and
the reconciler return updated copies instead of mutating shared state.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from notepub.filesystem.vault import LocalEntry

logger = logging.getLogger(__name__)


class SyncCache:
    """Mapping of path -> last synchronized modification time."""

    def __init__(self, note_by_path: Mapping[str, int] | None = None) -> None:
        self._note_by_path: dict[str, int] = dict(note_by_path or {})

    @classmethod
    def from_mapping(cls, raw: object) -> SyncCache:
        """Build a cache from persisted JSON, treating anything unusable as empty."""
        if not isinstance(raw, Mapping):
            return cls()
        note_by_path: dict[str, int] = {}
        for path, mtime in raw.items():
            # bool is an int subclass but never a valid mtime
            if isinstance(path, str) and isinstance(mtime, int) and not isinstance(mtime, bool):
                note_by_path[path] = mtime
            else:
                logger.debug("Dropping malformed cache entry %r -> %r", path, mtime)
        return cls(note_by_path)

    def get(self, path: str) -> int | None:
        return self._note_by_path.get(path)

    def set(self, path: str, modified_at: int) -> None:
        self._note_by_path[path] = modified_at

    def delete(self, path: str) -> None:
        self._note_by_path.pop(path, None)

    def copy(self) -> SyncCache:
        return SyncCache(self._note_by_path)

    def advanced(self, entries: Iterable[LocalEntry]) -> SyncCache:
        """Return a copy with each entry's path set to its modification time."""
        updated = self.copy()
        for entry in entries:
            updated.set(entry.path, entry.modified_at)
        return updated

    def pruned(self, paths: Iterable[str]) -> SyncCache:
        """Return a copy without *paths*."""
        updated = self.copy()
        for path in paths:
            updated.delete(path)
        return updated

    def to_mapping(self) -> dict[str, int]:
        return dict(self._note_by_path)

    def __contains__(self, path: object) -> bool:
        return path in self._note_by_path

    def __len__(self) -> int:
        return len(self._note_by_path)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SyncCache):
            return NotImplemented
        return self._note_by_path == other._note_by_path

    def __repr__(self) -> str:
        return f"SyncCache({self._note_by_path!r})"


def needs_upload(entry: LocalEntry, cache: SyncCache) -> bool:
    """An entry needs upload if it was never synced or changed since the last sync."""
    return cache.get(entry.path) != entry.modified_at


def select_changed(entries: Iterable[LocalEntry], cache: SyncCache) -> list[LocalEntry]:
    """Return entries requiring upload, preserving enumeration order."""
    return [entry for entry in entries if needs_upload(entry, cache)]
