"""JSON state file reader/writer holding the sync cache."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from notepub.exceptions import LocalFileError
from notepub.services.sync_cache import SyncCache

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

CACHE_KEY = "cache"
NOTE_BY_PATH_KEY = "noteByPath"


@dataclass
class StateStore:
    """Loads and saves the sync cache inside a larger JSON state document.

    Keys other than the cache are preserved on every save.
    """

    path: Path

    def load(self) -> dict[str, Any]:
        """Load the whole state document; missing or malformed files yield ``{}``."""
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable state file %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring state file %s: top level is not an object", self.path)
            return {}
        return data

    def save(self, data: dict[str, Any]) -> None:
        """Write the state document atomically.

        Raises LocalFileError if the file cannot be written.
        """
        try:
            self._write_atomic(data)
        except OSError as exc:
            raise LocalFileError(f"Could not write state file {self.path}: {exc}") from exc

    def _write_atomic(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
            os.replace(tmp_name, self.path)
        except BaseException:
            os.unlink(tmp_name)
            raise

    def load_cache(self) -> SyncCache:
        """Load the sync cache; an absent cache is an empty cache."""
        cache_section = self.load().get(CACHE_KEY)
        if not isinstance(cache_section, dict):
            return SyncCache()
        return SyncCache.from_mapping(cache_section.get(NOTE_BY_PATH_KEY))

    def save_cache(self, cache: SyncCache) -> None:
        """Persist *cache* as one unit, keeping the rest of the document."""
        data = self.load()
        data[CACHE_KEY] = {NOTE_BY_PATH_KEY: cache.to_mapping()}
        self.save(data)
        logger.debug("Saved sync cache with %d entries to %s", len(cache), self.path)

    def clear_cache(self) -> None:
        """Forget every synced path; the next publish re-uploads everything."""
        self.save_cache(SyncCache())
