"""Record writer: builds remote records and upserts them in one batch."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from notepub.filesystem.vault import EntryKind
from notepub.remote.records import RemoteRecord
from notepub.services.datetime_service import format_iso_millis

if TYPE_CHECKING:
    from collections.abc import Sequence

    from notepub.filesystem.vault import LocalEntry
    from notepub.services.sync_cache import SyncCache

logger = logging.getLogger(__name__)


class RecordUpserter(Protocol):
    async def upsert_records(self, records: Sequence[RemoteRecord]) -> int: ...


@dataclass(frozen=True)
class PendingRecord:
    """An entry paired with its payload: inline content or a blob id."""

    entry: LocalEntry
    blob_id: str | None = None


@dataclass
class WriteResult:
    """Outcome of one record batch."""

    cache: SyncCache
    written: int = 0
    affected_rows: int = 0


def build_record(entry: LocalEntry, blob_id: str | None = None) -> RemoteRecord:
    """Build the remote representation of *entry*.

    Text entries carry their content inline; binary entries carry *blob_id*.
    """
    if entry.kind is EntryKind.TEXT:
        if entry.content is None:
            raise ValueError(f"Text entry {entry.path} has no content")
        payload = {"content": entry.content}
    else:
        if blob_id is None:
            raise ValueError(f"Binary entry {entry.path} has no blob id")
        payload = {"file_id": blob_id}
    return RemoteRecord(
        basename=entry.basename,
        extension=entry.extension,
        name=entry.name,
        path=entry.path,
        size=entry.size,
        created_at=format_iso_millis(entry.created_at),
        updated_at=format_iso_millis(entry.modified_at),
        **payload,
    )


async def write_records(
    title: str,
    pending: Sequence[PendingRecord],
    records: RecordUpserter,
    cache: SyncCache,
) -> WriteResult:
    """Upsert *pending* in one batch and return the advanced cache.

    With nothing to write no request is made. The returned cache is advanced
    only after the store acknowledges the upsert; if the upsert raises, the
    error propagates and *cache* is left as it was.
    """
    if not pending:
        logger.info("%s: No notes to insert.", title)
        return WriteResult(cache=cache)

    batch = [build_record(item.entry, item.blob_id) for item in pending]
    logger.info("%s: Inserting %d notes.", title, len(batch))
    affected_rows = await records.upsert_records(batch)
    logger.info("%s: Inserted %d notes.", title, affected_rows)

    return WriteResult(
        cache=cache.advanced(item.entry for item in pending),
        written=len(batch),
        affected_rows=affected_rows,
    )
