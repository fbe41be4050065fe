"""Reconciliation: remove remote records and blobs no longer backed by local entries.

Runs after every upload of the pass. Record deletion comes first so that blobs
belonging to just-deleted records are seen as orphans in the same pass.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from notepub.services.fanout import gather_indexed

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence

    from notepub.remote.records import BlobReferences
    from notepub.services.sync_cache import SyncCache

logger = logging.getLogger(__name__)


class RecordReconcileStore(Protocol):
    async def fetch_record_paths(self) -> list[str]: ...

    async def delete_records(self, paths: Sequence[str]) -> int: ...

    async def fetch_blob_references(self) -> BlobReferences: ...


class BlobDeleter(Protocol):
    async def delete(self, blob_id: str) -> bool: ...


@dataclass
class StaleRecordResult:
    cache: SyncCache
    deleted_paths: list[str] = field(default_factory=list)
    affected_rows: int = 0


@dataclass
class OrphanBlobResult:
    deleted: list[str] = field(default_factory=list)
    already_absent: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


def compute_stale_paths(remote_paths: Sequence[str], local_paths: Collection[str]) -> list[str]:
    """Remote paths absent from the local publishable set, in remote order."""
    local = set(local_paths)
    stale: list[str] = []
    seen: set[str] = set()
    for path in remote_paths:
        if path in local or path in seen:
            continue
        seen.add(path)
        stale.append(path)
    return stale


async def delete_stale_records(
    local_paths: Collection[str],
    records: RecordReconcileStore,
    cache: SyncCache,
) -> StaleRecordResult:
    """Delete remote records whose path is not local, then prune the cache.

    Only local enumeration decides staleness, never the cache. A failed query
    or delete propagates and leaves *cache* untouched.
    """
    remote_paths = await records.fetch_record_paths()
    logger.info("Notes: local [%d], DB [%d]", len(local_paths), len(remote_paths))

    stale = compute_stale_paths(remote_paths, local_paths)
    if not stale:
        logger.info("No notes to delete.")
        return StaleRecordResult(cache=cache)

    affected_rows = await records.delete_records(stale)
    logger.info("Deleted %d notes.", affected_rows)
    return StaleRecordResult(
        cache=cache.pruned(stale),
        deleted_paths=stale,
        affected_rows=affected_rows,
    )


async def delete_orphan_blobs(
    records: RecordReconcileStore,
    storage: BlobDeleter,
    timeout: float | None = None,
) -> OrphanBlobResult:
    """Delete every blob not referenced by a remaining record.

    Deletions run concurrently and independently; a failure is logged and
    left for the next run's orphan computation.
    """
    references = await records.fetch_blob_references()
    orphans = references.orphans
    result = OrphanBlobResult()
    if not orphans:
        logger.info("No files to delete.")
        return result

    outcomes = await gather_indexed(storage.delete, orphans, timeout=timeout)
    for blob_id, outcome in zip(orphans, outcomes, strict=True):
        if not outcome.ok:
            logger.warning("Failed to delete blob %s: %r", blob_id, outcome.error)
            result.failed.append(blob_id)
        elif outcome.value:
            result.deleted.append(blob_id)
        else:
            result.already_absent.append(blob_id)

    logger.info(
        "Deleted %d files (%d already absent, %d failed).",
        len(result.deleted),
        len(result.already_absent),
        len(result.failed),
    )
    return result
