"""Publish engine: one batch pass from the local vault to the remote stores.

Phases run strictly one after another, each a barrier:
enumerate -> notes -> attachments (upload, then records) -> stale records -> orphan blobs.
The sync cache is persisted after every phase that changed it.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from functools import partial
from typing import TYPE_CHECKING

from notepub.exceptions import ConfigError
from notepub.filesystem.state_store import StateStore
from notepub.filesystem.vault import read_entry_bytes, scan_vault
from notepub.remote.graphql_client import RecordStoreClient
from notepub.remote.storage_client import BlobStoreClient
from notepub.services.datetime_service import now_utc
from notepub.services.reconcile_service import delete_orphan_blobs, delete_stale_records
from notepub.services.record_service import PendingRecord, write_records
from notepub.services.sync_cache import select_changed
from notepub.services.upload_service import upload_binaries

if TYPE_CHECKING:
    from pathlib import Path

    import httpx

    from notepub.config import Settings
    from notepub.filesystem.vault import LocalEntry, VaultScan
    from notepub.services.sync_cache import SyncCache

logger = logging.getLogger(__name__)


@dataclass
class PendingChanges:
    """What the next publish would upload, without touching the remote stores."""

    notes: list[str] = field(default_factory=list)
    files: list[str] = field(default_factory=list)
    up_to_date: int = 0


@dataclass
class PublishReport:
    """Summary of one publish pass."""

    started_at: datetime
    finished_at: datetime | None = None
    notes_uploaded: int = 0
    files_uploaded: int = 0
    files_failed: list[str] = field(default_factory=list)
    records_deleted: list[str] = field(default_factory=list)
    blobs_deleted: int = 0
    blobs_failed: list[str] = field(default_factory=list)

    @property
    def summary(self) -> str:
        return (
            f"{self.notes_uploaded} note(s) and {self.files_uploaded} file(s) uploaded, "
            f"{len(self.records_deleted)} record(s) and {self.blobs_deleted} file(s) deleted"
        )


def pending_changes(scan: VaultScan, cache: SyncCache) -> PendingChanges:
    """Compare a vault scan against the sync cache."""
    notes = select_changed(scan.notes, cache)
    files = select_changed(scan.attachments, cache)
    total = len(scan.notes) + len(scan.attachments)
    return PendingChanges(
        notes=[e.path for e in notes],
        files=[e.path for e in files],
        up_to_date=total - len(notes) - len(files),
    )


class Publisher:
    """Publishes the vault to the remote record and blob stores.

    Not reentrant: callers must not run two ``publish`` passes at once.
    """

    def __init__(
        self,
        settings: Settings,
        records: RecordStoreClient,
        storage: BlobStoreClient,
        state: StateStore,
    ) -> None:
        self.settings = settings
        self.records = records
        self.storage = storage
        self.state = state

    async def close(self) -> None:
        await self.records.close()
        await self.storage.close()

    async def __aenter__(self) -> Publisher:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    @property
    def vault_dir(self) -> Path:
        return self.settings.vault_dir

    async def scan(self) -> VaultScan:
        """Enumerate the vault off the event loop."""
        return await asyncio.to_thread(scan_vault, self.vault_dir, self.settings.publish_root)

    async def status(self) -> PendingChanges:
        """Report the entries the next publish would upload."""
        return pending_changes(await self.scan(), self.state.load_cache())

    async def publish(self) -> PublishReport:
        """Run one full publish pass.

        Batch errors (query, upsert, delete) propagate as RemoteStoreError;
        whatever the earlier phases committed stays committed and cached.
        """
        report = PublishReport(started_at=now_utc())
        scan = await self.scan()
        cache = self.state.load_cache()

        cache = await self._publish_notes(scan.notes, cache, report)
        cache = await self._publish_attachments(scan.attachments, cache, report)

        stale = await delete_stale_records(scan.local_paths, self.records, cache)
        report.records_deleted = stale.deleted_paths
        if stale.deleted_paths:
            cache = stale.cache
            self.state.save_cache(cache)

        blobs = await delete_orphan_blobs(
            self.records, self.storage, timeout=self.settings.request_timeout
        )
        report.blobs_deleted = len(blobs.deleted) + len(blobs.already_absent)
        report.blobs_failed = blobs.failed

        report.finished_at = now_utc()
        logger.info("Published: %s", report.summary)
        return report

    async def _publish_notes(
        self, notes: list[LocalEntry], cache: SyncCache, report: PublishReport
    ) -> SyncCache:
        changed = select_changed(notes, cache)
        result = await write_records(
            "Note", [PendingRecord(entry) for entry in changed], self.records, cache
        )
        if result.written:
            self.state.save_cache(result.cache)
        report.notes_uploaded = result.written
        return result.cache

    async def _publish_attachments(
        self, attachments: list[LocalEntry], cache: SyncCache, report: PublishReport
    ) -> SyncCache:
        changed = select_changed(attachments, cache)
        blob_ids = await upload_binaries(
            changed,
            self.storage,
            partial(read_entry_bytes, self.vault_dir),
            timeout=self.settings.request_timeout,
        )
        pending: list[PendingRecord] = []
        for entry, blob_id in zip(changed, blob_ids, strict=True):
            if blob_id is None:
                report.files_failed.append(entry.path)
            else:
                pending.append(PendingRecord(entry, blob_id=blob_id))

        result = await write_records("File", pending, self.records, cache)
        if result.written:
            self.state.save_cache(result.cache)
        report.files_uploaded = result.written
        return result.cache


def initialize(
    settings: Settings,
    records_transport: httpx.AsyncBaseTransport | None = None,
    storage_transport: httpx.AsyncBaseTransport | None = None,
) -> Publisher:
    """Validate *settings* and build a publisher. No network I/O happens here.

    Raises ConfigError naming every missing setting.
    """
    missing = settings.missing_settings()
    if missing:
        joined = ", ".join(f"NOTEPUB_{name}" for name in missing)
        raise ConfigError(f"Please set all settings. Missing: {joined}", missing=missing)
    _require_vault(settings)

    records = RecordStoreClient(
        settings.graphql_endpoint,
        settings.admin_secret,
        timeout=settings.request_timeout,
        transport=records_transport,
    )
    storage = BlobStoreClient(
        settings.resolved_storage_url,
        settings.admin_secret,
        timeout=settings.request_timeout,
        transport=storage_transport,
    )
    return Publisher(settings, records, storage, StateStore(settings.state_path))


def _require_vault(settings: Settings) -> None:
    if not settings.vault_dir.is_dir():
        raise ConfigError(f"Vault directory does not exist: {settings.vault_dir}")


async def collect_pending(settings: Settings) -> PendingChanges:
    """Report what the next publish would upload using only local state.

    Needs neither the remote endpoints nor the admin secret.
    """
    _require_vault(settings)
    scan = await asyncio.to_thread(scan_vault, settings.vault_dir, settings.publish_root)
    return pending_changes(scan, StateStore(settings.state_path).load_cache())
