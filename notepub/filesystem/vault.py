"""Vault scanner: enumerates publishable notes and the attachments they embed."""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

import yaml

from notepub.filesystem.frontmatter import find_embedded_attachments, is_publishable
from notepub.services.datetime_service import ns_to_millis, to_millis

logger = logging.getLogger(__name__)

NOTE_EXTENSION = "md"


class EntryKind(StrEnum):
    """Kind of local entry; text entries carry their content inline."""

    TEXT = "text"
    BINARY = "binary"


@dataclass(frozen=True)
class LocalEntry:
    """One local file that is a candidate for publication."""

    path: str
    name: str
    basename: str
    extension: str
    size: int
    created_at: int
    modified_at: int
    kind: EntryKind
    content: str | None = field(default=None, repr=False)

    def with_content(self, content: str) -> LocalEntry:
        """Return a text entry carrying *content*."""
        return LocalEntry(
            path=self.path,
            name=self.name,
            basename=self.basename,
            extension=self.extension,
            size=self.size,
            created_at=self.created_at,
            modified_at=self.modified_at,
            kind=EntryKind.TEXT,
            content=content,
        )


@dataclass
class VaultScan:
    """Result of one enumeration pass over the vault."""

    notes: list[LocalEntry] = field(default_factory=list)
    attachments: list[LocalEntry] = field(default_factory=list)
    file_by_name: dict[str, LocalEntry] = field(default_factory=dict)

    @property
    def local_paths(self) -> set[str]:
        """Paths of every entry that should exist remotely after this run."""
        return {e.path for e in self.notes} | {e.path for e in self.attachments}


def _normalize_root(publish_root: str) -> str:
    return publish_root.strip().strip("/")


def is_under_root(rel_path: str, publish_root: str) -> bool:
    """Return True if *rel_path* lies inside the publish root subtree."""
    root = _normalize_root(publish_root)
    if not root:
        return True
    return rel_path == root or rel_path.startswith(root + "/")


def entry_from_stat(rel_path: str, stat: os.stat_result) -> LocalEntry:
    """Build a content-less entry from a vault-relative path and its stat result."""
    name = rel_path.rsplit("/", maxsplit=1)[-1]
    basename, dot, extension = name.rpartition(".")
    if not dot:
        basename, extension = name, ""
    created = getattr(stat, "st_birthtime", None)
    if created is None:
        created = stat.st_ctime
    kind = EntryKind.TEXT if extension.lower() == NOTE_EXTENSION else EntryKind.BINARY
    return LocalEntry(
        path=rel_path,
        name=name,
        basename=basename,
        extension=extension,
        size=stat.st_size,
        created_at=to_millis(created),
        modified_at=ns_to_millis(stat.st_mtime_ns),
        kind=kind,
    )


def discover_files(vault_dir: Path) -> list[LocalEntry]:
    """Walk the vault and return an entry for every non-hidden file."""
    entries: list[LocalEntry] = []
    for root, dirs, files in os.walk(vault_dir):
        dirs[:] = sorted(d for d in dirs if not d.startswith("."))
        for filename in sorted(files):
            if filename.startswith("."):
                continue
            full = Path(root) / filename
            rel = full.relative_to(vault_dir).as_posix()
            try:
                stat = full.stat()
            except OSError:
                logger.warning("Skipping %s: cannot stat file", rel)
                continue
            entries.append(entry_from_stat(rel, stat))
    return entries


def _resolve_attachment(name: str, file_by_name: dict[str, LocalEntry]) -> LocalEntry | None:
    entry = file_by_name.get(name)
    if entry is None and "/" in name:
        entry = file_by_name.get(name.rsplit("/", maxsplit=1)[-1])
    if entry is None or entry.kind is not EntryKind.BINARY:
        return None
    return entry


def scan_vault(vault_dir: Path, publish_root: str = "") -> VaultScan:
    """Enumerate publishable notes under *publish_root* and their attachments.

    A note is publishable when its front matter sets ``publish: true``.
    Attachments are the binary files those notes embed, looked up by file
    name across the whole vault; a later file with the same name wins.
    """
    scan = VaultScan()
    files = discover_files(vault_dir)
    for entry in files:
        scan.file_by_name[entry.name] = entry

    attachment_names: list[str] = []
    for entry in files:
        if entry.kind is not EntryKind.TEXT or not is_under_root(entry.path, publish_root):
            continue
        try:
            raw_content = (vault_dir / entry.path).read_text(encoding="utf-8")
            publishable = is_publishable(raw_content)
        except (OSError, ValueError, yaml.YAMLError):
            logger.exception("Skipping note %s due to read or front matter error", entry.path)
            continue
        if not publishable:
            continue
        scan.notes.append(entry.with_content(raw_content))
        attachment_names.extend(find_embedded_attachments(raw_content))

    seen: set[str] = set()
    for name in attachment_names:
        attachment = _resolve_attachment(name, scan.file_by_name)
        if attachment is None:
            logger.debug("Embedded attachment %s not found in vault", name)
            continue
        if attachment.path in seen:
            continue
        seen.add(attachment.path)
        scan.attachments.append(attachment)

    logger.info(
        "Scanned vault: %d file(s), %d publishable note(s), %d attachment(s)",
        len(files),
        len(scan.notes),
        len(scan.attachments),
    )
    return scan


def resolve_entry_path(vault_dir: Path, rel_path: str) -> Path:
    """Resolve a vault-relative path, refusing paths that escape the vault.

    Raises ValueError if the resolved path is outside *vault_dir*.
    """
    full_path = (vault_dir / rel_path).resolve()
    if not full_path.is_relative_to(vault_dir.resolve()):
        raise ValueError(f"Path traversal detected: {rel_path}")
    return full_path


async def read_entry_bytes(vault_dir: Path, entry: LocalEntry) -> bytes:
    """Read the raw bytes of *entry* without blocking the event loop."""
    full_path = resolve_entry_path(vault_dir, entry.path)
    return await asyncio.to_thread(full_path.read_bytes)
