"""Binary upload pipeline: concurrent per-entry uploads to the blob store."""

from __future__ import annotations

import logging
import mimetypes
from typing import TYPE_CHECKING, Protocol

from notepub.exceptions import UnknownContentTypeError
from notepub.services.fanout import gather_indexed

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from notepub.filesystem.vault import LocalEntry

logger = logging.getLogger(__name__)


class BlobUploader(Protocol):
    """Anything that can store bytes and hand back a blob id."""

    async def upload(self, name: str, data: bytes, content_type: str) -> str: ...


def resolve_content_type(extension: str) -> str:
    """Resolve a MIME type from a file extension (without the dot).

    Raises UnknownContentTypeError when the extension is unknown.
    """
    content_type, _ = mimetypes.guess_type(f"file.{extension.lower()}", strict=False)
    if not extension or content_type is None:
        raise UnknownContentTypeError(f"Could not determine content type for .{extension}")
    return content_type


async def upload_binaries(
    entries: Sequence[LocalEntry],
    storage: BlobUploader,
    read_bytes: Callable[[LocalEntry], Awaitable[bytes]],
    timeout: float | None = None,
) -> list[str | None]:
    """Upload every entry concurrently.

    Returns a list aligned with *entries*: the blob id for each successful
    upload, ``None`` for an entry that failed. Failures are logged and never
    affect the other entries.
    """
    if not entries:
        logger.info("File: No files to upload.")
        return []

    async def upload_one(entry: LocalEntry) -> str:
        content_type = resolve_content_type(entry.extension)
        data = await read_bytes(entry)
        return await storage.upload(entry.name, data, content_type)

    logger.info("File: Uploading %d files.", len(entries))
    outcomes = await gather_indexed(upload_one, entries, timeout=timeout)

    blob_ids: list[str | None] = []
    for entry, outcome in zip(entries, outcomes, strict=True):
        if outcome.ok:
            blob_ids.append(outcome.value)
            continue
        if isinstance(outcome.error, UnknownContentTypeError):
            logger.warning("Skipping %s: %s", entry.path, outcome.error)
        else:
            logger.error("Could not upload %s: %r", entry.path, outcome.error)
        blob_ids.append(None)

    uploaded = sum(1 for blob_id in blob_ids if blob_id is not None)
    logger.info("File: Uploaded %d files.", uploaded)
    return blob_ids
