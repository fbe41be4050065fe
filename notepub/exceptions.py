"""Publisher exception types.

Convention:
- Per-item errors (``UnknownContentTypeError``, ``UploadRejectedError``) are
  caught at the fan-out seam, logged, and the item is left for the next run.
- Batch errors (``RemoteStoreError``) propagate to the caller of ``publish``;
  the phase's cache changes are skipped so the pass is safely retryable.
- ``ConfigError`` is raised before any network call is attempted.
- ``LocalFileError`` wraps ``OSError`` from state file writes and directory copies.
"""

from __future__ import annotations


class PublishError(Exception):
    """Base exception for publishing operations."""


class ConfigError(PublishError):
    """Required settings are missing or invalid."""

    def __init__(self, message: str, missing: list[str] | None = None) -> None:
        super().__init__(message)
        self.missing = missing or []


class RemoteStoreError(PublishError):
    """A query or mutation against the remote record or blob store failed."""


class UnknownContentTypeError(PublishError):
    """No content type could be resolved for a binary entry."""


class UploadRejectedError(PublishError):
    """The blob store rejected an upload."""


class LocalFileError(PublishError):
    """Reading or writing a local file or directory failed."""
