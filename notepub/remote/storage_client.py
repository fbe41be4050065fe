"""HTTP client for the remote blob store (Nhost storage)."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from notepub.exceptions import RemoteStoreError, UploadRejectedError
from notepub.remote.graphql_client import ADMIN_SECRET_HEADER

logger = logging.getLogger(__name__)

FILE_NAME_HEADER = "x-nhost-file-name"


def _extract_file_id(body: Any) -> str | None:
    """Pull the new blob id out of an upload response.

    Accepts both the single-file shape (``{"id": ...}``) and the batch shape
    (``{"processedFiles": [{"id": ...}]}``).
    """
    if not isinstance(body, dict):
        return None
    processed = body.get("processedFiles")
    if isinstance(processed, list) and processed and isinstance(processed[0], dict):
        body = processed[0]
    file_id = body.get("id")
    return str(file_id) if file_id else None


class BlobStoreClient:
    """Uploads and deletes blobs by id."""

    def __init__(
        self,
        base_url: str,
        admin_secret: str,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={ADMIN_SECRET_HEADER: admin_secret},
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> BlobStoreClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    async def upload(self, name: str, data: bytes, content_type: str) -> str:
        """Upload *data* as a multipart form under *name*. Returns the blob id.

        Raises UploadRejectedError if the store refuses the file or answers
        without an id.
        """
        try:
            resp = await self.client.post(
                "/files",
                files={"file": (name, data, content_type)},
                headers={FILE_NAME_HEADER: name},
            )
        except httpx.HTTPError as exc:
            raise UploadRejectedError(f"Upload of {name} failed: {exc}") from exc
        if resp.status_code >= 300:
            msg = f"Upload of {name} rejected with status {resp.status_code}: {resp.text[:200]}"
            raise UploadRejectedError(msg)
        try:
            body = resp.json()
        except ValueError as exc:
            raise UploadRejectedError(f"Upload of {name} returned invalid JSON") from exc
        file_id = _extract_file_id(body)
        if file_id is None:
            raise UploadRejectedError(f"Upload of {name} returned no file id")
        return file_id

    async def delete(self, blob_id: str) -> bool:
        """Delete a blob. Returns False if it was already gone."""
        try:
            resp = await self.client.delete(f"/files/{blob_id}")
        except httpx.HTTPError as exc:
            raise RemoteStoreError(f"Deleting blob {blob_id} failed: {exc}") from exc
        if resp.status_code == 404:
            logger.debug("Blob %s already removed", blob_id)
            return False
        if resp.status_code >= 300:
            msg = f"Deleting blob {blob_id} failed with status {resp.status_code}"
            raise RemoteStoreError(msg)
        return True
