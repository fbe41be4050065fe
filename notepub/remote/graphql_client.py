"""GraphQL client for the remote record store (Hasura ``notes`` table)."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from notepub.exceptions import RemoteStoreError
from notepub.remote.records import (
    DELETE_NOTES_MUTATION,
    FILE_REFERENCES_QUERY,
    INSERT_NOTES_MUTATION,
    NOTE_PATHS_QUERY,
    BlobReferences,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from notepub.remote.records import RemoteRecord

logger = logging.getLogger(__name__)

ADMIN_SECRET_HEADER = "x-hasura-admin-secret"


class RecordStoreClient:
    """Client for querying and mutating remote note records."""

    def __init__(
        self,
        endpoint: str,
        admin_secret: str,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.client = httpx.AsyncClient(
            headers={ADMIN_SECRET_HEADER: admin_secret},
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> RecordStoreClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    async def request(self, document: str, variables: dict[str, Any] | None = None) -> Any:
        """Execute a GraphQL document and return its ``data`` payload.

        Transport failures, non-2xx responses and GraphQL ``errors`` all raise
        RemoteStoreError.
        """
        payload: dict[str, Any] = {"query": document}
        if variables is not None:
            payload["variables"] = variables
        try:
            resp = await self.client.post(self.endpoint, json=payload)
            resp.raise_for_status()
            body = resp.json()
        except httpx.HTTPStatusError as exc:
            msg = f"GraphQL request failed with status {exc.response.status_code}"
            raise RemoteStoreError(msg) from exc
        except httpx.HTTPError as exc:
            msg = f"GraphQL request failed: {exc}"
            raise RemoteStoreError(msg) from exc
        except ValueError as exc:
            raise RemoteStoreError("GraphQL response is not valid JSON") from exc

        if not isinstance(body, dict):
            raise RemoteStoreError("GraphQL response is not an object")
        errors = body.get("errors")
        if errors:
            messages = "; ".join(str(e.get("message", e)) for e in errors if isinstance(e, dict))
            raise RemoteStoreError(f"GraphQL errors: {messages or errors}")
        data = body.get("data")
        if not isinstance(data, dict):
            raise RemoteStoreError("GraphQL response is missing data")
        return data

    async def fetch_record_paths(self) -> list[str]:
        """Return the path of every remote record."""
        data = await self.request(NOTE_PATHS_QUERY)
        return [row["path"] for row in data.get("notes", [])]

    async def fetch_blob_references(self) -> BlobReferences:
        """Return blob ids referenced by records and every blob id in storage."""
        data = await self.request(FILE_REFERENCES_QUERY)
        referenced = frozenset(row["fileId"] for row in data.get("notes", []) if row.get("fileId"))
        all_ids = tuple(row["id"] for row in data.get("files", []))
        logger.info("Files: notes [%d], files [%d]", len(referenced), len(all_ids))
        return BlobReferences(referenced=referenced, all_blob_ids=all_ids)

    async def upsert_records(self, records: Sequence[RemoteRecord]) -> int:
        """Insert-or-update records keyed by path. Returns affected rows."""
        data = await self.request(
            INSERT_NOTES_MUTATION, {"objects": [record.to_graphql() for record in records]}
        )
        affected: int = data["insert_notes"]["affected_rows"]
        return affected

    async def delete_records(self, paths: Sequence[str]) -> int:
        """Delete records whose path is in *paths*. Returns affected rows."""
        data = await self.request(DELETE_NOTES_MUTATION, {"paths": list(paths)})
        affected: int = data["delete_notes"]["affected_rows"]
        return affected
