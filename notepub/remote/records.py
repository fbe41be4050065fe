"""Remote record representation and the GraphQL documents that move it."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

NOTES_CONSTRAINT = "notes_pkey"
UPSERT_UPDATE_COLUMNS: tuple[str, ...] = ("content", "fileId", "size", "updatedAt")

INSERT_NOTES_MUTATION = """
mutation InsertNotes($objects: [notes_insert_input!]!) {
  insert_notes(
    objects: $objects
    on_conflict: { constraint: %s, update_columns: [%s] }
  ) {
    affected_rows
  }
}
""" % (NOTES_CONSTRAINT, ", ".join(UPSERT_UPDATE_COLUMNS))

NOTE_PATHS_QUERY = """
query Notes {
  notes {
    path
  }
}
"""

DELETE_NOTES_MUTATION = """
mutation DeleteNotes($paths: [String!]) {
  delete_notes(where: { path: { _in: $paths } }) {
    affected_rows
  }
}
"""

FILE_REFERENCES_QUERY = """
query Files {
  notes {
    fileId
  }
  files {
    id
  }
}
"""


@dataclass(frozen=True)
class RemoteRecord:
    """A row of the remote ``notes`` table; keyed by ``path``.

    Exactly one of ``content`` (text entries) or ``file_id`` (binary entries)
    is set.
    """

    basename: str
    extension: str
    name: str
    path: str
    size: int
    created_at: str
    updated_at: str
    content: str | None = None
    file_id: str | None = None

    def __post_init__(self) -> None:
        if (self.content is None) == (self.file_id is None):
            msg = f"Record {self.path} must carry exactly one of content or file_id"
            raise ValueError(msg)

    def to_graphql(self) -> dict[str, Any]:
        """Return the ``notes_insert_input`` object for this record."""
        obj: dict[str, Any] = {
            "basename": self.basename,
            "extension": self.extension,
            "name": self.name,
            "path": self.path,
            "size": self.size,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        if self.content is not None:
            obj["content"] = self.content
        else:
            obj["fileId"] = self.file_id
        return obj


@dataclass(frozen=True)
class BlobReferences:
    """Blob ids referenced by remaining records, and every blob id in the store."""

    referenced: frozenset[str]
    all_blob_ids: tuple[str, ...]

    @property
    def orphans(self) -> list[str]:
        return [blob_id for blob_id in self.all_blob_ids if blob_id not in self.referenced]
