"""Shared test fixtures for notepub."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

from notepub.config import Settings
from notepub.filesystem.state_store import StateStore
from notepub.services.publish_service import Publisher
from tests.test_services._remote_fakes import FakeBlobStore, FakeRecordStore

if TYPE_CHECKING:
    from pathlib import Path

PUBLISHED_NOTE = "---\npublish: true\n---\n# {title}\n\n{body}\n"
PRIVATE_NOTE = "---\npublish: false\n---\n# Private\n"


def write_note(vault: Path, rel_path: str, body: str = "", publish: bool = True) -> Path:
    """Write a markdown note with a ``publish`` front matter flag."""
    path = vault / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    if publish:
        title = path.stem
        path.write_text(PUBLISHED_NOTE.format(title=title, body=body), encoding="utf-8")
    else:
        path.write_text(PRIVATE_NOTE, encoding="utf-8")
    return path


def set_mtime(path: Path, millis: int) -> None:
    """Pin a file's modification time to an exact millisecond value."""
    os.utime(path, ns=(millis * 1_000_000, millis * 1_000_000))


@pytest.fixture
def vault_dir(tmp_path: Path) -> Path:
    """Create an empty vault directory."""
    vault = tmp_path / "vault"
    vault.mkdir()
    return vault


@pytest.fixture
def test_settings(vault_dir: Path, tmp_path: Path) -> Settings:
    """Settings with every remote setting filled in."""
    return Settings(
        vault_dir=vault_dir,
        state_file=tmp_path / "state.json",
        graphql_endpoint="https://hasura.test/v1/graphql",
        admin_secret="test-admin-secret",
        subdomain="testsub",
        region="eu-central-1",
    )


@pytest.fixture
def blob_store() -> FakeBlobStore:
    return FakeBlobStore()


@pytest.fixture
def record_store(blob_store: FakeBlobStore) -> FakeRecordStore:
    return FakeRecordStore(blob_store)


@pytest.fixture
def state_store(test_settings: Settings) -> StateStore:
    return StateStore(test_settings.state_path)


@pytest.fixture
def publisher(
    test_settings: Settings,
    record_store: FakeRecordStore,
    blob_store: FakeBlobStore,
    state_store: StateStore,
) -> Publisher:
    """A publisher wired to the in-memory remote stores."""
    return Publisher(test_settings, record_store, blob_store, state_store)  # type: ignore[arg-type]
