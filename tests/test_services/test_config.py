"""Tests for publisher configuration."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from notepub.config import STATE_FILE, Settings


class TestSettings:
    def test_default_settings(self) -> None:
        s = Settings(_env_file=None)
        assert s.debug is False
        assert s.vault_dir == Path(".")
        assert s.public_dir == "Public"
        assert s.request_timeout is None

    def test_settings_from_fixture(self, test_settings: Settings) -> None:
        assert test_settings.admin_secret == "test-admin-secret"
        assert test_settings.vault_dir.exists()

    def test_reads_prefixed_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("NOTEPUB_GRAPHQL_ENDPOINT", "https://env.test/v1/graphql")
        monkeypatch.setenv("NOTEPUB_REQUEST_TIMEOUT", "12.5")
        s = Settings(_env_file=None)
        assert s.graphql_endpoint == "https://env.test/v1/graphql"
        assert s.request_timeout == 12.5

    def test_rejects_non_positive_timeout(self) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, request_timeout=0)


class TestDerivedSettings:
    def test_state_path_defaults_into_vault(self, tmp_path: Path) -> None:
        s = Settings(_env_file=None, vault_dir=tmp_path)
        assert s.state_path == tmp_path / STATE_FILE

    def test_state_path_override(self, tmp_path: Path) -> None:
        s = Settings(_env_file=None, vault_dir=tmp_path, state_file=tmp_path / "other.json")
        assert s.state_path == tmp_path / "other.json"

    def test_storage_url_derived_from_subdomain_and_region(self) -> None:
        s = Settings(_env_file=None, subdomain="abc", region="eu-central-1")
        assert s.resolved_storage_url == "https://abc.storage.eu-central-1.nhost.run/v1"

    def test_explicit_storage_url_wins(self) -> None:
        s = Settings(
            _env_file=None,
            subdomain="abc",
            region="eu-central-1",
            storage_url="http://localhost:1337/v1/",
        )
        assert s.resolved_storage_url == "http://localhost:1337/v1"


class TestMissingSettings:
    def test_all_missing(self) -> None:
        s = Settings(_env_file=None)
        assert s.missing_settings() == ["GRAPHQL_ENDPOINT", "ADMIN_SECRET", "SUBDOMAIN", "REGION"]

    def test_storage_url_satisfies_subdomain_and_region(self) -> None:
        s = Settings(
            _env_file=None,
            graphql_endpoint="https://h.test/v1/graphql",
            admin_secret="s",
            storage_url="https://storage.test/v1",
        )
        assert s.missing_settings() == []

    def test_fixture_is_complete(self, test_settings: Settings) -> None:
        assert test_settings.missing_settings() == []
