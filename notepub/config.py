"""Publisher configuration loaded from environment variables."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

STATE_FILE = ".notepub.json"


class Settings(BaseSettings):
    """notepub settings."""

    model_config = SettingsConfigDict(
        env_prefix="NOTEPUB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    debug: bool = False

    # Vault
    vault_dir: Path = Path(".")
    publish_root: str = ""
    public_dir: str = "Public"
    copy_target: Path | None = None
    state_file: Path | None = None

    # Record store (GraphQL)
    graphql_endpoint: str = ""
    admin_secret: str = ""

    # Blob store
    subdomain: str = ""
    region: str = ""
    storage_url: str = ""

    # Deploy
    deploy_hook: str = ""

    # Per network operation; None disables the timeout entirely
    request_timeout: float | None = Field(default=None, gt=0)

    @property
    def state_path(self) -> Path:
        """Location of the persisted state file (sync cache lives here)."""
        if self.state_file is not None:
            return self.state_file
        return self.vault_dir / STATE_FILE

    @property
    def resolved_storage_url(self) -> str:
        """Blob store base URL, derived from subdomain/region unless given explicitly."""
        if self.storage_url:
            return self.storage_url.rstrip("/")
        if self.subdomain and self.region:
            return f"https://{self.subdomain}.storage.{self.region}.nhost.run/v1"
        return ""

    def missing_settings(self) -> list[str]:
        """Return the names of unset settings required for publishing."""
        missing: list[str] = []
        if not self.graphql_endpoint:
            missing.append("GRAPHQL_ENDPOINT")
        if not self.admin_secret:
            missing.append("ADMIN_SECRET")
        if not self.resolved_storage_url:
            if not self.subdomain:
                missing.append("SUBDOMAIN")
            if not self.region:
                missing.append("REGION")
        return missing
