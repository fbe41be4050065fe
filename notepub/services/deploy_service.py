"""One-shot glue commands: deploy hook trigger and public directory copy."""

from __future__ import annotations

import asyncio
import logging
import shutil
from typing import TYPE_CHECKING, Any

import httpx

from notepub.exceptions import ConfigError, LocalFileError, RemoteStoreError
from notepub.filesystem.vault import resolve_entry_path

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


async def trigger_deploy(
    hook_url: str,
    timeout: float | None = 30.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Any:
    """POST to the deploy hook and return its JSON response (or None if not JSON)."""
    if not hook_url:
        raise ConfigError("Please set NOTEPUB_DEPLOY_HOOK", missing=["DEPLOY_HOOK"])

    async with httpx.AsyncClient(timeout=timeout, transport=transport) as http_client:
        try:
            resp = await http_client.post(hook_url)
        except httpx.HTTPError as exc:
            raise RemoteStoreError(f"Deploy hook request failed: {exc}") from exc
    if resp.status_code >= 300:
        raise RemoteStoreError(f"Deploy hook returned status {resp.status_code}")

    try:
        body = resp.json()
    except ValueError:
        body = None
    logger.info("Deploy hook response: %s", body if body is not None else resp.text[:200])
    return body


def _copy_tree(source: Path, target: Path) -> None:
    shutil.copytree(source, target, dirs_exist_ok=True)


async def copy_public_dir(vault_dir: Path, public_dir: str, target: Path | None) -> Path:
    """Copy the vault's public directory recursively into *target*.

    Existing files in *target* are overwritten; nothing is deleted there.
    Raises ConfigError for a missing target or a public directory outside the
    vault, and LocalFileError if the copy itself fails.
    """
    if target is None:
        raise ConfigError("Please set NOTEPUB_COPY_TARGET", missing=["COPY_TARGET"])
    try:
        source = resolve_entry_path(vault_dir, public_dir)
    except ValueError as exc:
        raise ConfigError(f"Public directory must be inside the vault: {public_dir}") from exc
    if not source.is_dir():
        raise ConfigError(f"Public directory does not exist: {source}")

    logger.info("Publishing %s to %s", source, target)
    try:
        await asyncio.to_thread(_copy_tree, source, target)
    except OSError as exc:
        raise LocalFileError(f"Could not copy {source} to {target}: {exc}") from exc
    return target
