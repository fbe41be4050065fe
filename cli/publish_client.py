"""CLI entry point for publishing a notes vault."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from notepub.config import Settings
from notepub.exceptions import ConfigError, PublishError
from notepub.filesystem.state_store import StateStore
from notepub.services.deploy_service import copy_public_dir, trigger_deploy
from notepub.services.publish_service import collect_pending, initialize

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)


def _configure_logging(debug: bool) -> None:
    """Configure CLI logging."""
    level = logging.DEBUG if debug else logging.INFO
    fmt = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
    logging.basicConfig(
        level=level,
        format=fmt,
        stream=sys.stderr,
        force=True,
    )
    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.INFO if debug else logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="notepub",
        description="Publish notes and attachments from a vault to a remote store",
    )
    parser.add_argument("--dir", "-d", help="Vault directory (default: NOTEPUB_VAULT_DIR or .)")
    parser.add_argument("--state-file", help="State file holding the sync cache")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("publish", help="Upload changed notes and prune the remote store")
    subparsers.add_parser("status", help="Show what the next publish would upload")
    subparsers.add_parser("deploy", help="POST to the configured deploy hook")
    subparsers.add_parser("copy", help="Copy the public directory to the copy target")
    subparsers.add_parser("clear-cache", help="Forget synced paths; next publish uploads all")
    return parser


def load_settings(args: argparse.Namespace) -> Settings:
    """Load settings from the environment, overridden by command-line flags."""
    overrides: dict[str, object] = {}
    if args.dir:
        overrides["vault_dir"] = Path(args.dir).resolve()
    if args.state_file:
        overrides["state_file"] = Path(args.state_file).resolve()
    if args.debug:
        overrides["debug"] = True
    return Settings(**overrides)  # type: ignore[arg-type]


async def _publish(settings: Settings) -> None:
    async with initialize(settings) as publisher:
        report = await publisher.publish()
    print(f"Published. {report.summary}.")
    if report.files_failed:
        print(f"  Skipped {len(report.files_failed)} file(s); see log for details.")


async def _status(settings: Settings) -> None:
    pending = await collect_pending(settings)
    print("Publish Status:")
    print(f"  Notes to upload: {len(pending.notes)}")
    print(f"  Files to upload: {len(pending.files)}")
    print(f"  Up to date:      {pending.up_to_date}")
    for path in pending.notes + pending.files:
        print(f"    + {path}")


async def _deploy(settings: Settings) -> None:
    await trigger_deploy(settings.deploy_hook)
    print("Deployed.")


async def _copy(settings: Settings) -> None:
    target = await copy_public_dir(settings.vault_dir, settings.public_dir, settings.copy_target)
    print(f"Copied {settings.public_dir} to {target}.")


def _clear_cache(settings: Settings) -> None:
    StateStore(settings.state_path).clear_cache()
    print("All caches cleared.")


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return

    settings = load_settings(args)
    _configure_logging(settings.debug)

    try:
        if args.command == "publish":
            asyncio.run(_publish(settings))
        elif args.command == "status":
            asyncio.run(_status(settings))
        elif args.command == "deploy":
            asyncio.run(_deploy(settings))
        elif args.command == "copy":
            asyncio.run(_copy(settings))
        elif args.command == "clear-cache":
            _clear_cache(settings)
    except ConfigError as exc:
        print(f"Error: {exc}")
        sys.exit(1)
    except PublishError as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {args.command} failed: {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
