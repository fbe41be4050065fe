"""Tests for vault enumeration."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import patch

import pytest

from notepub.filesystem.vault import (
    EntryKind,
    is_under_root,
    read_entry_bytes,
    resolve_entry_path,
    scan_vault,
)
from tests.conftest import set_mtime, write_note

if TYPE_CHECKING:
    from pathlib import Path


class TestScanVault:
    def test_only_published_notes_are_selected(self, vault_dir: Path) -> None:
        write_note(vault_dir, "public.md")
        write_note(vault_dir, "private.md", publish=False)
        (vault_dir / "bare.md").write_text("# No front matter\n")

        scan = scan_vault(vault_dir)

        assert [e.path for e in scan.notes] == ["public.md"]
        assert scan.notes[0].kind is EntryKind.TEXT
        assert scan.notes[0].content is not None

    def test_entry_metadata(self, vault_dir: Path) -> None:
        path = write_note(vault_dir, "dir/My Note.md", body="body")
        set_mtime(path, 1_700_000_000_123)

        entry = scan_vault(vault_dir).notes[0]

        assert entry.path == "dir/My Note.md"
        assert entry.name == "My Note.md"
        assert entry.basename == "My Note"
        assert entry.extension == "md"
        assert entry.size == path.stat().st_size
        assert entry.modified_at == 1_700_000_000_123

    def test_hidden_files_and_directories_are_skipped(self, vault_dir: Path) -> None:
        write_note(vault_dir, ".obsidian/workspace.md")
        write_note(vault_dir, ".hidden.md")
        write_note(vault_dir, "shown.md")

        scan = scan_vault(vault_dir)

        assert [e.path for e in scan.notes] == ["shown.md"]
        assert ".hidden.md" not in scan.file_by_name

    def test_publish_root_limits_notes(self, vault_dir: Path) -> None:
        write_note(vault_dir, "Public/in.md")
        write_note(vault_dir, "Publicity/out.md")
        write_note(vault_dir, "Drafts/out.md")

        scan = scan_vault(vault_dir, publish_root="/Public/")

        assert [e.path for e in scan.notes] == ["Public/in.md"]

    def test_embedded_attachments_are_resolved_by_name(self, vault_dir: Path) -> None:
        write_note(vault_dir, "Public/post.md", body="![[diagram.png|400]]\n![[clip.mp4]]")
        (vault_dir / "assets").mkdir()
        (vault_dir / "assets" / "diagram.png").write_bytes(b"png")
        (vault_dir / "assets" / "clip.mp4").write_bytes(b"mp4")
        (vault_dir / "assets" / "unrelated.png").write_bytes(b"png")

        scan = scan_vault(vault_dir, publish_root="Public")

        assert [e.path for e in scan.attachments] == ["assets/diagram.png", "assets/clip.mp4"]
        assert all(e.kind is EntryKind.BINARY and e.content is None for e in scan.attachments)
        assert scan.local_paths == {"Public/post.md", "assets/diagram.png", "assets/clip.mp4"}

    def test_attachment_shared_by_notes_is_listed_once(self, vault_dir: Path) -> None:
        write_note(vault_dir, "a.md", body="![[pic.png]]")
        write_note(vault_dir, "b.md", body="![[pic.png]]")
        (vault_dir / "pic.png").write_bytes(b"png")

        scan = scan_vault(vault_dir)

        assert [e.path for e in scan.attachments] == ["pic.png"]

    def test_attachments_of_private_notes_are_ignored(self, vault_dir: Path) -> None:
        (vault_dir / "private.md").write_text("---\npublish: false\n---\n![[pic.png]]\n")
        (vault_dir / "pic.png").write_bytes(b"png")

        assert scan_vault(vault_dir).attachments == []

    def test_missing_attachment_is_skipped(self, vault_dir: Path) -> None:
        write_note(vault_dir, "a.md", body="![[missing.png]]")
        assert scan_vault(vault_dir).attachments == []

    def test_embed_with_folder_path_falls_back_to_name(self, vault_dir: Path) -> None:
        write_note(vault_dir, "a.md", body="![[img/pic.png]]")
        (vault_dir / "img").mkdir()
        (vault_dir / "img" / "pic.png").write_bytes(b"png")

        assert [e.path for e in scan_vault(vault_dir).attachments] == ["img/pic.png"]

    def test_yaml_error_is_caught_and_skipped(self, vault_dir: Path) -> None:
        (vault_dir / "bad.md").write_text("---\n: invalid yaml [\n---\n# Hello")
        write_note(vault_dir, "good.md")

        scan = scan_vault(vault_dir)

        assert [e.path for e in scan.notes] == ["good.md"]

    def test_unicode_error_is_caught_and_skipped(self, vault_dir: Path) -> None:
        (vault_dir / "binary.md").write_bytes(b"\xff\xfe\x00bad")
        write_note(vault_dir, "good.md")

        assert [e.path for e in scan_vault(vault_dir).notes] == ["good.md"]

    def test_invalid_timestamp_in_front_matter_is_skipped(self, vault_dir: Path) -> None:
        (vault_dir / "weird.md").write_text("---\npublish: true\ndate: 2024-13-45\n---\n# Hi")
        write_note(vault_dir, "good.md")

        assert [e.path for e in scan_vault(vault_dir).notes] == ["good.md"]

    def test_programming_error_propagates(self, vault_dir: Path) -> None:
        write_note(vault_dir, "a.md")
        with (
            patch("notepub.filesystem.vault.is_publishable", side_effect=AttributeError("bug")),
            pytest.raises(AttributeError, match="bug"),
        ):
            scan_vault(vault_dir)


class TestIsUnderRoot:
    def test_empty_root_matches_everything(self) -> None:
        assert is_under_root("any/where.md", "")

    def test_prefix_must_end_at_separator(self) -> None:
        assert is_under_root("Public/a.md", "Public")
        assert not is_under_root("PublicX/a.md", "Public")


class TestReadEntryBytes:
    async def test_reads_bytes(self, vault_dir: Path) -> None:
        (vault_dir / "pic.png").write_bytes(b"\x89PNG")
        entry = scan_vault(vault_dir).file_by_name["pic.png"]
        assert await read_entry_bytes(vault_dir, entry) == b"\x89PNG"

    def test_path_traversal_is_rejected(self, vault_dir: Path) -> None:
        with pytest.raises(ValueError, match="Path traversal"):
            resolve_entry_path(vault_dir, "../outside.png")
