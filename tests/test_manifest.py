"""Tests for manifest entries and vault reads."""

from __future__ import annotations

import asyncio
from datetime import datetime
from pathlib import Path

import pytest

from fakes import write_file

from jade_publisher.sync import FileMissingError, Manifest, ManifestEntry, VaultSource
from jade_publisher.sync.manifest import compute_content_hash, extension_of, format_last_modified


def test_content_hash_is_md5_hex():
    assert compute_content_hash(b"") == "d41d8cd98f00b204e9800998ecf8427e"
    assert compute_content_hash(b"a") == compute_content_hash(b"a")


def test_extension_and_timestamp_format():
    assert extension_of("notes/a.md") == "md"
    assert extension_of("archive.tar.gz") == "gz"
    assert extension_of("Makefile") == ""

    stamp = datetime(2024, 5, 6, 7, 8, 9).timestamp()
    assert format_last_modified(stamp) == "2024-05-06 07:08:09"


def test_deletion_entry_and_wire_shape():
    entry = ManifestEntry.for_deletion("old/n.md")

    assert entry.to_dict() == {
        "path": "old/n.md",
        "md5": "",
        "extension": "md",
        "lastModified": "",
        "deleted": True,
    }
    assert ManifestEntry.from_dict(entry.to_dict()) == entry


def test_manifest_hashes_ignore_deletions():
    manifest = Manifest()
    manifest.extend(
        [
            ManifestEntry("a.md", "h1", "md", "2024-01-01 00:00:00"),
            ManifestEntry("b.md", "h1", "md", "2024-01-01 00:00:00"),
            ManifestEntry.for_deletion("c.md"),
        ]
    )

    assert manifest.hashes() == {"h1"}
    assert manifest.paths == ["a.md", "b.md", "c.md"]


def test_vault_source_lists_and_excludes(tmp_path: Path):
    write_file(tmp_path, "a.md")
    write_file(tmp_path, "sub/b.png")
    write_file(tmp_path, ".jade/data.json")
    write_file(tmp_path, "sub/.DS_Store")

    vault = VaultSource(tmp_path, exclude_patterns=[".jade/*", ".DS_Store"])

    assert vault.list_files() == ["a.md", "sub/b.png"]


def test_vault_source_reads_bytes_and_metadata(tmp_path: Path):
    path = write_file(tmp_path, "sub/b.png", b"\x89PNG")
    vault = VaultSource(tmp_path)

    vault_file = asyncio.run(vault.read("sub/b.png"))

    assert vault_file.data == b"\x89PNG"
    assert vault_file.extension == "png"
    assert vault_file.mtime == path.stat().st_mtime

    with pytest.raises(FileMissingError):
        asyncio.run(vault.read("missing.md"))
