"""Manifest entries produced by a publish cycle."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import PurePosixPath
from typing import Any, Callable, Dict, Iterable, Iterator, List, Set

HashProvider = Callable[[bytes], str]

LAST_MODIFIED_FORMAT = "%Y-%m-%d %H:%M:%S"


def compute_content_hash(data: bytes) -> str:
    """Compute the MD5 fingerprint the remote store indexes content by."""
    return hashlib.md5(data).hexdigest()


def format_last_modified(mtime: float) -> str:
    """Format a Unix timestamp as local ``YYYY-MM-DD HH:MM:SS``."""
    return datetime.fromtimestamp(mtime).strftime(LAST_MODIFIED_FORMAT)


def extension_of(path: str) -> str:
    """Return the extension without its dot ("" when there is none)."""
    return PurePosixPath(path).suffix.lstrip(".")


@dataclass(frozen=True)
class ManifestEntry:
    """One successfully synced path."""

    path: str
    content_hash: str  # "" for deletions
    extension: str
    last_modified: str
    deleted: bool = False

    @classmethod
    def for_deletion(cls, path: str) -> "ManifestEntry":
        return cls(
            path=path,
            content_hash="",
            extension=extension_of(path),
            last_modified="",
            deleted=True,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "md5": self.content_hash,
            "extension": self.extension,
            "lastModified": self.last_modified,
            "deleted": self.deleted,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ManifestEntry":
        return cls(
            path=data["path"],
            content_hash=data.get("md5", ""),
            extension=data.get("extension", ""),
            last_modified=data.get("lastModified", ""),
            deleted=bool(data.get("deleted", False)),
        )


@dataclass
class Manifest:
    """Entries submitted to the remote in a single rebuild call."""

    entries: List[ManifestEntry] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[ManifestEntry]:
        return iter(self.entries)

    def extend(self, entries: Iterable[ManifestEntry]) -> None:
        self.entries.extend(entries)

    @property
    def paths(self) -> List[str]:
        return [entry.path for entry in self.entries]

    def hashes(self) -> Set[str]:
        """Content hashes of the entries that were not deletions."""
        return {entry.content_hash for entry in self.entries if not entry.deleted}

    def to_list(self) -> List[Dict[str, Any]]:
        return [entry.to_dict() for entry in self.entries]


__all__ = [
    "HashProvider",
    "LAST_MODIFIED_FORMAT",
    "Manifest",
    "ManifestEntry",
    "compute_content_hash",
    "extension_of",
    "format_last_modified",
]
