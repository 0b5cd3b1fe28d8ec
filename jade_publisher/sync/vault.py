"""Read access to the local vault being published."""

from __future__ import annotations

import asyncio
import fnmatch
import logging
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Iterator, List, Optional, Sequence

from .manifest import extension_of

logger = logging.getLogger("jade_publisher.sync.vault")


class FileMissingError(FileNotFoundError):
    """A tracked path no longer exists in the vault."""


@dataclass(frozen=True)
class VaultFile:
    """Bytes and metadata of one vault file, read at sync time."""

    path: str
    data: bytes
    extension: str
    mtime: float


class VaultSource:
    """Lists and reads vault files by vault-relative POSIX path."""

    def __init__(
        self,
        vault_dir: Path,
        exclude_patterns: Optional[Sequence[str]] = None,
    ):
        self.vault_dir = vault_dir
        self.exclude_patterns = list(exclude_patterns) if exclude_patterns else []

    def list_files(self) -> List[str]:
        """Return every publishable file, sorted by path."""
        return sorted(self._iter_files())

    def _iter_files(self) -> Iterator[str]:
        if not self.vault_dir.is_dir():
            return
        for file_path in self.vault_dir.rglob("*"):
            if not file_path.is_file():
                continue
            rel_path = file_path.relative_to(self.vault_dir).as_posix()
            if self._is_excluded(rel_path):
                continue
            yield rel_path

    def _is_excluded(self, rel_path: str) -> bool:
        """Check if a path matches any exclude pattern."""
        for pattern in self.exclude_patterns:
            if fnmatch.fnmatch(rel_path, pattern):
                return True
            if fnmatch.fnmatch(PurePosixPath(rel_path).name, pattern):
                return True
        return False

    def resolve(self, rel_path: str) -> Path:
        return self.vault_dir.joinpath(*PurePosixPath(rel_path).parts)

    async def read(self, rel_path: str) -> VaultFile:
        """Read a file without blocking the event loop.

        Raises:
            FileMissingError: If the file was removed before it could be read.
        """
        return await asyncio.to_thread(self._read_sync, rel_path)

    def _read_sync(self, rel_path: str) -> VaultFile:
        file_path = self.resolve(rel_path)
        try:
            stat = file_path.stat()
            data = file_path.read_bytes()
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as e:
            raise FileMissingError(f"{rel_path} is no longer in the vault") from e
        return VaultFile(
            path=rel_path,
            data=data,
            extension=extension_of(rel_path),
            mtime=stat.st_mtime,
        )


__all__ = ["FileMissingError", "VaultFile", "VaultSource"]
