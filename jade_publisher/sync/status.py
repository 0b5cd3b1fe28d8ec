"""Pending status values tracked per vault path."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class StatusKind(str, Enum):
    """Status tags understood by the remote sync endpoint."""
    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"


@dataclass(frozen=True)
class Created:
    kind = StatusKind.CREATED


@dataclass(frozen=True)
class Modified:
    kind = StatusKind.MODIFIED


@dataclass(frozen=True)
class Deleted:
    kind = StatusKind.DELETED


@dataclass(frozen=True)
class Renamed:
    """The path was renamed from ``from_path`` since the last publish."""

    from_path: str
    kind = StatusKind.RENAMED


PathStatus = Union[Created, Modified, Deleted, Renamed]

CREATED = Created()
MODIFIED = Modified()
DELETED = Deleted()

_RENAMED_PREFIX = "renamed:"


def encode_status(status: PathStatus) -> str:
    """Encode a status for the persisted ``modifiedFiles`` map."""
    if isinstance(status, Renamed):
        return f"{_RENAMED_PREFIX}{status.from_path}"
    return status.kind.value


def decode_status(raw: str) -> PathStatus:
    """Decode a persisted status string.

    Raises:
        ValueError: If the string is not a known status encoding.
    """
    if raw.startswith(_RENAMED_PREFIX):
        from_path = raw[len(_RENAMED_PREFIX):]
        if not from_path:
            raise ValueError("Renamed status is missing its original path")
        return Renamed(from_path)
    if raw == StatusKind.CREATED.value:
        return CREATED
    if raw == StatusKind.MODIFIED.value:
        return MODIFIED
    if raw == StatusKind.DELETED.value:
        return DELETED
    raise ValueError(f"Unknown status encoding: {raw!r}")


def old_path_of(status: Optional[PathStatus]) -> Optional[str]:
    if isinstance(status, Renamed):
        return status.from_path
    return None


__all__ = [
    "StatusKind",
    "Created",
    "Modified",
    "Deleted",
    "Renamed",
    "PathStatus",
    "CREATED",
    "MODIFIED",
    "DELETED",
    "encode_status",
    "decode_status",
    "old_path_of",
]
