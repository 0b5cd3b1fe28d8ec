"""Change tracking and dedup-aware publishing for Jade."""

from __future__ import annotations

from .status import (
    Created,
    Deleted,
    Modified,
    PathStatus,
    Renamed,
    StatusKind,
    decode_status,
    encode_status,
)
from .tracker import ChangeTracker, EventKind, FileEvent
from .manifest import Manifest, ManifestEntry, compute_content_hash
from .vault import FileMissingError, VaultFile, VaultSource
from .client import (
    JadeClient,
    RemoteError,
    RemoteRejected,
    RemoteUnavailable,
    SyncSettings,
    Unauthorized,
)
from .rebuild import RebuildProtocol
from .coordinator import EntryOutcome, EntryResult, SyncCoordinator, SyncReport, SyncSession

__all__ = [
    # Status
    "Created",
    "Deleted",
    "Modified",
    "PathStatus",
    "Renamed",
    "StatusKind",
    "decode_status",
    "encode_status",
    # Tracker
    "ChangeTracker",
    "EventKind",
    "FileEvent",
    # Manifest
    "Manifest",
    "ManifestEntry",
    "compute_content_hash",
    # Vault
    "FileMissingError",
    "VaultFile",
    "VaultSource",
    # Client
    "JadeClient",
    "RemoteError",
    "RemoteRejected",
    "RemoteUnavailable",
    "SyncSettings",
    "Unauthorized",
    # Coordinator
    "EntryOutcome",
    "EntryResult",
    "RebuildProtocol",
    "SyncCoordinator",
    "SyncReport",
    "SyncSession",
]
