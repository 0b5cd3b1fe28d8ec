"""Collapse vault file events into one pending status per path."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterator, List, Mapping, Optional

from .status import (
    CREATED,
    DELETED,
    MODIFIED,
    Created,
    Deleted,
    Modified,
    PathStatus,
    Renamed,
    decode_status,
    encode_status,
)

logger = logging.getLogger("jade_publisher.sync.tracker")

ActiveFileProvider = Callable[[], Optional[str]]


class EventKind(str, Enum):
    """Mutation events emitted by the host file watcher."""
    CREATE = "create"
    MODIFY = "modify"
    RENAME = "rename"
    DELETE = "delete"


@dataclass(frozen=True)
class FileEvent:
    """A single file mutation, keyed by the file's current path."""

    kind: EventKind
    path: str
    old_path: Optional[str] = None  # Rename only

    def __post_init__(self) -> None:
        if self.kind is EventKind.RENAME and not self.old_path:
            raise ValueError("Rename events require old_path")


class ChangeTracker:
    """Net pending status per current path since the last publish.

    The tracker is the only writer of the pending set. Publish cycles take
    the set with :meth:`drain` and hand back whatever they could not
    complete with :meth:`restore`. Events applied after a drain are kept in
    a journal so a restore can replay them on top of the returned statuses.
    """

    def __init__(
        self,
        pending: Optional[Mapping[str, PathStatus]] = None,
        active_file: Optional[ActiveFileProvider] = None,
    ) -> None:
        self._pending: Dict[str, PathStatus] = dict(pending or {})
        self.active_file = active_file
        self._journal: Optional[List[FileEvent]] = None  # None until the first drain
        self._restored: Dict[str, PathStatus] = {}

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, path: object) -> bool:
        return path in self._pending

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._pending))

    def status(self, path: str) -> Optional[PathStatus]:
        return self._pending.get(path)

    def snapshot(self) -> Dict[str, PathStatus]:
        """Return a copy of the pending set without changing it."""
        return dict(self._pending)

    def handle_event(self, event: FileEvent) -> None:
        if event.kind is EventKind.CREATE:
            self.on_create(event.path)
        elif event.kind is EventKind.MODIFY:
            self.on_modify(event.path)
        elif event.kind is EventKind.RENAME:
            self.on_rename(event.path, event.old_path or "")
        elif event.kind is EventKind.DELETE:
            self.on_delete(event.path)
        else:  # pragma: no cover - exhaustive
            raise ValueError(f"Unsupported event kind: {event.kind}")

    def on_create(self, path: str) -> None:
        self._pending[path] = CREATED
        self._journal_event(EventKind.CREATE, path)
        logger.debug("Tracked create: %s", path)

    def on_modify(self, path: str) -> None:
        if self.active_file is not None and self.active_file() != path:
            logger.debug("Ignoring modify of background file: %s", path)
            return
        self._journal_event(EventKind.MODIFY, path)
        current = self._pending.get(path)
        if isinstance(current, (Created, Renamed)):
            return
        self._pending[path] = MODIFIED
        logger.debug("Tracked modify: %s", path)

    def on_rename(self, path: str, old_path: str) -> None:
        previous = self._pending.pop(old_path, None)
        if path in self._pending:
            # Destination statuses are overwritten, not merged.
            logger.debug(
                "Rename %s -> %s overwrites pending status %s",
                old_path,
                path,
                encode_status(self._pending[path]),
            )
        if isinstance(previous, Created):
            self._pending[path] = CREATED
        else:
            self._pending[path] = Renamed(old_path)
        self._journal_event(EventKind.RENAME, path, old_path)
        logger.debug("Tracked rename: %s -> %s", old_path, path)

    def on_delete(self, path: str) -> None:
        self._journal_event(EventKind.DELETE, path)
        if isinstance(self._pending.get(path), Created):
            # Never published, so the remote has nothing to delete.
            del self._pending[path]
            logger.debug("Dropped unpublished file: %s", path)
            return
        self._pending[path] = DELETED
        logger.debug("Tracked delete: %s", path)

    def _journal_event(self, kind: EventKind, path: str, old_path: Optional[str] = None) -> None:
        if self._journal is not None:
            self._journal.append(FileEvent(kind, path, old_path=old_path))

    def drain(self) -> Dict[str, PathStatus]:
        """Return the pending set and reset it to empty."""
        drained, self._pending = self._pending, {}
        self._journal = []
        self._restored = {}
        logger.debug("Drained %d pending change(s)", len(drained))
        return drained

    def restore(self, changes: Mapping[str, PathStatus]) -> None:
        """Put back drained statuses underneath events applied since the drain.

        The pending set is rebuilt by replaying the journal over the restored
        statuses, so the result is what the same events would have produced
        had the drain never happened.

        Raises:
            RuntimeError: If nothing was drained yet.
        """
        if self._journal is None:
            raise RuntimeError("restore() requires a preceding drain()")
        self._restored.update(changes)
        replay = ChangeTracker(self._restored)
        for event in self._journal:
            replay.handle_event(event)
        self._pending = replay._pending
        logger.debug(
            "Restored %d change(s) under %d later event(s)", len(changes), len(self._journal)
        )

    def to_persisted(self) -> Dict[str, str]:
        return {path: encode_status(status) for path, status in self._pending.items()}

    @classmethod
    def from_persisted(
        cls,
        raw: Mapping[str, str],
        active_file: Optional[ActiveFileProvider] = None,
    ) -> "ChangeTracker":
        pending: Dict[str, PathStatus] = {}
        for path, encoded in raw.items():
            try:
                pending[path] = decode_status(str(encoded))
            except ValueError as e:
                logger.warning("Ignoring pending entry %s: %s", path, e)
        return cls(pending, active_file=active_file)


__all__ = ["ActiveFileProvider", "ChangeTracker", "EventKind", "FileEvent"]
