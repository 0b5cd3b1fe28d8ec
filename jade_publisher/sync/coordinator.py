"""Drive pending changes against the remote store and commit the result."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Literal, Optional, Set

from ..notices import Notifier, RecordingNotifier
from .client import (
    JadeClient,
    RemoteError,
    RemoteUnavailable,
    SyncSettings,
    Unauthorized,
)
from .manifest import (
    HashProvider,
    Manifest,
    ManifestEntry,
    compute_content_hash,
    format_last_modified,
)
from .rebuild import RebuildProtocol
from .status import CREATED, Deleted, PathStatus, StatusKind, encode_status, old_path_of
from .tracker import ChangeTracker
from .vault import FileMissingError, VaultSource

logger = logging.getLogger("jade_publisher.sync.coordinator")

ClientFactory = Callable[[SyncSettings], JadeClient]
SettingsProvider = Callable[[], SyncSettings]
CycleMode = Literal["publish", "full"]


class EntryOutcome(str, Enum):
    """How a single path fared during a cycle."""
    SYNCED = "synced"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class EntryResult:
    path: str
    status: PathStatus
    outcome: EntryOutcome
    entry: Optional[ManifestEntry] = None
    uploaded: bool = False
    error: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "status": encode_status(self.status),
            "outcome": self.outcome.value,
            "uploaded": self.uploaded,
            "error": self.error,
        }


@dataclass
class SyncReport:
    """Partial-success report for one publish cycle."""

    mode: CycleMode
    success: bool = False
    committed: bool = False
    message: str = ""
    results: List[EntryResult] = field(default_factory=list)
    manifest: Manifest = field(default_factory=Manifest)

    def _with(self, outcome: EntryOutcome) -> List[EntryResult]:
        return [result for result in self.results if result.outcome is outcome]

    @property
    def synced(self) -> List[EntryResult]:
        return self._with(EntryOutcome.SYNCED)

    @property
    def skipped(self) -> List[EntryResult]:
        return self._with(EntryOutcome.SKIPPED)

    @property
    def failed(self) -> List[EntryResult]:
        return self._with(EntryOutcome.FAILED)

    @property
    def uploaded(self) -> int:
        return sum(1 for result in self.results if result.uploaded)

    def summary(self) -> str:
        return (
            f"{len(self.synced)} synced ({self.uploaded} uploaded), "
            f"{len(self.skipped)} skipped, {len(self.failed)} failed"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode,
            "success": self.success,
            "committed": self.committed,
            "message": self.message,
            "results": [result.to_dict() for result in self.results],
            "manifest": self.manifest.to_list(),
        }


@dataclass
class SyncSession:
    """Transient state of one cycle, discarded after the commit."""

    settings: SyncSettings
    client: JadeClient
    changes: Dict[str, PathStatus]
    tasks: Dict[str, "asyncio.Task[EntryResult]"] = field(default_factory=dict)
    uploaded_hashes: Set[str] = field(default_factory=set)
    _hash_locks: Dict[str, asyncio.Lock] = field(default_factory=dict)

    def hash_lock(self, content_hash: str) -> asyncio.Lock:
        """Serialize uploads of identical content within the cycle."""
        lock = self._hash_locks.get(content_hash)
        if lock is None:
            lock = self._hash_locks[content_hash] = asyncio.Lock()
        return lock


class SyncCoordinator:
    """Runs incremental publishes and full vault resyncs.

    Only one cycle runs at a time. Per-path actions run concurrently and are
    joined before the single rebuild call.
    """

    def __init__(
        self,
        tracker: ChangeTracker,
        vault: VaultSource,
        settings_provider: SettingsProvider,
        notifier: Optional[Notifier] = None,
        client_factory: ClientFactory = JadeClient,
        hasher: HashProvider = compute_content_hash,
    ):
        self.tracker = tracker
        self.vault = vault
        self.settings_provider = settings_provider
        self.notifier = notifier or RecordingNotifier()
        self.client_factory = client_factory
        self.hasher = hasher
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def publish(self) -> SyncReport:
        """Publish the pending changes recorded since the last publish."""
        report = SyncReport(mode="publish")
        settings = self._begin(report)
        if settings is None:
            return report

        try:
            if not len(self.tracker):
                report.success = True
                report.message = "Nothing to publish"
                self.notifier.notify(report.message)
                return report

            changes = self.tracker.drain()
            try:
                await self._run_cycle(settings, changes, report, clear_others=False)
            except BaseException:
                self.tracker.restore(changes)
                raise

            if not report.committed:
                self.tracker.restore(changes)
            elif report.failed and settings.failure_policy == "retain":
                self.tracker.restore({result.path: result.status for result in report.failed})
            return report
        finally:
            self._running = False

    async def sync_vault(self) -> SyncReport:
        """Resync every vault file and let the remote prune everything else.

        Pending changes are left untouched.
        """
        report = SyncReport(mode="full")
        settings = self._begin(report)
        if settings is None:
            return report

        try:
            paths = await asyncio.to_thread(self.vault.list_files)
            changes: Dict[str, PathStatus] = {path: CREATED for path in paths}
            logger.info("Full resync of %d file(s)", len(changes))
            await self._run_cycle(
                settings,
                changes,
                report,
                clear_others=True,
                flush=settings.flush_before_full_sync,
            )
            return report
        finally:
            self._running = False

    def _begin(self, report: SyncReport) -> Optional[SyncSettings]:
        if self._running:
            self._abort(report, "A publish cycle is already running")
            return None

        settings = self.settings_provider()
        if not settings.endpoint:
            self._abort(report, "Please setup your Jade endpoint")
            return None
        if not settings.access_token:
            self._abort(report, "Please setup your access token")
            return None

        self._running = True
        return settings

    def _abort(self, report: SyncReport, message: str) -> None:
        report.message = message
        logger.warning("Cycle aborted: %s", message)
        self.notifier.notify(message, blocking=True)

    async def _run_cycle(
        self,
        settings: SyncSettings,
        changes: Dict[str, PathStatus],
        report: SyncReport,
        *,
        clear_others: bool,
        flush: bool = False,
    ) -> None:
        async with self.client_factory(settings) as client:
            try:
                await client.check_health()
            except Unauthorized as e:
                logger.warning("Health check unauthorized: %s", e)
                self._abort(report, "Your access token is wrong")
                return
            except RemoteUnavailable as e:
                logger.warning("Health check failed: %s", e)
                self._abort(report, "Jade service is not available")
                return

            if flush:
                try:
                    await client.flush()
                except RemoteError as e:
                    self._abort(report, f"Failed to flush the Jade service: {e}")
                    return

            session = SyncSession(settings=settings, client=client, changes=dict(changes))
            report.results = await self._dispatch(session)
            report.manifest.extend(
                result.entry for result in report.synced if result.entry is not None
            )

            if clear_others and report.failed:
                self._abort(
                    report,
                    f"{len(report.failed)} file(s) failed to sync; "
                    "not rebuilding so they are not pruned",
                )
                return

            try:
                await RebuildProtocol(client).commit(report.manifest, clear_others)
            except RemoteError as e:
                logger.error("Rebuild failed: %s", e)
                self._abort(report, f"Rebuilding your Jade service failed: {e}")
                return

        report.committed = True
        report.success = not report.failed
        report.message = report.summary()
        logger.info("Cycle committed: %s", report.message)
        self.notifier.notify(f"Your Jade service rebuilds successfully! {report.message}")

    async def _dispatch(self, session: SyncSession) -> List[EntryResult]:
        for path, status in session.changes.items():
            session.tasks[path] = asyncio.create_task(self._sync_entry(session, path, status))
        if not session.tasks:
            return []

        try:
            _, pending = await asyncio.wait(
                list(session.tasks.values()),
                timeout=session.settings.cycle_timeout,
            )
            if pending:
                logger.warning("Cycle timeout reached with %d action(s) in flight", len(pending))
        finally:
            # Also reached when the cycle itself is cancelled.
            leftover = [task for task in session.tasks.values() if not task.done()]
            for task in leftover:
                task.cancel()
            if leftover:
                await asyncio.gather(*leftover, return_exceptions=True)

        results: List[EntryResult] = []
        for path, task in session.tasks.items():
            status = session.changes[path]
            if task.cancelled():
                results.append(EntryResult(path, status, EntryOutcome.FAILED, error="cycle timed out"))
            elif task.exception() is not None:
                results.append(
                    EntryResult(path, status, EntryOutcome.FAILED, error=repr(task.exception()))
                )
            else:
                results.append(task.result())
        return results

    async def _sync_entry(self, session: SyncSession, path: str, status: PathStatus) -> EntryResult:
        client = session.client
        uploaded = False
        try:
            if isinstance(status, Deleted):
                await self._with_retries(
                    session, path, lambda: client.sync_file(path, StatusKind.DELETED)
                )
                entry = ManifestEntry.for_deletion(path)
            else:
                vault_file = await self.vault.read(path)
                content_hash = self.hasher(vault_file.data)
                last_modified = format_last_modified(vault_file.mtime)
                async with session.hash_lock(content_hash):
                    exists = (
                        content_hash in session.uploaded_hashes
                        or await self._with_retries(
                            session, path, lambda: client.file_exists(content_hash)
                        )
                    )
                    await self._with_retries(
                        session,
                        path,
                        lambda: client.sync_file(
                            path,
                            status.kind,
                            old_path=old_path_of(status),
                            content_hash=content_hash,
                            extension=vault_file.extension,
                            last_modified=last_modified,
                            data=None if exists else vault_file.data,
                        ),
                    )
                    session.uploaded_hashes.add(content_hash)
                uploaded = not exists
                entry = ManifestEntry(
                    path=path,
                    content_hash=content_hash,
                    extension=vault_file.extension,
                    last_modified=last_modified,
                )
        except FileMissingError as e:
            logger.warning("Skipping %s: %s", path, e)
            return EntryResult(path, status, EntryOutcome.SKIPPED, error=str(e))
        except RemoteError as e:
            logger.error("Failed to sync %s: %s", path, e)
            return EntryResult(path, status, EntryOutcome.FAILED, error=str(e))
        except Exception as e:
            logger.exception("Unexpected error syncing %s", path)
            return EntryResult(path, status, EntryOutcome.FAILED, error=repr(e))

        logger.debug("Synced %s (%s, uploaded=%s)", path, encode_status(status), uploaded)
        self.notifier.notify(f"{path} is synced")
        return EntryResult(path, status, EntryOutcome.SYNCED, entry=entry, uploaded=uploaded)

    async def _with_retries(
        self,
        session: SyncSession,
        path: str,
        call: Callable[[], Awaitable[Any]],
    ) -> Any:
        attempts = session.settings.retry_attempts + 1
        for attempt in range(1, attempts + 1):
            try:
                return await call()
            except RemoteUnavailable as e:
                if attempt >= attempts:
                    raise
                logger.warning("Retrying %s (%d/%d): %s", path, attempt, attempts - 1, e)
        raise AssertionError("unreachable")  # pragma: no cover


__all__ = [
    "ClientFactory",
    "EntryOutcome",
    "EntryResult",
    "SyncCoordinator",
    "SyncReport",
    "SyncSession",
]
