"""Wire configuration, persisted state, tracker and coordinator together."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import logging
from typing import Optional

from .configuration import DEFAULT_EXCLUDE_PATTERNS, ConfigurationBundle
from .notices import ConsoleNotifier, Notifier
from .state import PersistedState, StateStore
from .sync import (
    ChangeTracker,
    FileEvent,
    JadeClient,
    SyncCoordinator,
    SyncReport,
    SyncSettings,
    VaultSource,
)
from .sync.coordinator import ClientFactory

logger = logging.getLogger("jade_publisher.runtime")


@dataclass
class PublisherRuntime:
    """Session object built once at startup and passed to every command."""

    config: ConfigurationBundle
    store: StateStore
    state: PersistedState
    tracker: ChangeTracker
    vault: VaultSource
    coordinator: SyncCoordinator
    notifier: Notifier
    active_path: Optional[str] = field(default=None)

    def settings(self) -> SyncSettings:
        """Snapshot settings for one cycle."""
        return SyncSettings.from_config(
            self.config.merged,
            endpoint=self.state.endpoint,
            access_token=self.state.access_token,
        )

    def handle_event(self, event: FileEvent) -> None:
        self.tracker.handle_event(event)

    def set_active(self, path: Optional[str]) -> None:
        """Restrict modify tracking to ``path``; ``None`` tracks every modify."""
        self.active_path = path or None
        if self.active_path is None:
            self.tracker.active_file = None
        else:
            self.tracker.active_file = lambda: self.active_path

    def set_endpoint(self, endpoint: str) -> None:
        self._ensure_idle()
        self.state.endpoint = endpoint.strip()
        self.save()

    def set_access_token(self, token: str) -> None:
        self._ensure_idle()
        self.state.access_token = token.strip()
        self.save()

    def _ensure_idle(self) -> None:
        if self.coordinator.running:
            raise RuntimeError("Settings cannot change while a publish cycle is running")

    def save(self) -> None:
        self.state.modified_files = self.tracker.to_persisted()
        self.store.save(self.state)

    async def publish_async(self) -> SyncReport:
        try:
            return await self.coordinator.publish()
        finally:
            self.save()

    async def sync_vault_async(self) -> SyncReport:
        return await self.coordinator.sync_vault()

    def publish(self) -> SyncReport:
        return asyncio.run(self.publish_async())

    def sync_vault(self) -> SyncReport:
        return asyncio.run(self.sync_vault_async())


def build_runtime(
    config: ConfigurationBundle,
    notifier: Optional[Notifier] = None,
    client_factory: ClientFactory = JadeClient,
) -> PublisherRuntime:
    """Load persisted state and build the runtime for ``config.vault_dir``."""

    publisher_cfg = config.section("publisher")
    store = StateStore.for_vault(config.vault_dir, publisher_cfg.get("state_file"))
    state = store.load()
    tracker = ChangeTracker.from_persisted(state.modified_files)
    vault = VaultSource(
        config.vault_dir,
        publisher_cfg.get("exclude_patterns", DEFAULT_EXCLUDE_PATTERNS),
    )
    notifier = notifier or ConsoleNotifier()

    runtime: PublisherRuntime

    def _settings() -> SyncSettings:
        return runtime.settings()

    coordinator = SyncCoordinator(
        tracker,
        vault,
        _settings,
        notifier=notifier,
        client_factory=client_factory,
    )
    runtime = PublisherRuntime(
        config=config,
        store=store,
        state=state,
        tracker=tracker,
        vault=vault,
        coordinator=coordinator,
        notifier=notifier,
    )
    logger.info(
        "Loaded state from %s (%d pending change(s))", store.path, len(tracker)
    )
    return runtime


__all__ = ["PublisherRuntime", "build_runtime"]
