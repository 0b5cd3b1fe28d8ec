"""Commit a manifest so the remote rebuilds its index."""

from __future__ import annotations

import logging

from .client import JadeClient
from .manifest import Manifest

logger = logging.getLogger("jade_publisher.sync.rebuild")


class RebuildProtocol:
    """Issues the single rebuild call that ends a publish cycle.

    The remote is expected to apply a manifest atomically. Nothing here
    assumes atomicity across separate commits, so every cycle sends its
    whole manifest in one call.
    """

    def __init__(self, client: JadeClient):
        self.client = client

    async def commit(self, manifest: Manifest, clear_others: bool) -> None:
        """Submit the manifest.

        With ``clear_others`` the remote prunes every entry not listed;
        otherwise it merges the manifest into its existing index.

        Raises:
            RemoteError: If the rebuild call did not succeed.
        """
        logger.info(
            "Committing manifest with %d entr%s (clearOthers=%s)",
            len(manifest),
            "y" if len(manifest) == 1 else "ies",
            clear_others,
        )
        await self.client.rebuild(manifest.to_list(), clear_others)


__all__ = ["RebuildProtocol"]
