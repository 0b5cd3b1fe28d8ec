"""Persisted publisher state: endpoint, access token and pending changes."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger("jade_publisher.state")

DEFAULT_STATE_FILE = ".jade/data.json"


@dataclass
class PersistedState:
    """Mirror of the on-disk document.

    ``modified_files`` holds encoded statuses
    (``created|modified|deleted|renamed:<oldPath>``).
    """

    endpoint: str = ""
    access_token: str = ""
    modified_files: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "endpoint": self.endpoint,
            "accessToken": self.access_token,
            "modifiedFiles": dict(self.modified_files),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PersistedState":
        modified = data.get("modifiedFiles") or {}
        if not isinstance(modified, dict):
            logger.warning("Ignoring malformed modifiedFiles entry in state")
            modified = {}
        return cls(
            endpoint=str(data.get("endpoint") or ""),
            access_token=str(data.get("accessToken") or ""),
            modified_files={str(k): str(v) for k, v in modified.items()},
        )


class StateStore:
    """JSON file store, read at startup and written at process boundaries."""

    def __init__(self, path: Path):
        self.path = path

    @classmethod
    def for_vault(cls, vault_dir: Path, relative: Optional[str] = None) -> "StateStore":
        return cls(vault_dir / (relative or DEFAULT_STATE_FILE))

    def load(self) -> PersistedState:
        if not self.path.exists():
            return PersistedState()
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to load state from %s: %s", self.path, e)
            return PersistedState()
        if not isinstance(data, dict):
            logger.error("State file %s does not contain an object", self.path)
            return PersistedState()
        return PersistedState.from_dict(data)

    def save(self, state: PersistedState) -> None:
        """Write the state atomically via a temporary file."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(state.to_dict(), f, indent=2)
        os.replace(tmp_path, self.path)
        logger.debug(
            "Saved state to %s (%d pending)", self.path, len(state.modified_files)
        )


__all__ = ["DEFAULT_STATE_FILE", "PersistedState", "StateStore"]
