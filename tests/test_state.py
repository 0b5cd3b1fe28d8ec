"""Tests for persisted publisher state."""

from __future__ import annotations

import json
from pathlib import Path

from jade_publisher.state import PersistedState, StateStore


def test_missing_state_file_loads_defaults(tmp_path: Path):
    store = StateStore.for_vault(tmp_path)

    state = store.load()

    assert store.path == tmp_path / ".jade" / "data.json"
    assert state == PersistedState()


def test_save_uses_plugin_schema(tmp_path: Path):
    store = StateStore(tmp_path / "state" / "data.json")
    store.save(
        PersistedState(
            endpoint="http://localhost:3000",
            access_token="token",
            modified_files={"b.md": "renamed:a.md"},
        )
    )

    raw = json.loads(store.path.read_text(encoding="utf-8"))

    assert raw == {
        "endpoint": "http://localhost:3000",
        "accessToken": "token",
        "modifiedFiles": {"b.md": "renamed:a.md"},
    }
    assert store.load().modified_files == {"b.md": "renamed:a.md"}
    assert not (tmp_path / "state" / "data.json.tmp").exists()


def test_corrupt_state_falls_back_to_defaults(tmp_path: Path):
    store = StateStore(tmp_path / "data.json")
    store.path.write_text("{not json", encoding="utf-8")
    assert store.load() == PersistedState()

    store.path.write_text(json.dumps({"endpoint": "x", "modifiedFiles": ["bad"]}), encoding="utf-8")
    state = store.load()
    assert state.endpoint == "x"
    assert state.modified_files == {}
