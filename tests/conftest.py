from __future__ import annotations

from pathlib import Path

import pytest

from fakes import FakeRemote


@pytest.fixture
def remote() -> FakeRemote:
    return FakeRemote()


@pytest.fixture
def vault_dir(tmp_path: Path) -> Path:
    vault = tmp_path / "vault"
    vault.mkdir()
    return vault
