"""Tests for the vault-aware configuration loader."""

from __future__ import annotations

from pathlib import Path

import pytest

from jade_publisher import configuration


def _prepare_repo_defaults(tmp_path: Path, content: str = "logging:\n  level: INFO\n") -> Path:
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    (config_dir / "10-default.yml").write_text(content, encoding="utf-8")
    return config_dir


def _write_override(vault: Path, content: str, name: str = "local.yml") -> None:
    cfg_dir = vault / ".jade" / "config"
    cfg_dir.mkdir(parents=True, exist_ok=True)
    (cfg_dir / name).write_text(content, encoding="utf-8")


@pytest.fixture(autouse=True)
def _repo_defaults(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    repo_dir = _prepare_repo_defaults(tmp_path)
    monkeypatch.setattr(configuration, "DEFAULT_CONFIG_DIR", repo_dir)
    return repo_dir


def test_resolve_vault_dir_uses_env_expansion(tmp_path: Path):
    env = {"JADE_VAULT_DIR": str(tmp_path / "vault")}
    assert configuration.resolve_vault_dir(env=env) == tmp_path / "vault"


def test_defaults_fill_publisher_section(vault_dir: Path):
    bundle = configuration.load_runtime_configuration(vault_dir)

    publisher = bundle.section("publisher")
    assert bundle.status == "ready"
    assert publisher["health_timeout"] == 0.5
    assert publisher["cycle_timeout"] is None
    assert publisher["failure_policy"] == "retain"
    assert ".jade/*" in publisher["exclude_patterns"]
    assert bundle.section("ui")["verbose"] is False


def test_vault_overrides_merge_over_repo_defaults(vault_dir: Path):
    _write_override(
        vault_dir,
        "logging:\n  level: DEBUG\npublisher:\n  cycle_timeout: 30\n  retry_attempts: 2\n",
    )

    bundle = configuration.load_runtime_configuration(vault_dir)

    assert bundle.status == "ready"
    assert bundle.merged["logging"]["level"] == "DEBUG"
    assert bundle.merged["publisher"]["cycle_timeout"] == 30
    assert bundle.merged["publisher"]["retry_attempts"] == 2
    assert len(bundle.files_loaded) == 2


def test_missing_vault_is_reported(tmp_path: Path):
    bundle = configuration.load_runtime_configuration(tmp_path / "missing")

    assert bundle.status == "missing"
    assert any(diag.level == "error" for diag in bundle.diagnostics)


def test_bad_yaml_marks_bundle_invalid(vault_dir: Path):
    _write_override(vault_dir, "publisher: [\n", name="broken.yml")

    bundle = configuration.load_runtime_configuration(vault_dir)

    assert bundle.status == "invalid"
    assert any("Could not parse" in diag.message for diag in bundle.diagnostics)


def test_invalid_values_fall_back_with_diagnostics(vault_dir: Path):
    _write_override(
        vault_dir,
        "publisher:\n"
        "  retry_attempts: true\n"
        "  failure_policy: forget\n"
        "  exclude_patterns: ['*.tmp', 3]\n"
        "mystery:\n"
        "  value: 1\n",
    )

    bundle = configuration.load_runtime_configuration(vault_dir)
    publisher = bundle.section("publisher")
    messages = [diag.message for diag in bundle.diagnostics]

    assert bundle.status == "invalid"
    assert publisher["retry_attempts"] == 0
    assert publisher["failure_policy"] == "retain"
    assert publisher["exclude_patterns"] == ["*.tmp"]
    assert any("retry_attempts" in message for message in messages)
    assert any("failure_policy" in message for message in messages)
    assert "Unknown section 'mystery' ignored." in messages
