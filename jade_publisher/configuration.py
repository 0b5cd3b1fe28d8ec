"""Layered YAML settings for the Jade publisher.

Two layers are read: the defaults shipped in ``config/`` and the vault's own
``.jade/config`` directory. Problems never raise; each one becomes a
``Diagnostic`` so the operator loop can still start and report it.
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Mapping, Optional

import yaml

REPO_ROOT = Path(__file__).resolve().parent.parent
DEFAULT_CONFIG_DIR = REPO_ROOT / "config"
VAULT_CONFIG_SUBDIR = Path(".jade") / "config"

DiagnosticLevel = Literal["info", "warning", "error"]
ConfigurationStatus = Literal["ready", "missing", "invalid"]

Setting = Dict[str, Any]

DEFAULT_EXCLUDE_PATTERNS: List[str] = [
    ".jade/*",
    ".obsidian/*",
    ".git/*",
    ".DS_Store",
]

_MISSING = object()


def _seconds(default: Optional[float], nullable: bool = False) -> Setting:
    return {"type": (int, float), "default": default, "nullable": nullable}


CONFIG_SCHEMA: Dict[str, Dict[str, Setting]] = {
    "logging": {
        "level": {"type": str, "default": "INFO"},
        "structured": {"type": bool, "default": True},
    },
    "ui": {
        "verbose": {"type": bool, "default": False},
    },
    "publisher": {
        "api_path": {"type": str, "default": "/api/sync"},
        "health_path": {"type": str, "default": "/check-health"},
        "token_header": {"type": str, "default": "X-Access-Token"},
        "health_timeout": _seconds(0.5),
        "request_timeout": _seconds(30),
        "cycle_timeout": _seconds(None, nullable=True),
        "retry_attempts": {"type": int, "default": 0},
        "failure_policy": {"type": str, "choices": ("retain", "drop"), "default": "retain"},
        "flush_before_full_sync": {"type": bool, "default": True},
        "state_file": {"type": str, "default": ".jade/data.json"},
        "exclude_patterns": {
            "type": list,
            "item_type": str,
            "default_factory": lambda: list(DEFAULT_EXCLUDE_PATTERNS),
        },
    },
}


@dataclass
class Diagnostic:
    """One problem found while reading or checking settings."""

    level: DiagnosticLevel
    message: str
    source: Optional[Path] = None


@dataclass
class ConfigurationBundle:
    """Checked settings for one vault, plus what went wrong getting them."""

    vault_dir: Path
    status: ConfigurationStatus
    merged: Dict[str, Any] = field(default_factory=dict)
    files_loaded: List[Path] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)
    log_path: Optional[Path] = None

    def section(self, name: str) -> Dict[str, Any]:
        return self.merged.get(name) or {}


def resolve_vault_dir(
    env: Optional[Mapping[str, str]] = None,
    default: str = ".",
) -> Path:
    """Vault root from ``JADE_VAULT_DIR``, falling back to ``default``."""

    source = os.environ if env is None else env
    return Path(source.get("JADE_VAULT_DIR") or default).expanduser()


def load_runtime_configuration(vault_dir: Optional[Path] = None) -> ConfigurationBundle:
    """Read both layers for ``vault_dir`` and check them against ``CONFIG_SCHEMA``."""

    vault = vault_dir or resolve_vault_dir()
    diagnostics: List[Diagnostic] = []
    files_loaded: List[Path] = []

    raw = _read_layer(DEFAULT_CONFIG_DIR, "repo defaults", diagnostics, files_loaded)

    status = _vault_status(vault, diagnostics)
    overrides_dir = vault / VAULT_CONFIG_SUBDIR
    if status == "ready" and overrides_dir.is_dir():
        overrides = _read_layer(overrides_dir, "vault overrides", diagnostics, files_loaded)
        _merge_into(raw, overrides)

    merged = _apply_schema(raw, diagnostics)

    if status == "ready" and any(diag.level == "error" for diag in diagnostics):
        status = "invalid"

    return ConfigurationBundle(
        vault_dir=vault,
        status=status,
        merged=merged,
        files_loaded=files_loaded,
        diagnostics=diagnostics,
    )


def _vault_status(vault: Path, diagnostics: List[Diagnostic]) -> ConfigurationStatus:
    if not vault.exists():
        diagnostics.append(
            Diagnostic(level="error", message=f"Vault directory '{vault}' does not exist.")
        )
        return "missing"
    if not vault.is_dir():
        diagnostics.append(
            Diagnostic(level="error", message=f"Vault path '{vault}' is not a directory.")
        )
        return "invalid"
    return "ready"


def _read_layer(
    directory: Path,
    label: str,
    diagnostics: List[Diagnostic],
    files_loaded: List[Path],
) -> Dict[str, Any]:
    """Merge every ``*.yml``/``*.yaml`` file of one layer in name order."""

    layer: Dict[str, Any] = {}
    if not directory.is_dir():
        diagnostics.append(
            Diagnostic(
                level="warning",
                message=f"No {label} found at '{directory}'.",
                source=directory,
            )
        )
        return layer

    candidates = sorted(directory.glob("*.yml")) + sorted(directory.glob("*.yaml"))
    for path in candidates:
        content = _parse_yaml_file(path, diagnostics)
        if content is None:
            continue
        _merge_into(layer, content)
        files_loaded.append(path)
    return layer


def _parse_yaml_file(path: Path, diagnostics: List[Diagnostic]) -> Optional[Dict[str, Any]]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            content = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        diagnostics.append(
            Diagnostic(level="error", message=f"Could not parse '{path}': {exc}", source=path)
        )
        return None

    if content is None:
        return {}
    if not isinstance(content, dict):
        diagnostics.append(
            Diagnostic(
                level="warning",
                message=f"Skipping '{path}': the top level must be a mapping.",
                source=path,
            )
        )
        return None
    return content


def _merge_into(base: Dict[str, Any], overlay: Mapping[str, Any]) -> None:
    for key, value in overlay.items():
        current = base.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            _merge_into(current, value)
        else:
            base[key] = deepcopy(value)


def _apply_schema(raw: Dict[str, Any], diagnostics: List[Diagnostic]) -> Dict[str, Any]:
    """Return checked settings; bad or missing values are replaced by defaults."""

    for section in sorted(set(raw) - set(CONFIG_SCHEMA)):
        diagnostics.append(
            Diagnostic(level="warning", message=f"Unknown section '{section}' ignored.")
        )

    checked: Dict[str, Any] = {}
    for section, settings in CONFIG_SCHEMA.items():
        given = raw.get(section)
        if given is None:
            given = {}
        elif not isinstance(given, dict):
            diagnostics.append(
                Diagnostic(
                    level="error",
                    message=f"Section '{section}' must be a mapping; using its defaults.",
                )
            )
            given = {}

        for key in sorted(set(given) - set(settings)):
            diagnostics.append(
                Diagnostic(level="warning", message=f"Unknown setting '{section}.{key}' ignored.")
            )

        checked[section] = {
            key: _check_setting(f"{section}.{key}", spec, given.get(key, _MISSING), diagnostics)
            for key, spec in settings.items()
        }
    return checked


def _check_setting(
    name: str,
    spec: Setting,
    value: Any,
    diagnostics: List[Diagnostic],
) -> Any:
    if value is _MISSING:
        return _default(spec)
    if value is None and spec.get("nullable"):
        return None

    expected = spec["type"]
    if expected is list and isinstance(value, list):
        item_type = spec.get("item_type", object)
        kept = [item for item in value if isinstance(item, item_type)]
        if len(kept) != len(value):
            diagnostics.append(
                Diagnostic(
                    level="error",
                    message=(
                        f"'{name}' may only hold {item_type.__name__} values; "
                        f"dropped {len(value) - len(kept)} item(s)."
                    ),
                )
            )
        return kept

    # bool is an int subclass; reject it for numeric settings
    wrong_bool = isinstance(value, bool) and expected is not bool
    if wrong_bool or not isinstance(value, expected):
        diagnostics.append(
            Diagnostic(
                level="error",
                message=(
                    f"'{name}' expects {_describe(expected)}, got "
                    f"{type(value).__name__}; using the default."
                ),
            )
        )
        return _default(spec)

    choices = spec.get("choices")
    if choices and value not in choices:
        diagnostics.append(
            Diagnostic(
                level="error",
                message=(
                    f"'{name}' must be one of {', '.join(choices)}, got '{value}'; "
                    "using the default."
                ),
            )
        )
        return _default(spec)
    return value


def _default(spec: Setting) -> Any:
    factory = spec.get("default_factory")
    if callable(factory):
        return factory()
    return deepcopy(spec.get("default"))


def _describe(expected: Any) -> str:
    if isinstance(expected, tuple):
        return " or ".join(t.__name__ for t in expected)
    return expected.__name__


__all__ = [
    "CONFIG_SCHEMA",
    "ConfigurationBundle",
    "ConfigurationStatus",
    "DEFAULT_CONFIG_DIR",
    "DEFAULT_EXCLUDE_PATTERNS",
    "Diagnostic",
    "VAULT_CONFIG_SUBDIR",
    "load_runtime_configuration",
    "resolve_vault_dir",
]
