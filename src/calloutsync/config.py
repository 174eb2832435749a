"""Configuration loader for calloutsync.toml."""

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .core.utils import normalize_path, uniq_lower

CONFIG_NAME = "calloutsync.toml"
DEFAULT_TYPES = ["todo", "questions"]


@dataclass
class VaultConfig:
    """Vault location."""
    root: Path


@dataclass
class CalloutConfig:
    """Which callout types are tracked and where their masters live."""
    types: list[str] = field(default_factory=lambda: list(DEFAULT_TYPES))
    master_folder: str = ""  # "" = vault root


@dataclass
class TimingConfig:
    """
    Watcher timing.

    ``suppress_ms`` must exceed the worst-case delay between a write and the
    filesystem's change notification for it; otherwise the engine reacts to
    its own writes and master and source keep updating each other.
    """
    debounce_ms: int = 250
    suppress_ms: int = 700
    poll_ms: int = 100


@dataclass
class SyncConfig:
    """Complete calloutsync configuration."""
    vault: VaultConfig
    callouts: CalloutConfig
    timing: TimingConfig


def _positive_int(data: dict[str, Any], key: str, default: int) -> int:
    value = data.get(key, default)
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        raise ValueError(f"timing.{key} must be a positive integer, got {value!r}")
    return value


def load_config(config_path: Path | None = None, vault_path: Path | None = None) -> SyncConfig:
    """
    Load configuration from calloutsync.toml.

    Search order:
    1. config_path (if provided)
    2. cwd/calloutsync.toml
    3. vault_path/calloutsync.toml

    Args:
        config_path: Explicit path to config file
        vault_path: Vault root path for fallback search

    Returns:
        SyncConfig with resolved settings
    """
    toml_data: dict[str, Any] = {}

    search_paths = []
    if config_path:
        search_paths.append(config_path)
    search_paths.append(Path.cwd() / CONFIG_NAME)
    if vault_path:
        search_paths.append(vault_path / CONFIG_NAME)

    for path in search_paths:
        if path.exists():
            with open(path, "rb") as f:
                toml_data = tomllib.load(f)
            break

    vault_data = toml_data.get("vault", {})
    vault_config = VaultConfig(root=Path(vault_data.get("root", vault_path or Path("."))))

    callout_data = toml_data.get("callouts", {})
    types = callout_data.get("types", DEFAULT_TYPES)
    if isinstance(types, str) or not isinstance(types, list):
        raise ValueError(f"callouts.types must be a list of names, got {types!r}")
    master_folder = str(callout_data.get("master_folder", "") or "")
    callout_config = CalloutConfig(
        types=uniq_lower(types),
        master_folder=normalize_path(master_folder) if master_folder else "",
    )

    timing_data = toml_data.get("timing", {})
    timing_config = TimingConfig(
        debounce_ms=_positive_int(timing_data, "debounce_ms", 250),
        suppress_ms=_positive_int(timing_data, "suppress_ms", 700),
        poll_ms=_positive_int(timing_data, "poll_ms", 100),
    )

    return SyncConfig(
        vault=vault_config,
        callouts=callout_config,
        timing=timing_config,
    )
