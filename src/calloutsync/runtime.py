"""Runtime wiring helper for CLI applications."""

import sys
from dataclasses import dataclass
from pathlib import Path

from .adapters.callout_parser import CalloutParser
from .adapters.fs_storage import FsStorage
from .adapters.idgen import Base36Id
from .adapters.master_parser import MasterParser
from .config import SyncConfig, load_config
from .engine import SyncEngine
from .watch import SyncController


@dataclass
class Runtime:
    """Container for all wired components."""
    storage: FsStorage
    engine: SyncEngine
    controller: SyncController
    idgen: Base36Id
    config: SyncConfig


def notify_stderr(message: str) -> None:
    print(f"calloutsync: {message}", file=sys.stderr)


def build_runtime(
    vault_path: Path | None = None,
    config_path: Path | None = None,
    debounce_ms: int | None = None,
    suppress_ms: int | None = None,
) -> Runtime:
    """Build and wire all components for a vault."""
    config = load_config(config_path=config_path, vault_path=vault_path)

    # CLI args win over config values
    if vault_path is not None:
        config.vault.root = vault_path
    if debounce_ms is not None:
        config.timing.debounce_ms = debounce_ms
    if suppress_ms is not None:
        config.timing.suppress_ms = suppress_ms

    storage = FsStorage(config.vault.root)
    idgen = Base36Id()
    engine = SyncEngine(
        storage,
        config.callouts.types,
        master_folder=config.callouts.master_folder,
        callout_parser=CalloutParser(idgen),
        master_parser=MasterParser(),
        notify=notify_stderr,
    )
    controller = SyncController(
        engine,
        debounce_ms=config.timing.debounce_ms,
        suppress_ms=config.timing.suppress_ms,
    )

    return Runtime(
        storage=storage,
        engine=engine,
        controller=controller,
        idgen=idgen,
        config=config,
    )
