"""Watch mode for calloutsync - debounced, loop-safe propagation of vault changes."""

import json
import logging
import math
import os
import signal
import sys
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Any

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .adapters.fs_storage import FsStorage
from .engine import SyncEngine

logger = logging.getLogger(__name__)


class PathState(Enum):
    IDLE = "idle"
    DEBOUNCED = "debounced"
    RECONCILING = "reconciling"


class SyncController:
    """
    Decides when a changed path gets reconciled.

    Two registries, both keyed by vault path and owned here:

    - pending: debounce deadlines. Every modification pushes the deadline
      out again, so a burst of edits ends in one sync.
    - suppressed: paths the engine itself just wrote. Their change events are
      dropped until ``suppress_ms`` after the write completed, which is what
      stops master and source from rewriting each other forever.

    Rename and delete are not debounced; they are propagated right away.
    """

    def __init__(
        self,
        engine: SyncEngine,
        debounce_ms: int = 250,
        suppress_ms: int = 700,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.engine = engine
        self.debounce_ms = debounce_ms
        self.suppress_ms = suppress_ms
        self.clock = clock

        self._pending: dict[str, float] = {}
        self._suppressed: dict[str, float] = {}
        self._reconciling: set[str] = set()
        self._lock = threading.Lock()
        # serializes engine passes between the poll loop and observer thread
        self._sync_lock = threading.RLock()

        engine.write_guard = self.suppression

    # -- suppression -------------------------------------------------------

    @contextmanager
    def suppression(self, path: str) -> Iterator[None]:
        """Suppress ``path`` while it is written and for the window after."""
        with self._lock:
            self._suppressed[path] = math.inf
        try:
            yield
        finally:
            with self._lock:
                self._suppressed[path] = self.clock() + self.suppress_ms / 1000

    def is_suppressed(self, path: str) -> bool:
        with self._lock:
            until = self._suppressed.get(path)
            if until is None:
                return False
            if self.clock() >= until:
                del self._suppressed[path]
                return False
            return True

    # -- debounce ----------------------------------------------------------

    def state(self, path: str) -> PathState:
        with self._lock:
            if path in self._reconciling:
                return PathState.RECONCILING
            if path in self._pending:
                return PathState.DEBOUNCED
            return PathState.IDLE

    def notify_modified(self, path: str) -> bool:
        """Schedule a sync of ``path``. Returns False if the event was suppressed."""
        if self.is_suppressed(path):
            return False
        with self._lock:
            self._pending[path] = self.clock() + self.debounce_ms / 1000
        return True

    def _take_due(self, force: bool) -> list[str]:
        now = self.clock()
        with self._lock:
            due = [p for p, deadline in self._pending.items() if force or deadline <= now]
            for p in due:
                del self._pending[p]
                self._reconciling.add(p)
        return due

    def flush_due(self, force: bool = False) -> dict[str, list[str]]:
        """
        Sync every path whose quiet interval has elapsed.

        Returns written paths per synced path. A failing path is logged and
        does not stop the others.
        """
        results: dict[str, list[str]] = {}
        for path in self._take_due(force):
            try:
                with self._sync_lock:
                    results[path] = self.engine.sync_path(path)
            except Exception:
                logger.exception("Sync of %s failed", path)
            finally:
                with self._lock:
                    self._reconciling.discard(path)
        return results

    # -- structural changes ------------------------------------------------

    def notify_renamed(self, old_path: str, new_path: str) -> list[str]:
        with self._lock:
            deadline = self._pending.pop(old_path, None)
            if deadline is not None:
                self._pending[new_path] = deadline
        try:
            with self._sync_lock:
                return self.engine.propagate_rename(old_path, new_path)
        except Exception:
            logger.exception("Rename %s -> %s could not be propagated", old_path, new_path)
            return []

    def notify_deleted(self, path: str) -> list[str]:
        with self._lock:
            self._pending.pop(path, None)
        try:
            with self._sync_lock:
                return self.engine.propagate_delete(path)
        except Exception:
            logger.exception("Delete of %s could not be propagated", path)
            return []

    def close(self) -> None:
        with self._lock:
            self._pending.clear()
            self._suppressed.clear()
            self._reconciling.clear()


class VaultEventHandler(FileSystemEventHandler):
    """Feeds watchdog events for vault markdown files into a SyncController."""

    def __init__(self, storage: FsStorage, controller: SyncController):
        super().__init__()
        self.storage = storage
        self.controller = controller

    def _should_skip(self, path: Path) -> bool:
        """Check if file should be skipped."""
        name = path.name

        if name.startswith("."):
            return True

        # temp/swap files
        if name.endswith("~") or name.endswith(".swp") or name.startswith(".#"):
            return True

        if not name.lower().endswith(".md"):
            return True

        return False

    def _vault_path(self, raw: Any) -> str | None:
        path = Path(os.fsdecode(raw))
        if self._should_skip(path):
            return None
        rel = self.storage.relpath(path)
        if rel is None or any(part.startswith(".") for part in rel.split("/")):
            return None
        return rel

    def on_created(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        path = self._vault_path(event.src_path)
        if path:
            self.controller.notify_modified(path)

    def on_modified(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        path = self._vault_path(event.src_path)
        if path:
            self.controller.notify_modified(path)

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        old = self._vault_path(event.src_path)
        new = self._vault_path(event.dest_path)
        if old and new:
            self.controller.notify_renamed(old, new)
        elif new:
            # editors that save via a temp file and rename it over the note
            self.controller.notify_modified(new)
        elif old:
            self.controller.notify_deleted(old)

    def on_deleted(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        path = self._vault_path(event.src_path)
        if path:
            self.controller.notify_deleted(path)


def watch_vault(
    runtime: Any,
    quiet: bool = False,
    json_output: bool = False,
) -> int:
    """
    Watch the vault and keep masters and sources in sync until interrupted.

    Args:
        runtime: Runtime with storage, engine and controller
        quiet: Suppress output
        json_output: Output JSON events instead of human-readable

    Returns:
        Exit code
    """
    vault_path: Path = runtime.storage.root
    if not vault_path.exists():
        print(f"Error: Vault not found: {vault_path}", file=sys.stderr)
        return 1

    controller: SyncController = runtime.controller
    runtime.engine.ensure_master_files()
    poll_s = runtime.config.timing.poll_ms / 1000

    running = True

    def report(results: dict[str, list[str]]) -> None:
        for path, written in results.items():
            if json_output:
                print(json.dumps({"type": "sync", "path": path, "written": written}), flush=True)
            elif not quiet and written:
                print(f"Synced {path} -> {', '.join(written)}", flush=True)

    def signal_handler(signum: int, frame: Any) -> None:
        nonlocal running
        running = False
        if not quiet and not json_output:
            print("\nShutting down...", flush=True)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    handler = VaultEventHandler(runtime.storage, controller)
    observer = Observer()
    observer.schedule(handler, str(vault_path), recursive=True)

    if not quiet and not json_output:
        types = ", ".join(runtime.engine.tracked_types)
        print(
            f"Watching {vault_path} for [{types}] "
            f"(debounce: {controller.debounce_ms}ms, suppress: {controller.suppress_ms}ms)",
            flush=True,
        )
        print("Press Ctrl+C to stop", flush=True)

    observer.start()

    try:
        while running:
            time.sleep(poll_s)
            report(controller.flush_due())
    finally:
        # pending edits still get synced before shutdown
        report(controller.flush_due(force=True))
        observer.stop()
        observer.join()
        controller.close()

    if not quiet and not json_output:
        print("Watch stopped", flush=True)

    return 0
