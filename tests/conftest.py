"""Shared fixtures for calloutsync tests."""

import os
import subprocess
import sys
import tempfile
from pathlib import Path

import pytest

from calloutsync.adapters.callout_parser import CalloutParser
from calloutsync.adapters.fs_storage import FsStorage
from calloutsync.engine import SyncEngine

SRC = str(Path(__file__).resolve().parent.parent / "src")


def run_cli(*args: str, cwd: str | None = None) -> subprocess.CompletedProcess:
    """Run csync in a subprocess against the source tree."""
    env = dict(os.environ)
    env["PYTHONPATH"] = SRC + os.pathsep + env.get("PYTHONPATH", "")
    return subprocess.run(
        [sys.executable, "-m", "calloutsync.cli", *args],
        capture_output=True,
        text=True,
        env=env,
        cwd=cwd,
    )


class FixedIds:
    """IdGenerator handing out predetermined ids in order."""

    def __init__(self, *ids: str):
        self.ids = list(ids)

    def new_id(self) -> str:
        return self.ids.pop(0)


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms / 1000


@pytest.fixture
def temp_vault():
    """Temporary vault directory with filesystem storage."""
    with tempfile.TemporaryDirectory() as tmpdir:
        vault_path = Path(tmpdir) / "vault"
        vault_path.mkdir()
        yield vault_path, FsStorage(vault_path)


@pytest.fixture
def engine(temp_vault):
    """Engine tracking todo and questions with masters at the vault root."""
    _, storage = temp_vault
    eng = SyncEngine(
        storage,
        ["todo", "questions"],
        callout_parser=CalloutParser(FixedIds(*[f"id{n:06d}" for n in range(1, 50)])),
    )
    eng.ensure_master_files()
    return eng
