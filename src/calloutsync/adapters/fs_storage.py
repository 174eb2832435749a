from pathlib import Path
from typing import Iterable

from ..core.model import Stat
from ..core.ports import StorageStrategy
from ..core.utils import normalize_path
from ..errors import AlreadyExistsError, OutsideVaultError


class FsStorage(StorageStrategy):
    """Vault on the local filesystem; paths are relative to ``root``."""

    def __init__(self, root: Path):
        self.root = root

    def _path(self, path: str) -> Path:
        p = self.root / normalize_path(path)
        try:
            p.resolve().relative_to(self.root.resolve())
        except ValueError:
            raise OutsideVaultError(normalize_path(path)) from None
        return p

    def relpath(self, p: Path) -> str | None:
        """Vault path for an absolute filesystem path, None if outside the vault."""
        try:
            rel = Path(p).resolve().relative_to(self.root.resolve())
        except ValueError:
            return None
        return normalize_path(rel.as_posix())

    def stat(self, path: str) -> Stat | None:
        try:
            p = self._path(path)
        except OutsideVaultError:
            return None
        if p.is_dir():
            return Stat(type="folder")
        if p.is_file():
            return Stat(type="file")
        return None

    def read(self, path: str) -> str:
        with open(self._path(path), encoding="utf-8", newline="") as f:
            return f.read()

    def write(self, path: str, text: str) -> None:
        p = self._path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        with open(p, "w", encoding="utf-8", newline="") as f:
            f.write(text)

    def create(self, path: str, text: str) -> None:
        p = self._path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        try:
            with open(p, "x", encoding="utf-8", newline="") as f:
                f.write(text)
        except FileExistsError as e:
            raise AlreadyExistsError(normalize_path(path)) from e

    def create_folder(self, path: str) -> None:
        try:
            self._path(path).mkdir(parents=True)
        except FileExistsError as e:
            raise AlreadyExistsError(normalize_path(path)) from e

    def list_markdown_documents(self) -> Iterable[str]:
        if not self.root.exists():
            return []
        out = []
        for p in self.root.rglob("*"):
            rel = p.relative_to(self.root)
            # skip .obsidian, .git, .trash and dotfiles
            if any(part.startswith(".") for part in rel.parts):
                continue
            if p.is_file() and p.suffix.lower() == ".md":
                out.append(normalize_path(rel.as_posix()))
        return sorted(out)

    def normalize_path(self, path: str) -> str:
        return normalize_path(path)
