"""Sync engine: runs reconciliation passes against the document store."""

import logging
from collections.abc import Callable, Iterable
from contextlib import AbstractContextManager, nullcontext

from .adapters.callout_parser import CalloutParser
from .adapters.master_parser import MasterParser
from .core.model import Callout, ChunkEntry, MasterChunk
from .core.ports import CalloutParserStrategy, MasterParserStrategy, StorageStrategy
from .core.utils import display_name, uniq_lower
from .errors import AlreadyExistsError, NotAFileError, NotAFolderError, SetupError, SyncError
from .reconcile import (
    apply_master_edits,
    rebuild_master_text,
    remove_from_master,
    rename_in_master,
    update_master_text,
)

logger = logging.getLogger(__name__)

WriteGuard = Callable[[str], AbstractContextManager[None]]

# what a single unreadable or unwritable document can raise
STORAGE_ERRORS = (OSError, UnicodeDecodeError)


def _no_guard(path: str) -> AbstractContextManager[None]:
    return nullcontext()


class SyncEngine:
    """
    Keeps one master document per tracked callout type in sync with the vault.

    The engine holds no document state between calls: every pass reads the
    current text, computes line edits and writes only what changed. Writes go
    through ``write_guard`` so a watcher can ignore the change events they
    cause.
    """

    def __init__(
        self,
        storage: StorageStrategy,
        tracked_types: Iterable[str],
        master_folder: str = "",
        callout_parser: CalloutParserStrategy | None = None,
        master_parser: MasterParserStrategy | None = None,
        notify: Callable[[str], None] | None = None,
        write_guard: WriteGuard | None = None,
    ):
        self.storage = storage
        self.tracked_types = uniq_lower(tracked_types)
        self.master_folder = storage.normalize_path(master_folder) if master_folder else ""
        self.master_paths = {t: self.master_path_for(t) for t in self.tracked_types}
        self.callout_parser = callout_parser or CalloutParser()
        self.master_parser = master_parser or MasterParser()
        self.notify = notify or logger.warning
        self.write_guard = write_guard or _no_guard
        self._noticed: set[str] = set()

    # -- paths -----------------------------------------------------------

    def master_path_for(self, type_: str) -> str:
        name = f"{type_}.md"
        return self.storage.normalize_path(
            f"{self.master_folder}/{name}" if self.master_folder else name
        )

    def master_type_for(self, path: str) -> str | None:
        for type_, master_path in self.master_paths.items():
            if master_path == path:
                return type_
        return None

    def is_master(self, path: str) -> bool:
        return self.master_type_for(path) is not None

    # -- setup -----------------------------------------------------------

    def _notice_once(self, err: SetupError) -> None:
        if err.path in self._noticed:
            return
        self._noticed.add(err.path)
        self.notify(str(err))

    def _master_file(self, type_: str) -> str | None:
        """Master path of ``type_`` if it is a usable file, else None."""
        path = self.master_paths[type_]
        st = self.storage.stat(path)
        if st is None:
            return None
        if st.type != "file":
            self._notice_once(NotAFileError(path))
            return None
        return path

    def ensure_master_files(self) -> list[str]:
        """Create missing master documents (and their folder). Returns created paths."""
        if self.master_folder:
            st = self.storage.stat(self.master_folder)
            if st is None:
                try:
                    self.storage.create_folder(self.master_folder)
                except AlreadyExistsError:
                    pass
            elif st.type != "folder":
                self._notice_once(NotAFolderError(self.master_folder))
                return []

        created = []
        for path in self.master_paths.values():
            st = self.storage.stat(path)
            if st is not None:
                if st.type != "file":
                    self._notice_once(NotAFileError(path))
                continue
            try:
                self.storage.create(path, "")
                created.append(path)
                logger.info("Created master %s", path)
            except AlreadyExistsError:
                pass
        return created

    # -- writes ----------------------------------------------------------

    def write_if_changed(self, path: str, text: str) -> bool:
        current = self.storage.read(path) if self.storage.stat(path) else None
        if current == text:
            return False
        with self.write_guard(path):
            self.storage.write(path, text)
        logger.info("Updated %s", path)
        return True

    # -- sync passes -----------------------------------------------------

    def sync_path(self, path: str) -> list[str]:
        """Route a changed document to the right direction. Returns written paths."""
        path = self.storage.normalize_path(path)
        st = self.storage.stat(path)
        if st is None or st.type != "file":
            return []
        type_ = self.master_type_for(path)
        if type_ is not None:
            return self.sync_from_master(type_)
        return self.sync_from_source(path)

    def sync_from_source(self, path: str) -> list[str]:
        """
        Push the callouts of one source document into every master.

        Missing block ids are assigned and written back to the source first.
        Each type is attempted even if another fails; failures are re-raised
        together as a SyncError afterwards.
        """
        path = self.storage.normalize_path(path)
        if not self.tracked_types or self.is_master(path):
            return []

        raw = self.storage.read(path)
        parsed = self.callout_parser.parse(raw, self.tracked_types, auto_assign_ids=True)
        written = []
        if parsed.text != raw and self.write_if_changed(path, parsed.text):
            written.append(path)

        by_type: dict[str, list[Callout]] = {t: [] for t in self.tracked_types}
        for c in parsed.callouts:
            by_type.setdefault(c.type, []).append(c)

        failed: list[str] = []
        first_error: Exception | None = None
        for type_, callouts in by_type.items():
            try:
                if self._update_master_for_source(type_, path, callouts):
                    written.append(self.master_paths[type_])
            except STORAGE_ERRORS as e:
                logger.warning("Could not update %s from %s: %s", self.master_paths[type_], path, e)
                failed.append(self.master_paths[type_])
                first_error = first_error or e
        if failed:
            raise SyncError(path, failed) from first_error
        return written

    def _update_master_for_source(
        self, type_: str, source_path: str, callouts: list[Callout]
    ) -> bool:
        master_path = self._master_file(type_)
        if master_path is None:
            return False
        parsed = self.master_parser.parse(self.storage.read(master_path))
        if not callouts and not any(ch.source_path == source_path for ch in parsed.chunks):
            return False
        text = update_master_text(parsed, source_path, display_name(source_path), callouts)
        return self.write_if_changed(master_path, text)

    def sync_from_master(self, type_: str) -> list[str]:
        """
        Copy edited chunk bodies from a master back into their sources.

        Only callouts that already carry the chunk's block id are touched.
        """
        master_path = self._master_file(type_)
        if master_path is None:
            return []
        parsed = self.master_parser.parse(self.storage.read(master_path))

        by_source: dict[str, list[MasterChunk]] = {}
        for ch in parsed.chunks:
            by_source.setdefault(ch.source_path, []).append(ch)

        written: list[str] = []
        failed: list[str] = []
        first_error: Exception | None = None
        for source_path, chunks in by_source.items():
            if self.is_master(source_path):
                continue
            st = self.storage.stat(source_path)
            if st is None or st.type != "file":
                continue
            try:
                text = self.storage.read(source_path)
                found = self.callout_parser.parse(text, [type_], auto_assign_ids=False)
                updated = apply_master_edits(text, found.callouts, chunks)
                if updated != text and self.write_if_changed(source_path, updated):
                    written.append(source_path)
            except STORAGE_ERRORS as e:
                logger.warning("Could not update %s from %s: %s", source_path, master_path, e)
                failed.append(source_path)
                first_error = first_error or e
        if failed:
            raise SyncError(master_path, failed) from first_error
        return written

    def rebuild_all(self) -> dict[str, int]:
        """
        Regenerate every master from scratch.

        Existing master content is discarded. Sources missing block ids get
        them assigned and written back. Documents that cannot be read are
        skipped and counted under ``failed``.
        """
        counts = {"scanned": 0, "patched": 0, "callouts": 0, "written": 0, "failed": 0}
        gathered: dict[str, list[ChunkEntry]] = {t: [] for t in self.tracked_types}

        for path in self.storage.list_markdown_documents():
            if self.is_master(path):
                continue
            counts["scanned"] += 1
            try:
                raw = self.storage.read(path)
                parsed = self.callout_parser.parse(raw, self.tracked_types, auto_assign_ids=True)
                if parsed.text != raw and self.write_if_changed(path, parsed.text):
                    counts["patched"] += 1
            except STORAGE_ERRORS as e:
                logger.warning("Skipping %s during rebuild: %s", path, e)
                counts["failed"] += 1
                continue

            for c in parsed.callouts:
                if c.type not in gathered:
                    continue
                gathered[c.type].append(
                    ChunkEntry(display_name(path), path, c.block_id, c.body_lines)
                )
                counts["callouts"] += 1

        for type_, entries in gathered.items():
            master_path = self._master_file(type_)
            if master_path is None:
                continue
            try:
                if self.write_if_changed(master_path, rebuild_master_text(entries)):
                    counts["written"] += 1
            except STORAGE_ERRORS as e:
                logger.warning("Could not rebuild %s: %s", master_path, e)
                counts["failed"] += 1

        logger.info("Rebuilt masters: %s", counts)
        return counts

    def propagate_rename(self, old_path: str, new_path: str) -> list[str]:
        """Relink master chunks of a renamed source. Returns written masters."""
        old_path = self.storage.normalize_path(old_path)
        new_path = self.storage.normalize_path(new_path)
        if self.is_master(old_path):
            return []
        written = []
        for type_ in self.tracked_types:
            master_path = self._master_file(type_)
            if master_path is None:
                continue
            parsed = self.master_parser.parse(self.storage.read(master_path))
            text = rename_in_master(parsed, old_path, new_path, display_name(new_path))
            if text is not None and self.write_if_changed(master_path, text):
                written.append(master_path)
        return written

    def propagate_delete(self, path: str) -> list[str]:
        """Drop master chunks of a deleted source. Returns written masters."""
        path = self.storage.normalize_path(path)
        if self.is_master(path):
            return []
        written = []
        for type_ in self.tracked_types:
            master_path = self._master_file(type_)
            if master_path is None:
                continue
            parsed = self.master_parser.parse(self.storage.read(master_path))
            text = remove_from_master(parsed, path)
            if text is not None and self.write_if_changed(master_path, text):
                written.append(master_path)
        return written
