from typing import Iterable, Protocol
from .model import Cursor, DocPath, ParsedMaster, ParsedSource, Stat


class StorageStrategy(Protocol):
    """
    Document store addressed by vault-relative paths ("folder/Note.md").

    Paths that escape the vault do not exist for ``stat``; every other
    operation rejects them with ``OutsideVaultError``.
    """

    def stat(self, path: DocPath) -> Stat | None:
        pass

    def read(self, path: DocPath) -> str:
        pass

    def write(self, path: DocPath, text: str) -> None:
        """Overwrite, creating the document (and its folders) if absent."""
        pass

    def create(self, path: DocPath, text: str) -> None:
        """Create a new document; AlreadyExistsError if something is there."""
        pass

    def create_folder(self, path: DocPath) -> None:
        pass

    def list_markdown_documents(self) -> Iterable[DocPath]:
        pass

    def normalize_path(self, path: str) -> DocPath:
        pass


class CalloutParserStrategy(Protocol):
    """
    Extract tracked callouts from a source document. MUST be total over
    arbitrary text.
    """

    def parse(
        self, text: str, tracked_types: Iterable[str], auto_assign_ids: bool = True
    ) -> ParsedSource:
        pass


class MasterParserStrategy(Protocol):
    def parse(self, text: str) -> ParsedMaster:
        pass


class IdGenerator(Protocol):
    def new_id(self) -> str:
        pass


class EditorSurface(Protocol):
    """
    Interactive text surface; only used to insert a callout skeleton.
    """

    def get_cursor(self) -> Cursor:
        pass

    def insert_text_at(self, position: Cursor, text: str) -> None:
        pass

    def set_cursor(self, position: Cursor) -> None:
        pass
