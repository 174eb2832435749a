"""Insertion of a fresh callout skeleton at the cursor."""

from .core.model import Cursor
from .core.ports import EditorSurface, IdGenerator
from .core.utils import join_lines, split_lines


def callout_skeleton(type_: str, block_id: str) -> tuple[str, str]:
    """Return ``(snippet, item_prefix)`` for a new callout of ``type_``."""
    item_prefix = "> - [ ] " if type_ == "todo" else "> - "
    # blank lines around ^id keep the block reference valid
    snippet = f"> [!{type_}]\n{item_prefix}\n\n^{block_id}\n\n"
    return snippet, item_prefix


def insert_callout(editor: EditorSurface, type_: str, idgen: IdGenerator) -> str:
    """
    Insert a new callout at the cursor and move the cursor onto its item line.

    Returns the block id of the new callout.
    """
    block_id = idgen.new_id()
    snippet, item_prefix = callout_skeleton(type_, block_id)
    cursor = editor.get_cursor()
    editor.insert_text_at(cursor, snippet)
    editor.set_cursor(Cursor(line=cursor.line + 1, ch=len(item_prefix)))
    return block_id


class TextBufferEditor(EditorSurface):
    """EditorSurface over a document's text, for use outside an interactive editor."""

    def __init__(self, text: str, cursor: Cursor | None = None):
        self.lines = split_lines(text)
        self.final_eol = text.endswith("\n") or not text
        self.cursor = cursor or Cursor(line=len(self.lines), ch=0)

    @property
    def text(self) -> str:
        return join_lines(self.lines, final_eol=self.final_eol)

    def get_cursor(self) -> Cursor:
        return self.cursor

    def set_cursor(self, position: Cursor) -> None:
        self.cursor = position

    def insert_text_at(self, position: Cursor, text: str) -> None:
        line = min(max(position.line, 0), len(self.lines))
        current = self.lines[line] if line < len(self.lines) else ""
        ch = min(max(position.ch, 0), len(current))
        merged = current[:ch] + text + current[ch:]
        new_lines = merged.split("\n")
        if line >= len(self.lines):
            # inserting past the last line: the snippet's final newline ends it
            if new_lines and new_lines[-1] == "":
                new_lines.pop()
            self.lines.extend(new_lines)
            self.final_eol = True
        else:
            self.lines[line:line + 1] = new_lines
