"""Rendering of master chunks back to their on-disk line format."""

import re
from collections.abc import Iterable, Sequence
from urllib.parse import quote, unquote

from .model import ChunkEntry

# Characters JavaScript's encodeURI leaves alone, so links stay readable and
# match what other tools in the vault produce.
URI_SAFE = ";,/?:@&=+$-_.!~*'()#"


def escape_label(text: str) -> str:
    """Backslash-escape square brackets so a label cannot close the link early."""
    return re.sub(r"([\[\]])", r"\\\1", text)


def unescape_label(text: str) -> str:
    return re.sub(r"\\([\[\]])", r"\1", text)


def encode_uri(path: str) -> str:
    return quote(path, safe=URI_SAFE)


def decode_uri(path: str) -> str:
    """Percent-decode; malformed escapes leave the path as written."""
    try:
        return unquote(path, errors="strict")
    except UnicodeDecodeError:
        return path


def build_chunk_lines(
    display: str, source_path: str, block_id: str, body_lines: Sequence[str]
) -> list[str]:
    """
    Render one chunk: ``[display](path#^id)``, the body, then one blank line.

    The trailing blank keeps chunks visually apart and gives the master
    parser an unambiguous boundary.
    """
    header = f"[{escape_label(display)}]({encode_uri(source_path)}#^{block_id})"
    return [header, *body_lines, ""]


def build_entry_lines(entry: ChunkEntry) -> list[str]:
    return build_chunk_lines(
        entry.display, entry.source_path, entry.block_id, entry.body_lines
    )


def render_master(entries: Iterable[ChunkEntry]) -> list[str]:
    """Lines of a whole master document, in the order given."""
    lines: list[str] = []
    for entry in entries:
        lines.extend(build_entry_lines(entry))
    return lines
