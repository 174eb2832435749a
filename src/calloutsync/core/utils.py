"""Line-model helpers shared by the parsers and the reconciler."""

import re
import unicodedata
from collections.abc import Iterable, Sequence
from pathlib import PurePosixPath

from .model import LineOp

LINE_SPLIT_RE = re.compile(r"\r?\n")
QUOTE_MARKER_RE = re.compile(r"^\s*>\s?")
BLOCK_ID_RE = re.compile(r"^\^([A-Za-z0-9_-]+)$")


def strip_quote_marker(line: str) -> str:
    """Remove one leading ``>`` and at most one whitespace character after it."""
    return QUOTE_MARKER_RE.sub("", line, count=1)


def is_quoted(line: str) -> bool:
    return line.lstrip().startswith(">")


def is_blank(line: str) -> bool:
    return line.strip() == ""


def quote_lines(lines: Iterable[str]) -> list[str]:
    """
    Wrap body lines for a blockquote.

    A blank line becomes a bare ``>`` so it stays inside the quote.
    """
    return [">" if is_blank(line) else f"> {line}" for line in lines]


def trim_trailing_blank(lines: Sequence[str]) -> list[str]:
    out = list(lines)
    while out and is_blank(out[-1]):
        out.pop()
    return out


def parse_block_id(line: str) -> str | None:
    """
    Return the token of an identifier line (``^abc123``), else None.

    Examples:
        >>> parse_block_id("^k3j9x0qa")
        'k3j9x0qa'
        >>> parse_block_id("text ^k3j9x0qa") is None
        True
    """
    m = BLOCK_ID_RE.match(line.strip())
    return m.group(1) if m else None


def split_lines(text: str) -> list[str]:
    """
    Split text into lines.

    The final newline terminates the last line rather than opening an empty
    one, so ``split_lines("a\\n") == ["a"]`` and ``split_lines("") == []``.
    """
    if not text:
        return []
    lines = LINE_SPLIT_RE.split(text)
    if lines[-1] == "":
        lines.pop()
    return lines


def join_lines(lines: Sequence[str], final_eol: bool = True) -> str:
    out = "\n".join(lines)
    if lines and final_eol:
        out += "\n"
    return out


def apply_ops(lines: Sequence[str], ops: Iterable[LineOp]) -> list[str]:
    """
    Apply line-range replacements to a copy of ``lines``.

    Ops are applied highest ``start`` first, so a splice never shifts the
    range of an op that is still pending. Ops must not overlap.
    """
    out = list(lines)
    for op in sorted(ops, key=lambda o: o.start, reverse=True):
        out[op.start:op.end] = op.insert
    return out


def uniq_lower(values: Iterable[str]) -> list[str]:
    """Trim, lowercase and dedupe, keeping first-seen order; drop empties."""
    seen: dict[str, None] = {}
    for v in values:
        key = str(v or "").strip().lower()
        if key:
            seen.setdefault(key, None)
    return list(seen)


def normalize_path(path: str) -> str:
    """
    Canonical vault path: ``/`` separators, no duplicate, leading or trailing
    slashes, NBSP folded to space, NFC unicode.

    Examples:
        >>> normalize_path("notes\\\\Daily//2024.md")
        'notes/Daily/2024.md'
    """
    path = path.replace("\\", "/").replace("\u00a0", " ")
    path = re.sub(r"/+", "/", path).strip("/")
    return unicodedata.normalize("NFC", path)


def display_name(path: str) -> str:
    """Basename without extension, used as the link label in masters."""
    return PurePosixPath(path).stem
