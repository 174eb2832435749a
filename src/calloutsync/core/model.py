from __future__ import annotations
from dataclasses import dataclass, field
from typing import Literal

DocPath = str  # vault-relative, normalized, "/"-separated
BlockId = str


@dataclass(frozen=True)
class Callout:
    type: str  # lowercased tag, e.g. "todo"
    block_id: BlockId
    body_lines: tuple[str, ...]  # unquoted, trailing blanks trimmed
    start_line: int  # header line
    quote_end_line: int  # first line after the quoted body (exclusive)
    id_line: int | None = None


@dataclass(frozen=True)
class MasterChunk:
    display: str
    source_path: DocPath
    block_id: BlockId
    body_lines: tuple[str, ...]
    start: int  # header line
    end: int  # exclusive, includes trailing blank lines

    @property
    def key(self) -> tuple[DocPath, BlockId]:
        return (self.source_path, self.block_id)


@dataclass(frozen=True)
class ChunkEntry:
    """What a master chunk is rendered from."""
    display: str
    source_path: DocPath
    block_id: BlockId
    body_lines: tuple[str, ...]


@dataclass(frozen=True)
class LineOp:
    start: int
    end: int  # exclusive
    insert: tuple[str, ...] = ()


@dataclass(frozen=True)
class ParsedSource:
    text: str  # input text, or patched text when ids were inserted
    callouts: list[Callout] = field(default_factory=list)


@dataclass(frozen=True)
class ParsedMaster:
    lines: list[str]
    chunks: list[MasterChunk] = field(default_factory=list)


@dataclass(frozen=True)
class Stat:
    type: Literal["file", "folder"]


@dataclass(frozen=True)
class Cursor:
    line: int
    ch: int
