import re
from dataclasses import dataclass

from ..core.model import MasterChunk, ParsedMaster
from ..core.ports import MasterParserStrategy
from ..core.render import decode_uri, unescape_label
from ..core.utils import normalize_path, split_lines, trim_trailing_blank

# [Temples](temples.md#^123kl98), brackets in the label escaped as \]
MD_LINK_RE = re.compile(r"^\[((?:\\.|[^\]\\])+)\]\((.+?)#\^([A-Za-z0-9_-]+)\)\s*$")
# [[temples.md#^123kl98|Temples]]
WIKI_LINK_RE = re.compile(r"^\[\[([^|\]]+?)#\^([A-Za-z0-9_-]+)\|([^\]]+?)\]\]\s*$")


@dataclass(frozen=True)
class ChunkHeader:
    display: str
    path: str
    block_id: str
    format: str  # "md" | "wiki"


def parse_header(line: str) -> ChunkHeader | None:
    line = line.strip()

    m = MD_LINK_RE.match(line)
    if m:
        display, raw_path, block_id = m.groups()
        return ChunkHeader(
            unescape_label(display), normalize_path(decode_uri(raw_path)), block_id, "md"
        )

    w = WIKI_LINK_RE.match(line)
    if w:
        raw_path, block_id, display = w.groups()
        return ChunkHeader(display, normalize_path(decode_uri(raw_path)), block_id, "wiki")

    return None


class MasterParser(MasterParserStrategy):
    def parse(self, text: str) -> ParsedMaster:
        lines = split_lines(text)
        headers: list[tuple[int, ChunkHeader]] = []
        for i, ln in enumerate(lines):
            head = parse_header(ln)
            if head is not None:
                headers.append((i, head))

        chunks: list[MasterChunk] = []
        for n, (start, head) in enumerate(headers):
            end = headers[n + 1][0] if n + 1 < len(headers) else len(lines)
            chunks.append(
                MasterChunk(
                    display=head.display,
                    source_path=head.path,
                    block_id=head.block_id,
                    body_lines=tuple(trim_trailing_blank(lines[start + 1:end])),
                    start=start,
                    end=end,
                )
            )

        return ParsedMaster(lines=lines, chunks=chunks)
