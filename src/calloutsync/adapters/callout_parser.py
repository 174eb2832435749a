import re
from collections.abc import Iterable

from ..core.model import Callout, ParsedSource
from ..core.ports import CalloutParserStrategy, IdGenerator
from ..core.utils import (
    is_blank,
    is_quoted,
    join_lines,
    parse_block_id,
    split_lines,
    strip_quote_marker,
    trim_trailing_blank,
    uniq_lower,
)
from .idgen import Base36Id

# > [!todo]   > [!todo]+ Title   > [!todo]- Title
CALLOUT_START_RE = re.compile(r"^>\s*\[!([^\]\s]+)\]", re.IGNORECASE)

MAX_ID_ATTEMPTS = 32


def parse_callout_type(line: str) -> str | None:
    m = CALLOUT_START_RE.match(line)
    return m.group(1).lower() if m else None


class CalloutParser(CalloutParserStrategy):
    def __init__(self, idgen: IdGenerator | None = None):
        self.idgen = idgen or Base36Id()

    def _fresh_id(self, taken: set[str]) -> str:
        for _ in range(MAX_ID_ATTEMPTS):
            candidate = self.idgen.new_id()
            if candidate not in taken:
                taken.add(candidate)
                return candidate
        raise RuntimeError("could not generate an unused block id")

    def parse(
        self, text: str, tracked_types: Iterable[str], auto_assign_ids: bool = True
    ) -> ParsedSource:
        tracked = set(uniq_lower(tracked_types))
        lines = split_lines(text)
        taken = {bid for bid in map(parse_block_id, lines) if bid}
        callouts: list[Callout] = []
        inserted = False

        i = 0
        while i < len(lines):
            type_ = parse_callout_type(lines[i])
            if not type_ or type_ not in tracked:
                i += 1
                continue

            start_line = i
            j = i + 1
            body: list[str] = []
            while j < len(lines) and is_quoted(lines[j]):
                body.append(strip_quote_marker(lines[j]))
                j += 1
            quote_end_line = j

            k = quote_end_line
            while k < len(lines) and is_blank(lines[k]):
                k += 1
            block_id = parse_block_id(lines[k]) if k < len(lines) else None
            id_line = k if block_id else None

            if block_id is None:
                if not auto_assign_ids:
                    i = quote_end_line
                    continue

                block_id = self._fresh_id(taken)
                insert_at = quote_end_line
                # blank line before the id: reuse one directly after the body
                if insert_at < len(lines) and is_blank(lines[insert_at]):
                    insert_at += 1
                else:
                    lines.insert(insert_at, "")
                    insert_at += 1
                lines.insert(insert_at, f"^{block_id}")
                id_line = insert_at
                if id_line + 1 >= len(lines) or not is_blank(lines[id_line + 1]):
                    lines.insert(id_line + 1, "")
                inserted = True

            callouts.append(
                Callout(
                    type=type_,
                    block_id=block_id,
                    body_lines=tuple(trim_trailing_blank(body)),
                    start_line=start_line,
                    quote_end_line=quote_end_line,
                    id_line=id_line,
                )
            )
            i = id_line + 1

        if not inserted:
            return ParsedSource(text=text, callouts=callouts)
        return ParsedSource(
            text=join_lines(lines, final_eol=text.endswith("\n")), callouts=callouts
        )
