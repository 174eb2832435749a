"""
Pure reconciliation between source callouts and master chunks.

Every function here takes parsed records and returns new lines or text; none
of them touch storage. All edits are expressed as ``LineOp`` ranges against
the parsed line list and applied with ``apply_ops`` (highest start first) on a
fresh copy.
"""

from collections.abc import Iterable, Sequence

from .core.model import Callout, ChunkEntry, LineOp, MasterChunk, ParsedMaster
from .core.render import build_chunk_lines, render_master
from .core.utils import (
    apply_ops,
    join_lines,
    quote_lines,
    split_lines,
    trim_trailing_blank,
)


def first_by_id(callouts: Iterable[Callout]) -> dict[str, Callout]:
    """Index callouts by block id; the first occurrence of an id wins."""
    out: dict[str, Callout] = {}
    for c in callouts:
        out.setdefault(c.block_id, c)
    return out


def master_source_ops(
    chunks: Sequence[MasterChunk],
    source_path: str,
    display: str,
    callouts: Iterable[Callout],
) -> tuple[list[LineOp], list[str]]:
    """
    Ops that make the master's chunks for ``source_path`` match ``callouts``.

    Returns ``(ops, additions)``: replacements/removals for existing chunks and
    the rendered lines of chunks that do not exist yet. A second chunk with the
    same block id for the same source is removed.
    """
    desired = first_by_id(callouts)
    ops: list[LineOp] = []
    kept: set[str] = set()

    for ch in chunks:
        if ch.source_path != source_path:
            continue
        callout = desired.get(ch.block_id)
        if callout is None or ch.block_id in kept:
            ops.append(LineOp(ch.start, ch.end))
            continue
        kept.add(ch.block_id)
        new_lines = build_chunk_lines(display, source_path, callout.block_id, callout.body_lines)
        ops.append(LineOp(ch.start, ch.end, tuple(new_lines)))

    additions: list[str] = []
    for block_id, callout in desired.items():
        if block_id not in kept:
            additions.extend(
                build_chunk_lines(display, source_path, block_id, callout.body_lines)
            )
    return ops, additions


def update_master_lines(
    parsed: ParsedMaster, source_path: str, display: str, callouts: Iterable[Callout]
) -> list[str]:
    ops, additions = master_source_ops(parsed.chunks, source_path, display, callouts)
    lines = apply_ops(parsed.lines, ops)
    if additions:
        # exactly one blank line between existing content and the new block
        lines = trim_trailing_blank(lines)
        if lines:
            lines.append("")
        lines.extend(additions)
    return lines


def update_master_text(
    parsed: ParsedMaster, source_path: str, display: str, callouts: Iterable[Callout]
) -> str:
    return join_lines(update_master_lines(parsed, source_path, display, callouts))


def source_body_ops(
    callouts: Iterable[Callout], chunks: Iterable[MasterChunk]
) -> list[LineOp]:
    """
    Ops that copy chunk bodies into the matching callouts of one source.

    Only existing callouts are edited: a chunk without a matching callout is
    skipped, and nothing is ever added to or removed from the source. The
    first chunk for a block id wins. Callouts whose body already matches are
    left untouched.
    """
    by_id = first_by_id(callouts)
    ops: list[LineOp] = []
    done: set[str] = set()
    for ch in chunks:
        callout = by_id.get(ch.block_id)
        if callout is None or ch.block_id in done:
            continue
        done.add(ch.block_id)
        if tuple(ch.body_lines) == tuple(callout.body_lines):
            continue
        ops.append(
            LineOp(
                callout.start_line + 1,
                callout.quote_end_line,
                tuple(quote_lines(ch.body_lines)),
            )
        )
    return ops


def apply_master_edits(
    source_text: str, callouts: Iterable[Callout], chunks: Iterable[MasterChunk]
) -> str:
    """
    Rewrite callout bodies of ``source_text`` from master chunks.

    ``callouts`` must come from parsing ``source_text`` without assigning ids.
    Returns ``source_text`` unchanged when there is nothing to do.
    """
    ops = source_body_ops(callouts, chunks)
    if not ops:
        return source_text
    lines = apply_ops(split_lines(source_text), ops)
    return join_lines(lines, final_eol=source_text.endswith("\n"))


def rename_in_master(
    parsed: ParsedMaster, old_path: str, new_path: str, new_display: str
) -> str | None:
    """Relink chunks of ``old_path``; None when the master has none."""
    ops = [
        LineOp(
            ch.start,
            ch.end,
            tuple(build_chunk_lines(new_display, new_path, ch.block_id, ch.body_lines)),
        )
        for ch in parsed.chunks
        if ch.source_path == old_path
    ]
    if not ops:
        return None
    return join_lines(apply_ops(parsed.lines, ops))


def remove_from_master(parsed: ParsedMaster, path: str) -> str | None:
    """Drop chunks of ``path``; None when the master has none."""
    ops = [LineOp(ch.start, ch.end) for ch in parsed.chunks if ch.source_path == path]
    if not ops:
        return None
    return join_lines(apply_ops(parsed.lines, ops))


def rebuild_master_text(entries: Iterable[ChunkEntry]) -> str:
    """Render a master from scratch, ordered by source path then block id."""
    ordered = sorted(entries, key=lambda e: (e.source_path, e.block_id))
    return join_lines(render_master(ordered))
