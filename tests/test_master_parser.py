"""Tests for master chunk parsing and chunk rendering."""

from calloutsync.adapters.master_parser import MasterParser, parse_header
from calloutsync.core.model import ChunkEntry
from calloutsync.core.render import build_chunk_lines, decode_uri, encode_uri, render_master
from calloutsync.core.utils import join_lines


def test_parse_header_markdown_form():
    """Markdown links are URI-decoded and normalized."""
    h = parse_header("[My Note](folder/My%20Note.md#^abc123)")
    assert h is not None
    assert (h.display, h.path, h.block_id, h.format) == ("My Note", "folder/My Note.md", "abc123", "md")


def test_parse_header_wiki_form():
    """Wiki links carry path, id and display."""
    h = parse_header("[[folder\\Temples.md#^123kl98|Temples]]")
    assert h is not None
    assert (h.display, h.path, h.block_id, h.format) == ("Temples", "folder/Temples.md", "123kl98", "wiki")


def test_parse_header_rejects_other_lines():
    """Ordinary links and text are never headers."""
    assert parse_header("[site](https://example.com)") is None
    assert parse_header("see [x](x.md#^id) inline") is None
    assert parse_header("[[Note]]") is None
    assert parse_header("[[Note#Heading|x]]") is None
    assert parse_header("") is None


def test_parse_header_malformed_escape_kept():
    """Undecodable escapes leave the path as written."""
    h = parse_header("[X](bad%E0%A4.md#^id1)")
    assert h is not None
    assert h.path == "bad%E0%A4.md"


def test_parse_chunks():
    """Chunks span to the next header; trailing blanks are in the span only."""
    text = (
        "# Todo master\n"
        "\n"
        "[A](A.md#^a1)\n"
        "- [ ] one\n"
        "\n"
        "- [ ] two\n"
        "\n"
        "\n"
        "[[sub/B.md#^b1|B]]\n"
        "- [x] three\n"
    )
    parsed = MasterParser().parse(text)

    assert len(parsed.chunks) == 2
    a, b = parsed.chunks
    assert (a.display, a.source_path, a.block_id) == ("A", "A.md", "a1")
    assert a.body_lines == ("- [ ] one", "", "- [ ] two")
    assert (a.start, a.end) == (2, 8)
    assert (b.display, b.source_path, b.block_id) == ("B", "sub/B.md", "b1")
    assert b.body_lines == ("- [x] three",)
    assert (b.start, b.end) == (8, 10)
    assert parsed.lines[0] == "# Todo master"


def test_parse_empty_master():
    """An empty master has no lines and no chunks."""
    parsed = MasterParser().parse("")
    assert parsed.lines == []
    assert parsed.chunks == []


def test_encode_uri_matches_link_form():
    """Spaces and non-ASCII are escaped, path separators are not."""
    assert encode_uri("folder/My Note.md") == "folder/My%20Note.md"
    assert encode_uri("Café.md") == "Caf%C3%A9.md"
    assert decode_uri(encode_uri("a b/Café (1).md")) == "a b/Café (1).md"


def test_build_chunk_lines():
    """A chunk is header, body and one blank line."""
    lines = build_chunk_lines("Shopping", "Shopping.md", "abc12345", ["- [ ] buy milk"])
    assert lines == ["[Shopping](Shopping.md#^abc12345)", "- [ ] buy milk", ""]


def test_render_single_entry_master():
    """A rebuilt master with one callout."""
    entry = ChunkEntry("Shopping", "Shopping.md", "abc12345", ("- [ ] buy milk",))
    assert join_lines(render_master([entry])) == "[Shopping](Shopping.md#^abc12345)\n- [ ] buy milk\n\n"


def test_rendered_chunks_parse_back():
    """Rendered chunks are recognized with their original fields."""
    entries = [
        ChunkEntry("My Note", "dir/My Note.md", "x1", ("line", "", "more")),
        ChunkEntry("Other", "Other.md", "y2", ()),
    ]
    parsed = MasterParser().parse(join_lines(render_master(entries)))

    got = [(c.display, c.source_path, c.block_id, c.body_lines) for c in parsed.chunks]
    assert got == [
        ("My Note", "dir/My Note.md", "x1", ("line", "", "more")),
        ("Other", "Other.md", "y2", ()),
    ]


def test_bracketed_label_is_escaped_and_parses_back():
    """Brackets in a note name do not break the chunk header."""
    lines = build_chunk_lines("a]b [draft]", "a]b [draft].md", "k0000001", ["x"])
    assert lines[0] == r"[a\]b \[draft\]](a%5Db%20%5Bdraft%5D.md#^k0000001)"

    head = parse_header(lines[0])
    assert head is not None
    assert head.display == "a]b [draft]"
    assert head.path == "a]b [draft].md"


def test_adjacent_headers_each_start_a_chunk():
    """A header right after another ends the previous chunk with no body."""
    parsed = MasterParser().parse("[A](A.md#^a1)\n[B](B.md#^b1)\nbody\n")

    assert [(c.block_id, c.start, c.end, c.body_lines) for c in parsed.chunks] == [
        ("a1", 0, 1, ()),
        ("b1", 1, 3, ("body",)),
    ]
