"""Tests for callout skeleton insertion."""

from calloutsync.adapters.callout_parser import CalloutParser
from calloutsync.core.model import Cursor
from calloutsync.editor import TextBufferEditor, callout_skeleton, insert_callout
from conftest import FixedIds


def test_skeleton_todo_and_other_types():
    """Todo items get a checkbox, other types a plain bullet."""
    assert callout_skeleton("todo", "abc") == ("> [!todo]\n> - [ ] \n\n^abc\n\n", "> - [ ] ")
    assert callout_skeleton("questions", "abc") == ("> [!questions]\n> - \n\n^abc\n\n", "> - ")


def test_insert_at_end_of_note():
    """Appending places the cursor after the checkbox on the item line."""
    editor = TextBufferEditor("# Note\n")

    block_id = insert_callout(editor, "todo", FixedIds("new00001"))

    assert block_id == "new00001"
    assert editor.text == "# Note\n> [!todo]\n> - [ ] \n\n^new00001\n\n"
    assert editor.get_cursor() == Cursor(line=2, ch=len("> - [ ] "))


def test_insert_in_middle_keeps_following_text():
    """Text after the cursor moves below the skeleton."""
    editor = TextBufferEditor("one\ntwo\n", cursor=Cursor(line=1, ch=0))

    insert_callout(editor, "questions", FixedIds("q0000001"))

    assert editor.text == "one\n> [!questions]\n> - \n\n^q0000001\n\ntwo\n"
    assert editor.get_cursor() == Cursor(line=2, ch=4)


def test_inserted_callout_is_parsed_with_its_id():
    """The skeleton is a well-formed tracked callout that needs no new id."""
    editor = TextBufferEditor("")
    insert_callout(editor, "todo", FixedIds("sk000001"))

    result = CalloutParser(FixedIds()).parse(editor.text, ["todo"])

    assert result.text == editor.text
    assert [c.block_id for c in result.callouts] == ["sk000001"]
    assert result.callouts[0].body_lines == ("- [ ] ",)
