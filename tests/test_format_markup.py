"""Tests for capture markup builders and previews."""

import uuid

from noot.adapters.markdown_parser import parse_document
from noot.core.model import Image, NoteLink, Video
from noot.format import (
    append_markup,
    first_line,
    note_link_markup,
    preview,
    recording_markup,
    screenshot_markup,
    strip_markup,
)

NID = uuid.UUID("11111111-1111-1111-1111-111111111111")


def test_screenshot_markup_parses_back():
    markup = screenshot_markup("/tmp/screenshot_1.png")
    assert markup == "![](file:///tmp/screenshot_1.png)"
    assert parse_document(markup) == [Image("/tmp/screenshot_1.png")]


def test_screenshot_markup_keeps_existing_prefix():
    assert screenshot_markup("file:///tmp/a.png") == "![](file:///tmp/a.png)"


def test_recording_markup_parses_back():
    markup = recording_markup("/tmp/rec.mov")
    assert markup == "\U0001F3AC [Recording](file:///tmp/rec.mov)"
    assert parse_document(markup) == [Video("/tmp/rec.mov")]


def test_note_link_markup():
    """Test caption truncation and fallback."""
    assert note_link_markup(NID, "Groceries\nmilk") == f"[[{NID}|Groceries]]"
    assert note_link_markup(NID, "abcdef", length=3) == f"[[{NID}|abc]]"
    assert note_link_markup(NID, "") == f"[[{NID}|Note]]"


def test_note_link_markup_strips_token_characters():
    """Test that captions cannot terminate the token early."""
    markup = note_link_markup(NID, "a|b]c")
    assert markup == f"[[{NID}|abc]]"
    assert parse_document(markup) == [NoteLink(NID, "abc")]


def test_append_block_markup():
    assert append_markup("", "![](x)") == "![](x)\n"
    assert append_markup("text", "![](x)") == "text\n![](x)\n"
    assert append_markup("text\n", "![](x)") == "text\n![](x)\n"


def test_append_inline_markup():
    assert append_markup("see", "[[x|y]]", block=False) == "see [[x|y]]"
    assert append_markup("see ", "[[x|y]]", block=False) == "see [[x|y]]"
    assert append_markup("", "[[x|y]]", block=False) == "[[x|y]]"


def test_first_line():
    assert first_line("  hello  \nworld") == "hello"
    assert first_line("") == ""


def test_strip_markup_removes_tokens():
    text = f"a ![](x.png) b \U0001F3AC [r](y.mov) c [[{NID}|n]] [[junk]]"
    assert strip_markup(text) == "a  b  c  "


def test_preview_skips_media_and_collapses_whitespace():
    assert preview("![](file:///tmp/a.png)\nCall Bob\n\nabout lunch") == "Call Bob about lunch"
    assert preview("abcdef", length=3) == "abc"
