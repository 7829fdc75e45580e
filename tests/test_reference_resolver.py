"""Tests for deriving note and attachment references from text."""

import uuid

from noot.adapters.reference_resolver import (
    ReferenceResolver,
    attachment_references,
    note_references,
)
from noot.adapters.markdown_parser import parse_document
from noot.core.model import AttachmentKind, AttachmentReference, NoteReference

SELF = uuid.UUID("00000000-0000-0000-0000-000000000001")
A = uuid.UUID("00000000-0000-0000-0000-00000000000a")
B = uuid.UUID("00000000-0000-0000-0000-00000000000b")
GHOST = uuid.UUID("00000000-0000-0000-0000-0000000000ff")


class CountingStore:
    """In-memory store recording every existence check."""

    def __init__(self, ids):
        self.ids = set(ids)
        self.calls = []

    def exists(self, id):
        self.calls.append(id)
        return id in self.ids

    def get(self, id):
        return None


def link(target, text="x"):
    return f"[[{target}|{text}]]"


def test_links_in_order_of_appearance():
    store = CountingStore({A, B})
    refs = note_references(SELF, parse_document(f"{link(B)} then {link(A)}"), store)
    assert refs == [NoteReference(SELF, B), NoteReference(SELF, A)]


def test_duplicate_targets_collapse():
    """Test that repeated targets yield one reference and one lookup."""
    store = CountingStore({A})
    refs = note_references(SELF, parse_document(f"{link(A)} {link(A, 'again')}"), store)
    assert refs == [NoteReference(SELF, A)]
    assert store.calls == [A]


def test_self_link_is_excluded():
    store = CountingStore({SELF})
    assert note_references(SELF, parse_document(link(SELF)), store) == []
    assert store.calls == []


def test_dangling_link_is_dropped():
    """Test that links to unknown notes are dropped silently."""
    store = CountingStore({A})
    refs = note_references(SELF, parse_document(f"{link(GHOST)} {link(A)}"), store)
    assert refs == [NoteReference(SELF, A)]
    assert store.calls == [GHOST, A]


def test_attachments_tagged_by_kind():
    text = "![](file:///tmp/s.png)\n\U0001F3AC [Rec](file:///tmp/r.mov)"
    assert attachment_references(SELF, parse_document(text)) == [
        AttachmentReference(SELF, "/tmp/s.png", AttachmentKind.SCREENSHOT),
        AttachmentReference(SELF, "/tmp/r.mov", AttachmentKind.RECORDING),
    ]


def test_remote_images_are_not_attachments():
    text = "![](https://example.com/a.png) ![](//cdn/b.png) ![](data:image/png;base64,AA)"
    assert attachment_references(SELF, parse_document(text)) == []


def test_duplicate_attachments_collapse():
    text = "![](file:///tmp/s.png) ![again](/tmp/s.png)"
    refs = attachment_references(SELF, parse_document(text))
    assert refs == [AttachmentReference(SELF, "/tmp/s.png", AttachmentKind.SCREENSHOT)]


def test_resolver_combines_notes_then_attachments():
    resolver = ReferenceResolver(CountingStore({A}))
    refs = resolver.resolve(SELF, f"![](file:///tmp/s.png) {link(A)} {link(GHOST)}")
    assert refs == [
        NoteReference(SELF, A),
        AttachmentReference(SELF, "/tmp/s.png", AttachmentKind.SCREENSHOT),
    ]


def test_resolver_on_plain_text():
    store = CountingStore(set())
    assert ReferenceResolver(store).resolve(SELF, "") == []
    assert store.calls == []
