import re

from ..core.model import (
    ContentElement,
    Image,
    NoteBody,
    NoteId,
    NoteLink,
    Range,
    Text,
    Video,
)
from ..core.ports import ParserStrategy
from ..core.utils import parse_note_id, strip_file_url

RECORDING_GLYPH = "\U0001F3AC"  # 🎬

IMAGE_RE = re.compile(r"!\[([^\]]*)\]\(([^)]+)\)")
VIDEO_RE = re.compile(RECORDING_GLYPH + r"\s*\[([^\]]*)\]\(([^)]+)\)")
NOTE_LINK_RE = re.compile(r"\[\[([A-F0-9\-]{36})\|([^\]]+)\]\]", re.IGNORECASE)


def _next_note_link(text: str, pos: int) -> re.Match[str] | None:
    # A 36-char run of hex and hyphens is not necessarily a UUID;
    # skip candidates that do not parse so they stay literal text.
    m = NOTE_LINK_RE.search(text, pos)
    while m is not None and parse_note_id(m.group(1)) is None:
        m = NOTE_LINK_RE.search(text, m.start() + 1)
    return m


def _element_for(kind: str, m: re.Match[str]) -> ContentElement:
    raw = m.group(0)
    span = Range(m.start(), m.end())
    if kind == "image":
        return Image(path=strip_file_url(m.group(2)), alt=m.group(1), raw=raw, span=span)
    if kind == "video":
        return Video(path=strip_file_url(m.group(2)), label=m.group(1), raw=raw, span=span)
    target = parse_note_id(m.group(1))
    assert target is not None
    return NoteLink(target_id=target, display_text=m.group(2), raw=raw, span=span)


def parse_document(text: str) -> list[ContentElement]:
    """Split canonical text into an ordered, lossless list of elements.

    Concatenating ``element.raw`` over the result reproduces ``text``.
    An empty document yields a single empty ``Text``.
    """
    elements: list[ContentElement] = []
    pos = 0

    while pos < len(text):
        candidates = [
            ("image", IMAGE_RE.search(text, pos)),
            ("video", VIDEO_RE.search(text, pos)),
            ("note_link", _next_note_link(text, pos)),
        ]

        winner: tuple[str, re.Match[str]] | None = None
        for kind, m in candidates:
            if m is None:
                continue
            # strict < keeps the earlier entry on ties: image > video > note link
            if winner is None or m.start() < winner[1].start():
                winner = (kind, m)

        if winner is None:
            break

        kind, m = winner
        if m.start() > pos:
            before = text[pos:m.start()]
            elements.append(Text(before, raw=before, span=Range(pos, m.start())))
        elements.append(_element_for(kind, m))
        pos = m.end()

    if pos < len(text) or not elements:
        rest = text[pos:]
        elements.append(Text(rest, raw=rest, span=Range(pos, len(text))))

    return elements


class MarkdownParser(ParserStrategy):
    def parse(self, text: str, id: NoteId | None = None) -> NoteBody:
        return NoteBody(raw=text, elements=parse_document(text))
