"""Plain-text previews of note content."""

import re

from ..adapters.markdown_parser import IMAGE_RE, VIDEO_RE

# any [[...]] token, valid id or not
ANY_NOTE_LINK_RE = re.compile(r"\[\[[^\]]+\]\]")


def first_line(content: str) -> str:
    for line in content.splitlines():
        return line.strip()
    return ""


def strip_markup(content: str) -> str:
    """Remove image, recording and note-link tokens."""
    text = IMAGE_RE.sub("", content)
    text = VIDEO_RE.sub("", text)
    text = ANY_NOTE_LINK_RE.sub("", text)
    return text


def preview(content: str, length: int = 80) -> str:
    """
    Examples:
        >>> preview("![](file:///tmp/a.png)\\nCall Bob")
        'Call Bob'
    """
    return " ".join(strip_markup(content).split())[:length]
