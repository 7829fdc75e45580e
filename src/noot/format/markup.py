"""Build the canonical tokens inserted by capture actions."""

from ..adapters.markdown_parser import RECORDING_GLYPH
from ..core.model import NoteId
from .preview import first_line

DEFAULT_LINK_TEXT = "Note"


def _file_url(path: str) -> str:
    return path if path.startswith("file://") else f"file://{path}"


def screenshot_markup(path: str) -> str:
    """
    Examples:
        >>> screenshot_markup("/tmp/screenshot_1.png")
        '![](file:///tmp/screenshot_1.png)'
    """
    return f"![]({_file_url(path)})"


def recording_markup(path: str, label: str = "Recording") -> str:
    return f"{RECORDING_GLYPH} [{label}]({_file_url(path)})"


def note_link_markup(note_id: NoteId, content: str, length: int = 30) -> str:
    """Link to a note, captioned with the start of its first line.

    ``]`` and ``|`` would end the token early, so they are dropped from
    the caption.
    """
    caption = first_line(content)[:length]
    caption = caption.replace("]", "").replace("|", "").strip()
    return f"[[{note_id}|{caption or DEFAULT_LINK_TEXT}]]"


def append_markup(content: str, markup: str, block: bool = True) -> str:
    """Append a token to note text.

    Block tokens (media) get a line of their own; inline tokens (note
    links) are separated from preceding text by a single space.
    """
    if block:
        if not content or content.endswith("\n"):
            return f"{content}{markup}\n"
        return f"{content}\n{markup}\n"

    if not content or content.endswith((" ", "\n")):
        return content + markup
    return f"{content} {markup}"
