import io
import re
from typing import Any

import yaml

from ..core.model import Note, NoteId
from ..core.ports import FrontmatterCodec, NoteCodec

# only horizontal whitespace after the fences: the body keeps its leading newlines
_FM = re.compile(r"^---[ \t]*\n(.*?)\n---[ \t]*(?:\n|$)", re.DOTALL)


class YamlFrontmatter(FrontmatterCodec):
    def decode(self, text: str) -> tuple[dict[str, Any], str]:
        m = _FM.match(text)
        if not m:
            return {}, text
        fm = yaml.safe_load(io.StringIO(m.group(1))) or {}
        if not isinstance(fm, dict):
            return {}, text
        body = text[m.end():]
        return fm, body

    def encode(self, meta: dict[str, Any]) -> str:
        if not meta:
            return ""
        buf = io.StringIO()
        yaml.safe_dump(meta, buf, sort_keys=False, allow_unicode=True)
        return f"---\n{buf.getvalue()}---\n"


class MarkdownNoteCodec(NoteCodec):
    def __init__(self, fm: YamlFrontmatter):
        self.fm = fm

    def decode_file(self, text: str, id: NoteId) -> tuple[dict[str, Any], str]:
        return self.fm.decode(text)

    def encode_file(self, note: Note) -> str:
        # filename stays the source of truth for the id; it is mirrored for readers
        meta = {
            "id": str(note.id),
            "created_at": note.created_at.isoformat(),
            "updated_at": note.updated_at.isoformat(),
            "closed_at": note.closed_at.isoformat() if note.closed_at else None,
            "archived": note.archived,
        }
        return self.fm.encode(meta) + note.body.raw
