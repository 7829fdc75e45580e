from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Union

NoteId = uuid.UUID


@dataclass(frozen=True)
class Range:
    start: int  # character offsets in the raw text
    end: int


@dataclass(frozen=True)
class Text:
    text: str
    raw: str = field(default="", compare=False, repr=False)
    span: Range | None = field(default=None, compare=False, repr=False)

    def as_dict(self) -> dict[str, Any]:
        return _with_span({"type": "text", "text": self.text}, self.span)


@dataclass(frozen=True)
class Image:
    path: str
    alt: str = field(default="", compare=False)
    raw: str = field(default="", compare=False, repr=False)
    span: Range | None = field(default=None, compare=False, repr=False)

    def as_dict(self) -> dict[str, Any]:
        return _with_span({"type": "image", "path": self.path, "alt": self.alt}, self.span)


@dataclass(frozen=True)
class Video:
    path: str
    label: str = field(default="", compare=False)
    raw: str = field(default="", compare=False, repr=False)
    span: Range | None = field(default=None, compare=False, repr=False)

    def as_dict(self) -> dict[str, Any]:
        return _with_span({"type": "video", "path": self.path, "label": self.label}, self.span)


@dataclass(frozen=True)
class NoteLink:
    target_id: NoteId
    display_text: str
    raw: str = field(default="", compare=False, repr=False)
    span: Range | None = field(default=None, compare=False, repr=False)

    def as_dict(self) -> dict[str, Any]:
        return _with_span(
            {
                "type": "note_link",
                "target_id": str(self.target_id),
                "display_text": self.display_text,
            },
            self.span,
        )


ContentElement = Union[Text, Image, Video, NoteLink]


def _with_span(d: dict[str, Any], span: Range | None) -> dict[str, Any]:
    if span is not None:
        d["start"] = span.start
        d["end"] = span.end
    return d


class AttachmentKind(str, enum.Enum):
    SCREENSHOT = "screenshot"
    RECORDING = "recording"


@dataclass(frozen=True)
class NoteReference:
    source_id: NoteId
    target_id: NoteId


@dataclass(frozen=True)
class AttachmentReference:
    document_id: NoteId
    file_path: str
    kind: AttachmentKind


Reference = Union[NoteReference, AttachmentReference]


@dataclass
class AttachmentRecord:
    id: uuid.UUID
    note_id: NoteId
    kind: AttachmentKind
    file_path: str
    size_bytes: int
    created_at: datetime

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "note_id": str(self.note_id),
            "kind": self.kind.value,
            "file_path": self.file_path,
            "size_bytes": self.size_bytes,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class NoteBody:
    raw: str
    elements: list[ContentElement] = field(default_factory=list)


@dataclass
class Note:
    id: NoteId
    body: NoteBody
    created_at: datetime
    updated_at: datetime
    closed_at: datetime | None = None
    archived: bool = False

    @property
    def content(self) -> str:
        return self.body.raw

    @property
    def is_open(self) -> bool:
        return self.closed_at is None

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "content": self.content,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "closed_at": self.closed_at.isoformat() if self.closed_at else None,
            "archived": self.archived,
        }
