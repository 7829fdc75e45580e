from typing import Any, Iterable, Protocol

from .model import (
    AttachmentKind,
    AttachmentRecord,
    AttachmentReference,
    Note,
    NoteBody,
    NoteId,
    NoteReference,
    Reference,
)


class StorageStrategy(Protocol):
    """
    Flat store: one directory, files named <id>.md
    """

    def read_raw(self, id: NoteId) -> str | None:
        pass

    def write_raw(self, id: NoteId, contents: str) -> None:
        pass

    def delete_raw(self, id: NoteId) -> None:
        pass

    def exists_raw(self, id: NoteId) -> bool:
        pass

    def list_all_ids(self) -> Iterable[NoteId]:
        pass


class ParserStrategy(Protocol):
    """
    Split canonical text into content elements. Never raises.
    """

    def parse(self, text: str, id: NoteId | None = None) -> NoteBody:
        pass


class FrontmatterCodec(Protocol):
    def decode(self, text: str) -> tuple[dict[str, Any], str]:
        pass

    def encode(self, meta: dict[str, Any]) -> str:
        pass


class NoteCodec(Protocol):
    """
    Compose FrontmatterCodec with the raw body.
    """

    def decode_file(self, text: str, id: NoteId) -> tuple[dict[str, Any], str]:
        pass

    def encode_file(self, note: Note) -> str:
        pass


class IdGenerator(Protocol):
    def new_id(self) -> NoteId:
        pass


class DocumentStore(Protocol):
    """
    Read side used by the reference resolver. Must be cheap to call
    once per candidate link on every save.
    """

    def exists(self, id: NoteId) -> bool:
        pass

    def get(self, id: NoteId) -> Note | None:
        pass


class AttachmentStore(Protocol):
    def record_attachment(
        self, document_id: NoteId, path: str, kind: AttachmentKind, size_bytes: int
    ) -> AttachmentRecord:
        pass


class ReferenceIndex(AttachmentStore, Protocol):
    """
    Derived state; safe to clear and rebuild from the notes at any time.
    """

    def replace_references(
        self,
        note_id: NoteId,
        note_refs: Iterable[NoteReference],
        attachments: Iterable[tuple[AttachmentReference, int]],
    ) -> dict[str, int]:
        pass

    def links_out(self, id: NoteId) -> list[NoteReference]:
        pass

    def links_in(self, id: NoteId) -> list[NoteReference]:
        pass

    def attachments(self, id: NoteId) -> list[AttachmentRecord]:
        pass

    def forget(self, id: NoteId) -> None:
        pass

    def clear(self) -> None:
        pass


class ReferenceSource(Protocol):
    """
    Derive references from canonical text without writing anything.
    """

    def resolve(self, document_id: NoteId, text: str) -> list[Reference]:
        pass


class ExportAdapter(Protocol):
    def export_all(self, out_dir: str) -> dict[str, int]:
        pass


class ImportAdapter(Protocol):
    def import_all(self, src_dir: str) -> dict[str, int]:
        pass
