from ..core.model import (
    AttachmentKind,
    AttachmentReference,
    ContentElement,
    Image,
    NoteId,
    NoteLink,
    NoteReference,
    Reference,
    Video,
)
from ..core.ports import DocumentStore
from .markdown_parser import parse_document

REMOTE_PREFIXES = ("http://", "https://", "//", "data:")


def note_references(
    document_id: NoteId, elements: list[ContentElement], store: DocumentStore
) -> list[NoteReference]:
    """Distinct link targets in order of appearance.

    Self links and targets the store does not know are dropped; the store
    is asked once per distinct candidate.
    """
    seen: set[NoteId] = set()
    refs: list[NoteReference] = []
    for el in elements:
        if not isinstance(el, NoteLink):
            continue
        target = el.target_id
        if target in seen or target == document_id:
            continue
        seen.add(target)
        if store.exists(target):
            refs.append(NoteReference(source_id=document_id, target_id=target))
    return refs


def attachment_references(
    document_id: NoteId, elements: list[ContentElement]
) -> list[AttachmentReference]:
    """Local media files referenced by the document, tagged by kind."""
    seen: set[tuple[str, AttachmentKind]] = set()
    refs: list[AttachmentReference] = []
    for el in elements:
        if isinstance(el, Image):
            kind = AttachmentKind.SCREENSHOT
        elif isinstance(el, Video):
            kind = AttachmentKind.RECORDING
        else:
            continue
        if el.path.startswith(REMOTE_PREFIXES):
            continue
        key = (el.path, kind)
        if key in seen:
            continue
        seen.add(key)
        refs.append(AttachmentReference(document_id=document_id, file_path=el.path, kind=kind))
    return refs


class ReferenceResolver:
    def __init__(self, store: DocumentStore):
        self.store = store

    def resolve(self, document_id: NoteId, text: str) -> list[Reference]:
        """Derive note and attachment references from canonical text.

        Performs no writes; persisting the result is up to the caller.
        """
        elements = parse_document(text)
        refs: list[Reference] = []
        refs.extend(note_references(document_id, elements, self.store))
        refs.extend(attachment_references(document_id, elements))
        return refs
