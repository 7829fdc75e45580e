from collections.abc import Iterable
from datetime import datetime, timezone

from .model import Note, NoteId
from .ports import NoteCodec, ParserStrategy, StorageStrategy
from .utils import parse_timestamp


class Vault:
    """Document store over flat files.

    The body is re-parsed on every read; elements are never cached.
    """

    def __init__(
        self, storage: StorageStrategy, parser: ParserStrategy, codec: NoteCodec
    ):
        self.storage = storage
        self.parser = parser
        self.codec = codec

    def get(self, id: NoteId) -> Note | None:
        raw = self.storage.read_raw(id)
        if raw is None:
            return None
        meta, body_text = self.codec.decode_file(raw, id)
        body = self.parser.parse(body_text, id)

        # notes without frontmatter fall back to the epoch rather than failing
        epoch = datetime.fromtimestamp(0, tz=timezone.utc)
        created = parse_timestamp(meta.get("created_at"), epoch) or epoch
        return Note(
            id=id,
            body=body,
            created_at=created,
            updated_at=parse_timestamp(meta.get("updated_at"), created) or created,
            closed_at=parse_timestamp(meta.get("closed_at"), None),
            archived=bool(meta.get("archived", False)),
        )

    def exists(self, id: NoteId) -> bool:
        return self.storage.exists_raw(id)

    def put(self, note: Note) -> None:
        contents = self.codec.encode_file(note)
        self.storage.write_raw(note.id, contents)

    def delete(self, id: NoteId) -> None:
        self.storage.delete_raw(id)

    def list_ids(self) -> Iterable[NoteId]:
        return self.storage.list_all_ids()

    def all_notes(self, include_archived: bool = True) -> list[Note]:
        notes = []
        for nid in self.list_ids():
            note = self.get(nid)
            if note is None:
                continue
            if note.archived and not include_archived:
                continue
            notes.append(note)
        return notes
