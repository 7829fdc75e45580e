"""Save pipeline: persist a note, then re-derive its references."""

import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable

from ..format.markup import append_markup, note_link_markup, recording_markup, screenshot_markup
from .model import AttachmentKind, AttachmentReference, Note, NoteId, NoteReference
from .ports import IdGenerator, ParserStrategy, ReferenceIndex, ReferenceSource
from .vault import Vault

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Notebook:
    def __init__(
        self,
        vault: Vault,
        resolver: ReferenceSource,
        index: ReferenceIndex,
        idgen: IdGenerator,
        attachments_root: Path | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.vault = vault
        self.resolver = resolver
        self.index = index
        self.idgen = idgen
        self.attachments_root = attachments_root
        self.clock = clock

    @property
    def parser(self) -> ParserStrategy:
        return self.vault.parser

    def capture(self, content: str, note_id: NoteId | None = None) -> Note:
        """Save ``content`` as a note.

        With ``note_id`` of an existing note its text is replaced and the
        note is reopened. Otherwise (including an id whose note was deleted
        meanwhile) a new note is created.
        """
        now = self.clock()
        note = self.vault.get(note_id) if note_id is not None else None

        if note is not None:
            note.body = self.parser.parse(content, note.id)
            note.updated_at = now
            note.closed_at = None
        else:
            new_id = self.idgen.new_id()
            note = Note(
                id=new_id,
                body=self.parser.parse(content, new_id),
                created_at=now,
                updated_at=now,
            )

        self.vault.put(note)
        self.sync_references(note)
        return note

    def restore(
        self,
        content: str,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
        closed_at: datetime | None = None,
        archived: bool = False,
    ) -> Note:
        """Create a note under a fresh id, keeping timestamps from elsewhere.

        Missing ``created_at`` falls back to now, missing ``updated_at`` to
        ``created_at``.
        """
        new_id = self.idgen.new_id()
        created = created_at or self.clock()
        note = Note(
            id=new_id,
            body=self.parser.parse(content, new_id),
            created_at=created,
            updated_at=updated_at or created,
            closed_at=closed_at,
            archived=archived,
        )
        self.vault.put(note)
        self.sync_references(note)
        return note

    def attach(
        self,
        note_id: NoteId,
        path: str,
        kind: AttachmentKind = AttachmentKind.SCREENSHOT,
    ) -> Note | None:
        """Append media markup for ``path`` to a note and save it.

        Saving goes through ``capture``, so the attachment row (with its
        file size) is recorded and the note is reopened.
        """
        note = self.vault.get(note_id)
        if note is None:
            return None
        if kind is AttachmentKind.RECORDING:
            markup = recording_markup(path)
        else:
            markup = screenshot_markup(path)
        return self.capture(append_markup(note.content, markup), note_id=note.id)

    def _attachment_size(self, path: str) -> int | None:
        p = Path(path)
        if not p.is_absolute() and self.attachments_root is not None:
            p = self.attachments_root / p
        try:
            return p.stat().st_size
        except OSError:
            return None

    def sync_references(self, note: Note) -> dict[str, int]:
        """Replace the note's index rows with references freshly derived from its text."""
        note_refs: list[NoteReference] = []
        attachments: list[tuple[AttachmentReference, int]] = []

        for ref in self.resolver.resolve(note.id, note.content):
            if isinstance(ref, NoteReference):
                note_refs.append(ref)
                continue
            size = self._attachment_size(ref.file_path)
            if size is None:
                logger.info("skipping missing attachment %s in note %s", ref.file_path, note.id)
                continue
            attachments.append((ref, size))

        return self.index.replace_references(note.id, note_refs, attachments)

    def _update(self, note_id: NoteId, change: Callable[[Note], None]) -> Note | None:
        note = self.vault.get(note_id)
        if note is None:
            return None
        change(note)
        self.vault.put(note)
        return note

    def close(self, note_id: NoteId) -> Note | None:
        def _close(note: Note) -> None:
            note.closed_at = self.clock()

        return self._update(note_id, _close)

    def reopen(self, note_id: NoteId) -> Note | None:
        def _reopen(note: Note) -> None:
            note.closed_at = None

        return self._update(note_id, _reopen)

    def archive(self, note_id: NoteId) -> Note | None:
        def _archive(note: Note) -> None:
            note.archived = True
            note.updated_at = self.clock()

        return self._update(note_id, _archive)

    def close_stale(self, older_than: timedelta) -> list[NoteId]:
        """Close open, unarchived notes not updated within ``older_than``."""
        now = self.clock()
        cutoff = now - older_than
        closed: list[NoteId] = []
        for note in self.vault.all_notes(include_archived=False):
            if not note.is_open or note.updated_at >= cutoff:
                continue
            note.closed_at = now
            self.vault.put(note)
            closed.append(note.id)
        if closed:
            logger.info("auto-closed %d stale notes", len(closed))
        return closed

    def delete(self, note_id: NoteId) -> bool:
        if not self.vault.exists(note_id):
            return False
        self.vault.delete(note_id)
        self.index.forget(note_id)
        return True

    def reindex(self) -> dict[str, int]:
        """Clear the index and re-derive every note's references."""
        self.index.clear()
        counts = {"scanned": 0, "links": 0, "attachments": 0}
        for nid in self.vault.list_ids():
            note = self.vault.get(nid)
            if note is None:
                continue
            counts["scanned"] += 1
            result = self.sync_references(note)
            counts["links"] += result["links"]
            counts["attachments"] += result["attachments"]
        return counts

    def link_markup(self, target_id: NoteId, length: int = 30) -> str | None:
        """Link markup pointing at ``target_id``, captioned with its first line."""
        target = self.vault.get(target_id)
        if target is None:
            return None
        return note_link_markup(target.id, target.content, length=length)
