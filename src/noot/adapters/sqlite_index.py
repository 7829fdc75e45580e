"""SQLite-backed store for derived note links and attachment records."""

import logging
import sqlite3
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from ..core.model import (
    AttachmentKind,
    AttachmentRecord,
    AttachmentReference,
    NoteId,
    NoteReference,
)
from ..core.ports import ReferenceIndex

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "1"
RELATED = "related"


@dataclass
class SQLiteIndex(ReferenceIndex):
    """
    Note links and attachments derived from note text.

    Rows are replaced wholesale on every save; the notes themselves remain
    the source of truth and the DB can be cleared and rebuilt at any time.
    """

    db_path: Path

    def __post_init__(self) -> None:
        self._ensure_schema()

    def _conn(self) -> sqlite3.Connection:
        """Get a connection to the SQLite database."""
        conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        conn.execute("PRAGMA temp_store=MEMORY")
        return conn

    def _init_schema(self) -> None:
        """Create tables if they don't exist."""
        conn = self._conn()
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS meta (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS note_links (
                    id TEXT PRIMARY KEY,
                    source_id TEXT NOT NULL,
                    target_id TEXT NOT NULL,
                    relationship TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    UNIQUE (source_id, target_id)
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS attachments (
                    id TEXT PRIMARY KEY,
                    note_id TEXT NOT NULL,
                    kind TEXT NOT NULL,
                    file_path TEXT NOT NULL,
                    size_bytes INTEGER NOT NULL,
                    created_at TEXT NOT NULL
                )
            """)

            conn.execute("CREATE INDEX IF NOT EXISTS links_source_idx ON note_links(source_id)")
            conn.execute("CREATE INDEX IF NOT EXISTS links_target_idx ON note_links(target_id)")
            conn.execute("CREATE INDEX IF NOT EXISTS attachments_note_idx ON attachments(note_id)")

            conn.execute("""
                INSERT INTO meta(key, value) VALUES('schema_version', ?)
                ON CONFLICT(key) DO UPDATE SET value=excluded.value
            """, (SCHEMA_VERSION,))

            conn.commit()
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        """Ensure DB exists and schema is initialized."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        if self.db_path.exists():
            try:
                conn = self._conn()
                try:
                    conn.execute("SELECT 1").fetchone()
                finally:
                    conn.close()
            except sqlite3.DatabaseError:
                # corrupt DB: move it aside, everything here can be re-derived
                timestamp = int(time.time())
                backup_path = self.db_path.with_suffix(f".bad-{timestamp}.sqlite")
                self.db_path.rename(backup_path)
                logger.warning("Corrupt index backed up to %s", backup_path)

        self._init_schema()

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    def _insert_attachment(
        self,
        conn: sqlite3.Connection,
        document_id: NoteId,
        path: str,
        kind: AttachmentKind,
        size_bytes: int,
    ) -> AttachmentRecord:
        record = AttachmentRecord(
            id=uuid.uuid4(),
            note_id=document_id,
            kind=AttachmentKind(kind),
            file_path=path,
            size_bytes=size_bytes,
            created_at=datetime.now(timezone.utc),
        )
        conn.execute("""
            INSERT INTO attachments (id, note_id, kind, file_path, size_bytes, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
        """, (
            str(record.id),
            str(record.note_id),
            record.kind.value,
            record.file_path,
            record.size_bytes,
            record.created_at.isoformat(),
        ))
        return record

    def replace_references(
        self,
        note_id: NoteId,
        note_refs: Iterable[NoteReference],
        attachments: Iterable[tuple[AttachmentReference, int]],
    ) -> dict[str, int]:
        """
        Swap a note's outgoing links and attachment rows for fresh ones.

        Runs in one transaction; on failure nothing changes and the error
        propagates.
        """
        counts = {"links": 0, "attachments": 0}
        conn = self._conn()
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                conn.execute("DELETE FROM note_links WHERE source_id = ?", (str(note_id),))
                conn.execute("DELETE FROM attachments WHERE note_id = ?", (str(note_id),))

                now = self._now()
                for ref in note_refs:
                    conn.execute("""
                        INSERT OR IGNORE INTO note_links
                            (id, source_id, target_id, relationship, created_at)
                        VALUES (?, ?, ?, ?, ?)
                    """, (str(uuid.uuid4()), str(ref.source_id), str(ref.target_id), RELATED, now))
                    counts["links"] += 1

                for ref, size_bytes in attachments:
                    self._insert_attachment(conn, note_id, ref.file_path, ref.kind, size_bytes)
                    counts["attachments"] += 1

                conn.commit()
            except Exception:
                conn.rollback()
                raise
        finally:
            conn.close()
        return counts

    def record_attachment(
        self, document_id: NoteId, path: str, kind: AttachmentKind, size_bytes: int
    ) -> AttachmentRecord:
        conn = self._conn()
        try:
            record = self._insert_attachment(conn, document_id, path, kind, size_bytes)
            conn.commit()
            return record
        finally:
            conn.close()

    def links_out(self, id: NoteId) -> list[NoteReference]:
        """Get outgoing links from a note."""
        conn = self._conn()
        try:
            rows = conn.execute(
                "SELECT source_id, target_id FROM note_links WHERE source_id = ? ORDER BY created_at, rowid",
                (str(id),),
            ).fetchall()
        finally:
            conn.close()
        return [NoteReference(uuid.UUID(src), uuid.UUID(dst)) for src, dst in rows]

    def links_in(self, id: NoteId) -> list[NoteReference]:
        """Get incoming links to a note (backlinks)."""
        conn = self._conn()
        try:
            rows = conn.execute(
                "SELECT source_id, target_id FROM note_links WHERE target_id = ? ORDER BY created_at, rowid",
                (str(id),),
            ).fetchall()
        finally:
            conn.close()
        return [NoteReference(uuid.UUID(src), uuid.UUID(dst)) for src, dst in rows]

    def attachments(self, id: NoteId) -> list[AttachmentRecord]:
        conn = self._conn()
        try:
            rows = conn.execute("""
                SELECT id, note_id, kind, file_path, size_bytes, created_at
                FROM attachments WHERE note_id = ? ORDER BY created_at, rowid
            """, (str(id),)).fetchall()
        finally:
            conn.close()
        return [
            AttachmentRecord(
                id=uuid.UUID(row[0]),
                note_id=uuid.UUID(row[1]),
                kind=AttachmentKind(row[2]),
                file_path=row[3],
                size_bytes=row[4],
                created_at=datetime.fromisoformat(row[5]),
            )
            for row in rows
        ]

    def forget(self, id: NoteId) -> None:
        """Drop every row mentioning a deleted note."""
        conn = self._conn()
        try:
            conn.execute(
                "DELETE FROM note_links WHERE source_id = ? OR target_id = ?",
                (str(id), str(id)),
            )
            conn.execute("DELETE FROM attachments WHERE note_id = ?", (str(id),))
            conn.commit()
        finally:
            conn.close()

    def clear(self) -> None:
        conn = self._conn()
        try:
            conn.execute("DELETE FROM note_links")
            conn.execute("DELETE FROM attachments")
            conn.commit()
        finally:
            conn.close()

    def stats(self) -> dict[str, int]:
        conn = self._conn()
        try:
            links = conn.execute("SELECT COUNT(*) FROM note_links").fetchone()[0]
            attachments = conn.execute("SELECT COUNT(*) FROM attachments").fetchone()[0]
            size = conn.execute(
                "SELECT COALESCE(SUM(size_bytes), 0) FROM attachments"
            ).fetchone()[0]
        finally:
            conn.close()
        return {"links": links, "attachments": attachments, "attachment_bytes": size}
