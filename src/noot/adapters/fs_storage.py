from pathlib import Path
from typing import Iterable

from ..core.model import NoteId
from ..core.ports import StorageStrategy
from ..core.utils import parse_note_id


class FsStorage(StorageStrategy):
    def __init__(self, root: Path):
        self.root = root

    def _path(self, id: NoteId) -> Path:
        return self.root / f"{id}.md"

    def read_raw(self, id: NoteId) -> str | None:
        p = self._path(id)
        if not p.exists():
            return None
        with open(p, encoding="utf-8", newline="") as f:
            return f.read()

    def write_raw(self, id: NoteId, contents: str) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        # newline="" keeps the body byte-for-byte on every platform
        self._path(id).write_text(contents, encoding="utf-8", newline="")

    def delete_raw(self, id: NoteId) -> None:
        p = self._path(id)
        if p.exists():
            p.unlink()

    def exists_raw(self, id: NoteId) -> bool:
        return self._path(id).exists()

    def list_all_ids(self) -> Iterable[NoteId]:
        if not self.root.exists():
            return []
        return sorted(
            nid
            for nid in (parse_note_id(p.stem) for p in self.root.glob("*.md"))
            if nid is not None
        )
