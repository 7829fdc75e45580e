"""Plain Markdown export and import: one file per note with YAML frontmatter."""

import logging
import re
import shutil
from pathlib import Path
from typing import Any

import yaml

from ..adapters.yaml_codec import YamlFrontmatter
from ..core.model import AttachmentRecord, Note
from ..core.notebook import Notebook
from ..core.ports import ExportAdapter, ImportAdapter, ReferenceIndex
from ..core.utils import parse_timestamp, slugify, strip_file_url
from ..core.vault import Vault
from ..format.preview import first_line, strip_markup

logger = logging.getLogger(__name__)

ATTACHMENTS_DIR = "_attachments"
ORGANIZE_CHOICES = ("flat", "date")


class MarkdownExporter(ExportAdapter):
    def __init__(
        self,
        vault: Vault,
        index: ReferenceIndex,
        attachments_root: Path | None = None,
    ):
        self.vault = vault
        self.index = index
        self.attachments_root = attachments_root

    def _slug(self, note: Note) -> str:
        title = strip_markup(first_line(note.content)).lstrip("#").strip()
        return slugify(title) or str(note.id)[:8]

    def _filename(self, note: Note, taken: set[Path], folder: Path) -> Path:
        stem = f"{note.created_at:%Y-%m-%d}-{self._slug(note)}"
        candidate = folder / f"{stem}.md"
        n = 2
        while candidate in taken:
            candidate = folder / f"{stem}-{n}.md"
            n += 1
        taken.add(candidate)
        return candidate

    def _source(self, record: AttachmentRecord) -> Path:
        p = Path(strip_file_url(record.file_path))
        if not p.is_absolute() and self.attachments_root is not None:
            p = self.attachments_root / p
        return p

    def _copy_attachments(
        self, note: Note, records: list[AttachmentRecord], dest: Path
    ) -> list[str]:
        """Copy a note's attachments into ``dest``; returns the copied file names."""
        copied: list[str] = []
        for record in records:
            src = self._source(record)
            name = f"{str(note.id)[:8]}-{src.name}"
            try:
                dest.mkdir(parents=True, exist_ok=True)
                shutil.copy2(src, dest / name)
            except OSError as e:
                logger.warning("Could not copy attachment %s: %s", src, e)
                continue
            copied.append(name)
        return copied

    def _frontmatter(self, note: Note, records: list[AttachmentRecord]) -> str:
        meta: dict[str, Any] = {
            "id": str(note.id),
            "created_at": note.created_at.isoformat(),
            "updated_at": note.updated_at.isoformat(),
            "closed_at": note.closed_at.isoformat() if note.closed_at else None,
            "archived": note.archived,
            "links": [str(ref.target_id) for ref in self.index.links_out(note.id)],
            "attachments": [r.file_path for r in records],
        }
        dumped = yaml.safe_dump(meta, sort_keys=False, allow_unicode=True)
        return f"---\n{dumped}---\n"

    def export_all(
        self,
        out_dir: str | Path,
        include_archived: bool = False,
        include_attachments: bool = True,
        organize_by: str = "flat",
    ) -> dict[str, int]:
        """
        Write every note under ``out_dir``.

        Args:
            out_dir: Destination directory (created when missing)
            include_archived: Also export archived notes
            include_attachments: Copy attachment files into ``_attachments/``
            organize_by: "flat" or "date" (``<yyyy>/<mm>/`` folders)

        Returns:
            Counts of exported notes, copied attachments and skipped notes
        """
        if organize_by not in ORGANIZE_CHOICES:
            raise ValueError(f"organize_by must be one of {ORGANIZE_CHOICES}, got {organize_by!r}")

        out = Path(out_dir)
        out.mkdir(parents=True, exist_ok=True)
        attachments_dest = out / ATTACHMENTS_DIR

        counts = {"notes": 0, "attachments": 0, "skipped": 0}
        taken: set[Path] = set()

        for note in self.vault.all_notes(include_archived=True):
            if note.archived and not include_archived:
                counts["skipped"] += 1
                continue

            folder = out
            if organize_by == "date":
                folder = out / f"{note.created_at:%Y}" / f"{note.created_at:%m}"
            folder.mkdir(parents=True, exist_ok=True)
            path = self._filename(note, taken, folder)

            records = self.index.attachments(note.id)
            body = note.content
            if include_attachments and records:
                copied = self._copy_attachments(note, records, attachments_dest)
                if copied:
                    prefix = "../../" if organize_by == "date" else ""
                    listing = "\n".join(
                        f"- [{name}]({prefix}{ATTACHMENTS_DIR}/{name})" for name in copied
                    )
                    body = f"{body.rstrip()}\n\n## Attachments\n\n{listing}\n"
                    counts["attachments"] += len(copied)

            path.write_text(self._frontmatter(note, records) + "\n" + body, encoding="utf-8")
            counts["notes"] += 1

        logger.info("Exported %d notes to %s", counts["notes"], out)
        return counts


# the section export_all appends; its links point into the export folder
ATTACHMENTS_SECTION_RE = re.compile(
    r"\n\n## Attachments\n\n(?:- \[[^\]\n]*\]\((?:\.\./\.\./)?"
    + ATTACHMENTS_DIR
    + r"/[^)\n]*\)\n)+\Z"
)


class MarkdownImporter(ImportAdapter):
    """Read a folder of Markdown files back in, one new note per file."""

    def __init__(self, notebook: Notebook, frontmatter: YamlFrontmatter | None = None):
        self.notebook = notebook
        self.frontmatter = frontmatter or YamlFrontmatter()

    def _read(self, path: Path) -> tuple[dict[str, Any], str]:
        text = path.read_text(encoding="utf-8")
        try:
            meta, body = self.frontmatter.decode(text)
        except yaml.YAMLError as e:
            logger.warning("Ignoring unreadable frontmatter in %s: %s", path, e)
            return {}, text
        body = ATTACHMENTS_SECTION_RE.sub("", body)
        return meta, body

    def import_all(self, src_dir: str | Path) -> dict[str, int]:
        """
        Create a note for every ``.md`` file under ``src_dir``.

        Files inside ``_attachments/`` are not notes. Timestamps, the
        closed state and the archived flag come from frontmatter when
        present; ids are always new.

        Returns:
            Counts of imported notes and skipped files
        """
        src = Path(src_dir)
        if not src.is_dir():
            raise FileNotFoundError(f"Not a directory: {src}")

        counts = {"notes": 0, "skipped": 0}
        for path in sorted(src.rglob("*.md")):
            if ATTACHMENTS_DIR in path.relative_to(src).parts:
                continue
            try:
                meta, body = self._read(path)
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Could not read %s: %s", path, e)
                counts["skipped"] += 1
                continue

            content = body.strip()
            if not content:
                logger.info("Skipping empty file %s", path)
                counts["skipped"] += 1
                continue

            self.notebook.restore(
                content,
                created_at=parse_timestamp(meta.get("created_at")),
                updated_at=parse_timestamp(meta.get("updated_at")),
                closed_at=parse_timestamp(meta.get("closed_at")),
                archived=bool(meta.get("archived", False)),
            )
            counts["notes"] += 1

        logger.info("Imported %d notes from %s", counts["notes"], src)
        return counts
