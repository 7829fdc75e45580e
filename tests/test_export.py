"""Tests for plain Markdown export."""

import tempfile
from datetime import datetime, timezone
from pathlib import Path

import pytest
import yaml

from noot.adapters.fs_storage import FsStorage
from noot.adapters.idgen import UuidGenerator
from noot.adapters.markdown_parser import MarkdownParser
from noot.adapters.reference_resolver import ReferenceResolver
from noot.adapters.sqlite_index import SQLiteIndex
from noot.adapters.yaml_codec import MarkdownNoteCodec, YamlFrontmatter
from noot.core.notebook import Notebook
from noot.core.vault import Vault
from noot.export.markdown import MarkdownExporter, MarkdownImporter

WHEN = datetime(2026, 5, 17, 8, 0, tzinfo=timezone.utc)
LATER = datetime(2026, 9, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def setup():
    """Notebook with a fixed clock plus an output directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        vault = Vault(FsStorage(root / "vault"), MarkdownParser(), MarkdownNoteCodec(YamlFrontmatter()))
        attachments = root / "attachments"
        attachments.mkdir()
        index = SQLiteIndex(db_path=root / "index.sqlite")
        notebook = Notebook(
            vault=vault,
            resolver=ReferenceResolver(vault),
            index=index,
            idgen=UuidGenerator(),
            attachments_root=attachments,
            clock=lambda: WHEN,
        )
        exporter = MarkdownExporter(vault, index, attachments)
        yield notebook, exporter, root / "out"


def read_export(path):
    text = path.read_text(encoding="utf-8")
    _, fm, body = text.split("---\n", 2)
    return yaml.safe_load(fm), body


def test_export_flat(setup):
    """Test file naming, frontmatter and body."""
    notebook, exporter, out = setup
    target = notebook.capture("# Groceries\nmilk")
    source = notebook.capture(f"Plan [[{target.id}|groceries]]")

    counts = exporter.export_all(out)

    assert counts == {"notes": 2, "attachments": 0, "skipped": 0}
    meta, body = read_export(out / "2026-05-17-groceries.md")
    assert meta["id"] == str(target.id)
    assert meta["archived"] is False
    assert body == "\n# Groceries\nmilk"

    meta, _ = read_export(out / "2026-05-17-plan.md")
    assert meta["id"] == str(source.id)
    assert meta["links"] == [str(target.id)]


def test_slug_collisions_get_suffixes(setup):
    notebook, exporter, out = setup
    notebook.capture("Same")
    notebook.capture("Same")
    notebook.capture("Same")

    exporter.export_all(out)

    names = sorted(p.name for p in out.glob("*.md"))
    assert names == ["2026-05-17-same-2.md", "2026-05-17-same-3.md", "2026-05-17-same.md"]


def test_empty_title_uses_id_prefix(setup):
    notebook, exporter, out = setup
    note = notebook.capture("![](file:///nowhere.png)")
    exporter.export_all(out)
    assert (out / f"2026-05-17-{str(note.id)[:8]}.md").exists()


def test_archived_notes_skipped_by_default(setup):
    notebook, exporter, out = setup
    note = notebook.capture("old")
    notebook.archive(note.id)

    assert exporter.export_all(out) == {"notes": 0, "attachments": 0, "skipped": 1}
    assert exporter.export_all(out, include_archived=True)["notes"] == 1


def test_attachments_copied_and_listed(setup):
    """Test that media files are copied next to the export and listed."""
    notebook, exporter, out = setup
    shot = notebook.attachments_root / "screenshot_1.png"
    shot.write_bytes(b"png")
    note = notebook.capture(f"Bug\n![]({shot})")

    counts = exporter.export_all(out)

    copied = f"{str(note.id)[:8]}-screenshot_1.png"
    assert counts["attachments"] == 1
    assert (out / "_attachments" / copied).read_bytes() == b"png"
    meta, body = read_export(out / "2026-05-17-bug.md")
    assert meta["attachments"] == [str(shot)]
    assert body.endswith(f"## Attachments\n\n- [{copied}](_attachments/{copied})\n")


def test_no_attachments_flag(setup):
    notebook, exporter, out = setup
    shot = notebook.attachments_root / "s.png"
    shot.write_bytes(b"png")
    notebook.capture(f"Bug\n![]({shot})")

    counts = exporter.export_all(out, include_attachments=False)

    assert counts["attachments"] == 0
    assert not (out / "_attachments").exists()


def test_organize_by_date(setup):
    notebook, exporter, out = setup
    notebook.capture("dated")
    exporter.export_all(out, organize_by="date")
    assert (out / "2026" / "05" / "2026-05-17-dated.md").exists()


def test_unknown_layout_rejected(setup):
    _, exporter, out = setup
    with pytest.raises(ValueError):
        exporter.export_all(out, organize_by="tag")


def fresh_notebook(root):
    """A second, empty notebook to import into."""
    vault = Vault(FsStorage(root / "vault2"), MarkdownParser(), MarkdownNoteCodec(YamlFrontmatter()))
    return Notebook(
        vault=vault,
        resolver=ReferenceResolver(vault),
        index=SQLiteIndex(db_path=root / "index2.sqlite"),
        idgen=UuidGenerator(),
        clock=lambda: LATER,
    )


def test_import_round_trips_export(setup):
    """Test that exported notes come back with their text and state."""
    notebook, exporter, out = setup
    shot = notebook.attachments_root / "screenshot_1.png"
    shot.write_bytes(b"png")
    notebook.capture("# Groceries\nmilk")
    notebook.capture(f"Bug\n![]({shot})")
    done = notebook.capture("Finished task")
    notebook.close(done.id)
    exporter.export_all(out, organize_by="date")

    target = fresh_notebook(out.parent)
    counts = MarkdownImporter(target).import_all(out)

    assert counts == {"notes": 3, "skipped": 0}
    notes = {n.content: n for n in target.vault.all_notes()}
    assert set(notes) == {"# Groceries\nmilk", f"Bug\n![]({shot})", "Finished task"}
    assert all(n.created_at == WHEN for n in notes.values())
    assert notes["Finished task"].closed_at == WHEN
    assert notes["# Groceries\nmilk"].is_open
    assert done.id not in {n.id for n in notes.values()}


def test_import_derives_references(setup):
    notebook, exporter, out = setup
    shot = notebook.attachments_root / "s.png"
    shot.write_bytes(b"12345")
    notebook.capture(f"Bug\n![]({shot})")
    exporter.export_all(out)

    target = fresh_notebook(out.parent)
    MarkdownImporter(target).import_all(out)

    (note,) = target.vault.all_notes()
    assert [r.size_bytes for r in target.index.attachments(note.id)] == [5]


def test_import_plain_files(setup):
    """Test files without frontmatter, empty files and the attachments folder."""
    _, _, out = setup
    (out / "_attachments").mkdir(parents=True)
    (out / "_attachments" / "readme.md").write_text("not a note", encoding="utf-8")
    (out / "plain.md").write_text("\nJust text\n", encoding="utf-8")
    (out / "empty.md").write_text("---\ncreated_at: 2024-01-02\n---\n\n", encoding="utf-8")
    (out / "dated.md").write_text(
        "---\ncreated_at: 2024-01-02\n---\nOld idea\n", encoding="utf-8"
    )

    target = fresh_notebook(out.parent)
    counts = MarkdownImporter(target).import_all(out)

    assert counts == {"notes": 2, "skipped": 1}
    notes = {n.content: n for n in target.vault.all_notes()}
    assert notes["Just text"].created_at == LATER
    assert notes["Old idea"].created_at == datetime(2024, 1, 2, tzinfo=timezone.utc)


def test_import_missing_folder(setup):
    notebook, _, out = setup
    with pytest.raises(FileNotFoundError):
        MarkdownImporter(notebook).import_all(out / "nope")
