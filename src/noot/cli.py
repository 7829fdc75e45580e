"""CLI for noot - quick notes with screenshots, recordings and note links."""

import argparse
import json
import logging
import platform
import sys
from datetime import timedelta
from pathlib import Path
from typing import Any

from . import __version__
from .adapters.html_reducer import html_to_markdown
from .adapters.html_renderer import markdown_to_html
from .adapters.inline_images import inline_local_images
from .adapters.markdown_parser import parse_document
from .core.model import AttachmentKind, Note
from .core.utils import parse_note_id
from .export.markdown import ORGANIZE_CHOICES, MarkdownExporter, MarkdownImporter
from .format.preview import preview
from .runtime import build_runtime


def _read_input(source: str | None) -> str:
    """Read text from a file path, or stdin for None / '-'."""
    if source is None or source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def _load(rt: Any, raw_id: str) -> Note | None:
    nid = parse_note_id(raw_id)
    note = rt.vault.get(nid) if nid is not None else None
    if note is None:
        print(f"Note {raw_id} not found", file=sys.stderr)
    return note


def cmd_new(args: argparse.Namespace, rt: Any) -> int:
    """Create a note from text or stdin."""
    content = args.content if args.content is not None else sys.stdin.read()
    note = rt.notebook.capture(content)
    if args.json:
        print(json.dumps(note.as_dict(), indent=2))
    elif not args.quiet:
        print(note.id)
    return 0


def cmd_update(args: argparse.Namespace, rt: Any) -> int:
    """Replace a note's text and reopen it."""
    note = _load(rt, args.id)
    if note is None:
        return 1
    content = args.content if args.content is not None else sys.stdin.read()
    if args.html:
        content = html_to_markdown(content)
    note = rt.notebook.capture(content, note_id=note.id)
    if args.json:
        print(json.dumps(note.as_dict(), indent=2))
    elif not args.quiet:
        print(f"Updated {note.id}")
    return 0


def cmd_show(args: argparse.Namespace, rt: Any) -> int:
    """Print a note's text, or its rendered HTML."""
    note = _load(rt, args.id)
    if note is None:
        return 1
    if args.html:
        html = markdown_to_html(note.content)
        if rt.config.editor.inline_images:
            html = inline_local_images(html, rt.config.attachments.root)
        print(html)
    elif args.json:
        print(json.dumps(note.as_dict(), indent=2))
    else:
        print(note.content)
    return 0


def cmd_ls(args: argparse.Namespace, rt: Any) -> int:
    """List open notes, newest first."""
    notes = rt.vault.all_notes(include_archived=args.all)
    if not args.all:
        notes = [n for n in notes if n.is_open]
    notes.sort(key=lambda n: n.updated_at, reverse=True)

    if args.json:
        print(json.dumps([n.as_dict() for n in notes], indent=2))
        return 0

    for note in notes:
        flags = ""
        if note.archived:
            flags = " [archived]"
        elif not note.is_open:
            flags = " [closed]"
        print(f"{note.id}\t{preview(note.content, length=60)}{flags}")
    return 0


def cmd_close(args: argparse.Namespace, rt: Any) -> int:
    """Mark a note as closed."""
    note = _load(rt, args.id)
    if note is None:
        return 1
    rt.notebook.close(note.id)
    if not args.quiet:
        print(f"Closed {note.id}")
    return 0


def cmd_reopen(args: argparse.Namespace, rt: Any) -> int:
    note = _load(rt, args.id)
    if note is None:
        return 1
    rt.notebook.reopen(note.id)
    if not args.quiet:
        print(f"Reopened {note.id}")
    return 0


def cmd_close_stale(args: argparse.Namespace, rt: Any) -> int:
    """Close open notes that have not been updated for a while."""
    minutes = args.minutes if args.minutes is not None else rt.config.notes.auto_close_minutes
    closed = rt.notebook.close_stale(timedelta(minutes=minutes))
    if args.json:
        print(json.dumps([str(nid) for nid in closed]))
    elif not args.quiet:
        for nid in closed:
            print(f"Closed {nid}")
        print(f"Closed {len(closed)} notes idle for {minutes}+ minutes")
    return 0


def cmd_attach(args: argparse.Namespace, rt: Any) -> int:
    """Append a screenshot or recording to a note."""
    note = _load(rt, args.id)
    if note is None:
        return 1
    path = Path(args.path).expanduser().resolve()
    if not path.is_file():
        print(f"File {args.path} not found", file=sys.stderr)
        return 1

    kind = AttachmentKind.RECORDING if args.recording else AttachmentKind.SCREENSHOT
    note = rt.notebook.attach(note.id, str(path), kind)
    if args.json:
        print(json.dumps(note.as_dict(), indent=2))
    elif not args.quiet:
        print(f"Attached {path.name} to {note.id}")
    return 0


def cmd_archive(args: argparse.Namespace, rt: Any) -> int:
    """Archive a note; archived notes are hidden from ls."""
    note = _load(rt, args.id)
    if note is None:
        return 1
    rt.notebook.archive(note.id)
    if not args.quiet:
        print(f"Archived {note.id}")
    return 0


def cmd_rm(args: argparse.Namespace, rt: Any) -> int:
    """Delete a note and its index rows."""
    note = _load(rt, args.id)
    if note is None:
        return 1

    if not args.yes:
        response = input(f"Delete note {note.id}? [y/N] ")
        if response.lower() not in ("y", "yes"):
            print("Aborted")
            return 0

    rt.notebook.delete(note.id)
    if not args.quiet:
        print(f"Deleted {note.id}")
    return 0


def cmd_link(args: argparse.Namespace, rt: Any) -> int:
    """Print link markup pointing at a note."""
    note = _load(rt, args.id)
    if note is None:
        return 1
    print(rt.notebook.link_markup(note.id, length=rt.config.editor.link_preview_length))
    return 0


def cmd_refs(args: argparse.Namespace, rt: Any) -> int:
    """Show outgoing links, backlinks and attachments."""
    note = _load(rt, args.id)
    if note is None:
        return 1

    links_out = rt.index.links_out(note.id)
    links_in = rt.index.links_in(note.id)
    attachments = rt.index.attachments(note.id)

    if args.json:
        output = {
            "links_out": [str(ref.target_id) for ref in links_out],
            "links_in": [str(ref.source_id) for ref in links_in],
            "attachments": [rec.as_dict() for rec in attachments],
        }
        print(json.dumps(output, indent=2))
        return 0

    for ref in links_out:
        print(f"-> {ref.target_id}")
    for ref in links_in:
        print(f"<- {ref.source_id}")
    for rec in attachments:
        print(f"@  {rec.kind.value}\t{rec.file_path}\t{rec.size_bytes}")
    return 0


def cmd_render(args: argparse.Namespace, rt: Any) -> int:
    """Render canonical text to HTML."""
    print(markdown_to_html(_read_input(args.file)))
    return 0


def cmd_reduce(args: argparse.Namespace, rt: Any) -> int:
    """Reduce editor HTML back to canonical text."""
    print(html_to_markdown(_read_input(args.file)))
    return 0


def cmd_parse(args: argparse.Namespace, rt: Any) -> int:
    """Print the content elements of a text as JSON."""
    elements = parse_document(_read_input(args.file))
    print(json.dumps([el.as_dict() for el in elements], indent=2, ensure_ascii=False))
    return 0


def cmd_reindex(args: argparse.Namespace, rt: Any) -> int:
    """Rebuild the reference index from the notes."""
    counts = rt.notebook.reindex()
    if args.json:
        print(json.dumps(counts))
    elif not args.quiet:
        print(f"Scanned: {counts['scanned']}")
        print(f"Links: {counts['links']}")
        print(f"Attachments: {counts['attachments']}")
    return 0


def cmd_export(args: argparse.Namespace, rt: Any) -> int:
    """Export notes as plain Markdown files."""
    outdir = Path(args.outdir)
    exporter = MarkdownExporter(rt.vault, rt.index, rt.config.attachments.root)
    counts = exporter.export_all(
        outdir,
        include_archived=args.include_archived,
        include_attachments=not args.no_attachments,
        organize_by=args.organize,
    )
    if args.json:
        print(json.dumps(counts))
    elif not args.quiet:
        print(f"Exported {counts['notes']} notes to {outdir}")
    return 0


def cmd_import(args: argparse.Namespace, rt: Any) -> int:
    """Import a folder of Markdown files as new notes."""
    counts = MarkdownImporter(rt.notebook).import_all(Path(args.srcdir))
    if args.json:
        print(json.dumps(counts))
    elif not args.quiet:
        print(f"Imported {counts['notes']} notes ({counts['skipped']} skipped)")
    return 0


def cmd_serve(args: argparse.Namespace, rt: Any) -> int:
    """Start local JSON API server."""
    import uvicorn

    from .api.app import create_app, generate_token

    token_arg = args.token
    if token_arg == "auto":
        token = generate_token()
        print(f"Generated bearer token: {token}")
        print(f"Use in requests: Authorization: Bearer {token}")
    elif token_arg == "none":
        print("Warning: Running without authentication. Only use in trusted environments.")
        token = None
    else:
        token = token_arg

    app = create_app(rt, token=token, enable_cors=args.cors)

    host = args.host or rt.config.api.host
    port = args.port or rt.config.api.port
    print(f"Starting server on http://{host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level="info")
    return 0


def _version_string() -> str:
    return f"noot {__version__} (python {platform.python_version()}, platform {platform.system().lower()})"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="noot", description="Noot CLI")
    parser.add_argument("--version", action="version", version=_version_string())
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config file (default: search cwd/noot.toml, vault/noot.toml)",
    )
    parser.add_argument(
        "--vault",
        type=Path,
        default=None,
        help="Path to vault directory (overrides config)",
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="Path to SQLite index DB (overrides config)",
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Minimize output"
    )
    parser.add_argument(
        "--json", action="store_true", help="Machine-readable output"
    )

    subparsers = parser.add_subparsers(dest="cmd", required=True)

    parser_new = subparsers.add_parser("new", help="Create a note")
    parser_new.add_argument("content", nargs="?", help="Note text (default: stdin)")

    parser_update = subparsers.add_parser("update", help="Replace a note's text")
    parser_update.add_argument("id", help="Note ID")
    parser_update.add_argument("content", nargs="?", help="New text (default: stdin)")
    parser_update.add_argument(
        "--html", action="store_true", help="Input is editor HTML; reduce it first"
    )

    parser_show = subparsers.add_parser("show", help="Print a note")
    parser_show.add_argument("id", help="Note ID")
    parser_show.add_argument("--html", action="store_true", help="Print rendered HTML")

    parser_ls = subparsers.add_parser("ls", help="List open notes")
    parser_ls.add_argument(
        "--all", action="store_true", help="Include closed and archived notes"
    )

    for name, help_text in (
        ("close", "Close a note"),
        ("reopen", "Reopen a closed note"),
        ("archive", "Archive a note"),
    ):
        p = subparsers.add_parser(name, help=help_text)
        p.add_argument("id", help="Note ID")

    parser_stale = subparsers.add_parser(
        "close-stale", help="Close notes idle longer than the auto-close delay"
    )
    parser_stale.add_argument(
        "--minutes", type=int, default=None,
        help="Idle minutes before closing (default: config notes.auto_close_minutes)"
    )

    parser_attach = subparsers.add_parser("attach", help="Attach a screenshot or recording")
    parser_attach.add_argument("id", help="Note ID")
    parser_attach.add_argument("path", help="Media file")
    parser_attach.add_argument(
        "--recording", action="store_true", help="File is a screen recording"
    )

    parser_rm = subparsers.add_parser("rm", help="Delete a note")
    parser_rm.add_argument("id", help="Note ID")
    parser_rm.add_argument("--yes", action="store_true", help="Skip confirmation")

    parser_link = subparsers.add_parser("link", help="Print link markup for a note")
    parser_link.add_argument("id", help="Note ID")

    parser_refs = subparsers.add_parser("refs", help="Show a note's references")
    parser_refs.add_argument("id", help="Note ID")

    for name, help_text in (
        ("render", "Render text to HTML"),
        ("reduce", "Reduce HTML to text"),
        ("parse", "Print content elements as JSON"),
    ):
        p = subparsers.add_parser(name, help=help_text)
        p.add_argument("file", nargs="?", help="Input file (default: stdin)")

    subparsers.add_parser("reindex", help="Rebuild the reference index")

    parser_export = subparsers.add_parser("export", help="Export notes as Markdown")
    parser_export.add_argument("outdir", help="Output directory")
    parser_export.add_argument(
        "--organize", choices=ORGANIZE_CHOICES, default="flat",
        help="File layout (default: flat)"
    )
    parser_export.add_argument(
        "--no-attachments", dest="no_attachments", action="store_true",
        help="Do not copy attachment files"
    )
    parser_export.add_argument(
        "--include-archived", dest="include_archived", action="store_true",
        help="Also export archived notes"
    )

    parser_import = subparsers.add_parser("import", help="Import Markdown files as notes")
    parser_import.add_argument("srcdir", help="Folder of .md files (searched recursively)")

    parser_serve = subparsers.add_parser("serve", help="Start local JSON API server")
    parser_serve.add_argument("--host", default=None, help="Bind host (default: config)")
    parser_serve.add_argument("--port", type=int, default=None, help="Bind port (default: config)")
    parser_serve.add_argument(
        "--token", default="auto",
        help="Bearer token: 'auto' to generate, 'none' to disable, or a value"
    )
    parser_serve.add_argument("--cors", action="store_true", help="Enable CORS")

    return parser


def main() -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.ERROR if args.quiet else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    rt = build_runtime(
        vault_path=args.vault,
        db_path=args.db,
        config_path=args.config,
    )

    handlers = {
        "new": cmd_new,
        "update": cmd_update,
        "show": cmd_show,
        "ls": cmd_ls,
        "close": cmd_close,
        "reopen": cmd_reopen,
        "close-stale": cmd_close_stale,
        "attach": cmd_attach,
        "archive": cmd_archive,
        "rm": cmd_rm,
        "link": cmd_link,
        "refs": cmd_refs,
        "render": cmd_render,
        "reduce": cmd_reduce,
        "parse": cmd_parse,
        "reindex": cmd_reindex,
        "export": cmd_export,
        "import": cmd_import,
        "serve": cmd_serve,
    }

    handler = handlers.get(args.cmd)
    if handler:
        try:
            exit_code = handler(args, rt)
            sys.exit(exit_code)
        except Exception as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
    else:
        print(f"Unknown command: {args.cmd}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
