"""Canonical text to HTML for the rich-text editing surface."""

import html as htmllib
import re

from ..core.utils import parse_note_id
from .markdown_parser import IMAGE_RE, NOTE_LINK_RE, RECORDING_GLYPH, VIDEO_RE

NOTE_LINK_HREF = "noot://note/{id}"

# an info string never contains backticks, so "```x``` y" is inline code
FENCE_RE = re.compile(r"^```([^`]*)$")
LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")
INLINE_CODE_RE = re.compile(r"`([^`\n]+)`")

BOLD_STAR_RE = re.compile(r"\*\*([^*\n]+)\*\*")
BOLD_UNDERSCORE_RE = re.compile(r"(?<!\w)__([^_\n]+)__(?!\w)")
ITALIC_STAR_RE = re.compile(r"(?<!\*)\*([^*\n]+)\*(?!\*)")
ITALIC_UNDERSCORE_RE = re.compile(r"(?<!\w)_([^_\n]+)_(?!\w)")

LIST_RUN_RE = re.compile(r"(?:<li[^>]*>.*?</li>\n?)+")
BLOCK_TAG_RE = re.compile(r"^</?(?:h[1-3]|ul|ol|li|blockquote|hr|p|pre|div)\b")
PLACEHOLDER_RE = re.compile(r"\x00(\d+)\x00")


def _escape(text: str) -> str:
    return htmllib.escape(text, quote=False)


def _attr(value: str) -> str:
    return value.replace('"', "&quot;")


class _Stash:
    """Holds finished HTML fragments out of reach of later regex passes."""

    def __init__(self) -> None:
        self.fragments: list[str] = []
        self.blocks: set[str] = set()

    def put(self, fragment: str, block: bool = False) -> str:
        token = f"\x00{len(self.fragments)}\x00"
        self.fragments.append(fragment)
        if block:
            self.blocks.add(token)
        return token

    def restore(self, html: str) -> str:
        # fragments may contain earlier placeholders (code inside a link label)
        for _ in range(len(self.fragments) + 1):
            if not PLACEHOLDER_RE.search(html):
                break
            html = PLACEHOLDER_RE.sub(lambda m: self.fragments[int(m.group(1))], html)
        return html


def _code_block(lang: str, body: list[str]) -> str:
    cls = f' class="language-{_attr(_escape(lang))}"' if lang else ""
    inner = "<br>".join(_escape(ln) for ln in body)
    return f"<pre><code{cls}>{inner}</code></pre>"


def _block_pass(markdown: str, stash: _Stash) -> list[str]:
    lines = markdown.split("\n")
    result: list[str] = []
    i = 0

    while i < len(lines):
        line = lines[i].rstrip("\r")

        fence = FENCE_RE.match(line)
        if fence:
            lang = fence.group(1).strip()
            body: list[str] = []
            i += 1
            # an unterminated fence runs to the end of the document
            while i < len(lines) and not lines[i].rstrip("\r").startswith("```"):
                body.append(lines[i].rstrip("\r"))
                i += 1
            i += 1
            result.append(stash.put(_code_block(lang, body), block=True))
            continue

        if line.startswith("### "):
            line = f"<h3>{_escape(line[4:])}</h3>"
        elif line.startswith("## "):
            line = f"<h2>{_escape(line[3:])}</h2>"
        elif line.startswith("# "):
            line = f"<h1>{_escape(line[2:])}</h1>"
        elif line.startswith("- [ ] "):
            line = (
                '<li class="task-item"><input type="checkbox">'
                f"<span>{_escape(line[6:])}</span></li>"
            )
        elif line.startswith(("- [x] ", "- [X] ")):
            line = (
                '<li class="task-item checked"><input type="checkbox" checked>'
                f"<span>{_escape(line[6:])}</span></li>"
            )
        elif line.startswith("> "):
            line = f"<blockquote>{_escape(line[2:])}</blockquote>"
        elif line.startswith("- "):
            line = f"<li>{_escape(line[2:])}</li>"
        elif line == "---":
            line = "<hr>"
        else:
            line = _escape(line)

        result.append(line)
        i += 1

    return result


def _inline_pass(html: str, stash: _Stash) -> str:
    html = INLINE_CODE_RE.sub(lambda m: stash.put(f"<code>{m.group(1)}</code>"), html)

    html = IMAGE_RE.sub(
        lambda m: stash.put(f'<img src="{_attr(m.group(2))}" alt="{_attr(m.group(1))}">'),
        html,
    )

    def note_link(m: re.Match[str]) -> str:
        target = parse_note_id(m.group(1))
        if target is None:
            return m.group(0)
        href = NOTE_LINK_HREF.format(id=target)
        return stash.put(
            f'<a href="{href}" class="note-link" data-note-id="{target}">{m.group(2)}</a>'
        )

    html = NOTE_LINK_RE.sub(note_link, html)

    html = VIDEO_RE.sub(
        lambda m: stash.put(
            f'{RECORDING_GLYPH} <a href="{_attr(m.group(2))}" class="recording">{m.group(1)}</a>'
        ),
        html,
    )
    html = LINK_RE.sub(
        lambda m: stash.put(f'<a href="{_attr(m.group(2))}">{m.group(1)}</a>'),
        html,
    )

    html = BOLD_STAR_RE.sub(r"<strong>\1</strong>", html)
    html = BOLD_UNDERSCORE_RE.sub(r"<strong>\1</strong>", html)
    html = ITALIC_STAR_RE.sub(r"<em>\1</em>", html)
    html = ITALIC_UNDERSCORE_RE.sub(r"<em>\1</em>", html)
    return html


def _wrap_lists(html: str) -> str:
    def wrap(m: re.Match[str]) -> str:
        run = m.group(0)
        if run.endswith("\n"):
            return f"<ul>{run[:-1]}</ul>\n"
        return f"<ul>{run}</ul>"

    return LIST_RUN_RE.sub(wrap, html)


def _paragraph_pass(html: str, stash: _Stash) -> str:
    out: list[str] = []
    for line in html.split("\n"):
        stripped = line.strip()
        if not stripped:
            out.append("<br>")
        elif stripped in stash.blocks or BLOCK_TAG_RE.match(stripped):
            out.append(line)
        else:
            out.append(f"<p>{stripped}</p>")
    return "".join(out)


def markdown_to_html(markdown: str) -> str:
    """Render canonical note text as an HTML fragment.

    Block constructs are resolved per line first, then inline constructs
    over the whole buffer, then list items are grouped into ``<ul>`` and
    every remaining plain line is wrapped in ``<p>``. Blank lines become
    ``<br>``.
    """
    stash = _Stash()
    # NUL delimits placeholders
    markdown = markdown.replace("\x00", "")

    html = "\n".join(_block_pass(markdown, stash))
    html = _inline_pass(html, stash)
    html = _wrap_lists(html)
    html = _paragraph_pass(html, stash)
    return stash.restore(html)
