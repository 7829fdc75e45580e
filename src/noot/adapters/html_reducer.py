"""Editor HTML back to canonical note text.

The reduction is a fixed sequence of regex passes over the whole buffer,
not a parse tree. Block patterns only accept tag-free inner text, so
nested or overlapping styles (bold inside a heading or a link label,
emphasis spanning tags) come back flattened rather than exactly.

A flattened block also loses the newline it would have emitted: when a
heading or task item holds inline code or emphasis, its text runs straight
into the next block. A checked task "`a` b" followed by the heading "Title"
comes back as the single line "`a` b# Title".
"""

import re

BR_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)

IMG_RE = re.compile(r"<img\b[^>]*>", re.IGNORECASE)
IMG_SRC_RE = re.compile(r'(?<![\w-])src="([^"]*)"')
IMG_PATH_RE = re.compile(r'(?<![\w-])data-path="([^"]*)"')
IMG_ALT_RE = re.compile(r'(?<![\w-])alt="([^"]*)"')

NOTE_ANCHOR_RE = re.compile(r'<a\b[^>]*data-note-id="([^"]*)"[^>]*>([^<]*)</a>')
ANCHOR_RE = re.compile(r'<a\b[^>]*href="([^"]*)"[^>]*>([^<]*)</a>')

TASK_CHECKED_RE = re.compile(
    r'<li[^>]*class="[^"]*task-item[^"]*checked[^"]*"[^>]*>.*?<span>([^<]*)</span></li>'
)
TASK_RE = re.compile(
    r'<li[^>]*class="[^"]*task-item[^"]*"[^>]*>.*?<span>([^<]*)</span></li>'
)

PRE_CODE_RE = re.compile(
    r'<pre><code(?: class="language-([^"]*)")?>([^<]*)</code></pre>'
)

# (pattern, replacement) pairs applied in order after the passes above
_SIMPLE_PASSES: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"<h1[^>]*>([^<]*)</h1>"), r"# \1\n"),
    (re.compile(r"<h2[^>]*>([^<]*)</h2>"), r"## \1\n"),
    (re.compile(r"<h3[^>]*>([^<]*)</h3>"), r"### \1\n"),
    (re.compile(r"<strong>([^<]*)</strong>"), r"**\1**"),
    (re.compile(r"<b>([^<]*)</b>"), r"**\1**"),
    (re.compile(r"<em>([^<]*)</em>"), r"*\1*"),
    (re.compile(r"<i>([^<]*)</i>"), r"*\1*"),
]

_TRAILING_PASSES: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"<code>([^<]*)</code>"), r"`\1`"),
    (re.compile(r"<blockquote>([^<]*)</blockquote>"), r"> \1\n"),
    (re.compile(r"<li>([^<]*)</li>"), r"- \1\n"),
    (re.compile(r"</?ul[^>]*>"), ""),
    (re.compile(r"</?ol[^>]*>"), ""),
    (re.compile(r"<hr[^>]*/?>"), "---\n"),
    (re.compile(r"<p>([^<]*)</p>"), r"\1\n"),
    (re.compile(r"<div>([^<]*)</div>"), r"\1\n"),
    (re.compile(r"<[^>]+>"), ""),
]

# &amp; goes last so "&amp;lt;" stays the literal text "&lt;"
ENTITIES = [
    ("&nbsp;", " "),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&amp;", "&"),
]

EXTRA_NEWLINES_RE = re.compile(r"\n{3,}")


def _image(m: re.Match[str]) -> str:
    tag = m.group(0)
    # inlined images carry their original location in data-path
    path = IMG_PATH_RE.search(tag) or IMG_SRC_RE.search(tag)
    if path is None:
        return ""
    alt = IMG_ALT_RE.search(tag)
    return f"![{alt.group(1) if alt else ''}]({path.group(1)})"


def _code_block(m: re.Match[str]) -> str:
    lang = m.group(1) or ""
    body = m.group(2)
    if not body:
        return f"```{lang}\n```\n"
    return f"```{lang}\n{body}\n```\n"


def html_to_markdown(html: str) -> str:
    """Reduce editor HTML to canonical text. Never raises."""
    md = BR_RE.sub("\n", html)

    md = IMG_RE.sub(_image, md)

    md = NOTE_ANCHOR_RE.sub(r"[[\1|\2]]", md)
    md = ANCHOR_RE.sub(r"[\2](\1)", md)

    md = TASK_CHECKED_RE.sub(r"- [x] \1\n", md)
    md = TASK_RE.sub(r"- [ ] \1\n", md)

    for pattern, repl in _SIMPLE_PASSES:
        md = pattern.sub(repl, md)

    md = PRE_CODE_RE.sub(_code_block, md)

    for pattern, repl in _TRAILING_PASSES:
        md = pattern.sub(repl, md)

    for entity, char in ENTITIES:
        md = md.replace(entity, char)

    md = EXTRA_NEWLINES_RE.sub("\n\n", md)
    return md.strip()
