"""Tests for reducing editor HTML back to note text."""

from noot.adapters.html_reducer import html_to_markdown

OTHER = "11111111-1111-1111-1111-111111111111"


def test_checked_task_item():
    html = '<li class="task-item checked"><input type="checkbox" checked><span>Buy milk</span></li>'
    assert html_to_markdown(html) == "- [x] Buy milk"


def test_unchecked_task_item():
    html = '<li class="task-item"><input type="checkbox"><span>Eggs</span></li>'
    assert html_to_markdown(html) == "- [ ] Eggs"


def test_task_list_mixed_order():
    html = (
        '<ul><li class="task-item"><input type="checkbox"><span>a</span></li>'
        '<li class="task-item checked"><input type="checkbox" checked><span>b</span></li></ul>'
    )
    assert html_to_markdown(html) == "- [ ] a\n- [x] b"


def test_headings():
    assert html_to_markdown("<h1>T</h1><h2>S</h2><h3>U</h3>") == "# T\n## S\n### U"


def test_bold_and_italic_spellings():
    html = "<p><b>a</b> <strong>b</strong> <i>c</i> <em>d</em></p>"
    assert html_to_markdown(html) == "**a** **b** *c* *d*"


def test_line_breaks():
    assert html_to_markdown("a<br>b<br/>c<BR />d") == "a\nb\nc\nd"


def test_image_without_alt():
    assert html_to_markdown('<img src="/tmp/a.png">') == "![](/tmp/a.png)"


def test_image_with_alt():
    assert html_to_markdown('<img src="a.png" alt="Pic">') == "![Pic](a.png)"


def test_image_prefers_data_path():
    """Test that an inlined image reduces to its original location."""
    html = '<img data-path="file:///tmp/a.png" src="data:image/png;base64,AAAA" alt="">'
    assert html_to_markdown(html) == "![](file:///tmp/a.png)"


def test_image_without_source_is_dropped():
    assert html_to_markdown('<p>x<img alt="y"></p>') == "x"


def test_note_link_anchor():
    html = f'<a href="noot://note/{OTHER}" class="note-link" data-note-id="{OTHER}">other</a>'
    assert html_to_markdown(html) == f"[[{OTHER}|other]]"


def test_plain_anchor():
    assert html_to_markdown('<a href="https://example.com">site</a>') == "[site](https://example.com)"


def test_inline_code():
    assert html_to_markdown("<p><code>x</code></p>") == "`x`"


def test_code_block():
    html = '<pre><code class="language-py">x = 1<br>y</code></pre>'
    assert html_to_markdown(html) == "```py\nx = 1\ny\n```"


def test_empty_code_block():
    assert html_to_markdown("<pre><code></code></pre>") == "```\n```"


def test_blockquote_list_rule():
    html = "<blockquote>q</blockquote><ul><li>a</li><li>b</li></ul><hr>"
    assert html_to_markdown(html) == "> q\n- a\n- b\n---"


def test_divs_become_lines():
    assert html_to_markdown("<div>a</div><div>b</div>") == "a\nb"


def test_unknown_tags_are_stripped():
    assert html_to_markdown('<span style="color: red">hi</span>') == "hi"


def test_entities():
    html = "<p>a &amp; b &lt;c&gt; &quot;d&quot;&nbsp;e</p>"
    assert html_to_markdown(html) == 'a & b <c> "d" e'


def test_escaped_entity_is_decoded_once():
    assert html_to_markdown("<p>&amp;lt;</p>") == "&lt;"


def test_extra_blank_lines_collapse():
    assert html_to_markdown("<p>a</p><br><br><br><p>b</p>") == "a\n\nb"


def test_nested_style_is_flattened():
    """Test the known limitation: styled heading text loses the heading."""
    assert html_to_markdown("<h1><strong>Hi</strong></h1>") == "**Hi**"


def test_flattened_block_runs_into_next_line():
    """Test the known limitation: a styled task item swallows the next heading."""
    html = (
        '<ul><li class="task-item checked"><input type="checkbox" checked>'
        "<span><code>a</code> b</span></li></ul><h1>Title</h1>"
    )
    assert html_to_markdown(html) == "`a` b# Title"


def test_never_raises_on_garbage():
    for html in ["", "<", "<<<>>>&&", "<img", "</p></p>", "<a href=>x</a>"]:
        assert isinstance(html_to_markdown(html), str)
