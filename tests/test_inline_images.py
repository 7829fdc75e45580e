"""Tests for embedding local images as data URLs."""

import base64
import tempfile
from pathlib import Path

from noot.adapters.html_reducer import html_to_markdown
from noot.adapters.html_renderer import markdown_to_html
from noot.adapters.inline_images import inline_local_images, mime_type_for

PNG = b"\x89PNG\r\n\x1a\nfake"


def test_local_image_is_embedded():
    """Test that src becomes a data URL and the path is kept."""
    with tempfile.TemporaryDirectory() as tmpdir:
        img = Path(tmpdir) / "shot.png"
        img.write_bytes(PNG)
        html = markdown_to_html(f"![](file://{img})")

        inlined = inline_local_images(html)

        encoded = base64.b64encode(PNG).decode("ascii")
        assert f'src="data:image/png;base64,{encoded}"' in inlined
        assert f'data-path="file://{img}"' in inlined


def test_inlined_image_reduces_to_original_markup():
    with tempfile.TemporaryDirectory() as tmpdir:
        img = Path(tmpdir) / "shot.jpg"
        img.write_bytes(b"jpeg")
        text = f"before\n![](file://{img})\nafter"

        html = inline_local_images(markdown_to_html(text))

        assert "image/jpeg" in html
        assert html_to_markdown(html) == text


def test_relative_path_resolved_under_root():
    with tempfile.TemporaryDirectory() as tmpdir:
        (Path(tmpdir) / "a.gif").write_bytes(b"GIF89a")
        html = '<img src="file://a.gif" alt="">'
        assert "data:image/gif" in inline_local_images(html, Path(tmpdir))


def test_missing_underscore_fallback():
    """Test that old screenshot names without an underscore still load."""
    with tempfile.TemporaryDirectory() as tmpdir:
        (Path(tmpdir) / "screenshot_1234.png").write_bytes(PNG)
        html = f'<img src="file://{tmpdir}/screenshot1234.png" alt="">'
        assert "data:image/png" in inline_local_images(html)


def test_missing_file_left_untouched():
    html = '<img src="file:///nowhere/x.png" alt="">'
    assert inline_local_images(html) == html


def test_remote_image_left_untouched():
    html = '<img src="https://example.com/x.png" alt="">'
    assert inline_local_images(html) == html


def test_mime_types():
    assert mime_type_for(Path("a.JPG")) == "image/jpeg"
    assert mime_type_for(Path("a.webp")) == "image/webp"
    assert mime_type_for(Path("a.unknown")) == "image/png"


def test_escaped_ampersand_in_path():
    """Test that a path the renderer HTML-escaped is still found."""
    with tempfile.TemporaryDirectory() as tmpdir:
        img = Path(tmpdir) / "before&after.png"
        img.write_bytes(PNG)
        text = f"![](file://{img})"
        html = markdown_to_html(text)
        assert "before&amp;after.png" in html

        inlined = inline_local_images(html)

        assert "data:image/png;base64," in inlined
        assert html_to_markdown(inlined) == text
