"""Replace local image sources with data URLs.

Web-based editing surfaces refuse to load ``file://`` URLs, so images are
embedded before the HTML is handed over. The original location is kept in
``data-path`` and the reducer prefers it over ``src``.
"""

import base64
import logging
import re
from html import unescape
from pathlib import Path
from urllib.parse import unquote

logger = logging.getLogger(__name__)

LOCAL_IMG_RE = re.compile(r'<img\s+[^>]*src="(file://[^"]+)"[^>]*>', re.IGNORECASE)
# older captures were written without the underscore: screenshot1234.jpg
MISSING_UNDERSCORE_RE = re.compile(r"(screenshot|recording)(\d)")

MIME_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "webp": "image/webp",
    "bmp": "image/bmp",
    "tiff": "image/tiff",
    "tif": "image/tiff",
}


def mime_type_for(path: Path) -> str:
    return MIME_TYPES.get(path.suffix.lower().lstrip("."), "image/png")


def _locate(file_url: str, attachments_root: Path | None) -> Path | None:
    # attribute values arrive HTML-escaped from the renderer
    path = Path(unquote(unescape(file_url[len("file://"):])))
    if not path.is_absolute() and attachments_root is not None:
        path = attachments_root / path
    if path.exists():
        return path

    alternate = Path(MISSING_UNDERSCORE_RE.sub(r"\1_\2", str(path)))
    if alternate != path and alternate.exists():
        return alternate
    return None


def inline_local_images(html: str, attachments_root: Path | None = None) -> str:
    """Embed every readable ``file://`` image as a base64 data URL.

    Tags whose file cannot be found or read are left untouched.
    """

    def embed(m: re.Match[str]) -> str:
        tag = m.group(0)
        file_url = m.group(1)

        path = _locate(file_url, attachments_root)
        if path is None:
            logger.debug("image not found, leaving tag as is: %s", file_url)
            return tag
        try:
            data = path.read_bytes()
        except OSError as e:
            logger.warning("could not read image %s: %s", path, e)
            return tag

        encoded = base64.b64encode(data).decode("ascii")
        data_url = f"data:{mime_type_for(path)};base64,{encoded}"
        new_tag = tag.replace(f'src="{file_url}"', f'src="{data_url}"', 1)
        if "data-path=" not in new_tag:
            new_tag = new_tag.replace("<img", f'<img data-path="{file_url}"', 1)
        return new_tag

    return LOCAL_IMG_RE.sub(embed, html)
