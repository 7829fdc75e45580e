"""Utility functions for noot."""

import re
import unicodedata
import uuid
from datetime import date, datetime, timezone
from typing import Any

FILE_URL_PREFIX = "file://"


def strip_file_url(path: str) -> str:
    """
    Drop a leading ``file://`` so the result is a bare filesystem path.

    Examples:
        >>> strip_file_url("file:///tmp/a.png")
        '/tmp/a.png'
        >>> strip_file_url("/tmp/a.png")
        '/tmp/a.png'
    """
    if path.startswith(FILE_URL_PREFIX):
        return path[len(FILE_URL_PREFIX):]
    return path


def parse_note_id(value: str) -> uuid.UUID | None:
    """
    Parse a canonical 36-character UUID (any case).

    ``uuid.UUID`` alone also accepts braces, URNs and misplaced hyphens;
    note ids must be in the 8-4-4-4-12 form, so anything else is rejected.
    """
    try:
        parsed = uuid.UUID(value)
    except (ValueError, AttributeError, TypeError):
        return None
    if str(parsed) != value.lower():
        return None
    return parsed


def slugify(text: str, max_length: int = 40) -> str:
    """
    Convert text to a filename-safe slug.

    - Lowercase
    - Unicode normalize (NFKD), drop combining marks
    - Remove punctuation except spaces and hyphens
    - Convert whitespace to single `-`
    - Cut to ``max_length``, strip leading/trailing `-`

    Examples:
        >>> slugify("Standup notes")
        'standup-notes'
        >>> slugify("Café – menu")
        'cafe-menu'
    """
    text = text.lower()
    text = text.replace('–', '-').replace('—', '-').replace('−', '-')

    text = unicodedata.normalize('NFKD', text)
    text = ''.join(c for c in text if not unicodedata.combining(c))

    text = re.sub(r'[^\w\s-]', '', text)
    text = re.sub(r'\s+', '-', text)
    text = re.sub(r'-+', '-', text)

    return text[:max_length].strip('-')


def parse_timestamp(value: Any, default: datetime | None = None) -> datetime | None:
    """
    Read a frontmatter timestamp; naive values are taken as UTC.

    YAML loads unquoted timestamps as ``datetime`` or ``date`` and quoted
    ones as strings, so all three are accepted.

    Examples:
        >>> parse_timestamp("2026-05-17T08:00:00+00:00").hour
        8
        >>> parse_timestamp("not a date") is None
        True
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value:
        try:
            dt = datetime.fromisoformat(value)
        except ValueError:
            return default
    else:
        return default
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)
