"""Markup builders and previews for noot notes."""

from .markup import append_markup, note_link_markup, recording_markup, screenshot_markup
from .preview import first_line, preview, strip_markup

__all__ = [
    "append_markup",
    "first_line",
    "note_link_markup",
    "preview",
    "recording_markup",
    "screenshot_markup",
    "strip_markup",
]
