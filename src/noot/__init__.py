"""noot: canonical Markdown notes with a rich-text editing surface."""

__version__ = "0.1.0"
