"""Bulgarian subtitles search and retrieval proxy."""

from __future__ import annotations

__version__ = "2.0.0"

LANG_ISO639_2 = "bul"
