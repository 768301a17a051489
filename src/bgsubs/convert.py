# -*- coding: utf-8 -*-
"""Encoding detection and MicroDVD to SubRip conversion."""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Tuple

log = logging.getLogger("bgsubs.convert")

UTF8_BOM = b"\xef\xbb\xbf"
LEGACY_ENCODING = "cp1251"
CYRILLIC_RE = re.compile("[\u0400-\u04FF]")
CONTROL_CHAR_RE = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")

MICRODVD_LINE_RE = re.compile(r"^\{(\d+)\}\{(\d+)\}(.*)$")
FPS_DECLARATION_RE = re.compile(r"^\d+(?:[.,]\d+)?$")
STYLE_DIRECTIVE_RE = re.compile(r"\{[^}]*\}")
DETECTION_WINDOW = 50


def decode_subtitle_bytes(data: bytes) -> Tuple[str, str]:
    """Decode subtitle bytes, returning ``(text, encoding)``.

    The origins emit UTF-8 or windows-1251 without saying which. UTF-8 is
    accepted when it carries a BOM, or when it decodes cleanly and contains
    Cyrillic; everything else is read as windows-1251.
    """
    if data.startswith(UTF8_BOM):
        return data.decode("utf-8-sig", errors="replace"), "utf-8-sig"
    text = data.decode("utf-8", errors="replace")
    if CYRILLIC_RE.search(text) and "\ufffd" not in text:
        return text, "utf-8"
    return data.decode(LEGACY_ENCODING, errors="replace"), LEGACY_ENCODING


def looks_like_microdvd(text: str) -> bool:
    """True when a frame-indexed ``{start}{end}`` line appears near the top."""
    checked = 0
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        if MICRODVD_LINE_RE.match(line):
            return True
        checked += 1
        if checked >= DETECTION_WINDOW:
            break
    return False


def format_timestamp(seconds: float) -> str:
    total_ms = max(0, int(round(seconds * 1000)))
    hours, rest = divmod(total_ms, 3_600_000)
    minutes, rest = divmod(rest, 60_000)
    secs, ms = divmod(rest, 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d},{ms:03d}"


def _parse_fps(value: str) -> Optional[float]:
    try:
        fps = float(value.replace(",", "."))
    except ValueError:
        return None
    return fps if fps > 0 else None


def _clean_cue(raw: str) -> str:
    text = STYLE_DIRECTIVE_RE.sub("", raw).replace("|", "\n")
    lines = [line.strip() for line in text.split("\n")]
    return "\n".join(line for line in lines if line)


def convert_legacy_format(text: str, default_fps: float = 25.0) -> str:
    """Convert MicroDVD ``{start}{end}text`` cues to SubRip.

    A degenerate cue with equal frames and a bare number as its text (for
    example ``{1}{1}23.976``) declares the frame rate of the whole file;
    without one ``default_fps`` applies. Cues that end up empty are dropped
    and the rest renumbered from 1. Text with no convertible cues, SubRip
    included, is returned unchanged.
    """
    fps: Optional[float] = None
    cues: List[Tuple[int, int, str]] = []
    for line in text.splitlines():
        match = MICRODVD_LINE_RE.match(line.strip())
        if not match:
            continue
        start, end = int(match.group(1)), int(match.group(2))
        body = match.group(3)
        if start == end and FPS_DECLARATION_RE.match(body.strip()):
            declared = _parse_fps(body.strip())
            if declared is not None:
                fps = declared
                continue
        cleaned = _clean_cue(body)
        if cleaned:
            cues.append((start, end, cleaned))

    if not cues:
        return text

    rate = fps or default_fps
    log.debug("Converting %d MicroDVD cues at %.3f fps", len(cues), rate)
    blocks = [
        f"{index}\n{format_timestamp(start / rate)} --> {format_timestamp(end / rate)}\n{body}\n"
        for index, (start, end, body) in enumerate(cues, start=1)
    ]
    return "\n".join(blocks).strip() + "\n"


def normalize_subtitle_text(text: str) -> str:
    text = text.replace("\ufeff", "")
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = CONTROL_CHAR_RE.sub("", text)
    cleaned = [line.rstrip() for line in text.split("\n")]
    while cleaned and not cleaned[-1]:
        cleaned.pop()
    normalized = "\n".join(cleaned)
    if normalized:
        return f"{normalized}\n"
    return ""
