# -*- coding: utf-8 -*-
"""Helpers shared by the subtitle source scrapers."""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Sequence

import httpx
from charset_normalizer import from_bytes

BROWSER_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
ACCEPT_LANGUAGE = "bg,en-US;q=0.7,en;q=0.3"

TITLE_NOISE_RE = re.compile(r"[^\w\s\-]")
WHITESPACE_RE = re.compile(r"\s+")
YEAR_IN_PARENS_RE = re.compile(r"\((\d{4})\)")
NUMERIC_RE = re.compile(r"^\d+$")
FPS_RE = re.compile(r"^\d+(?:[.,]\d+)?$")

# Series query notations; {t} title, {s}/{e} bare numbers, {ss}/{ee} zero padded.
NOTATION_X = "{t} {s}x{ee}"
NOTATION_XX = "{t} {ss}x{ee}"
NOTATION_SE = "{t} S{ss}E{ee}"


def sanitize_title(title: Optional[str]) -> str:
    """Replace punctuation with spaces and collapse whitespace."""
    text = TITLE_NOISE_RE.sub(" ", title or "")
    return WHITESPACE_RE.sub(" ", text).strip()


def normalize_query(query: str) -> str:
    return WHITESPACE_RE.sub(" ", query or "").strip().lower()


def format_series_query(notation: str, title: str, season: int, episode: int) -> str:
    return notation.format(
        t=title,
        s=season,
        e=episode,
        ss=f"{season:02d}",
        ee=f"{episode:02d}",
    )


def build_query_variants(
    title: str,
    season: Optional[int],
    episode: Optional[int],
    notations: Sequence[str],
) -> List[str]:
    base = sanitize_title(title)
    if not base:
        return []
    if not (season and episode):
        return [base]
    queries: List[str] = []
    for notation in notations:
        query = format_series_query(notation, base, season, episode)
        if query not in queries:
            queries.append(query)
    return queries


def browser_headers(user_agent: str, referer: str) -> Dict[str, str]:
    return {
        "User-Agent": user_agent,
        "Accept": BROWSER_ACCEPT,
        "Accept-Language": ACCEPT_LANGUAGE,
        "Referer": referer,
    }


def decode_page(response: httpx.Response, forced_encoding: Optional[str] = None) -> str:
    """Decode an HTML listing.

    A source with a known page encoding always uses it (some origins declare
    the wrong charset). Otherwise the Content-Type charset wins, and without
    one charset_normalizer guesses.
    """
    raw = response.content
    if forced_encoding:
        return raw.decode(forced_encoding, errors="replace")
    if response.charset_encoding:
        return response.text
    match = from_bytes(raw).best()
    if match is not None:
        return str(match)
    return raw.decode("utf-8", errors="replace")


def cell_text(node) -> str:
    if node is None:
        return ""
    return WHITESPACE_RE.sub(" ", node.get_text(" ", strip=True)).strip()


def optional_text(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    return value or None
