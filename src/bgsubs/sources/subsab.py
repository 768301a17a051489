# -*- coding: utf-8 -*-
"""subs.sab.bz search and download.

The site only answers reliably over plain HTTP and serves windows-1251 pages.
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional

from bs4 import BeautifulSoup

from ..models import SubtitleRecord
from .base import SubtitleSource
from .common import (
    FPS_RE,
    NOTATION_SE,
    NOTATION_X,
    NOTATION_XX,
    NUMERIC_RE,
    YEAR_IN_PARENS_RE,
    cell_text,
    optional_text,
)

ATTACH_ID_RE = re.compile(r"attach_id=(\d+)")
TRAILING_YEAR_RE = re.compile(r"\s*\(\d{4}\)\s*$")


class SubsSabSource(SubtitleSource):
    name = "subsab"
    label = "SubsSab"
    base_url = "http://subs.sab.bz"
    search_path = "/index.php"
    series_notations = (NOTATION_X, NOTATION_SE, NOTATION_XX)
    page_encoding = "windows-1251"

    def search_form(self, query: str, year: Optional[int], imdb_id: Optional[str]) -> Dict[str, str]:
        return {
            "act": "search",
            "movie": query,
            "select-language": "2",  # 2 = Bulgarian, 1 = English
            "imdb": (imdb_id or "").replace("tt", ""),
            "yr": str(year or ""),
        }

    def parse_listing(self, html: str) -> List[SubtitleRecord]:
        soup = BeautifulSoup(html, "html.parser")
        records: List[SubtitleRecord] = []
        for row in soup.select("tr.subs-row"):
            link = row.select_one('a[href*="act=download"]')
            if link is None:
                continue
            match = ATTACH_ID_RE.search(link.get("href", ""))
            if not match:
                continue
            title = link.get_text(strip=True)
            if not title:
                continue

            year_match = YEAR_IN_PARENS_RE.search(title)
            fps = cell_text(row.select_one("td.c5") or row.select_one("td:nth-of-type(8)"))
            downloads = cell_text(row.select_one("td.c8") or row.select_one("td:nth-of-type(11)"))
            records.append(
                self.make_record(
                    match.group(1),
                    TRAILING_YEAR_RE.sub("", title).strip(),
                    year=year_match.group(1) if year_match else None,
                    frame_rate=fps if FPS_RE.match(fps) else None,
                    uploader=optional_text(cell_text(row.select_one('a[href*="showuser"]'))),
                    download_count=downloads if NUMERIC_RE.match(downloads) else None,
                )
            )
        return records

    def get_download_locator(self, external_id: str) -> str:
        return f"{self.base_url}/index.php?act=download&attach_id={external_id}"
