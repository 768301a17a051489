# -*- coding: utf-8 -*-
"""subsunacs.net search and download."""

from __future__ import annotations

import re
from typing import Dict, List, Optional

from bs4 import BeautifulSoup

from ..models import SubtitleRecord
from .base import SubtitleSource
from .common import NOTATION_SE, NOTATION_X, NOTATION_XX, YEAR_IN_PARENS_RE, cell_text, optional_text

SUBTITLE_LINK_RE = re.compile(r"/subtitles/.+-(\d+)/")


class SubsunacsSource(SubtitleSource):
    name = "subsunacs"
    label = "Subsunacs"
    base_url = "https://subsunacs.net"
    search_path = "/search.php"
    series_notations = (NOTATION_X, NOTATION_XX, NOTATION_SE)

    def search_form(self, query: str, year: Optional[int], imdb_id: Optional[str]) -> Dict[str, str]:
        return {
            "m": query,
            "y": str(year or ""),
            "l": "0",  # 0 = Bulgarian
            "action": "search",
            "c": "",
            "d": "",
            "u": "",
            "g": "",
            "t": "",
            "imdbcheck": "1",
        }

    def parse_listing(self, html: str) -> List[SubtitleRecord]:
        soup = BeautifulSoup(html, "html.parser")
        records: List[SubtitleRecord] = []
        # Result rows carry the tooltip handler; header and pager rows do not.
        for row in soup.select("table tr[onmouseover]"):
            cells = row.find_all("td", recursive=False) or row.find_all("td")
            if not cells:
                continue
            link = cells[0].find("a", href=True)
            if link is None:
                continue
            match = SUBTITLE_LINK_RE.search(link["href"])
            if not match:
                continue

            year_match = YEAR_IN_PARENS_RE.search(cell_text(cells[0].find("span", class_="smGray")))
            uploader_link = cells[5].find("a") if len(cells) > 5 else None
            records.append(
                self.make_record(
                    match.group(1),
                    link.get_text(strip=True),
                    year=year_match.group(1) if year_match else None,
                    frame_rate=optional_text(cell_text(cells[2])) if len(cells) > 2 else None,
                    uploader=optional_text(cell_text(uploader_link)),
                    download_count=optional_text(cell_text(cells[6])) if len(cells) > 6 else None,
                )
            )
        return records

    def get_download_locator(self, external_id: str) -> str:
        # ei=0 is the first file of the entry, usually the subtitle archive itself
        return f"{self.base_url}/getentry.php?id={external_id}&ei=0"
