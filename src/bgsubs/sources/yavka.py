# -*- coding: utf-8 -*-
"""yavka.net search and download.

Not enabled by default: the origin sits behind Cloudflare bot protection and
usually rejects server-side requests. Downloads take two steps, the entry
page first and then either its direct link or its download form.
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup

from ..fetch import FetchOutcome, fetch_bytes
from ..models import SubtitleRecord
from .base import SubtitleSource
from .common import NOTATION_SE, NOTATION_X, NOTATION_XX, NUMERIC_RE, cell_text, optional_text

SUBTITLE_ID_RE = re.compile(r"/subtitles/(\d+)")
FALLBACK_ID_RE = re.compile(r"/(?:subtitles|sub)/(\d+)")


def _looks_like_fps(text: str) -> bool:
    try:
        value = float(text)
    except ValueError:
        return False
    return 20 < value < 60


class YavkaSource(SubtitleSource):
    name = "yavka"
    label = "Yavka"
    base_url = "https://yavka.net"
    search_path = "/subtitles"
    series_notations = (NOTATION_X, NOTATION_SE, NOTATION_XX)

    def search_form(self, query: str, year: Optional[int], imdb_id: Optional[str]) -> Dict[str, str]:
        return {
            "s": query,
            "y": str(year or ""),
            "l": "bg",
            "i": imdb_id or "",
        }

    def parse_listing(self, html: str) -> List[SubtitleRecord]:
        soup = BeautifulSoup(html, "html.parser")
        records = self._parse_rows(soup)
        if not records:
            records = self._parse_plain_table(soup)
        return records

    def _parse_rows(self, soup: BeautifulSoup) -> List[SubtitleRecord]:
        records: List[SubtitleRecord] = []
        for row in soup.select('tr.subs-row, tr[id^="sub_"]'):
            link = row.select_one('a[href*="/subtitles/"]')
            if link is None:
                continue
            match = SUBTITLE_ID_RE.search(link.get("href", ""))
            if not match:
                continue

            fps: Optional[str] = None
            downloads: Optional[str] = None
            for cell in row.find_all("td"):
                text = cell_text(cell)
                if _looks_like_fps(text):
                    fps = text
                elif NUMERIC_RE.match(text):
                    downloads = text
            uploader = row.select_one('a[href*="/user/"], a[href*="/profile/"]')
            records.append(
                self.make_record(
                    match.group(1),
                    link.get_text(strip=True),
                    frame_rate=fps,
                    uploader=optional_text(cell_text(uploader)),
                    download_count=downloads,
                )
            )
        return records

    def _parse_plain_table(self, soup: BeautifulSoup) -> List[SubtitleRecord]:
        records: List[SubtitleRecord] = []
        for row in soup.select("table.subs-list tr, table tbody tr"):
            if row.find("th") is not None:
                continue
            match = None
            for link in row.find_all("a", href=True):
                match = FALLBACK_ID_RE.search(link["href"])
                if match:
                    break
            if not match:
                continue
            title = link.get_text(strip=True) or cell_text(row.find("td"))
            if not title:
                continue
            records.append(self.make_record(match.group(1), title))
        return records

    def get_download_locator(self, external_id: str) -> str:
        return f"{self.base_url}/subtitles/{external_id}"

    def fetch_artifact(self, client: httpx.Client, external_id: str) -> FetchOutcome:
        page_url = self.get_download_locator(external_id)
        page = fetch_bytes(client, page_url, headers=self.headers())
        if not page.usable:
            return page

        soup = BeautifulSoup(page.content, "html.parser")
        headers = dict(self.download_headers(), Referer=page_url)

        link = soup.select_one('a[href*="/get/"], a[href*="download"], a.download-btn')
        if link is not None and link.get("href"):
            return fetch_bytes(client, urljoin(self.base_url, link["href"]), headers=headers)

        form = soup.select_one('form[action*="download"], form[action*="get"]')
        if form is not None and form.get("action"):
            fields = {
                field["name"]: field.get("value", "")
                for field in form.find_all("input")
                if field.get("name")
            }
            return fetch_bytes(
                client,
                urljoin(self.base_url, form["action"]),
                method="POST",
                headers=headers,
                data=fields,
            )

        self.log.warning("[%s] no download link on %s", self.name, page_url)
        return FetchOutcome.failed("download link not found")
