"""IMDb title page scraping used when Cinemeta has nothing for an id.

Each field (title, year, kind) has its own ordered list of strategies. A
strategy is a pure function of the parsed page that returns a value or
``None``; the first non-``None`` answer per field wins, so the fields may
come from different strategies.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, TypeVar

from bs4 import BeautifulSoup

from .models import MediaKind

T = TypeVar("T")
Strategy = Callable[[BeautifulSoup], Optional[T]]

OG_TITLE_RE = re.compile(r"^(.+?)\s+\((?:TV (?:Mini )?Series\s+)?(\d{4})")
SERIES_MARKERS = ("TV Series", "TV Mini Series")
JSON_LD_SERIES_TYPES = {"TVSeries", "TVMiniSeries"}
JSON_LD_MOVIE_TYPES = {"Movie"}


@dataclass(frozen=True)
class PageFacts:
    title: Optional[str]
    year: Optional[int]
    kind: Optional[MediaKind]


def _og_title(soup: BeautifulSoup) -> Optional[str]:
    tag = soup.find("meta", attrs={"property": "og:title"})
    if tag is None:
        return None
    content = (tag.get("content") or "").strip()
    return content or None


def _json_ld(soup: BeautifulSoup) -> Optional[dict]:
    script = soup.find("script", attrs={"type": "application/ld+json"})
    if script is None:
        return None
    try:
        data: Any = json.loads(script.string or script.get_text() or "")
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def title_from_og(soup: BeautifulSoup) -> Optional[str]:
    og = _og_title(soup)
    match = OG_TITLE_RE.match(og or "")
    return match.group(1).strip() if match else None


def year_from_og(soup: BeautifulSoup) -> Optional[int]:
    match = OG_TITLE_RE.match(_og_title(soup) or "")
    return int(match.group(2)) if match else None


def kind_from_og(soup: BeautifulSoup) -> Optional[MediaKind]:
    og = _og_title(soup) or ""
    if OG_TITLE_RE.match(og) and any(marker in og for marker in SERIES_MARKERS):
        return MediaKind.SERIES
    return None


def title_from_json_ld(soup: BeautifulSoup) -> Optional[str]:
    data = _json_ld(soup) or {}
    name = data.get("name")
    return name.strip() if isinstance(name, str) and name.strip() else None


def year_from_json_ld(soup: BeautifulSoup) -> Optional[int]:
    published = (_json_ld(soup) or {}).get("datePublished")
    if isinstance(published, str) and re.match(r"^\d{4}", published):
        return int(published[:4])
    return None


def kind_from_json_ld(soup: BeautifulSoup) -> Optional[MediaKind]:
    kind = (_json_ld(soup) or {}).get("@type")
    if kind in JSON_LD_SERIES_TYPES:
        return MediaKind.SERIES
    if kind in JSON_LD_MOVIE_TYPES:
        return MediaKind.MOVIE
    return None


def title_from_heading(soup: BeautifulSoup) -> Optional[str]:
    h1 = soup.find("h1", attrs={"data-testid": "hero__pageTitle"})
    text = h1.get_text(strip=True) if h1 else ""
    return text or None


def year_from_release_link(soup: BeautifulSoup) -> Optional[int]:
    link = soup.find("a", href=re.compile(r"/releaseinfo"))
    text = link.get_text(strip=True) if link else ""
    return int(text) if re.fullmatch(r"\d{4}", text) else None


def kind_from_subnav(soup: BeautifulSoup) -> Optional[MediaKind]:
    marker = soup.find(attrs={"data-testid": "hero-subnav-bar-series-episode-guide-button"})
    return MediaKind.SERIES if marker is not None else None


TITLE_STRATEGIES: Sequence[Strategy[str]] = (title_from_og, title_from_json_ld, title_from_heading)
YEAR_STRATEGIES: Sequence[Strategy[int]] = (year_from_og, year_from_json_ld, year_from_release_link)
KIND_STRATEGIES: Sequence[Strategy[MediaKind]] = (kind_from_og, kind_from_json_ld, kind_from_subnav)


def first_match(soup: BeautifulSoup, strategies: Sequence[Strategy[T]]) -> Optional[T]:
    for strategy in strategies:
        value = strategy(soup)
        if value is not None:
            return value
    return None


def extract_page_facts(html: str) -> PageFacts:
    soup = BeautifulSoup(html, "html.parser")
    return PageFacts(
        title=first_match(soup, TITLE_STRATEGIES),
        year=first_match(soup, YEAR_STRATEGIES),
        kind=first_match(soup, KIND_STRATEGIES),
    )

