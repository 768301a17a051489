from __future__ import annotations

import abc
import logging
import re
import time
from dataclasses import dataclass
from typing import ClassVar, Dict, List, Optional, Sequence

import httpx

from ..cache import TTLCache
from ..errors import ProviderSearchFailure
from ..fetch import FetchOutcome, fetch_bytes
from ..models import SubtitleRecord
from ..settings import Settings, get_settings
from .common import (
    NOTATION_SE,
    NOTATION_X,
    NOTATION_XX,
    browser_headers,
    build_query_variants,
    decode_page,
    normalize_query,
)


@dataclass
class SourceStats:
    queries: int = 0
    cache_hits: int = 0
    failures: int = 0
    records: int = 0

    def as_dict(self) -> Dict[str, int]:
        return {
            "queries": self.queries,
            "cache_hits": self.cache_hits,
            "failures": self.failures,
            "records": self.records,
        }


class SubtitleSource(abc.ABC):
    """One subtitle origin: how to search it and where its files live.

    Subclasses supply the identity attributes, the search form and the
    listing parser. The query-variant loop, the year fallback, caching, the
    result cap and failure absorption live here.
    """

    name: ClassVar[str]
    label: ClassVar[str]
    base_url: ClassVar[str]
    search_path: ClassVar[str]
    series_notations: ClassVar[Sequence[str]] = (NOTATION_X, NOTATION_XX, NOTATION_SE)
    page_encoding: ClassVar[Optional[str]] = None
    id_pattern: ClassVar[re.Pattern] = re.compile(r"[0-9]+")

    def __init__(self, settings: Optional[Settings] = None, cache: Optional[TTLCache] = None) -> None:
        self.settings = settings or get_settings()
        self.cache = cache if cache is not None else TTLCache(ttl=self.settings.search_cache_ttl)
        self.max_results = self.settings.max_results_per_source
        self.stats = SourceStats()
        self.log = logging.getLogger(f"bgsubs.sources.{self.name}")

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.name}>"

    @property
    def referer(self) -> str:
        return self.base_url

    def headers(self) -> Dict[str, str]:
        return browser_headers(self.settings.user_agent, self.referer)

    # --- search -------------------------------------------------------------

    def query_variants(self, title: str, season: Optional[int] = None, episode: Optional[int] = None) -> List[str]:
        return build_query_variants(title, season, episode, self.series_notations)

    async def search(
        self,
        client: httpx.AsyncClient,
        title: str,
        year: Optional[int] = None,
        season: Optional[int] = None,
        episode: Optional[int] = None,
        imdb_id: Optional[str] = None,
    ) -> List[SubtitleRecord]:
        """Search this origin. Never raises; failures give an empty list."""
        try:
            queries = self.query_variants(title, season, episode)
            if not queries:
                return []
            results = await self._search_variants(client, queries, year, imdb_id)
            if not results and year:
                self.log.info("[%s] nothing for year %s, retrying without year", self.name, year)
                results = await self._search_variants(client, queries, None, imdb_id)
            return results
        except Exception as exc:  # noqa: BLE001
            self.stats.failures += 1
            self.log.warning("[%s] search for %r failed: %s", self.name, title, exc)
            return []

    async def _search_variants(
        self,
        client: httpx.AsyncClient,
        queries: Sequence[str],
        year: Optional[int],
        imdb_id: Optional[str],
    ) -> List[SubtitleRecord]:
        for query in queries:
            try:
                results = await self._query(client, query, year, imdb_id)
            except ProviderSearchFailure as exc:
                self.stats.failures += 1
                self.log.warning("%s", exc)
                continue
            if results:
                return results
        return []

    def _cache_key(self, query: str, year: Optional[int], imdb_id: Optional[str]) -> str:
        return f"{normalize_query(query)}|{year or 'no-year'}|{imdb_id or 'no-imdb'}"

    async def _query(
        self,
        client: httpx.AsyncClient,
        query: str,
        year: Optional[int],
        imdb_id: Optional[str],
    ) -> List[SubtitleRecord]:
        cache_key = self._cache_key(query, year, imdb_id)
        cached = self.cache.get(cache_key)
        if cached is not None:
            self.stats.cache_hits += 1
            self.log.debug("[%s] cache hit for %r", self.name, query)
            return list(cached)

        self.stats.queries += 1
        self.log.info("[%s] searching %r (year: %s)", self.name, query, year or "n/a")
        t0 = time.perf_counter()
        try:
            response = await client.post(
                f"{self.base_url}{self.search_path}",
                data=self.search_form(query, year, imdb_id),
                headers=self.headers(),
                timeout=self.settings.search_timeout,
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise ProviderSearchFailure(self.name, f"request for {query!r} failed: {exc!r}") from exc

        try:
            records = self.parse_listing(decode_page(response, self.page_encoding))
        except Exception as exc:  # noqa: BLE001
            raise ProviderSearchFailure(self.name, f"could not parse listing for {query!r}: {exc}") from exc

        records = records[: self.max_results]
        self.stats.records += len(records)
        self.log.info(
            "[metrics] provider=%s query=%r duration_ms=%.0f count=%d",
            self.name,
            query,
            (time.perf_counter() - t0) * 1000,
            len(records),
        )
        self.cache.set(cache_key, tuple(records))
        return records

    def make_record(self, external_id: str, title: str, **extra: Optional[str]) -> SubtitleRecord:
        return SubtitleRecord(
            provider=self.name,
            provider_label=self.label,
            external_id=external_id,
            title=title,
            **extra,
        )

    @abc.abstractmethod
    def search_form(self, query: str, year: Optional[int], imdb_id: Optional[str]) -> Dict[str, str]:
        """Form fields posted to the origin's search endpoint."""

    @abc.abstractmethod
    def parse_listing(self, html: str) -> List[SubtitleRecord]:
        """Turn a result page into records; rows that do not parse are skipped."""

    # --- download -----------------------------------------------------------

    def is_valid_id(self, external_id: str) -> bool:
        return self.id_pattern.fullmatch(external_id or "") is not None

    @abc.abstractmethod
    def get_download_locator(self, external_id: str) -> str:
        """URL of the raw artifact for ``external_id``. No network access."""

    def download_headers(self) -> Dict[str, str]:
        return {
            "User-Agent": self.settings.user_agent,
            "Referer": self.referer,
            "Accept": "*/*",
        }

    def fetch_artifact(self, client: httpx.Client, external_id: str) -> FetchOutcome:
        return fetch_bytes(client, self.get_download_locator(external_id), headers=self.download_headers())
