from __future__ import annotations

import asyncio
import logging
import time
from collections import Counter
from typing import Callable, List, Mapping, Optional, Sequence, Set, Tuple, Union

import httpx

from .models import SubtitleRecord
from .settings import Settings, get_settings
from .sources import SubtitleSource, build_sources

log = logging.getLogger("bgsubs.aggregator")

ClientFactory = Callable[[], httpx.AsyncClient]


def dedupe_records(records: Sequence[SubtitleRecord]) -> List[SubtitleRecord]:
    """Drop repeated (provider, external_id) pairs; first seen wins."""
    unique: List[SubtitleRecord] = []
    seen: Set[Tuple[str, str]] = set()
    for record in records:
        if record.key in seen:
            continue
        seen.add(record.key)
        unique.append(record)
    return unique


class Aggregator:
    """Fan a search out to every registered source and merge the answers.

    All sources run concurrently on one shared ``httpx.AsyncClient``; the
    merge waits for every source to finish so a slow origin is never
    dropped, and one failing source never hides another's results.
    """

    def __init__(
        self,
        sources: Optional[Union[Mapping[str, SubtitleSource], Sequence[SubtitleSource]]] = None,
        settings: Optional[Settings] = None,
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        self.settings = settings or get_settings()
        if sources is None:
            sources = build_sources(settings=self.settings)
        if isinstance(sources, Mapping):
            sources = list(sources.values())
        self._sources: List[SubtitleSource] = list(sources)
        self._client_factory = client_factory or self._default_client

    @property
    def sources(self) -> List[SubtitleSource]:
        return list(self._sources)

    def _default_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            follow_redirects=True,
            max_redirects=self.settings.max_redirects,
            timeout=self.settings.search_timeout,
        )

    async def search_all(
        self,
        title: str,
        year: Optional[int] = None,
        season: Optional[int] = None,
        episode: Optional[int] = None,
        imdb_id: Optional[str] = None,
    ) -> List[SubtitleRecord]:
        if not self._sources:
            return []

        async with self._client_factory() as client:
            outcomes = await asyncio.gather(
                *(self._run(source, client, title, year, season, episode, imdb_id) for source in self._sources),
                return_exceptions=True,
            )

        merged: List[SubtitleRecord] = []
        for source, outcome in zip(self._sources, outcomes):
            if isinstance(outcome, BaseException):
                log.warning("[%s] search raised %r; ignoring source", source.name, outcome)
                continue
            merged.extend(outcome)

        results = dedupe_records(merged)
        counts = Counter(record.provider for record in results)
        log.info("[aggregator] %r merged counts: %s (total %d)", title, dict(counts), len(results))
        return results

    def search_all_sync(
        self,
        title: str,
        year: Optional[int] = None,
        season: Optional[int] = None,
        episode: Optional[int] = None,
        imdb_id: Optional[str] = None,
    ) -> List[SubtitleRecord]:
        return asyncio.run(self.search_all(title, year, season, episode, imdb_id))

    async def _run(
        self,
        source: SubtitleSource,
        client: httpx.AsyncClient,
        title: str,
        year: Optional[int],
        season: Optional[int],
        episode: Optional[int],
        imdb_id: Optional[str],
    ) -> List[SubtitleRecord]:
        t0 = time.perf_counter()
        records = await source.search(client, title, year, season, episode, imdb_id)
        log.info(
            "[metrics] provider=%s duration_ms=%.0f count=%d",
            source.name,
            (time.perf_counter() - t0) * 1000,
            len(records),
        )
        return records
