from __future__ import annotations

import asyncio
import logging
import time
from typing import Dict, List, Optional, Sequence

from . import LANG_ISO639_2
from .aggregator import Aggregator
from .context import RequestContext
from .errors import MetadataUnavailable
from .metadata import MetadataResolver, parse_media_id
from .models import MediaMetadata, MediaReference, NormalizedSubtitle, SubtitleRecord
from .proxy import RetrievalProxy
from .settings import Settings, get_settings
from .sources import build_sources

log = logging.getLogger("bgsubs.service")


def build_label(record: SubtitleRecord) -> str:
    label = f"[{record.provider_label}] {record.title}"
    if record.frame_rate:
        label += f" [{record.frame_rate}fps]"
    if record.uploader:
        label += f" - {record.uploader}"
    return label


def build_subtitle_entries(records: Sequence[SubtitleRecord], ctx: RequestContext) -> List[Dict[str, str]]:
    """Stremio ``subtitles`` entries for the given records, in order."""
    return [
        {
            "id": f"{record.provider}-{record.external_id}-{index}",
            "url": ctx.subtitle_url(record.provider, record.external_id),
            "lang": LANG_ISO639_2,
            "title": build_label(record),
        }
        for index, record in enumerate(records)
    ]


class SubtitleService:
    """The three operations the routing layer needs, wired together.

    ``resolve`` and ``fetch`` block on network I/O; ``search_all`` and
    ``subtitles_for`` are coroutines.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        resolver: Optional[MetadataResolver] = None,
        aggregator: Optional[Aggregator] = None,
        proxy: Optional[RetrievalProxy] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.resolver = resolver or MetadataResolver(settings=self.settings)
        if aggregator is None or proxy is None:
            sources = build_sources(settings=self.settings)
            aggregator = aggregator or Aggregator(sources, settings=self.settings)
            proxy = proxy or RetrievalProxy(sources, settings=self.settings)
        self.aggregator = aggregator
        self.proxy = proxy

    def parse(self, composite_id: str) -> MediaReference:
        return parse_media_id(composite_id)

    def resolve(self, composite_id: str) -> MediaMetadata:
        return self.resolver.resolve_reference(self.parse(composite_id))

    async def search_all(
        self,
        metadata: MediaMetadata,
        season: Optional[int] = None,
        episode: Optional[int] = None,
        imdb_id: Optional[str] = None,
    ) -> List[SubtitleRecord]:
        return await self.aggregator.search_all(metadata.title, metadata.year, season, episode, imdb_id)

    def fetch(self, provider: str, external_id: str) -> NormalizedSubtitle:
        return self.proxy.fetch(provider, external_id)

    async def subtitles_for(self, composite_id: str, ctx: RequestContext) -> List[Dict[str, str]]:
        """Stremio subtitle list for a composite id; empty when nothing is found."""
        with ctx.bind():
            ref = self.parse(composite_id)
            t0 = time.perf_counter()
            try:
                metadata = await asyncio.to_thread(self.resolver.resolve_reference, ref)
            except MetadataUnavailable as exc:
                log.warning("No metadata for %s: %s", ref.canonical_id, exc)
                return []

            records = await self.search_all(metadata, ref.season, ref.episode, ref.canonical_id)
            if not records:
                log.info("No subtitles found for %s", composite_id)
                return []

            entries = build_subtitle_entries(records, ctx)
            log.info(
                "[metrics] subtitles id=%s count=%d duration_ms=%.0f",
                composite_id,
                len(entries),
                (time.perf_counter() - t0) * 1000,
            )
            return entries
