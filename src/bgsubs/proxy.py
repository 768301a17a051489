from __future__ import annotations

import logging
import time
from typing import Mapping, Optional

import httpx

from .convert import convert_legacy_format, decode_subtitle_bytes, looks_like_microdvd, normalize_subtitle_text
from .errors import InvalidIdentifier, UnknownProvider, UpstreamUnavailable
from .extract import unwrap
from .fetch import FetchState
from .models import NormalizedSubtitle
from .settings import Settings, get_settings
from .sources import SubtitleSource, build_sources

log = logging.getLogger("bgsubs.proxy")


class RetrievalProxy:
    """Download one chosen subtitle and turn it into clean UTF-8 SubRip.

    Each call builds its own ``httpx.Client``; nothing mutable is shared
    between concurrent retrievals.
    """

    def __init__(
        self,
        sources: Optional[Mapping[str, SubtitleSource]] = None,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.sources = dict(sources) if sources is not None else build_sources(settings=self.settings)
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(
            timeout=self.settings.download_timeout,
            follow_redirects=True,
            max_redirects=self.settings.max_redirects,
            transport=self._transport,
        )

    def source_for(self, provider: str, external_id: str) -> SubtitleSource:
        source = self.sources.get(provider)
        if source is None:
            raise UnknownProvider(f"unknown provider {provider!r}")
        if not source.is_valid_id(external_id):
            raise InvalidIdentifier(f"invalid subtitle id {external_id!r} for {provider}")
        return source

    def fetch(self, provider: str, external_id: str) -> NormalizedSubtitle:
        source = self.source_for(provider, external_id)

        t0 = time.perf_counter()
        with self._client() as client:
            outcome = source.fetch_artifact(client, external_id)
        if not outcome.usable:
            log.warning("[%s] download of %s failed: %s", provider, external_id, outcome.error)
            raise UpstreamUnavailable(f"{provider} download of {external_id} failed: {outcome.error}")
        if outcome.state is FetchState.PARTIAL:
            log.info("[%s] using partial body for %s (%d bytes)", provider, external_id, len(outcome.content))

        payload, entry_name = unwrap(outcome.content)
        text, encoding = decode_subtitle_bytes(payload)

        converted = False
        if looks_like_microdvd(text):
            result = convert_legacy_format(text, self.settings.default_fps)
            converted = result is not text
            text = result

        subtitle = NormalizedSubtitle(
            text=normalize_subtitle_text(text),
            encoding=encoding,
            source_name=entry_name,
            converted=converted,
        )
        log.info(
            "[metrics] provider=%s id=%s duration_ms=%.0f bytes=%d encoding=%s converted=%s",
            provider,
            external_id,
            (time.perf_counter() - t0) * 1000,
            len(subtitle.content),
            encoding,
            converted,
        )
        return subtitle
