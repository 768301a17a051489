from __future__ import annotations

import logging
import re
from typing import Iterable, Optional
from urllib.parse import unquote

import requests

from .cache import TTLCache
from .errors import MalformedIdentifier, MetadataUnavailable
from .imdb import extract_page_facts
from .models import MediaKind, MediaMetadata, MediaReference
from .settings import Settings, get_settings

log = logging.getLogger("bgsubs.metadata")

IMDB_HEADERS = {
    "Accept-Language": "en-US,en;q=0.9",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}

YEAR_RE = re.compile(r"(19|20)\d{2}")


def parse_media_id(raw_id: str) -> MediaReference:
    """Parse Stremio ids that may be URL-encoded once or twice.

    Examples of incoming ids:
    - tt0133093                   (movie)
    - tt0944947:1:2               (series S01E02)
    - tt0944947%3A1%3A2           (encoded once)
    - tt0944947%253A1%253A2       (encoded twice)
    """
    s = (raw_id or "").strip()
    # Decode up to twice to handle cases like %253A -> %3A -> :
    for _ in range(2):
        decoded = unquote(s)
        if decoded == s:
            break
        s = decoded
    if s.endswith(".json"):
        s = s[: -len(".json")]

    parts = s.split(":")
    if not parts[0]:
        raise MalformedIdentifier(f"Invalid Stremio id: {raw_id!r}")
    if len(parts) == 1:
        return MediaReference(canonical_id=parts[0], kind=MediaKind.MOVIE)
    if len(parts) < 3:
        raise MalformedIdentifier(f"Invalid Stremio id: {raw_id!r}")

    season = _positive_int(parts[1])
    episode = _positive_int(parts[2])
    if season is None or episode is None:
        raise MalformedIdentifier(f"Invalid season/episode in Stremio id: {raw_id!r}")
    return MediaReference(canonical_id=parts[0], kind=MediaKind.SERIES, season=season, episode=episode)


def _positive_int(token: str) -> Optional[int]:
    token = token.strip()
    if not token.isdigit():
        return None
    value = int(token)
    return value if value > 0 else None


def normalize_year(raw: object) -> Optional[int]:
    if raw is None or raw == "":
        return None
    match = YEAR_RE.search(str(raw))
    return int(match.group(0)) if match else None


class MetadataResolver:
    """Turn an IMDb id into title/year/kind.

    Cinemeta is asked first; when every Cinemeta lookup fails the IMDb title
    page is scraped. Successful answers are cached per id.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        session: Optional[requests.Session] = None,
        cache: Optional[TTLCache] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.session = session or requests.Session()
        self.cache = cache if cache is not None else TTLCache(ttl=self.settings.metadata_cache_ttl)

    def resolve(self, canonical_id: str, kind_hint: Optional[MediaKind] = None) -> MediaMetadata:
        cached = self.cache.get(canonical_id)
        if cached is not None:
            log.debug("metadata cache hit for %s", canonical_id)
            return cached

        meta = self._from_cinemeta(canonical_id, kind_hint)
        if meta is None:
            log.info("Cinemeta had nothing for %s, falling back to IMDb page", canonical_id)
            meta = self._from_imdb_page(canonical_id, kind_hint)
        if meta is None:
            raise MetadataUnavailable(f"No title found for {canonical_id}")

        self.cache.set(canonical_id, meta)
        log.info("Resolved %s -> %s (%s) [%s]", canonical_id, meta.title, meta.year, meta.kind.value)
        return meta

    def resolve_reference(self, ref: MediaReference) -> MediaMetadata:
        return self.resolve(ref.canonical_id, kind_hint=ref.kind)

    def _kinds_to_try(self, kind_hint: Optional[MediaKind]) -> Iterable[MediaKind]:
        if kind_hint is not None:
            return (kind_hint,)
        return (MediaKind.SERIES, MediaKind.MOVIE)

    def _from_cinemeta(self, canonical_id: str, kind_hint: Optional[MediaKind]) -> Optional[MediaMetadata]:
        for kind in self._kinds_to_try(kind_hint):
            meta = self.fetch_cinemeta_meta(kind, canonical_id)
            if not meta:
                continue
            name = str(meta.get("name") or "").strip()
            if not name:
                continue
            release = meta.get("year") or meta.get("releaseInfo") or meta.get("released")
            return MediaMetadata(title=name, year=normalize_year(release), kind=kind)
        return None

    def fetch_cinemeta_meta(self, kind: MediaKind, canonical_id: str) -> Optional[dict]:
        last_exc: Optional[Exception] = None
        for base in self.settings.cinemeta_bases:
            url = f"{base.rstrip('/')}/meta/{kind.value}/{canonical_id}.json"
            try:
                resp = self.session.get(url, timeout=self.settings.metadata_timeout)
                if resp.status_code == 404:
                    # Try next base
                    continue
                resp.raise_for_status()
                payload = resp.json()
            except (requests.RequestException, ValueError) as exc:
                last_exc = exc
                continue
            meta = payload.get("meta") if isinstance(payload, dict) else None
            if meta:
                return meta
        if last_exc:
            log.warning("Failed to fetch Cinemeta %s metadata for %s: %s", kind.value, canonical_id, last_exc)
        return None

    def _from_imdb_page(self, canonical_id: str, kind_hint: Optional[MediaKind]) -> Optional[MediaMetadata]:
        url = f"{self.settings.imdb_base_url.rstrip('/')}/title/{canonical_id}/"
        headers = dict(IMDB_HEADERS, **{"User-Agent": self.settings.user_agent})
        try:
            resp = self.session.get(url, headers=headers, timeout=self.settings.metadata_timeout)
            resp.raise_for_status()
        except requests.RequestException as exc:
            log.warning("IMDb page fetch failed for %s: %s", canonical_id, exc)
            return None

        facts = extract_page_facts(resp.text)
        if not facts.title:
            log.warning("Could not extract title from IMDb page for %s", canonical_id)
            return None
        kind = facts.kind or kind_hint or MediaKind.MOVIE
        return MediaMetadata(title=facts.title, year=facts.year, kind=kind)
