from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

SUBRIP_CONTENT_TYPE = "application/x-subrip; charset=utf-8"


class MediaKind(str, Enum):
    MOVIE = "movie"
    SERIES = "series"


@dataclass(frozen=True)
class MediaReference:
    """Parsed Stremio id: ``tt0133093`` or ``tt0903747:1:5``."""

    canonical_id: str
    kind: MediaKind
    season: Optional[int] = None
    episode: Optional[int] = None

    def __post_init__(self) -> None:
        if (self.season is None) != (self.episode is None):
            raise ValueError("season and episode must be given together")
        if self.season is not None and self.kind is not MediaKind.SERIES:
            raise ValueError("season/episode imply a series reference")


@dataclass(frozen=True)
class MediaMetadata:
    title: str
    year: Optional[int]
    kind: MediaKind


@dataclass(frozen=True)
class SubtitleRecord:
    provider: str
    provider_label: str
    external_id: str
    title: str
    year: Optional[str] = None
    frame_rate: Optional[str] = None
    uploader: Optional[str] = None
    download_count: Optional[str] = None

    @property
    def key(self) -> Tuple[str, str]:
        return self.provider, self.external_id


@dataclass(frozen=True)
class NormalizedSubtitle:
    text: str
    encoding: str
    source_name: Optional[str] = None
    converted: bool = False
    content_type: str = SUBRIP_CONTENT_TYPE

    @property
    def content(self) -> bytes:
        return self.text.encode("utf-8")
