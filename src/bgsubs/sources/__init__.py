"""Subtitle source registry.

Adding an origin means writing one ``SubtitleSource`` subclass and adding it
to ``SOURCE_CLASSES``; which ones run is decided by
``Settings.enabled_providers``.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional, Type

from ..settings import Settings, get_settings
from .base import SourceStats, SubtitleSource
from .subsab import SubsSabSource
from .subsunacs import SubsunacsSource
from .yavka import YavkaSource

log = logging.getLogger("bgsubs.sources")

SOURCE_CLASSES: Dict[str, Type[SubtitleSource]] = {
    SubsunacsSource.name: SubsunacsSource,
    SubsSabSource.name: SubsSabSource,
    YavkaSource.name: YavkaSource,
}


def build_sources(
    names: Optional[Iterable[str]] = None,
    settings: Optional[Settings] = None,
) -> Dict[str, SubtitleSource]:
    """Instantiate the enabled sources, keeping the configured order."""
    settings = settings or get_settings()
    sources: Dict[str, SubtitleSource] = {}
    for name in names if names is not None else settings.enabled_providers:
        cls = SOURCE_CLASSES.get(name)
        if cls is None:
            log.warning("Unknown subtitle source %r in configuration; skipping", name)
            continue
        if name not in sources:
            sources[name] = cls(settings=settings)
    return sources


__all__ = [
    "SOURCE_CLASSES",
    "SourceStats",
    "SubtitleSource",
    "SubsSabSource",
    "SubsunacsSource",
    "YavkaSource",
    "build_sources",
]
