"""Exception taxonomy shared by the resolver, the sources and the retrieval proxy."""

from __future__ import annotations


class BgSubsError(Exception):
    """Base class for every error raised by bgsubs."""


class MalformedIdentifier(BgSubsError, ValueError):
    """The composite media id is neither ``<id>`` nor ``<id>:<season>:<episode>``."""


class MetadataUnavailable(BgSubsError):
    """Neither Cinemeta nor the IMDb page yielded a usable title."""


class ProviderSearchFailure(BgSubsError):
    """A single source query failed. Always absorbed inside the source."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class MalformedContainer(BgSubsError):
    """A downloaded archive could not be opened. Degrades to raw text."""


class RetrievalError(BgSubsError):
    """Base class for failures surfaced by the retrieval proxy."""

    http_status = 500


class UnknownProvider(RetrievalError):
    http_status = 400


class InvalidIdentifier(RetrievalError):
    http_status = 400


class UpstreamUnavailable(RetrievalError):
    http_status = 502


class ArtifactNotFound(RetrievalError):
    http_status = 404
