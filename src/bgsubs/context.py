from __future__ import annotations

import contextlib
import uuid
from dataclasses import dataclass, field
from typing import Iterator, Mapping, Optional

from .log import REQUEST_ID
from .settings import Settings, get_settings


def _new_request_id() -> str:
    return uuid.uuid4().hex[:12]


@dataclass(frozen=True)
class RequestContext:
    """Per-request values handed down explicitly instead of kept in globals."""

    base_url: str = ""
    request_id: str = field(default_factory=_new_request_id)

    @contextlib.contextmanager
    def bind(self) -> Iterator["RequestContext"]:
        token = REQUEST_ID.set(self.request_id)
        try:
            yield self
        finally:
            REQUEST_ID.reset(token)

    def subtitle_url(self, provider: str, external_id: str) -> str:
        return f"{self.base_url}/subtitle/{provider}/{external_id}.srt"

    @classmethod
    def from_headers(
        cls,
        headers: Optional[Mapping[str, str]] = None,
        settings: Optional[Settings] = None,
        request_id: Optional[str] = None,
    ) -> "RequestContext":
        return cls(
            base_url=resolve_base_url(headers, settings),
            request_id=request_id or _new_request_id(),
        )


def resolve_base_url(headers: Optional[Mapping[str, str]] = None, settings: Optional[Settings] = None) -> str:
    """Public base URL used when building subtitle links.

    An explicit public URL always wins; then the request's ``Host`` and
    ``X-Forwarded-Host`` headers; then the Vercel deployment host. Returns
    ``""`` when none is known.
    """
    settings = settings or get_settings()
    if settings.public_url:
        return settings.public_url.rstrip("/")

    lowered = {key.lower(): value for key, value in (headers or {}).items()}
    host = lowered.get("host") or lowered.get("x-forwarded-host") or ""
    if host:
        protocol = lowered.get("x-forwarded-proto") or "https"
        return f"{protocol}://{host}"
    if settings.vercel_url:
        return f"https://{settings.vercel_url}"
    return ""
