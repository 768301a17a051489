"""Download helper that keeps whatever bytes arrived before a broken connection.

Some origins (subsunacs.net in particular) send the whole payload and then
break the HTTP framing, so the client raises after the body is complete.
``fetch_bytes`` reports three outcomes instead of success/exception:

* ``SUCCEEDED`` - the response finished normally with a non-empty body;
* ``PARTIAL``   - a transport error happened after some bytes were read;
* ``FAILED``    - nothing usable arrived (network error, timeout, HTTP
  error status or an empty body).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

import httpx

log = logging.getLogger("bgsubs.fetch")


class FetchState(str, Enum):
    SUCCEEDED = "succeeded"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass(frozen=True)
class FetchOutcome:
    state: FetchState
    content: bytes = b""
    status_code: Optional[int] = None
    error: Optional[str] = None

    @property
    def usable(self) -> bool:
        return self.state is not FetchState.FAILED and bool(self.content)

    @classmethod
    def failed(cls, error: str, status_code: Optional[int] = None) -> "FetchOutcome":
        return cls(FetchState.FAILED, b"", status_code, error)


def fetch_bytes(
    client: httpx.Client,
    url: str,
    *,
    method: str = "GET",
    headers: Optional[Mapping[str, str]] = None,
    data: Optional[Mapping[str, str]] = None,
) -> FetchOutcome:
    chunks = []
    status_code: Optional[int] = None
    try:
        with client.stream(method, url, headers=headers, data=data) as response:
            status_code = response.status_code
            if response.is_error:
                return FetchOutcome.failed(f"HTTP {status_code}", status_code)
            for chunk in response.iter_bytes():
                chunks.append(chunk)
    except httpx.HTTPError as exc:
        body = b"".join(chunks)
        if body:
            log.warning(
                "Connection to %s ended abnormally after %d bytes (%s); using received body",
                url,
                len(body),
                exc.__class__.__name__,
            )
            return FetchOutcome(FetchState.PARTIAL, body, status_code, str(exc) or repr(exc))
        log.warning("Download from %s failed: %s", url, exc.__class__.__name__)
        return FetchOutcome.failed(str(exc) or exc.__class__.__name__, status_code)

    body = b"".join(chunks)
    if not body:
        return FetchOutcome.failed("empty body", status_code)
    return FetchOutcome(FetchState.SUCCEEDED, body, status_code)
