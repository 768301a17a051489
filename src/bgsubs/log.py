# -*- coding: utf-8 -*-
"""Logging setup: plain or structured JSON lines with a per-request id."""

from __future__ import annotations

import contextvars
import datetime
import json
import logging
import sys
from typing import Optional

REQUEST_ID: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="")

TEXT_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
DATE_FORMAT = "%H:%M:%S"

_NOISY_LOGGERS = ("httpx", "httpcore", "urllib3", "charset_normalizer")


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload = {
            "ts": datetime.datetime.now(datetime.timezone.utc).isoformat(timespec="seconds"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        rid = REQUEST_ID.get("")
        if rid:
            payload["rid"] = rid
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


class TextFormatter(logging.Formatter):
    """Plain lines, prefixed with ``[rid=...]`` when a request id is bound.

    The record itself is left untouched so other handlers see the original message.
    """

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        rid = REQUEST_ID.get("")
        if rid:
            return f"[rid={rid}] {line}"
        return line


def setup_logging(level: str = "INFO", json_logs: bool = False, stream: Optional[object] = None) -> None:
    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_bgsubs", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler._bgsubs = True  # type: ignore[attr-defined]
    if json_logs:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(TextFormatter(TEXT_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(handler)
    root.setLevel(level.upper())

    logging.getLogger("bgsubs").setLevel(level.upper())
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
