from __future__ import annotations

import io
import logging
import zipfile
import zlib
from typing import Optional, Tuple

from .errors import ArtifactNotFound, MalformedContainer

ZIP_MAGIC = b"PK"
# First extension wins; entries are compared case-insensitively.
EXTENSION_PRIORITY = (".srt", ".sub", ".txt")
# Damaged archives surface from zipfile as any of these.
ARCHIVE_ERRORS = (
    zipfile.BadZipFile,
    zlib.error,
    EOFError,
    NotImplementedError,
    RuntimeError,
    ValueError,
    IndexError,
    OSError,
)

log = logging.getLogger("bgsubs.extract")


def is_zip(data: bytes) -> bool:
    """Content-Type headers from the origins are unreliable; sniff the magic."""
    return len(data) > 2 and data[:2] == ZIP_MAGIC


def _pick_entry(names) -> Optional[str]:
    for ext in EXTENSION_PRIORITY:
        for name in names:
            if name.lower().endswith(ext):
                return name
    return None


def extract_subtitle(data: bytes) -> Tuple[str, bytes]:
    """Return ``(entry_name, payload)`` of the best subtitle inside a ZIP.

    Raises ``MalformedContainer`` when the archive cannot be read and
    ``ArtifactNotFound`` when it holds no subtitle entry.
    """
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            names = [info.filename for info in archive.infolist() if not info.is_dir()]
            target = _pick_entry(names)
            if target is None:
                raise ArtifactNotFound(f"archive has no subtitle entry (entries: {names})")
            return target, archive.read(target)
    except ARCHIVE_ERRORS as exc:
        raise MalformedContainer(f"cannot read archive: {exc}") from exc


def unwrap(data: bytes) -> Tuple[bytes, Optional[str]]:
    """Payload bytes and the archive entry they came from (``None`` for raw text).

    A damaged archive degrades to treating the raw bytes as text.
    """
    if not is_zip(data):
        return data, None
    try:
        name, payload = extract_subtitle(data)
    except MalformedContainer as exc:
        log.warning("Archive unreadable (%s); treating %d raw bytes as text", exc, len(data))
        return data, None
    log.info("Selected archive entry %s (%d bytes)", name, len(payload))
    return payload, name
