from __future__ import annotations

import threading
import time
from typing import Any, Dict, Hashable, Optional, Tuple


class TTLCache:
    """Very small in-memory cache with a fixed TTL.

    Expired entries are dropped lazily on the next read of their key; there
    is no size bound and no background sweep. Access is lock-guarded so the
    same instance can be shared between the event loop and worker threads.
    """

    def __init__(self, ttl: float = 600.0) -> None:
        self._ttl = ttl
        self._lock = threading.Lock()
        self._store: Dict[Hashable, Tuple[float, Any]] = {}

    @property
    def ttl(self) -> float:
        return self._ttl

    def _now(self) -> float:
        return time.monotonic()

    def _lookup(self, key: Hashable) -> Tuple[bool, Any]:
        item = self._store.get(key)
        if item is None:
            return False, None
        expiry, value = item
        if expiry <= self._now():
            del self._store[key]
            return False, None
        return True, value

    def get(self, key: Hashable) -> Optional[Any]:
        with self._lock:
            _found, value = self._lookup(key)
            return value

    def has(self, key: Hashable) -> bool:
        with self._lock:
            found, _value = self._lookup(key)
            return found

    def set(self, key: Hashable, value: Any) -> None:
        with self._lock:
            self._store[key] = (self._now() + self._ttl, value)

    def delete(self, key: Hashable) -> None:
        with self._lock:
            self._store.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
