"""Time-limited memo of upstream lookups for the form viewer.

The template list changes rarely and is needed on every page render, so it
is loaded once and reused for ``TEMPLATE_CACHE_TTL`` seconds. Concurrent
renders that miss at the same moment share one upstream call.
"""

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Hashable


@dataclass
class _Entry:
    value: Any
    loaded_at: float


class TTLCache:
    """Thread-safe ``key -> loader()`` memo with time-to-live expiry.

    Usage::

        cache = TTLCache(ttl_seconds=60)
        templates = cache.get_or_load("templates", client.get_forms)
        cache.invalidate("templates")   # next call goes upstream again

    A ``ttl_seconds`` of zero or less turns caching off: every call runs the
    loader.
    """

    def __init__(self, ttl_seconds: float = 60.0,
                 clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[Hashable, _Entry] = {}
        self._lock = threading.Lock()
        self._key_locks: dict[Hashable, threading.Lock] = {}
        self._hits = 0
        self._loads = 0

    def _fresh(self, key: Hashable) -> _Entry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.loaded_at >= self.ttl_seconds:
            del self._entries[key]
            return None
        return entry

    def get_or_load(self, key: Hashable, loader: Callable[[], Any]) -> Any:
        """Return the live value for *key*, running *loader* when there is none.

        Falsy results such as an empty list are cached like any other.
        Exceptions from *loader* propagate and leave nothing behind.
        """
        if self.ttl_seconds <= 0:
            with self._lock:
                self._loads += 1
            return loader()

        with self._lock:
            entry = self._fresh(key)
            if entry is not None:
                self._hits += 1
                return entry.value
            key_lock = self._key_locks.setdefault(key, threading.Lock())

        with key_lock:
            # Another thread may have loaded it while we waited.
            with self._lock:
                entry = self._fresh(key)
                if entry is not None:
                    self._hits += 1
                    return entry.value
            value = loader()
            with self._lock:
                self._loads += 1
                self._entries[key] = _Entry(value, self._clock())
            return value

    def invalidate(self, key: Hashable | None = None) -> None:
        """Drop *key*, or every entry when *key* is None."""
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)

    def age(self, key: Hashable) -> float | None:
        """Seconds since *key* was loaded, or None if it is not live."""
        with self._lock:
            entry = self._fresh(key)
            return None if entry is None else self._clock() - entry.loaded_at

    def stats(self) -> dict[str, int]:
        with self._lock:
            for key in list(self._entries):
                self._fresh(key)
            return {"hits": self._hits, "loads": self._loads,
                    "size": len(self._entries)}
