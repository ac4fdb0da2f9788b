# g2history/cache.py
"""
In-process response cache.

Two policies share one store: reference data is read with `get` and kept
until an explicit clear, volatile scraped data is read with `get_if_fresh`
and ignored once older than its TTL.
"""

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    computed_at: float


class FreshnessCache:
    """Thread-safe key/value cache with per-read staleness checks."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value for `key`, or None when absent."""
        with self._lock:
            entry = self._entries.get(key)
        return entry.value if entry is not None else None

    def get_if_fresh(self, key: str, ttl: float, now: Optional[float] = None) -> Optional[Any]:
        """
        Return the cached value only if it was computed less than `ttl`
        seconds before `now`.

        Stale entries stay in place until overwritten or cleared.
        """
        if now is None:
            now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
        if entry is None or now - entry.computed_at >= ttl:
            return None
        return entry.value

    def get_entry(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            return self._entries.get(key)

    def put(self, key: str, value: Any, now: Optional[float] = None) -> None:
        """Overwrite the entry for `key`, stamping it with `now`."""
        entry = CacheEntry(value=value, computed_at=self._clock() if now is None else now)
        with self._lock:
            self._entries[key] = entry

    def clear(self, keys: Optional[Iterable[str]] = None) -> int:
        """Remove `keys`, or every entry when no keys are given. Returns how many were dropped."""
        with self._lock:
            if keys is None:
                dropped = len(self._entries)
                self._entries.clear()
                return dropped
            dropped = 0
            for key in keys:
                if self._entries.pop(key, None) is not None:
                    dropped += 1
            return dropped

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries
