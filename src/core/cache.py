import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Hashable


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    inserted_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class TTLCache:
    """
    Thread-safe in-memory store whose entries expire after a fixed TTL.

    Expired entries are never returned by get(). Physically removing them
    happens in a sweep that runs at most once per cleanup_interval (2 × ttl
    by default), piggybacked on reads and writes so the store does not need
    its own thread or event loop.
    """

    def __init__(
        self,
        ttl: float,
        cleanup_interval: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")

        self.ttl = ttl
        self.cleanup_interval = cleanup_interval if cleanup_interval is not None else 2 * ttl
        self._clock = clock
        self._entries: dict[Hashable, CacheEntry] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def get(self, key: Hashable) -> tuple[Any, bool]:
        with self._lock:
            now = self._clock()
            self._maybe_sweep(now)

            entry = self._entries.get(key)
            if entry is None:
                return None, False

            if entry.is_expired(now):
                del self._entries[key]
                return None, False

            return entry.value, True

    def set(self, key: Hashable, value: Any, ttl: float | None = None) -> None:
        with self._lock:
            now = self._clock()
            self._maybe_sweep(now)
            self._entries[key] = CacheEntry(
                value=value,
                inserted_at=now,
                expires_at=now + (ttl if ttl is not None else self.ttl),
            )

    def delete(self, key: Hashable) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def purge_expired(self) -> int:
        """Remove every expired entry now and return how many were dropped."""
        with self._lock:
            return self._sweep(self._clock())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _maybe_sweep(self, now: float) -> None:
        if now - self._last_sweep >= self.cleanup_interval:
            self._sweep(now)

    def _sweep(self, now: float) -> int:
        expired = [k for k, e in self._entries.items() if e.is_expired(now)]
        for k in expired:
            del self._entries[k]
        self._last_sweep = now
        return len(expired)


class CacheMode(str, Enum):
    """
    Which outcomes the caching middleware stores.
    • ERRORS: only failed calls (a raised RequestError or status >= 400)
    • SUCCESS: only responses with status < 400
    """
    ERRORS = "errors"
    SUCCESS = "success"
