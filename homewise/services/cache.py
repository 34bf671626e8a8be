"""Simple in-memory TTL cache.

One store is shared by the market-data clients and by tool-result caching.
There are no namespaces, so callers prefix their keys
(``fred:<series>``, ``bls:<series>``, ``tool:<name>:<json>``).

Entries expire lazily: an expired entry is treated as absent and dropped
the next time it is read. Nothing runs in the background.
"""
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional


@dataclass
class CacheEntry:
    """A cached value with the time it was stored and its lifetime."""
    value: Any
    stored_at: float
    ttl_seconds: float

    @property
    def expires_at(self) -> float:
        return self.stored_at + self.ttl_seconds

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class TTLCache:
    """
    Key -> value store with a per-entry TTL.

    Every operation is a single dict access with no awaits, so one
    instance can be shared by overlapping requests on the event loop.
    The clock is injectable for tests.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._entries: Dict[str, CacheEntry] = {}
        self._clock = clock

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None on a miss or expiry."""
        entry = self._entries.get(key)
        if entry is None:
            return None

        if entry.is_expired(self._clock()):
            # Expired, remove from cache
            del self._entries[key]
            return None

        return entry.value

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        """Store a value for ttl_seconds."""
        self._entries[key] = CacheEntry(
            value=value,
            stored_at=self._clock(),
            ttl_seconds=ttl_seconds,
        )

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        """Clear entire cache."""
        self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._entries)


_shared_cache: Optional[TTLCache] = None


def get_shared_cache() -> TTLCache:
    """
    Return the process-lifetime cache.

    Built on first use and handed to the analysis orchestrator and the chat
    loop through FastAPI dependencies. Business code never reaches for it
    directly; it always receives a cache instance as an argument.
    """
    global _shared_cache
    if _shared_cache is None:
        _shared_cache = TTLCache()
    return _shared_cache
