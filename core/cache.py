"""Small in-memory TTL cache for upstream API responses."""
import time
from typing import Any, Callable, Hashable, Optional


class TTLCache:
    """
    Dict-backed cache whose entries expire ``ttl_seconds`` after being set.

    Expired entries are dropped lazily on read, or in bulk by :meth:`purge`.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[Hashable, tuple[float, Any]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: Hashable, default: Optional[Any] = None) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return default
        stored_at, value = entry
        if self._clock() - stored_at >= self.ttl_seconds:
            del self._entries[key]
            return default
        return value

    def set(self, key: Hashable, value: Any) -> None:
        self._entries[key] = (self._clock(), value)

    def purge(self) -> int:
        """Remove every expired entry and return how many were dropped."""
        now = self._clock()
        stale = [k for k, (t, _) in self._entries.items() if now - t >= self.ttl_seconds]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()
