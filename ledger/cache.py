# ledger/cache.py
"""Small TTL cache with an injectable clock.

Used for the provider's player directory (large, changes slowly) and for the
league ranking snapshot shown by chat commands.
"""

from __future__ import annotations
import time
from typing import Any, Callable, Dict, Hashable, Tuple

_MISSING = object()


class TTLCache:
    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = float(ttl_seconds)
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[Any, float]] = {}

    def get(self, key: Hashable, default: Any = None) -> Any:
        hit = self._entries.get(key, _MISSING)
        if hit is _MISSING:
            return default
        value, stored_at = hit
        if self._clock() - stored_at >= self.ttl_seconds:
            self._entries.pop(key, None)
            return default
        return value

    def set(self, key: Hashable, value: Any) -> None:
        self._entries[key] = (value, self._clock())

    def invalidate(self, key: Hashable | None = None) -> None:
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def age(self, key: Hashable) -> float | None:
        hit = self._entries.get(key)
        if hit is None:
            return None
        return self._clock() - hit[1]

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def __len__(self) -> int:
        return len(self._entries)
