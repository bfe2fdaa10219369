"""In-process cache for fetched snapshots and the views derived from them."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

logger = logging.getLogger(__name__)

_MISSING = object()


class TTLCache:
    """Expiring key/value store. Keys are tuples so a whole user can be dropped at once."""

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[Tuple[Hashable, ...], Tuple[float, Any]] = {}

    def get(self, key: Tuple[Hashable, ...], default: Any = None) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return default
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return default
        return value

    def set(self, key: Tuple[Hashable, ...], value: Any, ttl_seconds: Optional[float] = None) -> None:
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        now = self._clock()
        self.purge_expired(now)
        self._entries[key] = (now + ttl, value)

    def purge_expired(self, now: Optional[float] = None) -> int:
        """Drop entries past their expiry, including keys that will never be read again."""
        now = self._clock() if now is None else now
        expired = [key for key, (expires_at, _) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def get_or_set(self, key: Tuple[Hashable, ...], factory: Callable[[], Any]) -> Any:
        value = self.get(key, _MISSING)
        if value is _MISSING:
            value = factory()
            self.set(key, value)
        return value

    def invalidate(self, *prefix: Hashable) -> int:
        """Drop every key starting with ``prefix``; no prefix clears everything."""
        stale = [key for key in self._entries if key[: len(prefix)] == prefix]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.debug("Invalidated %d cache entries for %r", len(stale), prefix)
        return len(stale)

    def __len__(self) -> int:
        return len(self._entries)
