"""In-process caching with a last-known-good fallback.

Repositories keep their own :class:`StaleCache`. Fresh entries expire after
``ttl`` seconds; a copy of every write is also kept in a bounded LRU so a
reader can still serve the previous value while the database is unreachable.
"""

from collections.abc import Callable, Hashable
from typing import Any

from cachetools import LRUCache, TTLCache  # type: ignore[import-untyped]

MISSING = object()


class StaleCache:
    def __init__(
        self,
        maxsize: int = 128,
        ttl: float = 60.0,
        timer: Callable[[], float] | None = None,
    ):
        ttl_kwargs: dict[str, Any] = {"timer": timer} if timer is not None else {}
        self._fresh: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl, **ttl_kwargs)
        self._last_good: LRUCache = LRUCache(maxsize=maxsize)

    def get(self, key: Hashable) -> Any:
        """Fresh value, or ``MISSING`` (a cached ``None`` is a real value)."""
        return self._fresh.get(key, MISSING)

    def set(self, key: Hashable, value: Any) -> None:
        self._fresh[key] = value
        self._last_good[key] = value

    def get_stale(self, key: Hashable) -> Any:
        """Last value written for ``key`` regardless of TTL, or ``MISSING``."""
        return self._last_good.get(key, MISSING)

    def invalidate(self, key: Hashable) -> None:
        """Force the next read to reload; the fallback copy is kept."""
        self._fresh.pop(key, None)

    def forget(self, key: Hashable) -> None:
        """The record is gone: drop the fallback copy too."""
        self._fresh.pop(key, None)
        self._last_good.pop(key, None)

    def clear(self) -> None:
        self._fresh.clear()

    @property
    def size(self) -> int:
        return len(self._fresh)

    @property
    def stale_size(self) -> int:
        return len(self._last_good)
