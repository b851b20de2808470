"""Single-slot TTL holder for the table listing."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

T = TypeVar("T")

TABLES_CACHE_TTL = 300.0


@dataclass(frozen=True, slots=True)
class CacheEntry(Generic[T]):
    value: T
    fetched_at: float


class TimedSlot(Generic[T]):
    """Holds one value for `ttl` seconds.

    Deliberately not a general cache: no keys, no eviction, no invalidation
    beyond `clear()`. Callers hold `lock` across check-and-refresh so only one
    refresh runs at a time.
    """

    def __init__(self, ttl: float = TABLES_CACHE_TTL, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl = ttl
        self._clock = clock
        self._entry: CacheEntry[T] | None = None
        self.lock = asyncio.Lock()

    @property
    def entry(self) -> CacheEntry[T] | None:
        return self._entry

    def get(self) -> T | None:
        """Return the cached value, or None when empty or stale."""

        entry = self._entry
        if entry is None:
            return None
        if self._clock() - entry.fetched_at >= self._ttl:
            return None
        return entry.value

    def put(self, value: T) -> T:
        self._entry = CacheEntry(value=value, fetched_at=self._clock())
        return value

    def clear(self) -> None:
        self._entry = None


__all__ = ["CacheEntry", "TABLES_CACHE_TTL", "TimedSlot"]
