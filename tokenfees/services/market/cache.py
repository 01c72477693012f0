from __future__ import annotations

"""Time-bounded memoization shared across requests.

Design:
    - Entries are immutable (value, stored_at) pairs replaced wholesale on refresh.
    - Staleness is checked at read time: an entry is valid iff now - stored_at < ttl.
    - Locks are striped by key hash and only guard the dict read / publish; the
      loader (a provider call) always runs with no lock held, so two concurrent
      misses on one key may both fetch; loads are idempotent.
    - Loader failures propagate and leave any existing entry untouched; stale
      entries are never served.
"""
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Generic, Hashable, List, Optional, TypeVar

logger = logging.getLogger("tokenfees.cache")

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    value: V
    stored_at: datetime

    def is_valid(self, now: datetime, ttl: timedelta) -> bool:
        return now - self.stored_at < ttl


class TtlCache(Generic[K, V]):
    def __init__(self, ttl_seconds: float, *, name: str = "cache", clock: Clock = utcnow, stripes: int = 16):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.name = name
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock
        self._entries: Dict[K, CacheEntry[V]] = {}
        self._locks: List[threading.Lock] = [threading.Lock() for _ in range(stripes)]

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def _lock_for(self, key: K) -> threading.Lock:
        return self._locks[hash(key) % len(self._locks)]

    def peek(self, key: K) -> Optional[CacheEntry[V]]:
        """Return the raw entry (valid or not) without triggering a load."""
        with self._lock_for(key):
            return self._entries.get(key)

    def get(self, key: K) -> Optional[V]:
        entry = self.peek(key)
        if entry and entry.is_valid(self._clock(), self._ttl):
            return entry.value
        return None

    def put(self, key: K, value: V) -> CacheEntry[V]:
        entry = CacheEntry(value=value, stored_at=self._clock())
        with self._lock_for(key):
            self._entries[key] = entry
        return entry

    def get_or_load(self, key: K, loader: Callable[[], V]) -> V:
        cached = self.get(key)
        if cached is not None:
            return cached
        logger.debug("%s miss for %s", self.name, key, extra={"cache": self.name})
        value = loader()  # no lock held across the provider call
        self.put(key, value)
        return value

    def invalidate(self, key: K) -> bool:
        with self._lock_for(key):
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        for lock in self._locks:
            lock.acquire()
        try:
            self._entries.clear()
        finally:
            for lock in self._locks:
                lock.release()

    def __len__(self) -> int:
        return len(self._entries)
