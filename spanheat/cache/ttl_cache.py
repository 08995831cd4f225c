"""
In-memory cache bounded by entry count and age.

Entries expire lazily: an entry older than the TTL is reported as a miss
but stays in the store until capacity eviction removes it, so expired
entries still count toward capacity. Eviction always removes the entry
with the oldest insertion time first.

Each instance serializes access with its own lock; nothing spans two
instances.
"""

import copy
import logging
import threading
import time
from collections import OrderedDict
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Hashable, Iterator, Optional, TypeVar

from spanheat.errors import CacheError

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

logger = logging.getLogger("spanheat.cache")

LOCK_TIMEOUT_SECONDS = 5.0


@dataclass
class CacheEntry(Generic[V]):
    """Stored value with its insertion time (clock seconds)."""
    value: V
    inserted_at: float


class BoundedTTLCache(Generic[K, V]):
    """Capacity- and time-bounded key/value cache."""

    def __init__(
        self,
        capacity: int,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        name: str = "cache",
    ):
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")

        self.capacity = capacity
        self.ttl_seconds = ttl_seconds
        self.name = name
        self._clock = clock
        self._lock = threading.Lock()
        # Insertion order == inserted_at order, since overwrites re-append.
        self._entries: "OrderedDict[K, CacheEntry[V]]" = OrderedDict()

    @contextmanager
    def _locked(self) -> Iterator[None]:
        if not self._lock.acquire(timeout=LOCK_TIMEOUT_SECONDS):
            raise CacheError(f"Could not lock {self.name} cache")
        try:
            yield
        finally:
            self._lock.release()

    def get(self, key: K) -> Optional[V]:
        """Return a copy of the live value for key, or None."""
        with self._locked():
            entry = self._entries.get(key)
            if entry is None or self._clock() - entry.inserted_at >= self.ttl_seconds:
                logger.debug("%s miss", self.name)
                return None
            logger.debug("%s hit", self.name)
            return copy.copy(entry.value)

    def insert(self, key: K, value: V) -> None:
        """Store value under key, evicting oldest entries if at capacity."""
        with self._locked():
            self._entries.pop(key, None)
            while len(self._entries) >= self.capacity:
                evicted_key, _ = self._entries.popitem(last=False)
                logger.debug("%s evicted %r", self.name, evicted_key)
            self._entries[key] = CacheEntry(value=value, inserted_at=self._clock())

    def clear(self) -> None:
        """Drop every entry."""
        with self._locked():
            self._entries.clear()

    def __len__(self) -> int:
        with self._locked():
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        # Raw presence, expired or not.
        with self._locked():
            return key in self._entries

    def stats(self) -> Dict[str, Any]:
        """Snapshot of size and limits."""
        with self._locked():
            return {
                "name": self.name,
                "size": len(self._entries),
                "capacity": self.capacity,
                "ttl_seconds": self.ttl_seconds,
            }
