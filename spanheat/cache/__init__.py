"""Cache package - bounded TTL caches shared by request handlers."""

from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from .ttl_cache import BoundedTTLCache, CacheEntry


@dataclass
class RenderCaches:
    """The two caches a running server owns.

    response_cache maps a full parameter set to a rendered document;
    request_cache maps a user id to that user's spans.
    """
    response_cache: BoundedTTLCache
    request_cache: BoundedTTLCache

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "RenderCaches":
        cache_config = config["cache"]
        return cls(
            response_cache=BoundedTTLCache(
                capacity=int(cache_config["response_max_entries"]),
                ttl_seconds=float(cache_config["response_ttl_seconds"]),
                name="response",
            ),
            request_cache=BoundedTTLCache(
                capacity=int(cache_config["request_max_entries"]),
                ttl_seconds=float(cache_config["request_ttl_seconds"]),
                name="request",
            ),
        )

    def all(self) -> Tuple[BoundedTTLCache, ...]:
        return (self.response_cache, self.request_cache)

    def stats(self) -> List[Dict[str, Any]]:
        return [cache.stats() for cache in self.all()]


__all__ = ["BoundedTTLCache", "CacheEntry", "RenderCaches"]
