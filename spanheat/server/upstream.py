"""
Client for the upstream time-tracking API.

A single GET per user returning {"spans": [...]}. Nothing is retried; any
failure is raised as the matching HeatmapError and nothing is cached.
"""

import asyncio
import logging
import time
from typing import Any, Dict, Optional, Protocol, Tuple
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from spanheat.cache import BoundedTTLCache
from spanheat.errors import UpstreamFetchError, UpstreamParseError, UpstreamTimeoutError
from spanheat.models.entities import Span
from spanheat.server.metrics import HeatmapMetrics
from spanheat.server.models.heatmap import SpansPayload

logger = logging.getLogger("spanheat.upstream")


class SpanSource(Protocol):
    async def fetch_spans(self, user_id: str) -> Tuple[Span, ...]:
        ...


class SpanClient:
    """Fetches a user's spans over HTTP with a bounded timeout.

    timeout_seconds bounds the whole fetch (connect, status line and body),
    not just each individual socket operation.
    """

    def __init__(
        self,
        url_template: str,
        timeout_seconds: float = 10,
        client: Optional[httpx.AsyncClient] = None,
        metrics: Optional[HeatmapMetrics] = None,
    ):
        self.url_template = url_template
        self.timeout_seconds = timeout_seconds
        self.metrics = metrics
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)

    @classmethod
    def from_config(
        cls,
        config: Dict[str, Any],
        metrics: Optional[HeatmapMetrics] = None,
    ) -> "SpanClient":
        return cls(
            url_template=config["upstream_url"],
            timeout_seconds=float(config["upstream_timeout_seconds"]),
            metrics=metrics,
        )

    def _count_error(self, kind: str) -> None:
        if self.metrics is not None:
            self.metrics.upstream_errors.labels(type=kind).inc()

    async def _get(self, url: str) -> httpx.Response:
        resp = await self._client.get(url)
        resp.raise_for_status()
        return resp

    async def fetch_spans(self, user_id: str) -> Tuple[Span, ...]:
        url = self.url_template.format(user_id=quote(user_id, safe=""))
        started = time.perf_counter()

        try:
            resp = await asyncio.wait_for(self._get(url), timeout=self.timeout_seconds)
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            logger.error("Timed out fetching data after %.3fs: %r",
                         time.perf_counter() - started, e)
            self._count_error("timeout")
            raise UpstreamTimeoutError("Upstream request timed out")
        except httpx.HTTPError as e:
            logger.error("Error fetching data: %r", e)
            self._count_error("fetch")
            raise UpstreamFetchError("Failed to fetch data")

        try:
            payload = SpansPayload.model_validate_json(resp.content)
        except ValidationError as e:
            logger.error("Error parsing JSON: %s", e)
            self._count_error("parse")
            raise UpstreamParseError("Failed to parse response")

        elapsed = time.perf_counter() - started
        if self.metrics is not None:
            self.metrics.upstream_duration.observe(elapsed)
        logger.debug("Fetched %d spans in %.3fs", len(payload.spans), elapsed)
        return tuple(payload.spans)

    async def aclose(self) -> None:
        await self._client.aclose()


async def get_spans(
    user_id: str,
    source: SpanSource,
    cache: BoundedTTLCache,
    metrics: Optional[HeatmapMetrics] = None,
) -> Tuple[Span, ...]:
    """Spans for user_id, served from cache when fresh.

    The cache is only written after a fully parsed, successful fetch.
    """
    cached = cache.get(user_id)
    if metrics is not None:
        metrics.cache_lookup(cache.name, cached is not None)
    if cached is not None:
        return cached

    spans = await source.fetch_spans(user_id)
    cache.insert(user_id, spans)
    return spans
