"""
Render pipeline for one heatmap request.

Steps run in a fixed order and any of them may stop the request with a
HeatmapError:

    output cache -> ranges -> timezone -> date range -> spans (span cache)
    -> bucketing -> render -> output cache insert
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from spanheat.cache import RenderCaches
from spanheat.errors import InputValidationError
from spanheat.heatmap.bucketing import bucket_spans, date_range, resolve_date_range
from spanheat.heatmap.levels import parse_ranges
from spanheat.heatmap.render import embed_page, render_svg
from spanheat.models.entities import HeatmapGrid
from spanheat.server.metrics import HeatmapMetrics
from spanheat.server.models.heatmap import RenderParams
from spanheat.server.upstream import SpanSource, get_spans
from spanheat.utils.timestamps import resolve_timezone

logger = logging.getLogger("spanheat.server")


@dataclass
class RenderResult:
    body: str
    media_type: str
    cached: bool = False


async def render_heatmap(
    params: RenderParams,
    caches: RenderCaches,
    source: SpanSource,
    now: Optional[datetime] = None,
    metrics: Optional[HeatmapMetrics] = None,
) -> RenderResult:
    """Produce the rendered document for params, using both caches."""
    cached = caches.response_cache.get(params)
    if metrics is not None:
        metrics.cache_lookup(caches.response_cache.name, cached is not None)
    if cached is not None:
        return RenderResult(body=cached, media_type=params.media_type, cached=True)

    thresholds = parse_ranges(params.ranges)

    try:
        tz = resolve_timezone(params.timezone)
    except InputValidationError:
        logger.warning("Unsupported timezone: %s", params.timezone)
        raise

    start_date, end_date = resolve_date_range(tz, params.year, now=now)

    spans = await get_spans(params.id, source, caches.request_cache, metrics)

    buckets = bucket_spans(spans, tz, start_date, end_date)
    grid = HeatmapGrid(dates=date_range(start_date, end_date), buckets=buckets)

    svg = render_svg(
        grid,
        thresholds,
        cell_size=params.cell_size,
        padding=params.padding,
        rounding=params.rounding,
        theme=params.theme,
        labels=params.labels,
    )
    body = embed_page(svg, params.standalone)

    caches.response_cache.insert(params, body)
    logger.debug("Rendered %d days for %s (%d active)", len(grid.dates), params.id, len(buckets))
    return RenderResult(body=body, media_type=params.media_type)
