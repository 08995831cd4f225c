"""Heatmap endpoint."""

import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response

from spanheat.cache import RenderCaches
from spanheat.config.loader import cache_control_header
from spanheat.errors import InputValidationError
from spanheat.server.dependencies import get_caches, get_config, get_metrics, get_span_source
from spanheat.server.metrics import HeatmapMetrics
from spanheat.server.models.heatmap import RenderParams
from spanheat.server.orchestrator import render_heatmap
from spanheat.server.upstream import SpanSource

logger = logging.getLogger("spanheat.server")

router = APIRouter(tags=["heatmap"])


@router.get("/")
async def heatmap(
    request: Request,
    id: Optional[str] = Query(None),
    timezone: Optional[str] = Query(None),
    cell_size: Optional[int] = Query(None, ge=1),
    padding: Optional[int] = Query(None, ge=0),
    rounding: Optional[int] = Query(None, ge=0, le=255),
    theme: Optional[str] = Query(None),
    ranges: Optional[str] = Query(None),
    standalone: bool = Query(False),
    labels: bool = Query(False),
    year: Optional[str] = Query(None),
    caches: RenderCaches = Depends(get_caches),
    source: SpanSource = Depends(get_span_source),
    config: dict = Depends(get_config),
    metrics: HeatmapMetrics = Depends(get_metrics),
):
    """Render a user's activity heatmap as SVG (or an HTML page)."""
    # Read by the error handlers to time failed requests.
    request.state.started = time.perf_counter()
    metrics.requests.inc()
    logger.info("Request: %s", request.url)

    if not id:
        raise InputValidationError("Missing required parameter: id", "missing_id")
    metrics.user_requests.labels(user_id=id).inc()

    defaults = config["render_defaults"]
    params = RenderParams(
        id=id,
        timezone=timezone if timezone is not None else defaults["timezone"],
        cell_size=cell_size if cell_size is not None else defaults["cell_size"],
        padding=padding if padding is not None else defaults["padding"],
        rounding=rounding if rounding is not None else defaults["rounding"],
        theme=theme if theme is not None else defaults["theme"],
        ranges=ranges if ranges is not None else defaults["ranges"],
        standalone=standalone,
        labels=labels,
        year=year,
    )

    result = await render_heatmap(params, caches, source, metrics=metrics)
    if result.cached:
        logger.debug("Served %s from output cache", params.id)
    metrics.request_finished(200, time.perf_counter() - request.state.started)
    return Response(
        content=result.body,
        media_type=result.media_type,
        headers={"Cache-Control": cache_control_header(config)},
    )
