"""FastAPI dependency injection for caches, span source, metrics and config."""

from fastapi import Request

from spanheat.cache import RenderCaches
from spanheat.server.metrics import HeatmapMetrics
from spanheat.server.upstream import SpanSource


def get_caches(request: Request) -> RenderCaches:
    """Get the shared render caches from app state."""
    return request.app.state.caches


def get_span_source(request: Request) -> SpanSource:
    """Get the upstream span source from app state."""
    return request.app.state.span_source


def get_config(request: Request) -> dict:
    """Get the loaded config from app state."""
    return request.app.state.config


def get_metrics(request: Request) -> HeatmapMetrics:
    """Get the app's Prometheus instruments from app state."""
    return request.app.state.metrics
