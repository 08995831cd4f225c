"""
FastAPI application factory for the spanheat service.

Creates the app with its routes, shared caches, metrics, upstream client
and error handlers. Caches live on app.state and are created once per app.
"""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from spanheat import __version__
from spanheat.cache import RenderCaches
from spanheat.config.loader import load_config
from spanheat.errors import HeatmapError
from spanheat.server.metrics import HeatmapMetrics
from spanheat.server.upstream import SpanClient, SpanSource

logger = logging.getLogger("spanheat.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Close the upstream client on shutdown."""
    yield

    source = app.state.span_source
    if isinstance(source, SpanClient):
        await source.aclose()


def create_app(
    config: dict = None,
    span_source: SpanSource = None,
    metrics: HeatmapMetrics = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    if config is None:
        config = load_config()

    app = FastAPI(
        title="spanheat",
        description="Calendar activity heatmaps from time-tracking spans",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.caches = RenderCaches.from_config(config)
    app.state.metrics = metrics or HeatmapMetrics()
    app.state.span_source = span_source or SpanClient.from_config(config, app.state.metrics)

    app.add_middleware(GZipMiddleware)
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"],
                       allow_headers=["*"])

    @app.exception_handler(HeatmapError)
    async def heatmap_error_handler(request: Request, exc: HeatmapError):
        if exc.status_code >= 500:
            logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
        started = getattr(request.state, "started", None)
        if started is not None:
            app.state.metrics.request_finished(
                exc.status_code, time.perf_counter() - started, error=exc.error_label
            )
        return PlainTextResponse(exc.message, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if errors:
            first = errors[0]
            field = ".".join(str(part) for part in first.get("loc", ())[1:])
            message = f"Invalid parameter {field}: {first.get('msg', 'invalid value')}"
        else:
            message = "Invalid request parameters"
        return PlainTextResponse(message, status_code=400)

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "detail": str(exc)},
        )

    from spanheat.server.routes.health import router as health_router
    from spanheat.server.routes.heatmap import router as heatmap_router

    app.include_router(health_router)
    app.include_router(heatmap_router)

    return app
