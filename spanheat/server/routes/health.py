"""Health check endpoint."""

import time
from fastapi import APIRouter, Depends

from spanheat import __version__
from spanheat.cache import RenderCaches
from spanheat.server.dependencies import get_caches

router = APIRouter(tags=["health"])

_start_time = time.time()


@router.get("/health")
async def health_check(caches: RenderCaches = Depends(get_caches)):
    """Health check: returns status, uptime, cache statistics."""
    uptime = int(time.time() - _start_time)

    return {
        "status": "ok",
        "uptime_seconds": uptime,
        "version": __version__,
        "caches": caches.stats(),
    }
