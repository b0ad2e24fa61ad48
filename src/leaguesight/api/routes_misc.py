"""
Miscellaneous route handlers.

Endpoints:
- GET /health: health check
- GET /cache/stats: cache statistics
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends

from leaguesight.api.shared import HealthResponse, __version__, get_context
from leaguesight.core.context import AppContext

logger = logging.getLogger(__name__)

router = APIRouter(tags=["misc"])


@router.get("/health", response_model=HealthResponse)
async def health() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "ok", "version": __version__}


@router.get("/cache/stats")
async def cache_stats(context: AppContext = Depends(get_context)) -> dict[str, Any]:
    """Entry count, size and hit rate of the cache store."""
    if context.store is None:
        return {"enabled": False}
    return {"enabled": True, **context.store.get_stats().to_dict()}
