"""
League statistics route handlers.

Endpoints:
- GET /api/league-stats: player leaderboard and team table of a championship
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Query, Response

from leaguesight.api.shared import CACHE_STATUS_HEADER, get_context, validate_faceit_id
from leaguesight.core.context import AppContext
from leaguesight.pipeline.orchestrator import LeagueStatsService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["league"])


@router.get("/api/league-stats")
async def league_stats(
    response: Response,
    competition_id: str | None = Query(None, description="Championship id (defaults to config)"),
    skip_cache: bool = Query(False, description="Bypass the cache read"),
    context: AppContext = Depends(get_context),
) -> dict[str, Any]:
    """
    Aggregated championship statistics, served through the cache.

    The X-Cache-Status header is HIT, MISS, SKIP or ERROR.
    """
    if competition_id is not None:
        validate_faceit_id(competition_id, "competition_id")

    payload, status = await LeagueStatsService(context).get_league_stats(
        competition_id, skip_cache=skip_cache
    )
    response.headers[CACHE_STATUS_HEADER] = status.value
    return payload
