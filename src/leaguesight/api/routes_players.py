"""
Player route handlers.

Endpoints:
- GET /api/player-stats/{player_id}: cached recent form (never recomputed)
- GET /api/player-profile: live profile and lifetime summary by nickname
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from leaguesight.api.shared import (
    CACHE_STATUS_HEADER,
    get_context,
    validate_faceit_id,
    validate_nickname,
)
from leaguesight.core.context import AppContext
from leaguesight.pipeline.player_stats import (
    PENDING_STATUS,
    fetch_player_profile,
    get_cached_player_stats,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["players"])


@router.get("/api/player-stats/{player_id}")
async def player_stats(
    player_id: str, response: Response, context: AppContext = Depends(get_context)
) -> dict[str, Any]:
    """Cached form of one player, or ``{"status": "pending"}`` if not computed yet."""
    validate_faceit_id(player_id, "player_id")
    result = get_cached_player_stats(
        context.store, player_id, namespace=context.config.cache.player_namespace
    )
    response.headers[CACHE_STATUS_HEADER] = "MISS" if result["status"] == PENDING_STATUS else "HIT"
    return result


@router.get("/api/player-profile")
async def player_profile(
    response: Response,
    nickname: str = Query(..., description="FACEIT nickname"),
    context: AppContext = Depends(get_context),
) -> dict[str, Any]:
    """Live FACEIT profile with lifetime K/D, win rate and simplified impact."""
    validate_nickname(nickname)
    logger.info(f"Profile request for {nickname}")

    profile = await fetch_player_profile(context.client, nickname)
    if profile is None:
        raise HTTPException(status_code=404, detail=f'Player "{nickname}" not found')

    response.headers["Cache-Control"] = "s-maxage=180, stale-while-revalidate"
    return profile
