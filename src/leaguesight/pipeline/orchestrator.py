"""
League statistics orchestration.

Runs the full pipeline behind a read-through cache:

    collect -> aggregate -> player aggregates -> team aggregates -> store

A request may bypass the cache read; the fresh result is written back in
every case. Collector failures abort the run; match-level failures only show
up as skip counts.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from leaguesight.analysis.models import CachePayload, PlayerAggregate
from leaguesight.analysis.stats import compute_player_aggregate
from leaguesight.analysis.teams import build_player_leaderboard, finalize_teams
from leaguesight.core.context import AppContext
from leaguesight.infra.cache import CacheStatus, league_cache_key, read_json, write_json
from leaguesight.pipeline.aggregator import AggregationResult, MatchAggregator
from leaguesight.pipeline.collector import collect_matches

logger = logging.getLogger(__name__)


def build_payload(
    result: AggregationResult, competition_id: str, version: int, matches_considered: int
) -> CachePayload:
    """Turn accumulated state into the served document."""
    aggregates: dict[str, PlayerAggregate] = {}
    for player_id, records in result.player_records.items():
        aggregate = compute_player_aggregate(records, player_id=player_id)
        if aggregate is None:
            continue
        detail = result.player_details.get(player_id)
        if detail is not None:
            aggregate.nickname = detail.nickname
            aggregate.avatar = detail.avatar
        aggregates[player_id] = aggregate

    return CachePayload(
        version=version,
        last_updated=datetime.now(timezone.utc).isoformat(),
        competition_id=competition_id,
        players=build_player_leaderboard(aggregates.values()),
        teams=finalize_teams(result.teams, aggregates),
        matches_considered=matches_considered,
    )


class LeagueStatsService:
    """
    Cache-aside front of the aggregation pipeline.

    Example:
        >>> service = LeagueStatsService(context)
        >>> payload, status = await service.get_league_stats()
    """

    def __init__(self, context: AppContext):
        self.context = context
        self.config = context.config

    def cache_key(self, competition_id: str) -> str:
        cache = self.config.cache
        return league_cache_key(cache.namespace, competition_id, cache.version)

    async def compute(self, competition_id: str) -> CachePayload:
        """Run the pipeline without touching the cache."""
        league = self.config.league
        matches = await collect_matches(
            self.context.client,
            competition_id,
            page_size=league.page_size,
            max_matches=league.max_matches,
        )
        aggregator = MatchAggregator(
            self.context.client, self.context.teams, batch_size=league.batch_size
        )
        result = await aggregator.aggregate(matches)
        payload = build_payload(
            result, competition_id, self.config.cache.version, matches_considered=result.processed
        )
        logger.info(
            f"Computed league stats for {competition_id}: {len(matches)} collected, "
            f"{result.processed} processed, {result.skipped} skipped"
        )
        return payload

    async def get_league_stats(
        self, competition_id: str | None = None, skip_cache: bool = False
    ) -> tuple[dict[str, Any], CacheStatus]:
        """
        Serve a competition's aggregate, computing it on a miss.

        Args:
            competition_id: Championship id, defaults to the configured one
            skip_cache: Skip the cache read (the result is still written)

        Returns:
            (payload dict, cache status)

        Raises:
            FaceitApiError: when the match list could not be collected
            AuthenticationError: when upstream rejects the API key at any stage
        """
        competition_id = competition_id or self.config.league.competition_id
        key = self.cache_key(competition_id)
        store = self.context.store

        if skip_cache:
            status = CacheStatus.SKIP
            logger.info(f"Cache read skipped for {key}")
        else:
            cached, status = read_json(store, key)
            if cached is not None:
                logger.info(f"Cache hit for {key}")
                return cached, CacheStatus.HIT
            logger.info(f"Cache {status.value.lower()} for {key}, computing")

        payload = (await self.compute(competition_id)).to_dict()

        if not write_json(store, key, payload, self.config.cache.ttl_seconds):
            logger.warning(f"Serving uncached result for {key}")
        return payload, status
