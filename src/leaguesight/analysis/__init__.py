"""
LeagueSight Analysis - Derived statistics for players and teams.

This module contains:
- models: Match, record, accumulator and aggregate dataclasses
- stats: Player statistics engine (KPR, ADR, KAST estimate, impact, rating)
- teams: Team aggregation and player leaderboard
"""

from leaguesight.analysis.models import CachePayload, PlayerAggregate, TeamAggregate
from leaguesight.analysis.stats import compute_player_aggregate, compute_recent_form
from leaguesight.analysis.teams import build_player_leaderboard, finalize_teams

__all__: list[str] = [
    "CachePayload",
    "PlayerAggregate",
    "TeamAggregate",
    "build_player_leaderboard",
    "compute_player_aggregate",
    "compute_recent_form",
    "finalize_teams",
]
