"""
Team aggregation and leaderboards.

Team counters are integers from the start: every valid match adds exactly one
to ``matches_played`` for each participating team, so there is no fractional
correction step and matches with more than two teams are counted correctly.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from leaguesight.analysis.models import PlayerAggregate, TeamAccumulator, TeamAggregate
from leaguesight.analysis.stats import round_half_up

logger = logging.getLogger(__name__)


def finalize_teams(
    accumulators: Mapping[str, TeamAccumulator],
    player_aggregates: Mapping[str, PlayerAggregate],
) -> list[TeamAggregate]:
    """
    Build the team table from accumulators and the roster's player aggregates.

    Sorted by win rate descending, ties broken by average rating descending.
    """
    teams: list[TeamAggregate] = []

    for team_id, acc in accumulators.items():
        win_rate = acc.wins / acc.matches_played * 100 if acc.matches_played else 0.0

        ratings = [
            player_aggregates[pid].rating
            for pid in acc.player_ids
            if pid in player_aggregates and player_aggregates[pid].rating > 0
        ]
        avg_rating = sum(ratings) / len(ratings) if ratings else 0.0

        teams.append(
            TeamAggregate(
                team_id=team_id,
                name=acc.name,
                icon=acc.icon,
                matches_played=acc.matches_played,
                wins=acc.wins,
                losses=acc.losses,
                win_rate=round_half_up(win_rate, 1),
                avg_rating=round_half_up(avg_rating, 2),
                players=sorted(acc.player_ids),
            )
        )

    teams.sort(key=lambda t: (t.win_rate, t.avg_rating), reverse=True)
    logger.debug(f"Finalized {len(teams)} teams")
    return teams


def build_player_leaderboard(aggregates: Iterable[PlayerAggregate]) -> list[PlayerAggregate]:
    """All player aggregates, best rating first."""
    return sorted(aggregates, key=lambda p: p.rating or 0.0, reverse=True)
