"""
LeagueSight - Championship statistics from FACEIT match data

Collects a championship's finished matches, aggregates per-player and
per-team statistics (rating, impact, KAST estimate, ADR, win rate) and
serves them through a versioned read-through cache.

Usage:
    import asyncio
    from leaguesight import LeagueStatsService, build_context, load_config

    context = build_context(load_config())
    payload, status = asyncio.run(LeagueStatsService(context).get_league_stats())

    for player in payload["players"][:10]:
        print(f"{player['nickname']}: {player['rating']:.2f}")
"""

__version__ = "0.1.0"
__author__ = "LeagueSight Contributors"


def __getattr__(name):
    """Lazy import so the API client stack is only loaded when used."""
    if name == "FaceitClient":
        from leaguesight.integrations.faceit import FaceitClient
        return FaceitClient
    elif name == "LeagueStatsService":
        from leaguesight.pipeline.orchestrator import LeagueStatsService
        return LeagueStatsService
    elif name == "build_context":
        from leaguesight.core.context import build_context
        return build_context
    elif name == "load_config":
        from leaguesight.core.config import load_config
        return load_config
    elif name == "compute_player_aggregate":
        from leaguesight.analysis.stats import compute_player_aggregate
        return compute_player_aggregate
    raise AttributeError(f"module 'leaguesight' has no attribute '{name}'")


__all__ = [
    "__version__",
    "FaceitClient",
    "LeagueStatsService",
    "build_context",
    "load_config",
    "compute_player_aggregate",
]
