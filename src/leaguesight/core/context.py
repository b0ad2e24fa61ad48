"""
Application context.

Built once per process (or per CLI invocation) and handed to every component
that needs the upstream client, the team directory or the cache store.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from leaguesight.core.config import LeagueSightConfig
from leaguesight.infra.cache import CacheStore, create_store
from leaguesight.integrations.faceit import FaceitClient
from leaguesight.integrations.teams import TeamDirectory, load_team_directory

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    config: LeagueSightConfig
    client: FaceitClient
    teams: TeamDirectory
    store: CacheStore | None

    async def aclose(self) -> None:
        await self.client.aclose()


def build_client(config: LeagueSightConfig, request_delay_ms: int | None = None) -> FaceitClient:
    """Create the upstream client. Raises MissingApiKeyError without a key."""
    faceit = config.faceit
    delay_ms = request_delay_ms if request_delay_ms is not None else faceit.request_delay_ms
    return FaceitClient(
        api_key=faceit.api_key,
        base_url=faceit.base_url,
        request_delay=delay_ms / 1000,
        max_retries=faceit.max_retries,
        rate_limit_multiplier=faceit.rate_limit_multiplier,
        timeout=faceit.timeout_seconds,
        game=faceit.game,
    )


def build_store(config: LeagueSightConfig) -> CacheStore | None:
    """Create the cache store; an unusable store disables caching."""
    try:
        return create_store(config.cache.backend, config.cache.directory)
    except (OSError, ValueError) as e:
        logger.error(f"Cache store unavailable, caching disabled: {e}")
        return None


def build_context(
    config: LeagueSightConfig,
    client: FaceitClient | None = None,
    teams: TeamDirectory | None = None,
    store: CacheStore | None = None,
) -> AppContext:
    """Assemble the context, creating any collaborator not passed in."""
    if teams is None:
        teams = load_team_directory(Path(config.league.teams_file))
    return AppContext(
        config=config,
        client=client or build_client(config),
        teams=teams,
        store=store if store is not None else build_store(config),
    )
