"""
Per-player form statistics.

Three entry points share the per-player cache namespace:
- PlayerStatsUpdater: periodic job that recomputes a player's recent form and
  writes it with a week-long TTL, skipping players without new matches
- get_cached_player_stats: read-only lookup that never recomputes and returns
  a pending sentinel when nothing is cached yet
- fetch_player_profile: live profile and lifetime summary for one nickname
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from leaguesight.analysis.models import PlayerMatchRecord
from leaguesight.analysis.stats import compute_recent_form
from leaguesight.core.config import CacheConfig, PlayerUpdateConfig
from leaguesight.infra.cache import CacheStore, player_cache_key, read_json, write_json
from leaguesight.integrations.faceit import FaceitApiError, FaceitClient
from leaguesight.pipeline.aggregator import iter_player_records, parse_round_record

logger = logging.getLogger(__name__)

PENDING_STATUS = "pending"
DEFAULT_AVATAR = "default_avatar.png"

# Simplified lifetime impact: 2.13*KPR + 0.42*APR - 0.41
LIFETIME_IMPACT_COEFFICIENTS = {"kpr": 2.13, "apr": 0.42, "base": -0.41}


@dataclass
class UpdateSummary:
    """Outcome counters of one updater run."""

    success: int = 0
    failed: int = 0
    skipped: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"success": self.success, "failed": self.failed, "skipped": self.skipped}


def load_player_list(path: Path) -> list[str]:
    """
    Load the nicknames to update from a JSON array file.

    Raises:
        ValueError: the file is not a JSON array
        OSError: the file cannot be read
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"{path} is not a valid JSON array")
    return [str(nickname) for nickname in data]


class PlayerStatsUpdater:
    """
    Recomputes recent form for a list of players.

    A player is skipped when the cached entry has the current version and its
    ``lastMatchTimestamp`` is not older than the player's newest match.
    """

    def __init__(
        self,
        client: FaceitClient,
        store: CacheStore | None,
        cache_config: CacheConfig,
        update_config: PlayerUpdateConfig,
    ):
        self.client = client
        self.store = store
        self.cache_config = cache_config
        self.update_config = update_config

    def _key(self, player_id: str) -> str:
        return player_cache_key(self.cache_config.player_namespace, player_id)

    async def run(self, nicknames: list[str]) -> UpdateSummary:
        """Update every player; one player's failure never stops the run."""
        summary = UpdateSummary()
        logger.info(f"Starting player stats update for {len(nicknames)} players")

        for nickname in nicknames:
            try:
                outcome = await self.update_player(nickname)
            except FaceitApiError as e:
                logger.error(f"Processing failed for {nickname}: {e}")
                outcome = "failed"
            except Exception:
                logger.exception(f"Unexpected error processing {nickname}")
                outcome = "failed"
            setattr(summary, outcome, getattr(summary, outcome) + 1)

        logger.info(
            f"Player stats update finished. Success: {summary.success}, "
            f"Failed: {summary.failed}, Skipped: {summary.skipped}"
        )
        return summary

    async def update_player(self, nickname: str) -> str:
        """
        Update one player.

        Returns:
            "success", "failed" or "skipped"
        """
        details = await self.client.get_player_by_nickname(nickname)
        player_id = (details or {}).get("player_id")
        if not player_id:
            logger.warning(f"Could not find player_id for {nickname}")
            return "failed"

        last_known = self._last_known_timestamp(player_id)

        latest = await self.client.get_player_history(player_id, limit=1)
        latest_items = (latest or {}).get("items") or []
        latest_ts = latest_items[0].get("started_at") if latest_items else None
        if latest_ts is None:
            logger.info(f"No history found for {nickname} ({player_id}), skipping")
            return "skipped"

        if last_known is not None and latest_ts <= last_known:
            logger.info(f"{nickname} ({player_id}) is up to date, skipping")
            return "skipped"

        history = await self.client.get_player_history(
            player_id, limit=self.update_config.history_limit
        )
        items = (history or {}).get("items") or []
        if not items:
            logger.warning(f"No full history for {nickname} ({player_id})")
            return "failed"

        records = await self._collect_records(player_id, items)
        if not records:
            logger.warning(f"No valid match details for {nickname} ({player_id})")
            return "failed"

        stats, matches_used = compute_recent_form(records, self.update_config.form_window)
        if stats is None:
            return "failed"

        document = {
            "version": self.cache_config.player_version,
            "calculatedRating": stats.rating,
            "kd": stats.kd,
            "adr": stats.adr,
            "winRate": stats.win_rate,
            "hsPercent": stats.hsp,
            "kast": stats.kast,
            "impact": stats.impact,
            "matchesConsidered": matches_used,
            "lastUpdated": datetime.now(timezone.utc).isoformat(),
            "kpr": stats.kpr,
            "dpr": stats.dpr,
            "apr": stats.apr,
            "lastMatchTimestamp": items[0].get("started_at", latest_ts),
        }

        if self.store is not None and not write_json(
            self.store, self._key(player_id), document, self.cache_config.player_ttl_seconds
        ):
            return "failed"
        logger.info(f"Updated stats for {nickname} ({player_id})")
        return "success"

    def _last_known_timestamp(self, player_id: str) -> int | None:
        cached, _ = read_json(self.store, self._key(player_id))
        if not isinstance(cached, dict):
            return None
        if cached.get("version") != self.cache_config.player_version:
            logger.info(f"Cached stats for {player_id} are an old version, forcing update")
            return None
        timestamp = cached.get("lastMatchTimestamp")
        return timestamp if isinstance(timestamp, (int, float)) else None

    async def _collect_records(
        self, player_id: str, items: list[dict[str, Any]]
    ) -> list[PlayerMatchRecord]:
        batch_size = max(1, self.update_config.batch_size)
        records: list[PlayerMatchRecord] = []
        for start in range(0, len(items), batch_size):
            batch = items[start : start + batch_size]
            results = await asyncio.gather(
                *(self._player_record(player_id, item) for item in batch)
            )
            records.extend(r for r in results if r is not None)
        return records

    async def _player_record(
        self, player_id: str, item: dict[str, Any]
    ) -> PlayerMatchRecord | None:
        if not isinstance(item, dict):
            logger.warning(f"Skipping malformed history entry for {player_id}: {item!r}")
            return None
        match_id = item.get("match_id", "")
        try:
            payload = await self.client.get_match_stats(match_id)
            round_record = parse_round_record(match_id, payload, item.get("started_at"))
        except (FaceitApiError, ValueError) as e:
            logger.warning(f"Failed match detail {match_id} for {player_id}: {e}")
            return None

        for _, player, record in iter_player_records(round_record):
            if player.player_id == player_id:
                return record
        return None


def get_cached_player_stats(
    store: CacheStore | None, player_id: str, namespace: str = "player_stats"
) -> dict[str, Any]:
    """
    Read a player's cached form without recomputing anything.

    Returns:
        The cached document with ``status="ok"``, or a pending sentinel
    """
    cached, status = read_json(store, player_cache_key(namespace, player_id))
    if not isinstance(cached, dict):
        logger.debug(f"No cached stats for {player_id} ({status.value})")
        return {"playerId": player_id, "status": PENDING_STATUS}
    return {**cached, "playerId": player_id, "status": "ok"}


def _lifetime_summary(lifetime: dict[str, Any]) -> dict[str, str]:
    def number(*keys: str, default: float | None = None) -> float | None:
        for key in keys:
            try:
                return float(lifetime[key])
            except (KeyError, TypeError, ValueError):
                continue
        return default

    kills = number("Total Kills with extended stats", "Kills", default=0.0)
    deaths = number("Deaths", default=1.0)
    assists = number("Assists", default=0.0)
    rounds = number("Total Rounds with extended stats", "Rounds", default=1.0)
    win_rate = number("Win Rate %")
    avg_kd = number("Average K/D Ratio")

    kpr = kills / rounds if rounds else 0.0
    apr = assists / rounds if rounds else 0.0
    impact = (
        LIFETIME_IMPACT_COEFFICIENTS["kpr"] * kpr
        + LIFETIME_IMPACT_COEFFICIENTS["apr"] * apr
        + LIFETIME_IMPACT_COEFFICIENTS["base"]
    )

    if avg_kd is not None:
        kd = f"{avg_kd:.2f}"
    elif deaths:
        kd = f"{kills / deaths:.2f}"
    else:
        kd = "N/A"

    return {
        "simplifiedImpact": f"{impact:.2f}",
        "lifetimeKD": kd,
        "lifetimeWinRate": f"{win_rate:.0f}" if win_rate is not None else "N/A",
    }


async def fetch_player_profile(client: FaceitClient, nickname: str) -> dict[str, Any] | None:
    """
    Live profile of a player by nickname.

    Returns:
        Profile dict, or None when the nickname is unknown. Lifetime fields
        are "N/A" when upstream has no lifetime stats.
    """
    player = await client.get_player_by_nickname(nickname)
    if not player:
        return None

    player_id = player.get("player_id", "")
    summary = {"simplifiedImpact": "N/A", "lifetimeKD": "N/A", "lifetimeWinRate": "N/A"}
    try:
        stats = await client.get_player_stats(player_id)
    except FaceitApiError as e:
        logger.error(f"Error fetching lifetime stats for {nickname}: {e}")
        stats = None
    lifetime = (stats or {}).get("lifetime")
    if lifetime:
        summary = _lifetime_summary(lifetime)
    else:
        logger.warning(f"Lifetime stats missing for {nickname}")

    game = (player.get("games") or {}).get(client.game) or {}
    elo = game.get("faceit_elo")
    faceit_url = player.get("faceit_url") or "#"

    return {
        "playerId": player_id,
        "nickname": player.get("nickname", nickname),
        "avatar": player.get("avatar") or DEFAULT_AVATAR,
        "faceitUrl": faceit_url.replace("{lang}", "en"),
        "elo": elo if elo is not None else "N/A",
        "level": game.get("skill_level", "N/A"),
        "sortElo": int(elo) if isinstance(elo, (int, float)) else 0,
        **summary,
    }
