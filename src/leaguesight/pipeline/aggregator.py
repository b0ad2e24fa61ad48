"""
Match detail aggregation.

Fetches ``/matches/{id}/stats`` for every collected match in fixed-size
batches. Batches run one after another; the matches of one batch are fetched
concurrently. Each match is isolated: a missing or malformed payload, or a
fetch that failed after the client's retries, is counted as skipped and
leaves every accumulator untouched. A rejected API key is not a per-match
failure and aborts the run.

Folding a valid match into the accumulators is plain synchronous code with
no await in it, so concurrent tasks of a batch can never interleave inside
one read-modify-write of a team or player entry.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from leaguesight.analysis.models import (
    Match,
    PlayerDetail,
    PlayerMatchRecord,
    PlayerParticipant,
    RoundRecord,
    TeamAccumulator,
    TeamParticipant,
)
from leaguesight.integrations.faceit import AuthenticationError, FaceitApiError, FaceitClient
from leaguesight.integrations.teams import TeamDirectory

logger = logging.getLogger(__name__)

BATCH_SIZE = 10

# Upstream has reported ADR under both names
ADR_FIELDS = ("ADR", "Average Damage per Round")


class MalformedRecordError(ValueError):
    """A match statistics payload without usable round or team data."""


def first_present(mapping: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Value of the first key present with a non-None value, else ``default``."""
    for key in keys:
        value = mapping.get(key)
        if value is not None:
            return value
    return default


def to_int(value: Any) -> int:
    """Coerce an upstream number (often a string) to int, 0 if not numeric."""
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def to_float(value: Any) -> float:
    """Coerce an upstream number (often a string) to float, 0 if not numeric."""
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def parse_round_record(
    match_id: str, payload: Any, started_at: int | None = None
) -> RoundRecord:
    """
    Extract the round record of a match statistics payload.

    Every nested object is checked to be a mapping here, so a record that
    parses can be folded without further validation.

    Raises:
        MalformedRecordError: no rounds/teams, a non-numeric or non-positive
            round count, or any entry of the wrong shape
    """
    if payload is not None and not isinstance(payload, Mapping):
        raise MalformedRecordError(f"match {match_id}: payload is not an object")

    rounds_data = (payload or {}).get("rounds") or []
    if not isinstance(rounds_data, list) or not rounds_data:
        raise MalformedRecordError(f"match {match_id}: no round data")

    first_round = rounds_data[0]
    if not isinstance(first_round, Mapping):
        raise MalformedRecordError(f"match {match_id}: no round data")

    teams_data = first_round.get("teams") or []
    if not isinstance(teams_data, list) or not teams_data:
        raise MalformedRecordError(f"match {match_id}: no team data")

    round_stats = first_round.get("round_stats") or {}
    if not isinstance(round_stats, Mapping):
        raise MalformedRecordError(f"match {match_id}: round_stats is not an object")
    raw_rounds = round_stats.get("Rounds")
    try:
        rounds = int(float(str(raw_rounds).strip()))
    except (TypeError, ValueError, OverflowError):
        raise MalformedRecordError(f"match {match_id}: invalid rounds {raw_rounds!r}") from None
    if rounds <= 0:
        raise MalformedRecordError(f"match {match_id}: invalid rounds {raw_rounds!r}")

    teams = [_parse_team(match_id, team) for team in teams_data]

    return RoundRecord(
        match_id=match_id,
        winner_team_id=round_stats.get("Winner") or None,
        rounds=rounds,
        teams=teams,
        started_at=started_at,
    )


def _parse_team(match_id: str, team: Any) -> TeamParticipant:
    if not isinstance(team, Mapping):
        raise MalformedRecordError(f"match {match_id}: team entry is not an object")
    team_id = team.get("team_id")
    if not team_id:
        raise MalformedRecordError(f"match {match_id}: team without team_id")

    players_data = team.get("players") or []
    team_stats = team.get("team_stats") or {}
    if not isinstance(players_data, list) or not isinstance(team_stats, Mapping):
        raise MalformedRecordError(f"match {match_id}: team {team_id} has malformed data")

    players = []
    for p in players_data:
        if not isinstance(p, Mapping):
            raise MalformedRecordError(f"match {match_id}: player entry is not an object")
        stats = p.get("player_stats") or {}
        if not isinstance(stats, Mapping):
            raise MalformedRecordError(
                f"match {match_id}: player_stats of {p.get('player_id')!r} is not an object"
            )
        if not p.get("player_id"):
            continue
        players.append(
            PlayerParticipant(
                player_id=p["player_id"],
                nickname=p.get("nickname", ""),
                avatar=p.get("avatar", ""),
                stats=dict(stats),
            )
        )

    upstream_name = first_present(team_stats, "Team", default="")
    return TeamParticipant(
        team_id=team_id,
        upstream_name=upstream_name or team.get("nickname", ""),
        players=players,
    )


def build_player_record(
    round_record: RoundRecord, team: TeamParticipant, player: PlayerParticipant
) -> PlayerMatchRecord:
    """One player's line of a valid round record."""
    stats = player.stats
    won = round_record.winner_team_id is not None and round_record.winner_team_id == team.team_id
    return PlayerMatchRecord(
        player_id=player.player_id,
        match_id=round_record.match_id,
        kills=to_int(stats.get("Kills")),
        deaths=to_int(stats.get("Deaths")),
        assists=to_int(stats.get("Assists")),
        headshots=to_int(stats.get("Headshots")),
        kr_ratio=to_float(stats.get("K/R Ratio")),
        kd_ratio=to_float(stats.get("K/D Ratio")),
        adr=to_float(first_present(stats, *ADR_FIELDS)),
        rounds=round_record.rounds,
        win=1 if won else 0,
        started_at=round_record.started_at,
    )


def iter_player_records(
    round_record: RoundRecord,
) -> Iterator[tuple[TeamParticipant, PlayerParticipant, PlayerMatchRecord]]:
    """Every player with statistics in a round record, with their team."""
    for team in round_record.teams:
        for player in team.players:
            if not player.stats:
                continue
            yield team, player, build_player_record(round_record, team, player)


@dataclass
class AggregationResult:
    """Accumulated state after all batches have settled."""

    player_records: dict[str, list[PlayerMatchRecord]] = field(default_factory=dict)
    teams: dict[str, TeamAccumulator] = field(default_factory=dict)
    player_details: dict[str, PlayerDetail] = field(default_factory=dict)
    processed: int = 0
    skipped: int = 0


class MatchAggregator:
    """
    Folds match statistics into per-player and per-team accumulators.

    Example:
        >>> aggregator = MatchAggregator(client, team_directory)
        >>> result = await aggregator.aggregate(matches)
        >>> result.processed, result.skipped
    """

    def __init__(self, client: FaceitClient, teams: TeamDirectory, batch_size: int = BATCH_SIZE):
        self.client = client
        self.directory = teams
        self.batch_size = max(1, batch_size)
        self.result = AggregationResult()

    async def aggregate(self, matches: Sequence[Match]) -> AggregationResult:
        """Fetch and fold all matches, one batch at a time."""
        self.directory.reset_missing()
        total_batches = (len(matches) + self.batch_size - 1) // self.batch_size
        for start in range(0, len(matches), self.batch_size):
            batch = matches[start : start + self.batch_size]
            await asyncio.gather(*(self._process_match(match) for match in batch))
            logger.debug(
                f"Batch {start // self.batch_size + 1}/{total_batches} settled "
                f"(processed={self.result.processed}, skipped={self.result.skipped})"
            )

        logger.info(
            f"Aggregated {self.result.processed} matches, skipped {self.result.skipped}, "
            f"{len(self.result.player_records)} players, {len(self.result.teams)} teams"
        )
        return self.result

    async def _process_match(self, match: Match) -> None:
        try:
            payload = await self.client.get_match_stats(match.match_id)
            if payload is None:
                raise MalformedRecordError(f"match {match.match_id}: statistics not found")
            round_record = parse_round_record(match.match_id, payload, match.started_at)
        except AuthenticationError:
            raise
        except (FaceitApiError, ValueError) as e:
            logger.warning(f"Skipping match {match.match_id}: {e}")
            self.result.skipped += 1
            return

        self.fold(round_record)

    def fold(self, round_record: RoundRecord) -> None:
        """Apply one valid round record to the accumulators."""
        result = self.result
        winner = round_record.winner_team_id

        for team in round_record.teams:
            identity = self.directory.resolve(team.team_id, team.upstream_name)
            acc = result.teams.get(team.team_id)
            if acc is None:
                acc = result.teams[team.team_id] = TeamAccumulator(team_id=team.team_id)
            acc.name = identity.name
            acc.icon = identity.icon
            acc.matches_played += 1
            if winner is not None:
                if winner == team.team_id:
                    acc.wins += 1
                else:
                    acc.losses += 1

        for team, player, record in iter_player_records(round_record):
            result.player_records.setdefault(player.player_id, []).append(record)
            result.player_details.setdefault(
                player.player_id, PlayerDetail(nickname=player.nickname, avatar=player.avatar)
            )
            result.teams[team.team_id].player_ids.add(player.player_id)

        result.processed += 1


async def aggregate_matches(
    client: FaceitClient,
    teams: TeamDirectory,
    matches: Sequence[Match],
    batch_size: int = BATCH_SIZE,
) -> AggregationResult:
    """Convenience wrapper around MatchAggregator."""
    return await MatchAggregator(client, teams, batch_size=batch_size).aggregate(matches)
