"""
Data models for league aggregation.

Everything here lives for one aggregation run only, except the aggregates
that end up inside a CachePayload.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class Match:
    """A championship match as listed by the upstream match list."""

    match_id: str
    started_at: int | None = None
    payload: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_item(cls, item: dict[str, Any]) -> Match:
        return cls(
            match_id=str(item.get("match_id", "")),
            started_at=item.get("started_at"),
            payload=item,
        )


@dataclass
class PlayerParticipant:
    """One player line inside a team of a round record."""

    player_id: str
    nickname: str = ""
    avatar: str = ""
    stats: dict[str, Any] = field(default_factory=dict)


@dataclass
class TeamParticipant:
    """A team inside a round record. ``upstream_name`` is never trusted."""

    team_id: str
    upstream_name: str = ""
    players: list[PlayerParticipant] = field(default_factory=list)


@dataclass
class RoundRecord:
    """Validated summary of one match's statistics payload."""

    match_id: str
    winner_team_id: str | None
    rounds: int
    teams: list[TeamParticipant]
    started_at: int | None = None


@dataclass
class PlayerMatchRecord:
    """One player's line from one match."""

    player_id: str
    match_id: str
    kills: int = 0
    deaths: int = 0
    assists: int = 0
    headshots: int = 0
    kr_ratio: float = 0.0
    kd_ratio: float = 0.0
    adr: float = 0.0
    rounds: int = 0
    win: int = 0
    started_at: int | None = None


@dataclass
class PlayerDetail:
    """Nickname and avatar from the first time a player was seen."""

    nickname: str
    avatar: str = ""


@dataclass
class TeamAccumulator:
    """Running counters for one team during an aggregation run."""

    team_id: str
    name: str = ""
    icon: str | None = None
    matches_played: int = 0
    wins: int = 0
    losses: int = 0
    player_ids: set[str] = field(default_factory=set)


@dataclass
class PlayerAggregate:
    """Derived per-player averages and composite rating."""

    player_id: str
    matches_played: int
    rating: float
    impact: float
    kpr: float
    dpr: float
    apr: float
    adr: float
    kast: float
    kd: float
    hsp: float
    win_rate: float
    total_kills: int = 0
    total_deaths: int = 0
    total_assists: int = 0
    total_headshots: int = 0
    total_rounds: int = 0
    total_wins: int = 0
    nickname: str = ""
    avatar: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "playerId": self.player_id,
            "nickname": self.nickname,
            "avatar": self.avatar,
            "matchesPlayed": self.matches_played,
            "rating": self.rating,
            "impact": self.impact,
            "kpr": self.kpr,
            "dpr": self.dpr,
            "apr": self.apr,
            "adr": self.adr,
            "kast": self.kast,
            "kd": self.kd,
            "hsp": self.hsp,
            "winRate": self.win_rate,
            "totalKills": self.total_kills,
            "totalDeaths": self.total_deaths,
            "totalAssists": self.total_assists,
            "totalHeadshots": self.total_headshots,
            "totalRounds": self.total_rounds,
            "totalWins": self.total_wins,
        }


@dataclass
class TeamAggregate:
    """Final per-team record served to clients."""

    team_id: str
    name: str
    icon: str | None
    matches_played: int
    wins: int
    losses: int
    win_rate: float
    avg_rating: float
    players: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "teamId": self.team_id,
            "name": self.name,
            "icon": self.icon,
            "matchesPlayed": self.matches_played,
            "wins": self.wins,
            "losses": self.losses,
            "winRate": self.win_rate,
            "avgRating": self.avg_rating,
            "players": list(self.players),
        }


@dataclass
class CachePayload:
    """The document stored in and served from the league cache."""

    version: int
    last_updated: str
    competition_id: str
    players: list[PlayerAggregate]
    teams: list[TeamAggregate]
    matches_considered: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "lastUpdatedTimestamp": self.last_updated,
            "competitionId": self.competition_id,
            "matchesConsidered": self.matches_considered,
            "players": [p.to_dict() for p in self.players],
            "teams": [t.to_dict() for t in self.teams],
        }
