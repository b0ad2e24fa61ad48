"""Shared fixtures: an in-process fake of the FACEIT data API and payload builders."""

from __future__ import annotations

import re
from typing import Any

import httpx
import pytest

from leaguesight.core.config import LeagueSightConfig
from leaguesight.core.context import build_context
from leaguesight.infra.cache import MemoryCacheStore
from leaguesight.integrations.faceit import FaceitClient
from leaguesight.integrations.teams import TeamDirectory

API_PREFIX = "/data/v4"

TEAM_A = "aaaaaaaa-0000-4000-8000-000000000001"
TEAM_B = "bbbbbbbb-0000-4000-8000-000000000002"
COMPETITION_ID = "c1fcd6a9-34ef-4e18-8e92-b57af0667a40"


class SleepRecorder:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class FakeFaceitApi:
    """
    Routes requests to canned data.

    Values in ``match_stats`` may be a payload dict or an int status code to
    answer with. Unknown ids answer 404.
    """

    def __init__(self):
        self.championship_matches: list[dict[str, Any]] = []
        self.match_stats: dict[str, Any] = {}
        self.players: dict[str, dict[str, Any]] = {}
        self.history: dict[str, list[dict[str, Any]]] = {}
        self.lifetime: dict[str, dict[str, Any]] = {}
        self.requests: list[httpx.Request] = []

    def paths(self) -> list[str]:
        return [r.url.path[len(API_PREFIX):] for r in self.requests]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path[len(API_PREFIX):]
        params = request.url.params

        if re.fullmatch(r"/championships/[^/]+/matches", path):
            offset = int(params.get("offset", 0))
            limit = int(params.get("limit", 100))
            items = self.championship_matches[offset : offset + limit]
            return httpx.Response(200, json={"items": items})

        if m := re.fullmatch(r"/matches/([^/]+)/stats", path):
            value = self.match_stats.get(m.group(1))
            if value is None:
                return httpx.Response(404, json={"errors": []})
            if isinstance(value, int):
                return httpx.Response(value, text="upstream failure")
            return httpx.Response(200, json=value)

        if path == "/players":
            player = self.players.get(params.get("nickname", ""))
            if player is None:
                return httpx.Response(404, json={"errors": []})
            return httpx.Response(200, json=player)

        if m := re.fullmatch(r"/players/([^/]+)/history", path):
            limit = int(params.get("limit", 20))
            items = self.history.get(m.group(1), [])[:limit]
            return httpx.Response(200, json={"items": items})

        if m := re.fullmatch(r"/players/([^/]+)/stats/cs2", path):
            lifetime = self.lifetime.get(m.group(1))
            if lifetime is None:
                return httpx.Response(404, json={"errors": []})
            return httpx.Response(200, json={"lifetime": lifetime})

        return httpx.Response(404, json={"errors": []})


def player_line(player_id: str, kills=20, deaths=10, assists=2, headshots=8, adr="90.0", **extra):
    stats = {
        "Kills": str(kills),
        "Deaths": str(deaths),
        "Assists": str(assists),
        "Headshots": str(headshots),
        "K/R Ratio": "1.25",
        "K/D Ratio": "2.0",
        "ADR": adr,
        **extra,
    }
    return {
        "player_id": player_id,
        "nickname": f"nick-{player_id}",
        "avatar": f"{player_id}.png",
        "player_stats": stats,
    }


def match_payload(
    winner: str | None = TEAM_A,
    rounds: Any = "16",
    team_a_players: list[dict] | None = None,
    team_b_players: list[dict] | None = None,
    team_a_name: str = "upstream A",
    team_b_name: str = "upstream B",
) -> dict[str, Any]:
    """Match statistics payload in the upstream shape."""
    round_stats: dict[str, Any] = {"Rounds": rounds}
    if winner is not None:
        round_stats["Winner"] = winner
    return {
        "rounds": [
            {
                "round_stats": round_stats,
                "teams": [
                    {
                        "team_id": TEAM_A,
                        "team_stats": {"Team": team_a_name},
                        "players": team_a_players if team_a_players is not None else [player_line("p1")],
                    },
                    {
                        "team_id": TEAM_B,
                        "team_stats": {"Team": team_b_name},
                        "players": team_b_players if team_b_players is not None else [player_line("p2", kills=10, deaths=20)],
                    },
                ],
            }
        ]
    }


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def fake_api() -> FakeFaceitApi:
    return FakeFaceitApi()


@pytest.fixture
def make_client(sleeper):
    """Factory for a FaceitClient talking to a handler through MockTransport."""

    def factory(handler, **kwargs) -> FaceitClient:
        kwargs.setdefault("request_delay", 0.5)
        return FaceitClient(
            api_key="test-key",
            transport=httpx.MockTransport(handler),
            sleep=sleeper,
            **kwargs,
        )

    return factory


@pytest.fixture
def team_directory() -> TeamDirectory:
    return TeamDirectory.from_records(
        [
            {"team_id": TEAM_A, "name": "Alpha Gaming", "icon": "alpha.png"},
            {"team_id": TEAM_B, "name": "Bravo Esports", "icon": "bravo.png"},
        ]
    )


@pytest.fixture
def app_context(fake_api, make_client, team_directory):
    """Context wired to the fake API, an in-memory store and a fixed team table."""
    config = LeagueSightConfig()
    config.faceit.api_key = "test-key"
    return build_context(
        config,
        client=make_client(fake_api),
        teams=team_directory,
        store=MemoryCacheStore(),
    )
