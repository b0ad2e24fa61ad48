"""Tests for the FastAPI web API."""

import httpx
import pytest
from fastapi.testclient import TestClient

from conftest import COMPETITION_ID, match_payload
from leaguesight.api import app
from leaguesight.core.config import LeagueSightConfig, reset_config, set_config
from leaguesight.infra.cache import player_cache_key, write_json

PLAYER_ID = "0a1b2c3d-4e5f-4a6b-8c7d-9e0f1a2b3c4d"


@pytest.fixture
def client(app_context):
    """TestClient whose application context talks to the fake API."""
    app.state.context = app_context
    with TestClient(app) as test_client:
        yield test_client
    app.state.context = None


@pytest.fixture
def league(fake_api):
    fake_api.championship_matches = [{"match_id": "m1", "started_at": 100}]
    fake_api.match_stats = {"m1": match_payload()}
    return fake_api


class TestHealthEndpoint:
    """Tests for the /health endpoint."""

    def test_health_returns_ok(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert isinstance(data["version"], str)


class TestLeagueStatsEndpoint:
    """Tests for /api/league-stats."""

    def test_miss_then_hit(self, client, league):
        first = client.get("/api/league-stats")
        assert first.status_code == 200
        assert first.headers["X-Cache-Status"] == "MISS"

        second = client.get("/api/league-stats")
        assert second.headers["X-Cache-Status"] == "HIT"
        assert second.json() == first.json()

    def test_payload_shape(self, client, league):
        data = client.get("/api/league-stats").json()

        assert data["competitionId"] == COMPETITION_ID
        assert {"version", "lastUpdatedTimestamp", "players", "teams"} <= set(data)
        assert data["teams"][0]["name"] == "Alpha Gaming"

    def test_skip_cache(self, client, league):
        client.get("/api/league-stats")
        response = client.get("/api/league-stats", params={"skip_cache": "true"})
        assert response.headers["X-Cache-Status"] == "SKIP"

    def test_invalid_competition_id(self, client):
        response = client.get("/api/league-stats", params={"competition_id": "../etc"})
        assert response.status_code == 400

    def test_upstream_failure(self, client, app_context, make_client):
        app_context.client = make_client(lambda request: httpx.Response(503))

        response = client.get("/api/league-stats")

        assert response.status_code == 500
        assert response.json()["error"] == "Failed to load statistics from FACEIT"

    def test_cors_exposes_cache_header(self, client, league):
        response = client.get("/api/league-stats", headers={"Origin": "https://example.org"})
        assert "X-Cache-Status" in response.headers["access-control-expose-headers"]


class TestMissingApiKey:
    """Tests for the configuration error response."""

    def test_missing_key_is_reported(self, monkeypatch):
        monkeypatch.delenv("FACEIT_API_KEY", raising=False)
        config = LeagueSightConfig()
        config.cache.backend = "memory"
        set_config(config)
        app.state.context = None
        try:
            with TestClient(app) as test_client:
                response = test_client.get("/api/league-stats")
        finally:
            reset_config()

        assert response.status_code == 500
        assert response.json()["error"] == "Server configuration error: API Key missing"


class TestPlayerStatsEndpoint:
    """Tests for /api/player-stats/{player_id}."""

    def test_pending(self, client):
        response = client.get(f"/api/player-stats/{PLAYER_ID}")

        assert response.status_code == 200
        assert response.json() == {"playerId": PLAYER_ID, "status": "pending"}
        assert response.headers["X-Cache-Status"] == "MISS"

    def test_cached(self, client, app_context):
        write_json(
            app_context.store,
            player_cache_key("player_stats", PLAYER_ID),
            {"calculatedRating": 1.12},
            60,
        )

        response = client.get(f"/api/player-stats/{PLAYER_ID}")

        assert response.json()["calculatedRating"] == 1.12
        assert response.json()["status"] == "ok"
        assert response.headers["X-Cache-Status"] == "HIT"

    def test_invalid_id(self, client):
        assert client.get("/api/player-stats/not-a-uuid").status_code == 400


class TestPlayerProfileEndpoint:
    """Tests for /api/player-profile."""

    def test_found(self, client, fake_api):
        fake_api.players["alice"] = {"player_id": PLAYER_ID, "nickname": "alice", "games": {}}

        response = client.get("/api/player-profile", params={"nickname": "alice"})

        assert response.status_code == 200
        assert response.json()["playerId"] == PLAYER_ID
        assert "s-maxage" in response.headers["Cache-Control"]

    def test_unknown(self, client):
        response = client.get("/api/player-profile", params={"nickname": "nobody"})
        assert response.status_code == 404

    def test_invalid_nickname(self, client):
        response = client.get("/api/player-profile", params={"nickname": "bad name!"})
        assert response.status_code == 400

    def test_missing_nickname(self, client):
        assert client.get("/api/player-profile").status_code == 422


class TestCacheStatsEndpoint:
    """Tests for /cache/stats."""

    def test_reports_entries(self, client, league):
        client.get("/api/league-stats")
        data = client.get("/cache/stats").json()

        assert data["enabled"] is True
        assert data["total_entries"] == 1
