"""Tests for the rate-limited FACEIT client: throttling, retries and status handling."""

import asyncio

import httpx
import pytest

from leaguesight.integrations.faceit import (
    AuthenticationError,
    FaceitApiError,
    FaceitClient,
    MissingApiKeyError,
    RateLimitExceeded,
)


def scripted(*responses):
    """Handler answering with the given responses in order, repeating the last one."""
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        index = min(len(seen) - 1, len(responses) - 1)
        response = responses[index]
        if isinstance(response, Exception):
            raise response
        return response

    handler.seen = seen
    return handler


class TestClientSetup:
    """Tests for construction and credentials."""

    def test_missing_api_key_raises(self, monkeypatch):
        """No key argument and no environment variable is a configuration error."""
        monkeypatch.delenv("FACEIT_API_KEY", raising=False)
        with pytest.raises(MissingApiKeyError):
            FaceitClient()

    def test_api_key_from_environment(self, monkeypatch):
        """The key falls back to FACEIT_API_KEY."""
        monkeypatch.setenv("FACEIT_API_KEY", "env-key")
        assert FaceitClient().api_key == "env-key"

    def test_missing_key_is_an_authentication_error(self):
        """Callers that handle auth failures also handle a missing key."""
        assert issubclass(MissingApiKeyError, AuthenticationError)
        assert issubclass(AuthenticationError, FaceitApiError)

    def test_bearer_header_sent(self, make_client):
        """Requests carry the key as a bearer token."""
        handler = scripted(httpx.Response(200, json={"ok": True}))
        client = make_client(handler)

        asyncio.run(client.fetch("/players", {"nickname": "x"}))

        assert handler.seen[0].headers["Authorization"] == "Bearer test-key"


class TestStatusHandling:
    """Tests for per-status behavior."""

    def test_success_returns_json(self, make_client, sleeper):
        """A 200 returns the parsed body after one throttle delay."""
        client = make_client(scripted(httpx.Response(200, json={"items": [1, 2]})))

        result = asyncio.run(client.fetch("/championships/c/matches"))

        assert result == {"items": [1, 2]}
        assert sleeper.calls == [0.5]
        assert client.request_count == 1

    def test_not_found_returns_none_without_retry(self, make_client):
        """A 404 means the item does not exist."""
        handler = scripted(httpx.Response(404))
        client = make_client(handler)

        assert asyncio.run(client.fetch("/matches/x/stats")) is None
        assert len(handler.seen) == 1

    def test_unauthorized_is_not_retried(self, make_client):
        """A 401 fails immediately."""
        handler = scripted(httpx.Response(401))
        client = make_client(handler)

        with pytest.raises(AuthenticationError) as exc_info:
            asyncio.run(client.fetch("/players"))

        assert exc_info.value.status_code == 401
        assert len(handler.seen) == 1

    def test_rate_limit_then_success(self, make_client, sleeper):
        """A 429 sleeps 15x the delay and retries."""
        client = make_client(
            scripted(httpx.Response(429), httpx.Response(200, json={"ok": True}))
        )

        assert asyncio.run(client.fetch("/players")) == {"ok": True}
        assert sleeper.calls == [0.5, 7.5, 0.5]

    def test_rate_limit_exhausts_budget(self, make_client, sleeper):
        """Persistent 429s raise RateLimitExceeded after the retry budget."""
        handler = scripted(httpx.Response(429))
        client = make_client(handler)

        with pytest.raises(RateLimitExceeded):
            asyncio.run(client.fetch("/players"))

        assert len(handler.seen) == 4
        assert sleeper.calls.count(7.5) == 4

    def test_server_error_backs_off_linearly(self, make_client, sleeper):
        """Other failures retry with 3x, 4x, 5x the delay, then raise."""
        handler = scripted(httpx.Response(500, text="boom"))
        client = make_client(handler)

        with pytest.raises(FaceitApiError) as exc_info:
            asyncio.run(client.fetch("/matches/x/stats"))

        assert exc_info.value.status_code == 500
        assert exc_info.value.endpoint == "/matches/x/stats"
        assert len(handler.seen) == 4
        backoffs = [s for s in sleeper.calls if s != 0.5]
        assert backoffs == [1.5, 2.0, 2.5]

    def test_server_error_then_success(self, make_client):
        """A transient failure is invisible to the caller."""
        client = make_client(
            scripted(httpx.Response(503), httpx.Response(200, json={"items": []}))
        )
        assert asyncio.run(client.fetch("/x")) == {"items": []}

    def test_transport_error_retried_then_raised(self, make_client):
        """Network errors use the same retry budget."""
        handler = scripted(httpx.ConnectError("refused"))
        client = make_client(handler)

        with pytest.raises(FaceitApiError):
            asyncio.run(client.fetch("/x"))

        assert len(handler.seen) == 4


class TestThrottle:
    """Tests for the shared request throttle."""

    def test_delay_before_every_attempt(self, make_client, sleeper):
        """Retries wait for the throttle too."""
        client = make_client(scripted(httpx.Response(500)), max_retries=2)

        with pytest.raises(FaceitApiError):
            asyncio.run(client.fetch("/x"))

        assert sleeper.calls.count(0.5) == 3

    def test_concurrent_callers_are_serialized(self):
        """Only one coroutine at a time sits in the throttle delay."""
        active = 0
        peak = 0

        async def slow_sleep(seconds):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            for _ in range(3):
                await asyncio.sleep(0)
            active -= 1

        client = FaceitClient(
            api_key="k",
            transport=httpx.MockTransport(lambda r: httpx.Response(200, json={})),
            sleep=slow_sleep,
        )

        async def run():
            await asyncio.gather(*(client.fetch(f"/matches/{i}/stats") for i in range(5)))
            await client.aclose()

        asyncio.run(run())

        assert peak == 1
        assert client.request_count == 5


class TestEndpoints:
    """Tests for endpoint helpers."""

    def test_championship_matches_params(self, make_client):
        """Match list requests ask for finished matches only."""
        handler = scripted(httpx.Response(200, json={"items": []}))
        client = make_client(handler)

        asyncio.run(client.get_championship_matches("comp", offset=200, limit=100))

        request = handler.seen[0]
        assert request.url.path.endswith("/championships/comp/matches")
        assert request.url.params["type"] == "past"
        assert request.url.params["offset"] == "200"
        assert request.url.params["limit"] == "100"

    def test_player_history_limit_capped(self, make_client):
        """History pages never ask for more than 100 items."""
        handler = scripted(httpx.Response(200, json={"items": []}))
        client = make_client(handler)

        asyncio.run(client.get_player_history("pid", limit=500))

        assert handler.seen[0].url.params["limit"] == "100"
        assert handler.seen[0].url.params["game"] == "cs2"

    def test_async_context_manager_closes(self, make_client):
        """Leaving the context closes the underlying HTTP client."""
        client = make_client(scripted(httpx.Response(200, json={})))

        async def run():
            async with client:
                await client.fetch("/x")
            return client._client

        assert asyncio.run(run()) is None
