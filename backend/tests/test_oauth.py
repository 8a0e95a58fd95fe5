"""Tests for the OAuth state store and the Meetup OAuth flow."""

from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from event_distributor.services.oauth import MeetupOAuthFlow, OAuthStateStore, OAuthToken
from event_distributor.services.platforms.api_base import PlatformAPIError


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_state_is_single_use():
    store = OAuthStateStore()
    state = store.issue("meetup", "/settings")

    entry = store.consume(state)
    assert entry.platform == "meetup"
    assert entry.redirect_path == "/settings"
    assert store.consume(state) is None


def test_state_expires():
    clock = FakeClock()
    store = OAuthStateStore(ttl_seconds=60, clock=clock)
    state = store.issue("meetup")

    clock.now += 61
    assert store.consume(state) is None


def test_unknown_state():
    assert OAuthStateStore().consume("forged") is None


def test_expired_states_are_purged_on_issue():
    clock = FakeClock()
    store = OAuthStateStore(ttl_seconds=60, clock=clock)
    store.issue("meetup")
    clock.now += 120
    store.issue("meetup")

    assert len(store) == 1


def test_token_from_response():
    token = OAuthToken.from_response({"access_token": "a", "refresh_token": "r", "expires_in": 3600})
    assert token.token_type == "bearer"
    assert token.expires_at is not None
    assert OAuthToken.from_response({"access_token": "a"}).expires_at is None


def test_authorization_url():
    flow = MeetupOAuthFlow("client", "secret", "http://localhost:8000/cb", OAuthStateStore())

    url, state = flow.start("/platforms")

    parsed = urlparse(url)
    query = parse_qs(parsed.query)
    assert parsed.netloc == "secure.meetup.com"
    assert query["client_id"] == ["client"]
    assert query["redirect_uri"] == ["http://localhost:8000/cb"]
    assert query["response_type"] == ["code"]
    assert query["scope"] == ["basic event_management"]
    assert query["state"] == [state]
    assert flow.states.consume(state).redirect_path == "/platforms"


@pytest.mark.asyncio
async def test_exchange_code():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(parse_qs(request.content.decode()))
        return httpx.Response(200, json={
            "access_token": "access",
            "refresh_token": "refresh",
            "expires_in": 3600,
            "token_type": "bearer",
        })

    flow = MeetupOAuthFlow(
        "client", "secret", "http://localhost/cb", OAuthStateStore(),
        transport=httpx.MockTransport(handler),
    )

    token = await flow.exchange_code("the-code")

    assert token.access_token == "access"
    assert token.refresh_token == "refresh"
    assert seen[0]["grant_type"] == ["authorization_code"]
    assert seen[0]["code"] == ["the-code"]


@pytest.mark.asyncio
async def test_refresh_token():
    def handler(request: httpx.Request) -> httpx.Response:
        assert parse_qs(request.content.decode())["grant_type"] == ["refresh_token"]
        return httpx.Response(200, json={"access_token": "new-access", "expires_in": 3600})

    flow = MeetupOAuthFlow("c", "s", "http://localhost/cb", OAuthStateStore(), transport=httpx.MockTransport(handler))

    token = await flow.refresh("refresh")
    assert token.access_token == "new-access"


@pytest.mark.asyncio
async def test_exchange_code_rejected():
    flow = MeetupOAuthFlow(
        "c", "s", "http://localhost/cb", OAuthStateStore(),
        transport=httpx.MockTransport(lambda request: httpx.Response(400, json={"error": "invalid_grant"})),
    )

    with pytest.raises(PlatformAPIError) as exc_info:
        await flow.exchange_code("bad")

    assert exc_info.value.status_code == 400
    assert "Meetup OAuth Error" in str(exc_info.value)
