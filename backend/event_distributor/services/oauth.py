"""OAuth 2.0 authorization code flow for Meetup."""

import secrets
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional, Tuple
from urllib.parse import urlencode

import httpx
import structlog

from event_distributor.services.platforms.api_base import PlatformAPIError

logger = structlog.get_logger()

MEETUP_AUTH_ENDPOINT = "https://secure.meetup.com/oauth2/authorize"
MEETUP_TOKEN_ENDPOINT = "https://secure.meetup.com/oauth2/access"
MEETUP_SCOPES = ["basic", "event_management"]


@dataclass
class OAuthState:
    platform: str
    issued_at: float
    redirect_path: Optional[str] = None


@dataclass
class OAuthToken:
    access_token: str
    token_type: str = "bearer"
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    scope: Optional[str] = None

    @property
    def expires_at(self) -> Optional[datetime]:
        if not self.expires_in:
            return None
        return datetime.utcnow() + timedelta(seconds=self.expires_in)

    @classmethod
    def from_response(cls, data: Dict) -> "OAuthToken":
        return cls(
            access_token=data["access_token"],
            token_type=data.get("token_type", "bearer"),
            refresh_token=data.get("refresh_token"),
            expires_in=data.get("expires_in"),
            scope=data.get("scope"),
        )


class OAuthStateStore:
    """Pending OAuth ``state`` values.

    States are single use and expire ``ttl_seconds`` after being issued;
    expiry is checked when a state is consumed.
    """

    def __init__(self, ttl_seconds: int = 600, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._states: Dict[str, OAuthState] = {}

    def issue(self, platform: str, redirect_path: Optional[str] = None) -> str:
        self._purge_expired()
        state = secrets.token_hex(16)
        self._states[state] = OAuthState(
            platform=platform,
            issued_at=self._clock(),
            redirect_path=redirect_path,
        )
        return state

    def consume(self, state: str) -> Optional[OAuthState]:
        """Take a state out of the store; None if unknown or expired."""
        entry = self._states.pop(state, None)
        if entry is None or self._is_expired(entry):
            return None
        return entry

    def _is_expired(self, entry: OAuthState) -> bool:
        return self._clock() - entry.issued_at > self.ttl_seconds

    def _purge_expired(self):
        for key in [k for k, v in self._states.items() if self._is_expired(v)]:
            del self._states[key]

    def __len__(self) -> int:
        return len(self._states)


class MeetupOAuthFlow:
    """Builds the Meetup consent URL and trades codes for tokens."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        states: OAuthStateStore,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.states = states
        self._transport = transport

    def authorization_url(self, state: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "scope": " ".join(MEETUP_SCOPES),
            "response_type": "code",
            "state": state,
        }
        return f"{MEETUP_AUTH_ENDPOINT}?{urlencode(params)}"

    def start(self, redirect_path: Optional[str] = None) -> Tuple[str, str]:
        """Issue a state and build the consent URL.

        Returns:
            Tuple of (authorization URL, state)
        """
        state = self.states.issue("meetup", redirect_path)
        return self.authorization_url(state), state

    async def _token_request(self, data: Dict[str, str]) -> OAuthToken:
        async with httpx.AsyncClient(timeout=30.0, transport=self._transport) as client:
            response = await client.post(
                MEETUP_TOKEN_ENDPOINT,
                data=data,
                headers={"Accept": "application/json"},
            )
        if response.is_error:
            raise PlatformAPIError(
                f"Meetup OAuth Error: {response.status_code} - {response.text}",
                status_code=response.status_code,
                response=response.text,
            )
        return OAuthToken.from_response(response.json())

    async def exchange_code(self, code: str) -> OAuthToken:
        """Trade an authorization code for tokens.

        Raises:
            PlatformAPIError: Meetup rejected the code
        """
        token = await self._token_request({
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "grant_type": "authorization_code",
            "redirect_uri": self.redirect_uri,
            "code": code,
        })
        logger.info("Meetup OAuth code exchanged", expires_in=token.expires_in)
        return token

    async def refresh(self, refresh_token: str) -> OAuthToken:
        token = await self._token_request({
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
        })
        logger.info("Meetup OAuth token refreshed")
        return token
