"""Shared FastAPI dependencies."""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from event_distributor.config import get_settings
from event_distributor.database import get_db
from event_distributor.services.oauth import MeetupOAuthFlow, OAuthStateStore
from event_distributor.services.platforms.config_store import PlatformConfigStore
from event_distributor.services.platforms.registry import PlatformRegistry


async def get_registry(request: Request, db: AsyncSession = Depends(get_db)) -> PlatformRegistry:
    """Get the app-wide adapter registry, loading credentials on first use."""
    registry = getattr(request.app.state, "registry", None)
    if registry is None:
        credentials = await PlatformConfigStore(db).load_credentials()
        registry = PlatformRegistry(credentials)
        request.app.state.registry = registry
    return registry


def get_oauth_states(request: Request) -> OAuthStateStore:
    states = getattr(request.app.state, "oauth_states", None)
    if states is None:
        states = OAuthStateStore(ttl_seconds=get_settings().oauth_state_ttl_seconds)
        request.app.state.oauth_states = states
    return states


def get_meetup_oauth_flow(states: OAuthStateStore = Depends(get_oauth_states)) -> MeetupOAuthFlow:
    settings = get_settings()
    return MeetupOAuthFlow(
        client_id=settings.meetup_client_id or "",
        client_secret=settings.meetup_client_secret or "",
        redirect_uri=settings.meetup_redirect_uri,
        states=states,
    )
