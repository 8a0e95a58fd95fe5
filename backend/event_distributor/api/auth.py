"""OAuth endpoints for connecting platform accounts."""

from datetime import datetime
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from event_distributor.config import get_settings
from event_distributor.database import get_db
from event_distributor.models.platform_config import Platform
from event_distributor.api.deps import get_meetup_oauth_flow, get_registry
from event_distributor.services.oauth import MeetupOAuthFlow
from event_distributor.services.platforms.api_base import PlatformAPIError
from event_distributor.services.platforms.config_store import PlatformConfigStore
from event_distributor.services.platforms.registry import PlatformRegistry

router = APIRouter()
logger = structlog.get_logger()


class AuthorizeResponse(BaseModel):
    """Where to send the user to grant access."""
    authorization_url: str
    state: str


class CallbackResponse(BaseModel):
    """Result of completing the OAuth flow."""
    success: bool
    platform: Platform
    redirect_path: Optional[str] = None
    token_expires_at: Optional[datetime] = None


@router.get("/meetup/authorize", response_model=AuthorizeResponse)
async def meetup_authorize(
    redirect_path: Optional[str] = None,
    flow: MeetupOAuthFlow = Depends(get_meetup_oauth_flow),
):
    """Start the Meetup OAuth flow."""
    if not get_settings().meetup_client_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Meetup OAuth client is not configured",
        )
    url, state = flow.start(redirect_path)
    return AuthorizeResponse(authorization_url=url, state=state)


@router.get("/meetup/callback", response_model=CallbackResponse)
async def meetup_callback(
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    flow: MeetupOAuthFlow = Depends(get_meetup_oauth_flow),
    db: AsyncSession = Depends(get_db),
    registry: PlatformRegistry = Depends(get_registry),
):
    """Complete the Meetup OAuth flow and store the tokens."""
    if error:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Meetup authorization denied: {error}",
        )
    if not code or not state:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing code or state",
        )

    oauth_state = flow.states.consume(state)
    if oauth_state is None or oauth_state.platform != Platform.MEETUP.value:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired OAuth state",
        )

    try:
        token = await flow.exchange_code(code)
    except PlatformAPIError as e:
        logger.error("Meetup token exchange failed", status_code=e.status_code)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(e),
        )

    store = PlatformConfigStore(db)
    config = await store.store_oauth_tokens(
        Platform.MEETUP,
        access_token=token.access_token,
        refresh_token=token.refresh_token,
        expires_in=token.expires_in,
    )
    await db.commit()
    await registry.reconfigure(await store.load_credentials())

    logger.info("Meetup account connected")
    return CallbackResponse(
        success=True,
        platform=Platform.MEETUP,
        redirect_path=oauth_state.redirect_path,
        token_expires_at=config.token_expires_at,
    )
