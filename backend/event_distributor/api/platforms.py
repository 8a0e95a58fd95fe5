"""Platform configuration API endpoints."""

import asyncio
from datetime import datetime
from typing import Any, Dict, List, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from event_distributor.config import get_settings
from event_distributor.database import get_db
from event_distributor.models.platform_config import (
    ConnectionStatus,
    IntegrationMethod,
    Platform,
    PlatformConfig,
    PLATFORM_NAMES,
)
from event_distributor.api.deps import get_registry
from event_distributor.services.platforms.config_store import PlatformConfigStore
from event_distributor.services.platforms.registry import PlatformRegistry

logger = structlog.get_logger()
router = APIRouter()


class PlatformConfigUpdate(BaseModel):
    """Update a platform's configuration; omitted fields are left as they are."""
    api_enabled: Optional[bool] = None
    api_key: Optional[str] = None
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    api_settings: Optional[Dict[str, Any]] = None
    automation_enabled: Optional[bool] = None
    username: Optional[str] = None
    password: Optional[str] = None
    automation_settings: Optional[Dict[str, Any]] = None
    session_blob: Optional[Dict[str, Any]] = None


class PlatformConfigResponse(BaseModel):
    """Configuration as shown to the dashboard; secrets are never returned."""
    platform: Platform
    display_name: str
    api_enabled: bool
    api_configured: bool
    token_valid: bool
    token_expires_at: Optional[datetime] = None
    api_settings: Dict[str, Any] = Field(default_factory=dict)
    automation_enabled: bool
    automation_configured: bool
    has_saved_session: bool
    username: Optional[str] = None
    automation_settings: Dict[str, Any] = Field(default_factory=dict)
    connection_status: ConnectionStatus
    connection_error: Optional[str] = None
    last_tested_at: Optional[datetime] = None


class AvailablePair(BaseModel):
    platform: Platform
    method: IntegrationMethod


class ConnectionTestResponse(BaseModel):
    platform: Platform
    method: IntegrationMethod
    connected: bool
    error: Optional[str] = None
    tested_at: datetime


def _config_to_response(config: PlatformConfig) -> PlatformConfigResponse:
    return PlatformConfigResponse(
        platform=config.platform,
        display_name=PLATFORM_NAMES[config.platform],
        api_enabled=bool(config.api_enabled),
        api_configured=bool(config.access_token or config.api_key),
        token_valid=config.is_token_valid(),
        token_expires_at=config.token_expires_at,
        api_settings=config.api_settings or {},
        automation_enabled=bool(config.automation_enabled),
        automation_configured=bool(config.username and config.password),
        has_saved_session=bool(config.session_blob),
        username=config.username,
        automation_settings=config.automation_settings or {},
        connection_status=config.connection_status or ConnectionStatus.DISCONNECTED,
        connection_error=config.connection_error,
        last_tested_at=config.last_tested_at,
    )


@router.get("/", response_model=List[PlatformConfigResponse])
async def list_platform_configs(db: AsyncSession = Depends(get_db)):
    """List every platform with its configuration state."""
    configs = await PlatformConfigStore(db).list_all()
    return [_config_to_response(c) for c in configs]


@router.get("/available", response_model=List[AvailablePair])
async def list_available(registry: PlatformRegistry = Depends(get_registry)):
    """List (platform, method) pairs that can be published to right now."""
    return [AvailablePair(platform=p, method=m) for p, m in registry.list_available()]


@router.get("/{platform}", response_model=PlatformConfigResponse)
async def get_platform_config(
    platform: Platform,
    db: AsyncSession = Depends(get_db),
):
    """Get one platform's configuration."""
    config = await PlatformConfigStore(db).get_or_default(platform)
    return _config_to_response(config)


@router.put("/{platform}", response_model=PlatformConfigResponse)
async def update_platform_config(
    platform: Platform,
    updates: PlatformConfigUpdate,
    db: AsyncSession = Depends(get_db),
    registry: PlatformRegistry = Depends(get_registry),
):
    """Save a platform's configuration and rebuild the adapters."""
    store = PlatformConfigStore(db)
    config = await store.upsert(platform, updates.model_dump(exclude_unset=True))
    await db.commit()

    await registry.reconfigure(await store.load_credentials())
    return _config_to_response(config)


@router.post("/{platform}/test", response_model=ConnectionTestResponse)
async def test_platform_connection(
    platform: Platform,
    method: IntegrationMethod = IntegrationMethod.API,
    db: AsyncSession = Depends(get_db),
    registry: PlatformRegistry = Depends(get_registry),
):
    """Check that the stored credentials work for one method."""
    adapter = registry.get_adapter(platform, method)
    if adapter is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{PLATFORM_NAMES[platform]} is not configured for {method.value}",
        )

    store = PlatformConfigStore(db)
    config = await store.get_or_default(platform)
    if config.id is not None:
        config.connection_status = ConnectionStatus.TESTING
        await db.commit()

    error = None
    try:
        connected = await asyncio.wait_for(
            adapter.verify_connection(),
            timeout=get_settings().adapter_timeout_seconds,
        )
    except asyncio.TimeoutError:
        connected = False
        error = "Connection test timed out"
    except Exception as e:
        logger.error("Connection test failed", platform=platform.value, method=method.value, error=str(e))
        connected = False
        error = str(e)

    if not connected and error is None:
        error = "Authentication failed"

    config = await store.record_connection_test(platform, connected, error)
    await db.commit()

    logger.info(
        "Connection tested",
        platform=platform.value,
        method=method.value,
        connected=connected,
    )
    return ConnectionTestResponse(
        platform=platform,
        method=method,
        connected=connected,
        error=error,
        tested_at=config.last_tested_at,
    )
