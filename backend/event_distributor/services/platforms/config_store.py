"""Persistence for per-platform credentials and settings."""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from event_distributor.models.platform_config import ConnectionStatus, Platform, PlatformConfig
from event_distributor.services.platforms.credentials import PlatformCredentials

logger = structlog.get_logger()

UPDATABLE_FIELDS = {
    "api_enabled",
    "api_key",
    "client_id",
    "client_secret",
    "access_token",
    "refresh_token",
    "token_expires_at",
    "api_settings",
    "automation_enabled",
    "username",
    "password",
    "session_blob",
    "automation_settings",
}


class PlatformConfigStore:
    """Reads and upserts ``PlatformConfig`` rows, one per platform.

    Writes are last-write-wins; the caller owns the transaction.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, platform: Platform) -> Optional[PlatformConfig]:
        result = await self.session.execute(
            select(PlatformConfig).where(PlatformConfig.platform == platform)
        )
        return result.scalar_one_or_none()

    async def get_or_default(self, platform: Platform) -> PlatformConfig:
        """Get the stored config, or an unsaved one with defaults."""
        config = await self.get(platform)
        if config is None:
            config = PlatformConfig(
                platform=platform,
                api_enabled=False,
                automation_enabled=False,
                api_settings={},
                automation_settings={},
                connection_status=ConnectionStatus.DISCONNECTED,
            )
        return config

    async def list_all(self) -> List[PlatformConfig]:
        """Get a config for every platform, defaults filled in, in enum order."""
        return [await self.get_or_default(platform) for platform in Platform]

    async def upsert(self, platform: Platform, updates: Dict[str, Any]) -> PlatformConfig:
        """Create or update a platform's config.

        Args:
            platform: Platform to configure
            updates: Field values to write; unknown keys are ignored

        Returns:
            The persisted config
        """
        config = await self.get(platform)
        if config is None:
            config = await self.get_or_default(platform)
            self.session.add(config)

        for key, value in updates.items():
            if key in UPDATABLE_FIELDS:
                setattr(config, key, value)

        await self.session.flush()
        logger.info("Platform configuration saved", platform=platform.value, fields=sorted(updates))
        return config

    async def load_credentials(self) -> PlatformCredentials:
        """Build the in-memory credential set from enabled configs."""
        result = await self.session.execute(select(PlatformConfig))
        return PlatformCredentials.from_configs(result.scalars().all())

    async def save_session_blob(self, platform: Platform, session_blob: Dict[str, Any]):
        """Store a browser session so the next automation run can reuse it."""
        config = await self.get(platform)
        if config is None:
            logger.warning("No configuration to store session in", platform=platform.value)
            return
        config.session_blob = session_blob
        await self.session.flush()

    async def store_oauth_tokens(
        self,
        platform: Platform,
        access_token: str,
        refresh_token: Optional[str] = None,
        expires_in: Optional[int] = None,
    ) -> PlatformConfig:
        """Save tokens from an OAuth exchange and enable the API method."""
        updates: Dict[str, Any] = {
            "access_token": access_token,
            "api_enabled": True,
        }
        if refresh_token:
            updates["refresh_token"] = refresh_token
        if expires_in:
            updates["token_expires_at"] = datetime.utcnow() + timedelta(seconds=expires_in)
        return await self.upsert(platform, updates)

    async def record_connection_test(
        self,
        platform: Platform,
        connected: bool,
        error: Optional[str] = None,
    ) -> PlatformConfig:
        config = await self.get(platform)
        if config is None:
            config = await self.get_or_default(platform)
            self.session.add(config)
        config.connection_status = (
            ConnectionStatus.CONNECTED if connected else ConnectionStatus.DISCONNECTED
        )
        config.connection_error = error
        config.last_tested_at = datetime.utcnow()
        await self.session.flush()
        return config
