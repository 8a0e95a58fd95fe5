"""Platform configuration database model."""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import String, Text, Boolean, DateTime, JSON, Uuid, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from event_distributor.database import Base


class Platform(str, Enum):
    """Supported event listing platforms."""
    MEETUP = "meetup"
    EVENTBRITE = "eventbrite"
    FACEBOOK = "facebook"
    SPONTACTS = "spontacts"


class IntegrationMethod(str, Enum):
    """How an event reaches a platform."""
    API = "api"
    AUTOMATION = "automation"


class ConnectionStatus(str, Enum):
    """Result of the last connection test."""
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    TESTING = "testing"


PLATFORM_NAMES = {
    Platform.MEETUP: "Meetup",
    Platform.EVENTBRITE: "Eventbrite",
    Platform.FACEBOOK: "Facebook Events",
    Platform.SPONTACTS: "Spontacts",
}


class PlatformConfig(Base):
    """Credentials and settings for one platform, covering both methods.

    One row per platform; writes are upserts keyed by ``platform``.
    """

    __tablename__ = "platform_configs"

    # Primary key
    id: Mapped[UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid4,
    )

    platform: Mapped[Platform] = mapped_column(
        SQLEnum(Platform),
        unique=True,
        nullable=False,
        index=True,
    )

    # API section (encrypted in production)
    api_enabled: Mapped[bool] = mapped_column(Boolean, default=False)
    api_key: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    client_id: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    client_secret: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    access_token: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    refresh_token: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    token_expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    # group_id, organization_id, page_id, base_url ...
    api_settings: Mapped[dict] = mapped_column(JSON, default=dict)

    # Browser automation section
    automation_enabled: Mapped[bool] = mapped_column(Boolean, default=False)
    username: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    password: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    session_blob: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    # group_url, profile_url, default_city, business_manager_url ...
    automation_settings: Mapped[dict] = mapped_column(JSON, default=dict)

    # Status
    connection_status: Mapped[ConnectionStatus] = mapped_column(
        SQLEnum(ConnectionStatus),
        default=ConnectionStatus.DISCONNECTED,
    )
    last_tested_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    connection_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    def is_token_valid(self) -> bool:
        """Check if the OAuth access token is still valid."""
        if not self.access_token:
            return False
        if not self.token_expires_at:
            return True
        return datetime.utcnow() < self.token_expires_at

    def __repr__(self) -> str:
        return f"<PlatformConfig(platform={self.platform.value}, api={self.api_enabled}, automation={self.automation_enabled})>"
