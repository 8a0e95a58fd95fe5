"""Database models package."""

from event_distributor.models.event import Event, EventType
from event_distributor.models.platform_config import (
    PlatformConfig,
    Platform,
    IntegrationMethod,
    ConnectionStatus,
    PLATFORM_NAMES,
)
from event_distributor.models.publication_log import PublicationLog, PublicationStatus

__all__ = [
    "Event",
    "EventType",
    "PlatformConfig",
    "Platform",
    "IntegrationMethod",
    "ConnectionStatus",
    "PLATFORM_NAMES",
    "PublicationLog",
    "PublicationStatus",
]
