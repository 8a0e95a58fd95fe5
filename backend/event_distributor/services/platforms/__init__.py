"""Platform adapters package."""

from event_distributor.services.platforms.base import (
    AutomationCapable,
    EventPlatformAdapter,
    PublishOutcome,
    VerificationOutcome,
    OperationOutcome,
    SessionOutcome,
)
from event_distributor.services.platforms.credentials import (
    ApiCredentials,
    AutomationCredentials,
    PlatformCredentials,
    PlatformCredentialSet,
)
from event_distributor.services.platforms.registry import PlatformRegistry

__all__ = [
    "AutomationCapable",
    "EventPlatformAdapter",
    "PublishOutcome",
    "VerificationOutcome",
    "OperationOutcome",
    "SessionOutcome",
    "ApiCredentials",
    "AutomationCredentials",
    "PlatformCredentials",
    "PlatformCredentialSet",
    "PlatformRegistry",
]
