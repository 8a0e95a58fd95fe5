"""Publishing and verification services."""

from event_distributor.services.publishing.errors import (
    PublishingError,
    PreconditionError,
    EventNotFoundError,
    NoTargetsError,
    LogNotFoundError,
    NoLogsError,
    InvalidTransitionError,
)
from event_distributor.services.publishing.log_store import PublicationLogStore
from event_distributor.services.publishing.publisher import PublishOrchestrator, PublishReport, TargetResult
from event_distributor.services.publishing.verifier import (
    VerificationOrchestrator,
    VerificationReport,
    VerificationResult,
)

__all__ = [
    "PublishingError",
    "PreconditionError",
    "EventNotFoundError",
    "NoTargetsError",
    "LogNotFoundError",
    "NoLogsError",
    "InvalidTransitionError",
    "PublicationLogStore",
    "PublishOrchestrator",
    "PublishReport",
    "TargetResult",
    "VerificationOrchestrator",
    "VerificationReport",
    "VerificationResult",
]
