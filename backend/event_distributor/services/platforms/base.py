"""Abstract base classes for event platform adapters."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Dict, Any

from event_distributor.models.event import Event
from event_distributor.models.platform_config import Platform, IntegrationMethod


@dataclass
class PublishOutcome:
    """Result from creating an event on a platform."""
    success: bool
    platform_event_id: Optional[str] = None
    error: Optional[str] = None
    # Automation only: reference to the screenshot taken after submitting
    evidence_ref: Optional[str] = None
    raw_response: Optional[Dict[str, Any]] = None


@dataclass
class VerificationOutcome:
    """Result from re-checking a published event."""
    verified: bool
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


@dataclass
class OperationOutcome:
    """Result from updating or deleting a published event."""
    success: bool
    error: Optional[str] = None
    evidence_ref: Optional[str] = None


@dataclass
class SessionOutcome:
    """Result from saving or restoring a browser session."""
    success: bool
    session_blob: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


class EventPlatformAdapter(ABC):
    """Uniform capability set shared by every platform/method variant.

    Ordinary platform-side rejections are returned as unsuccessful outcomes.
    Exceptions are reserved for transport faults (network unreachable,
    malformed responses) and are mapped to failures by the orchestrators.
    """

    @property
    @abstractmethod
    def platform(self) -> Platform:
        """Get the platform this adapter publishes to."""
        pass

    @property
    @abstractmethod
    def method(self) -> IntegrationMethod:
        """Get the integration method."""
        pass

    @abstractmethod
    async def create_event(self, event: Event) -> PublishOutcome:
        """Create the event on the platform.

        Args:
            event: Event to publish

        Returns:
            PublishOutcome with the platform's event ID on success
        """
        pass

    @abstractmethod
    async def verify_event(
        self,
        platform_event_id: str,
        evidence_ref: Optional[str] = None,
    ) -> VerificationOutcome:
        """Confirm a previously created event is still published.

        Args:
            platform_event_id: ID returned by create_event
            evidence_ref: Screenshot reference recorded at publish time
                (automation adapters inspect this instead of the live site)

        Returns:
            VerificationOutcome
        """
        pass

    @abstractmethod
    async def update_event(self, platform_event_id: str, event: Event) -> OperationOutcome:
        """Push changed event details to the platform."""
        pass

    @abstractmethod
    async def delete_event(self, platform_event_id: str) -> OperationOutcome:
        """Remove the event from the platform."""
        pass

    @abstractmethod
    async def verify_connection(self) -> bool:
        """Verify the configured credentials work.

        Returns:
            True if connected and authenticated
        """
        pass

    async def close(self):
        """Clean up resources (HTTP clients, browser sessions, etc.)."""
        pass

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(platform={self.platform.value}, method={self.method.value})>"


class AutomationCapable(ABC):
    """Session persistence for browser automation adapters.

    Saving the session after a run lets the next run skip the login flow.
    """

    @abstractmethod
    async def save_session(self) -> SessionOutcome:
        """Export the current browser session (cookies and storage)."""
        pass

    @abstractmethod
    async def restore_session(self, session_blob: Dict[str, Any]) -> SessionOutcome:
        """Load a previously saved browser session."""
        pass
