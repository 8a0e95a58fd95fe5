"""Publication log database model."""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import String, DateTime, ForeignKey, JSON, Uuid, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from event_distributor.database import Base
from event_distributor.models.platform_config import Platform, IntegrationMethod


class PublicationStatus(str, Enum):
    """Lifecycle of one publish attempt.

    ``idle`` is only reported by status reads for platforms that were never
    attempted; it is never stored.
    """
    IDLE = "idle"
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"
    VERIFIED = "verified"


# Allowed status changes once a log row exists
STATUS_TRANSITIONS = {
    PublicationStatus.PENDING: {PublicationStatus.SUCCESS, PublicationStatus.FAILED},
    PublicationStatus.SUCCESS: {PublicationStatus.VERIFIED, PublicationStatus.FAILED},
    PublicationStatus.VERIFIED: {PublicationStatus.VERIFIED, PublicationStatus.FAILED},
    PublicationStatus.FAILED: set(),
}

VERIFIABLE_STATUSES = {PublicationStatus.SUCCESS, PublicationStatus.VERIFIED}


class PublicationLog(Base):
    """Audit record for one (event, platform, method) publish attempt."""

    __tablename__ = "publication_logs"

    # Primary key
    id: Mapped[UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid4,
    )

    # Foreign key to event
    event_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    platform: Mapped[Platform] = mapped_column(
        SQLEnum(Platform),
        nullable=False,
    )
    method: Mapped[IntegrationMethod] = mapped_column(
        SQLEnum(IntegrationMethod),
        nullable=False,
    )
    status: Mapped[PublicationStatus] = mapped_column(
        SQLEnum(PublicationStatus),
        default=PublicationStatus.PENDING,
    )

    # Opaque identifier returned by the platform on success
    platform_event_id: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    # Create and verify failures are kept apart so a later verification
    # never hides why the original publish failed
    create_error: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    verify_error: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    # Automation only: path of the screenshot taken after submitting
    screenshot_ref: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # Timestamps
    published_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
    )
    verified_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Relationship
    event = relationship("Event", back_populates="publication_logs")

    @property
    def error_details(self) -> Optional[dict]:
        """Both error slots combined, for callers expecting a single field."""
        details = {}
        if self.create_error:
            details["create"] = self.create_error
        if self.verify_error:
            details["verify"] = self.verify_error
        return details or None

    def can_transition_to(self, status: PublicationStatus) -> bool:
        return status in STATUS_TRANSITIONS.get(self.status, set())

    def __repr__(self) -> str:
        return (
            f"<PublicationLog(id={self.id}, platform={self.platform.value}, "
            f"method={self.method.value}, status={self.status.value})>"
        )
