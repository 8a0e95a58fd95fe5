"""Event database model."""

from datetime import date as date_type, datetime, time as time_type
from enum import Enum
from typing import List, Optional
from uuid import UUID, uuid4

from sqlalchemy import String, Text, Date, Time, DateTime, JSON, Uuid, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from event_distributor.database import Base


class EventType(str, Enum):
    """How attendees take part in an event."""
    VIRTUAL = "virtual"
    LIVE = "live"
    HYBRID = "hybrid"


def dedupe_tags(tags: Optional[List[str]]) -> List[str]:
    """Drop empty and repeated tags, keeping first occurrence order."""
    seen = set()
    result = []
    for tag in tags or []:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.add(tag)
            result.append(tag)
    return result


class Event(Base):
    """An event that can be published to external listing platforms."""

    __tablename__ = "events"

    # Primary key
    id: Mapped[UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid4,
    )

    # Core details
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    date: Mapped[Optional[date_type]] = mapped_column(Date, nullable=True)
    time: Mapped[Optional[time_type]] = mapped_column(Time, nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    organizer: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)

    # Free text such as "Kostenlos" or "10 EUR", never parsed as an amount
    price: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    tags: Mapped[List[str]] = mapped_column(JSON, default=list)
    image_urls: Mapped[List[str]] = mapped_column(JSON, default=list)

    event_type: Mapped[EventType] = mapped_column(
        SQLEnum(EventType),
        default=EventType.LIVE,
    )

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

    publication_logs = relationship(
        "PublicationLog",
        back_populates="event",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @validates("tags")
    def _validate_tags(self, key, value):
        return dedupe_tags(value)

    @property
    def is_virtual(self) -> bool:
        return self.event_type == EventType.VIRTUAL

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, title={self.title!r})>"
