"""Append-only history of publish attempts."""

from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from event_distributor.models.platform_config import Platform, IntegrationMethod
from event_distributor.models.publication_log import PublicationLog, PublicationStatus
from event_distributor.services.publishing.errors import InvalidTransitionError, LogNotFoundError

logger = structlog.get_logger()

UPDATABLE_FIELDS = {
    "platform_event_id",
    "create_error",
    "verify_error",
    "screenshot_ref",
    "verified_at",
}


class PublicationLogStore:
    """Reads and writes publication logs through one session.

    Rows are never deleted; republishing appends a new row. Status changes
    go through ``update_status`` so the lifecycle is enforced in one place.
    The caller owns the transaction.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def append(self, log: PublicationLog) -> PublicationLog:
        """Insert a new attempt; it must start out pending."""
        if log.status is None:
            log.status = PublicationStatus.PENDING
        if log.status != PublicationStatus.PENDING:
            raise InvalidTransitionError(PublicationStatus.IDLE, log.status)
        self.session.add(log)
        await self.session.flush()
        return log

    async def get(self, log_id: UUID) -> Optional[PublicationLog]:
        return await self.session.get(PublicationLog, log_id)

    async def update_status(
        self,
        log_id: UUID,
        status: PublicationStatus,
        **fields: Any,
    ) -> PublicationLog:
        """Move a log to a new status and set accompanying fields.

        Args:
            log_id: Log to update
            status: Requested status
            **fields: platform_event_id, create_error, verify_error,
                screenshot_ref or verified_at

        Raises:
            LogNotFoundError: No log with this ID
            InvalidTransitionError: The lifecycle forbids the change
        """
        log = await self.get(log_id)
        if log is None:
            raise LogNotFoundError(log_id)
        if not log.can_transition_to(status):
            raise InvalidTransitionError(log.status, status)

        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        log.status = status
        for key, value in fields.items():
            setattr(log, key, value)
        await self.session.flush()
        return log

    async def list_by_event(self, event_id: UUID) -> List[PublicationLog]:
        """Get every attempt for an event, newest first."""
        result = await self.session.execute(
            select(PublicationLog)
            .where(PublicationLog.event_id == event_id)
            .order_by(PublicationLog.published_at.desc())
        )
        return list(result.scalars().all())

    async def latest(
        self,
        event_id: UUID,
        platform: Platform,
        method: IntegrationMethod,
    ) -> Optional[PublicationLog]:
        result = await self.session.execute(
            select(PublicationLog)
            .where(
                PublicationLog.event_id == event_id,
                PublicationLog.platform == platform,
                PublicationLog.method == method,
            )
            .order_by(PublicationLog.published_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def status_summary(self, event_id: UUID) -> Dict[str, Any]:
        """Summarize an event's publication state.

        Returns:
            ``counts`` per stored status over all attempts, and per platform
            the status of the latest attempt for each method (``idle`` when
            never attempted)
        """
        logs = await self.list_by_event(event_id)

        counts = {
            status.value: 0
            for status in PublicationStatus
            if status != PublicationStatus.IDLE
        }
        platforms = {
            platform.value: {method.value: {"status": PublicationStatus.IDLE.value} for method in IntegrationMethod}
            for platform in Platform
        }
        seen = set()
        for log in logs:
            counts[log.status.value] += 1
            key = (log.platform, log.method)
            if key not in seen:
                # Newest first, so the first row per pair is the latest
                platforms[log.platform.value][log.method.value] = {
                    "status": log.status.value,
                    "log_id": str(log.id),
                    "platform_event_id": log.platform_event_id,
                    "published_at": log.published_at.isoformat() if log.published_at else None,
                    "has_error": log.error_details is not None,
                }
                seen.add(key)

        return {
            "event_id": str(event_id),
            "total": len(logs),
            "counts": counts,
            "platforms": platforms,
        }
