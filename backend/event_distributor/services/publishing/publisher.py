"""Fan-out of one event to several platforms."""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from event_distributor.config import get_settings
from event_distributor.models.event import Event
from event_distributor.models.platform_config import Platform, IntegrationMethod
from event_distributor.models.publication_log import PublicationLog, PublicationStatus
from event_distributor.services.platforms.base import AutomationCapable, EventPlatformAdapter, PublishOutcome
from event_distributor.services.platforms.config_store import PlatformConfigStore
from event_distributor.services.platforms.registry import PlatformRegistry
from event_distributor.services.publishing.errors import EventNotFoundError, NoTargetsError
from event_distributor.services.publishing.log_store import PublicationLogStore

logger = structlog.get_logger()

NOT_CONFIGURED = "platform not configured"


@dataclass
class TargetResult:
    """Outcome for one requested platform.

    ``status`` is what the log row holds afterwards. ``recorded`` is False
    when the row could not be written, in which case ``error`` carries the
    persistence failure.
    """
    platform: Platform
    method: IntegrationMethod
    success: bool
    status: PublicationStatus
    log_id: Optional[UUID] = None
    platform_event_id: Optional[str] = None
    screenshot_ref: Optional[str] = None
    error: Optional[str] = None
    recorded: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "platform": self.platform.value,
            "method": self.method.value,
            "success": self.success,
            "status": self.status.value,
            "log_id": str(self.log_id) if self.log_id else None,
            "platform_event_id": self.platform_event_id,
            "screenshot_ref": self.screenshot_ref,
            "error": self.error,
            "recorded": self.recorded,
        }


@dataclass
class PublishReport:
    event_id: UUID
    results: List[TargetResult] = field(default_factory=list)

    @property
    def summary(self) -> Dict[str, int]:
        return {
            "total": len(self.results),
            "successful": sum(1 for r in self.results if r.status == PublicationStatus.SUCCESS),
            "failed": sum(1 for r in self.results if r.status == PublicationStatus.FAILED),
            "pending": sum(1 for r in self.results if r.status == PublicationStatus.PENDING),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": str(self.event_id),
            "results": [r.to_dict() for r in self.results],
            "summary": self.summary,
        }


def _error_detail(message: str, kind: str) -> Dict[str, Any]:
    return {
        "message": message,
        "type": kind,
        "occurred_at": datetime.utcnow().isoformat(),
    }


class PublishOrchestrator:
    """Publishes one event to several platforms using one integration method.

    Each target writes its own log row through its own session, so targets
    run concurrently and a failure on one never affects another.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        registry: PlatformRegistry,
        timeout: Optional[float] = None,
        max_concurrency: Optional[int] = None,
    ):
        settings = get_settings()
        self.session_factory = session_factory
        self.registry = registry
        self.timeout = timeout if timeout is not None else settings.adapter_timeout_seconds
        self.max_concurrency = max_concurrency or settings.publish_max_concurrency

    async def publish(
        self,
        event_id: UUID,
        platforms: List[Platform],
        method: IntegrationMethod,
    ) -> PublishReport:
        """Publish an event to every listed platform.

        Args:
            event_id: Event to publish
            platforms: Target platforms; duplicates are published twice
            method: Integration method used for every target

        Returns:
            PublishReport with one result per requested platform, in order

        Raises:
            EventNotFoundError: No event with this ID
            NoTargetsError: Platform list is empty
        """
        async with self.session_factory() as session:
            event = await session.get(Event, event_id)
        if event is None:
            raise EventNotFoundError(event_id)
        if not platforms:
            raise NoTargetsError()

        logger.info(
            "Publishing event",
            event_id=str(event_id),
            platforms=[p.value for p in platforms],
            method=method.value,
        )

        semaphore = asyncio.Semaphore(self.max_concurrency)
        # A browser adapter drives a single page, so its calls are serialized
        adapter_locks: Dict[Platform, asyncio.Lock] = {p: asyncio.Lock() for p in platforms}

        async def run(platform: Platform) -> TargetResult:
            async with semaphore:
                if method == IntegrationMethod.AUTOMATION:
                    async with adapter_locks[platform]:
                        return await self._publish_target(event, platform, method)
                return await self._publish_target(event, platform, method)

        results = await asyncio.gather(*(run(platform) for platform in platforms))
        report = PublishReport(event_id=event_id, results=list(results))
        logger.info("Publishing finished", event_id=str(event_id), **report.summary)
        return report

    async def _call_adapter(self, adapter: EventPlatformAdapter, event: Event) -> PublishOutcome:
        try:
            return await asyncio.wait_for(adapter.create_event(event), timeout=self.timeout)
        except asyncio.TimeoutError:
            return PublishOutcome(
                success=False,
                error=f"{adapter.platform.value} did not respond within {self.timeout:g}s",
            )
        except Exception as e:
            logger.error(
                "Adapter raised during publish",
                platform=adapter.platform.value,
                method=adapter.method.value,
                error=str(e),
            )
            return PublishOutcome(success=False, error=str(e) or type(e).__name__)

    async def _publish_target(
        self,
        event: Event,
        platform: Platform,
        method: IntegrationMethod,
    ) -> TargetResult:
        adapter = self.registry.get_adapter(platform, method)
        if adapter is None:
            logger.warning("Platform not configured", platform=platform.value, method=method.value)
            return TargetResult(
                platform=platform,
                method=method,
                success=False,
                status=PublicationStatus.FAILED,
                error=NOT_CONFIGURED,
                recorded=False,
            )

        async with self.session_factory() as session:
            store = PublicationLogStore(session)

            try:
                log = await store.append(
                    PublicationLog(
                        event_id=event.id,
                        platform=platform,
                        method=method,
                        status=PublicationStatus.PENDING,
                        published_at=datetime.utcnow(),
                    )
                )
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error("Could not record publish attempt", platform=platform.value, error=str(e))
                return TargetResult(
                    platform=platform,
                    method=method,
                    success=False,
                    status=PublicationStatus.FAILED,
                    error=f"Could not record publish attempt: {e}",
                    recorded=False,
                )

            log_id = log.id
            outcome = await self._call_adapter(adapter, event)

            screenshot_ref = outcome.evidence_ref if method == IntegrationMethod.AUTOMATION else None
            if outcome.success:
                status = PublicationStatus.SUCCESS
                fields = {
                    "platform_event_id": outcome.platform_event_id,
                    "screenshot_ref": screenshot_ref,
                }
            else:
                status = PublicationStatus.FAILED
                fields = {
                    "create_error": _error_detail(outcome.error or "Unknown error", "create"),
                    "screenshot_ref": screenshot_ref,
                }

            try:
                await store.update_status(log_id, status, **fields)
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error(
                    "Could not record publish result",
                    platform=platform.value,
                    log_id=str(log_id),
                    error=str(e),
                )
                return TargetResult(
                    platform=platform,
                    method=method,
                    success=outcome.success,
                    status=PublicationStatus.PENDING,
                    log_id=log_id,
                    platform_event_id=outcome.platform_event_id,
                    screenshot_ref=screenshot_ref,
                    error=f"Could not record publish result: {e}",
                    recorded=False,
                )

            if outcome.success:
                logger.info(
                    "Publication succeeded",
                    platform=platform.value,
                    method=method.value,
                    log_id=str(log_id),
                    platform_event_id=outcome.platform_event_id,
                )
                if isinstance(adapter, AutomationCapable):
                    await self._save_session(session, adapter, platform)
            else:
                logger.warning(
                    "Publication failed",
                    platform=platform.value,
                    method=method.value,
                    log_id=str(log_id),
                    error=outcome.error,
                )

            return TargetResult(
                platform=platform,
                method=method,
                success=outcome.success,
                status=status,
                log_id=log_id,
                platform_event_id=outcome.platform_event_id,
                screenshot_ref=screenshot_ref,
                error=outcome.error,
            )

    async def _save_session(self, session, adapter: AutomationCapable, platform: Platform):
        """Store the browser session so the next run can skip logging in."""
        saved = await adapter.save_session()
        if not saved.success:
            logger.warning("Could not save browser session", platform=platform.value, error=saved.error)
            return
        try:
            await PlatformConfigStore(session).save_session_blob(platform, saved.session_blob)
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.warning("Could not store browser session", platform=platform.value, error=str(e))
