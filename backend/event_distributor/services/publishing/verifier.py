"""Re-checking published events against their platforms."""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from event_distributor.config import get_settings
from event_distributor.models.platform_config import Platform, IntegrationMethod
from event_distributor.models.publication_log import PublicationStatus, VERIFIABLE_STATUSES
from event_distributor.services.platforms.base import EventPlatformAdapter, VerificationOutcome
from event_distributor.services.platforms.registry import PlatformRegistry
from event_distributor.services.publishing.errors import LogNotFoundError, NoLogsError
from event_distributor.services.publishing.log_store import PublicationLogStore
from event_distributor.services.publishing.publisher import NOT_CONFIGURED

logger = structlog.get_logger()


@dataclass
class VerificationResult:
    """Outcome for one log.

    ``checked`` is True when the platform check ran and its result was
    written to the log; otherwise the log is unchanged and ``error`` says why.
    """
    log_id: UUID
    checked: bool
    verified: bool = False
    platform: Optional[Platform] = None
    method: Optional[IntegrationMethod] = None
    status: Optional[PublicationStatus] = None
    error: Optional[str] = None
    data: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "log_id": str(self.log_id),
            "platform": self.platform.value if self.platform else None,
            "method": self.method.value if self.method else None,
            "success": self.checked,
            "verified": self.verified,
            "status": self.status.value if self.status else None,
            "error": self.error,
            "data": self.data,
        }


@dataclass
class VerificationReport:
    results: List[VerificationResult] = field(default_factory=list)
    event_id: Optional[UUID] = None

    @property
    def summary(self) -> Dict[str, int]:
        checked = sum(1 for r in self.results if r.checked)
        return {
            "total": len(self.results),
            "successful": checked,
            "failed": len(self.results) - checked,
            "verified": sum(1 for r in self.results if r.checked and r.verified),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": str(self.event_id) if self.event_id else None,
            "results": [r.to_dict() for r in self.results],
            "summary": self.summary,
        }


class VerificationOrchestrator:
    """Confirms that successful publishes are still live.

    Only logs in ``success`` or ``verified`` are checked. A confirmed check
    moves the log to ``verified``; anything else moves it to ``failed`` with
    the reason in ``verify_error``. The original create error is kept.
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

    async def verify_logs(self, log_ids: List[UUID]) -> VerificationReport:
        """Verify the given logs independently of each other."""
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def run(log_id: UUID) -> VerificationResult:
            async with semaphore:
                return await self._verify_log(log_id)

        results = await asyncio.gather(*(run(log_id) for log_id in log_ids))
        report = VerificationReport(results=list(results))
        logger.info("Verification finished", **report.summary)
        return report

    async def verify_event(self, event_id: UUID) -> VerificationReport:
        """Verify every log recorded for an event.

        Raises:
            NoLogsError: The event has no publication logs
        """
        async with self.session_factory() as session:
            logs = await PublicationLogStore(session).list_by_event(event_id)
        if not logs:
            raise NoLogsError(event_id)

        report = await self.verify_logs([log.id for log in logs])
        report.event_id = event_id
        return report

    async def _call_adapter(
        self,
        adapter: EventPlatformAdapter,
        platform_event_id: str,
        evidence_ref: Optional[str],
    ) -> VerificationOutcome:
        try:
            return await asyncio.wait_for(
                adapter.verify_event(platform_event_id, evidence_ref=evidence_ref),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            return VerificationOutcome(
                verified=False,
                error=f"{adapter.platform.value} did not respond within {self.timeout:g}s",
            )
        except Exception as e:
            logger.error(
                "Adapter raised during verification",
                platform=adapter.platform.value,
                method=adapter.method.value,
                error=str(e),
            )
            return VerificationOutcome(verified=False, error=str(e) or type(e).__name__)

    async def _verify_log(self, log_id: UUID) -> VerificationResult:
        async with self.session_factory() as session:
            store = PublicationLogStore(session)
            log = await store.get(log_id)
            if log is None:
                return VerificationResult(log_id=log_id, checked=False, error=str(LogNotFoundError(log_id)))

            result = VerificationResult(
                log_id=log_id,
                checked=False,
                platform=log.platform,
                method=log.method,
                status=log.status,
            )

            if not log.platform_event_id:
                result.error = "No platform event ID found"
                return result
            if log.status not in VERIFIABLE_STATUSES:
                result.error = f"Cannot verify a publication in status {log.status.value}"
                return result

            adapter = self.registry.get_adapter(log.platform, log.method)
            if adapter is None:
                result.error = NOT_CONFIGURED
                return result

            outcome = await self._call_adapter(adapter, log.platform_event_id, log.screenshot_ref)
            now = datetime.utcnow()
            try:
                if outcome.verified:
                    await store.update_status(
                        log_id,
                        PublicationStatus.VERIFIED,
                        verify_error=None,
                        verified_at=now,
                    )
                else:
                    await store.update_status(
                        log_id,
                        PublicationStatus.FAILED,
                        verify_error={
                            "message": outcome.error or "Verification failed",
                            "type": "verify",
                            "occurred_at": now.isoformat(),
                        },
                        verified_at=now,
                    )
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error("Could not record verification", log_id=str(log_id), error=str(e))
                result.error = f"Could not record verification: {e}"
                return result

            result.checked = True
            result.verified = outcome.verified
            result.status = PublicationStatus.VERIFIED if outcome.verified else PublicationStatus.FAILED
            result.error = outcome.error
            result.data = outcome.data
            logger.info(
                "Publication verified" if outcome.verified else "Publication verification failed",
                platform=log.platform.value,
                method=log.method.value,
                log_id=str(log_id),
                error=outcome.error,
            )
            return result
