"""In-process stand-in for platform adapters.

Used when ``PLATFORM_SIMULATION`` is enabled and by tests. Outcome and
latency are injectable; automation variants write a real PNG so the
evidence-based verification path is exercised end to end.
"""

import asyncio
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Set

import structlog

from event_distributor.models.event import Event
from event_distributor.models.platform_config import Platform, IntegrationMethod
from event_distributor.services.platforms.base import (
    AutomationCapable,
    EventPlatformAdapter,
    PublishOutcome,
    VerificationOutcome,
    OperationOutcome,
    SessionOutcome,
)
from event_distributor.services.platforms.browser_base import PNG_SIGNATURE, inspect_screenshot

logger = structlog.get_logger()


class SimulatedAdapter(EventPlatformAdapter):
    """Adapter that records calls instead of talking to a platform."""

    def __init__(
        self,
        platform: Platform,
        method: IntegrationMethod = IntegrationMethod.API,
        latency: float = 0.0,
        succeed: bool = True,
        error: str = "Simulated platform rejection",
        raises: Optional[Exception] = None,
    ):
        """Initialize the simulated adapter.

        Args:
            platform: Platform to impersonate
            method: Integration method to impersonate
            latency: Seconds to sleep before every call
            succeed: Whether create/verify calls succeed
            error: Error message returned when not succeeding
            raises: Exception raised from create_event instead of returning
        """
        self._platform = platform
        self._method = method
        self.latency = latency
        self.succeed = succeed
        self.error = error
        self.raises = raises
        self.created: Dict[str, Event] = {}
        self.deleted: Set[str] = set()
        self.closed = False

    @property
    def platform(self) -> Platform:
        return self._platform

    @property
    def method(self) -> IntegrationMethod:
        return self._method

    async def _simulate_latency(self):
        if self.latency:
            await asyncio.sleep(self.latency)

    def _new_id(self) -> str:
        return f"sim-{self._platform.value}-{uuid.uuid4().hex[:12]}"

    async def create_event(self, event: Event) -> PublishOutcome:
        await self._simulate_latency()
        if self.raises is not None:
            raise self.raises
        if not self.succeed:
            return PublishOutcome(success=False, error=self.error)

        platform_event_id = self._new_id()
        self.created[platform_event_id] = event
        logger.info(
            "Simulated event created",
            platform=self._platform.value,
            method=self._method.value,
            platform_event_id=platform_event_id,
        )
        return PublishOutcome(success=True, platform_event_id=platform_event_id)

    async def verify_event(
        self,
        platform_event_id: str,
        evidence_ref: Optional[str] = None,
    ) -> VerificationOutcome:
        await self._simulate_latency()
        if not self.succeed or platform_event_id in self.deleted:
            return VerificationOutcome(
                verified=False,
                error="Event not found or API error: 404",
            )
        return VerificationOutcome(verified=True, data={"id": platform_event_id})

    async def update_event(self, platform_event_id: str, event: Event) -> OperationOutcome:
        await self._simulate_latency()
        if not self.succeed:
            return OperationOutcome(success=False, error=self.error)
        self.created[platform_event_id] = event
        return OperationOutcome(success=True)

    async def delete_event(self, platform_event_id: str) -> OperationOutcome:
        await self._simulate_latency()
        if not self.succeed:
            return OperationOutcome(success=False, error=self.error)
        self.deleted.add(platform_event_id)
        return OperationOutcome(success=True)

    async def verify_connection(self) -> bool:
        await self._simulate_latency()
        return self.succeed

    async def close(self):
        self.closed = True


class SimulatedAutomationAdapter(SimulatedAdapter, AutomationCapable):
    """Simulated browser automation with screenshot evidence and sessions."""

    def __init__(
        self,
        platform: Platform,
        screenshot_dir: str,
        session_blob: Optional[Dict[str, Any]] = None,
        **kwargs,
    ):
        super().__init__(platform, IntegrationMethod.AUTOMATION, **kwargs)
        self.screenshot_dir = Path(screenshot_dir)
        self.session_blob = session_blob

    def _write_evidence(self, label: str) -> str:
        self.screenshot_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.utcnow().strftime("%Y%m%d%H%M%S%f")
        path = self.screenshot_dir / f"{self._platform.value}_{label}_{stamp}.png"
        path.write_bytes(PNG_SIGNATURE + b"simulated")
        return str(path)

    async def create_event(self, event: Event) -> PublishOutcome:
        outcome = await super().create_event(event)
        if outcome.success:
            outcome.evidence_ref = self._write_evidence(str(event.id))
        return outcome

    async def verify_event(
        self,
        platform_event_id: str,
        evidence_ref: Optional[str] = None,
    ) -> VerificationOutcome:
        await self._simulate_latency()
        return inspect_screenshot(evidence_ref)

    async def save_session(self) -> SessionOutcome:
        blob = {"cookies": [{"name": "session", "value": uuid.uuid4().hex}], "origins": []}
        self.session_blob = blob
        return SessionOutcome(success=True, session_blob=blob)

    async def restore_session(self, session_blob: Dict[str, Any]) -> SessionOutcome:
        if not isinstance(session_blob, dict) or "cookies" not in session_blob:
            return SessionOutcome(success=False, error="Invalid session data")
        self.session_blob = session_blob
        return SessionOutcome(success=True)
