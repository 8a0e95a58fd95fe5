"""Shared plumbing for adapters that talk to a platform's official API."""

from abc import abstractmethod
from typing import Any, Dict, Optional

import httpx
import structlog

from event_distributor.models.event import Event
from event_distributor.models.platform_config import IntegrationMethod, PLATFORM_NAMES
from event_distributor.services.platforms.base import (
    EventPlatformAdapter,
    PublishOutcome,
    VerificationOutcome,
    OperationOutcome,
)

logger = structlog.get_logger()


class PlatformAPIError(Exception):
    """Platform API rejected a request."""

    def __init__(self, message: str, status_code: int = None, response: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class PayloadError(ValueError):
    """Event cannot be expressed in the platform's payload format."""


class ApiPlatformAdapter(EventPlatformAdapter):
    """Base for the API-method adapters.

    Subclasses map events to payloads and implement the raw calls; this class
    turns platform rejections into unsuccessful outcomes. Transport faults
    (``httpx.TransportError``) and malformed JSON are left to propagate.
    """

    base_url: str = ""
    timeout: float = 30.0

    def __init__(
        self,
        access_token: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize API adapter.

        Args:
            access_token: OAuth/Bearer token for the platform
            base_url: Override the platform's API root
            transport: Custom httpx transport (used by tests)
        """
        self.access_token = access_token
        if base_url:
            self.base_url = base_url
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def method(self) -> IntegrationMethod:
        return IntegrationMethod.API

    @property
    def display_name(self) -> str:
        return PLATFORM_NAMES[self.platform]

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._auth_headers(),
                params=self._auth_params(),
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    def _auth_headers(self) -> Dict[str, str]:
        if self.access_token:
            return {"Authorization": f"Bearer {self.access_token}"}
        return {}

    def _auth_params(self) -> Dict[str, str]:
        return {}

    async def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        """Send a request and decode the JSON body.

        Raises:
            PlatformAPIError: Platform answered with an error status
        """
        response = await self.client.request(method, path, **kwargs)
        if response.is_error:
            raise PlatformAPIError(
                f"{self.display_name} API Error: {response.status_code} - {response.text}",
                status_code=response.status_code,
                response=response.text,
            )
        if not response.content:
            return {}
        return response.json()

    # Platform hooks

    @abstractmethod
    def build_payload(self, event: Event) -> Dict[str, Any]:
        """Map an event to the platform's create/update payload."""
        pass

    @abstractmethod
    async def _create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Create the event, returning the platform's response."""
        pass

    @abstractmethod
    async def _fetch(self, platform_event_id: str) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def _update(self, platform_event_id: str, payload: Dict[str, Any]) -> None:
        pass

    @abstractmethod
    async def _delete(self, platform_event_id: str) -> None:
        pass

    @abstractmethod
    async def _ping(self) -> None:
        """Cheapest authenticated call the platform offers."""
        pass

    def _is_live(self, data: Dict[str, Any]) -> Optional[str]:
        """Return a reason when fetched event data shows it is no longer live."""
        return None

    async def _after_create(self, platform_event_id: str, payload: Dict[str, Any]) -> None:
        pass

    # Uniform capability set

    async def create_event(self, event: Event) -> PublishOutcome:
        try:
            payload = self.build_payload(event)
        except PayloadError as e:
            return PublishOutcome(success=False, error=str(e))

        try:
            result = await self._create(payload)
            platform_event_id = str(result["id"])
            await self._after_create(platform_event_id, payload)
        except PlatformAPIError as e:
            logger.warning(
                "Platform rejected event",
                platform=self.platform.value,
                status_code=e.status_code,
            )
            return PublishOutcome(success=False, error=str(e))
        except KeyError:
            raise ValueError(f"{self.display_name} API response did not contain an event ID")

        logger.info(
            "Event created via API",
            platform=self.platform.value,
            platform_event_id=platform_event_id,
        )
        return PublishOutcome(success=True, platform_event_id=platform_event_id, raw_response=result)

    async def verify_event(
        self,
        platform_event_id: str,
        evidence_ref: Optional[str] = None,
    ) -> VerificationOutcome:
        try:
            data = await self._fetch(platform_event_id)
        except PlatformAPIError as e:
            return VerificationOutcome(
                verified=False,
                error=f"Event not found or API error: {e.status_code}",
            )

        reason = self._is_live(data)
        if reason:
            return VerificationOutcome(verified=False, data=data, error=reason)
        return VerificationOutcome(verified=True, data=data)

    async def update_event(self, platform_event_id: str, event: Event) -> OperationOutcome:
        try:
            payload = self.build_payload(event)
            await self._update(platform_event_id, payload)
        except (PayloadError, PlatformAPIError) as e:
            return OperationOutcome(success=False, error=str(e))
        return OperationOutcome(success=True)

    async def delete_event(self, platform_event_id: str) -> OperationOutcome:
        try:
            await self._delete(platform_event_id)
        except PlatformAPIError as e:
            return OperationOutcome(success=False, error=str(e))
        return OperationOutcome(success=True)

    async def verify_connection(self) -> bool:
        try:
            await self._ping()
            return True
        except (PlatformAPIError, httpx.HTTPError) as e:
            logger.warning(
                "API connection test failed",
                platform=self.platform.value,
                error=str(e),
            )
            return False

    async def close(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None
