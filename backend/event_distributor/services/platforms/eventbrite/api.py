"""Eventbrite API adapter."""

from datetime import timezone
from typing import Any, Dict, Optional

import httpx
import structlog

from event_distributor.config import get_settings
from event_distributor.models.event import Event
from event_distributor.models.platform_config import Platform
from event_distributor.services.platforms.api_base import ApiPlatformAdapter, PayloadError
from event_distributor.services.platforms.credentials import ApiCredentials
from event_distributor.services.platforms.formatting import (
    event_start,
    event_end,
    html_description,
    is_free,
)

logger = structlog.get_logger()

BASE_URL = "https://www.eventbriteapi.com/v3"

INACTIVE_STATUSES = {"canceled", "deleted"}


def _utc(value) -> str:
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class EventbriteAPIAdapter(ApiPlatformAdapter):
    """Publishes events for an Eventbrite organization."""

    base_url = BASE_URL

    def __init__(
        self,
        access_token: str,
        organization_id: str,
        currency: str = "EUR",
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(access_token=access_token, base_url=base_url, transport=transport)
        self.organization_id = organization_id
        self.currency = currency

    @classmethod
    def from_credentials(cls, credentials: ApiCredentials) -> "EventbriteAPIAdapter":
        return cls(
            access_token=credentials.access_token or credentials.api_key,
            organization_id=credentials.settings.get("organization_id", ""),
            currency=credentials.settings.get("currency", "EUR"),
            base_url=credentials.settings.get("base_url"),
        )

    @property
    def platform(self) -> Platform:
        return Platform.EVENTBRITE

    def build_payload(self, event: Event) -> Dict[str, Any]:
        start = event_start(event)
        if start is None:
            raise PayloadError("Eventbrite requires an event date")
        end = event_end(event)
        tz_name = get_settings().event_timezone

        return {
            "name": {"html": event.title},
            "description": {"html": html_description(event)},
            "start": {"timezone": tz_name, "utc": _utc(start)},
            "end": {"timezone": tz_name, "utc": _utc(end)},
            "currency": self.currency,
            "online_event": event.is_virtual,
            "listed": True,
            "shareable": True,
            "invite_only": False,
            "show_remaining": True,
            "capacity": 1000 if event.is_virtual else 200,
            "is_free": is_free(event.price),
        }

    async def _create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request(
            "POST",
            f"/organizations/{self.organization_id}/events/",
            json={"event": payload},
        )

    async def _after_create(self, platform_event_id: str, payload: Dict[str, Any]) -> None:
        # Paid events go live right away; free ones stay drafts until tickets exist
        if not payload["is_free"]:
            await self._request("POST", f"/events/{platform_event_id}/publish/")
            logger.info("Eventbrite event published", platform_event_id=platform_event_id)

    async def _fetch(self, platform_event_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/events/{platform_event_id}/")

    async def _update(self, platform_event_id: str, payload: Dict[str, Any]) -> None:
        await self._request("POST", f"/events/{platform_event_id}/", json={"event": payload})

    async def _delete(self, platform_event_id: str) -> None:
        await self._request("DELETE", f"/events/{platform_event_id}/")

    async def _ping(self) -> None:
        await self._request("GET", "/users/me/")

    def _is_live(self, data: Dict[str, Any]) -> Optional[str]:
        status = str(data.get("status", "")).lower()
        if status in INACTIVE_STATUSES:
            return f"Event is {status} on Eventbrite"
        return None
