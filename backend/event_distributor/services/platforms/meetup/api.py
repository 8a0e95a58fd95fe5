"""Meetup API adapter."""

from typing import Any, Dict, Optional

import httpx

from event_distributor.models.event import Event
from event_distributor.models.platform_config import Platform
from event_distributor.services.platforms.api_base import ApiPlatformAdapter, PayloadError, PlatformAPIError
from event_distributor.services.platforms.credentials import ApiCredentials
from event_distributor.services.platforms.formatting import (
    DEFAULT_DURATION,
    event_start,
    text_description,
)

BASE_URL = "https://api.meetup.com"


class MeetupAPIAdapter(ApiPlatformAdapter):
    """Publishes events to a Meetup group through the REST API."""

    base_url = BASE_URL

    def __init__(
        self,
        access_token: str,
        group_id: str,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(access_token=access_token, base_url=base_url, transport=transport)
        self.group_id = group_id

    @classmethod
    def from_credentials(cls, credentials: ApiCredentials) -> "MeetupAPIAdapter":
        return cls(
            access_token=credentials.access_token or credentials.api_key,
            group_id=credentials.settings.get("group_id", ""),
            base_url=credentials.settings.get("base_url"),
        )

    @property
    def platform(self) -> Platform:
        return Platform.MEETUP

    def build_payload(self, event: Event) -> Dict[str, Any]:
        start = event_start(event)
        if start is None:
            raise PayloadError("Meetup requires an event date")

        payload = {
            "name": event.title,
            "description": text_description(event),
            # Epoch milliseconds
            "time": int(start.timestamp() * 1000),
            "duration": int(DEFAULT_DURATION.total_seconds() * 1000),
            "guest_limit": 1000 if event.is_virtual else 100,
        }
        if event.location:
            payload["how_to_find_us"] = event.location
        return payload

    async def _create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", f"/{self.group_id}/events", json=payload)

    async def _fetch(self, platform_event_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/{self.group_id}/events/{platform_event_id}")

    async def _update(self, platform_event_id: str, payload: Dict[str, Any]) -> None:
        await self._request("PATCH", f"/{self.group_id}/events/{platform_event_id}", json=payload)

    async def _delete(self, platform_event_id: str) -> None:
        await self._request("DELETE", f"/{self.group_id}/events/{platform_event_id}")

    async def _ping(self) -> None:
        data = await self._request("POST", "/gql", json={"query": "query { self { id name } }"})
        if data.get("errors"):
            raise PlatformAPIError(f"Meetup API Error: {data['errors']}")

    def _is_live(self, data: Dict[str, Any]) -> Optional[str]:
        status = str(data.get("status", "")).lower()
        if status in ("cancelled", "deleted"):
            return f"Event is {status} on Meetup"
        return None
