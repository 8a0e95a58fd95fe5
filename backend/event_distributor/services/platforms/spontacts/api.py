"""Spontacts API adapter.

Spontacts does not document a public API; this client targets the
partner endpoint configured via ``api_settings.base_url``.
"""

from typing import Any, Dict, Optional

import httpx

from event_distributor.models.event import Event
from event_distributor.models.platform_config import Platform
from event_distributor.services.platforms.api_base import ApiPlatformAdapter
from event_distributor.services.platforms.credentials import ApiCredentials
from event_distributor.services.platforms.formatting import join_tags

BASE_URL = "https://api.spontacts.com"

CATEGORY_MAP = {
    "technologie": "Tech & Innovation",
    "sport": "Sport & Fitness",
    "musik": "Musik & Konzerte",
    "kunst": "Kunst & Kultur",
    "business": "Business & Networking",
    "essen": "Essen & Trinken",
    "reisen": "Reisen & Outdoor",
    "bildung": "Bildung & Lernen",
}


def map_category(category: Optional[str]) -> str:
    return CATEGORY_MAP.get((category or "").lower(), "Sonstiges")


def spontacts_activity(event: Event) -> Dict[str, Any]:
    """Map an event to a Spontacts activity."""
    return {
        "title": event.title,
        "description": event.description or "",
        "date": event.date.isoformat() if event.date else "",
        "time": event.time.strftime("%H:%M") if event.time else "",
        "location": event.location or "",
        "category": map_category(event.category),
        "max_participants": 100 if event.is_virtual else 50,
        "price": event.price or "Kostenlos",
        "organizer": event.organizer or "Unbekannt",
        "contact_info": event.url or "",
        "requirements": f"Interessengebiete: {join_tags(event.tags)}" if event.tags else "",
    }


class SpontactsAPIAdapter(ApiPlatformAdapter):
    """Publishes activities to Spontacts."""

    base_url = BASE_URL

    def __init__(
        self,
        api_key: Optional[str] = None,
        auth_token: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(access_token=auth_token, base_url=base_url, transport=transport)
        self.api_key = api_key

    @classmethod
    def from_credentials(cls, credentials: ApiCredentials) -> "SpontactsAPIAdapter":
        return cls(
            api_key=credentials.api_key,
            auth_token=credentials.access_token,
            base_url=credentials.settings.get("base_url"),
        )

    @property
    def platform(self) -> Platform:
        return Platform.SPONTACTS

    def _auth_headers(self) -> Dict[str, str]:
        headers = super()._auth_headers()
        if self.api_key:
            headers["X-API-Key"] = self.api_key
        return headers

    def build_payload(self, event: Event) -> Dict[str, Any]:
        return spontacts_activity(event)

    async def _create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/activities", json=payload)

    async def _fetch(self, platform_event_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/activities/{platform_event_id}")

    async def _update(self, platform_event_id: str, payload: Dict[str, Any]) -> None:
        await self._request("PUT", f"/activities/{platform_event_id}", json=payload)

    async def _delete(self, platform_event_id: str) -> None:
        await self._request("DELETE", f"/activities/{platform_event_id}")

    async def _ping(self) -> None:
        await self._request("GET", "/me")

    def _is_live(self, data: Dict[str, Any]) -> Optional[str]:
        if str(data.get("status", "active")).lower() != "active":
            return f"Activity is {data.get('status')} on Spontacts"
        return None
