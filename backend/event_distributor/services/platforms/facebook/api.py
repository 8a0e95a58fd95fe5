"""Facebook Graph API adapter for page events."""

from typing import Any, Dict, List, Optional

import httpx

from event_distributor.models.event import Event
from event_distributor.models.platform_config import Platform
from event_distributor.services.platforms.api_base import ApiPlatformAdapter, PayloadError
from event_distributor.services.platforms.credentials import ApiCredentials
from event_distributor.services.platforms.formatting import event_start, event_end, text_description

BASE_URL = "https://graph.facebook.com/v18.0"

# (category, tag keywords, category keywords), first match wins
CATEGORY_RULES = [
    ("MUSIC", {"music", "musik"}, {"musik"}),
    ("BUSINESS", {"business", "geschäft"}, {"business"}),
    ("EDUCATION", {"tech", "technology"}, {"technologie"}),
    ("SPORTS", {"sport", "fitness"}, {"sport"}),
    ("FOOD_AND_DRINK", {"food", "essen"}, {"essen"}),
]

VERIFY_FIELDS = "id,name,description,start_time,is_canceled,attending_count,interested_count"


def map_category(tags: List[str], category: Optional[str] = None) -> str:
    """Pick a Facebook event category from tags and the event's category."""
    lower_tags = {t.lower() for t in tags or []}
    lower_category = (category or "").lower()
    for fb_category, tag_words, category_words in CATEGORY_RULES:
        if lower_tags & tag_words or lower_category in category_words:
            return fb_category
    return "OTHER"


class FacebookAPIAdapter(ApiPlatformAdapter):
    """Publishes events on a Facebook page through the Graph API."""

    base_url = BASE_URL

    def __init__(
        self,
        access_token: str,
        page_id: str,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(access_token=access_token, base_url=base_url, transport=transport)
        self.page_id = page_id

    @classmethod
    def from_credentials(cls, credentials: ApiCredentials) -> "FacebookAPIAdapter":
        return cls(
            access_token=credentials.access_token or credentials.api_key,
            page_id=credentials.settings.get("page_id", ""),
            base_url=credentials.settings.get("base_url"),
        )

    @property
    def platform(self) -> Platform:
        return Platform.FACEBOOK

    def _auth_headers(self) -> Dict[str, str]:
        return {}

    def _auth_params(self) -> Dict[str, str]:
        return {"access_token": self.access_token} if self.access_token else {}

    def build_payload(self, event: Event) -> Dict[str, Any]:
        start = event_start(event)
        if start is None:
            raise PayloadError("Facebook requires an event date")

        payload = {
            "name": event.title,
            "description": text_description(event, include_url=False, separator="\n"),
            "start_time": start.isoformat(),
            "end_time": event_end(event).isoformat(),
            "privacy_type": "OPEN",
            "category": map_category(event.tags, event.category),
        }

        if event.is_virtual:
            payload["online_event_format"] = "third_party"
            if event.url:
                payload["online_event_third_party_url"] = event.url
        elif event.location:
            payload["place"] = {"name": event.location}

        return payload

    async def _create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", f"/{self.page_id}/events", json=payload)

    async def _fetch(self, platform_event_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/{platform_event_id}", params={"fields": VERIFY_FIELDS})

    async def _update(self, platform_event_id: str, payload: Dict[str, Any]) -> None:
        await self._request("POST", f"/{platform_event_id}", json=payload)

    async def _delete(self, platform_event_id: str) -> None:
        await self._request("DELETE", f"/{platform_event_id}")

    async def _ping(self) -> None:
        await self._request("GET", f"/{self.page_id}", params={"fields": "id,name"})

    def _is_live(self, data: Dict[str, Any]) -> Optional[str]:
        if data.get("is_canceled"):
            return "Event is canceled on Facebook"
        return None
