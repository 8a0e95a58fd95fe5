"""Meetup browser automation adapter using Playwright."""

from typing import Dict, Optional

from playwright.async_api import Page

from event_distributor.models.event import Event
from event_distributor.models.platform_config import Platform
from event_distributor.services.platforms.browser_base import BrowserPlatformAdapter
from event_distributor.services.platforms.credentials import AutomationCredentials
from event_distributor.services.platforms.formatting import text_description


class MeetupBrowserAdapter(BrowserPlatformAdapter):
    """Creates events through the Meetup group organizer UI."""

    BASE_URL = "https://www.meetup.com"
    LOGIN_URL = "https://www.meetup.com/login/"
    LOGIN_EMAIL_SELECTOR = "#email"
    LOGIN_PASSWORD_SELECTOR = "#current-password"
    SUBMIT_SELECTOR = 'button[data-testid="publish-button"]'
    DELETE_SELECTOR = 'button[data-testid="delete-event"]'
    CONFIRM_SELECTOR = 'button[data-testid="confirm-delete"]'
    EVENT_ID_PATTERN = r"/events/(\d+)"

    def __init__(
        self,
        credentials: AutomationCredentials,
        headless: Optional[bool] = None,
        screenshot_dir: Optional[str] = None,
        page: Optional[Page] = None,
    ):
        super().__init__(credentials, headless=headless, screenshot_dir=screenshot_dir, page=page)
        self.group_url = credentials.settings.get("group_url", "").rstrip("/")
        self.default_duration = int(credentials.settings.get("default_duration", 120))

    @property
    def platform(self) -> Platform:
        return Platform.MEETUP

    def create_url(self) -> str:
        return f"{self.group_url}/events/create/"

    def edit_url(self, platform_event_id: str) -> str:
        return f"{self.group_url}/events/{platform_event_id}/edit/"

    def event_url(self, platform_event_id: str) -> str:
        return f"{self.group_url}/events/{platform_event_id}/"

    def build_form(self, event: Event) -> Dict[str, str]:
        return {
            "#event-title-input": event.title,
            "#event-description-editor": text_description(event, include_url=True),
            "#event-date-input": event.date.isoformat() if event.date else "",
            "#event-time-input": event.time.strftime("%H:%M") if event.time else "",
            "#event-duration-input": str(self.default_duration),
            "#event-venue-input": "" if event.is_virtual else (event.location or ""),
            "#event-online-link-input": (event.url or "") if event.is_virtual else "",
        }
