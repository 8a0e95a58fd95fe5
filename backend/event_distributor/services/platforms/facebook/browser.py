"""Facebook browser automation adapter using Playwright."""

from typing import Dict, Optional

from playwright.async_api import Page

from event_distributor.models.event import Event
from event_distributor.models.platform_config import Platform
from event_distributor.services.platforms.browser_base import BrowserPlatformAdapter
from event_distributor.services.platforms.credentials import AutomationCredentials
from event_distributor.services.platforms.formatting import event_end, text_description


class FacebookBrowserAdapter(BrowserPlatformAdapter):
    """Creates page events through Facebook's event composer."""

    BASE_URL = "https://www.facebook.com"
    LOGIN_URL = "https://www.facebook.com/login/"
    LOGIN_EMAIL_SELECTOR = "#email"
    LOGIN_PASSWORD_SELECTOR = "#pass"
    LOGIN_SUBMIT_SELECTOR = 'button[name="login"]'
    SUBMIT_SELECTOR = 'div[aria-label="Create event"]'
    DELETE_SELECTOR = 'div[aria-label="Cancel event"]'
    CONFIRM_SELECTOR = 'div[aria-label="Confirm"]'
    EVENT_ID_PATTERN = r"/events/(\d+)"

    def __init__(
        self,
        credentials: AutomationCredentials,
        headless: Optional[bool] = None,
        screenshot_dir: Optional[str] = None,
        page: Optional[Page] = None,
    ):
        super().__init__(credentials, headless=headless, screenshot_dir=screenshot_dir, page=page)
        self.page_id = credentials.settings.get("page_id", "")
        self.business_manager_url = credentials.settings.get("business_manager_url")

    @property
    def platform(self) -> Platform:
        return Platform.FACEBOOK

    def _is_login_page(self, url: str) -> bool:
        return super()._is_login_page(url) or "checkpoint" in url

    def create_url(self) -> str:
        if self.business_manager_url:
            return f"{self.business_manager_url.rstrip('/')}/events/create"
        return f"https://www.facebook.com/events/create/?page_id={self.page_id}"

    def edit_url(self, platform_event_id: str) -> str:
        return f"https://www.facebook.com/events/{platform_event_id}/edit/"

    def event_url(self, platform_event_id: str) -> str:
        return f"https://www.facebook.com/events/{platform_event_id}/"

    def build_form(self, event: Event) -> Dict[str, str]:
        end = event_end(event)
        return {
            'input[aria-label="Event name"]': event.title,
            'input[aria-label="Start date"]': event.date.strftime("%d.%m.%Y") if event.date else "",
            'input[aria-label="Start time"]': event.time.strftime("%H:%M") if event.time else "",
            'input[aria-label="End time"]': end.strftime("%H:%M") if end else "",
            'input[aria-label="Location"]': "" if event.is_virtual else (event.location or ""),
            'input[aria-label="Event link"]': (event.url or "") if event.is_virtual else "",
            'textarea[aria-label="What are the details?"]': text_description(
                event, include_url=False, separator="\n"
            ),
        }
