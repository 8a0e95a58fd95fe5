"""Spontacts browser automation adapter using Playwright.

The Spontacts UI is German-only, so selectors use the German labels.
"""

from typing import Dict, Optional

from playwright.async_api import Page

from event_distributor.models.event import Event
from event_distributor.models.platform_config import Platform
from event_distributor.services.platforms.browser_base import BrowserPlatformAdapter
from event_distributor.services.platforms.credentials import AutomationCredentials
from event_distributor.services.platforms.spontacts.api import map_category


class SpontactsBrowserAdapter(BrowserPlatformAdapter):
    """Creates activities through the Spontacts web app."""

    BASE_URL = "https://www.spontacts.com/aktivitaeten"
    LOGIN_URL = "https://www.spontacts.com/login"
    LOGIN_EMAIL_SELECTOR = 'input[name="email"]'
    LOGIN_PASSWORD_SELECTOR = 'input[name="passwort"]'
    LOGIN_SUBMIT_SELECTOR = 'button:has-text("Anmelden")'
    SUBMIT_SELECTOR = 'button:has-text("Aktivität erstellen")'
    DELETE_SELECTOR = 'button:has-text("Aktivität löschen")'
    CONFIRM_SELECTOR = 'button:has-text("Ja, löschen")'
    EVENT_ID_PATTERN = r"/aktivitaet/(\d+)"

    def __init__(
        self,
        credentials: AutomationCredentials,
        headless: Optional[bool] = None,
        screenshot_dir: Optional[str] = None,
        page: Optional[Page] = None,
    ):
        super().__init__(credentials, headless=headless, screenshot_dir=screenshot_dir, page=page)
        self.default_city = credentials.settings.get("default_city", "")
        self.participant_limit = int(credentials.settings.get("default_participant_limit", 50))

    @property
    def platform(self) -> Platform:
        return Platform.SPONTACTS

    def _is_login_page(self, url: str) -> bool:
        return "login" in url or "anmelden" in url

    def create_url(self) -> str:
        return "https://www.spontacts.com/aktivitaet/erstellen"

    def edit_url(self, platform_event_id: str) -> str:
        return f"https://www.spontacts.com/aktivitaet/{platform_event_id}/bearbeiten"

    def event_url(self, platform_event_id: str) -> str:
        return f"https://www.spontacts.com/aktivitaet/{platform_event_id}"

    def build_form(self, event: Event) -> Dict[str, str]:
        return {
            'input[name="titel"]': event.title,
            'textarea[name="beschreibung"]': event.description or "",
            'input[name="datum"]': event.date.strftime("%d.%m.%Y") if event.date else "",
            'input[name="uhrzeit"]': event.time.strftime("%H:%M") if event.time else "",
            'input[name="ort"]': event.location or self.default_city,
            'input[name="kategorie"]': map_category(event.category),
            'input[name="teilnehmer"]': str(100 if event.is_virtual else self.participant_limit),
        }
