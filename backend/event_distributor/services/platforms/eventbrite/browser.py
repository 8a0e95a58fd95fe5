"""Eventbrite browser automation adapter using Playwright."""

from typing import Dict

from event_distributor.models.event import Event
from event_distributor.models.platform_config import Platform
from event_distributor.services.platforms.browser_base import BrowserPlatformAdapter
from event_distributor.services.platforms.formatting import event_end, text_description, is_free


class EventbriteBrowserAdapter(BrowserPlatformAdapter):
    """Creates events through the Eventbrite organizer dashboard."""

    BASE_URL = "https://www.eventbrite.com/organizations/home"
    LOGIN_URL = "https://www.eventbrite.com/signin/"
    LOGIN_EMAIL_SELECTOR = 'input[name="email"]'
    LOGIN_PASSWORD_SELECTOR = 'input[name="password"]'
    SUBMIT_SELECTOR = 'button[data-spec="publish-button"]'
    DELETE_SELECTOR = 'button[data-spec="delete-event"]'
    CONFIRM_SELECTOR = 'button[data-spec="confirm-delete"]'
    EVENT_ID_PATTERN = r"/events/(\d+)"

    @property
    def platform(self) -> Platform:
        return Platform.EVENTBRITE

    def create_url(self) -> str:
        return "https://www.eventbrite.com/manage/events/create"

    def edit_url(self, platform_event_id: str) -> str:
        return f"https://www.eventbrite.com/manage/events/{platform_event_id}/details"

    def event_url(self, platform_event_id: str) -> str:
        return f"https://www.eventbrite.com/e/{platform_event_id}"

    def build_form(self, event: Event) -> Dict[str, str]:
        end = event_end(event)
        ticket_type = self.credentials.settings.get("default_ticket_type", "free")
        if not is_free(event.price):
            ticket_type = "paid"
        return {
            'input[name="title"]': event.title,
            'div[data-spec="summary-editor"]': text_description(event),
            'input[name="startDate"]': event.date.isoformat() if event.date else "",
            'input[name="startTime"]': event.time.strftime("%H:%M") if event.time else "",
            'input[name="endTime"]': end.strftime("%H:%M") if end else "",
            'input[name="venueName"]': "" if event.is_virtual else (event.location or ""),
            'input[name="ticketType"]': ticket_type,
        }
