"""Helpers shared by the platform payload mappers."""

from datetime import datetime, time, timedelta
from html import escape
from typing import Optional
from zoneinfo import ZoneInfo

from event_distributor.config import get_settings
from event_distributor.models.event import Event

DEFAULT_DURATION = timedelta(hours=2)

FREE_MARKERS = ("kostenlos", "free")


def is_free(price: Optional[str]) -> bool:
    """A price counts as free when empty or when it says so ("Kostenlos", "free")."""
    if not price or not price.strip():
        return True
    lowered = price.lower()
    return any(marker in lowered for marker in FREE_MARKERS)


def event_start(event: Event, timezone: Optional[str] = None) -> Optional[datetime]:
    """Combine the event's date and wall-clock time into an aware datetime.

    Returns None when the event has no date. A missing time means midnight.
    """
    if event.date is None:
        return None
    tz = ZoneInfo(timezone or get_settings().event_timezone)
    return datetime.combine(event.date, event.time or time(0, 0), tzinfo=tz)


def event_end(event: Event, timezone: Optional[str] = None) -> Optional[datetime]:
    start = event_start(event, timezone)
    return start + DEFAULT_DURATION if start else None


def join_tags(tags) -> str:
    return ", ".join(tags or [])


def text_description(event: Event, include_url: bool = True, separator: str = "\n\n") -> str:
    """Plain-text description with organizer, price, tags and link appended."""
    description = event.description or ""
    if event.organizer:
        description += f"{separator}Veranstalter: {event.organizer}"
    if event.price:
        description += f"{separator}Preis: {event.price}"
    if event.tags:
        description += f"{separator}Tags: {join_tags(event.tags)}"
    if include_url and event.url:
        description += f"{separator}Weitere Informationen: {event.url}"
    return description


def html_description(event: Event) -> str:
    """HTML description for platforms that accept rich text."""
    html = f"<p>{escape(event.description or '')}</p>"
    if event.location:
        html += f"<p><strong>Ort:</strong> {escape(event.location)}</p>"
    if event.organizer:
        html += f"<p><strong>Veranstalter:</strong> {escape(event.organizer)}</p>"
    if event.price:
        html += f"<p><strong>Preis:</strong> {escape(event.price)}</p>"
    if event.tags:
        html += f"<p><strong>Tags:</strong> {escape(join_tags(event.tags))}</p>"
    if event.url:
        url = escape(event.url, quote=True)
        html += f'<p><strong>Weitere Informationen:</strong> <a href="{url}" target="_blank">{url}</a></p>'
    return html
