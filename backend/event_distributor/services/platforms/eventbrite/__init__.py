"""Eventbrite platform integration via API and browser automation."""

from event_distributor.services.platforms.eventbrite.api import EventbriteAPIAdapter
from event_distributor.services.platforms.eventbrite.browser import EventbriteBrowserAdapter

__all__ = ["EventbriteAPIAdapter", "EventbriteBrowserAdapter"]
