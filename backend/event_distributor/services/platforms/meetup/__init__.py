"""Meetup platform integration via API and browser automation."""

from event_distributor.services.platforms.meetup.api import MeetupAPIAdapter
from event_distributor.services.platforms.meetup.browser import MeetupBrowserAdapter

__all__ = ["MeetupAPIAdapter", "MeetupBrowserAdapter"]
