"""Facebook platform integration via API and browser automation."""

from event_distributor.services.platforms.facebook.api import FacebookAPIAdapter
from event_distributor.services.platforms.facebook.browser import FacebookBrowserAdapter

__all__ = ["FacebookAPIAdapter", "FacebookBrowserAdapter"]
