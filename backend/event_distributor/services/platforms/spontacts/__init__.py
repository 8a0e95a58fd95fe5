"""Spontacts platform integration via API and browser automation."""

from event_distributor.services.platforms.spontacts.api import SpontactsAPIAdapter
from event_distributor.services.platforms.spontacts.browser import SpontactsBrowserAdapter

__all__ = ["SpontactsAPIAdapter", "SpontactsBrowserAdapter"]
