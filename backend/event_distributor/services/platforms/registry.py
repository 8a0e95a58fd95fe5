"""Platform adapter registry keyed by (platform, method)."""

from typing import Callable, Dict, List, Optional, Tuple

import structlog

from event_distributor.config import get_settings
from event_distributor.models.platform_config import Platform, IntegrationMethod
from event_distributor.services.platforms.base import EventPlatformAdapter
from event_distributor.services.platforms.credentials import CredentialsFor, PlatformCredentials
from event_distributor.services.platforms.eventbrite import EventbriteAPIAdapter, EventbriteBrowserAdapter
from event_distributor.services.platforms.facebook import FacebookAPIAdapter, FacebookBrowserAdapter
from event_distributor.services.platforms.meetup import MeetupAPIAdapter, MeetupBrowserAdapter
from event_distributor.services.platforms.simulated import SimulatedAdapter, SimulatedAutomationAdapter
from event_distributor.services.platforms.spontacts import SpontactsAPIAdapter, SpontactsBrowserAdapter

logger = structlog.get_logger()

AdapterKey = Tuple[Platform, IntegrationMethod]
AdapterFactory = Callable[[Platform, IntegrationMethod, CredentialsFor], EventPlatformAdapter]

ADAPTER_CONSTRUCTORS: Dict[AdapterKey, Callable[[CredentialsFor], EventPlatformAdapter]] = {
    (Platform.MEETUP, IntegrationMethod.API): MeetupAPIAdapter.from_credentials,
    (Platform.MEETUP, IntegrationMethod.AUTOMATION): MeetupBrowserAdapter,
    (Platform.EVENTBRITE, IntegrationMethod.API): EventbriteAPIAdapter.from_credentials,
    (Platform.EVENTBRITE, IntegrationMethod.AUTOMATION): EventbriteBrowserAdapter,
    (Platform.FACEBOOK, IntegrationMethod.API): FacebookAPIAdapter.from_credentials,
    (Platform.FACEBOOK, IntegrationMethod.AUTOMATION): FacebookBrowserAdapter,
    (Platform.SPONTACTS, IntegrationMethod.API): SpontactsAPIAdapter.from_credentials,
    (Platform.SPONTACTS, IntegrationMethod.AUTOMATION): SpontactsBrowserAdapter,
}


def simulated_adapter_factory(
    platform: Platform,
    method: IntegrationMethod,
    credentials: CredentialsFor,
) -> EventPlatformAdapter:
    settings = get_settings()
    if method == IntegrationMethod.AUTOMATION:
        return SimulatedAutomationAdapter(
            platform,
            screenshot_dir=settings.screenshot_dir,
            session_blob=credentials.session_blob,
            latency=settings.simulation_latency_seconds,
        )
    return SimulatedAdapter(platform, method, latency=settings.simulation_latency_seconds)


def default_adapter_factory(
    platform: Platform,
    method: IntegrationMethod,
    credentials: CredentialsFor,
) -> EventPlatformAdapter:
    """Build the real adapter for a pair, or a simulated one in simulation mode."""
    if get_settings().platform_simulation:
        return simulated_adapter_factory(platform, method, credentials)
    return ADAPTER_CONSTRUCTORS[(platform, method)](credentials)


class PlatformRegistry:
    """Lazily builds and caches one adapter per configured (platform, method).

    The registry owns the adapters it builds; ``reconfigure`` and
    ``close_all`` release them.
    """

    def __init__(
        self,
        credentials: Optional[PlatformCredentials] = None,
        adapter_factory: Optional[AdapterFactory] = None,
    ):
        self._credentials = credentials or PlatformCredentials()
        self._factory = adapter_factory or default_adapter_factory
        self._instances: Dict[AdapterKey, EventPlatformAdapter] = {}

    @property
    def credentials(self) -> PlatformCredentials:
        return self._credentials

    def get_adapter(
        self,
        platform: Platform,
        method: IntegrationMethod,
    ) -> Optional[EventPlatformAdapter]:
        """Get the adapter for a pair.

        Args:
            platform: Target platform
            method: Integration method

        Returns:
            Cached or new adapter, or None if the pair has no credentials
        """
        key = (platform, method)
        if key in self._instances:
            return self._instances[key]

        credentials = self._credentials.for_pair(platform, method)
        if credentials is None:
            return None

        adapter = self._factory(platform, method, credentials)
        self._instances[key] = adapter
        logger.info("Created platform adapter", platform=platform.value, method=method.value)
        return adapter

    def list_available(self) -> List[AdapterKey]:
        """List pairs with credentials, constructing their adapters."""
        available = []
        for platform, method in self._credentials.configured_pairs():
            if self.get_adapter(platform, method) is not None:
                available.append((platform, method))
        return available

    async def reconfigure(self, credentials: PlatformCredentials):
        """Replace the credential set, discarding every cached adapter.

        The swap happens before any adapter is closed, so a lookup made
        while old adapters shut down only sees the new credentials.
        """
        stale = self._instances
        self._instances = {}
        self._credentials = credentials
        logger.info("Platform registry reconfigured", pairs=len(credentials))
        await self._close(stale.values())

    async def close_all(self):
        """Close all cached adapter instances."""
        stale = self._instances
        self._instances = {}
        await self._close(stale.values())

    async def _close(self, instances):
        for instance in list(instances):
            try:
                await instance.close()
            except Exception as e:
                logger.error("Error closing adapter", adapter=repr(instance), error=str(e))
