"""Credential sets used to build platform adapters."""

from dataclasses import dataclass, field
from typing import Dict, Any, Iterable, Optional, Union

from event_distributor.models.platform_config import Platform, IntegrationMethod, PlatformConfig


@dataclass
class ApiCredentials:
    """Credentials for a platform's official API."""
    access_token: Optional[str] = None
    api_key: Optional[str] = None
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    # Platform specific: group_id, organization_id, page_id, base_url ...
    settings: Dict[str, Any] = field(default_factory=dict)


@dataclass
class AutomationCredentials:
    """Login details for browser automation."""
    username: str
    password: str
    session_blob: Optional[Dict[str, Any]] = None
    # Platform specific: group_url, profile_url, default_city ...
    settings: Dict[str, Any] = field(default_factory=dict)


@dataclass
class PlatformCredentialSet:
    """Both methods' credentials for one platform; either may be missing."""
    api: Optional[ApiCredentials] = None
    automation: Optional[AutomationCredentials] = None


CredentialsFor = Union[ApiCredentials, AutomationCredentials]


class PlatformCredentials:
    """Credentials for every configured platform.

    May be partially populated: a platform can have API credentials only,
    automation credentials only, both, or neither.
    """

    def __init__(self, entries: Optional[Dict[Platform, PlatformCredentialSet]] = None):
        self._entries: Dict[Platform, PlatformCredentialSet] = dict(entries or {})

    def for_pair(self, platform: Platform, method: IntegrationMethod) -> Optional[CredentialsFor]:
        """Get the credentials for one (platform, method) pair, if any."""
        entry = self._entries.get(platform)
        if entry is None:
            return None
        if method == IntegrationMethod.API:
            return entry.api
        return entry.automation

    def configured_pairs(self) -> list:
        """List (platform, method) pairs that have credentials, in enum order."""
        pairs = []
        for platform in Platform:
            for method in IntegrationMethod:
                if self.for_pair(platform, method) is not None:
                    pairs.append((platform, method))
        return pairs

    def __len__(self) -> int:
        return len(self.configured_pairs())

    @classmethod
    def from_configs(cls, configs: Iterable[PlatformConfig]) -> "PlatformCredentials":
        """Build credentials from stored platform configurations.

        Only enabled sections are used. An automation section without a
        username and password is treated as unconfigured.
        """
        entries = {}
        for config in configs:
            entry = PlatformCredentialSet()
            if config.api_enabled:
                entry.api = ApiCredentials(
                    access_token=config.access_token,
                    api_key=config.api_key,
                    client_id=config.client_id,
                    client_secret=config.client_secret,
                    settings=dict(config.api_settings or {}),
                )
            if config.automation_enabled and config.username and config.password:
                entry.automation = AutomationCredentials(
                    username=config.username,
                    password=config.password,
                    session_blob=config.session_blob,
                    settings=dict(config.automation_settings or {}),
                )
            if entry.api or entry.automation:
                entries[config.platform] = entry
        return cls(entries)
