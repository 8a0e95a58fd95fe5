"""Shared fixtures: a throwaway SQLite database, simulated adapters and an API client."""

import os
import tempfile

_TEST_DIR = tempfile.mkdtemp(prefix="event_distributor_tests_")

# Settings are read once at import time
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_TEST_DIR}/import.db")
os.environ.setdefault("MEDIA_STORAGE_PATH", f"{_TEST_DIR}/media")
os.environ.setdefault("PLATFORM_SIMULATION", "true")

from datetime import date, time
from typing import Dict, Tuple

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from event_distributor.database import (
    build_engine,
    build_session_factory,
    create_tables,
    get_db,
    get_session_factory,
)
from event_distributor.main import app
from event_distributor.api.deps import get_registry
from event_distributor.models import Event, EventType, IntegrationMethod, Platform
from event_distributor.services.platforms.credentials import (
    ApiCredentials,
    AutomationCredentials,
    PlatformCredentials,
    PlatformCredentialSet,
)
from event_distributor.services.platforms.registry import PlatformRegistry
from event_distributor.services.platforms.simulated import SimulatedAdapter, SimulatedAutomationAdapter


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """Session factory over a fresh file database.

    A file (not ``:memory:``) so concurrent publish targets get their own
    connections.
    """
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path}/test.db")
    await create_tables(engine)

    yield build_session_factory(engine)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def sample_event(session_factory) -> Event:
    """A committed live event."""
    async with session_factory() as session:
        event = Event(
            title="Python Meetup Berlin",
            description="Vorträge und Austausch rund um Python",
            date=date(2025, 3, 15),
            time=time(19, 0),
            location="Betahaus, Berlin",
            category="technologie",
            organizer="Python User Group",
            url="https://example.org/python-meetup",
            price="Kostenlos",
            tags=["python", "networking", "python"],
            event_type=EventType.LIVE,
        )
        session.add(event)
        await session.commit()
    return event


def full_credentials() -> PlatformCredentials:
    """API and automation credentials for every platform."""
    return PlatformCredentials({
        platform: PlatformCredentialSet(
            api=ApiCredentials(access_token=f"{platform.value}-token"),
            automation=AutomationCredentials(username="organizer@example.org", password="secret"),
        )
        for platform in Platform
    })


class SimulatedFactory:
    """Adapter factory that keeps the adapters it builds for inspection."""

    def __init__(self, screenshot_dir: str):
        self.screenshot_dir = screenshot_dir
        # {(platform, method): SimulatedAdapter keyword arguments}
        self.overrides: Dict[Tuple[Platform, IntegrationMethod], dict] = {}
        self.built: Dict[Tuple[Platform, IntegrationMethod], SimulatedAdapter] = {}

    def __call__(self, platform, method, credentials):
        kwargs = dict(self.overrides.get((platform, method), {}))
        if method == IntegrationMethod.AUTOMATION:
            adapter = SimulatedAutomationAdapter(
                platform,
                screenshot_dir=self.screenshot_dir,
                session_blob=credentials.session_blob,
                **kwargs,
            )
        else:
            adapter = SimulatedAdapter(platform, method, **kwargs)
        self.built[(platform, method)] = adapter
        return adapter


@pytest.fixture
def simulated_factory(tmp_path) -> SimulatedFactory:
    return SimulatedFactory(str(tmp_path / "screenshots"))


@pytest.fixture
def registry(simulated_factory) -> PlatformRegistry:
    return PlatformRegistry(full_credentials(), adapter_factory=simulated_factory)


@pytest_asyncio.fixture
async def client(session_factory, registry):
    """API client wired to the test database and simulated adapters."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_registry] = lambda: registry

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    if hasattr(app.state, "oauth_states"):
        del app.state.oauth_states
