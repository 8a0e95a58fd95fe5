"""Tests for the automation-method adapters against a fake Playwright page."""

import re
from datetime import date, time
from pathlib import Path

import pytest
from playwright.async_api import Error as PlaywrightError

from event_distributor.models.event import Event, EventType
from event_distributor.services.platforms.browser_base import PNG_SIGNATURE, inspect_screenshot
from event_distributor.services.platforms.credentials import AutomationCredentials
from event_distributor.services.platforms.eventbrite import EventbriteBrowserAdapter
from event_distributor.services.platforms.facebook import FacebookBrowserAdapter
from event_distributor.services.platforms.meetup import MeetupBrowserAdapter
from event_distributor.services.platforms.spontacts import SpontactsBrowserAdapter


class FakeContext:
    def __init__(self):
        self.cookies = [{"name": "sid", "value": "abc", "domain": ".meetup.com", "path": "/"}]

    async def storage_state(self):
        return {"cookies": list(self.cookies), "origins": []}

    async def add_cookies(self, cookies):
        self.cookies.extend(cookies)


class FakePage:
    """Just enough of ``playwright.async_api.Page`` for the adapters.

    ``redirects`` maps a clicked selector to the URL the page lands on.
    """

    def __init__(self, redirects=None):
        self.url = "about:blank"
        self.context = FakeContext()
        self.redirects = redirects or {}
        self.visited = []
        self.filled = {}
        self.clicked = []

    async def goto(self, url, wait_until=None):
        self.url = url
        self.visited.append(url)

    async def fill(self, selector, value):
        self.filled[selector] = value

    async def click(self, selector):
        self.clicked.append(selector)
        if selector in self.redirects:
            self.url = self.redirects[selector]

    async def wait_for_load_state(self, state=None):
        pass

    async def wait_for_url(self, pattern):
        if not re.search(pattern, self.url):
            raise PlaywrightError(f"Timeout 30000ms exceeded waiting for {pattern.pattern}")

    async def screenshot(self, path, full_page=False):
        Path(path).write_bytes(PNG_SIGNATURE + b"fake image data")


def make_event(**overrides) -> Event:
    fields = dict(
        title="Python Meetup Berlin",
        description="Vorträge und Austausch",
        date=date(2025, 3, 15),
        time=time(19, 0),
        location="Betahaus, Berlin",
        category="technologie",
        price="Kostenlos",
        tags=["python"],
        event_type=EventType.LIVE,
    )
    fields.update(overrides)
    return Event(**fields)


def credentials(session_blob=None, **settings) -> AutomationCredentials:
    return AutomationCredentials(
        username="organizer@example.org",
        password="secret",
        session_blob=session_blob,
        settings=settings,
    )


@pytest.mark.asyncio
async def test_meetup_create_logs_in_and_reads_event_id(tmp_path):
    page = FakePage(redirects={
        'button[type="submit"]': "https://www.meetup.com/home/",
        'button[data-testid="publish-button"]': "https://www.meetup.com/python-berlin/events/305555/",
    })
    adapter = MeetupBrowserAdapter(
        credentials(group_url="https://www.meetup.com/python-berlin/"),
        screenshot_dir=str(tmp_path),
        page=page,
    )

    outcome = await adapter.create_event(make_event())

    assert outcome.success is True
    assert outcome.platform_event_id == "305555"
    assert page.filled["#email"] == "organizer@example.org"
    assert page.filled["#event-title-input"] == "Python Meetup Berlin"
    assert page.filled["#event-venue-input"] == "Betahaus, Berlin"
    assert "https://www.meetup.com/python-berlin/events/create/" in page.visited
    assert Path(outcome.evidence_ref).read_bytes().startswith(PNG_SIGNATURE)


@pytest.mark.asyncio
async def test_meetup_create_with_restored_session_skips_login(tmp_path):
    page = FakePage(redirects={
        'button[data-testid="publish-button"]': "https://www.meetup.com/g/events/1/",
    })
    adapter = MeetupBrowserAdapter(
        credentials(session_blob={"cookies": [], "origins": []}, group_url="https://www.meetup.com/g"),
        screenshot_dir=str(tmp_path),
        page=page,
    )

    outcome = await adapter.create_event(make_event())

    assert outcome.success is True
    assert "#email" not in page.filled
    assert "https://www.meetup.com/login/" not in page.visited


@pytest.mark.asyncio
async def test_meetup_update_and_delete_use_event_pages(tmp_path):
    page = FakePage()
    adapter = MeetupBrowserAdapter(
        credentials(session_blob={"cookies": [], "origins": []}, group_url="https://www.meetup.com/g"),
        screenshot_dir=str(tmp_path),
        page=page,
    )

    updated = await adapter.update_event("305555", make_event(title="Python Meetup Berlin #2"))
    deleted = await adapter.delete_event("305555")

    assert updated.success is True
    assert page.filled["#event-title-input"] == "Python Meetup Berlin #2"
    assert any(url.endswith("/events/305555/edit/") for url in page.visited)
    assert deleted.success is True
    assert page.clicked[-2:] == ['button[data-testid="delete-event"]', 'button[data-testid="confirm-delete"]']
    assert Path(deleted.evidence_ref).exists()


@pytest.mark.asyncio
async def test_create_reports_failed_login(tmp_path):
    page = FakePage()
    adapter = MeetupBrowserAdapter(credentials(group_url="https://www.meetup.com/g"), screenshot_dir=str(tmp_path), page=page)

    outcome = await adapter.create_event(make_event())

    assert outcome.success is False
    assert outcome.error == "Login to Meetup failed"


@pytest.mark.asyncio
async def test_create_playwright_error_becomes_failure_with_screenshot(tmp_path):
    # Submitting never reaches an event page
    page = FakePage(redirects={
        'button[type="submit"]': "https://www.eventbrite.com/organizations/home",
        'button[data-spec="publish-button"]': "https://www.eventbrite.com/manage/events/create",
    })
    adapter = EventbriteBrowserAdapter(credentials(), screenshot_dir=str(tmp_path), page=page)

    outcome = await adapter.create_event(make_event(price="12 EUR"))

    assert outcome.success is False
    assert outcome.error.startswith("Eventbrite automation failed")
    assert outcome.evidence_ref is not None
    assert Path(outcome.evidence_ref).exists()
    assert page.filled['input[name="ticketType"]'] == "paid"


@pytest.mark.asyncio
async def test_facebook_form_and_business_manager_url(tmp_path):
    page = FakePage(redirects={
        'button[name="login"]': "https://www.facebook.com/",
        'div[aria-label="Create event"]': "https://www.facebook.com/events/4242/",
    })
    adapter = FacebookBrowserAdapter(
        credentials(page_id="1001", business_manager_url="https://business.facebook.com/latest/"),
        screenshot_dir=str(tmp_path),
        page=page,
    )

    outcome = await adapter.create_event(make_event(event_type=EventType.VIRTUAL, url="https://meet.example.org"))

    assert outcome.success is True
    assert outcome.platform_event_id == "4242"
    assert "https://business.facebook.com/latest/events/create" in page.visited
    assert page.filled['input[aria-label="Start date"]'] == "15.03.2025"
    assert page.filled['input[aria-label="End time"]'] == "21:00"
    assert page.filled['input[aria-label="Event link"]'] == "https://meet.example.org"
    assert 'input[aria-label="Location"]' not in page.filled


def test_facebook_checkpoint_counts_as_login_page():
    adapter = FacebookBrowserAdapter(credentials(), page=FakePage())
    assert adapter._is_login_page("https://www.facebook.com/checkpoint/?next") is True
    assert adapter._is_login_page("https://www.facebook.com/events/1/") is False


@pytest.mark.asyncio
async def test_spontacts_create_uses_german_form(tmp_path):
    page = FakePage(redirects={
        'button:has-text("Anmelden")': "https://www.spontacts.com/aktivitaeten",
        'button:has-text("Aktivität erstellen")': "https://www.spontacts.com/aktivitaet/9911",
    })
    adapter = SpontactsBrowserAdapter(
        credentials(default_city="Berlin"),
        screenshot_dir=str(tmp_path),
        page=page,
    )

    outcome = await adapter.create_event(make_event(location=None))

    assert outcome.success is True
    assert outcome.platform_event_id == "9911"
    assert page.filled['input[name="passwort"]'] == "secret"
    assert page.filled['input[name="datum"]'] == "15.03.2025"
    assert page.filled['input[name="ort"]'] == "Berlin"
    assert page.filled['input[name="kategorie"]'] == "Tech & Innovation"
    assert page.filled['input[name="teilnehmer"]'] == "50"


def test_inspect_screenshot(tmp_path):
    missing = inspect_screenshot(None)
    assert missing.verified is False
    assert missing.error == "No screenshot available for verification"

    assert inspect_screenshot(str(tmp_path / "nope.png")).verified is False

    empty = tmp_path / "empty.png"
    empty.write_bytes(b"")
    assert "empty" in inspect_screenshot(str(empty)).error

    text = tmp_path / "text.png"
    text.write_bytes(b"not an image")
    assert inspect_screenshot(str(text)).verified is False

    good = tmp_path / "good.png"
    good.write_bytes(PNG_SIGNATURE + b"data")
    outcome = inspect_screenshot(str(good))
    assert outcome.verified is True
    assert outcome.data["size_bytes"] == len(PNG_SIGNATURE) + 4


@pytest.mark.asyncio
async def test_browser_verify_adds_event_url(tmp_path):
    shot = tmp_path / "shot.png"
    shot.write_bytes(PNG_SIGNATURE + b"data")
    adapter = SpontactsBrowserAdapter(credentials(), page=FakePage())

    outcome = await adapter.verify_event("9911", evidence_ref=str(shot))

    assert outcome.verified is True
    assert outcome.data["event_url"] == "https://www.spontacts.com/aktivitaet/9911"


@pytest.mark.asyncio
async def test_save_and_restore_session():
    page = FakePage()
    adapter = MeetupBrowserAdapter(credentials(), page=page)

    saved = await adapter.save_session()
    assert saved.success is True
    assert saved.session_blob["cookies"][0]["name"] == "sid"

    invalid = await adapter.restore_session({"origins": []})
    assert invalid.success is False
    assert invalid.error == "Invalid session data"

    restored = await adapter.restore_session({"cookies": [{"name": "other", "value": "1"}], "origins": []})
    assert restored.success is True
    assert [c["name"] for c in page.context.cookies] == ["sid", "other"]


@pytest.mark.asyncio
async def test_close_leaves_external_page_alone():
    page = FakePage()
    adapter = MeetupBrowserAdapter(credentials(), page=page)
    await adapter.close()
    assert adapter._page is page
