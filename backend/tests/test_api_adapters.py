"""Tests for the API-method platform adapters using a mocked HTTP transport."""

import json
from datetime import date, time

import httpx
import pytest

from event_distributor.models.event import Event, EventType
from event_distributor.services.platforms.credentials import ApiCredentials
from event_distributor.services.platforms.eventbrite import EventbriteAPIAdapter
from event_distributor.services.platforms.facebook import FacebookAPIAdapter
from event_distributor.services.platforms.facebook.api import map_category as facebook_category
from event_distributor.services.platforms.meetup import MeetupAPIAdapter
from event_distributor.services.platforms.spontacts import SpontactsAPIAdapter
from event_distributor.services.platforms.spontacts.api import map_category as spontacts_category


def make_event(**overrides) -> Event:
    fields = dict(
        title="Python Meetup Berlin",
        description="Vorträge und Austausch",
        date=date(2025, 3, 15),
        time=time(19, 0),
        location="Betahaus, Berlin",
        category="technologie",
        organizer="Python User Group",
        url="https://example.org/python-meetup",
        price="Kostenlos",
        tags=["python", "networking"],
        event_type=EventType.LIVE,
    )
    fields.update(overrides)
    return Event(**fields)


class Recorder:
    """httpx MockTransport handler that records requests and replays responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


def body(request: httpx.Request) -> dict:
    return json.loads(request.content)


# Meetup

def test_meetup_payload():
    adapter = MeetupAPIAdapter(access_token="tok", group_id="python-berlin")
    payload = adapter.build_payload(make_event())

    assert payload["name"] == "Python Meetup Berlin"
    assert payload["duration"] == 2 * 60 * 60 * 1000
    assert payload["guest_limit"] == 100
    assert payload["how_to_find_us"] == "Betahaus, Berlin"
    # 2025-03-15 19:00 CET == 18:00 UTC
    assert payload["time"] == 1742061600000
    assert "Tags: python, networking" in payload["description"]


def test_meetup_payload_virtual_guest_limit():
    adapter = MeetupAPIAdapter(access_token="tok", group_id="python-berlin")
    payload = adapter.build_payload(make_event(event_type=EventType.VIRTUAL))
    assert payload["guest_limit"] == 1000


@pytest.mark.asyncio
async def test_meetup_create_without_date_fails_without_request():
    recorder = Recorder()
    adapter = MeetupAPIAdapter(access_token="tok", group_id="g", transport=recorder.transport)

    outcome = await adapter.create_event(make_event(date=None))

    assert outcome.success is False
    assert "date" in outcome.error
    assert recorder.requests == []


@pytest.mark.asyncio
async def test_meetup_create_event():
    recorder = Recorder(httpx.Response(201, json={"id": "301234", "status": "upcoming"}))
    adapter = MeetupAPIAdapter(access_token="tok", group_id="python-berlin", transport=recorder.transport)

    outcome = await adapter.create_event(make_event())
    await adapter.close()

    assert outcome.success is True
    assert outcome.platform_event_id == "301234"
    request = recorder.requests[0]
    assert request.method == "POST"
    assert request.url.path == "/python-berlin/events"
    assert request.headers["Authorization"] == "Bearer tok"
    assert body(request)["name"] == "Python Meetup Berlin"


@pytest.mark.asyncio
async def test_meetup_create_rejected():
    recorder = Recorder(httpx.Response(400, text="invalid group"))
    adapter = MeetupAPIAdapter(access_token="tok", group_id="g", transport=recorder.transport)

    outcome = await adapter.create_event(make_event())

    assert outcome.success is False
    assert outcome.platform_event_id is None
    assert "Meetup API Error: 400" in outcome.error


@pytest.mark.asyncio
async def test_meetup_transport_fault_propagates():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    adapter = MeetupAPIAdapter(access_token="tok", group_id="g", transport=httpx.MockTransport(handler))

    with pytest.raises(httpx.ConnectError):
        await adapter.create_event(make_event())


@pytest.mark.asyncio
async def test_meetup_verify_not_found():
    recorder = Recorder(httpx.Response(404, json={"errors": [{"code": "event_error"}]}))
    adapter = MeetupAPIAdapter(access_token="tok", group_id="g", transport=recorder.transport)

    outcome = await adapter.verify_event("301234")

    assert outcome.verified is False
    assert outcome.error == "Event not found or API error: 404"


@pytest.mark.asyncio
async def test_meetup_verify_cancelled():
    recorder = Recorder(httpx.Response(200, json={"id": "301234", "status": "cancelled"}))
    adapter = MeetupAPIAdapter(access_token="tok", group_id="g", transport=recorder.transport)

    outcome = await adapter.verify_event("301234")

    assert outcome.verified is False
    assert "cancelled" in outcome.error


@pytest.mark.asyncio
async def test_meetup_verify_connection():
    recorder = Recorder(
        httpx.Response(200, json={"data": {"self": {"id": "1"}}}),
        httpx.Response(200, json={"errors": [{"message": "unauthorized"}]}),
    )
    adapter = MeetupAPIAdapter(access_token="tok", group_id="g", transport=recorder.transport)

    assert await adapter.verify_connection() is True
    assert await adapter.verify_connection() is False


def test_meetup_from_credentials():
    adapter = MeetupAPIAdapter.from_credentials(
        ApiCredentials(access_token="tok", settings={"group_id": "python-berlin"})
    )
    assert adapter.group_id == "python-berlin"
    assert adapter.access_token == "tok"


@pytest.mark.asyncio
async def test_meetup_update_patches_event():
    recorder = Recorder(httpx.Response(200, json={"id": "301234"}))
    adapter = MeetupAPIAdapter(access_token="tok", group_id="python-berlin", transport=recorder.transport)

    outcome = await adapter.update_event("301234", make_event(title="Python Meetup Berlin #2"))

    assert outcome.success is True
    request = recorder.requests[0]
    assert request.method == "PATCH"
    assert request.url.path == "/python-berlin/events/301234"
    assert body(request)["name"] == "Python Meetup Berlin #2"


@pytest.mark.asyncio
async def test_meetup_delete_event():
    recorder = Recorder(httpx.Response(204), httpx.Response(404, text="gone"))
    adapter = MeetupAPIAdapter(access_token="tok", group_id="python-berlin", transport=recorder.transport)

    deleted = await adapter.delete_event("301234")
    missing = await adapter.delete_event("301234")

    assert deleted.success is True
    assert recorder.requests[0].method == "DELETE"
    assert missing.success is False
    assert "404" in missing.error


# Eventbrite

def test_eventbrite_payload():
    adapter = EventbriteAPIAdapter(access_token="tok", organization_id="42")
    payload = adapter.build_payload(make_event())

    assert payload["name"] == {"html": "Python Meetup Berlin"}
    assert payload["start"] == {"timezone": "Europe/Berlin", "utc": "2025-03-15T18:00:00Z"}
    assert payload["end"] == {"timezone": "Europe/Berlin", "utc": "2025-03-15T20:00:00Z"}
    assert payload["currency"] == "EUR"
    assert payload["capacity"] == 200
    assert payload["online_event"] is False
    assert payload["is_free"] is True
    assert "<strong>Ort:</strong> Betahaus, Berlin" in payload["description"]["html"]


@pytest.mark.asyncio
async def test_eventbrite_free_event_is_not_published_separately():
    recorder = Recorder(httpx.Response(200, json={"id": "555"}))
    adapter = EventbriteAPIAdapter(access_token="tok", organization_id="42", transport=recorder.transport)

    outcome = await adapter.create_event(make_event(price="free"))

    assert outcome.success is True
    assert len(recorder.requests) == 1
    assert recorder.requests[0].url.path == "/v3/organizations/42/events/"
    assert body(recorder.requests[0])["event"]["is_free"] is True


@pytest.mark.asyncio
async def test_eventbrite_paid_event_is_published():
    recorder = Recorder(
        httpx.Response(200, json={"id": "555"}),
        httpx.Response(200, json={"published": True}),
    )
    adapter = EventbriteAPIAdapter(access_token="tok", organization_id="42", transport=recorder.transport)

    outcome = await adapter.create_event(make_event(price="15 EUR", event_type=EventType.VIRTUAL))

    assert outcome.success is True
    assert outcome.platform_event_id == "555"
    assert [r.url.path for r in recorder.requests] == [
        "/v3/organizations/42/events/",
        "/v3/events/555/publish/",
    ]
    payload = body(recorder.requests[0])["event"]
    assert payload["is_free"] is False
    assert payload["online_event"] is True
    assert payload["capacity"] == 1000


@pytest.mark.asyncio
async def test_eventbrite_verify_canceled():
    recorder = Recorder(httpx.Response(200, json={"id": "555", "status": "canceled"}))
    adapter = EventbriteAPIAdapter(access_token="tok", organization_id="42", transport=recorder.transport)

    outcome = await adapter.verify_event("555")

    assert outcome.verified is False
    assert "canceled" in outcome.error


# Facebook

@pytest.mark.parametrize(
    "tags,category,expected",
    [
        (["Music"], None, "MUSIC"),
        (["tech"], None, "EDUCATION"),
        ([], "sport", "SPORTS"),
        (["essen"], None, "FOOD_AND_DRINK"),
        (["knitting"], "handarbeit", "OTHER"),
    ],
)
def test_facebook_category(tags, category, expected):
    assert facebook_category(tags, category) == expected


@pytest.mark.asyncio
async def test_facebook_create_uses_token_param():
    recorder = Recorder(httpx.Response(200, json={"id": "987654"}))
    adapter = FacebookAPIAdapter(access_token="page-token", page_id="1001", transport=recorder.transport)

    outcome = await adapter.create_event(make_event())

    assert outcome.success is True
    request = recorder.requests[0]
    assert request.url.path == "/v18.0/1001/events"
    assert request.url.params["access_token"] == "page-token"
    assert "Authorization" not in request.headers
    payload = body(request)
    assert payload["privacy_type"] == "OPEN"
    assert payload["place"] == {"name": "Betahaus, Berlin"}
    assert payload["start_time"] == "2025-03-15T19:00:00+01:00"
    assert payload["category"] == "EDUCATION"


def test_facebook_virtual_payload():
    adapter = FacebookAPIAdapter(access_token="t", page_id="1001")
    payload = adapter.build_payload(make_event(event_type=EventType.VIRTUAL))

    assert "place" not in payload
    assert payload["online_event_format"] == "third_party"
    assert payload["online_event_third_party_url"] == "https://example.org/python-meetup"


@pytest.mark.asyncio
async def test_facebook_verify_canceled():
    recorder = Recorder(httpx.Response(200, json={"id": "987654", "is_canceled": True}))
    adapter = FacebookAPIAdapter(access_token="t", page_id="1001", transport=recorder.transport)

    outcome = await adapter.verify_event("987654")

    assert outcome.verified is False
    assert recorder.requests[0].url.params["fields"].startswith("id,name")


# Spontacts

def test_spontacts_category():
    assert spontacts_category("Technologie") == "Tech & Innovation"
    assert spontacts_category(None) == "Sonstiges"
    assert spontacts_category("handarbeit") == "Sonstiges"


@pytest.mark.asyncio
async def test_spontacts_create_activity():
    recorder = Recorder(httpx.Response(201, json={"id": 77}))
    adapter = SpontactsAPIAdapter(api_key="key", auth_token="tok", transport=recorder.transport)

    outcome = await adapter.create_event(make_event(price=None, organizer=None))

    assert outcome.success is True
    assert outcome.platform_event_id == "77"
    request = recorder.requests[0]
    assert request.url.path == "/activities"
    assert request.headers["X-API-Key"] == "key"
    assert request.headers["Authorization"] == "Bearer tok"
    payload = body(request)
    assert payload["date"] == "2025-03-15"
    assert payload["time"] == "19:00"
    assert payload["category"] == "Tech & Innovation"
    assert payload["max_participants"] == 50
    assert payload["price"] == "Kostenlos"
    assert payload["organizer"] == "Unbekannt"
    assert payload["requirements"] == "Interessengebiete: python, networking"


@pytest.mark.asyncio
async def test_spontacts_verify_inactive():
    recorder = Recorder(httpx.Response(200, json={"id": 77, "status": "cancelled"}))
    adapter = SpontactsAPIAdapter(api_key="key", transport=recorder.transport)

    outcome = await adapter.verify_event("77")

    assert outcome.verified is False
    assert outcome.error == "Activity is cancelled on Spontacts"
