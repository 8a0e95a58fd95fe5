"""Tests for the shared payload helpers and event tag handling."""

from datetime import date, time

import pytest

from event_distributor.models.event import Event, EventType, dedupe_tags
from event_distributor.services.platforms.formatting import (
    event_end,
    event_start,
    html_description,
    is_free,
    text_description,
)


@pytest.mark.parametrize("price", [None, "", "   ", "Kostenlos", "kostenlos!", "FREE", "Free entry"])
def test_is_free(price):
    assert is_free(price) is True


@pytest.mark.parametrize("price", ["10 EUR", "5€", "Spende erbeten"])
def test_is_not_free(price):
    assert is_free(price) is False


def test_dedupe_tags_keeps_first_occurrence():
    assert dedupe_tags(["python", "berlin", "python", " berlin ", ""]) == ["python", "berlin"]


def test_event_tags_are_deduplicated_on_assignment():
    event = Event(title="Tags", tags=["a", "b", "a"])
    assert event.tags == ["a", "b"]

    event.tags = ["c", "c"]
    assert event.tags == ["c"]


def test_event_start_uses_configured_timezone():
    event = Event(title="Start", date=date(2025, 7, 1), time=time(18, 30))
    start = event_start(event)
    assert start.hour == 18
    assert start.utcoffset().total_seconds() == 2 * 3600  # CEST

    end = event_end(event)
    assert (end - start).total_seconds() == 2 * 3600


def test_event_start_without_date():
    assert event_start(Event(title="Someday")) is None
    assert event_end(Event(title="Someday")) is None


def test_event_start_without_time_is_midnight():
    start = event_start(Event(title="All day", date=date(2025, 1, 10)))
    assert (start.hour, start.minute) == (0, 0)


def test_text_description_appends_details():
    event = Event(
        title="Details",
        description="Intro",
        organizer="PUG",
        price="Kostenlos",
        tags=["python", "web"],
        url="https://example.org",
    )
    text = text_description(event)
    assert text.startswith("Intro")
    assert "Veranstalter: PUG" in text
    assert "Preis: Kostenlos" in text
    assert "Tags: python, web" in text
    assert "Weitere Informationen: https://example.org" in text

    assert "https://example.org" not in text_description(event, include_url=False)


def test_html_description_escapes_content():
    event = Event(title="HTML", description="<b>bold</b>", location="Café & Bar", event_type=EventType.LIVE)
    html = html_description(event)
    assert "&lt;b&gt;bold&lt;/b&gt;" in html
    assert "<strong>Ort:</strong> Café &amp; Bar" in html
