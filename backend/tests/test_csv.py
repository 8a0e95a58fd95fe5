"""Tests for event CSV import and export."""

from datetime import date, time

import pytest

from event_distributor.models.event import Event, EventType
from event_distributor.services.events.csv_io import (
    CSV_COLUMNS,
    export_events_csv,
    parse_events_csv,
    template_csv,
)

HEADER = ",".join(CSV_COLUMNS)


def test_template_parses_cleanly():
    parsed = parse_events_csv(template_csv())

    assert parsed.errors == []
    assert len(parsed.valid) == 1
    assert parsed.valid[0]["tags"] == ["python", "networking"]
    assert parsed.valid[0]["date"] == date(2025, 3, 15)


def test_export_then_parse_keeps_fields():
    event = Event(
        title="Sommerfest",
        date=date(2025, 7, 5),
        time=time(16, 0),
        location="Tempelhofer Feld",
        tags=["fest", "sommer"],
        image_urls=["https://example.org/a.jpg"],
        price="Kostenlos",
        event_type=EventType.HYBRID,
    )

    parsed = parse_events_csv(export_events_csv([event]))

    row = parsed.valid[0]
    assert row["title"] == "Sommerfest"
    assert row["time"] == time(16, 0)
    assert row["event_type"] == EventType.HYBRID
    assert row["image_urls"] == ["https://example.org/a.jpg"]
    assert row["description"] is None


def test_row_validation():
    content = "\n".join([
        HEADER,
        ",no title,,,,,,,,,,",
        "Bad date,,15.03.2025,,,,,,,,,",
        "Bad time,,2025-03-15,7pm,,,,,,,,",
        "Bad type,,,,,,,,outdoor,,,",
        "Good,,2025-03-15,19:00,,,a;b;a,,VIRTUAL,,,",
        ",,,,,,,,,,,",
    ])

    parsed = parse_events_csv(content)

    assert parsed.total_rows == 5
    assert [e.row for e in parsed.errors] == [2, 3, 4, 5]
    assert parsed.errors[0].errors == ["title is required"]
    assert "expected YYYY-MM-DD" in parsed.errors[1].errors[0]
    assert "expected HH:MM" in parsed.errors[2].errors[0]
    assert "event_type" in parsed.errors[3].errors[0]

    good = parsed.valid[0]
    assert good["event_type"] == EventType.VIRTUAL
    assert Event(**good).tags == ["a", "b"]


def test_header_without_title():
    with pytest.raises(ValueError):
        parse_events_csv("name,date\nfoo,2025-01-01\n")


def test_missing_optional_columns_are_allowed():
    parsed = parse_events_csv("title,date\nMinimal,2025-01-01\n")

    assert parsed.valid[0]["title"] == "Minimal"
    assert parsed.valid[0]["event_type"] == EventType.LIVE
    assert parsed.valid[0]["tags"] == []
