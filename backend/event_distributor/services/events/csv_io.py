"""CSV import and export of events."""

import csv
import io
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, Dict, Iterable, List, Optional, Tuple

from event_distributor.models.event import Event, EventType

CSV_COLUMNS = [
    "title",
    "description",
    "date",
    "time",
    "location",
    "category",
    "tags",
    "price",
    "event_type",
    "image_urls",
    "organizer",
    "url",
]

LIST_SEPARATOR = ";"

TEMPLATE_ROW = {
    "title": "Python Meetup Berlin",
    "description": "Vorträge und Austausch rund um Python",
    "date": "2025-03-15",
    "time": "19:00",
    "location": "Betahaus, Berlin",
    "category": "technologie",
    "tags": "python;networking",
    "price": "Kostenlos",
    "event_type": "live",
    "image_urls": "",
    "organizer": "Python User Group",
    "url": "https://example.org/python-meetup",
}


@dataclass
class RowError:
    """Validation problems of one CSV row (1-based, header is row 1)."""
    row: int
    errors: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {"row": self.row, "errors": self.errors}


@dataclass
class ParsedCSV:
    valid: List[Dict[str, Any]] = field(default_factory=list)
    errors: List[RowError] = field(default_factory=list)

    @property
    def total_rows(self) -> int:
        return len(self.valid) + len(self.errors)


def _split_list(value: str) -> List[str]:
    return [part.strip() for part in value.split(LIST_SEPARATOR) if part.strip()]


def event_to_row(event: Event) -> Dict[str, str]:
    return {
        "title": event.title,
        "description": event.description or "",
        "date": event.date.isoformat() if event.date else "",
        "time": event.time.strftime("%H:%M") if event.time else "",
        "location": event.location or "",
        "category": event.category or "",
        "tags": LIST_SEPARATOR.join(event.tags or []),
        "price": event.price or "",
        "event_type": event.event_type.value if event.event_type else EventType.LIVE.value,
        "image_urls": LIST_SEPARATOR.join(event.image_urls or []),
        "organizer": event.organizer or "",
        "url": event.url or "",
    }


def _write(rows: Iterable[Dict[str, str]]) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=CSV_COLUMNS)
    writer.writeheader()
    for row in rows:
        writer.writerow(row)
    return buffer.getvalue()


def export_events_csv(events: Iterable[Event]) -> str:
    """Render events as CSV text with a header row."""
    return _write(event_to_row(event) for event in events)


def template_csv() -> str:
    """CSV with the header and one example row."""
    return _write([TEMPLATE_ROW])


def _parse_row(raw: Dict[str, Optional[str]]) -> Tuple[Dict[str, Any], List[str]]:
    values = {column: (raw.get(column) or "").strip() for column in CSV_COLUMNS}
    errors = []

    if not values["title"]:
        errors.append("title is required")

    event_date: Optional[date] = None
    if values["date"]:
        try:
            event_date = datetime.strptime(values["date"], "%Y-%m-%d").date()
        except ValueError:
            errors.append(f"invalid date '{values['date']}', expected YYYY-MM-DD")

    event_time: Optional[time] = None
    if values["time"]:
        try:
            event_time = datetime.strptime(values["time"], "%H:%M").time()
        except ValueError:
            errors.append(f"invalid time '{values['time']}', expected HH:MM")

    event_type = EventType.LIVE
    if values["event_type"]:
        try:
            event_type = EventType(values["event_type"].lower())
        except ValueError:
            allowed = ", ".join(t.value for t in EventType)
            errors.append(f"invalid event_type '{values['event_type']}', expected one of {allowed}")

    fields = {
        "title": values["title"],
        "description": values["description"] or None,
        "date": event_date,
        "time": event_time,
        "location": values["location"] or None,
        "category": values["category"] or None,
        "tags": _split_list(values["tags"]),
        "price": values["price"] or None,
        "event_type": event_type,
        "image_urls": _split_list(values["image_urls"]),
        "organizer": values["organizer"] or None,
        "url": values["url"] or None,
    }
    return fields, errors


def parse_events_csv(content: str) -> ParsedCSV:
    """Parse and validate CSV text.

    Args:
        content: CSV text with a header row

    Returns:
        ParsedCSV with Event keyword arguments for valid rows and the
        problems found in the others

    Raises:
        ValueError: The header lacks the title column
    """
    reader = csv.DictReader(io.StringIO(content.lstrip("﻿")))
    if not reader.fieldnames or "title" not in [name.strip() for name in reader.fieldnames]:
        raise ValueError("CSV header must contain a 'title' column")
    reader.fieldnames = [name.strip() for name in reader.fieldnames]

    parsed = ParsedCSV()
    for row_number, raw in enumerate(reader, start=2):
        if not any((value or "").strip() for value in raw.values() if isinstance(value, str)):
            continue
        fields, errors = _parse_row(raw)
        if errors:
            parsed.errors.append(RowError(row=row_number, errors=errors))
        else:
            parsed.valid.append(fields)
    return parsed
