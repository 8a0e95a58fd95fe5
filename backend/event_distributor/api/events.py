"""Event management API endpoints."""

from datetime import date as date_type, datetime, time as time_type
from typing import List, Optional
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile, status
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from event_distributor.database import get_db
from event_distributor.models.event import Event, EventType
from event_distributor.services.events.csv_io import export_events_csv, parse_events_csv, template_csv

logger = structlog.get_logger()
router = APIRouter()


# Pydantic schemas
class EventCreate(BaseModel):
    """Schema for creating an event."""
    title: str = Field(..., min_length=1, max_length=300)
    description: Optional[str] = None
    date: Optional[date_type] = None
    time: Optional[time_type] = None
    location: Optional[str] = Field(None, max_length=500)
    category: Optional[str] = Field(None, max_length=100)
    organizer: Optional[str] = Field(None, max_length=200)
    url: Optional[str] = Field(None, max_length=1000)
    price: Optional[str] = Field(None, max_length=100, description="Free text, e.g. 'Kostenlos' or '10 EUR'")
    tags: List[str] = Field(default_factory=list)
    image_urls: List[str] = Field(default_factory=list)
    event_type: EventType = EventType.LIVE


class EventUpdate(BaseModel):
    """Schema for updating an event."""
    title: Optional[str] = Field(None, min_length=1, max_length=300)
    description: Optional[str] = None
    date: Optional[date_type] = None
    time: Optional[time_type] = None
    location: Optional[str] = Field(None, max_length=500)
    category: Optional[str] = Field(None, max_length=100)
    organizer: Optional[str] = Field(None, max_length=200)
    url: Optional[str] = Field(None, max_length=1000)
    price: Optional[str] = Field(None, max_length=100)
    tags: Optional[List[str]] = None
    image_urls: Optional[List[str]] = None
    event_type: Optional[EventType] = None


class EventResponse(BaseModel):
    """Schema for event response."""
    id: UUID
    title: str
    description: Optional[str] = None
    date: Optional[date_type] = None
    time: Optional[time_type] = None
    location: Optional[str] = None
    category: Optional[str] = None
    organizer: Optional[str] = None
    url: Optional[str] = None
    price: Optional[str] = None
    tags: List[str]
    image_urls: List[str]
    event_type: EventType
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CSVImportResponse(BaseModel):
    """Result of a CSV import."""
    imported: int
    total_rows: int
    errors: List[dict]
    event_ids: List[UUID]


async def _get_event_or_404(db: AsyncSession, event_id: UUID) -> Event:
    event = await db.get(Event, event_id)
    if not event:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Event not found",
        )
    return event


async def _read_csv_upload(file: UploadFile) -> str:
    raw = await file.read()
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="CSV file must be UTF-8 encoded",
        )


@router.get("/", response_model=List[EventResponse])
async def list_events(
    skip: int = 0,
    limit: int = 100,
    db: AsyncSession = Depends(get_db),
):
    """List events, newest first."""
    query = select(Event).order_by(Event.created_at.desc()).offset(skip).limit(limit)
    result = await db.execute(query)
    return result.scalars().all()


@router.post("/", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    event_data: EventCreate,
    db: AsyncSession = Depends(get_db),
):
    """Create a new event."""
    event = Event(**event_data.model_dump())
    db.add(event)
    await db.commit()
    await db.refresh(event)

    logger.info("Created event", event_id=str(event.id), title=event.title)
    return event


@router.get("/export/csv")
async def export_csv(db: AsyncSession = Depends(get_db)):
    """Download all events as CSV."""
    result = await db.execute(select(Event).order_by(Event.created_at.desc()))
    content = export_events_csv(result.scalars().all())
    filename = f"events_export_{datetime.utcnow().date().isoformat()}.csv"
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/template/csv")
async def download_template():
    """Download an example CSV to fill in."""
    return Response(
        content=template_csv(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="events_template.csv"'},
    )


@router.post("/validate/csv")
async def validate_csv(file: UploadFile = File(...)):
    """Check a CSV file without importing it."""
    content = await _read_csv_upload(file)
    try:
        parsed = parse_events_csv(content)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return {
        "valid": not parsed.errors,
        "valid_rows": len(parsed.valid),
        "total_rows": parsed.total_rows,
        "errors": [e.to_dict() for e in parsed.errors],
    }


@router.post("/import/csv", response_model=CSVImportResponse)
async def import_csv(
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
):
    """Import events from CSV.

    Valid rows are inserted; invalid rows are reported with their row number.
    """
    content = await _read_csv_upload(file)
    try:
        parsed = parse_events_csv(content)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    events = [Event(**fields) for fields in parsed.valid]
    db.add_all(events)
    await db.commit()

    logger.info(
        "Imported events from CSV",
        imported=len(events),
        rejected=len(parsed.errors),
    )
    return CSVImportResponse(
        imported=len(events),
        total_rows=parsed.total_rows,
        errors=[e.to_dict() for e in parsed.errors],
        event_ids=[e.id for e in events],
    )


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(
    event_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Get a specific event."""
    return await _get_event_or_404(db, event_id)


@router.patch("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: UUID,
    updates: EventUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Update an event."""
    event = await _get_event_or_404(db, event_id)

    update_data = updates.model_dump(exclude_unset=True)
    if "title" in update_data and not update_data["title"]:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="title cannot be empty",
        )
    for field, value in update_data.items():
        setattr(event, field, value)

    await db.commit()
    await db.refresh(event)
    return event


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(
    event_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Delete an event and its publication history."""
    event = await _get_event_or_404(db, event_id)
    await db.delete(event)
    await db.commit()
    logger.info("Deleted event", event_id=str(event_id))
