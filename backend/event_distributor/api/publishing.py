"""Publishing and verification API endpoints."""

from typing import List, Literal, Optional
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from event_distributor.database import get_db, get_session_factory
from event_distributor.models.event import Event
from event_distributor.models.platform_config import Platform, IntegrationMethod
from event_distributor.models.publication_log import PublicationLog
from event_distributor.api.deps import get_registry
from event_distributor.services.platforms.registry import PlatformRegistry
from event_distributor.services.publishing import (
    EventNotFoundError,
    LogNotFoundError,
    NoLogsError,
    NoTargetsError,
    PublicationLogStore,
    PublishOrchestrator,
    VerificationOrchestrator,
)

logger = structlog.get_logger()
router = APIRouter()


class PublishRequest(BaseModel):
    """Publish one event to several platforms."""
    event_id: UUID
    platforms: List[Platform] = Field(..., description="Target platforms; duplicates publish twice")
    method: IntegrationMethod = IntegrationMethod.API


class VerifyRequest(BaseModel):
    """Verify publications by log ID or for a whole event."""
    action: Literal["verify_single", "verify_batch", "verify_event"]
    event_id: Optional[UUID] = None
    log_ids: List[UUID] = Field(default_factory=list)


class PublicationLogResponse(BaseModel):
    """Schema for publication log response."""
    id: UUID
    event_id: UUID
    platform: Platform
    method: IntegrationMethod
    status: str
    platform_event_id: Optional[str] = None
    create_error: Optional[dict] = None
    verify_error: Optional[dict] = None
    error_details: Optional[dict] = None
    screenshot_ref: Optional[str] = None
    published_at: str
    verified_at: Optional[str] = None


def _log_to_response(log: PublicationLog) -> PublicationLogResponse:
    return PublicationLogResponse(
        id=log.id,
        event_id=log.event_id,
        platform=log.platform,
        method=log.method,
        status=log.status.value,
        platform_event_id=log.platform_event_id,
        create_error=log.create_error,
        verify_error=log.verify_error,
        error_details=log.error_details,
        screenshot_ref=log.screenshot_ref,
        published_at=log.published_at.isoformat(),
        verified_at=log.verified_at.isoformat() if log.verified_at else None,
    )


def _not_found(e: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


@router.post("/publish")
async def publish_event(
    request: PublishRequest,
    background: bool = False,
    db: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker = Depends(get_session_factory),
    registry: PlatformRegistry = Depends(get_registry),
):
    """Publish an event to the selected platforms.

    With ``background=true`` the work is queued for a Celery worker and the
    task ID is returned right away.
    """
    if background:
        if await db.get(Event, request.event_id) is None:
            raise _not_found(EventNotFoundError(request.event_id))
        if not request.platforms:
            raise _bad_request(str(NoTargetsError()))

        from event_distributor.workers.celery_app import celery_app  # noqa: F401
        from event_distributor.workers.tasks.publishing_tasks import publish_event_task

        task = publish_event_task.delay(
            str(request.event_id),
            [p.value for p in request.platforms],
            request.method.value,
        )
        logger.info("Queued publish task", event_id=str(request.event_id), task_id=task.id)
        return JSONResponse(
            status_code=status.HTTP_202_ACCEPTED,
            content={"task_id": task.id, "status": "queued"},
        )

    orchestrator = PublishOrchestrator(session_factory, registry)
    try:
        report = await orchestrator.publish(request.event_id, request.platforms, request.method)
    except EventNotFoundError as e:
        raise _not_found(e)
    except NoTargetsError as e:
        raise _bad_request(str(e))
    except Exception as e:
        logger.error("Publishing failed", event_id=str(request.event_id), error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e),
        )
    return report.to_dict()


@router.post("/verify")
async def verify_publications(
    request: VerifyRequest,
    session_factory: async_sessionmaker = Depends(get_session_factory),
    registry: PlatformRegistry = Depends(get_registry),
):
    """Re-check published events on their platforms."""
    orchestrator = VerificationOrchestrator(session_factory, registry)
    try:
        if request.action == "verify_single":
            if len(request.log_ids or []) != 1:
                raise _bad_request("verify_single takes exactly one log ID; use verify_batch for several")
            async with session_factory() as session:
                if await PublicationLogStore(session).get(request.log_ids[0]) is None:
                    raise LogNotFoundError(request.log_ids[0])
            report = await orchestrator.verify_logs(request.log_ids)
        elif request.action == "verify_batch":
            if not request.log_ids:
                raise _bad_request("log_ids is required for verify_batch")
            report = await orchestrator.verify_logs(request.log_ids)
        else:
            if request.event_id is None:
                raise _bad_request("event_id is required for verify_event")
            report = await orchestrator.verify_event(request.event_id)
    except HTTPException:
        raise
    except (LogNotFoundError, NoLogsError) as e:
        raise _not_found(e)
    except Exception as e:
        logger.error("Verification failed", action=request.action, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e),
        )
    return report.to_dict()


@router.get("/status/{event_id}")
async def get_publication_status(
    event_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Current status per platform and method, with counts."""
    if await db.get(Event, event_id) is None:
        raise _not_found(EventNotFoundError(event_id))
    return await PublicationLogStore(db).status_summary(event_id)


@router.get("/logs/{event_id}", response_model=List[PublicationLogResponse])
async def get_publication_logs(
    event_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Full publication history of an event, newest first."""
    if await db.get(Event, event_id) is None:
        raise _not_found(EventNotFoundError(event_id))
    logs = await PublicationLogStore(db).list_by_event(event_id)
    return [_log_to_response(log) for log in logs]


@router.get("/logs/{event_id}/latest", response_model=PublicationLogResponse)
async def get_latest_publication_log(
    event_id: UUID,
    platform: Platform,
    method: IntegrationMethod = IntegrationMethod.API,
    db: AsyncSession = Depends(get_db),
):
    """Most recent attempt for one platform and method."""
    if await db.get(Event, event_id) is None:
        raise _not_found(EventNotFoundError(event_id))
    log = await PublicationLogStore(db).latest(event_id, platform, method)
    if log is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No {method.value} publication to {platform.value} for event {event_id}",
        )
    return _log_to_response(log)
