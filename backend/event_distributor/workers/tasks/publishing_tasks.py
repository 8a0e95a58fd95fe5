"""Background publishing and verification tasks."""

import asyncio
from typing import List, Optional
from uuid import UUID

import structlog
from celery import shared_task
from sqlalchemy.ext.asyncio import async_sessionmaker

from event_distributor.database import async_session_maker
from event_distributor.models.platform_config import Platform, IntegrationMethod
from event_distributor.services.platforms.config_store import PlatformConfigStore
from event_distributor.services.platforms.registry import PlatformRegistry
from event_distributor.services.publishing import (
    PreconditionError,
    PublishOrchestrator,
    VerificationOrchestrator,
)

logger = structlog.get_logger()


def run_async(coro):
    """Run async code in sync context."""
    return asyncio.run(coro)


async def _build_registry(session_factory: async_sessionmaker) -> PlatformRegistry:
    async with session_factory() as session:
        credentials = await PlatformConfigStore(session).load_credentials()
    return PlatformRegistry(credentials)


@shared_task(name="event_distributor.workers.tasks.publishing_tasks.publish_event_task", acks_late=False)
def publish_event_task(event_id: str, platforms: List[str], method: str) -> dict:
    """Publish an event to several platforms.

    Args:
        event_id: UUID of the event
        platforms: Platform names (e.g., "meetup", "eventbrite")
        method: "api" or "automation"

    Returns:
        Dictionary with per-platform results and summary
    """
    return run_async(_publish_event(event_id, platforms, method))


@shared_task(name="event_distributor.workers.tasks.publishing_tasks.verify_event_task", acks_late=False)
def verify_event_task(event_id: str) -> dict:
    """Verify every publication of an event."""
    return run_async(_verify_event(event_id))


async def _publish_event(
    event_id: str,
    platforms: List[str],
    method: str,
    session_factory: Optional[async_sessionmaker] = None,
) -> dict:
    """Async implementation of background publishing."""
    session_factory = session_factory or async_session_maker
    registry = await _build_registry(session_factory)
    try:
        orchestrator = PublishOrchestrator(session_factory, registry)
        report = await orchestrator.publish(
            UUID(event_id),
            [Platform(p) for p in platforms],
            IntegrationMethod(method),
        )
        return report.to_dict()
    except PreconditionError as e:
        logger.warning("Background publish rejected", event_id=event_id, error=str(e))
        return {"event_id": event_id, "error": str(e)}
    finally:
        await registry.close_all()


async def _verify_event(
    event_id: str,
    session_factory: Optional[async_sessionmaker] = None,
) -> dict:
    """Async implementation of background verification."""
    session_factory = session_factory or async_session_maker
    registry = await _build_registry(session_factory)
    try:
        orchestrator = VerificationOrchestrator(session_factory, registry)
        report = await orchestrator.verify_event(UUID(event_id))
        return report.to_dict()
    except PreconditionError as e:
        logger.warning("Background verification rejected", event_id=event_id, error=str(e))
        return {"event_id": event_id, "error": str(e)}
    finally:
        await registry.close_all()
