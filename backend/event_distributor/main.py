"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
import structlog

from event_distributor.config import get_settings
from event_distributor.database import async_session_maker, init_db
from event_distributor.api import auth, events, platforms, publishing
from event_distributor.services.oauth import OAuthStateStore
from event_distributor.services.platforms.config_store import PlatformConfigStore
from event_distributor.services.platforms.registry import PlatformRegistry

logger = structlog.get_logger()
settings = get_settings()

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables, build the adapter registry, release adapters on shutdown."""
    logger.info("Starting Event Distributor", app_name=settings.app_name)
    await init_db()

    async with async_session_maker() as session:
        credentials = await PlatformConfigStore(session).load_credentials()
    app.state.registry = PlatformRegistry(credentials)
    app.state.oauth_states = OAuthStateStore(ttl_seconds=settings.oauth_state_ttl_seconds)
    logger.info(
        "Platform adapters configured",
        pairs=len(credentials),
        simulation=settings.platform_simulation,
    )

    try:
        yield
    finally:
        await app.state.registry.close_all()
        logger.info("Shutting down Event Distributor")


app = FastAPI(
    title=settings.app_name,
    description="Publish events to Meetup, Eventbrite, Facebook and Spontacts from one dashboard",
    version=VERSION,
    lifespan=lifespan,
    redoc_url=None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(events.router, prefix="/api/events", tags=["Events"])
app.include_router(publishing.router, prefix="/api/publishing", tags=["Publishing"])
app.include_router(platforms.router, prefix="/api/platforms", tags=["Platforms"])
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])


@app.get("/health")
async def health_check(request: Request):
    """Liveness probe; also reports whether adapters are simulated."""
    registry = getattr(request.app.state, "registry", None)
    return {
        "status": "healthy",
        "app": settings.app_name,
        "simulation": settings.platform_simulation,
        "configured_pairs": len(registry.credentials) if registry else None,
    }


@app.get("/")
async def root():
    return {
        "app": settings.app_name,
        "version": VERSION,
        "docs": "/docs",
        "health": "/health",
        "platforms": "/api/platforms/",
    }
