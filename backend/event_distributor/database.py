"""Database engine, sessions and the declarative base."""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
import structlog

from event_distributor.config import get_settings

logger = structlog.get_logger()
settings = get_settings()


class Base(DeclarativeBase):
    """Declarative base shared by events, publication logs and platform configs."""
    pass


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine for PostgreSQL (asyncpg) or SQLite (aiosqlite).

    SQLite connections wait for locks instead of failing at once, since
    publish targets write concurrently through separate sessions.
    """
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=echo, connect_args={"timeout": 30})
    return create_async_engine(url, echo=echo, pool_pre_ping=True)


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker:
    # Objects stay readable after commit; orchestrators hand them across sessions
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


engine = build_engine(settings.async_database_url, echo=settings.debug)
async_session_maker = build_session_factory(engine)


async def create_tables(bind: AsyncEngine):
    """Create every table registered on ``Base``."""
    # Registers the models on Base.metadata
    from event_distributor.models import event, publication_log, platform_config  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def init_db():
    """Create missing tables on startup (migrations handle schema changes)."""
    await create_tables(engine)
    logger.info("Database tables initialized", url=engine.url.render_as_string(hide_password=True))


async def get_db() -> AsyncSession:
    """Request-scoped session, committed when the request succeeds."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_session_factory() -> async_sessionmaker:
    """Dependency returning the session factory.

    Publishing batches open one session per target so concurrent targets
    never share a session.
    """
    return async_session_maker
