"""
Asynchronous Database Utilities Module

Builds the SQLAlchemy async engine and session factory for the primary store
(PostgreSQL through asyncpg). Nothing is created at import time: the FastAPI
lifespan calls :func:`build_engine` once at startup and disposes the engine at
shutdown, and tests build their own.

**Security Note**: Ensure that DATABASE_URL is configured for SSL/TLS when
connecting over untrusted networks. asyncpg does not understand ``sslmode``;
it is stripped from the URL and SSL must be requested with ``ssl=require``.
Never log the assembled URL, it carries the database password.
"""

import urllib.parse as urlparse

import structlog
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

from cardvault.core.config.settings import Settings
from cardvault.domain import entities  # noqa: F401  (registers the tables on SQLModel.metadata)

logger = structlog.get_logger(__name__)


def _build_async_url(database_url: str) -> str:
    """
    Normalize the configured URL for the asyncpg driver.

    Replaces a sync driver with asyncpg and drops the ``sslmode`` query
    parameter, which asyncpg rejects.
    """
    async_url = database_url.replace("postgresql+psycopg2", "postgresql+asyncpg")
    if async_url.startswith("postgresql://"):
        async_url = "postgresql+asyncpg://" + async_url[len("postgresql://"):]
    parsed = urlparse.urlparse(async_url)
    query = dict(urlparse.parse_qsl(parsed.query))
    query.pop("sslmode", None)
    parsed = parsed._replace(query=urlparse.urlencode(query))
    return urlparse.urlunparse(parsed)


def build_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine with the configured pool limits."""
    url = make_url(_build_async_url(settings.DATABASE_URL))
    engine = create_async_engine(
        url,
        echo=False,
        pool_size=settings.POSTGRES_POOL_SIZE,
        max_overflow=settings.POSTGRES_MAX_OVERFLOW,
        pool_timeout=settings.POSTGRES_POOL_TIMEOUT,
        pool_pre_ping=True,
    )
    logger.info("Database engine created", host=url.host, database=url.database)
    return engine


def build_session_factory(engine: AsyncEngine) -> sessionmaker:
    """
    Session factory bound to ``engine``.

    ``expire_on_commit`` is off so entities stay readable after the
    transaction that loaded them has committed.
    """
    return sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)  # type: ignore[call-overload]


async def create_db_and_tables(engine: AsyncEngine) -> None:
    """Create all tables (test suites and local development; production uses alembic)."""
    logger.info("Creating database tables")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("Database tables created")
