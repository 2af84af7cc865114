"""Application lifecycle management.

Creates the long-lived clients at startup (database engine, Redis client),
assembles the auth orchestrator on ``app.state`` and releases everything at
shutdown.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from cardvault.core.config.settings import Settings
from cardvault.core.exceptions import CacheStoreError
from cardvault.core.logging import logger
from cardvault.infrastructure.database.async_db import build_engine, build_session_factory, create_db_and_tables
from cardvault.infrastructure.dependency_injection.auth_dependencies import build_auth_service
from cardvault.infrastructure.redis import RedisSessionStore, create_redis_client


def create_lifespan_manager(settings: Settings):
    """Create the application lifespan manager.

    Returns:
        AsyncContextManager: The lifespan manager for the FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown of the application's resources.

        Raises:
            ValueError: If required settings (signing key, store URLs) are missing.
        """
        settings.validate_required_fields()

        engine = build_engine(settings)
        if settings.APP_ENV == "development":
            # Staging and production schemas are managed by alembic
            await create_db_and_tables(engine)
        redis_client = create_redis_client(settings)
        try:
            await RedisSessionStore(redis_client).ping()
        except CacheStoreError:
            # Requests needing the session store fail with 500 until Redis is back.
            logger.warning("session_store_unavailable_on_startup")

        app.state.settings = settings
        app.state.auth_service = build_auth_service(settings, build_session_factory(engine), redis_client)
        logger.info("application_startup", env=settings.APP_ENV, version=settings.VERSION)

        try:
            yield
        finally:
            await redis_client.aclose()
            await engine.dispose()
            logger.info("application_shutdown", env=settings.APP_ENV)

    return lifespan
