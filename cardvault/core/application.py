"""Application factory for creating and configuring the FastAPI application."""

from typing import Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from cardvault.adapters.api.v1 import api_router
from cardvault.core.config.settings import Settings, create_settings
from cardvault.core.handlers import register_exception_handlers
from cardvault.core.lifecycle import create_lifespan_manager
from cardvault.core.middleware import configure_middleware


def create_application(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to run with; loaded from the environment if omitted.

    Returns:
        FastAPI: The configured FastAPI application instance
    """
    settings = settings or create_settings()
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="Account credentials and session tokens for cardvault.",
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url=None,
        lifespan=create_lifespan_manager(settings),
        default_response_class=JSONResponse,
    )
    app.state.settings = settings

    configure_middleware(app, settings)
    register_exception_handlers(app)
    app.include_router(api_router, prefix="/api/v1")

    return app
