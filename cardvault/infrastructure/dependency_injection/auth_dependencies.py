"""Wiring of the authentication services.

:func:`build_auth_service` assembles the orchestrator from settings and the
long-lived clients created by the application lifespan. The FastAPI
dependencies below only read what the lifespan stored on ``app.state``, so
tests override :func:`get_auth_service` to run the routes against fakes.
"""

from typing import Annotated, Optional

from fastapi import Depends, Request
from redis.asyncio import Redis
from sqlalchemy.orm import sessionmaker

from cardvault.core.config.settings import Settings
from cardvault.domain.interfaces.services import IEmailSender, IEventPublisher
from cardvault.domain.services.auth.auth_service import AuthService
from cardvault.domain.services.auth.session import SessionService
from cardvault.infrastructure.database.transaction import SQLAlchemyTransactionManager
from cardvault.infrastructure.redis import RedisSessionStore
from cardvault.infrastructure.repositories.account_repository import AccountRepository
from cardvault.infrastructure.repositories.deck_provisioner import DefaultDeckProvisioner
from cardvault.infrastructure.services.email.account_email_service import AccountEmailService
from cardvault.infrastructure.services.email.smtp_sender import SmtpEmailSender
from cardvault.infrastructure.services.event_publisher import InMemoryEventPublisher


def build_auth_service(
    settings: Settings,
    session_factory: sessionmaker,
    redis_client: Redis,
    event_publisher: Optional[IEventPublisher] = None,
    email_sender: Optional[IEmailSender] = None,
) -> AuthService:
    """Assemble an :class:`AuthService` over PostgreSQL and Redis.

    Args:
        settings: Validated application settings.
        session_factory: Factory for the primary store's ``AsyncSession``.
        redis_client: Client backing the session store.
        event_publisher: Defaults to an :class:`InMemoryEventPublisher`.
        email_sender: Defaults to an SMTP sender honoring ``EMAIL_TEST_MODE``.
    """
    config = settings.auth_config()
    transaction_manager = SQLAlchemyTransactionManager(session_factory)
    account_emails = AccountEmailService(
        sender=email_sender or SmtpEmailSender(settings),
        app_base_url=settings.APP_BASE_URL,
        app_name=settings.PROJECT_NAME,
        password_reset_ttl=config.password_reset_token_ttl,
        email_verification_ttl=config.email_verification_token_ttl,
        templates_dir=settings.EMAIL_TEMPLATES_DIR or None,
    )
    return AuthService(
        config=config,
        account_repository=AccountRepository(transaction_manager),
        resource_provisioner=DefaultDeckProvisioner(transaction_manager),
        event_publisher=event_publisher or InMemoryEventPublisher(),
        transaction_manager=transaction_manager,
        session_service=SessionService(RedisSessionStore(redis_client), config),
        account_email_service=account_emails,
    )


def get_auth_service(request: Request) -> AuthService:
    """The orchestrator built at startup."""
    return request.app.state.auth_service


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
