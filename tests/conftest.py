from datetime import timedelta

import pytest

from cardvault.domain.services.auth.auth_service import AuthService
from cardvault.domain.services.auth.credentials import CredentialValidator
from cardvault.domain.services.auth.session import SessionService
from cardvault.domain.services.auth.token import TokenService
from cardvault.domain.value_objects.auth_config import AuthConfig
from cardvault.infrastructure.services.event_publisher import InMemoryEventPublisher
from tests.fakes import (
    FakeTransactionManager,
    InMemoryAccountRepository,
    InMemoryDeckProvisioner,
    InMemorySessionStore,
    RecordingAccountEmailService,
)

TEST_SECRET = "test-secret-key-that-is-long-enough-for-hs256"


@pytest.fixture
def auth_config() -> AuthConfig:
    # Minimum bcrypt cost keeps the suite fast
    return AuthConfig(
        jwt_secret_key=TEST_SECRET,
        access_token_ttl=timedelta(minutes=15),
        refresh_token_ttl=timedelta(days=7),
        password_reset_token_ttl=timedelta(minutes=60),
        email_verification_token_ttl=timedelta(hours=24),
        bcrypt_rounds=4,
    )


@pytest.fixture
def credential_validator(auth_config) -> CredentialValidator:
    return CredentialValidator(auth_config)


@pytest.fixture
def token_service(auth_config) -> TokenService:
    return TokenService(auth_config)


@pytest.fixture
def session_store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def session_service(session_store, auth_config) -> SessionService:
    return SessionService(session_store, auth_config)


@pytest.fixture
def account_repository() -> InMemoryAccountRepository:
    return InMemoryAccountRepository()


@pytest.fixture
def deck_provisioner() -> InMemoryDeckProvisioner:
    return InMemoryDeckProvisioner()


@pytest.fixture
def transaction_manager(account_repository, deck_provisioner) -> FakeTransactionManager:
    return FakeTransactionManager(account_repository, deck_provisioner)


@pytest.fixture
def event_publisher() -> InMemoryEventPublisher:
    return InMemoryEventPublisher()


@pytest.fixture
def account_emails() -> RecordingAccountEmailService:
    return RecordingAccountEmailService()


@pytest.fixture
def auth_service(
    auth_config,
    account_repository,
    deck_provisioner,
    event_publisher,
    transaction_manager,
    session_service,
    account_emails,
    token_service,
    credential_validator,
) -> AuthService:
    return AuthService(
        config=auth_config,
        account_repository=account_repository,
        resource_provisioner=deck_provisioner,
        event_publisher=event_publisher,
        transaction_manager=transaction_manager,
        session_service=session_service,
        account_email_service=account_emails,
        token_service=token_service,
        credential_validator=credential_validator,
    )
