"""Account Domain Events.

These events represent significant business occurrences in the account domain
that other parts of the system may need to react to (welcome flows, analytics,
security monitoring).
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import ClassVar, Optional


@dataclass(frozen=True)
class BaseDomainEvent:
    """Base class for all domain events.

    Attributes:
        occurred_at: When the event occurred
        account_id: ID of the account associated with the event
    """

    event_type: ClassVar[str] = "domain_event"

    occurred_at: datetime
    account_id: int

    def __post_init__(self):
        """Ensure occurred_at is timezone-aware."""
        if not self.occurred_at.tzinfo:
            object.__setattr__(self, "occurred_at", self.occurred_at.replace(tzinfo=timezone.utc))


@dataclass(frozen=True)
class AccountRegisteredEvent(BaseDomainEvent):
    """Published when a new account has been created.

    Attributes:
        email: Normalized email of the new account
        default_deck_id: The deck provisioned together with the account
    """

    event_type: ClassVar[str] = "account.registered"

    email: str
    default_deck_id: Optional[int] = None

    @classmethod
    def create(cls, account_id: int, email: str, default_deck_id: Optional[int] = None) -> "AccountRegisteredEvent":
        return cls(
            occurred_at=datetime.now(timezone.utc),
            account_id=account_id,
            email=email,
            default_deck_id=default_deck_id,
        )


@dataclass(frozen=True)
class AccountLoggedInEvent(BaseDomainEvent):
    """Published after a successful password login.

    Attributes:
        ip_address: Client IP address, when the HTTP layer supplied it
        user_agent: Browser/client user agent
        previous_login_at: Timestamp of the previous login (if any)
    """

    event_type: ClassVar[str] = "account.logged_in"

    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    previous_login_at: Optional[datetime] = None

    @classmethod
    def create(
        cls,
        account_id: int,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        previous_login_at: Optional[datetime] = None,
    ) -> "AccountLoggedInEvent":
        return cls(
            occurred_at=datetime.now(timezone.utc),
            account_id=account_id,
            ip_address=ip_address,
            user_agent=user_agent,
            previous_login_at=previous_login_at,
        )


@dataclass(frozen=True)
class PasswordChangedEvent(BaseDomainEvent):
    """Published when an account password was replaced.

    Attributes:
        method: ``"reset"`` for the emailed-token flow, ``"change"`` for the
            authenticated flow.
    """

    event_type: ClassVar[str] = "account.password_changed"

    method: str = "change"

    @classmethod
    def create(cls, account_id: int, method: str) -> "PasswordChangedEvent":
        return cls(occurred_at=datetime.now(timezone.utc), account_id=account_id, method=method)


@dataclass(frozen=True)
class EmailVerifiedEvent(BaseDomainEvent):
    """Published when an account's email address has been verified."""

    event_type: ClassVar[str] = "account.email_verified"

    email: str = ""

    @classmethod
    def create(cls, account_id: int, email: str) -> "EmailVerifiedEvent":
        return cls(occurred_at=datetime.now(timezone.utc), account_id=account_id, email=email)
