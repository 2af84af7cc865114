"""Domain Events.

All events are immutable and represent significant business occurrences of the
account lifecycle that other parts of the system may react to.
"""

from .account_events import (
    AccountLoggedInEvent,
    AccountRegisteredEvent,
    BaseDomainEvent,
    EmailVerifiedEvent,
    PasswordChangedEvent,
)

__all__ = [
    "AccountLoggedInEvent",
    "AccountRegisteredEvent",
    "BaseDomainEvent",
    "EmailVerifiedEvent",
    "PasswordChangedEvent",
]
