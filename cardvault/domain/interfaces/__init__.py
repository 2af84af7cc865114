"""Ports the domain layer depends on.

Concrete adapters live in ``cardvault.infrastructure``; tests substitute
in-memory fakes.
"""

from .repositories import IAccountRepository, IDefaultResourceProvisioner
from .services import (
    IAccountEmailService,
    IEmailSender,
    IEventPublisher,
    ISessionStore,
    ITransactionManager,
)

__all__ = [
    "IAccountEmailService",
    "IAccountRepository",
    "IDefaultResourceProvisioner",
    "IEmailSender",
    "IEventPublisher",
    "ISessionStore",
    "ITransactionManager",
]
