"""Service interfaces for the infrastructure the auth domain relies on."""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional, Set, TypeVar

from cardvault.domain.events.account_events import BaseDomainEvent

T = TypeVar("T")


class IEventPublisher(ABC):
    """Publishes domain events to interested subscribers.

    Publication is best-effort and not transactional with the primary store.
    """

    @abstractmethod
    async def publish(self, event: BaseDomainEvent) -> None:
        raise NotImplementedError


class IEmailSender(ABC):
    """Delivers a single rendered email."""

    @abstractmethod
    async def send_email(self, to: str, subject: str, html_body: str, text_body: str) -> None:
        """Sends an email.

        Raises:
            EmailDeliveryError: If the message could not be handed to the
                mail transport.
        """
        raise NotImplementedError


class ISessionStore(ABC):
    """A thin contract over a key/value cache with per-key expiry.

    Every single-key operation is atomic; no multi-key atomicity is offered.
    Besides plain string values a key may hold an unordered set of strings.
    TTLs are whole seconds. Implementations raise ``CacheStoreError`` when the
    backing store fails.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    @abstractmethod
    async def set(self, key: str, value: str, ttl: int) -> None:
        raise NotImplementedError

    @abstractmethod
    async def exists(self, key: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Removes ``key``; returns whether it existed."""
        raise NotImplementedError

    @abstractmethod
    async def set_nx(self, key: str, value: str, ttl: int) -> bool:
        """Sets ``key`` only if absent; returns whether it was set."""
        raise NotImplementedError

    @abstractmethod
    async def expire(self, key: str, ttl: int) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def ttl(self, key: str) -> Optional[int]:
        """Remaining lifetime in seconds, ``None`` if missing or persistent."""
        raise NotImplementedError

    @abstractmethod
    async def add_to_set(self, key: str, member: str, ttl: int) -> None:
        """Adds ``member`` to the set at ``key`` and resets the set's lifetime."""
        raise NotImplementedError

    @abstractmethod
    async def remove_from_set(self, key: str, member: str) -> bool:
        """Removes ``member``; returns whether it was present."""
        raise NotImplementedError

    @abstractmethod
    async def set_members(self, key: str) -> Set[str]:
        """Members of the set at ``key``, empty when the key is missing."""
        raise NotImplementedError

    @abstractmethod
    async def ping(self) -> bool:
        raise NotImplementedError


class ITransactionManager(ABC):
    """Runs a sequence of primary-store writes as one atomic unit."""

    @abstractmethod
    async def run_in_transaction(self, fn: Callable[[], Awaitable[T]]) -> T:
        """Runs ``fn`` inside a transaction.

        Joins the transaction already open in the current context, if any.
        Otherwise opens one, commits when ``fn`` returns and rolls back when it
        raises, re-raising the original exception.
        """
        raise NotImplementedError

    @abstractmethod
    def after_commit(self, callback: Callable[[], Awaitable[None]]) -> None:
        """Schedules ``callback`` to run once the outermost transaction commits.

        Callbacks are discarded on rollback. Outside a transaction the
        callback is considered committed and must be awaited by the caller;
        implementations raise ``RuntimeError`` in that case.
        """
        raise NotImplementedError


class IAccountEmailService(ABC):
    """Composes and sends the emails that carry single-purpose tokens."""

    @abstractmethod
    async def send_verification_email(self, email: str, token: str) -> None:
        """Sends the email-verification link embedding ``token``.

        Raises:
            EmailDeliveryError: If rendering or delivery failed.
        """
        raise NotImplementedError

    @abstractmethod
    async def send_password_reset_email(self, email: str, token: str) -> None:
        """Sends the password-reset link embedding ``token``.

        Raises:
            EmailDeliveryError: If rendering or delivery failed.
        """
        raise NotImplementedError
