"""Repository interfaces for abstracting data persistence in the domain layer.

These abstract base classes act as "ports" in the Hexagonal Architecture
sense: the domain layer calls them without being coupled to the SQL database
behind them. Implementations run inside the transaction opened by the
``ITransactionManager`` when there is one.
"""

from abc import ABC, abstractmethod
from typing import Optional

from cardvault.domain.entities.account import Account


class IAccountRepository(ABC):
    """An interface defining the contract for account persistence operations."""

    @abstractmethod
    async def save(self, account: Account) -> Account:
        """Persists a new account or updates an existing one.

        Returns:
            The persisted `Account`, with its ``id`` assigned.
        """
        raise NotImplementedError

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[Account]:
        """Retrieves an account by its normalized email, or ``None``."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_id(self, account_id: int) -> Optional[Account]:
        """Retrieves an account by primary key, or ``None``."""
        raise NotImplementedError

    @abstractmethod
    async def exists_by_email(self, email: str) -> bool:
        """Checks whether ``email`` is already registered (soft-deleted included)."""
        raise NotImplementedError


class IDefaultResourceProvisioner(ABC):
    """Creates the resources every new account starts with."""

    @abstractmethod
    async def create_default_resource(self, account_id: int) -> int:
        """Creates the default deck for ``account_id`` and returns its id.

        Invoked exactly once per account, inside the registration transaction.
        """
        raise NotImplementedError
