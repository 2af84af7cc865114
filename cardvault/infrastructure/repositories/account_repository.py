"""Account Repository implementation using SQLAlchemy.

Implements :class:`IAccountRepository` on top of the transaction manager:
writes always run in a transaction (the caller's when one is open), reads use
the open transaction's session or a short-lived one.
"""

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from structlog import get_logger

from cardvault.core.exceptions import EmailAlreadyExistsError, TransactionFailureError
from cardvault.domain.entities.account import Account
from cardvault.domain.interfaces.repositories import IAccountRepository
from cardvault.domain.value_objects.email import mask_email
from cardvault.infrastructure.database.transaction import SQLAlchemyTransactionManager

logger = get_logger(__name__)


class AccountRepository(IAccountRepository):
    """SQLAlchemy implementation of the account repository.

    Emails are stored lowercased; lookups compare with ``lower(email)`` so rows
    written before normalization still match.
    """

    def __init__(self, transaction_manager: SQLAlchemyTransactionManager):
        self._transactions = transaction_manager

    async def save(self, account: Account) -> Account:
        """Insert a new account or merge changes into an existing one.

        Raises:
            EmailAlreadyExistsError: The unique email constraint was violated,
                e.g. by a concurrent registration.
        """
        async with self._transactions.transaction() as session:
            if account.id is None:
                session.add(account)
                persisted = account
            else:
                persisted = await session.merge(account)
            try:
                await session.flush()
            except IntegrityError as e:
                if "email" in str(e.orig).lower():
                    logger.warning("Duplicate email rejected by database", email=mask_email(account.email))
                    raise EmailAlreadyExistsError() from e
                raise
            logger.debug("Account saved", account_id=persisted.id)
            return persisted

    async def find_by_email(self, email: str) -> Optional[Account]:
        statement = select(Account).where(func.lower(Account.email) == email.strip().lower())
        return await self._first(statement, "find_by_email")

    async def find_by_id(self, account_id: int) -> Optional[Account]:
        statement = select(Account).where(Account.id == account_id)
        return await self._first(statement, "find_by_id")

    async def exists_by_email(self, email: str) -> bool:
        """Soft-deleted accounts keep their email reserved."""
        statement = select(Account.id).where(func.lower(Account.email) == email.strip().lower()).limit(1)
        return await self._first(statement, "exists_by_email") is not None

    async def _first(self, statement, operation: str):
        try:
            async with self._transactions.session_scope() as session:
                result = await session.execute(statement)
                return result.scalars().first()
        except SQLAlchemyError as e:
            logger.error("Account lookup failed", operation=operation, error=str(e))
            raise TransactionFailureError("Account lookup failed") from e
