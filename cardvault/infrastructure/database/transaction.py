"""
Transaction management for the primary store.

The open ``AsyncSession`` travels in a ``ContextVar``, so every repository call
made while a transaction is open in the current task joins it without the
session being passed around. Nested ``run_in_transaction`` calls join the
outer transaction; there are no savepoints.
"""

from contextlib import asynccontextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import AsyncIterator, Awaitable, Callable, List, Optional, TypeVar

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import sessionmaker

from cardvault.core.exceptions import TransactionFailureError
from cardvault.domain.interfaces.services import ITransactionManager

logger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass
class _OpenTransaction:
    session: AsyncSession
    after_commit: List[Callable[[], Awaitable[None]]] = field(default_factory=list)


class SQLAlchemyTransactionManager(ITransactionManager):
    """Runs units of work against one ``AsyncSession`` and commits them atomically.

    Attributes:
        session_factory: Creates the session of each outermost transaction.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory
        self._current: ContextVar[Optional[_OpenTransaction]] = ContextVar(
            f"cardvault_transaction_{id(self)}", default=None
        )

    def current_session(self) -> Optional[AsyncSession]:
        """The session of the transaction open in this context, if any."""
        state = self._current.get()
        return state.session if state is not None else None

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """Open a transaction, or join the one already open in this context.

        The outermost block commits on success and rolls back on any
        exception, which is re-raised. SQLAlchemy errors surface as
        ``TransactionFailureError``. Callbacks registered with
        :meth:`after_commit` run once the commit succeeded.
        """
        state = self._current.get()
        if state is not None:
            yield state.session
            return

        async with self.session_factory() as session:
            state = _OpenTransaction(session=session)
            context_token = self._current.set(state)
            try:
                yield session
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error("Transaction rolled back", error=str(e))
                raise TransactionFailureError() from e
            except BaseException:
                await session.rollback()
                logger.debug("Transaction rolled back")
                raise
            finally:
                self._current.reset(context_token)

        await self._run_after_commit(state.after_commit)

    async def run_in_transaction(self, fn: Callable[[], Awaitable[T]]) -> T:
        async with self.transaction():
            return await fn()

    def after_commit(self, callback: Callable[[], Awaitable[None]]) -> None:
        state = self._current.get()
        if state is None:
            raise RuntimeError("after_commit() requires an open transaction")
        state.after_commit.append(callback)

    @asynccontextmanager
    async def session_scope(self) -> AsyncIterator[AsyncSession]:
        """A session for reads: the open transaction's, else a short-lived one."""
        session = self.current_session()
        if session is not None:
            yield session
            return
        async with self.session_factory() as session:
            yield session

    @staticmethod
    async def _run_after_commit(callbacks: List[Callable[[], Awaitable[None]]]) -> None:
        # The data is committed; a failing callback must not turn that into an error.
        for callback in callbacks:
            try:
                await callback()
            except Exception:
                logger.exception("Post-commit callback failed")
