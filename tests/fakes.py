"""In-memory fakes of the ports the auth domain depends on."""

import time
from typing import Awaitable, Callable, Dict, FrozenSet, List, Optional, Set, Tuple, TypeVar, Union

from cardvault.core.exceptions import EmailAlreadyExistsError, EmailDeliveryError
from cardvault.domain.entities.account import Account
from cardvault.domain.interfaces.repositories import IAccountRepository, IDefaultResourceProvisioner
from cardvault.domain.interfaces.services import (
    IAccountEmailService,
    ISessionStore,
    ITransactionManager,
)

T = TypeVar("T")


class InMemorySessionStore(ISessionStore):
    """Dict-backed session store with real expiry; sets are kept as frozensets.

    Setting ``failure`` makes every operation raise it, to simulate an outage.
    """

    def __init__(self):
        self.data: Dict[str, Tuple[Union[str, FrozenSet[str]], Optional[float]]] = {}
        self.failure: Optional[Exception] = None

    def _check(self) -> None:
        if self.failure is not None:
            raise self.failure

    def _live(self, key: str) -> Optional[Union[str, FrozenSet[str]]]:
        entry = self.data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and expires_at <= time.time():
            del self.data[key]
            return None
        return value

    async def get(self, key: str) -> Optional[str]:
        self._check()
        return self._live(key)

    async def set(self, key: str, value: str, ttl: int) -> None:
        self._check()
        self.data[key] = (value, time.time() + ttl)

    async def exists(self, key: str) -> bool:
        self._check()
        return self._live(key) is not None

    async def delete(self, key: str) -> bool:
        self._check()
        existed = self._live(key) is not None
        self.data.pop(key, None)
        return existed

    async def set_nx(self, key: str, value: str, ttl: int) -> bool:
        self._check()
        if self._live(key) is not None:
            return False
        self.data[key] = (value, time.time() + ttl)
        return True

    async def expire(self, key: str, ttl: int) -> bool:
        self._check()
        value = self._live(key)
        if value is None:
            return False
        self.data[key] = (value, time.time() + ttl)
        return True

    async def ttl(self, key: str) -> Optional[int]:
        self._check()
        if self._live(key) is None:
            return None
        expires_at = self.data[key][1]
        return None if expires_at is None else int(expires_at - time.time())

    async def add_to_set(self, key: str, member: str, ttl: int) -> None:
        self._check()
        members = self._live(key) or frozenset()
        self.data[key] = (members | {member}, time.time() + ttl)

    async def remove_from_set(self, key: str, member: str) -> bool:
        self._check()
        members = self._live(key)
        if not members or member not in members:
            return False
        expires_at = self.data[key][1]
        remaining = members - {member}
        if remaining:
            self.data[key] = (remaining, expires_at)
        else:
            del self.data[key]
        return True

    async def set_members(self, key: str) -> Set[str]:
        self._check()
        return set(self._live(key) or ())

    async def ping(self) -> bool:
        self._check()
        return True

    def keys_with_prefix(self, prefix: str) -> List[str]:
        return [key for key in self.data if key.startswith(prefix) and self._live(key) is not None]


class FakeTransactionManager(ITransactionManager):
    """Snapshot/restore transaction over the in-memory repositories.

    Participants expose ``snapshot()`` and ``restore(state)``; the outermost
    transaction snapshots them and restores them on failure.
    """

    def __init__(self, *participants):
        self.participants = list(participants)
        self.depth = 0
        self.commits = 0
        self.rollbacks = 0
        self._callbacks: List[Callable[[], Awaitable[None]]] = []

    async def run_in_transaction(self, fn: Callable[[], Awaitable[T]]) -> T:
        if self.depth:
            self.depth += 1
            try:
                return await fn()
            finally:
                self.depth -= 1

        snapshots = [p.snapshot() for p in self.participants]
        self.depth = 1
        try:
            result = await fn()
        except BaseException:
            for participant, state in zip(self.participants, snapshots):
                participant.restore(state)
            self._callbacks.clear()
            self.rollbacks += 1
            raise
        finally:
            self.depth = 0
        self.commits += 1
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            await callback()
        return result

    def after_commit(self, callback: Callable[[], Awaitable[None]]) -> None:
        if not self.depth:
            raise RuntimeError("after_commit() requires an open transaction")
        self._callbacks.append(callback)


class InMemoryAccountRepository(IAccountRepository):
    def __init__(self):
        self.accounts: Dict[int, Account] = {}
        self._next_id = 1

    def snapshot(self):
        return dict(self.accounts), self._next_id

    def restore(self, state) -> None:
        self.accounts, self._next_id = dict(state[0]), state[1]

    async def save(self, account: Account) -> Account:
        if account.id is None:
            if any(a.email == account.email for a in self.accounts.values()):
                raise EmailAlreadyExistsError()
            account.id = self._next_id
            self._next_id += 1
        self.accounts[account.id] = account
        return account

    async def find_by_email(self, email: str) -> Optional[Account]:
        email = email.strip().lower()
        return next((a for a in self.accounts.values() if a.email == email), None)

    async def find_by_id(self, account_id: int) -> Optional[Account]:
        return self.accounts.get(account_id)

    async def exists_by_email(self, email: str) -> bool:
        return await self.find_by_email(email) is not None


class InMemoryDeckProvisioner(IDefaultResourceProvisioner):
    """Records default decks; ``failure`` makes provisioning raise."""

    def __init__(self):
        self.decks: Dict[int, int] = {}
        self.failure: Optional[Exception] = None
        self._next_id = 100

    def snapshot(self):
        return dict(self.decks), self._next_id

    def restore(self, state) -> None:
        self.decks, self._next_id = dict(state[0]), state[1]

    async def create_default_resource(self, account_id: int) -> int:
        if self.failure is not None:
            raise self.failure
        deck_id = self._next_id
        self._next_id += 1
        self.decks[deck_id] = account_id
        return deck_id


class RecordingAccountEmailService(IAccountEmailService):
    """Keeps the tokens it was asked to send, keyed by kind."""

    def __init__(self):
        self.sent: List[Tuple[str, str, str]] = []
        self.fail = False

    async def send_verification_email(self, email: str, token: str) -> None:
        if self.fail:
            raise EmailDeliveryError()
        self.sent.append(("verify", email, token))

    async def send_password_reset_email(self, email: str, token: str) -> None:
        if self.fail:
            raise EmailDeliveryError()
        self.sent.append(("reset", email, token))

    def last_token(self, kind: str) -> str:
        return [token for sent_kind, _, token in self.sent if sent_kind == kind][-1]