from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from cardvault.core.exceptions import EmailAlreadyExistsError, TransactionFailureError
from cardvault.domain.entities.account import Account
from cardvault.infrastructure.database.transaction import SQLAlchemyTransactionManager
from cardvault.infrastructure.repositories import AccountRepository, DefaultDeckProvisioner
from tests.factories.account import create_fake_account


@pytest.fixture
def session():
    session = MagicMock()
    for name in ("flush", "commit", "rollback", "merge", "execute"):
        setattr(session, name, AsyncMock())
    return session


@pytest.fixture
def transaction_manager(session):
    factory = MagicMock()
    factory.return_value.__aenter__.return_value = session
    factory.return_value.__aexit__.return_value = False
    return SQLAlchemyTransactionManager(factory)


@pytest.mark.asyncio
async def test_save_adds_new_account_and_commits(transaction_manager, session):
    account = Account(email="a@example.com", hashed_password="hash")

    saved = await AccountRepository(transaction_manager).save(account)

    assert saved is account
    session.add.assert_called_once_with(account)
    session.flush.assert_awaited_once()
    session.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_save_merges_existing_account(transaction_manager, session):
    account = create_fake_account(id=3)
    session.merge.return_value = account

    assert await AccountRepository(transaction_manager).save(account) is account
    session.add.assert_not_called()


@pytest.mark.asyncio
async def test_unique_email_violation_maps_to_conflict(transaction_manager, session):
    session.flush.side_effect = IntegrityError(
        "INSERT", {}, Exception('duplicate key value violates unique constraint "ix_accounts_email"')
    )

    with pytest.raises(EmailAlreadyExistsError):
        await AccountRepository(transaction_manager).save(Account(email="a@example.com", hashed_password="hash"))

    session.rollback.assert_awaited_once()
    session.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_lookup_failures_are_wrapped(transaction_manager, session):
    session.execute.side_effect = OperationalError("SELECT", {}, Exception("gone"))

    with pytest.raises(TransactionFailureError):
        await AccountRepository(transaction_manager).find_by_email("a@example.com")


@pytest.mark.asyncio
async def test_find_by_id_returns_first_row(transaction_manager, session):
    account = create_fake_account(id=9)
    result = MagicMock()
    result.scalars.return_value.first.return_value = account
    session.execute.return_value = result

    assert await AccountRepository(transaction_manager).find_by_id(9) is account


@pytest.mark.asyncio
async def test_default_deck_is_created_in_the_open_transaction(transaction_manager, session):
    provisioner = DefaultDeckProvisioner(transaction_manager)

    async def register():
        return await provisioner.create_default_resource(4)

    await transaction_manager.run_in_transaction(register)

    deck = session.add.call_args.args[0]
    assert deck.account_id == 4
    assert deck.name == "Default"
    assert deck.is_default is True
    session.commit.assert_awaited_once()
