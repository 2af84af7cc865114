from unittest.mock import AsyncMock

import pytest

from cardvault.domain.events.account_events import AccountRegisteredEvent, EmailVerifiedEvent
from cardvault.infrastructure.services.event_publisher import InMemoryEventPublisher


@pytest.mark.asyncio
async def test_delivers_to_type_and_wildcard_subscribers():
    # Arrange
    publisher = InMemoryEventPublisher()
    on_registered, on_any = AsyncMock(), AsyncMock()
    publisher.subscribe("account.registered", on_registered)
    publisher.subscribe("*", on_any)
    registered = AccountRegisteredEvent.create(1, "a@example.com", default_deck_id=7)
    verified = EmailVerifiedEvent.create(1, "a@example.com")

    # Act
    await publisher.publish(registered)
    await publisher.publish(verified)

    # Assert
    on_registered.assert_awaited_once_with(registered)
    assert on_any.await_count == 2


@pytest.mark.asyncio
async def test_subscriber_failure_is_isolated():
    publisher = InMemoryEventPublisher()
    failing, healthy = AsyncMock(side_effect=RuntimeError("down")), AsyncMock()
    publisher.subscribe("account.registered", failing)
    publisher.subscribe("account.registered", healthy)

    await publisher.publish(AccountRegisteredEvent.create(1, "a@example.com"))

    healthy.assert_awaited_once()
    assert len(publisher.get_published_events()) == 1


@pytest.mark.asyncio
async def test_history_filters_and_bound():
    publisher = InMemoryEventPublisher(history_size=2)
    for account_id in (1, 2, 3):
        await publisher.publish(AccountRegisteredEvent.create(account_id, f"u{account_id}@example.com"))

    assert [e.account_id for e in publisher.get_published_events()] == [2, 3]
    assert [e.account_id for e in publisher.get_published_events(account_id=3)] == [3]
    assert publisher.get_published_events("account.email_verified") == []

    publisher.clear_published_events()
    assert publisher.get_published_events() == []
