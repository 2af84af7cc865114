"""Event Publisher Infrastructure Service.

In-process implementation of :class:`IEventPublisher`. Events are handed to
the subscribers registered for their type and kept in a bounded history for
inspection. Delivery is at-most-once: nothing is persisted, and a subscriber
failure is logged without affecting the operation that published the event.
"""

from collections import defaultdict, deque
from typing import Awaitable, Callable, Deque, Dict, List, Optional

import structlog

from cardvault.domain.events.account_events import BaseDomainEvent
from cardvault.domain.interfaces.services import IEventPublisher

logger = structlog.get_logger(__name__)

Subscriber = Callable[[BaseDomainEvent], Awaitable[None]]

ALL_EVENTS = "*"


class InMemoryEventPublisher(IEventPublisher):
    """In-memory event publisher.

    Subscribers register for an ``event_type`` (e.g. ``"account.registered"``)
    or for every event with ``"*"``. A broker-backed publisher can replace this
    class without touching the domain.
    """

    def __init__(self, history_size: int = 1000):
        self._published_events: Deque[BaseDomainEvent] = deque(maxlen=history_size)
        self._subscribers: Dict[str, List[Subscriber]] = defaultdict(list)

    def subscribe(self, event_type: str, callback: Subscriber) -> None:
        """Register an async callback for ``event_type`` (``"*"`` for all)."""
        self._subscribers[event_type].append(callback)
        logger.debug("Event subscriber added", event_type=event_type)

    async def publish(self, event: BaseDomainEvent) -> None:
        """Deliver ``event`` to its subscribers one after the other."""
        self._published_events.append(event)
        for callback in self._subscribers[event.event_type] + self._subscribers[ALL_EVENTS]:
            try:
                await callback(event)
            except Exception as e:
                logger.error(
                    "Event subscriber failed",
                    event_type=event.event_type,
                    account_id=event.account_id,
                    error=str(e),
                )
        logger.info(
            "Domain event published",
            event_type=event.event_type,
            account_id=event.account_id,
            occurred_at=event.occurred_at.isoformat(),
        )

    def get_published_events(
        self,
        event_type: Optional[str] = None,
        account_id: Optional[int] = None,
    ) -> List[BaseDomainEvent]:
        """Published events, oldest first, optionally filtered."""
        events = list(self._published_events)
        if event_type:
            events = [e for e in events if e.event_type == event_type]
        if account_id is not None:
            events = [e for e in events if e.account_id == account_id]
        return events

    def clear_published_events(self) -> None:
        self._published_events.clear()
