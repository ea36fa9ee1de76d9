"""Publish/subscribe transport for integration events.

One logical channel per event type; consumers subscribe by the event's
``EVENT_TYPE``. ``InMemoryEventBus`` delivers inside the process, which is
enough for the modular monolith. A broker-backed bus only has to honour the
same contract: at-least-once delivery, and ``publish`` raising when the event
was not accepted so the outbox keeps it pending.
"""
import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Awaitable, Callable, DefaultDict, List

from eshop.core.exceptions import PublishError
from eshop.events.integration_events import IntegrationEvent

log = logging.getLogger(__name__)

EventHandler = Callable[[IntegrationEvent], Awaitable[None]]


class EventBus(ABC):

    @abstractmethod
    async def publish(self, event: IntegrationEvent) -> None:
        """Delivers ``event``; raises ``PublishError`` when it must be redelivered."""

    @abstractmethod
    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        ...


class InMemoryEventBus(EventBus):

    def __init__(self):
        self._subscribers: DefaultDict[str, List[EventHandler]] = defaultdict(list)

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        if handler not in self._subscribers[event_type]:
            self._subscribers[event_type].append(handler)
            log.info(f"Subscribed {getattr(handler, '__name__', handler)} to {event_type}")

    def subscribers(self, event_type: str) -> List[EventHandler]:
        return list(self._subscribers.get(event_type, []))

    async def publish(self, event: IntegrationEvent) -> None:
        handlers = self.subscribers(event.event_type)
        if not handlers:
            log.warning(f"No subscribers for {event.event_type} (event {event.event_id}).")
            return

        # Every subscriber gets the event even if an earlier one fails
        errors = []
        for handler in handlers:
            name = getattr(handler, "__name__", repr(handler))
            try:
                await handler(event)
            except Exception as e:
                log.exception(f"Subscriber {name} failed for {event.event_type} (event {event.event_id}).")
                errors.append(f"{name}: {e}")

        if errors:
            raise PublishError(event.event_type, errors)
