"""
Event Bus.

In-process publish/subscribe for domain events. Subscribers register for an
event_type (or "*" for every event) and are awaited in registration order
when an event is published.

A failing subscriber is logged and does not stop delivery to the others;
the publisher never sees subscriber errors.

Usage:
    bus = EventBus()
    bus.subscribe(NoteRemapped, handler)
    await bus.publish(NoteRemapped.build(old_id, new_id, pass_id))
"""

from collections import defaultdict
from collections.abc import Awaitable, Callable

from notesync.core.logging import get_logger
from notesync.events.schemas import EventEnvelope

logger = get_logger(__name__)

WILDCARD = "*"

EventHandler = Callable[[EventEnvelope], Awaitable[None]]


def event_type_of(event_class: type[EventEnvelope]) -> str:
    """Default event_type declared by an envelope subclass."""
    return event_class.model_fields["event_type"].default


class EventBus:
    """Async in-process event dispatcher."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)

    def subscribe(self, event_type: str | type[EventEnvelope], handler: EventHandler) -> Callable[[], None]:
        """
        Register a handler.

        Args:
            event_type: Event type string, an envelope subclass, or "*"
            handler: Coroutine function receiving the event

        Returns:
            Callable that removes the subscription
        """
        if isinstance(event_type, type):
            event_type = event_type_of(event_type)
        self._handlers[event_type].append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers[event_type]:
                self._handlers[event_type].remove(handler)

        return unsubscribe

    async def publish(self, event: EventEnvelope) -> None:
        handlers = [*self._handlers.get(event.event_type, []), *self._handlers.get(WILDCARD, [])]
        for handler in handlers:
            try:
                await handler(event)
            except Exception as e:
                logger.error(
                    "Event handler failed",
                    extra={
                        "event_type": event.event_type,
                        "event_id": event.event_id,
                        "error": str(e),
                    },
                )
        logger.debug(
            "Event published",
            extra={"event_type": event.event_type, "event_id": event.event_id, "handlers": len(handlers)},
        )

    def clear(self) -> None:
        self._handlers.clear()
