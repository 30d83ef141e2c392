"""Entity lifecycle events.

The entity store publishes events without knowing who listens; the embedding
layer subscribes. The composition root owns the bus and wires both sides.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Awaitable, Callable, Union

from parklens.models import Entity

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class EntitySaved:
    """One entity was inserted or updated."""

    entity: Entity
    timestamp: str = field(default_factory=_now)


@dataclass(frozen=True)
class EntityBatchSaved:
    """Several entities were inserted or updated together."""

    entities: list[Entity]
    timestamp: str = field(default_factory=_now)

    @property
    def count(self) -> int:
        return len(self.entities)


@dataclass(frozen=True)
class EntityDeleted:
    """Entities of a destination were deleted."""

    destination_id: str
    count: int
    timestamp: str = field(default_factory=_now)


EntityEvent = Union[EntitySaved, EntityBatchSaved, EntityDeleted]
EventHandler = Callable[[EntityEvent], Awaitable[None]]


class EntityEventBus:
    """In-process async publish/subscribe keyed by event class."""

    def __init__(self) -> None:
        self._handlers: dict[type, list[EventHandler]] = {}

    def subscribe(self, event_type: type, handler: EventHandler) -> None:
        self._handlers.setdefault(event_type, []).append(handler)

    def unsubscribe(self, event_type: type, handler: EventHandler) -> None:
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def handler_count(self, event_type: type) -> int:
        return len(self._handlers.get(event_type, []))

    async def publish(self, event: EntityEvent) -> int:
        """Await each handler in registration order.

        A failing handler is logged and does not stop the others.

        Returns:
            Number of handlers that raised.
        """
        failures = 0
        handlers = list(self._handlers.get(type(event), []))
        logger.debug("Publishing %s to %d handler(s)", type(event).__name__, len(handlers))
        for handler in handlers:
            try:
                await handler(event)
            except Exception:
                failures += 1
                logger.exception(
                    "Event handler %s failed for %s",
                    getattr(handler, "__name__", repr(handler)),
                    type(event).__name__,
                )
        return failures
