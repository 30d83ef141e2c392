"""Keep embeddings in step with the entity store."""

from __future__ import annotations

import logging
from typing import Callable

from parklens.events import EntityBatchSaved, EntityDeleted, EntityEventBus, EntitySaved

from .search import SemanticSearchService

logger = logging.getLogger(__name__)


def register_embedding_handlers(
    bus: EntityEventBus,
    service: SemanticSearchService,
) -> Callable[[], None]:
    """Subscribe embedding maintenance to entity events.

    Returns:
        A callable that removes the subscriptions.
    """

    async def on_entity_saved(event: EntitySaved) -> None:
        await service.ensure_embedding(event.entity)

    async def on_entity_batch_saved(event: EntityBatchSaved) -> None:
        logger.debug("Embedding batch of %d saved entities", event.count)
        await service.ensure_embeddings_batch(event.entities)

    async def on_entity_deleted(event: EntityDeleted) -> None:
        logger.debug(
            "Removing embeddings for destination %s (%d entities deleted)",
            event.destination_id,
            event.count,
        )
        await service.delete_destination(event.destination_id)

    subscriptions = [
        (EntitySaved, on_entity_saved),
        (EntityBatchSaved, on_entity_batch_saved),
        (EntityDeleted, on_entity_deleted),
    ]
    for event_type, handler in subscriptions:
        bus.subscribe(event_type, handler)
    logger.info("Embedding event handlers registered")

    def unregister() -> None:
        for event_type, handler in subscriptions:
            bus.unsubscribe(event_type, handler)
        logger.info("Embedding event handlers unregistered")

    return unregister
