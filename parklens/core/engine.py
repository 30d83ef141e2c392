"""Composition root: settings, stores, provider manager, search and events."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from parklens.config import Settings, get_settings
from parklens.database.entities import EntityDB
from parklens.database.lance_store import LanceVectorStore
from parklens.database.vector_store import EmbeddingStats, VectorStore
from parklens.embeddings import EmbeddingManager, load_config
from parklens.events import EntityEventBus
from parklens.models import Entity

from .handlers import register_embedding_handlers
from .search import SemanticSearchService

logger = logging.getLogger(__name__)


class Engine:
    """Owns every long-lived object. Build one per process (or per test).

    Saving entities through ``entities`` keeps embeddings current via the
    event bus; ``search`` answers queries.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        manager: Optional[EmbeddingManager] = None,
        vector_store: Optional[VectorStore] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.bus = EntityEventBus()
        self.entities = EntityDB(self.settings.db_path, bus=self.bus)
        self.entities.init_db()
        self.vector_store: VectorStore = vector_store or LanceVectorStore(
            self.settings.vector_db_path
        )
        self.manager = manager or EmbeddingManager(load_config(self.settings))
        self.search = SemanticSearchService(
            self.manager,
            self.vector_store,
            self.entities,
            default_limit=self.settings.search_default_limit,
            min_score=self.settings.search_min_score,
            over_fetch_factor=self.settings.search_over_fetch_factor,
            batch_size=self.settings.embedding_batch_size,
            use_e5_prefixes=self.settings.use_e5_prefixes,
        )
        self._unregister = register_embedding_handlers(self.bus, self.search)
        self._closed = False

    async def __aenter__(self) -> "Engine":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Unsubscribe embedding handlers and release the vector store."""
        if self._closed:
            return
        self._closed = True
        self._unregister()
        await self.vector_store.close()

    async def load_entities(self, entities: Sequence[Entity]) -> int:
        """Store entities and make sure every one has a current embedding.

        Saving publishes a batch event that embeds them; the follow-up pass
        re-embeds anything a failed handler left behind and raises if the
        provider is still failing.

        Returns:
            Number of entities stored.
        """
        saved = await self.entities.save_entities(entities)
        retried = await self.search.ensure_embeddings_batch(list(entities))
        if retried:
            logger.warning("Embedded %d entities missed by the save handler", retried)
        return saved

    async def purge_destination(self, destination_id: str) -> int:
        """Delete a destination's entities and their embeddings.

        The delete event already removes embeddings; the direct pass clears
        whatever a failed handler left and raises if the store is still failing.

        Returns:
            Number of entities deleted.
        """
        deleted = await self.entities.delete_by_destination(destination_id)
        leftover = await self.search.delete_destination(destination_id)
        if leftover:
            logger.warning(
                "Removed %d embeddings for %s missed by the delete handler",
                leftover,
                destination_id,
            )
        return deleted

    async def stats(self) -> EmbeddingStats:
        return await self.search.get_stats()
