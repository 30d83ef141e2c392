"""Semantic search and embedding maintenance.

Search: embed the query once, over-fetch nearest neighbours from the vector
store, convert distances to scores, drop weak matches and hydrate the rest
from the entity store.

Maintenance: re-embed an entity only when its stored embedding was made by a
different model or from different text.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from parklens.database.vector_store import EmbeddingRecord, EmbeddingStats, VectorStore
from parklens.embeddings import (
    EmbeddingManager,
    build_embedding_text,
    format_query_text,
    hash_embedding_text,
)
from parklens.exceptions import InvalidInputError, ProviderError
from parklens.models import Entity, EntityBase, SearchResult

from .similarity import distance_to_score

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_LIMIT = 10
DEFAULT_MIN_SCORE = 0.3
DEFAULT_OVER_FETCH_FACTOR = 3
DEFAULT_BATCH_SIZE = 50


class EntityLookup(Protocol):
    """Entity store lookup used to hydrate search hits."""

    async def get_entity(self, entity_id: str) -> Optional[Entity]:
        ...


@dataclass(frozen=True)
class SemanticSearchOptions:
    """Search filters and limits. ``None`` limit/min_score use service defaults."""

    destination_id: Optional[str] = None
    entity_type: Optional[str] = None
    limit: Optional[int] = None
    min_score: Optional[float] = None


@dataclass
class _PendingEmbedding:
    entity: EntityBase
    text: str
    text_hash: str


class SemanticSearchService:
    """Search and embedding maintenance over one vector store and entity store."""

    def __init__(
        self,
        manager: EmbeddingManager,
        vector_store: VectorStore,
        entities: EntityLookup,
        *,
        default_limit: int = DEFAULT_SEARCH_LIMIT,
        min_score: float = DEFAULT_MIN_SCORE,
        over_fetch_factor: int = DEFAULT_OVER_FETCH_FACTOR,
        batch_size: int = DEFAULT_BATCH_SIZE,
        use_e5_prefixes: bool = False,
    ) -> None:
        if batch_size < 1:
            raise InvalidInputError("batch_size must be at least 1")
        if over_fetch_factor < 1:
            raise InvalidInputError("over_fetch_factor must be at least 1")
        self._manager = manager
        self._store = vector_store
        self._entities = entities
        self._default_limit = default_limit
        self._min_score = min_score
        self._over_fetch_factor = over_fetch_factor
        self._batch_size = batch_size
        self._use_e5_prefixes = use_e5_prefixes
        self._hydration_misses = 0

    @property
    def hydration_misses(self) -> int:
        """Hits whose entity was missing from the entity store (store drift)."""
        return self._hydration_misses

    def embedding_text(self, entity: EntityBase) -> str:
        return build_embedding_text(entity, use_e5_prefixes=self._use_e5_prefixes)

    # ---- search ----

    async def semantic_search(
        self,
        query: str,
        options: Optional[SemanticSearchOptions] = None,
    ) -> list[SearchResult]:
        """Return entities conceptually similar to ``query``, best first.

        An empty list means no stored embedding scored above ``min_score``;
        failures raise instead.

        Raises:
            InvalidInputError: blank query or non-positive limit.
            ProviderError: the query could not be embedded.
            VectorEngineError: the vector store failed.
        """
        opts = options or SemanticSearchOptions()
        limit = opts.limit if opts.limit is not None else self._default_limit
        min_score = opts.min_score if opts.min_score is not None else self._min_score
        if not query or not query.strip():
            raise InvalidInputError("Search query cannot be empty")
        if limit < 1:
            raise InvalidInputError("limit must be at least 1")

        logger.debug(
            "Semantic search: query=%r limit=%d min_score=%.2f type=%s destination=%s",
            query,
            limit,
            min_score,
            opts.entity_type,
            opts.destination_id,
        )

        provider = await self._manager.get_provider()
        query_result = await provider.embed(
            format_query_text(query, use_e5_prefixes=self._use_e5_prefixes)
        )

        hits = await self._store.vector_search(
            query_result.embedding,
            provider.full_model_name,
            limit=limit * self._over_fetch_factor,
            entity_type=opts.entity_type,
            destination_id=opts.destination_id,
        )
        if not hits:
            logger.debug("No embeddings found, returning empty results")
            return []

        results: list[SearchResult] = []
        for hit in hits:
            if len(results) >= limit:
                break
            score = distance_to_score(hit.distance)
            if score < min_score:
                continue
            entity = await self._entities.get_entity(hit.id)
            if entity is None:
                self._hydration_misses += 1
                logger.debug("Skipping hit %s: entity not in entity store", hit.id)
                continue
            results.append(SearchResult(entity=entity, score=score, distance=hit.distance))

        logger.debug(
            "Semantic search complete: results=%d top_score=%s",
            len(results),
            f"{results[0].score:.3f}" if results else None,
        )
        return results

    # ---- maintenance ----

    async def ensure_embedding(self, entity: EntityBase) -> bool:
        """Embed ``entity`` unless its stored embedding is current.

        Returns:
            True if a new embedding was generated and stored.
        """
        provider = await self._manager.get_provider()
        text = self.embedding_text(entity)
        text_hash = hash_embedding_text(text)

        if not await self._store.is_embedding_stale(entity.id, provider.full_model_name, text_hash):
            return False

        logger.debug(
            "Generating embedding for entity id=%s name=%r model=%s",
            entity.id,
            entity.name,
            provider.full_model_name,
        )
        result = await provider.embed(text)
        await self._store.save_embedding(self._record(entity, text_hash, result.embedding, result.model))
        return True

    async def ensure_embeddings_batch(self, entities: Sequence[EntityBase]) -> int:
        """Embed every stale entity in fixed-size chunks, one chunk at a time.

        A provider failure aborts the call before that chunk is written;
        chunks already written stay written.

        Returns:
            Number of entities whose embedding was regenerated.
        """
        provider = await self._manager.get_provider()
        model = provider.full_model_name

        # Later copies of an id replace earlier ones, matching the entity upsert.
        latest = {entity.id: entity for entity in entities}

        pending: list[_PendingEmbedding] = []
        for entity in latest.values():
            text = self.embedding_text(entity)
            text_hash = hash_embedding_text(text)
            if await self._store.is_embedding_stale(entity.id, model, text_hash):
                pending.append(_PendingEmbedding(entity, text, text_hash))

        if not pending:
            return 0

        logger.info("Generating embeddings batch: count=%d model=%s", len(pending), model)
        generated = 0
        for start in range(0, len(pending), self._batch_size):
            chunk = pending[start : start + self._batch_size]
            batch = await provider.embed_batch([item.text for item in chunk])
            if len(batch.embeddings) != len(chunk):
                raise ProviderError(
                    f"Provider returned {len(batch.embeddings)} embeddings for {len(chunk)} texts",
                    provider_id=provider.provider_id,
                )
            records = [
                self._record(item.entity, item.text_hash, result.embedding, result.model)
                for item, result in zip(chunk, batch.embeddings)
            ]
            await self._store.save_embeddings_batch(records)
            generated += len(records)

        logger.info("Embeddings batch complete: generated=%d", generated)
        return generated

    async def delete_destination(self, destination_id: str) -> int:
        """Remove every embedding scoped to a destination."""
        return await self._store.delete_by_destination(destination_id)

    async def get_stats(self) -> EmbeddingStats:
        return await self._store.get_stats()

    @staticmethod
    def _record(
        entity: EntityBase,
        text_hash: str,
        vector: list[float],
        model: str,
    ) -> EmbeddingRecord:
        return EmbeddingRecord(
            id=entity.id,
            model=model,
            vector=vector,
            text_hash=text_hash,
            entity_type=entity.entity_type,
            destination_id=entity.destination_id,
            name=entity.name,
        )
