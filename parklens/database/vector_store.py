"""Vector store interfaces for semantic retrieval."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, Protocol


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class EmbeddingRecord:
    """A stored embedding for one entity under one model."""

    id: str
    model: str
    vector: list[float]
    text_hash: str
    entity_type: str
    destination_id: str
    name: str
    created_at: str = field(default_factory=utc_now_iso)

    def to_row(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class VectorHit:
    """Nearest-neighbour match; distance is the raw engine metric."""

    id: str
    model: str
    entity_type: str
    destination_id: str
    name: str
    distance: float


@dataclass
class EmbeddingStats:
    """Aggregate embedding counts."""

    total: int = 0
    by_model: dict[str, int] = field(default_factory=dict)


class VectorStore(Protocol):
    """Protocol for vector stores used by search and maintenance."""

    async def save_embedding(self, record: EmbeddingRecord) -> None:
        ...

    async def save_embeddings_batch(self, records: list[EmbeddingRecord]) -> None:
        ...

    async def get_embedding(self, entity_id: str, model: str) -> Optional[EmbeddingRecord]:
        ...

    async def is_embedding_stale(self, entity_id: str, model: str, text_hash: str) -> bool:
        ...

    async def vector_search(
        self,
        vector: list[float],
        model: str,
        *,
        limit: int = 10,
        entity_type: Optional[str] = None,
        destination_id: Optional[str] = None,
    ) -> list[VectorHit]:
        ...

    async def delete_embedding(self, entity_id: str, model: Optional[str] = None) -> int:
        ...

    async def delete_by_destination(self, destination_id: str) -> int:
        ...

    async def get_stats(self) -> EmbeddingStats:
        ...

    async def close(self) -> None:
        ...
