"""Abstract base class for embedding providers."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmbeddingResult:
    """Embedding for a single text."""

    embedding: list[float]
    model: str
    dimension: int
    token_count: Optional[int] = None


@dataclass(frozen=True)
class BatchEmbeddingResult:
    """Embeddings for a batch of texts, one per input, in input order."""

    embeddings: list[EmbeddingResult]
    total_tokens: Optional[int] = None


class EmbeddingProvider(ABC):
    """Abstract base class for embedding providers.

    All providers must implement this interface so the search and maintenance
    code can stay provider-agnostic (OpenAI, local sentence-transformers).

    ``embed`` and ``embed_batch`` raise ``ProviderError`` on failure. A batch
    either returns one result per input text or raises for the whole batch.
    """

    @property
    @abstractmethod
    def provider_id(self) -> str:
        """Return the provider identifier (e.g., 'openai', 'transformers')."""
        ...

    @property
    @abstractmethod
    def model_id(self) -> str:
        """Return the model identifier (e.g., 'all-MiniLM-L6-v2')."""
        ...

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Return the embedding dimension."""
        ...

    @property
    def full_model_name(self) -> str:
        """Return the fully-qualified model name stored with each embedding."""
        return f"{self.provider_id}:{self.model_id}"

    @abstractmethod
    async def embed_batch(self, texts: list[str]) -> BatchEmbeddingResult:
        """Generate embeddings for multiple texts.

        Args:
            texts: Input texts.

        Returns:
            One embedding per input text, in order.
        """
        ...

    @abstractmethod
    async def is_available(self) -> bool:
        """Cheap probe used for fallback decisions only."""
        ...

    async def embed(self, text: str) -> EmbeddingResult:
        """Generate the embedding for a single text."""
        result = await self.embed_batch([text])
        return result.embeddings[0]

    def _result(self, vector: list[float], token_count: Optional[int] = None) -> EmbeddingResult:
        return EmbeddingResult(
            embedding=vector,
            model=self.full_model_name,
            dimension=len(vector),
            token_count=token_count,
        )
