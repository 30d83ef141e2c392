"""Local embedding provider using sentence-transformers.

Runs all-MiniLM-L6-v2 on the local machine; no API key required.
"""

import asyncio
import logging
import threading
from typing import Any

from parklens.exceptions import ProviderError

from .constants import LOCAL_DIMENSION, LOCAL_MODEL_ID, LOCAL_MODEL_NAME
from .provider import BatchEmbeddingResult, EmbeddingProvider

logger = logging.getLogger(__name__)


class SentenceTransformerEmbeddingProvider(EmbeddingProvider):
    """Embedding provider backed by a local sentence-transformers model.

    The model is loaded lazily on first use, at most once per provider.
    Encoding is CPU-bound and runs in the default executor so the event loop
    stays responsive.
    """

    def __init__(
        self,
        model_name: str = LOCAL_MODEL_NAME,
        model_id: str = LOCAL_MODEL_ID,
        dimension: int = LOCAL_DIMENSION,
        encoder: Any | None = None,
    ) -> None:
        self._model_name = model_name
        self._model_id = model_id
        self._dimension = dimension
        self._encoder: Any = encoder
        self._load_lock = threading.Lock()

    @property
    def provider_id(self) -> str:
        return "transformers"

    @property
    def model_id(self) -> str:
        return self._model_id

    @property
    def dimension(self) -> int:
        return self._dimension

    async def is_available(self) -> bool:
        # Local model, always usable once the package is installed.
        return True

    def _get_encoder(self) -> Any:
        """Load the SentenceTransformer model once."""
        if self._encoder is not None:
            return self._encoder
        with self._load_lock:
            if self._encoder is None:
                try:
                    from sentence_transformers import SentenceTransformer
                except ImportError as exc:
                    raise ProviderError(
                        "sentence-transformers package is required for the local provider. "
                        "Install with: pip install sentence-transformers",
                        provider_id=self.provider_id,
                    ) from exc
                logger.info("Loading sentence-transformers model %s", self._model_name)
                try:
                    self._encoder = SentenceTransformer(self._model_name)
                except Exception as e:
                    raise ProviderError(
                        f"Failed to load model {self._model_name}: {e}",
                        provider_id=self.provider_id,
                    ) from e
                logger.info("sentence-transformers model loaded")
        return self._encoder

    def _encode(self, texts: list[str]) -> list[list[float]]:
        encoder = self._get_encoder()
        try:
            vectors = encoder.encode(
                texts,
                normalize_embeddings=True,
                convert_to_numpy=True,
                show_progress_bar=False,
            )
        except Exception as e:
            raise ProviderError(
                f"Local embedding failed: {type(e).__name__}: {e}",
                provider_id=self.provider_id,
            ) from e
        return [[float(v) for v in row] for row in vectors]

    async def embed_batch(self, texts: list[str]) -> BatchEmbeddingResult:
        if not texts:
            return BatchEmbeddingResult(embeddings=[])

        logger.debug("Generating embeddings: count=%d model=%s", len(texts), self._model_id)
        loop = asyncio.get_running_loop()
        vectors = await loop.run_in_executor(None, lambda: self._encode(texts))
        if len(vectors) != len(texts):
            raise ProviderError(
                f"Local model returned {len(vectors)} embeddings for {len(texts)} inputs",
                provider_id=self.provider_id,
            )
        return BatchEmbeddingResult(embeddings=[self._result(v) for v in vectors])
