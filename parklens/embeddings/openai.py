"""OpenAI embedding provider using the openai SDK."""

import logging
from typing import Any

from parklens.exceptions import ProviderError

from .constants import (
    DEFAULT_API_TIMEOUT,
    OPENAI_DEFAULT_MODEL,
    OPENAI_FALLBACK_DIMENSION,
    OPENAI_MODEL_DIMENSIONS,
)
from .provider import BatchEmbeddingResult, EmbeddingProvider

logger = logging.getLogger(__name__)


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """Embedding provider for OpenAI models (text-embedding-3-small, etc.).

    Uses the async openai client. Also supports Azure OpenAI and other
    OpenAI-compatible endpoints via base_url.
    """

    def __init__(
        self,
        api_key: str,
        model: str | None = None,
        base_url: str | None = None,
        timeout: float = DEFAULT_API_TIMEOUT,
        client: Any | None = None,
    ) -> None:
        """Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key.
            model: Embedding model (defaults to text-embedding-3-small).
            base_url: Optional custom base URL (for Azure, etc.).
            timeout: Request timeout in seconds.
            client: Pre-built async client (tests).
        """
        self._api_key = api_key
        self._model = model or OPENAI_DEFAULT_MODEL
        self._base_url = base_url
        self._timeout = timeout
        self._client: Any = client

    @property
    def provider_id(self) -> str:
        return "openai"

    @property
    def model_id(self) -> str:
        return self._model

    @property
    def dimension(self) -> int:
        return OPENAI_MODEL_DIMENSIONS.get(self._model, OPENAI_FALLBACK_DIMENSION)

    def _get_client(self) -> Any:
        """Get or create the async OpenAI client."""
        if self._client is None:
            try:
                from openai import AsyncOpenAI
            except ImportError as exc:
                raise ProviderError(
                    "openai package is required for OpenAI provider. "
                    "Install with: pip install openai",
                    provider_id=self.provider_id,
                ) from exc

            kwargs: dict[str, Any] = {
                "api_key": self._api_key,
                "timeout": self._timeout,
            }
            if self._base_url:
                kwargs["base_url"] = self._base_url
            self._client = AsyncOpenAI(**kwargs)
        return self._client

    async def is_available(self) -> bool:
        """Validate the key with a lightweight models request."""
        try:
            await self._get_client().models.list()
        except Exception as e:
            logger.debug("OpenAI availability probe failed: %s: %s", type(e).__name__, e)
            return False
        return True

    async def embed_batch(self, texts: list[str]) -> BatchEmbeddingResult:
        """Embed texts with a single embeddings API call."""
        if not texts:
            return BatchEmbeddingResult(embeddings=[])

        logger.debug("Generating embeddings: count=%d model=%s", len(texts), self._model)
        client = self._get_client()
        try:
            response = await client.embeddings.create(model=self._model, input=texts)
        except Exception as e:
            raise ProviderError(
                f"OpenAI embeddings request failed: {type(e).__name__}: {e}",
                provider_id=self.provider_id,
            ) from e

        data = list(getattr(response, "data", None) or [])
        if len(data) != len(texts):
            raise ProviderError(
                f"OpenAI returned {len(data)} embeddings for {len(texts)} inputs",
                provider_id=self.provider_id,
            )

        # The API reports each item's input position; don't rely on list order.
        ordered = sorted(data, key=lambda item: getattr(item, "index", 0))
        usage = getattr(response, "usage", None)
        total_tokens = getattr(usage, "total_tokens", None) if usage else None
        embeddings = []
        for item in ordered:
            vector = getattr(item, "embedding", None)
            if not vector:
                raise ProviderError(
                    "OpenAI returned an empty embedding", provider_id=self.provider_id
                )
            embeddings.append(self._result([float(v) for v in vector]))
        return BatchEmbeddingResult(embeddings=embeddings, total_tokens=total_tokens)
