"""Embedding Manager: provider factory with automatic fallback.

Owned by the engine (composition root) and passed to the search and
maintenance code; tests build a fresh manager instead of resetting globals.
"""

import logging
from typing import Optional

from parklens.exceptions import ConfigurationError

from .config import EmbeddingConfig, load_config
from .openai import OpenAIEmbeddingProvider
from .provider import EmbeddingProvider
from .sentence_transformer import SentenceTransformerEmbeddingProvider

logger = logging.getLogger(__name__)


class EmbeddingManager:
    """Selects and caches the embedding provider for the life of the manager.

    Selection policy:
        - "openai": requires an API key, otherwise ConfigurationError.
        - "transformers": local model.
        - "auto": OpenAI when a key is set and the API answers, else local.

    Once selected, the provider is never swapped mid-session; provider errors
    propagate to the caller.
    """

    def __init__(self, config: Optional[EmbeddingConfig] = None) -> None:
        """Initialize embedding manager.

        Args:
            config: Optional config. If None, loads from settings.
        """
        self._config = config
        self._provider: Optional[EmbeddingProvider] = None

    @property
    def config(self) -> EmbeddingConfig:
        """Get configuration, loading from settings if needed."""
        if self._config is None:
            self._config = load_config()
        return self._config

    @property
    def current(self) -> Optional[EmbeddingProvider]:
        """The cached provider, if one has been selected."""
        return self._provider

    async def get_provider(self) -> EmbeddingProvider:
        """Get the configured embedding provider, selecting it on first call.

        Raises:
            ConfigurationError: OpenAI was requested explicitly without a key.
        """
        if self._provider is not None:
            return self._provider

        # No lock: a rare concurrent first call builds an equivalent provider
        # and the last assignment wins.
        provider = await self._select()
        self._provider = provider
        return provider

    def reset(self) -> None:
        """Drop the cached provider so the next call selects again."""
        self._provider = None

    async def _select(self) -> EmbeddingProvider:
        config = self.config

        if config.provider == "openai":
            if not config.openai_api_key:
                raise ConfigurationError(
                    "OpenAI embedding provider requested but OPENAI_API_KEY is not set"
                )
            provider: EmbeddingProvider = self._build_openai()
            logger.info("Using OpenAI embedding provider (model=%s)", provider.model_id)
            return provider

        if config.provider == "transformers":
            provider = self._build_local()
            logger.info("Using local embedding provider (model=%s)", provider.model_id)
            return provider

        if config.openai_api_key:
            openai_provider = self._build_openai()
            if await openai_provider.is_available():
                logger.info(
                    "Auto-selected OpenAI embedding provider (model=%s)",
                    openai_provider.model_id,
                )
                return openai_provider
            logger.warning(
                "OpenAI API key provided but API unavailable, falling back to local model"
            )

        provider = self._build_local()
        logger.info("Auto-selected local embedding provider (model=%s)", provider.model_id)
        return provider

    def _build_openai(self) -> OpenAIEmbeddingProvider:
        return OpenAIEmbeddingProvider(
            api_key=self.config.openai_api_key or "",
            model=self.config.openai_model,
            base_url=self.config.openai_base_url,
            timeout=self.config.timeout,
        )

    def _build_local(self) -> SentenceTransformerEmbeddingProvider:
        return SentenceTransformerEmbeddingProvider()
