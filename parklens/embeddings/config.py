"""Configuration for embedding provider selection.

Built once from ``Settings`` when the engine starts; never re-read per call.
"""

from dataclasses import dataclass
from typing import Optional

from parklens.config import EmbeddingProviderType, Settings, get_settings

from .constants import DEFAULT_API_TIMEOUT


@dataclass(frozen=True)
class EmbeddingConfig:
    """Provider selection mode plus the OpenAI credentials it may need."""

    provider: EmbeddingProviderType = "auto"
    openai_api_key: Optional[str] = None
    openai_model: Optional[str] = None
    openai_base_url: Optional[str] = None
    timeout: float = DEFAULT_API_TIMEOUT


def load_config(settings: Optional[Settings] = None) -> EmbeddingConfig:
    """Build the embedding configuration from application settings.

    Args:
        settings: Settings to read. Defaults to ``get_settings()``.

    Returns:
        EmbeddingConfig with blank strings normalized to None.
    """
    s = settings or get_settings()
    return EmbeddingConfig(
        provider=s.embedding_provider,
        openai_api_key=(s.openai_api_key or "").strip() or None,
        openai_model=(s.openai_model or "").strip() or None,
        openai_base_url=(s.openai_base_url or "").strip() or None,
        timeout=s.openai_timeout,
    )
