"""Embedding providers and text preparation for parklens.

Supports two providers behind one interface:
    - "openai": OpenAI embeddings API (requires OPENAI_API_KEY)
    - "transformers": local sentence-transformers all-MiniLM-L6-v2
    - "auto" (default): OpenAI when its key works, otherwise local

Configuration:
    PARKLENS_EMBEDDING_PROVIDER = openai | transformers | auto
    OPENAI_API_KEY / PARKLENS_OPENAI_API_KEY
    PARKLENS_OPENAI_MODEL (default text-embedding-3-small)
"""

from .config import EmbeddingConfig, load_config
from .manager import EmbeddingManager
from .openai import OpenAIEmbeddingProvider
from .provider import BatchEmbeddingResult, EmbeddingProvider, EmbeddingResult
from .sentence_transformer import SentenceTransformerEmbeddingProvider
from .text_builder import build_embedding_text, format_query_text, hash_embedding_text

__all__ = [
    # Text preparation
    "build_embedding_text",
    "format_query_text",
    "hash_embedding_text",
    # Selection
    "EmbeddingConfig",
    "EmbeddingManager",
    "load_config",
    # Providers
    "EmbeddingProvider",
    "EmbeddingResult",
    "BatchEmbeddingResult",
    "OpenAIEmbeddingProvider",
    "SentenceTransformerEmbeddingProvider",
]
