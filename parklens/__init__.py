"""parklens - semantic search over theme-park entities.

Entities are rendered into natural-language text, embedded with OpenAI or a
local sentence-transformers model, stored in LanceDB and searched by vector
similarity.

Example usage:
    >>> from parklens import Engine, SemanticSearchOptions
    >>> async with Engine() as engine:
    ...     results = await engine.search.semantic_search(
    ...         "thrill rides for teens", SemanticSearchOptions(destination_id="wdw")
    ...     )
"""

from .core.engine import Engine
from .core.search import SemanticSearchOptions, SemanticSearchService
from .exceptions import (
    ConfigurationError,
    InvalidInputError,
    ParklensError,
    ProviderError,
    VectorEngineError,
)
from .models import Entity, SearchResult, parse_entity

__all__ = [
    # Composition root
    "Engine",
    # Search
    "SemanticSearchOptions",
    "SemanticSearchService",
    # Models
    "Entity",
    "SearchResult",
    "parse_entity",
    # Errors
    "ParklensError",
    "ConfigurationError",
    "InvalidInputError",
    "ProviderError",
    "VectorEngineError",
]
