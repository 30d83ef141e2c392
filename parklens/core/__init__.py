"""Application logic layer."""

from .engine import Engine
from .handlers import register_embedding_handlers
from .search import EntityLookup, SemanticSearchOptions, SemanticSearchService
from .similarity import distance_to_score

__all__ = [
    "Engine",
    "EntityLookup",
    "SemanticSearchOptions",
    "SemanticSearchService",
    "register_embedding_handlers",
    "distance_to_score",
]
