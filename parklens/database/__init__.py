"""Database layer - SQLite entity store and LanceDB vector store."""

from .entities import EntityDB
from .lance_store import LanceVectorStore
from .vector_store import EmbeddingRecord, EmbeddingStats, VectorHit, VectorStore

__all__ = [
    "EntityDB",
    "LanceVectorStore",
    "EmbeddingRecord",
    "EmbeddingStats",
    "VectorHit",
    "VectorStore",
]
