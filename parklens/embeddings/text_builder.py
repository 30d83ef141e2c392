"""Embedding text builder.

Renders an entity into deterministic natural-language text for embedding, and
fingerprints that text so unchanged entities are never re-embedded.
"""

import hashlib

from parklens.models import EntityBase

from .constants import DOCUMENT_PREFIX, QUERY_PREFIX, TEXT_HASH_LENGTH

# Embedding models are trained on prose, so categories are spelled out.
ENTITY_TYPE_PHRASES = {
    "ATTRACTION": "ride attraction",
    "RESTAURANT": "dining restaurant",
    "SHOW": "entertainment show",
    "PARK": "theme park",
    "HOTEL": "resort hotel",
    "DESTINATION": "vacation destination",
}

PART_SEPARATOR = ". "


def format_entity_type(entity_type: str) -> str:
    return ENTITY_TYPE_PHRASES.get(entity_type, entity_type.lower())


def build_embedding_text(entity: EntityBase, *, use_e5_prefixes: bool = False) -> str:
    """Build the embedding text for an entity.

    Name first, then the category phrase, the park, and the type-specific
    phrases from ``entity.render_extension()``. Empty parts are dropped and
    absent fields contribute nothing.

    Args:
        entity: Any entity variant.
        use_e5_prefixes: Prepend "passage: " for E5-style models.

    Returns:
        Parts joined with ". ".
    """
    parts = [entity.name, format_entity_type(entity.entity_type)]
    if entity.park_name:
        parts.append(f"at {entity.park_name}")
    parts.extend(entity.render_extension())

    text = PART_SEPARATOR.join(part for part in parts if part)
    return DOCUMENT_PREFIX + text if use_e5_prefixes else text


def format_query_text(query: str, *, use_e5_prefixes: bool = False) -> str:
    """Format a search query, adding "query: " for E5-style models."""
    return QUERY_PREFIX + query if use_e5_prefixes else query


def hash_embedding_text(text: str) -> str:
    """Return a short, stable SHA-256 fingerprint of the embedding text."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:TEXT_HASH_LENGTH]
