"""Constants for the embeddings module.

Centralizes default models, dimensions and tuning values for the embedding
providers and the maintenance pipeline.
"""

# =============================================================================
# OpenAI
# =============================================================================

OPENAI_DEFAULT_MODEL = "text-embedding-3-small"

# Output dimensions of the OpenAI embedding models we know about.
# Unknown models are assumed to be 1536-dimensional.
OPENAI_MODEL_DIMENSIONS = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}
OPENAI_FALLBACK_DIMENSION = 1536

# Default timeout for the embeddings API (seconds)
DEFAULT_API_TIMEOUT = 30.0

# =============================================================================
# Local sentence-transformers model
# =============================================================================

LOCAL_MODEL_ID = "all-MiniLM-L6-v2"
LOCAL_MODEL_NAME = "sentence-transformers/all-MiniLM-L6-v2"
LOCAL_DIMENSION = 384

# =============================================================================
# Text prefixes (E5-style query/document asymmetry)
# =============================================================================

DOCUMENT_PREFIX = "passage: "
QUERY_PREFIX = "query: "

# =============================================================================
# Hashing
# =============================================================================

# Hex characters kept from the SHA-256 digest of the embedding text.
TEXT_HASH_LENGTH = 16
