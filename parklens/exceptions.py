"""Custom exceptions for parklens."""

from typing import Any


class ParklensError(Exception):
    """Base exception for parklens."""

    pass


class ConfigurationError(ParklensError):
    """Configuration-related errors (e.g. a pinned provider without credentials)."""

    pass


class ProviderError(ParklensError):
    """Embedding provider failures (network, auth, malformed response)."""

    def __init__(self, message: str, provider_id: str | None = None):
        super().__init__(message)
        self.provider_id = provider_id


class InvalidInputError(ParklensError, ValueError):
    """Input rejected before any external call is made."""

    pass


class VectorEngineError(ParklensError):
    """Vector store unavailable or query rejected by the engine."""

    pass


def error_to_dict(exc: Exception) -> dict[str, Any]:
    """Render an exception as a structured payload for the tool layer."""
    payload: dict[str, Any] = {
        "error": type(exc).__name__,
        "message": str(exc),
    }
    provider_id = getattr(exc, "provider_id", None)
    if provider_id:
        payload["provider"] = provider_id
    return payload
