"""Environment and settings (Pydantic Settings)."""

from pathlib import Path
from typing import Literal, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Default data directory: ~/.parklens/data/
_data_dir = Path.home() / ".parklens" / "data"

EmbeddingProviderType = Literal["openai", "transformers", "auto"]


class Settings(BaseSettings):
    """parklens settings loaded from environment and .env.

    Values are read once when the engine is built; providers and the vector
    store never re-read them per call.
    """

    model_config = SettingsConfigDict(
        env_prefix="PARKLENS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Paths (local-first data stored in ~/.parklens/data/)
    db_path: Path = _data_dir / "entities.db"
    vector_db_path: Path = _data_dir / "lancedb"

    # Embedding provider selection
    embedding_provider: EmbeddingProviderType = "auto"

    # OpenAI settings (OPENAI_API_KEY is honoured as well as PARKLENS_OPENAI_API_KEY)
    openai_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("PARKLENS_OPENAI_API_KEY", "OPENAI_API_KEY"),
    )
    openai_model: Optional[str] = None
    openai_base_url: Optional[str] = None
    openai_timeout: float = 30.0

    # E5-style "query: " / "passage: " prefixes; all-MiniLM and OpenAI don't use them
    use_e5_prefixes: bool = False

    # Embedding maintenance
    embedding_batch_size: int = Field(default=50, ge=1)

    # Search defaults
    search_default_limit: int = Field(default=10, ge=1)
    search_min_score: float = 0.3
    search_over_fetch_factor: int = Field(default=3, ge=1)

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_file: Path = _data_dir / "parklens.log"

    @field_validator("embedding_provider", mode="before")
    @classmethod
    def _normalize_provider(cls, value: object) -> str:
        """Unknown provider names fall back to auto selection."""
        text = str(value or "").lower().strip()
        if text in ("openai", "transformers", "auto"):
            return text
        return "auto"


def get_settings() -> Settings:
    """Return application settings (singleton-like)."""
    return Settings()
