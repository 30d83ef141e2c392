"""Global fixtures: temp stores, deterministic embedding provider, sample entities."""

from __future__ import annotations

import math
import re
from pathlib import Path
from typing import Optional

import pytest
import pytest_asyncio

from parklens.config import Settings
from parklens.core.engine import Engine
from parklens.database.entities import EntityDB
from parklens.database.lance_store import LanceVectorStore
from parklens.embeddings import BatchEmbeddingResult, EmbeddingManager, EmbeddingProvider
from parklens.embeddings.config import EmbeddingConfig
from parklens.exceptions import ProviderError
from parklens.models import (
    Attraction,
    Dining,
    Entity,
    HeightRequirement,
    Hotel,
    PriceRange,
    Show,
)

# One axis per keyword; texts sharing the same keywords embed identically.
VOCABULARY = (
    "thrill",
    "ride",
    "family",
    "gentle",
    "dining",
    "dinner",
    "show",
    "fireworks",
    "resort",
    "character",
)

_WORD_RE = re.compile(r"[a-z]+")


def keyword_vector(text: str) -> list[float]:
    words = set(_WORD_RE.findall(text.lower()))
    raw = [1.0 if word in words else 0.0 for word in VOCABULARY]
    norm = math.sqrt(sum(v * v for v in raw))
    return [v / norm for v in raw] if norm else raw


class KeywordEmbeddingProvider(EmbeddingProvider):
    """Deterministic bag-of-keywords provider; records every batch it embeds."""

    def __init__(
        self,
        provider_id: str = "transformers",
        model_id: str = "all-MiniLM-L6-v2",
        available: bool = True,
        fail_on_call: Optional[int] = None,
    ) -> None:
        self._provider_id = provider_id
        self._model_id = model_id
        self.available = available
        self.fail_on_call = fail_on_call
        self.calls = 0
        self.batches: list[list[str]] = []

    @property
    def provider_id(self) -> str:
        return self._provider_id

    @property
    def model_id(self) -> str:
        return self._model_id

    @property
    def dimension(self) -> int:
        return len(VOCABULARY)

    @property
    def embedded_texts(self) -> list[str]:
        return [text for batch in self.batches for text in batch]

    async def is_available(self) -> bool:
        return self.available

    async def embed_batch(self, texts: list[str]) -> BatchEmbeddingResult:
        if not texts:
            return BatchEmbeddingResult(embeddings=[])
        self.calls += 1
        if self.calls == self.fail_on_call:
            raise ProviderError("simulated provider outage", provider_id=self.provider_id)
        self.batches.append(list(texts))
        return BatchEmbeddingResult(embeddings=[self._result(keyword_vector(t)) for t in texts])


@pytest.fixture
def provider() -> KeywordEmbeddingProvider:
    return KeywordEmbeddingProvider()


@pytest.fixture
def manager(provider: KeywordEmbeddingProvider, monkeypatch: pytest.MonkeyPatch) -> EmbeddingManager:
    """Manager pinned to the local provider slot, served by the keyword provider."""
    m = EmbeddingManager(EmbeddingConfig(provider="transformers"))
    monkeypatch.setattr(m, "_build_local", lambda: provider)
    return m


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        db_path=tmp_path / "entities.db",
        vector_db_path=tmp_path / "lancedb",
        embedding_provider="transformers",
        log_file=tmp_path / "parklens.log",
    )


@pytest_asyncio.fixture
async def engine(settings: Settings, manager: EmbeddingManager):
    e = Engine(settings, manager=manager)
    yield e
    await e.close()


@pytest.fixture
def entity_db(tmp_path: Path) -> EntityDB:
    db = EntityDB(tmp_path / "entities.db")
    db.init_db()
    return db


@pytest.fixture
def lance_store(tmp_path: Path) -> LanceVectorStore:
    return LanceVectorStore(tmp_path / "lancedb")


@pytest.fixture
def space_mountain() -> Attraction:
    return Attraction(
        id="80010190",
        name="Space Mountain",
        destination_id="wdw",
        park_id="80007944",
        park_name="Magic Kingdom Park",
        experience_type="roller coaster in the dark",
        thrill_level="thrill",
        height_requirement=HeightRequirement(inches=44),
        single_rider=False,
        tags=["thrill-rides", "dark", "FinderPCAttractions"],
    )


@pytest.fixture
def sample_entities(space_mountain: Attraction) -> list[Entity]:
    return [
        space_mountain,
        Attraction(
            id="80010110",
            name="it's a small world",
            destination_id="wdw",
            park_name="Magic Kingdom Park",
            thrill_level="family",
            tags=["slow-rides"],
        ),
        Dining(
            id="16660079",
            name="Be Our Guest Restaurant",
            destination_id="wdw",
            park_name="Magic Kingdom Park",
            service_type="table-service",
            meal_periods=["lunch", "dinner"],
            price_range=PriceRange(symbol="$$$"),
        ),
        Show(
            id="17455435",
            name="Happily Ever After",
            destination_id="wdw",
            park_name="Magic Kingdom Park",
            show_type="fireworks",
        ),
        Hotel(
            id="80010393",
            name="Disney's Grand Floridian Resort & Spa",
            destination_id="wdw",
            tier="deluxe",
        ),
        Attraction(
            id="353377",
            name="Matterhorn Bobsleds",
            destination_id="dlr",
            park_name="Disneyland Park",
            thrill_level="thrill",
            height_requirement=HeightRequirement(inches=42),
        ),
        Dining(
            id="354099",
            name="Plaza Inn",
            destination_id="dlr",
            park_name="Disneyland Park",
            service_type="character-dining",
            meal_periods=["breakfast"],
            character_dining=True,
        ),
    ]
