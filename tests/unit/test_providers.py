"""Tests for the OpenAI and sentence-transformers providers (no network, no model)."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import pytest

from parklens.embeddings import OpenAIEmbeddingProvider, SentenceTransformerEmbeddingProvider
from parklens.exceptions import ProviderError


class _FakeEmbeddings:
    def __init__(self, response: Any = None, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.calls: list[dict[str, Any]] = []

    async def create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return self.response


class _FakeModels:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error

    async def list(self) -> list[str]:
        if self.error:
            raise self.error
        return ["text-embedding-3-small"]


def _client(
    response: Any = None,
    error: Exception | None = None,
    models_error: Exception | None = None,
) -> SimpleNamespace:
    return SimpleNamespace(
        embeddings=_FakeEmbeddings(response, error),
        models=_FakeModels(models_error),
    )


def _response(*items: tuple[int, list[float]], total_tokens: int = 7) -> SimpleNamespace:
    return SimpleNamespace(
        data=[SimpleNamespace(index=i, embedding=v) for i, v in items],
        usage=SimpleNamespace(total_tokens=total_tokens),
    )


class TestOpenAIProvider:
    @pytest.mark.asyncio
    async def test_embed_batch_orders_by_index(self) -> None:
        client = _client(_response((1, [0.0, 1.0]), (0, [1.0, 0.0])))
        provider = OpenAIEmbeddingProvider(api_key="sk-test", client=client)

        result = await provider.embed_batch(["first", "second"])

        assert [e.embedding for e in result.embeddings] == [[1.0, 0.0], [0.0, 1.0]]
        assert result.embeddings[0].model == "openai:text-embedding-3-small"
        assert result.embeddings[0].dimension == 2
        assert result.total_tokens == 7
        assert client.embeddings.calls == [
            {"model": "text-embedding-3-small", "input": ["first", "second"]}
        ]

    @pytest.mark.asyncio
    async def test_embed_single(self) -> None:
        provider = OpenAIEmbeddingProvider(
            api_key="sk-test", model="text-embedding-3-large", client=_client(_response((0, [0.5])))
        )

        result = await provider.embed("fireworks")

        assert result.embedding == [0.5]
        assert result.model == "openai:text-embedding-3-large"
        assert provider.dimension == 3072

    @pytest.mark.asyncio
    async def test_empty_batch_skips_api(self) -> None:
        client = _client()
        provider = OpenAIEmbeddingProvider(api_key="sk-test", client=client)

        result = await provider.embed_batch([])

        assert result.embeddings == []
        assert client.embeddings.calls == []

    @pytest.mark.asyncio
    async def test_api_error_becomes_provider_error(self) -> None:
        provider = OpenAIEmbeddingProvider(
            api_key="sk-test", client=_client(error=RuntimeError("401 invalid key"))
        )

        with pytest.raises(ProviderError) as exc_info:
            await provider.embed_batch(["a"])

        assert exc_info.value.provider_id == "openai"
        assert "401 invalid key" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_length_mismatch_is_malformed(self) -> None:
        provider = OpenAIEmbeddingProvider(
            api_key="sk-test", client=_client(_response((0, [1.0])))
        )

        with pytest.raises(ProviderError):
            await provider.embed_batch(["a", "b"])

    @pytest.mark.asyncio
    async def test_is_available(self) -> None:
        up = OpenAIEmbeddingProvider(api_key="sk-test", client=_client())
        down = OpenAIEmbeddingProvider(
            api_key="sk-test", client=_client(models_error=ConnectionError("offline"))
        )

        assert await up.is_available() is True
        assert await down.is_available() is False

    def test_unknown_model_dimension_falls_back(self) -> None:
        provider = OpenAIEmbeddingProvider(api_key="sk-test", model="custom-embedder")

        assert provider.dimension == 1536
        assert provider.full_model_name == "openai:custom-embedder"


class _FakeEncoder:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[tuple[list[str], dict[str, Any]]] = []

    def encode(self, texts: list[str], **kwargs: Any) -> list[list[float]]:
        self.calls.append((list(texts), kwargs))
        if self.error:
            raise self.error
        return [[float(len(t)), 1.0] for t in texts]


class TestSentenceTransformerProvider:
    def test_identity(self) -> None:
        provider = SentenceTransformerEmbeddingProvider(encoder=_FakeEncoder())

        assert provider.provider_id == "transformers"
        assert provider.model_id == "all-MiniLM-L6-v2"
        assert provider.full_model_name == "transformers:all-MiniLM-L6-v2"
        assert provider.dimension == 384

    @pytest.mark.asyncio
    async def test_embed_batch_normalizes(self) -> None:
        encoder = _FakeEncoder()
        provider = SentenceTransformerEmbeddingProvider(encoder=encoder)

        result = await provider.embed_batch(["ab", "abcd"])

        assert [e.embedding for e in result.embeddings] == [[2.0, 1.0], [4.0, 1.0]]
        assert result.embeddings[0].model == "transformers:all-MiniLM-L6-v2"
        texts, kwargs = encoder.calls[0]
        assert texts == ["ab", "abcd"]
        assert kwargs["normalize_embeddings"] is True
        assert kwargs["show_progress_bar"] is False

    @pytest.mark.asyncio
    async def test_empty_batch_skips_model(self) -> None:
        encoder = _FakeEncoder()
        provider = SentenceTransformerEmbeddingProvider(encoder=encoder)

        assert (await provider.embed_batch([])).embeddings == []
        assert encoder.calls == []

    @pytest.mark.asyncio
    async def test_encoder_failure_becomes_provider_error(self) -> None:
        provider = SentenceTransformerEmbeddingProvider(encoder=_FakeEncoder(MemoryError("oom")))

        with pytest.raises(ProviderError) as exc_info:
            await provider.embed("space mountain")

        assert exc_info.value.provider_id == "transformers"

    @pytest.mark.asyncio
    async def test_is_always_available(self) -> None:
        assert await SentenceTransformerEmbeddingProvider(encoder=_FakeEncoder()).is_available()
