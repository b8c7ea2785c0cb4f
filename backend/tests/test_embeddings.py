"""
Tests for the OpenAI embeddings provider.

Tests cover:
- Provider configuration and dimensions
- Batching at 100 texts per request
- Output order follows input order, not response order
- Provider errors and short responses raise EmbeddingError

Run with: cd backend && pytest tests/test_embeddings.py -v
"""
import pytest
import httpx
from unittest.mock import AsyncMock, Mock
from openai import APIStatusError

from jobrank.exceptions import EmbeddingError
from jobrank.services.embeddings import (
    EMBEDDING_BATCH_SIZE,
    EmbeddingProvider,
    OpenAIEmbeddings,
)


def embedding_response(count, start=0, reverse=False):
    items = [Mock(index=i, embedding=[float(start + i), 0.0]) for i in range(count)]
    if reverse:
        items.reverse()
    response = Mock()
    response.data = items
    return response


def mock_client(side_effect):
    client = Mock()
    client.embeddings.create = AsyncMock(side_effect=side_effect)
    return client


class TestOpenAIEmbeddingsConfig:
    """Tests for provider construction."""

    def test_defaults(self):
        """Should default to text-embedding-3-small and batches of 100."""
        provider = OpenAIEmbeddings(api_key="test-key")
        assert provider.model == "text-embedding-3-small"
        assert provider.dimensions == 1536
        assert provider.batch_size == EMBEDDING_BATCH_SIZE == 100

    def test_custom_model_dimensions(self):
        provider = OpenAIEmbeddings(api_key="test-key", model="text-embedding-3-large")
        assert provider.dimensions == 3072

    def test_satisfies_protocol(self):
        assert isinstance(OpenAIEmbeddings(api_key="test-key"), EmbeddingProvider)


class TestOpenAIEmbeddingsEmbed:
    """Tests for embed()."""

    @pytest.mark.asyncio
    async def test_empty_input_makes_no_request(self):
        """Empty input should return [] without calling the API."""
        client = mock_client([])
        provider = OpenAIEmbeddings(api_key="test-key", client=client)

        assert await provider.embed([]) == []
        client.embeddings.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_results_sorted_by_index(self):
        """Vectors should line up with inputs even if the API reorders them."""
        client = mock_client([embedding_response(3, reverse=True)])
        provider = OpenAIEmbeddings(api_key="test-key", client=client)

        vectors = await provider.embed(["a", "b", "c"])

        assert vectors == [[0.0, 0.0], [1.0, 0.0], [2.0, 0.0]]
        client.embeddings.create.assert_awaited_once_with(
            input=["a", "b", "c"], model="text-embedding-3-small"
        )

    @pytest.mark.asyncio
    async def test_batches_of_100(self):
        """250 texts should take three requests of 100, 100 and 50."""
        client = mock_client([
            embedding_response(100, start=0),
            embedding_response(100, start=100),
            embedding_response(50, start=200),
        ])
        provider = OpenAIEmbeddings(api_key="test-key", client=client)
        texts = [f"text {i}" for i in range(250)]

        vectors = await provider.embed(texts)

        assert client.embeddings.create.await_count == 3
        sizes = [len(c.kwargs["input"]) for c in client.embeddings.create.await_args_list]
        assert sizes == [100, 100, 50]
        assert len(vectors) == 250
        assert vectors[249] == [249.0, 0.0]

    @pytest.mark.asyncio
    async def test_api_error_raises_embedding_error(self):
        """Provider failures should surface as EmbeddingError with the status."""
        request = httpx.Request("POST", "https://api.openai.com/v1/embeddings")
        response = httpx.Response(429, request=request, text="rate limited")
        error = APIStatusError("rate limited", response=response, body=None)

        provider = OpenAIEmbeddings(api_key="test-key", client=mock_client(error))

        with pytest.raises(EmbeddingError) as exc_info:
            await provider.embed(["a"])

        assert exc_info.value.status_code == 429
        assert "429" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_failure_in_later_batch_returns_nothing(self):
        """A failing batch should fail the whole call, no partial vectors."""
        request = httpx.Request("POST", "https://api.openai.com/v1/embeddings")
        response = httpx.Response(500, request=request)
        error = APIStatusError("server error", response=response, body=None)
        client = mock_client([embedding_response(100), error])

        provider = OpenAIEmbeddings(api_key="test-key", client=client)

        with pytest.raises(EmbeddingError):
            await provider.embed(["x"] * 150)

    @pytest.mark.asyncio
    async def test_short_response_raises(self):
        """Fewer vectors than inputs is an error."""
        provider = OpenAIEmbeddings(
            api_key="test-key", client=mock_client([embedding_response(2)])
        )

        with pytest.raises(EmbeddingError, match="2 vectors for 3 inputs"):
            await provider.embed(["a", "b", "c"])


class TestOpenAIEmbeddingsClose:
    @pytest.mark.asyncio
    async def test_aclose_closes_client(self):
        """The underlying AsyncOpenAI client is closed exactly once."""
        client = mock_client([])
        client.close = AsyncMock()
        provider = OpenAIEmbeddings(api_key="test-key", client=client)

        await provider.aclose()
        await provider.aclose()

        client.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_aclose_without_client(self):
        await OpenAIEmbeddings(api_key="test-key").aclose()
