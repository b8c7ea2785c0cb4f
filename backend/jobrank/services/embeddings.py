"""
OpenAI Embeddings Service - Text Vectorization for Semantic Retrieval

Converts text into dense vectors using OpenAI's text-embedding-3 models.
Used for the profile context embedding and for job pool embeddings.

Key Classes:
    - EmbeddingProvider: Protocol the pipeline depends on
    - OpenAIEmbeddings: OpenAI API provider (batches of 100 per request)

Ordering:
    The API returns one item per input with an ``index`` field. Items are
    re-sorted by that index before returning, so output[i] always
    corresponds to texts[i].

Model Details:
    - Model: text-embedding-3-small
    - Dimensions: 1536
"""

import logging
from typing import Any, List, Optional, Protocol, Sequence, runtime_checkable

from openai import APIError, AsyncOpenAI

from jobrank.exceptions import EmbeddingError

logger = logging.getLogger(__name__)

EMBEDDING_BATCH_SIZE = 100

MODEL_DIMENSIONS = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Anything that turns a sequence of texts into vectors, order-preserving."""

    async def embed(self, texts: Sequence[str]) -> List[List[float]]:
        ...


class OpenAIEmbeddings:
    """
    OpenAI API embeddings provider.

    Attributes:
        model: OpenAI embedding model name
        batch_size: Maximum texts per API call

    Example:
        >>> provider = OpenAIEmbeddings(api_key="sk-...")
        >>> vectors = await provider.embed(["Python developer", "Go developer"])
    """

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        batch_size: int = EMBEDDING_BATCH_SIZE,
        client: Optional[Any] = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.batch_size = batch_size
        self._client = client

    def _get_client(self) -> AsyncOpenAI:
        """Get or create async OpenAI client."""
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None

    @property
    def dimensions(self) -> int:
        return MODEL_DIMENSIONS.get(self.model, 1536)

    async def embed(self, texts: Sequence[str]) -> List[List[float]]:
        """
        Embed texts in batches, preserving input order.

        Args:
            texts: Texts to embed

        Returns:
            One vector per input text, same order as input

        Raises:
            EmbeddingError: On any provider error; no partial results
        """
        if not texts:
            return []

        client = self._get_client()
        vectors: List[List[float]] = []

        for i in range(0, len(texts), self.batch_size):
            batch = list(texts[i:i + self.batch_size])
            try:
                response = await client.embeddings.create(
                    input=batch,
                    model=self.model,
                )
            except APIError as e:
                status = getattr(e, "status_code", None)
                raise EmbeddingError(
                    f"OpenAI embeddings failed: {status} - {e}", status_code=status
                ) from e

            if len(response.data) != len(batch):
                raise EmbeddingError(
                    f"OpenAI embeddings returned {len(response.data)} vectors "
                    f"for {len(batch)} inputs"
                )

            ordered = sorted(response.data, key=lambda d: d.index)
            vectors.extend(d.embedding for d in ordered)

        return vectors
