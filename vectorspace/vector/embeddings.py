"""
Embedding providers: turn rendered text into fixed-dimension float vectors.
The vector space only depends on IEmbeddingProvider; models stay external.
"""

import asyncio
import hashlib
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

import numpy as np

from ..core.errors import EmbeddingFailure, VectorSpaceError


class IEmbeddingProvider(ABC):
    """Abstract interface for embedding providers."""

    @abstractmethod
    def embed_text(self, text: str) -> List[float]:
        """Generate embedding vector for given text."""
        pass

    @abstractmethod
    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        pass

    async def embed(self, text: str) -> List[float]:
        """Awaitable embedding; blocking providers run in a worker thread."""
        return await asyncio.to_thread(self.embed_text, text)


class DeterministicHashEmbedding(IEmbeddingProvider):
    """Deterministic hash-based embedding provider for testing purposes.

    The text hash seeds a random generator, so identical text always gives an
    identical vector and different texts give near-orthogonal ones, without
    any model dependency.
    """

    def __init__(self, dimension: int = 384):
        self.dimension = dimension

    def embed_text(self, text: str) -> List[float]:
        """Generate deterministic embedding vector using hash function."""
        digest = hashlib.md5(text.encode("utf-8")).digest()
        seed = int.from_bytes(digest[:8], "big")
        rng = np.random.default_rng(seed)
        return rng.standard_normal(self.dimension).astype(np.float32).tolist()

    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        return self.dimension


class SentenceTransformerEmbedding(IEmbeddingProvider):
    """Sentence transformers embedding provider using pre-trained models.

    The model is loaded on first use.
    """

    def __init__(self, model_name: str = "all-MiniLM-L6-v2"):
        self.model_name = model_name
        self._model = None
        self._dimension = None

    @property
    def model(self):
        if self._model is None:
            from sentence_transformers import SentenceTransformer
            self._model = SentenceTransformer(self.model_name)
        return self._model

    def embed_text(self, text: str) -> List[float]:
        """Generate embedding vector using sentence transformers."""
        embedding = self.model.encode(text, convert_to_tensor=False)
        return embedding.tolist()

    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        if self._dimension is None:
            self._dimension = self.model.get_sentence_embedding_dimension()
        return self._dimension


class OllamaEmbedding(IEmbeddingProvider):
    """Embedding provider backed by an Ollama server.

    Ollama does not report the embedding size up front, so the dimension must
    be configured to match the model (768 for nomic-embed-text).
    """

    def __init__(self, model_name: str = "nomic-embed-text", dimension: int = 768,
                 host: Optional[str] = None, timeout: Optional[float] = None):
        import ollama

        self.model_name = model_name
        self.dimension = dimension
        self._client = ollama.Client(host=host, timeout=timeout)
        self._async_client = ollama.AsyncClient(host=host, timeout=timeout)

    def embed_text(self, text: str) -> List[float]:
        response = self._client.embed(model=self.model_name, input=text)
        return list(response.embeddings[0])

    async def embed(self, text: str) -> List[float]:
        response = await self._async_client.embed(model=self.model_name, input=text)
        return list(response.embeddings[0])

    def get_dimension(self) -> int:
        return self.dimension


async def embed_checked(provider: IEmbeddingProvider, text: str, dimension: int) -> List[float]:
    """Embed one text, wrapping provider errors and enforcing the dimension."""
    try:
        vector = await provider.embed(text)
    except VectorSpaceError:
        raise
    except Exception as e:
        raise EmbeddingFailure(f"Embedding provider failed: {e}") from e

    if len(vector) != dimension:
        raise EmbeddingFailure(
            f"Embedding dimension {len(vector)} does not match expected dimension {dimension}"
        )
    return [float(value) for value in vector]


async def embed_batch(provider: IEmbeddingProvider, texts: Sequence[str], dimension: int,
                      concurrency: int = 4) -> List[List[float]]:
    """Embed texts concurrently; the first failure aborts the whole batch.

    Embeddings still in flight when one fails are cancelled before the error
    propagates. Calls already running in a worker thread finish in the
    background, but their results are discarded.
    """
    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def bounded(text: str) -> List[float]:
        async with semaphore:
            return await embed_checked(provider, text, dimension)

    tasks = [asyncio.ensure_future(bounded(text)) for text in texts]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
