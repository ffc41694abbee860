"""
Configuration for the vector space, read from the environment (and .env).
Backend and embedding provider are chosen here at construction time.
"""

import os

from dotenv import load_dotenv

load_dotenv()

# Debug flag; index rebuilds are only logged at DEBUG level
DEBUG = os.getenv("DEBUG", "false").lower() == "true"

# Backend selection
VECTOR_PROVIDER = os.getenv("VECTOR_PROVIDER", "faiss")  # faiss|qdrant
DISTANCE_METRIC = os.getenv("DISTANCE_METRIC", "cosine")  # cosine|euclidean|dot_product

# Embedding configuration
EMBED_PROVIDER = os.getenv("EMBED_PROVIDER", "hash")  # hash|sentence_transformers|ollama
EMBED_DIM = int(os.getenv("EMBED_DIM", "384"))
EMBED_MODEL_NAME = os.getenv("EMBED_MODEL_NAME", "all-MiniLM-L6-v2")
EMBED_CONCURRENCY = int(os.getenv("EMBED_CONCURRENCY", "4"))
OLLAMA_HOST = os.getenv("OLLAMA_HOST")  # None uses the ollama client default
OLLAMA_EMBED_MODEL = os.getenv("OLLAMA_EMBED_MODEL", "nomic-embed-text")
OLLAMA_TIMEOUT_SEC = float(os.getenv("OLLAMA_TIMEOUT_SEC", "30"))

# HNSW parameters for the in-memory backend
HNSW_M = int(os.getenv("HNSW_M", "32"))
HNSW_EF_CONSTRUCTION = int(os.getenv("HNSW_EF_CONSTRUCTION", "40"))
HNSW_EF_SEARCH = int(os.getenv("HNSW_EF_SEARCH", "64"))

# Qdrant backend
QDRANT_URL = os.getenv("QDRANT_URL", "http://localhost:6333")
QDRANT_API_KEY = os.getenv("QDRANT_API_KEY")


def get_embedding_provider():
    """Get configured embedding provider implementation."""
    if EMBED_PROVIDER == "sentence_transformers":
        from vectorspace.vector.embeddings import SentenceTransformerEmbedding
        return SentenceTransformerEmbedding(EMBED_MODEL_NAME)
    elif EMBED_PROVIDER == "ollama":
        from vectorspace.vector.embeddings import OllamaEmbedding
        return OllamaEmbedding(
            model_name=OLLAMA_EMBED_MODEL,
            dimension=EMBED_DIM,
            host=OLLAMA_HOST,
            timeout=OLLAMA_TIMEOUT_SEC,
        )
    else:
        from vectorspace.vector.embeddings import DeterministicHashEmbedding
        return DeterministicHashEmbedding(EMBED_DIM)


def get_vector_space(embedding_provider=None, item_type=None):
    """Get configured VectorSpace backend.

    Args:
        embedding_provider: Provider to embed with, defaults to get_embedding_provider()
        item_type: Stored item type; required by the Qdrant backend to deserialize payloads
    """
    if VECTOR_PROVIDER == "qdrant" and item_type is None:
        raise ValueError("VECTOR_PROVIDER=qdrant requires item_type to deserialize stored items")

    provider = embedding_provider or get_embedding_provider()

    if VECTOR_PROVIDER == "qdrant":
        from qdrant_client import AsyncQdrantClient
        from vectorspace.vector.qdrant_store import QdrantVectorSpace
        client = AsyncQdrantClient(url=QDRANT_URL, api_key=QDRANT_API_KEY)
        return QdrantVectorSpace(client, provider, item_type=item_type, metric=DISTANCE_METRIC,
                                 embed_concurrency=EMBED_CONCURRENCY)

    from vectorspace.vector.faiss_store import FaissVectorSpace
    return FaissVectorSpace(
        provider,
        metric=DISTANCE_METRIC,
        m=HNSW_M,
        ef_construction=HNSW_EF_CONSTRUCTION,
        ef_search=HNSW_EF_SEARCH,
        embed_concurrency=EMBED_CONCURRENCY,
    )


def validate_vector_config():
    """Validate vector configuration and return any issues."""
    issues = []

    if VECTOR_PROVIDER not in ["faiss", "qdrant"]:
        issues.append(f"Invalid VECTOR_PROVIDER: {VECTOR_PROVIDER}")

    if EMBED_PROVIDER not in ["hash", "sentence_transformers", "ollama"]:
        issues.append(f"Invalid EMBED_PROVIDER: {EMBED_PROVIDER}")

    if DISTANCE_METRIC not in ["cosine", "euclidean", "dot_product"]:
        issues.append(f"Invalid DISTANCE_METRIC: {DISTANCE_METRIC}")

    if EMBED_DIM < 1:
        issues.append("EMBED_DIM must be >= 1")

    if EMBED_CONCURRENCY < 1:
        issues.append("EMBED_CONCURRENCY must be >= 1")

    if HNSW_M < 2:
        issues.append("HNSW_M must be >= 2")

    if HNSW_EF_CONSTRUCTION < 1 or HNSW_EF_SEARCH < 1:
        issues.append("HNSW_EF_CONSTRUCTION and HNSW_EF_SEARCH must be >= 1")

    return issues
