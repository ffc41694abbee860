"""
Namespaced vector spaces: embed items, index them per namespace, query by similarity.
"""

# Package initialization for vector module
from .namespace import Namespace
from .types import DistanceMetric, Embeddable, Input, SearchHit, TextItem, content_id, item_id, render_value
from .embeddings import IEmbeddingProvider, DeterministicHashEmbedding, SentenceTransformerEmbedding, OllamaEmbedding
from .index import IndexCollection
from .space import VectorSpace
from .faiss_store import FaissVectorSpace

__all__ = [
    'Namespace',
    'DistanceMetric',
    'Embeddable',
    'Input',
    'SearchHit',
    'TextItem',
    'content_id',
    'item_id',
    'render_value',
    'IEmbeddingProvider',
    'DeterministicHashEmbedding',
    'SentenceTransformerEmbedding',
    'OllamaEmbedding',
    'IndexCollection',
    'VectorSpace',
    'FaissVectorSpace',
]
