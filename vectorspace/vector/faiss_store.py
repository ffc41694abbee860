"""
In-memory VectorSpace backed by per-namespace FAISS HNSW collections.
Nothing is persisted; a process restart starts from an empty space.
"""

import asyncio
import threading
from typing import Any, Dict, Iterable, List, Tuple

from ..core.errors import KeyCollision, KeyNotFound, VectorSpaceError
from ..util.logging import logger
from .embeddings import IEmbeddingProvider, embed_batch, embed_checked
from .index import IndexCollection
from .namespace import Namespace
from .space import NamespaceLike, VectorSpace
from .types import DistanceMetric, content_id, item_id, key_of, render_value


class FaissVectorSpace(VectorSpace):
    """FAISS-backed implementation of VectorSpace.

    Holds one IndexCollection per namespace plus the original items, keyed by
    (namespace, id). The namespace directory lock is only held to look up,
    insert or remove collections; each collection serializes its own rebuilds
    and searches. Embedding always happens before any lock is taken, and
    index work runs in a worker thread so a rebuild in one namespace does not
    hold up the event loop.
    """

    def __init__(self, embedding_provider: IEmbeddingProvider,
                 metric: DistanceMetric = DistanceMetric.COSINE,
                 m: int = 32, ef_construction: int = 40, ef_search: int = 64,
                 embed_concurrency: int = 4):
        """
        Initialize an empty in-memory vector space.

        Args:
            embedding_provider: Provider used for items and queries
            metric: Similarity metric for every namespace
            m: HNSW graph degree
            ef_construction: HNSW build-time candidate list size
            ef_search: HNSW search-time candidate list size
            embed_concurrency: Maximum embedding calls in flight per batch
        """
        self.embedding_provider = embedding_provider
        self.dimension = embedding_provider.get_dimension()
        self.metric = DistanceMetric(metric)
        self.m = m
        self.ef_construction = ef_construction
        self.ef_search = ef_search
        self.embed_concurrency = max(1, embed_concurrency)

        self._collections: Dict[Namespace, IndexCollection] = {}
        self._collections_lock = threading.Lock()
        self._items: Dict[Tuple[Namespace, int], Any] = {}
        self._items_lock = threading.Lock()

    def collection(self, namespace: NamespaceLike) -> IndexCollection:
        """Index collection of a namespace. Raises KeyNotFound if absent."""
        ns = Namespace.coerce(namespace)
        with self._collections_lock:
            collection = self._collections.get(ns)
        if collection is None:
            raise KeyNotFound(str(ns))
        return collection

    async def namespace_exists(self, namespace: NamespaceLike) -> bool:
        ns = Namespace.coerce(namespace)
        with self._collections_lock:
            return ns in self._collections

    async def create_namespace(self, namespace: NamespaceLike) -> None:
        ns = Namespace.coerce(namespace)
        with self._collections_lock:
            if ns in self._collections:
                logger.log_namespace_operation("create", str(ns), status="failed",
                                               details={"error": "already exists"})
                raise KeyCollision(str(ns))
            self._collections[ns] = IndexCollection(
                self.dimension,
                metric=self.metric,
                m=self.m,
                ef_construction=self.ef_construction,
                ef_search=self.ef_search,
                name=str(ns),
            )

        logger.log_namespace_operation("create", str(ns), details={"dimension": self.dimension})

    async def delete_namespace(self, namespace: NamespaceLike) -> None:
        ns = Namespace.coerce(namespace)
        with self._collections_lock:
            collection = self._collections.pop(ns, None)
        if collection is None:
            raise KeyNotFound(str(ns))

        with self._items_lock:
            for key in [key for key in self._items if key[0] == ns]:
                del self._items[key]

        logger.log_namespace_operation("delete", str(ns), details={"released": len(collection)})

    async def add_items(self, namespace: NamespaceLike, items: Iterable[Any]) -> None:
        ns = Namespace.coerce(namespace)
        # Fail before spending embedding calls on a missing namespace
        self.collection(ns)

        items = list(items)
        if not items:
            return

        texts = [render_value(key_of(item)) for item in items]
        ids = [content_id(text) for text in texts]
        vectors = await embed_batch(self.embedding_provider, texts, self.dimension, self.embed_concurrency)

        collection = self.collection(ns)
        try:
            await asyncio.to_thread(collection.add_batch, list(zip(ids, vectors)))
        except VectorSpaceError as e:
            logger.log_vector_operation("add", str(ns), ids, status="failed", details={"error": str(e)})
            raise

        with self._items_lock:
            for record_id, item in zip(ids, items):
                self._items[(ns, record_id)] = item

        logger.log_vector_operation("add", str(ns), ids, details={"size": len(collection)})

    async def delete_items(self, namespace: NamespaceLike, items: Iterable[Any]) -> None:
        ns = Namespace.coerce(namespace)
        collection = self.collection(ns)
        ids = [item_id(item) for item in items]

        try:
            await asyncio.to_thread(collection.delete_batch, ids)
        except KeyNotFound as e:
            logger.log_vector_operation("delete", str(ns), ids, status="failed",
                                        details={"missing": e.missing})
            raise

        with self._items_lock:
            for record_id in ids:
                self._items.pop((ns, record_id), None)

        logger.log_vector_operation("delete", str(ns), ids, details={"size": len(collection)})

    async def knn(self, namespace: NamespaceLike, query: Any, k: int) -> List[Any]:
        ns = Namespace.coerce(namespace)
        self.collection(ns)
        if k <= 0:
            return []

        vector = await embed_checked(self.embedding_provider, render_value(query), self.dimension)

        ids = await asyncio.to_thread(self.collection(ns).search, vector, k)

        # Ids without a stored item are dropped, so fewer than k may come back
        with self._items_lock:
            return [self._items[(ns, record_id)] for record_id in ids if (ns, record_id) in self._items]

    async def count(self, namespace: NamespaceLike) -> int:
        return len(self.collection(namespace))
