"""
VectorSpace backed by a Qdrant server.

Namespaces map to Qdrant collections. Items are serialized into the point
payload, so Qdrant is the source of truth and no local object store is kept.
"""

from contextlib import contextmanager
from typing import Any, Iterable, List

from pydantic import TypeAdapter, ValidationError
from qdrant_client import AsyncQdrantClient, models
from qdrant_client.http.exceptions import ResponseHandlingException, UnexpectedResponse

from ..core.errors import BackendFailure, KeyCollision, KeyNotFound, VectorSpaceError
from ..util.logging import logger
from .embeddings import IEmbeddingProvider, embed_batch, embed_checked
from .namespace import Namespace
from .space import NamespaceLike, VectorSpace
from .types import DistanceMetric, content_id, item_id, key_of, render_value

PAYLOAD_FIELD = "data"

QDRANT_DISTANCES = {
    DistanceMetric.COSINE: models.Distance.COSINE,
    DistanceMetric.EUCLIDEAN: models.Distance.EUCLID,
    DistanceMetric.DOT_PRODUCT: models.Distance.DOT,
}

# ValueError covers local-mode clients and pydantic payload validation
BACKEND_ERRORS = (UnexpectedResponse, ResponseHandlingException, ValueError)


class QdrantVectorSpace(VectorSpace):
    """Qdrant-backed implementation of VectorSpace.

    Remote failures are normalized: existing/missing collections surface as
    KeyCollision/KeyNotFound, anything else as BackendFailure.
    """

    def __init__(self, client: AsyncQdrantClient, embedding_provider: IEmbeddingProvider,
                 item_type: Any,
                 metric: DistanceMetric = DistanceMetric.COSINE,
                 embed_concurrency: int = 4):
        """
        Initialize the Qdrant vector space.

        Args:
            client: Connected async Qdrant client
            embedding_provider: Provider used for items and queries
            item_type: Type of stored items, used to (de)serialize payloads.
                knn rebuilds items from their payload, so it is required.
            metric: Distance used when creating collections
            embed_concurrency: Maximum embedding calls in flight per batch
        """
        if item_type is None:
            raise ValueError("QdrantVectorSpace requires an item_type to deserialize stored payloads")

        self.client = client
        self.embedding_provider = embedding_provider
        self.dimension = embedding_provider.get_dimension()
        self.metric = DistanceMetric(metric)
        self.embed_concurrency = max(1, embed_concurrency)
        self.item_type = item_type
        self._adapter = TypeAdapter(item_type)

    @contextmanager
    def _remote(self, operation: str, ns: Namespace):
        try:
            yield
        except VectorSpaceError:
            raise
        except BACKEND_ERRORS as e:
            logger.log_vector_operation(operation, str(ns), status="failed", details={"error": str(e)})
            raise BackendFailure(f"Qdrant {operation} failed for {ns}: {e}") from e

    async def _exists(self, ns: Namespace) -> bool:
        with self._remote("exists", ns):
            return await self.client.collection_exists(collection_name=str(ns))

    async def _require(self, ns: Namespace) -> None:
        if not await self._exists(ns):
            raise KeyNotFound(str(ns))

    async def namespace_exists(self, namespace: NamespaceLike) -> bool:
        return await self._exists(Namespace.coerce(namespace))

    async def create_namespace(self, namespace: NamespaceLike) -> None:
        ns = Namespace.coerce(namespace)
        if await self._exists(ns):
            raise KeyCollision(str(ns))

        with self._remote("create_namespace", ns):
            await self.client.create_collection(
                collection_name=str(ns),
                vectors_config=models.VectorParams(
                    size=self.dimension,
                    distance=QDRANT_DISTANCES[self.metric],
                ),
            )

        logger.log_namespace_operation("create", str(ns), details={"dimension": self.dimension})

    async def delete_namespace(self, namespace: NamespaceLike) -> None:
        ns = Namespace.coerce(namespace)
        await self._require(ns)

        with self._remote("delete_namespace", ns):
            await self.client.delete_collection(collection_name=str(ns))

        logger.log_namespace_operation("delete", str(ns))

    async def add_items(self, namespace: NamespaceLike, items: Iterable[Any]) -> None:
        ns = Namespace.coerce(namespace)
        await self._require(ns)

        items = list(items)
        if not items:
            return

        texts = [render_value(key_of(item)) for item in items]
        vectors = await embed_batch(self.embedding_provider, texts, self.dimension, self.embed_concurrency)

        with self._remote("add", ns):
            points = [
                models.PointStruct(
                    id=content_id(text),
                    vector=vector,
                    payload={PAYLOAD_FIELD: self._adapter.dump_python(item, mode="json")},
                )
                for text, vector, item in zip(texts, vectors, items)
            ]
            await self.client.upsert(collection_name=str(ns), points=points, wait=True)

        logger.log_vector_operation("add", str(ns), [point.id for point in points])

    async def delete_items(self, namespace: NamespaceLike, items: Iterable[Any]) -> None:
        ns = Namespace.coerce(namespace)
        await self._require(ns)
        ids = list(dict.fromkeys(item_id(item) for item in items))
        if not ids:
            return

        with self._remote("delete", ns):
            found = await self.client.retrieve(
                collection_name=str(ns), ids=ids, with_payload=False, with_vectors=False
            )
            present = {record.id for record in found}
            not_found = [record_id for record_id in ids if record_id not in present]
            if not_found:
                raise KeyNotFound(f"{not_found}", missing=not_found)

            await self.client.delete(
                collection_name=str(ns),
                points_selector=models.PointIdsList(points=ids),
                wait=True,
            )

        logger.log_vector_operation("delete", str(ns), ids)

    async def knn(self, namespace: NamespaceLike, query: Any, k: int) -> List[Any]:
        ns = Namespace.coerce(namespace)
        await self._require(ns)
        if k <= 0:
            return []

        vector = await embed_checked(self.embedding_provider, render_value(query), self.dimension)

        with self._remote("knn", ns):
            response = await self.client.query_points(
                collection_name=str(ns), query=vector, limit=k, with_payload=True
            )
            # Points without a stored payload are dropped like unmatched ids in memory
            return [
                self._load(point.payload[PAYLOAD_FIELD])
                for point in response.points
                if point.payload and PAYLOAD_FIELD in point.payload
            ]

    async def count(self, namespace: NamespaceLike) -> int:
        ns = Namespace.coerce(namespace)
        await self._require(ns)
        with self._remote("count", ns):
            result = await self.client.count(collection_name=str(ns), exact=True)
        return result.count

    def _load(self, data: Any) -> Any:
        try:
            return self._adapter.validate_python(data)
        except ValidationError as e:
            raise BackendFailure(f"Failed to deserialize payload: {e}") from e
