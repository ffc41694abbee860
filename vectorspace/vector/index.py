"""
Per-namespace ANN index collection backed by FAISS HNSW.

HNSW graphs support append and search but not point removal, so the
collection keeps the authoritative id -> raw vector mapping and treats the
FAISS index as a derived cache that is rebuilt after every mutation.
"""

import threading
import time
from typing import Dict, Iterable, List, Optional, Tuple

import faiss
import numpy as np

from ..core.errors import BackendFailure, KeyNotFound
from ..util.logging import logger
from .types import ID_MASK, DistanceMetric, SearchHit


class IndexCollection:
    """HNSW index plus the raw vectors it is built from.

    Every public method takes the collection lock, so a collection is never
    searched while it is being rebuilt and never rebuilt by two writers.
    """

    def __init__(self, dimension: int, metric: DistanceMetric = DistanceMetric.COSINE,
                 m: int = 32, ef_construction: int = 40, ef_search: int = 64,
                 name: str = "collection"):
        """
        Initialize an empty collection.

        Args:
            dimension: Dimension of every stored vector
            metric: Similarity metric used to build and search the index
            m: HNSW graph degree
            ef_construction: HNSW candidate list size while building
            ef_search: HNSW candidate list size while searching
            name: Label used in log output
        """
        if dimension <= 0:
            raise ValueError(f"Dimension must be positive, got {dimension}")

        self.dimension = dimension
        self.metric = DistanceMetric(metric)
        self.m = m
        self.ef_construction = ef_construction
        self.ef_search = ef_search
        self.name = name

        self._lock = threading.Lock()
        self._vectors: Dict[int, np.ndarray] = {}
        self._index = self._build(self._vectors)

    def __len__(self) -> int:
        return len(self._vectors)

    def __contains__(self, record_id: int) -> bool:
        return record_id in self._vectors

    @property
    def ntotal(self) -> int:
        """Number of vectors in the built FAISS index."""
        return self._index.ntotal

    def ids(self) -> List[int]:
        return list(self._vectors)

    def get_vector(self, record_id: int) -> Optional[np.ndarray]:
        vector = self._vectors.get(record_id)
        return None if vector is None else vector.copy()

    def add_batch(self, pairs: Iterable[Tuple[int, Iterable[float]]]) -> None:
        """Insert (id, vector) pairs and rebuild once for the whole batch.

        An id that is already stored gets its vector replaced. Nothing is
        committed unless the rebuild succeeds.
        """
        staged: Dict[int, np.ndarray] = {}
        for record_id, vector in pairs:
            staged[self._check_id(record_id)] = self._as_vector(vector)

        if not staged:
            return

        with self._lock:
            merged = dict(self._vectors)
            merged.update(staged)
            self._commit(merged)

    def delete_batch(self, ids: Iterable[int]) -> None:
        """Remove ids, then rebuild the index from the remaining vectors.

        Raises KeyNotFound listing every missing id before anything is removed.
        """
        ids = [int(record_id) for record_id in ids]

        with self._lock:
            not_found = [record_id for record_id in ids if record_id not in self._vectors]
            if not_found:
                raise KeyNotFound(f"{not_found}", missing=not_found)

            doomed = set(ids)
            remaining = {
                record_id: vector
                for record_id, vector in self._vectors.items()
                if record_id not in doomed
            }
            self._commit(remaining)

    def delete(self, record_id: int) -> None:
        self.delete_batch([record_id])

    def rebuild(self) -> None:
        """Rebuild the index from the current raw vectors."""
        with self._lock:
            self._commit(self._vectors)

    def search(self, vector: Iterable[float], k: int) -> List[int]:
        """Return up to k ids, best match first."""
        return [hit.id for hit in self.search_with_scores(vector, k)]

    def search_with_scores(self, vector: Iterable[float], k: int) -> List[SearchHit]:
        """Return up to k hits with their similarity or distance, best match first."""
        query = self._as_vector(vector)

        with self._lock:
            if k <= 0 or not self._vectors:
                return []

            query = self._prepare(query.reshape(1, -1))
            try:
                scores, labels = self._index.search(query, min(k, len(self._vectors)))
            except RuntimeError as e:
                raise BackendFailure(f"Search failed on {self.name}: {e}") from e

        # FAISS pads missing neighbours with label -1
        return [
            SearchHit(id=int(label), score=float(score))
            for score, label in zip(scores[0], labels[0])
            if label != -1
        ]

    def _commit(self, vectors: Dict[int, np.ndarray]) -> None:
        start_time = time.time()
        try:
            index = self._build(vectors)
        except RuntimeError as e:
            logger.log_rebuild(self.name, len(vectors), start_time, time.time(), status="failed",
                               details={"error": str(e)})
            raise BackendFailure(f"Failed to build collection {self.name}: {e}") from e

        self._vectors = vectors
        self._index = index
        logger.log_rebuild(self.name, len(vectors), start_time, time.time())

    def _build(self, vectors: Dict[int, np.ndarray]):
        if self.metric == DistanceMetric.EUCLIDEAN:
            faiss_metric = faiss.METRIC_L2
        else:
            faiss_metric = faiss.METRIC_INNER_PRODUCT

        hnsw = faiss.IndexHNSWFlat(self.dimension, self.m, faiss_metric)
        hnsw.hnsw.efConstruction = self.ef_construction
        hnsw.hnsw.efSearch = self.ef_search
        index = faiss.IndexIDMap(hnsw)

        if vectors:
            ids = np.fromiter(vectors.keys(), dtype=np.int64, count=len(vectors))
            matrix = self._prepare(np.vstack(list(vectors.values())))
            index.add_with_ids(matrix, ids)

        return index

    def _prepare(self, matrix: np.ndarray) -> np.ndarray:
        matrix = np.array(matrix, dtype=np.float32)
        if self.metric == DistanceMetric.COSINE:
            norms = np.linalg.norm(matrix, axis=1, keepdims=True)
            norms[norms == 0] = 1.0
            matrix = matrix / norms
        return np.ascontiguousarray(matrix, dtype=np.float32)

    def _as_vector(self, vector: Iterable[float]) -> np.ndarray:
        array = np.array(vector, dtype=np.float32).reshape(-1)
        if array.shape[0] != self.dimension:
            raise ValueError(f"Vector dimension {array.shape[0]} does not match expected dimension {self.dimension}")
        return array

    @staticmethod
    def _check_id(record_id: int) -> int:
        record_id = int(record_id)
        if record_id < 0 or record_id > ID_MASK:
            raise ValueError(f"Record id {record_id} is outside the 63-bit id range")
        return record_id
