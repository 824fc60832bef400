import logging
import math
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from .bounded_heap import BoundedHeap
from .index_maintainer import IndexMaintainer
from ..catalog import Index, IndexType, VectorMetric, StoredRecord
from ..core import Subspace, SingleFloat, pack, unpack
from ..core.exceptions import InternalError, InvalidArgumentError
from ..core.types import coerce_vector

logger = logging.getLogger(__name__)

MAX_COSINE_DISTANCE = 2.0


def cosine_distance(a: np.ndarray, b: np.ndarray) -> float:
    """1 - cosine similarity, or 2.0 if either vector has zero norm."""
    # sqrt of the squared-norm product is exact for a == b, giving 0.0
    squared = float(np.dot(a, a)) * float(np.dot(b, b))
    if squared == 0.0:
        return MAX_COSINE_DISTANCE
    similarity = float(np.dot(a, b)) / math.sqrt(squared)
    return min(max(1.0 - similarity, 0.0), MAX_COSINE_DISTANCE)


def l2_distance(a: np.ndarray, b: np.ndarray) -> float:
    return float(np.linalg.norm(a - b))


def inner_product_distance(a: np.ndarray, b: np.ndarray) -> float:
    return float(-np.dot(a, b))


DISTANCE_FUNCTIONS: Dict[VectorMetric, Callable[[np.ndarray, np.ndarray], float]] = {
    VectorMetric.COSINE: cosine_distance,
    VectorMetric.L2: l2_distance,
    VectorMetric.INNER_PRODUCT: inner_product_distance,
}


class VectorIndexMaintainer(IndexMaintainer):
    """
    Flat vector index with exhaustive k-nearest-neighbor search.

    Each record's vector is stored under ``subspace.pack(primary_key)`` as a
    packed tuple of single-precision floats. Writes overwrite by key, so
    re-running a build over indexed records is harmless. Search scans every
    entry with snapshot reads and keeps the k closest in a BoundedHeap.
    """

    def __init__(self, index: Index, subspace: Subspace):
        super().__init__(index, subspace)
        if index.type != IndexType.VECTOR or index.options.vector is None:
            raise InternalError(
                f"Index '{index.name}' is not a vector index with vector options")
        self.dimensions = index.options.vector.dimensions
        self.metric = index.options.vector.metric
        self._distance = DISTANCE_FUNCTIONS[self.metric]

    def _extract_vector(self, record: Mapping[str, Any]) -> Tuple[float, ...]:
        fields = self.evaluate(record)
        if len(fields) != 1:
            raise InvalidArgumentError(
                f"Vector index '{self.index.name}' needs exactly one value, got {len(fields)}")
        vector = coerce_vector(fields[0])
        if len(vector) != self.dimensions:
            raise InvalidArgumentError(
                f"Vector index '{self.index.name}' expects {self.dimensions} dimensions, "
                f"got {len(vector)}")
        return vector

    def _write(self, vector: Tuple[float, ...], primary_key: Tuple[Any, ...],
               transaction) -> None:
        value = pack(tuple(SingleFloat(v) for v in vector))
        transaction.set(self.subspace.pack(primary_key), value)

    def update_index(self, old_record: Optional[StoredRecord],
                     new_record: Optional[StoredRecord], transaction) -> None:
        self.check_update(old_record, new_record)
        new_vector = self._extract_vector(new_record.data) if new_record is not None else None
        if old_record is not None:
            transaction.clear(self.subspace.pack(old_record.primary_key))
        if new_vector is not None:
            self._write(new_vector, new_record.primary_key, transaction)
        logger.debug("%s: updated vector entry", self.index.name)

    def scan_record(self, record: Mapping[str, Any], primary_key: Tuple[Any, ...],
                    transaction) -> None:
        self._write(self._extract_vector(record), primary_key, transaction)

    def check_record(self, record: Mapping[str, Any]) -> None:
        self._extract_vector(record)

    def _decode_vector(self, key: bytes, value: bytes) -> np.ndarray:
        elements = unpack(value)
        if len(elements) < self.dimensions:
            raise InternalError(
                f"Stored vector at {key!r} has {len(elements)} elements, "
                f"expected {self.dimensions}")
        elements = elements[:self.dimensions]
        if not all(isinstance(e, float) for e in elements):
            raise InternalError(f"Stored vector at {key!r} holds non-float elements")
        return np.asarray(elements, dtype=np.float64)

    def search(self, query_vector: Sequence[float], k: int,
               transaction) -> List[Tuple[Tuple[Any, ...], float]]:
        """
        Find the k stored vectors closest to query_vector.

        Args:
            query_vector: Vector with exactly ``dimensions`` elements
            k: Maximum number of results, must be positive
            transaction: Transaction to read with (snapshot reads only)

        Returns:
            (primary_key, distance) pairs, closest first

        Raises:
            InvalidArgumentError: On a dimension mismatch or non-positive k
            InternalError: If a stored entry is malformed
        """
        if isinstance(k, bool) or not isinstance(k, int) or k <= 0:
            raise InvalidArgumentError(f"k must be a positive integer, got {k!r}")
        try:
            # stored vectors are single precision, so narrow the query the same way
            query = np.asarray(query_vector, dtype=np.float32).astype(np.float64)
        except (TypeError, ValueError) as e:
            raise InvalidArgumentError(f"Query vector is not numeric: {e}")
        if not np.isfinite(query).all():
            raise InvalidArgumentError("Query vector holds NaN or infinite values")
        if query.ndim != 1 or query.shape[0] != self.dimensions:
            raise InvalidArgumentError(
                f"Query vector has {query.size} dimensions, index '{self.index.name}' "
                f"expects {self.dimensions}")

        heap: BoundedHeap[Tuple[Any, ...]] = BoundedHeap(k)
        begin, end = self.subspace.range()
        scanned = 0
        for key, value in transaction.get_range(begin, end, snapshot=True):
            primary_key = self.subspace.unpack(key)
            heap.push(self._distance(query, self._decode_vector(key, value)), primary_key)
            scanned += 1

        logger.debug("%s: scanned %d vectors for k=%d", self.index.name, scanned, k)
        return [(primary_key, distance) for distance, primary_key in heap.sorted()]
