from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Sequence

from .key_expression import (
    KeyExpression,
    ExpressionLike,
    as_expression,
    concat,
    expression_from_dict,
)
from ..core.exceptions import DbException


class IndexType(Enum):
    """The closed set of index kinds. Each maps to one maintainer class."""
    SUM = "sum"
    COUNT = "count"
    AVERAGE = "average"
    VECTOR = "vector"
    RANK = "rank"
    MIN = "min"
    MAX = "max"


class VectorMetric(Enum):
    """Distance metrics for vector search. Smaller is always closer."""
    COSINE = "cosine"
    L2 = "l2"
    INNER_PRODUCT = "inner_product"


@dataclass(frozen=True)
class VectorOptions:
    """Configuration of a vector index."""
    dimensions: int
    metric: VectorMetric = VectorMetric.COSINE

    def __post_init__(self):
        if isinstance(self.dimensions, bool) or not isinstance(self.dimensions, int) \
                or self.dimensions <= 0:
            raise DbException(
                f"Vector dimensions must be a positive integer, got {self.dimensions!r}")
        if not isinstance(self.metric, VectorMetric):
            raise DbException(f"Unknown vector metric: {self.metric!r}")


@dataclass(frozen=True)
class IndexOptions:
    """
    Per-index configuration.

    Attributes:
        vector: Required for vector indexes
        rank_order: "desc" gives rank 1 to the highest score, "asc" to the lowest
        rank_levels: Number of skip-list levels of a rank index
        rank_probability: Chance that a skip-list tower grows one more level
    """
    vector: Optional[VectorOptions] = None
    rank_order: str = "desc"
    rank_levels: int = 16
    rank_probability: float = 0.5

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "rank_order": self.rank_order,
            "rank_levels": self.rank_levels,
            "rank_probability": self.rank_probability,
        }
        if self.vector is not None:
            data["dimensions"] = self.vector.dimensions
            data["metric"] = self.vector.metric.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'IndexOptions':
        vector = None
        if "dimensions" in data:
            metric_name = data.get("metric", VectorMetric.COSINE.value)
            try:
                metric = VectorMetric(metric_name)
            except ValueError:
                raise DbException(f"Unknown vector metric: {metric_name}")
            vector = VectorOptions(data["dimensions"], metric)
        return cls(
            vector=vector,
            rank_order=data.get("rank_order", "desc"),
            rank_levels=data.get("rank_levels", 16),
            rank_probability=data.get("rank_probability", 0.5),
        )


@dataclass(frozen=True)
class Index:
    """
    Immutable index definition.

    The index's keys live under ``subspace_key`` (the name by default) inside
    the store's index subspace, so no two indexes share keys.
    """
    name: str
    type: IndexType
    root_expression: KeyExpression
    options: IndexOptions = field(default_factory=IndexOptions)
    subspace_key: Optional[Any] = None

    @property
    def subspace_tuple_key(self) -> Any:
        return self.name if self.subspace_key is None else self.subspace_key

    @property
    def column_count(self) -> int:
        return self.root_expression.column_count

    @classmethod
    def sum(cls, name: str, group_by: Sequence[ExpressionLike],
            value: ExpressionLike) -> 'Index':
        """Sum of ``value`` per distinct ``group_by`` tuple (at least one column)."""
        return cls(name, IndexType.SUM, concat(*group_by, value))

    @classmethod
    def count(cls, name: str, group_by: Sequence[ExpressionLike] = ()) -> 'Index':
        """Number of records per distinct ``group_by`` tuple."""
        return cls(name, IndexType.COUNT, concat(*group_by))

    @classmethod
    def average(cls, name: str, group_by: Sequence[ExpressionLike],
                value: ExpressionLike) -> 'Index':
        """Average of ``value`` per distinct ``group_by`` tuple (at least one column)."""
        return cls(name, IndexType.AVERAGE, concat(*group_by, value))

    @classmethod
    def min(cls, name: str, group_by: Sequence[ExpressionLike],
            value: ExpressionLike) -> 'Index':
        """Smallest integer ``value`` per distinct ``group_by`` tuple."""
        return cls(name, IndexType.MIN, concat(*group_by, value))

    @classmethod
    def max(cls, name: str, group_by: Sequence[ExpressionLike],
            value: ExpressionLike) -> 'Index':
        """Largest integer ``value`` per distinct ``group_by`` tuple."""
        return cls(name, IndexType.MAX, concat(*group_by, value))

    @classmethod
    def vector(cls, name: str, value: ExpressionLike, dimensions: int,
               metric: VectorMetric = VectorMetric.COSINE) -> 'Index':
        """Flat vector index over a single vector-valued field."""
        return cls(name, IndexType.VECTOR, as_expression(value),
                   IndexOptions(vector=VectorOptions(dimensions, metric)))

    @classmethod
    def rank(cls, name: str, score: ExpressionLike,
             group_by: Sequence[ExpressionLike] = (), order: str = "desc",
             levels: int = 16, probability: float = 0.5) -> 'Index':
        """Leaderboard over ``score``, one ranking per ``group_by`` tuple."""
        return cls(name, IndexType.RANK, concat(*group_by, score),
                   IndexOptions(rank_order=order, rank_levels=levels,
                                rank_probability=probability))

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "name": self.name,
            "type": self.type.value,
            "expression": self.root_expression.to_dict(),
            "options": self.options.to_dict(),
        }
        if self.subspace_key is not None:
            data["subspace_key"] = self.subspace_key
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Index':
        """
        Raises:
            DbException: On a missing key, unknown type or bad options
        """
        try:
            name = data["name"]
            type_name = data["type"]
            expression = data["expression"]
        except KeyError as e:
            raise DbException(f"Index definition missing {e}")

        try:
            index_type = IndexType(type_name)
        except ValueError:
            raise DbException(f"Unknown index type: {type_name}")

        options = IndexOptions.from_dict(data.get("options", {}))
        return cls(name, index_type, expression_from_dict(expression), options,
                   data.get("subspace_key"))
