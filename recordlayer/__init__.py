"""Secondary-index maintenance for records on an ordered transactional key-value store."""
from .core import (
    Subspace,
    SingleFloat,
    DbException,
    RecordLayerError,
    IndexNotFoundError,
    InvalidArgumentError,
    InternalError,
    TransactionConflictError,
)
from .catalog import Index, IndexType, IndexOptions, VectorMetric, RecordType, Schema, SchemaLoader
from .storage import MemoryDatabase, KeySelector
from .index import RankIndexAPI
from .store import RecordStore

__version__ = "0.1.0"

__all__ = [
    "Subspace",
    "SingleFloat",
    "DbException",
    "RecordLayerError",
    "IndexNotFoundError",
    "InvalidArgumentError",
    "InternalError",
    "TransactionConflictError",
    "Index",
    "IndexType",
    "IndexOptions",
    "VectorMetric",
    "RecordType",
    "Schema",
    "SchemaLoader",
    "MemoryDatabase",
    "KeySelector",
    "RankIndexAPI",
    "RecordStore",
]
