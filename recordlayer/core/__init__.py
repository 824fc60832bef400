from .exceptions import (
    DbException,
    TransactionAbortedException,
    TransactionConflictError,
    RecordLayerError,
    IndexNotFoundError,
    InvalidArgumentError,
    InternalError,
    InvalidKeyError,
)
from .tuple import SingleFloat, pack, unpack
from .subspace import Subspace
from .types import FieldType, Field

__all__ = [
    "DbException",
    "TransactionAbortedException",
    "TransactionConflictError",
    "RecordLayerError",
    "IndexNotFoundError",
    "InvalidArgumentError",
    "InternalError",
    "InvalidKeyError",
    "SingleFloat",
    "pack",
    "unpack",
    "Subspace",
    "FieldType",
    "Field",
]
