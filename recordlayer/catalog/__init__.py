from .key_expression import (
    KeyExpression,
    FieldKeyExpression,
    ConcatenateKeyExpression,
    NestExpression,
    LiteralKeyExpression,
    EmptyKeyExpression,
    field,
    concat,
    nest,
    expression_from_dict,
)
from .index import Index, IndexType, IndexOptions, VectorOptions, VectorMetric
from .schema import RecordType, Schema
from .stored_record import StoredRecord
from .schema_loader import SchemaLoader

__all__ = [
    "KeyExpression",
    "FieldKeyExpression",
    "ConcatenateKeyExpression",
    "NestExpression",
    "LiteralKeyExpression",
    "EmptyKeyExpression",
    "field",
    "concat",
    "nest",
    "expression_from_dict",
    "Index",
    "IndexType",
    "IndexOptions",
    "VectorOptions",
    "VectorMetric",
    "RecordType",
    "Schema",
    "StoredRecord",
    "SchemaLoader",
]
