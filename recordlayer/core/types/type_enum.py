from enum import Enum


class FieldType(Enum):
    """
    Enum for the kinds of values a key expression can produce.
    """
    INT = "int"
    FLOAT = "float"
    DOUBLE = "double"
    STRING = "string"
    BYTES = "bytes"
    BOOLEAN = "boolean"
    NULL = "null"
    VECTOR = "vector"

    def is_numeric(self) -> bool:
        """Whether values of this type can feed an aggregate index."""
        return self in (FieldType.INT, FieldType.FLOAT, FieldType.DOUBLE)
