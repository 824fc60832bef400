from .fields import (
    Field,
    IntField,
    FloatField,
    DoubleField,
    StringField,
    BytesField,
    BoolField,
    NullField,
    VectorField,
)
from .type_enum import FieldType
from .coercion import make_field, coerce_int64, coerce_double, coerce_vector

__all__ = [
    'Field',
    'IntField',
    'FloatField',
    'DoubleField',
    'StringField',
    'BytesField',
    'BoolField',
    'NullField',
    'VectorField',
    'FieldType',
    'make_field',
    'coerce_int64',
    'coerce_double',
    'coerce_vector',
]
