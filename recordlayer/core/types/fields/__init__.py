from .field import Field
from .int_field import IntField
from .float_field import FloatField
from .double_field import DoubleField
from .string_field import StringField
from .bytes_field import BytesField
from .boolean_field import BoolField
from .null_field import NullField
from .vector_field import VectorField

__all__ = [
    "Field",
    "IntField",
    "FloatField",
    "DoubleField",
    "StringField",
    "BytesField",
    "BoolField",
    "NullField",
    "VectorField",
]
