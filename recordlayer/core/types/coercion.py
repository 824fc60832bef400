"""
Conversions between record values and the Field variant.

``make_field`` is the only place raw Python values are inspected; everything
downstream works with fields and the explicit coercions defined here.
"""
import math
from typing import Any, Tuple as PyTuple

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
from ..tuple import SingleFloat
from ..exceptions import InternalError, InvalidArgumentError


def make_field(value: Any) -> Field:
    """
    Wrap a raw record value in the matching field class.

    Args:
        value: None, bool, int, float, SingleFloat, str, bytes, or a
            sequence of numbers (list, tuple or numpy array)

    Returns:
        The field holding value

    Raises:
        TypeError: If the value has no field representation
        ValueError: If the value is out of range for its field
    """
    if isinstance(value, Field):
        return value
    if value is None:
        return NullField()
    if isinstance(value, bool):
        return BoolField(value)
    if isinstance(value, int):
        return IntField(value)
    if isinstance(value, SingleFloat):
        return FloatField(value)
    if isinstance(value, float):
        return DoubleField(value)
    if isinstance(value, str):
        return StringField(value)
    if isinstance(value, (bytes, bytearray)):
        return BytesField(value)
    if hasattr(value, '__iter__'):
        return VectorField(value)
    raise TypeError(f"No field type for value of type {type(value)}")


def coerce_int64(field: Field) -> int:
    """
    Coerce a numeric field to a 64-bit signed integer.

    Floats are truncated toward zero.

    Raises:
        InternalError: If the field is not numeric, is NaN or infinite, or
            falls outside the int64 range after truncation
    """
    if isinstance(field, IntField):
        return field.get_value()

    if isinstance(field, (FloatField, DoubleField)):
        value = field.get_value()
        if not math.isfinite(value):
            raise InternalError(f"Cannot coerce {value} to int64")
        truncated = int(value)
        if not (IntField.MIN_VALUE <= truncated <= IntField.MAX_VALUE):
            raise InternalError(f"Value {value} out of int64 range")
        return truncated

    raise InternalError(f"Expected a numeric field, got {field!r}")


def coerce_double(field: Field) -> float:
    """
    Widen a numeric field to a double.

    Ints above 2**53 in magnitude lose precision.

    Raises:
        InternalError: If the field is not numeric or is NaN
    """
    if isinstance(field, IntField):
        return float(field.get_value())

    if isinstance(field, (FloatField, DoubleField)):
        value = float(field.get_value())
        if math.isnan(value):
            raise InternalError("Cannot order NaN as a double")
        return value

    raise InternalError(f"Expected a numeric field, got {field!r}")


def coerce_vector(field: Field) -> PyTuple[float, ...]:
    """
    Coerce a vector field to a tuple of doubles.

    Raises:
        InvalidArgumentError: If the field is not a vector
    """
    if isinstance(field, VectorField):
        return field.get_value()
    raise InvalidArgumentError(f"Expected a vector field, got {field!r}")
