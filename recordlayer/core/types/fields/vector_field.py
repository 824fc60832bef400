import math
from typing import Tuple as PyTuple

from .field import Field
from ..type_enum import FieldType
from ...tuple import SingleFloat


class VectorField(Field[PyTuple[float, ...]]):
    """
    Fixed-length sequence of floats.

    Accepts any iterable of ints or floats, including numpy arrays. Elements
    are kept in double precision; the vector index narrows them to single
    precision when it stores them.
    """

    def __init__(self, values):
        """
        Raises:
            TypeError: If values is not iterable or holds non-numeric elements
            ValueError: If the vector is empty or holds NaN
        """
        if isinstance(values, (str, bytes, bytearray)):
            raise TypeError(f"VectorField requires a sequence of numbers, got {type(values)}")
        try:
            items = list(values)
        except TypeError:
            raise TypeError(f"VectorField requires a sequence of numbers, got {type(values)}")

        if not items:
            raise ValueError("VectorField requires at least one element")

        converted = []
        for item in items:
            if isinstance(item, bool):
                raise TypeError("VectorField elements must be numeric, got bool")
            try:
                number = float(item)
            except (TypeError, ValueError):
                raise TypeError(f"VectorField elements must be numeric, got {type(item)}")
            if math.isnan(number):
                raise ValueError("VectorField does not support NaN elements")
            converted.append(number)

        self.value = tuple(converted)

    def get_value(self) -> PyTuple[float, ...]:
        return self.value

    def get_type(self) -> FieldType:
        return FieldType.VECTOR

    def to_tuple_element(self) -> tuple:
        return tuple(SingleFloat(v) for v in self.value)

    def __len__(self) -> int:
        return len(self.value)

    def __str__(self) -> str:
        return "[" + ", ".join(str(v) for v in self.value) + "]"

    def __repr__(self) -> str:
        return f"VectorField({list(self.value)})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, VectorField) and self.value == other.value

    def __hash__(self) -> int:
        return hash(("vector", self.value))
