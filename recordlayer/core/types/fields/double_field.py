import struct
from .field import Field
from ..type_enum import FieldType


class DoubleField(Field[float]):
    """64-bit double precision floating point field"""

    def __init__(self, value):
        """
        Initialize double field.

        Args:
            value: Must be an int or float (booleans are rejected)

        Raises:
            TypeError: If value is not numeric
            ValueError: If an int is too large to convert
        """
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(
                f"DoubleField requires numeric value, got {type(value)}")

        try:
            self.value = float(value)
        except OverflowError as e:
            raise ValueError(f"DoubleField value out of range: {e}")

    def get_value(self) -> float:
        return self.value

    def get_type(self) -> FieldType:
        return FieldType.DOUBLE

    def to_tuple_element(self) -> float:
        return self.value

    def __str__(self) -> str:
        return str(self.value)

    def __repr__(self) -> str:
        return f"DoubleField({self.value})"

    def __eq__(self, other: object) -> bool:
        # bitwise so that NaN equals itself
        return (isinstance(other, DoubleField) and
                struct.pack('>d', self.value) == struct.pack('>d', other.value))

    def __hash__(self) -> int:
        return hash(("double", struct.pack('>d', self.value)))
