import struct
from .field import Field
from ..type_enum import FieldType
from ...tuple import SingleFloat


class FloatField(Field[float]):
    """32-bit floating point field"""

    def __init__(self, value):
        """
        Initialize float field, rounding the value to single precision.

        Args:
            value: Must be an int or float (booleans are rejected)

        Raises:
            TypeError: If value is not numeric
            ValueError: If value does not fit in single precision
        """
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(
                f"FloatField requires numeric value, got {type(value)}")

        try:
            self.value = struct.unpack('>f', struct.pack('>f', value))[0]
        except (struct.error, OverflowError) as e:
            raise ValueError(f"FloatField value out of range: {e}")

    def get_value(self) -> float:
        """Return the float value stored in this field."""
        return self.value

    def get_type(self) -> FieldType:
        return FieldType.FLOAT

    def to_tuple_element(self) -> SingleFloat:
        return SingleFloat(self.value)

    def __str__(self) -> str:
        return str(self.value)

    def __repr__(self) -> str:
        return f"FloatField({self.value})"

    def __eq__(self, other: object) -> bool:
        return (isinstance(other, FloatField) and
                struct.pack('>f', self.value) == struct.pack('>f', other.value))

    def __hash__(self) -> int:
        return hash(("float", struct.pack('>f', self.value)))
