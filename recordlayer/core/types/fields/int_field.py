from .field import Field
from ..type_enum import FieldType


class IntField(Field[int]):
    """
    Field implementation for 64-bit signed integers.

    Range: -9,223,372,036,854,775,808 to 9,223,372,036,854,775,807
    """

    MIN_VALUE = -2**63
    MAX_VALUE = 2**63 - 1

    def __init__(self, value):
        """
        Initialize integer field with validation.

        Args:
            value: Must be an integer within 64-bit signed range

        Raises:
            TypeError: If value is not an integer (booleans are rejected)
            ValueError: If value is out of range
        """
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"IntField requires int, got {type(value)}")

        if not (self.MIN_VALUE <= value <= self.MAX_VALUE):
            raise ValueError(
                f"Integer value {value} out of range [{self.MIN_VALUE}, {self.MAX_VALUE}]")

        self.value = value

    def get_value(self) -> int:
        return self.value

    def get_type(self) -> FieldType:
        return FieldType.INT

    def to_tuple_element(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)

    def __repr__(self) -> str:
        return f"IntField({self.value})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, IntField) and self.value == other.value

    def __hash__(self) -> int:
        return hash(("int", self.value))
