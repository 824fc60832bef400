from .field import Field
from ..type_enum import FieldType


class BoolField(Field[bool]):
    """Boolean field"""

    def __init__(self, value):
        """
        Initialize boolean field with strict type checking.

        Raises:
            TypeError: If value is not a bool
        """
        if not isinstance(value, bool):
            raise TypeError(f"BoolField requires bool, got {type(value)}")
        self.value = value

    def get_value(self) -> bool:
        return self.value

    def get_type(self) -> FieldType:
        return FieldType.BOOLEAN

    def to_tuple_element(self) -> bool:
        return self.value

    def __str__(self) -> str:
        return str(self.value).lower()

    def __repr__(self) -> str:
        return f"BoolField({self.value})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, BoolField) and self.value == other.value

    def __hash__(self) -> int:
        return hash(("bool", self.value))
