from .field import Field
from ..type_enum import FieldType


class BytesField(Field[bytes]):
    """Raw byte-string field."""

    def __init__(self, value):
        if not isinstance(value, (bytes, bytearray)):
            raise TypeError(
                f"BytesField requires bytes or bytearray, got {type(value)}")
        self.value = bytes(value)

    def get_value(self) -> bytes:
        return self.value

    def get_type(self) -> FieldType:
        return FieldType.BYTES

    def to_tuple_element(self) -> bytes:
        return self.value

    def __str__(self) -> str:
        return self.value.hex()

    def __repr__(self) -> str:
        return f"BytesField({self.value!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, BytesField) and self.value == other.value

    def __hash__(self) -> int:
        return hash(("bytes", self.value))
