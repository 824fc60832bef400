from .field import Field
from ..type_enum import FieldType


class StringField(Field[str]):
    """Unicode string field, encoded as UTF-8 in keys."""

    def __init__(self, value):
        if not isinstance(value, str):
            raise TypeError(f"StringField requires str, got {type(value)}")
        self.value = value

    def get_value(self) -> str:
        return self.value

    def get_type(self) -> FieldType:
        return FieldType.STRING

    def to_tuple_element(self) -> str:
        return self.value

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return f"StringField({self.value!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, StringField) and self.value == other.value

    def __hash__(self) -> int:
        return hash(("string", self.value))
