from .field import Field
from ..type_enum import FieldType


class NullField(Field[None]):
    """Absent value. Produced for missing record fields."""

    def get_value(self) -> None:
        return None

    def get_type(self) -> FieldType:
        return FieldType.NULL

    def to_tuple_element(self) -> None:
        return None

    def __str__(self) -> str:
        return "null"

    def __repr__(self) -> str:
        return "NullField()"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, NullField)

    def __hash__(self) -> int:
        return hash("null")
