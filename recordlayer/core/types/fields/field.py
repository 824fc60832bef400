from abc import ABC, abstractmethod
from typing import TypeVar, Generic, Any
from ..type_enum import FieldType

T = TypeVar('T')


class Field(ABC, Generic[T]):
    """
    Abstract base class for all values produced by key expressions.

    A field wraps a single record value together with its type. The set of
    subclasses is closed: int, float, double, string, bytes, boolean, null
    and vector. Index maintainers only ever see fields, never raw record
    values, so every coercion is an explicit function over this variant.
    """

    @abstractmethod
    def get_value(self) -> T:
        """
        Get the value stored in this field.

        Returns:
            The value of the field with its appropriate type
        """
        pass

    @abstractmethod
    def get_type(self) -> FieldType:
        """
        Return the type of this field.
        """
        pass

    @abstractmethod
    def to_tuple_element(self) -> Any:
        """
        Convert this field to the element the tuple codec encodes for it.
        """
        pass

    @abstractmethod
    def __str__(self) -> str:
        pass

    @abstractmethod
    def __repr__(self) -> str:
        pass

    @abstractmethod
    def __eq__(self, other: object) -> bool:
        pass

    @abstractmethod
    def __hash__(self) -> int:
        pass
