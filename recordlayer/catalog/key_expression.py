"""
Key expressions project an ordered list of fields out of a record.

Records are mappings from field name to value. A field the record does not
have evaluates to NullField, so every expression always yields exactly
``column_count`` fields.
"""
from abc import ABC, abstractmethod
from typing import Any, List, Mapping, Union

from ..core.exceptions import InternalError, DbException
from ..core.types import Field, NullField, make_field


class KeyExpression(ABC):
    """Base class of the expression tree."""

    @abstractmethod
    def evaluate(self, record: Mapping[str, Any]) -> List[Field]:
        """
        Project the record into fields.

        Raises:
            InternalError: If a record value has no field representation
        """
        pass

    @property
    @abstractmethod
    def column_count(self) -> int:
        pass

    @abstractmethod
    def field_names(self) -> List[str]:
        """Names of the top-level record fields this expression reads."""
        pass

    @abstractmethod
    def to_dict(self) -> Any:
        pass


class FieldKeyExpression(KeyExpression):
    """Extracts one named field."""

    def __init__(self, name: str):
        self.name = name

    def evaluate(self, record: Mapping[str, Any]) -> List[Field]:
        if self.name not in record:
            return [NullField()]
        try:
            return [make_field(record[self.name])]
        except (TypeError, ValueError) as e:
            raise InternalError(f"Field '{self.name}' has an unusable value: {e}")

    @property
    def column_count(self) -> int:
        return 1

    def field_names(self) -> List[str]:
        return [self.name]

    def to_dict(self) -> Any:
        return self.name

    def __eq__(self, other: object) -> bool:
        return isinstance(other, FieldKeyExpression) and self.name == other.name

    def __hash__(self) -> int:
        return hash(("field", self.name))

    def __repr__(self) -> str:
        return f"field({self.name!r})"


class ConcatenateKeyExpression(KeyExpression):
    """Concatenates the fields of its children, in order."""

    def __init__(self, children: List[KeyExpression]):
        self.children = list(children)

    def evaluate(self, record: Mapping[str, Any]) -> List[Field]:
        result = []
        for child in self.children:
            result.extend(child.evaluate(record))
        return result

    @property
    def column_count(self) -> int:
        return sum(child.column_count for child in self.children)

    def field_names(self) -> List[str]:
        names = []
        for child in self.children:
            names.extend(child.field_names())
        return names

    def to_dict(self) -> Any:
        return {"concat": [child.to_dict() for child in self.children]}

    def __eq__(self, other: object) -> bool:
        return (isinstance(other, ConcatenateKeyExpression) and
                self.children == other.children)

    def __hash__(self) -> int:
        return hash(("concat", tuple(self.children)))

    def __repr__(self) -> str:
        return f"concat({', '.join(repr(c) for c in self.children)})"


class NestExpression(KeyExpression):
    """Evaluates a child expression against a nested mapping field."""

    def __init__(self, parent: str, child: KeyExpression):
        self.parent = parent
        self.child = child

    def evaluate(self, record: Mapping[str, Any]) -> List[Field]:
        nested = record.get(self.parent)
        if nested is None:
            return [NullField() for _ in range(self.child.column_count)]
        if not isinstance(nested, Mapping):
            raise InternalError(
                f"Field '{self.parent}' is not a nested record: {type(nested)}")
        return self.child.evaluate(nested)

    @property
    def column_count(self) -> int:
        return self.child.column_count

    def field_names(self) -> List[str]:
        return [self.parent]

    def to_dict(self) -> Any:
        return {"nest": self.parent, "child": self.child.to_dict()}

    def __eq__(self, other: object) -> bool:
        return (isinstance(other, NestExpression) and
                self.parent == other.parent and self.child == other.child)

    def __hash__(self) -> int:
        return hash(("nest", self.parent, self.child))

    def __repr__(self) -> str:
        return f"nest({self.parent!r}, {self.child!r})"


class LiteralKeyExpression(KeyExpression):
    """Always yields the same value, whatever the record."""

    def __init__(self, value: Any):
        try:
            self.field = make_field(value)
        except (TypeError, ValueError) as e:
            raise DbException(f"Invalid literal {value!r}: {e}")

    def evaluate(self, record: Mapping[str, Any]) -> List[Field]:
        return [self.field]

    @property
    def column_count(self) -> int:
        return 1

    def field_names(self) -> List[str]:
        return []

    def to_dict(self) -> Any:
        return {"literal": self.field.get_value()}

    def __eq__(self, other: object) -> bool:
        return isinstance(other, LiteralKeyExpression) and self.field == other.field

    def __hash__(self) -> int:
        return hash(("literal", self.field))

    def __repr__(self) -> str:
        return f"literal({self.field.get_value()!r})"


class EmptyKeyExpression(KeyExpression):
    """Yields no fields. Used for ungrouped aggregates."""

    def evaluate(self, record: Mapping[str, Any]) -> List[Field]:
        return []

    @property
    def column_count(self) -> int:
        return 0

    def field_names(self) -> List[str]:
        return []

    def to_dict(self) -> Any:
        return {"concat": []}

    def __eq__(self, other: object) -> bool:
        return isinstance(other, EmptyKeyExpression)

    def __hash__(self) -> int:
        return hash("empty")

    def __repr__(self) -> str:
        return "empty()"


ExpressionLike = Union[str, KeyExpression]


def field(name: str) -> FieldKeyExpression:
    return FieldKeyExpression(name)


def as_expression(value: ExpressionLike) -> KeyExpression:
    """Accept a field name wherever an expression is expected."""
    if isinstance(value, KeyExpression):
        return value
    if isinstance(value, str):
        return FieldKeyExpression(value)
    raise DbException(f"Cannot build a key expression from {value!r}")


def concat(*parts: ExpressionLike) -> KeyExpression:
    """Concatenate field names or expressions. One part is returned as is."""
    if not parts:
        return EmptyKeyExpression()
    if len(parts) == 1:
        return as_expression(parts[0])
    return ConcatenateKeyExpression([as_expression(p) for p in parts])


def nest(parent: str, *children: ExpressionLike) -> NestExpression:
    return NestExpression(parent, concat(*children))


def expression_from_dict(data: Any) -> KeyExpression:
    """
    Build an expression from its JSON form.

    Accepted forms:
        "name"                                   a field
        ["a", "b"]                               concatenation
        {"concat": [...]}                        concatenation
        {"nest": "parent", "child": <expr>}      nested field
        {"literal": value}                       constant

    Raises:
        DbException: If data is not a valid expression
    """
    if isinstance(data, str):
        return FieldKeyExpression(data)
    if isinstance(data, list):
        return concat(*[expression_from_dict(item) for item in data])
    if isinstance(data, dict):
        if "concat" in data:
            return concat(*[expression_from_dict(item) for item in data["concat"]])
        if "nest" in data:
            if "child" not in data:
                raise DbException(f"Nested expression without child: {data}")
            return NestExpression(data["nest"], expression_from_dict(data["child"]))
        if "literal" in data:
            return LiteralKeyExpression(data["literal"])
    raise DbException(f"Invalid key expression: {data!r}")
