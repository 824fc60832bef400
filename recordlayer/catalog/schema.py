from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .index import Index
from .key_expression import KeyExpression, expression_from_dict
from ..core.exceptions import DbException, IndexNotFoundError, InternalError
from ..core.types import NullField


@dataclass(frozen=True)
class RecordType:
    """A named kind of record, its primary key and the indexes over it."""
    name: str
    primary_key: KeyExpression
    indexes: Tuple[Index, ...] = field(default_factory=tuple)

    def get_primary_key(self, record: Mapping[str, Any]) -> Tuple[Any, ...]:
        """
        Evaluate the primary key of a record.

        Raises:
            InternalError: If a primary key field is missing
        """
        fields = self.primary_key.evaluate(record)
        if any(isinstance(f, NullField) for f in fields):
            raise InternalError(
                f"Record of type '{self.name}' is missing a primary key field "
                f"({', '.join(self.primary_key.field_names())})")
        return tuple(f.to_tuple_element() for f in fields)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RecordType':
        try:
            name = data["name"]
            primary_key = data["primary_key"]
        except KeyError as e:
            raise DbException(f"Record type definition missing {e}")
        indexes = tuple(Index.from_dict(i) for i in data.get("indexes", []))
        return cls(name, expression_from_dict(primary_key), indexes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "primary_key": self.primary_key.to_dict(),
            "indexes": [index.to_dict() for index in self.indexes],
        }


class Schema:
    """
    The record types of a store and the indexes declared on them.

    Index names are unique across the whole schema, as are the subspace
    keys the indexes store their entries under.
    """

    def __init__(self, record_types: List[RecordType]):
        self._record_types: Dict[str, RecordType] = {}
        self._indexes: Dict[str, Index] = {}
        self._index_owner: Dict[str, str] = {}
        subspace_keys = set()

        for record_type in record_types:
            if record_type.name in self._record_types:
                raise DbException(f"Duplicate record type: {record_type.name}")
            self._record_types[record_type.name] = record_type

            for index in record_type.indexes:
                if index.name in self._indexes:
                    raise DbException(f"Duplicate index name: {index.name}")
                if index.subspace_tuple_key in subspace_keys:
                    raise DbException(
                        f"Index {index.name} reuses subspace key {index.subspace_tuple_key!r}")
                subspace_keys.add(index.subspace_tuple_key)
                self._indexes[index.name] = index
                self._index_owner[index.name] = record_type.name

    def get_record_type(self, name: str) -> RecordType:
        if name not in self._record_types:
            raise DbException(f"Unknown record type: {name}")
        return self._record_types[name]

    def get_record_types(self) -> List[RecordType]:
        return list(self._record_types.values())

    def get_index(self, name: str) -> Index:
        """
        Raises:
            IndexNotFoundError: If no record type declares the index
        """
        if name not in self._indexes:
            raise IndexNotFoundError(name)
        return self._indexes[name]

    def get_indexes(self) -> List[Index]:
        return list(self._indexes.values())

    def get_record_type_for_index(self, name: str) -> RecordType:
        self.get_index(name)
        return self._record_types[self._index_owner[name]]

    def to_dict(self) -> Dict[str, Any]:
        return {"record_types": [rt.to_dict() for rt in self._record_types.values()]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Schema':
        return cls([RecordType.from_dict(rt) for rt in data.get("record_types", [])])
