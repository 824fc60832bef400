"""
Base class shared by every index maintainer.

A maintainer turns a record change into key-value mutations inside the
index's subspace. It holds no state beyond its index definition and
subspace, so it can be created and discarded freely; all persistence goes
through the caller's transaction.
"""
from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from ..catalog import Index, StoredRecord
from ..core import Subspace
from ..core.exceptions import InternalError, InvalidArgumentError
from ..core.types import Field, make_field

INT64_SIZE = 8


def encode_int64(value: int) -> bytes:
    """8-byte little-endian two's complement, the atomic add operand format."""
    return (value % (1 << 64)).to_bytes(INT64_SIZE, 'little')


def decode_int64(data: bytes) -> int:
    if len(data) != INT64_SIZE:
        raise InternalError(f"Expected an 8-byte counter, got {len(data)} bytes")
    return int.from_bytes(data, 'little', signed=True)


class IndexMaintainer(ABC):
    """
    Contract for keeping one index consistent with record changes.

    ``update_index`` gets the old and new version of a record: old only is a
    delete, new only an insert, both an update. ``scan_record`` is the
    insert-only path used when an index is built from existing records.
    """

    def __init__(self, index: Index, subspace: Subspace):
        self.index = index
        self.subspace = subspace

    @abstractmethod
    def update_index(self, old_record: Optional[StoredRecord],
                     new_record: Optional[StoredRecord], transaction) -> None:
        pass

    @abstractmethod
    def scan_record(self, record: Mapping[str, Any], primary_key: Tuple[Any, ...],
                    transaction) -> None:
        pass

    def check_record(self, record: Mapping[str, Any]) -> None:
        """
        Project a record the way update_index would, writing nothing.

        Raises:
            InternalError: If the record does not fit the index shape
            InvalidArgumentError: If an indexed value is unusable
        """
        self.evaluate(record)

    def clear_index(self, transaction) -> None:
        """Remove every key of this index."""
        prefix = self.subspace.key()
        transaction.clear_range(prefix, prefix + b'\xff')

    def evaluate(self, record: Mapping[str, Any]) -> List[Field]:
        return self.index.root_expression.evaluate(record)

    def check_update(self, old_record: Optional[StoredRecord],
                     new_record: Optional[StoredRecord]) -> None:
        if old_record is None and new_record is None:
            raise InvalidArgumentError(
                f"update_index on '{self.index.name}' needs an old or a new record")

    def split_grouping(self, fields: List[Field]) -> Tuple[Tuple[Any, ...], Field]:
        """
        Split projected fields into the grouping tuple and the last field.

        Raises:
            InternalError: If fewer than two fields were projected
        """
        if len(fields) < 2:
            raise InternalError(
                f"Index '{self.index.name}' needs at least 2 values, got {len(fields)}")
        grouping = tuple(f.to_tuple_element() for f in fields[:-1])
        return grouping, fields[-1]

    def grouping_key(self, grouping_values: Iterable[Any], arity: int) -> Tuple[Any, ...]:
        """
        Normalize caller-supplied grouping values the way fields are encoded.

        Raises:
            InvalidArgumentError: On an arity mismatch or unusable value
        """
        values = list(grouping_values)
        if len(values) != arity:
            raise InvalidArgumentError(
                f"Index '{self.index.name}' is grouped by {arity} values, got {len(values)}")
        try:
            return tuple(make_field(v).to_tuple_element() for v in values)
        except (TypeError, ValueError) as e:
            raise InvalidArgumentError(f"Invalid grouping value: {e}")

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.index.name!r})"
