import logging
from typing import Any, Iterable, Mapping, Optional, Tuple

from .index_maintainer import IndexMaintainer
from ..catalog import IndexType, StoredRecord
from ..core.exceptions import InternalError
from ..core.types import coerce_int64

logger = logging.getLogger(__name__)


class MinMaxIndexMaintainer(IndexMaintainer):
    """
    Smallest or largest value of a numeric field per grouping key.

    Every record owns one empty-valued key ``grouping + (value,) + primary_key``,
    so a group's values sit in order and its minimum is the first key of the
    group's range and its maximum the last. MIN and MAX indexes store the same
    keys, so either end can be read from either type.
    """

    def __init__(self, index, subspace):
        super().__init__(index, subspace)
        if index.type not in (IndexType.MIN, IndexType.MAX):
            raise InternalError(f"Index '{index.name}' is not a min or max index")

    def _key(self, record: Mapping[str, Any], primary_key: Tuple[Any, ...]) -> bytes:
        grouping, value = self.split_grouping(self.evaluate(record))
        return self.subspace.pack(grouping + (coerce_int64(value),) + tuple(primary_key))

    def update_index(self, old_record: Optional[StoredRecord],
                     new_record: Optional[StoredRecord], transaction) -> None:
        self.check_update(old_record, new_record)
        new_key = (self._key(new_record.data, new_record.primary_key)
                   if new_record is not None else None)
        old_key = (self._key(old_record.data, old_record.primary_key)
                   if old_record is not None else None)
        if new_key == old_key:
            return

        if old_key is not None:
            transaction.clear(old_key)
        if new_key is not None:
            transaction.set(new_key, b'')
        logger.debug("%s: moved entry from %r to %r", self.index.name, old_key, new_key)

    def check_record(self, record: Mapping[str, Any]) -> None:
        self._key(record, ())

    def scan_record(self, record: Mapping[str, Any], primary_key: Tuple[Any, ...],
                    transaction) -> None:
        transaction.set(self._key(record, primary_key), b'')

    def get_min(self, grouping_values: Iterable[Any], transaction) -> Optional[int]:
        return self._first_value(grouping_values, transaction, reverse=False)

    def get_max(self, grouping_values: Iterable[Any], transaction) -> Optional[int]:
        return self._first_value(grouping_values, transaction, reverse=True)

    def _first_value(self, grouping_values: Iterable[Any], transaction,
                     reverse: bool) -> Optional[int]:
        """
        Read the value at one end of a group.

        Returns:
            None if no record is in the group

        Raises:
            InvalidArgumentError: If the number of grouping values is wrong
            InternalError: If the entry found is malformed
        """
        grouping = self.grouping_key(grouping_values, self.index.column_count - 1)
        begin, end = self.subspace.range(grouping)
        for key, _ in transaction.get_range(begin, end, limit=1, reverse=reverse,
                                            snapshot=True):
            elements = self.subspace.unpack(key)
            if len(elements) <= len(grouping) or isinstance(elements[len(grouping)], bool) \
                    or not isinstance(elements[len(grouping)], int):
                raise InternalError(f"Malformed entry {key!r} in index '{self.index.name}'")
            return elements[len(grouping)]
        return None
