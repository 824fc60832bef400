import logging
from typing import Any, Iterable, Mapping, Optional, Tuple

from .index_maintainer import IndexMaintainer, encode_int64, decode_int64
from ..catalog import StoredRecord

logger = logging.getLogger(__name__)

ONE = encode_int64(1)
MINUS_ONE = encode_int64(-1)


class CountIndexMaintainer(IndexMaintainer):
    """Number of records per grouping key, kept with atomic +1/-1."""

    def _key(self, record: Mapping[str, Any]) -> bytes:
        grouping = tuple(f.to_tuple_element() for f in self.evaluate(record))
        return self.subspace.pack(grouping)

    def update_index(self, old_record: Optional[StoredRecord],
                     new_record: Optional[StoredRecord], transaction) -> None:
        self.check_update(old_record, new_record)

        new_key = self._key(new_record.data) if new_record is not None else None
        old_key = self._key(old_record.data) if old_record is not None else None
        if new_key == old_key:
            return

        if new_key is not None:
            transaction.atomic_add(new_key, ONE)
        if old_key is not None:
            transaction.atomic_add(old_key, MINUS_ONE)
        logger.debug("%s: moved count from %r to %r", self.index.name, old_key, new_key)

    def scan_record(self, record: Mapping[str, Any], primary_key: Tuple[Any, ...],
                    transaction) -> None:
        transaction.atomic_add(self._key(record), ONE)

    def check_record(self, record: Mapping[str, Any]) -> None:
        self._key(record)

    def get_count(self, grouping_values: Iterable[Any], transaction) -> int:
        grouping = self.grouping_key(grouping_values, self.index.column_count)
        value = transaction.get(self.subspace.pack(grouping))
        return 0 if value is None else decode_int64(value)
