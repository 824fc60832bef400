import logging
from typing import Any, Iterable, Mapping, Optional, Tuple

from .index_maintainer import IndexMaintainer, encode_int64, decode_int64
from ..catalog import StoredRecord
from ..core.types import coerce_int64

logger = logging.getLogger(__name__)


class SumIndexMaintainer(IndexMaintainer):
    """
    Running sum of a numeric field per grouping key.

    The expression's last value is the summand, the ones before it the
    grouping key. Each group's total is an 8-byte little-endian counter under
    ``subspace.pack(grouping)`` changed only through atomic adds, so writers
    touching the same group never conflict with each other.
    """

    def _delta(self, record: Mapping[str, Any]) -> Tuple[bytes, int]:
        grouping, summand = self.split_grouping(self.evaluate(record))
        return self.subspace.pack(grouping), coerce_int64(summand)

    def update_index(self, old_record: Optional[StoredRecord],
                     new_record: Optional[StoredRecord], transaction) -> None:
        self.check_update(old_record, new_record)
        new_delta = self._delta(new_record.data) if new_record is not None else None
        old_delta = self._delta(old_record.data) if old_record is not None else None

        if new_delta is not None:
            key, amount = new_delta
            transaction.atomic_add(key, encode_int64(amount))
            logger.debug("%s: +%d at %r", self.index.name, amount, key)

        if old_delta is not None:
            key, amount = old_delta
            transaction.atomic_add(key, encode_int64(-amount))
            logger.debug("%s: -%d at %r", self.index.name, amount, key)

    def check_record(self, record: Mapping[str, Any]) -> None:
        self._delta(record)

    def scan_record(self, record: Mapping[str, Any], primary_key: Tuple[Any, ...],
                    transaction) -> None:
        key, amount = self._delta(record)
        transaction.atomic_add(key, encode_int64(amount))

    def get_sum(self, grouping_values: Iterable[Any], transaction) -> int:
        """
        Return the sum for one group, 0 if no record ever contributed.

        Raises:
            InvalidArgumentError: If the number of grouping values is wrong
        """
        grouping = self.grouping_key(grouping_values, self.index.column_count - 1)
        value = transaction.get(self.subspace.pack(grouping))
        return 0 if value is None else decode_int64(value)
