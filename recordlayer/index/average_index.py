import logging
from typing import Any, Iterable, Mapping, Optional, Tuple

from .index_maintainer import IndexMaintainer, encode_int64, decode_int64
from ..catalog import StoredRecord
from ..core.types import coerce_int64

logger = logging.getLogger(__name__)

SUM_KEY = "sum"
COUNT_KEY = "count"


class AverageIndexMaintainer(IndexMaintainer):
    """
    Average of a numeric field per grouping key.

    Keeps two atomic counters per group, ``((grouping...), "sum")`` and
    ``((grouping...), "count")``; the average is computed when read.
    """

    def _keys(self, grouping: Tuple[Any, ...]) -> Tuple[bytes, bytes]:
        return (self.subspace.pack((grouping, SUM_KEY)),
                self.subspace.pack((grouping, COUNT_KEY)))

    def _delta(self, record: Mapping[str, Any]) -> Tuple[Tuple[Any, ...], int]:
        grouping, value_field = self.split_grouping(self.evaluate(record))
        return grouping, coerce_int64(value_field)

    def _apply(self, delta: Tuple[Tuple[Any, ...], int], sign: int, transaction) -> None:
        grouping, amount = delta
        sum_key, count_key = self._keys(grouping)
        transaction.atomic_add(sum_key, encode_int64(sign * amount))
        transaction.atomic_add(count_key, encode_int64(sign))
        logger.debug("%s: %+d value %d in group %r", self.index.name, sign, amount, grouping)

    def update_index(self, old_record: Optional[StoredRecord],
                     new_record: Optional[StoredRecord], transaction) -> None:
        self.check_update(old_record, new_record)
        new_delta = self._delta(new_record.data) if new_record is not None else None
        old_delta = self._delta(old_record.data) if old_record is not None else None
        if new_delta is not None:
            self._apply(new_delta, 1, transaction)
        if old_delta is not None:
            self._apply(old_delta, -1, transaction)

    def check_record(self, record: Mapping[str, Any]) -> None:
        self._delta(record)

    def scan_record(self, record: Mapping[str, Any], primary_key: Tuple[Any, ...],
                    transaction) -> None:
        self._apply(self._delta(record), 1, transaction)

    def get_sum_and_count(self, grouping_values: Iterable[Any],
                          transaction) -> Tuple[int, int]:
        """Return (sum, count) for a group, (0, 0) if it has no records."""
        grouping = self.grouping_key(grouping_values, self.index.column_count - 1)
        sum_key, count_key = self._keys(grouping)
        sum_value = transaction.get(sum_key)
        count_value = transaction.get(count_key)
        return (0 if sum_value is None else decode_int64(sum_value),
                0 if count_value is None else decode_int64(count_value))

    def get_average(self, grouping_values: Iterable[Any], transaction) -> Optional[float]:
        """Return the group's average, or None if it has no records."""
        total, count = self.get_sum_and_count(grouping_values, transaction)
        if count <= 0:
            return None
        return total / count
