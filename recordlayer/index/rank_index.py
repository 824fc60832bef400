import logging
import random
from typing import Any, Iterable, Mapping, Optional, Tuple

from .index_maintainer import IndexMaintainer
from .ranked_set import RankedSet
from ..catalog import Index, IndexType, StoredRecord
from ..core import Subspace, pack
from ..core.exceptions import InternalError
from ..core.types import coerce_double

logger = logging.getLogger(__name__)

RANK_ORDERS = ("desc", "asc")


class RankIndexMaintainer(IndexMaintainer):
    """
    Keeps one RankedSet of ``(score, *primary_key)`` members per group.
    Scores are widened to doubles so ints and floats rank by value.

    The expression's last value is the score and the values before it the
    grouping key; each group's set lives under ``subspace.subspace(*grouping)``.
    Every skip-list change for a record happens in the record's transaction.
    """

    def __init__(self, index: Index, subspace: Subspace,
                 rng: Optional[random.Random] = None):
        super().__init__(index, subspace)
        if index.type != IndexType.RANK:
            raise InternalError(f"Index '{index.name}' is not a rank index")
        if index.options.rank_order not in RANK_ORDERS:
            raise InternalError(
                f"Rank order '{index.options.rank_order}' is not implemented")
        self.order = index.options.rank_order
        self.levels = index.options.rank_levels
        self.probability = index.options.rank_probability
        self.rng = rng if rng is not None else random.Random()
        # validates levels and probability up front
        self.ranked_set()

    @property
    def grouping_arity(self) -> int:
        return self.index.column_count - 1

    def ranked_set(self, grouping: Tuple[Any, ...] = ()) -> RankedSet:
        return RankedSet(self.subspace.subspace(*grouping), self.levels,
                         self.probability, self.rng)

    def grouped_set(self, grouping_values: Iterable[Any]) -> RankedSet:
        """RankedSet for caller-supplied grouping values."""
        return self.ranked_set(self.grouping_key(grouping_values, self.grouping_arity))

    def _entry(self, record: Mapping[str, Any],
               primary_key: Tuple[Any, ...]) -> Tuple[Tuple[Any, ...], Tuple[Any, ...]]:
        fields = self.evaluate(record)
        if not fields:
            raise InternalError(f"Rank index '{self.index.name}' projected no score")
        grouping = tuple(f.to_tuple_element() for f in fields[:-1])
        return grouping, (coerce_double(fields[-1]),) + tuple(primary_key)

    def update_index(self, old_record: Optional[StoredRecord],
                     new_record: Optional[StoredRecord], transaction) -> None:
        self.check_update(old_record, new_record)

        old_entry = (self._entry(old_record.data, old_record.primary_key)
                     if old_record is not None else None)
        new_entry = (self._entry(new_record.data, new_record.primary_key)
                     if new_record is not None else None)
        if old_entry is not None and new_entry is not None and \
                pack(old_entry) == pack(new_entry):
            return

        if old_entry is not None:
            grouping, member = old_entry
            self.ranked_set(grouping).remove(transaction, member)
        if new_entry is not None:
            grouping, member = new_entry
            self.ranked_set(grouping).insert(transaction, member)
        logger.debug("%s: moved %r to %r", self.index.name, old_entry, new_entry)

    def scan_record(self, record: Mapping[str, Any], primary_key: Tuple[Any, ...],
                    transaction) -> None:
        grouping, member = self._entry(record, primary_key)
        self.ranked_set(grouping).insert(transaction, member)

    def check_record(self, record: Mapping[str, Any]) -> None:
        self._entry(record, ())
