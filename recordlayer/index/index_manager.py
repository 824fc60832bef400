import logging
import random
from typing import Dict, List, Optional, Type

from cachetools import LRUCache

from .index_maintainer import IndexMaintainer
from .sum_index import SumIndexMaintainer
from .count_index import CountIndexMaintainer
from .average_index import AverageIndexMaintainer
from .vector_index import VectorIndexMaintainer
from .rank_index import RankIndexMaintainer
from .min_max_index import MinMaxIndexMaintainer
from ..catalog import Index, IndexType, RecordType, Schema, StoredRecord
from ..core import Subspace
from ..core.exceptions import InternalError

logger = logging.getLogger(__name__)

MAINTAINER_CLASSES: Dict[IndexType, Type[IndexMaintainer]] = {
    IndexType.SUM: SumIndexMaintainer,
    IndexType.COUNT: CountIndexMaintainer,
    IndexType.AVERAGE: AverageIndexMaintainer,
    IndexType.VECTOR: VectorIndexMaintainer,
    IndexType.RANK: RankIndexMaintainer,
    IndexType.MIN: MinMaxIndexMaintainer,
    IndexType.MAX: MinMaxIndexMaintainer,
}


def create_maintainer(index: Index, subspace: Subspace,
                      rng: Optional[random.Random] = None) -> IndexMaintainer:
    """
    Build the maintainer for an index.

    Args:
        index: The index definition
        subspace: The index's own subspace
        rng: Tower-height source, used by rank indexes only

    Raises:
        InternalError: If the index type has no maintainer
    """
    maintainer_class = MAINTAINER_CLASSES.get(index.type)
    if maintainer_class is None:
        raise InternalError(f"No maintainer for index type {index.type!r}")
    if maintainer_class is RankIndexMaintainer:
        return RankIndexMaintainer(index, subspace, rng=rng)
    return maintainer_class(index, subspace)


class IndexManager:
    """
    Resolves index names to maintainers for one store.

    Responsibilities:
    1. Give every index its subspace under the store's index subspace
    2. Build maintainers on demand and cache them
    3. Fan record changes out to every index of the record's type
    """

    def __init__(self, schema: Schema, index_subspace: Subspace,
                 rng: Optional[random.Random] = None, cache_size: int = 128):
        self.schema = schema
        self.index_subspace = index_subspace
        self.rng = rng
        self._maintainers: LRUCache = LRUCache(maxsize=cache_size)

        # Statistics
        self.maintainers_created = 0

    def get_subspace(self, index: Index) -> Subspace:
        return self.index_subspace.subspace(index.subspace_tuple_key)

    def get_maintainer(self, name: str) -> IndexMaintainer:
        """
        Raises:
            IndexNotFoundError: If the schema has no such index
        """
        maintainer = self._maintainers.get(name)
        if maintainer is None:
            index = self.schema.get_index(name)
            maintainer = create_maintainer(index, self.get_subspace(index), rng=self.rng)
            self._maintainers[name] = maintainer
            self.maintainers_created += 1
            logger.debug("Created %r", maintainer)
        return maintainer

    def get_maintainers(self, record_type: RecordType) -> List[IndexMaintainer]:
        return [self.get_maintainer(index.name) for index in record_type.indexes]

    def update_indexes(self, record_type: RecordType, old_record: Optional[StoredRecord],
                       new_record: Optional[StoredRecord], transaction) -> None:
        """
        Apply one record change to every index of its record type.

        The new record is checked against every index before any index is
        written, so a rejected record leaves the transaction untouched.
        """
        maintainers = self.get_maintainers(record_type)
        if new_record is not None:
            for maintainer in maintainers:
                maintainer.check_record(new_record.data)
        for maintainer in maintainers:
            maintainer.update_index(old_record, new_record, transaction)

    def get_statistics(self) -> dict:
        return {
            'cached_maintainers': len(self._maintainers),
            'cache_size': self._maintainers.maxsize,
            'maintainers_created': self.maintainers_created,
        }
