import json
import logging
import random
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from ..catalog import IndexType, RecordType, Schema, StoredRecord
from ..core import Subspace
from ..core.exceptions import InvalidArgumentError
from ..core.types import make_field
from ..index import (
    IndexManager,
    IndexMaintainer,
    RankIndexAPI,
    SumIndexMaintainer,
    CountIndexMaintainer,
    AverageIndexMaintainer,
    VectorIndexMaintainer,
    MinMaxIndexMaintainer,
)

logger = logging.getLogger(__name__)

RECORD_KEY = 1
INDEX_KEY = 2


def _json_default(value: Any) -> Any:
    # numpy arrays and scalars
    if hasattr(value, 'tolist'):
        return value.tolist()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class RecordStore:
    """
    Records and their indexes, bound to one transaction.

    Keyspace under the store's subspace:

        (1, record_type, *primary_key)  -> record as JSON
        (2, index_subspace_key, ...)    -> entries of one index

    Every save and delete updates all indexes of the record's type in the
    same transaction, so records and indexes commit or abort together.
    """

    def __init__(self, transaction, schema: Schema, subspace: Optional[Subspace] = None,
                 rng: Optional[random.Random] = None,
                 index_manager: Optional[IndexManager] = None):
        self.transaction = transaction
        self.schema = schema
        self.subspace = subspace if subspace is not None else Subspace()
        self.record_subspace = self.subspace.subspace(RECORD_KEY)
        self.index_subspace = self.subspace.subspace(INDEX_KEY)
        self.index_manager = index_manager if index_manager is not None else \
            IndexManager(schema, self.index_subspace, rng=rng)

    @staticmethod
    def normalize_primary_key(primary_key: Any) -> Tuple[Any, ...]:
        """Accept a single value or a sequence and encode it like record fields."""
        if not isinstance(primary_key, (tuple, list)):
            primary_key = (primary_key,)
        try:
            return tuple(make_field(v).to_tuple_element() for v in primary_key)
        except (TypeError, ValueError) as e:
            raise InvalidArgumentError(f"Invalid primary key {primary_key!r}: {e}")

    def _record_key(self, record_type: RecordType, primary_key: Tuple[Any, ...]) -> bytes:
        return self.record_subspace.pack((record_type.name,) + tuple(primary_key))

    def _load(self, record_type: RecordType, primary_key: Tuple[Any, ...],
              snapshot: bool = False) -> Optional[StoredRecord]:
        value = self.transaction.get(self._record_key(record_type, primary_key),
                                     snapshot=snapshot)
        if value is None:
            return None
        return StoredRecord(record_type.name, primary_key, json.loads(value))

    def save_record(self, record_type_name: str, record: Mapping[str, Any]) -> StoredRecord:
        """
        Insert or replace a record and update its indexes.

        Raises:
            InvalidArgumentError: If the record cannot be serialized
            InternalError: If the primary key or an indexed value is unusable
        """
        record_type = self.schema.get_record_type(record_type_name)
        primary_key = record_type.get_primary_key(record)
        try:
            payload = json.dumps(dict(record), sort_keys=True, default=_json_default)
        except (TypeError, ValueError) as e:
            raise InvalidArgumentError(f"Record is not JSON serializable: {e}")

        new_record = StoredRecord(record_type.name, primary_key, json.loads(payload))
        old_record = self._load(record_type, primary_key)

        self.index_manager.update_indexes(record_type, old_record, new_record,
                                          self.transaction)
        self.transaction.set(self._record_key(record_type, primary_key),
                             payload.encode('utf-8'))
        logger.debug("Saved %s %r", record_type.name, primary_key)
        return new_record

    def delete_record(self, record_type_name: str, primary_key: Any) -> bool:
        """
        Delete a record and its index entries.

        Returns:
            False if there was no such record
        """
        record_type = self.schema.get_record_type(record_type_name)
        primary_key = self.normalize_primary_key(primary_key)
        old_record = self._load(record_type, primary_key)
        if old_record is None:
            return False

        self.transaction.clear(self._record_key(record_type, primary_key))
        self.index_manager.update_indexes(record_type, old_record, None, self.transaction)
        logger.debug("Deleted %s %r", record_type.name, primary_key)
        return True

    def load_record(self, record_type_name: str, primary_key: Any,
                    snapshot: bool = False) -> Optional[Dict[str, Any]]:
        record_type = self.schema.get_record_type(record_type_name)
        stored = self._load(record_type, self.normalize_primary_key(primary_key), snapshot)
        return None if stored is None else stored.data

    def scan_records(self, record_type_name: str) -> Iterator[StoredRecord]:
        """Iterate every record of a type in primary key order."""
        record_type = self.schema.get_record_type(record_type_name)
        begin, end = self.record_subspace.range((record_type.name,))
        for key, value in self.transaction.get_range(begin, end):
            primary_key = self.record_subspace.unpack(key)[1:]
            yield StoredRecord(record_type.name, primary_key, json.loads(value))

    def rebuild_index(self, index_name: str) -> int:
        """
        Clear an index and rebuild it from the stored records.

        Returns:
            The number of records indexed
        """
        maintainer = self.index_manager.get_maintainer(index_name)
        record_type = self.schema.get_record_type_for_index(index_name)
        maintainer.clear_index(self.transaction)

        scanned = 0
        for stored in self.scan_records(record_type.name):
            maintainer.scan_record(stored.data, stored.primary_key, self.transaction)
            scanned += 1

        logger.info("Rebuilt index %s from %d records", index_name, scanned)
        return scanned

    def _typed_maintainer(self, index_name: str, index_type: IndexType) -> IndexMaintainer:
        index = self.schema.get_index(index_name)
        if index.type != index_type:
            raise InvalidArgumentError(
                f"Index '{index_name}' is a {index.type.value} index, "
                f"not a {index_type.value} index")
        return self.index_manager.get_maintainer(index_name)

    def get_sum(self, index_name: str, grouping_values: List[Any]) -> int:
        maintainer: SumIndexMaintainer = self._typed_maintainer(index_name, IndexType.SUM)
        return maintainer.get_sum(grouping_values, self.transaction)

    def get_count(self, index_name: str, grouping_values: List[Any] = ()) -> int:
        maintainer: CountIndexMaintainer = self._typed_maintainer(index_name, IndexType.COUNT)
        return maintainer.get_count(grouping_values, self.transaction)

    def get_average(self, index_name: str, grouping_values: List[Any]) -> Optional[float]:
        maintainer: AverageIndexMaintainer = self._typed_maintainer(
            index_name, IndexType.AVERAGE)
        return maintainer.get_average(grouping_values, self.transaction)

    def get_min(self, index_name: str, grouping_values: List[Any] = ()) -> Optional[int]:
        """Smallest value in a group of a MIN index, None if the group is empty."""
        maintainer: MinMaxIndexMaintainer = self._typed_maintainer(index_name, IndexType.MIN)
        return maintainer.get_min(grouping_values, self.transaction)

    def get_max(self, index_name: str, grouping_values: List[Any] = ()) -> Optional[int]:
        """Largest value in a group of a MAX index, None if the group is empty."""
        maintainer: MinMaxIndexMaintainer = self._typed_maintainer(index_name, IndexType.MAX)
        return maintainer.get_max(grouping_values, self.transaction)

    def vector_search(self, index_name: str, query_vector: List[float],
                      k: int) -> List[Tuple[Tuple[Any, ...], float]]:
        maintainer: VectorIndexMaintainer = self._typed_maintainer(
            index_name, IndexType.VECTOR)
        return maintainer.search(query_vector, k, self.transaction)

    def rank_index(self, index_name: str) -> RankIndexAPI:
        return RankIndexAPI(self, index_name)
