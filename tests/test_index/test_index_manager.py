import random
import pytest

from recordlayer.catalog import Index, IndexType, RecordType, Schema, StoredRecord, field
from recordlayer.core import Subspace
from recordlayer.core.exceptions import IndexNotFoundError, InternalError
from recordlayer.index import (
    IndexManager,
    SumIndexMaintainer,
    CountIndexMaintainer,
    AverageIndexMaintainer,
    VectorIndexMaintainer,
    RankIndexMaintainer,
    MinMaxIndexMaintainer,
    create_maintainer,
)
from recordlayer.storage import MemoryDatabase


class TestCreateMaintainer:
    """Test maintainer dispatch on index type."""

    def test_dispatch(self):
        subspace = Subspace(("i",))
        cases = [
            (Index.sum("s", ["g"], "v"), SumIndexMaintainer),
            (Index.count("c", ["g"]), CountIndexMaintainer),
            (Index.average("a", ["g"], "v"), AverageIndexMaintainer),
            (Index.vector("v", "e", dimensions=2), VectorIndexMaintainer),
            (Index.rank("r", "score"), RankIndexMaintainer),
            (Index.min("lo", ["g"], "v"), MinMaxIndexMaintainer),
            (Index.max("hi", ["g"], "v"), MinMaxIndexMaintainer),
        ]
        for index, expected in cases:
            maintainer = create_maintainer(index, subspace)
            assert type(maintainer) is expected
            assert maintainer.index is index
            assert maintainer.subspace == subspace

    def test_rank_gets_rng(self):
        rng = random.Random(1)
        maintainer = create_maintainer(Index.rank("r", "score"), Subspace(), rng=rng)
        assert maintainer.rng is rng

    def test_vector_without_options(self):
        index = Index("v", IndexType.VECTOR, field("e"))
        with pytest.raises(InternalError):
            create_maintainer(index, Subspace())


class TestIndexManager:
    """Test cases for IndexManager."""

    def setup_method(self):
        self.orders = RecordType("Order", field("id"), (
            Index.sum("amount_by_region", ["region"], "amount"),
            Index.count("orders_by_region", ["region"]),
        ))
        self.users = RecordType("User", field("id"), (
            Index("users_by_name", IndexType.COUNT, field("name"), subspace_key=7),
        ))
        self.schema = Schema([self.orders, self.users])
        self.index_subspace = Subspace((2,))
        self.manager = IndexManager(self.schema, self.index_subspace, cache_size=2)

    def test_subspaces(self):
        assert self.manager.get_subspace(self.schema.get_index("amount_by_region")) == \
            self.index_subspace.subspace("amount_by_region")
        assert self.manager.get_subspace(self.schema.get_index("users_by_name")) == \
            self.index_subspace.subspace(7)

    def test_maintainers_are_cached(self):
        first = self.manager.get_maintainer("amount_by_region")
        assert self.manager.get_maintainer("amount_by_region") is first
        assert self.manager.get_statistics()["maintainers_created"] == 1

    def test_cache_is_bounded(self):
        self.manager.get_maintainer("amount_by_region")
        self.manager.get_maintainer("orders_by_region")
        self.manager.get_maintainer("users_by_name")
        stats = self.manager.get_statistics()
        assert stats["cached_maintainers"] == 2
        assert stats["cache_size"] == 2

        # the least recently used one was evicted and is rebuilt
        self.manager.get_maintainer("amount_by_region")
        assert self.manager.get_statistics()["maintainers_created"] == 4

    def test_unknown_index(self):
        with pytest.raises(IndexNotFoundError):
            self.manager.get_maintainer("missing")

    def test_maintainers_for_record_type(self):
        maintainers = self.manager.get_maintainers(self.orders)
        assert [m.index.name for m in maintainers] == ["amount_by_region", "orders_by_region"]

    def test_update_indexes_fans_out(self):
        db = MemoryDatabase()
        record = StoredRecord("Order", (1,), {"id": 1, "region": "us", "amount": 4})
        with db.create_transaction() as tr:
            self.manager.update_indexes(self.orders, None, record, tr)

        with db.create_transaction() as tr:
            assert self.manager.get_maintainer("amount_by_region").get_sum(["us"], tr) == 4
            assert self.manager.get_maintainer("orders_by_region").get_count(["us"], tr) == 1

    def test_update_indexes_checks_before_writing(self):
        """Test that a record rejected by a later index changes no earlier index."""
        orders = RecordType("Order", field("id"), (
            Index.count("orders_by_region", ["region"]),
            Index.sum("amount_by_region", ["region"], "amount"),
        ))
        manager = IndexManager(Schema([orders]), self.index_subspace)
        record = StoredRecord("Order", (1,), {"id": 1, "region": "us", "amount": "four"})

        db = MemoryDatabase()
        with db.create_transaction() as tr:
            with pytest.raises(InternalError, match="Expected a numeric field"):
                manager.update_indexes(orders, None, record, tr)
            assert tr.get_statistics()["pending_writes"] == 0

        with db.create_transaction() as tr:
            assert manager.get_maintainer("orders_by_region").get_count(["us"], tr) == 0
