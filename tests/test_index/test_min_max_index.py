import pytest

from recordlayer.catalog import Index, RecordType, Schema, StoredRecord, field
from recordlayer.core import Subspace
from recordlayer.core.exceptions import InternalError, InvalidArgumentError
from recordlayer.index import MinMaxIndexMaintainer
from recordlayer.storage import MemoryDatabase
from recordlayer.store import RecordStore


def sale(pk, region, amount):
    return StoredRecord("Sale", (pk,), {"sale_id": pk, "region": region, "amount": amount})


class TestMinMaxIndexMaintainer:
    """Test cases for MinMaxIndexMaintainer."""

    def setup_method(self):
        self.db = MemoryDatabase()
        self.maintainer = MinMaxIndexMaintainer(
            Index.min("amount_min_by_region", ["region"], "amount"), Subspace(("min",)))

    def _update(self, old, new):
        with self.db.create_transaction() as tr:
            self.maintainer.update_index(old, new, tr)

    def _min(self, *grouping):
        with self.db.create_transaction() as tr:
            return self.maintainer.get_min(list(grouping), tr)

    def _max(self, *grouping):
        with self.db.create_transaction() as tr:
            return self.maintainer.get_max(list(grouping), tr)

    def test_not_a_min_max_index(self):
        with pytest.raises(InternalError, match="not a min or max index"):
            MinMaxIndexMaintainer(Index.count("c", ["x"]), Subspace(("c",)))

    def test_empty_group(self):
        assert self._min("us") is None
        assert self._max("us") is None

    def test_grouped_extremes(self):
        for pk, region, amount in ((1, "us", 100), (2, "us", 50), (3, "us", 200),
                                   (4, "eu", 75), (5, "eu", -10)):
            self._update(None, sale(pk, region, amount))

        assert self._min("us") == 50
        assert self._max("us") == 200
        assert self._min("eu") == -10
        assert self._max("eu") == 75

    def test_single_record(self):
        self._update(None, sale(1, "us", 42))
        assert self._min("us") == 42
        assert self._max("us") == 42

    def test_delete_moves_minimum(self):
        self._update(None, sale(1, "us", 100))
        self._update(None, sale(2, "us", 50))
        self._update(sale(2, "us", 50), None)
        assert self._min("us") == 100

        self._update(sale(1, "us", 100), None)
        assert self._min("us") is None

    def test_duplicate_values(self):
        """Test that two records with the same value keep separate entries."""
        self._update(None, sale(1, "us", 50))
        self._update(None, sale(2, "us", 50))
        self._update(sale(1, "us", 50), None)
        assert self._min("us") == 50

    def test_update_moves_entry(self):
        self._update(None, sale(1, "us", 10))
        self._update(None, sale(2, "us", 30))
        self._update(sale(1, "us", 10), sale(1, "eu", 40))
        assert self._min("us") == 30
        assert self._min("eu") == 40

    def test_float_values_truncate(self):
        self._update(None, sale(1, "us", 9.75))
        self._update(None, sale(2, "us", -2.5))
        assert self._max("us") == 9
        assert self._min("us") == -2

    def test_non_numeric_value(self):
        with pytest.raises(InternalError, match="Expected a numeric field"):
            self._update(None, sale(1, "us", "lots"))
        with pytest.raises(InternalError, match="Expected a numeric field"):
            self.maintainer.check_record({"region": "us", "amount": "lots"})

    def test_wrong_grouping_arity(self):
        with pytest.raises(InvalidArgumentError, match="grouped by 1 values, got 0"):
            self._min()
        with pytest.raises(InvalidArgumentError, match="grouped by 1 values, got 2"):
            self._max("us", "extra")

    def test_reads_are_snapshot(self):
        """Test that reading an extreme never conflicts with writers."""
        self._update(None, sale(1, "us", 10))
        reader = self.db.create_transaction()
        reader.start()
        assert self.maintainer.get_min(["us"], reader) == 10
        self._update(None, sale(2, "us", 1))
        reader.set(b"marker", b"1")
        reader.commit()


class TestMinMaxThroughStore:
    """Test MIN and MAX indexes through RecordStore."""

    def setup_method(self):
        self.db = MemoryDatabase()
        self.schema = Schema([RecordType("Sale", field("sale_id"), (
            Index.min("amount_min", ["region"], "amount"),
            Index.max("amount_max", ["region"], "amount"),
        ))])
        with self.db.create_transaction() as tr:
            store = RecordStore(tr, self.schema)
            for sale_id, region, amount in ((1, "us", 100), (2, "us", 50), (3, "eu", 70)):
                store.save_record("Sale", {"sale_id": sale_id, "region": region,
                                           "amount": amount})

    def test_get_min_and_max(self):
        with self.db.create_transaction() as tr:
            store = RecordStore(tr, self.schema)
            assert store.get_min("amount_min", ["us"]) == 50
            assert store.get_max("amount_max", ["us"]) == 100
            assert store.get_max("amount_max", ["eu"]) == 70
            assert store.get_min("amount_min", ["asia"]) is None

    def test_index_type_checked(self):
        with self.db.create_transaction() as tr:
            store = RecordStore(tr, self.schema)
            with pytest.raises(InvalidArgumentError, match="is a max index, not a min index"):
                store.get_min("amount_max", ["us"])

    def test_delete_and_rebuild(self):
        with self.db.create_transaction() as tr:
            assert RecordStore(tr, self.schema).delete_record("Sale", 1)
        with self.db.create_transaction() as tr:
            store = RecordStore(tr, self.schema)
            assert store.rebuild_index("amount_max") == 2
        with self.db.create_transaction() as tr:
            assert RecordStore(tr, self.schema).get_max("amount_max", ["us"]) == 50

    def test_round_trip_definition(self):
        index = self.schema.get_index("amount_min")
        assert Index.from_dict(index.to_dict()) == index
