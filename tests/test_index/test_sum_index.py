import random
import pytest

from recordlayer.catalog import Index, RecordType, Schema, StoredRecord, field
from recordlayer.core import Subspace
from recordlayer.core.exceptions import InternalError, InvalidArgumentError
from recordlayer.index import SumIndexMaintainer, encode_int64, decode_int64
from recordlayer.storage import MemoryDatabase
from recordlayer.store import RecordStore


def stored(pk, **data):
    return StoredRecord("Order", (pk,), data)


class TestInt64Encoding:
    """Test the counter encoding used by aggregate indexes."""

    def test_encode(self):
        assert encode_int64(1) == b'\x01' + b'\x00' * 7
        assert encode_int64(-1) == b'\xff' * 8

    def test_decode(self):
        assert decode_int64(encode_int64(-12345)) == -12345
        assert decode_int64(encode_int64(2**63 - 1)) == 2**63 - 1

    def test_decode_wrong_length(self):
        with pytest.raises(InternalError, match="Expected an 8-byte counter"):
            decode_int64(b'\x01')


class TestSumIndexMaintainer:
    """Test cases for SumIndexMaintainer used directly."""

    def setup_method(self):
        self.db = MemoryDatabase()
        self.index = Index.sum("amount_by_region", ["region"], "amount")
        self.maintainer = SumIndexMaintainer(self.index, Subspace(("sum",)))

    def _sum(self, *grouping):
        with self.db.create_transaction() as tr:
            return self.maintainer.get_sum(list(grouping), tr)

    def _update(self, old, new):
        with self.db.create_transaction() as tr:
            self.maintainer.update_index(old, new, tr)

    def test_absent_group_is_zero(self):
        assert self._sum("nowhere") == 0

    def test_insert_update_delete(self):
        self._update(None, stored(1, region="us", amount=10))
        self._update(None, stored(2, region="us", amount=5))
        assert self._sum("us") == 15

        self._update(stored(1, region="us", amount=10), stored(1, region="us", amount=12))
        assert self._sum("us") == 17

        self._update(stored(2, region="us", amount=5), None)
        assert self._sum("us") == 12

    def test_update_moves_between_groups(self):
        """Test that changing the group key moves the summand."""
        self._update(None, stored(1, region="us", amount=10))
        self._update(stored(1, region="us", amount=10), stored(1, region="eu", amount=10))
        assert self._sum("us") == 0
        assert self._sum("eu") == 10

    def test_insert_then_delete_nets_to_zero(self):
        record = stored(1, region="us", amount=42)
        self._update(None, record)
        self._update(record, None)
        assert self._sum("us") == 0

    def test_floats_truncate_toward_zero(self):
        self._update(None, stored(1, region="us", amount=2.9))
        self._update(None, stored(2, region="us", amount=-1.9))
        assert self._sum("us") == 1

    def test_scan_record_adds_only(self):
        with self.db.create_transaction() as tr:
            self.maintainer.scan_record({"region": "us", "amount": 3}, (1,), tr)
            self.maintainer.scan_record({"region": "us", "amount": 4}, (2,), tr)
        assert self._sum("us") == 7

    def test_both_records_missing(self):
        with pytest.raises(InvalidArgumentError, match="needs an old or a new record"):
            self._update(None, None)

    def test_non_numeric_summand(self):
        with pytest.raises(InternalError, match="Expected a numeric field"):
            self._update(None, stored(1, region="us", amount="ten"))

    def test_missing_summand(self):
        """Test that a missing value field is a configuration error, not zero."""
        with pytest.raises(InternalError, match="Expected a numeric field"):
            self._update(None, stored(1, region="us"))

    def test_too_few_values(self):
        maintainer = SumIndexMaintainer(Index("s", self.index.type, field("amount")),
                                        Subspace(("s",)))
        with pytest.raises(InternalError, match="needs at least 2 values"):
            with self.db.create_transaction() as tr:
                maintainer.update_index(None, stored(1, amount=1), tr)

    def test_wrong_grouping_arity(self):
        with pytest.raises(InvalidArgumentError, match="grouped by 1 values, got 2"):
            self._sum("us", "extra")

    def test_multi_column_grouping(self):
        index = Index.sum("s2", ["region", "year"], "amount")
        maintainer = SumIndexMaintainer(index, Subspace(("s2",)))
        with self.db.create_transaction() as tr:
            maintainer.update_index(None, stored(1, region="us", year=2024, amount=3), tr)
            maintainer.update_index(None, stored(2, region="us", year=2025, amount=4), tr)
        with self.db.create_transaction() as tr:
            assert maintainer.get_sum(["us", 2024], tr) == 3
            assert maintainer.get_sum(["us", 2025], tr) == 4

    def test_concurrent_writers_same_group(self):
        """Test that two transactions adding to one group both commit."""
        first = self.db.create_transaction()
        second = self.db.create_transaction()
        first.start()
        second.start()
        self.maintainer.update_index(None, stored(1, region="us", amount=10), first)
        self.maintainer.update_index(None, stored(2, region="us", amount=20), second)
        first.commit()
        second.commit()
        assert self._sum("us") == 30


class TestSumIndexReplay:
    """Test that the stored sum always equals the true sum."""

    def test_random_operations(self):
        rng = random.Random(11)
        db = MemoryDatabase()
        schema = Schema([RecordType("Order", field("id"), (
            Index.sum("amount_by_region", ["region"], "amount"),
        ))])
        truth = {}

        for _ in range(200):
            with db.create_transaction() as tr:
                store = RecordStore(tr, schema)
                record_id = rng.randint(1, 25)
                if rng.random() < 0.3:
                    store.delete_record("Order", record_id)
                    truth.pop(record_id, None)
                else:
                    record = {"id": record_id, "region": rng.choice(["us", "eu", "apac"]),
                              "amount": rng.randint(-50, 100)}
                    store.save_record("Order", record)
                    truth[record_id] = record

        with db.create_transaction() as tr:
            store = RecordStore(tr, schema)
            for region in ("us", "eu", "apac"):
                expected = sum(r["amount"] for r in truth.values() if r["region"] == region)
                assert store.get_sum("amount_by_region", [region]) == expected
