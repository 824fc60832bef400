import pytest

from recordlayer.catalog import Index, StoredRecord
from recordlayer.core import Subspace
from recordlayer.core.exceptions import InvalidArgumentError
from recordlayer.index import CountIndexMaintainer
from recordlayer.storage import MemoryDatabase


def stored(pk, **data):
    return StoredRecord("User", (pk,), data)


class TestCountIndexMaintainer:
    """Test cases for CountIndexMaintainer."""

    def setup_method(self):
        self.db = MemoryDatabase()
        self.maintainer = CountIndexMaintainer(
            Index.count("users_by_country", ["country"]), Subspace(("count",)))

    def _update(self, old, new):
        with self.db.create_transaction() as tr:
            self.maintainer.update_index(old, new, tr)

    def _count(self, *grouping):
        with self.db.create_transaction() as tr:
            return self.maintainer.get_count(list(grouping), tr)

    def test_empty_group(self):
        assert self._count("fr") == 0

    def test_insert_and_delete(self):
        self._update(None, stored(1, country="fr"))
        self._update(None, stored(2, country="fr"))
        self._update(None, stored(3, country="de"))
        assert self._count("fr") == 2
        assert self._count("de") == 1

        self._update(stored(2, country="fr"), None)
        assert self._count("fr") == 1

    def test_update_within_group_is_noop(self):
        """Test that an update keeping the group writes nothing."""
        self._update(None, stored(1, country="fr"))
        with self.db.create_transaction() as tr:
            self.maintainer.update_index(stored(1, country="fr", age=30),
                                         stored(1, country="fr", age=31), tr)
            assert tr.get_statistics()["pending_writes"] == 0
        assert self._count("fr") == 1

    def test_update_moves_group(self):
        self._update(None, stored(1, country="fr"))
        self._update(stored(1, country="fr"), stored(1, country="de"))
        assert self._count("fr") == 0
        assert self._count("de") == 1

    def test_missing_field_counts_as_null_group(self):
        self._update(None, stored(1))
        assert self._count(None) == 1

    def test_ungrouped_count(self):
        maintainer = CountIndexMaintainer(Index.count("all_users"), Subspace(("all",)))
        with self.db.create_transaction() as tr:
            for pk in range(5):
                maintainer.update_index(None, stored(pk), tr)
        with self.db.create_transaction() as tr:
            assert maintainer.get_count([], tr) == 5

    def test_scan_record(self):
        with self.db.create_transaction() as tr:
            self.maintainer.scan_record({"country": "it"}, (1,), tr)
        assert self._count("it") == 1

    def test_grouping_arity(self):
        with pytest.raises(InvalidArgumentError, match="grouped by 1 values, got 0"):
            self._count()

    def test_both_records_missing(self):
        with pytest.raises(InvalidArgumentError):
            self._update(None, None)
