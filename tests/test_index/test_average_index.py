import pytest

from recordlayer.catalog import Index, StoredRecord
from recordlayer.core import Subspace
from recordlayer.core.exceptions import InternalError, InvalidArgumentError
from recordlayer.index import AverageIndexMaintainer
from recordlayer.storage import MemoryDatabase


def stored(pk, **data):
    return StoredRecord("Employee", (pk,), data)


class TestAverageIndexMaintainer:
    """Test cases for AverageIndexMaintainer."""

    def setup_method(self):
        self.db = MemoryDatabase()
        self.maintainer = AverageIndexMaintainer(
            Index.average("salary_by_dept", ["dept"], "salary"), Subspace(("avg",)))

    def _update(self, old, new):
        with self.db.create_transaction() as tr:
            self.maintainer.update_index(old, new, tr)

    def _read(self, *grouping):
        with self.db.create_transaction() as tr:
            return (self.maintainer.get_average(list(grouping), tr),
                    self.maintainer.get_sum_and_count(list(grouping), tr))

    def test_empty_group_has_no_average(self):
        average, (total, count) = self._read("eng")
        assert average is None
        assert (total, count) == (0, 0)

    def test_average(self):
        self._update(None, stored(1, dept="eng", salary=100))
        self._update(None, stored(2, dept="eng", salary=200))
        self._update(None, stored(3, dept="ops", salary=90))

        average, (total, count) = self._read("eng")
        assert average == 150.0
        assert (total, count) == (300, 2)
        assert self._read("ops")[0] == 90.0

    def test_update_and_delete(self):
        self._update(None, stored(1, dept="eng", salary=100))
        self._update(None, stored(2, dept="eng", salary=200))
        self._update(stored(1, dept="eng", salary=100), stored(1, dept="eng", salary=400))
        assert self._read("eng")[0] == 300.0

        self._update(stored(2, dept="eng", salary=200), None)
        assert self._read("eng")[1] == (400, 1)

    def test_deleting_last_record_removes_average(self):
        record = stored(1, dept="eng", salary=100)
        self._update(None, record)
        self._update(record, None)
        assert self._read("eng")[0] is None

    def test_change_department(self):
        self._update(None, stored(1, dept="eng", salary=100))
        self._update(stored(1, dept="eng", salary=100), stored(1, dept="ops", salary=100))
        assert self._read("eng")[0] is None
        assert self._read("ops")[0] == 100.0

    def test_non_numeric_value(self):
        with pytest.raises(InternalError):
            self._update(None, stored(1, dept="eng", salary="lots"))

    def test_grouping_arity(self):
        with pytest.raises(InvalidArgumentError):
            self._read("eng", "extra")
