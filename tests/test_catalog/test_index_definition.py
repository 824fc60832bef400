import pytest

from recordlayer.catalog import (
    Index,
    IndexType,
    IndexOptions,
    VectorOptions,
    VectorMetric,
    RecordType,
    Schema,
    field,
    concat,
)
from recordlayer.core.exceptions import DbException, IndexNotFoundError, InternalError


class TestIndexFactories:
    """Test the Index factory methods."""

    def test_sum(self):
        index = Index.sum("s", ["region"], "amount")
        assert index.type == IndexType.SUM
        assert index.root_expression == concat("region", "amount")
        assert index.column_count == 2

    def test_count(self):
        index = Index.count("c", ["region", "status"])
        assert index.type == IndexType.COUNT
        assert index.column_count == 2

    def test_average(self):
        index = Index.average("a", ["region"], "amount")
        assert index.type == IndexType.AVERAGE
        assert index.column_count == 2

    def test_vector(self):
        index = Index.vector("v", "embedding", 3, VectorMetric.L2)
        assert index.type == IndexType.VECTOR
        assert index.options.vector == VectorOptions(3, VectorMetric.L2)
        assert index.column_count == 1

    def test_rank(self):
        index = Index.rank("r", "score", group_by=["league"], order="asc", levels=8)
        assert index.type == IndexType.RANK
        assert index.options.rank_order == "asc"
        assert index.options.rank_levels == 8
        assert index.options.rank_probability == 0.5
        assert index.column_count == 2

    def test_subspace_key_defaults_to_name(self):
        assert Index.count("c").subspace_tuple_key == "c"
        index = Index(name="c", type=IndexType.COUNT, root_expression=field("a"),
                      subspace_key=5)
        assert index.subspace_tuple_key == 5

    def test_invalid_vector_options(self):
        """Test that non-positive dimensions are rejected."""
        with pytest.raises(DbException, match="positive integer"):
            VectorOptions(0)
        with pytest.raises(DbException, match="positive integer"):
            VectorOptions(True)
        with pytest.raises(DbException, match="Unknown vector metric"):
            VectorOptions(3, "l2")


class TestIndexSerialization:
    """Test the dict form of index definitions."""

    def test_round_trip(self):
        for index in (Index.sum("s", ["region"], "amount"),
                      Index.vector("v", "embedding", 4, VectorMetric.INNER_PRODUCT),
                      Index.rank("r", "score", order="asc")):
            assert Index.from_dict(index.to_dict()) == index

    def test_unknown_type(self):
        with pytest.raises(DbException, match="Unknown index type: value"):
            Index.from_dict({"name": "x", "type": "value", "expression": "a"})

    def test_missing_key(self):
        with pytest.raises(DbException, match="Index definition missing"):
            Index.from_dict({"name": "x", "type": "sum"})

    def test_unknown_metric(self):
        with pytest.raises(DbException, match="Unknown vector metric: hamming"):
            IndexOptions.from_dict({"dimensions": 3, "metric": "hamming"})


class TestSchema:
    """Test cases for Schema."""

    def setup_method(self):
        self.orders = RecordType("Order", field("id"), (
            Index.sum("amount_by_region", ["region"], "amount"),
        ))
        self.players = RecordType("Player", field("id"), (
            Index.rank("score_rank", "score"),
        ))
        self.schema = Schema([self.orders, self.players])

    def test_lookup(self):
        assert self.schema.get_record_type("Order") is self.orders
        assert self.schema.get_index("score_rank").type == IndexType.RANK
        assert self.schema.get_record_type_for_index("score_rank") is self.players
        assert len(self.schema.get_indexes()) == 2

    def test_unknown_index(self):
        with pytest.raises(IndexNotFoundError, match="Index not found: nope") as info:
            self.schema.get_index("nope")
        assert info.value.name == "nope"

    def test_unknown_record_type(self):
        with pytest.raises(DbException, match="Unknown record type: Nope"):
            self.schema.get_record_type("Nope")

    def test_duplicate_index_name(self):
        other = RecordType("Other", field("id"), (Index.count("score_rank"),))
        with pytest.raises(DbException, match="Duplicate index name: score_rank"):
            Schema([self.players, other])

    def test_duplicate_subspace_key(self):
        a = Index(name="a", type=IndexType.COUNT, root_expression=field("x"), subspace_key="k")
        b = Index(name="b", type=IndexType.COUNT, root_expression=field("x"), subspace_key="k")
        with pytest.raises(DbException, match="reuses subspace key"):
            Schema([RecordType("T", field("id"), (a, b))])

    def test_primary_key(self):
        assert self.orders.get_primary_key({"id": 4, "region": "us"}) == (4,)

    def test_missing_primary_key(self):
        with pytest.raises(InternalError, match="missing a primary key field"):
            self.orders.get_primary_key({"region": "us"})
