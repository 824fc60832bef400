import pytest

from recordlayer.core import Subspace, pack
from recordlayer.core.exceptions import InvalidKeyError


class TestSubspace:
    """Test cases for Subspace."""

    def setup_method(self):
        self.root = Subspace(("app",))

    def test_pack_prefixes_key(self):
        """Test that packed keys start with the prefix."""
        key = self.root.pack((1, "x"))
        assert key == pack(("app",)) + pack((1, "x"))
        assert self.root.contains(key)

    def test_unpack_strips_prefix(self):
        assert self.root.unpack(self.root.pack((1, "x"))) == (1, "x")

    def test_unpack_foreign_key(self):
        with pytest.raises(InvalidKeyError, match="is not in subspace"):
            self.root.unpack(pack(("other", 1)))

    def test_range_covers_children_only(self):
        """Test that range() covers every extension but not the prefix itself."""
        begin, end = self.root.range()
        assert begin <= self.root.pack((0,)) < end
        assert begin <= self.root.pack(("zzz", 2**70)) < end
        assert not (begin <= self.root.key() < end)
        assert not (begin <= Subspace(("apq",)).pack((1,)) < end)

    def test_range_with_items(self):
        begin, end = self.root.range(("a",))
        assert begin <= self.root.pack(("a", 1)) < end
        assert not (begin <= self.root.pack(("b", 1)) < end)

    def test_nested_subspaces_are_disjoint(self):
        """Test that sibling subspaces never contain each other's keys."""
        first = self.root.subspace(1)
        second = self.root.subspace(2)
        assert not second.contains(first.pack(("x",)))
        assert self.root.contains(first.pack(("x",)))
        assert first == Subspace(("app", 1))
        assert hash(first) == hash(Subspace(("app", 1)))

    def test_raw_prefix(self):
        space = Subspace((), raw_prefix=b'\xfe')
        assert space.key() == b'\xfe'
        assert space.pack((1,)) == b'\xfe\x15\x01'
