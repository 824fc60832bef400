import random
import pytest

from recordlayer.index import BoundedHeap


class TestBoundedHeap:
    """Test cases for BoundedHeap."""

    def setup_method(self):
        self.heap = BoundedHeap(3)

    def test_invalid_capacity(self):
        for capacity in (0, -1, 2.5, True):
            with pytest.raises(ValueError, match="positive integer"):
                BoundedHeap(capacity)

    def test_fills_up_to_capacity(self):
        assert self.heap.push(5.0, "a")
        assert self.heap.push(1.0, "b")
        assert not self.heap.is_full()
        assert self.heap.push(3.0, "c")
        assert self.heap.is_full()
        assert len(self.heap) == 3
        assert self.heap.max_priority() == 5.0

    def test_evicts_current_maximum(self):
        for priority, item in [(5.0, "a"), (1.0, "b"), (3.0, "c")]:
            self.heap.push(priority, item)

        assert self.heap.push(2.0, "d")
        assert len(self.heap) == 3
        assert self.heap.sorted() == [(1.0, "b"), (2.0, "d"), (3.0, "c")]

    def test_rejects_larger_when_full(self):
        for priority, item in [(1.0, "a"), (2.0, "b"), (3.0, "c")]:
            self.heap.push(priority, item)
        assert not self.heap.push(4.0, "d")
        assert not self.heap.push(3.0, "e")
        assert [item for _, item in self.heap.sorted()] == ["a", "b", "c"]

    def test_ties_keep_earlier_item(self):
        for item in "abcde":
            self.heap.push(1.0, item)
        assert self.heap.sorted() == [(1.0, "a"), (1.0, "b"), (1.0, "c")]

    def test_max_priority_empty(self):
        with pytest.raises(IndexError):
            self.heap.max_priority()

    def test_unorderable_items(self):
        """Test that items never need to be compared with each other."""
        self.heap.push(1.0, {"x": 1})
        self.heap.push(1.0, {"x": 2})
        assert len(self.heap.sorted()) == 2

    def test_keeps_k_smallest_of_random_input(self):
        rng = random.Random(3)
        for capacity in (1, 5, 17):
            values = [rng.uniform(-100.0, 100.0) for _ in range(500)]
            heap = BoundedHeap(capacity)
            for i, value in enumerate(values):
                heap.push(value, i)

            assert len(heap) == capacity
            assert [p for p, _ in heap.sorted()] == sorted(values)[:capacity]
            for priority, i in heap.sorted():
                assert values[i] == priority
