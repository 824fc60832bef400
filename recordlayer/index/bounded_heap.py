import heapq
import itertools
from typing import Any, Generic, List, Tuple, TypeVar

T = TypeVar('T')


class BoundedHeap(Generic[T]):
    """
    Keeps the ``capacity`` items with the smallest priorities seen so far.

    Internally a max-heap (negated priorities on top of heapq), so the item
    to evict is always at the root. Pushing n items costs O(n log k) time
    and the heap never holds more than k items. Among equal priorities the
    earlier item wins.
    """

    def __init__(self, capacity: int):
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity <= 0:
            raise ValueError(f"BoundedHeap capacity must be a positive integer, got {capacity!r}")
        self.capacity = capacity
        self._heap: List[Tuple[float, int, T]] = []
        self._counter = itertools.count()

    def push(self, priority: float, item: T) -> bool:
        """
        Offer an item.

        Returns:
            True if the item was kept
        """
        entry = (-priority, -next(self._counter), item)
        if len(self._heap) < self.capacity:
            heapq.heappush(self._heap, entry)
            return True
        if priority < -self._heap[0][0]:
            heapq.heapreplace(self._heap, entry)
            return True
        return False

    def max_priority(self) -> float:
        """Priority of the item that would be evicted next."""
        if not self._heap:
            raise IndexError("max_priority of an empty BoundedHeap")
        return -self._heap[0][0]

    def is_full(self) -> bool:
        return len(self._heap) >= self.capacity

    def sorted(self) -> List[Tuple[float, T]]:
        """Return (priority, item) pairs in ascending priority order."""
        ordered = sorted(self._heap, key=lambda e: (-e[0], -e[1]))
        return [(-neg_priority, item) for neg_priority, _, item in ordered]

    def __len__(self) -> int:
        return len(self._heap)

    def __repr__(self) -> str:
        return f"BoundedHeap(capacity={self.capacity}, size={len(self._heap)})"
