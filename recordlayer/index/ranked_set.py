"""
Persistent ranked skip list.

Layout inside the set's subspace, for levels 0 .. L-1:

    (level,)                   head of the level
    (level, *member)           one entry per level of the member's tower

A member is a tuple, ``(score, *primary_key)`` for rank indexes, and members
are ordered by their packed bytes. Every entry's value is an 8-byte
little-endian span: the number of members from that entry (inclusive, heads
are not members) up to the next entry on the same level. Spans on one level
therefore add up to the member count, every level-0 member holds 1, and the
head of the top level, above every tower, holds the total.

Finding a member descends from the top head, reading each level from the
current entry up to the member, so every operation touches O(log n)
expected keys.
"""
import logging
import random
from collections import namedtuple
from typing import Any, Iterator, List, Optional, Tuple

from .index_maintainer import encode_int64, decode_int64
from ..core import Subspace
from ..core.exceptions import InternalError, InvalidKeyError
from ..storage import KeySelector

logger = logging.getLogger(__name__)

ONE = encode_int64(1)
MINUS_ONE = encode_int64(-1)
ZERO = encode_int64(0)

DEFAULT_LEVELS = 16
DEFAULT_PROBABILITY = 0.5

# the last entry before a member on one level, and the member's own span
# there (None when its tower does not reach that level)
Step = namedtuple("Step", ["member", "start", "span", "found_span"])


class RankedSet:
    """Order-statistics set stored as key-value entries of a transaction."""

    def __init__(self, subspace: Subspace, levels: int = DEFAULT_LEVELS,
                 probability: float = DEFAULT_PROBABILITY,
                 rng: Optional[random.Random] = None):
        """
        Args:
            subspace: Where the set's entries live
            levels: Number of levels, at least 2
            probability: Chance that a tower grows one more level
            rng: Source of tower heights, seed it for reproducible layouts

        Raises:
            InternalError: If levels or probability is out of range
        """
        if isinstance(levels, bool) or not isinstance(levels, int) or levels < 2:
            raise InternalError(f"Skip list needs at least 2 levels, got {levels!r}")
        if not 0.0 < probability < 1.0:
            raise InternalError(f"Skip list probability must be in (0, 1), got {probability!r}")
        self.subspace = subspace
        self.levels = levels
        self.probability = probability
        self.rng = rng if rng is not None else random.Random()

    def _key(self, level: int, member: Tuple[Any, ...] = ()) -> bytes:
        return self.subspace.pack((level,) + tuple(member))

    def _level_end(self, level: int) -> bytes:
        return self._key(level) + b'\xff'

    def _member(self, level: int, key: bytes) -> Tuple[Any, ...]:
        items = self.subspace.unpack(key)
        if not items or items[0] != level:
            raise InvalidKeyError(f"Key {key!r} is not a level {level} skip-list entry")
        return items[1:]

    def _top_head(self) -> bytes:
        return self._key(self.levels - 1)

    def _random_height(self) -> int:
        height = 0
        while height < self.levels - 2 and self.rng.random() < self.probability:
            height += 1
        return height

    def initialize(self, transaction) -> None:
        """Write the level heads if the set does not exist yet."""
        if transaction.get(self._top_head()) is None:
            for level in range(self.levels):
                transaction.set(self._key(level), ZERO)

    def _descend(self, transaction, member: Tuple[Any, ...],
                 snapshot: bool = False) -> List[Step]:
        path: List[Optional[Step]] = [None] * self.levels
        current: Tuple[Any, ...] = ()
        start = 0

        for level in reversed(range(self.levels)):
            member_key = self._key(level, member)
            pred = None
            found_span = None
            position = start

            for key, value in transaction.get_range(
                    self._key(level, current), KeySelector.first_greater_than(member_key),
                    snapshot=snapshot):
                span = decode_int64(value)
                if key == member_key:
                    found_span = span
                    break
                pred = (key, position, span)
                position += span

            if pred is None:
                raise InternalError(
                    f"Skip list in {self.subspace!r} is missing entries at level {level}")

            current = self._member(level, pred[0])
            start = pred[1]
            path[level] = Step(current, start, pred[2], found_span)

        return path

    def insert(self, transaction, member: Tuple[Any, ...]) -> bool:
        """
        Add a member.

        Returns:
            False if the member was already present (nothing is written)
        """
        member = tuple(member)
        self.initialize(transaction)
        path = self._descend(transaction, member)
        if path[0].found_span is not None:
            return False

        index = path[0].start + path[0].span
        height = self._random_height()

        for level, step in enumerate(path):
            pred_key = self._key(level, step.member)
            if level <= height:
                before = index - step.start
                transaction.set(pred_key, encode_int64(before))
                transaction.set(self._key(level, member),
                                encode_int64(step.span + 1 - before))
            else:
                transaction.atomic_add(pred_key, ONE)

        logger.debug("Inserted %r at index %d with height %d", member, index, height)
        return True

    def remove(self, transaction, member: Tuple[Any, ...]) -> bool:
        """
        Remove a member.

        Returns:
            False if the member was not present (nothing is written)
        """
        member = tuple(member)
        if transaction.get(self._top_head()) is None:
            return False
        path = self._descend(transaction, member)
        if path[0].found_span is None:
            return False

        for level, step in enumerate(path):
            pred_key = self._key(level, step.member)
            if step.found_span is not None:
                transaction.set(pred_key, encode_int64(step.span + step.found_span - 1))
                transaction.clear(self._key(level, member))
            else:
                transaction.atomic_add(pred_key, MINUS_ONE)

        logger.debug("Removed %r", member)
        return True

    def contains(self, transaction, member: Tuple[Any, ...], snapshot: bool = False) -> bool:
        return transaction.get(self._key(0, member), snapshot=snapshot) is not None

    def count(self, transaction, snapshot: bool = False) -> int:
        value = transaction.get(self._top_head(), snapshot=snapshot)
        return 0 if value is None else decode_int64(value)

    def rank(self, transaction, member: Tuple[Any, ...],
             snapshot: bool = False) -> Optional[int]:
        """Return the 0-based position of member in ascending order, or None."""
        member = tuple(member)
        if transaction.get(self._top_head(), snapshot=snapshot) is None:
            return None
        path = self._descend(transaction, member, snapshot=snapshot)
        if path[0].found_span is None:
            return None
        return path[0].start + path[0].span

    def select(self, transaction, index: int,
               snapshot: bool = False) -> Optional[Tuple[Any, ...]]:
        """Return the member at 0-based position index, or None if out of range."""
        if index < 0 or index >= self.count(transaction, snapshot=snapshot):
            return None

        current: Tuple[Any, ...] = ()
        start = 0
        for level in reversed(range(self.levels)):
            for key, value in transaction.get_range(
                    self._key(level, current), self._level_end(level), snapshot=snapshot):
                span = decode_int64(value)
                if start + span > index:
                    current = self._member(level, key)
                    break
                start += span
            else:
                raise InternalError(
                    f"Skip list spans at level {level} do not reach index {index}")
        return current

    def scan(self, transaction, begin: Tuple[Any, ...] = (), end: Tuple[Any, ...] = (),
             reverse: bool = False, limit: int = 0,
             snapshot: bool = True) -> Iterator[Tuple[Any, ...]]:
        """
        Iterate members in order.

        Args:
            begin: Start at the first member having this prefix or after it
            end: Stop after the last member having this prefix
            reverse: Iterate from the largest member down
            limit: Maximum number of members, 0 for no limit
        """
        begin_key = self._key(0, begin) if begin else self._key(0) + b'\x00'
        end_key = self._key(0, end) + b'\xff'
        for key, _ in transaction.get_range(begin_key, end_key, limit=limit,
                                            reverse=reverse, snapshot=snapshot):
            yield self._member(0, key)

    def __repr__(self) -> str:
        return f"RankedSet({self.subspace!r}, levels={self.levels})"
