import bisect
import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from ..core.exceptions import TransactionConflictError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommittedWrites:
    """Write footprint of one committed transaction, kept for conflict checks."""
    version: int
    keys: frozenset
    cleared_ranges: Tuple[Tuple[bytes, bytes], ...] = field(default_factory=tuple)

    def intersects(self, begin: bytes, end: bytes) -> bool:
        for key in self.keys:
            if begin <= key < end:
                return True
        for range_begin, range_end in self.cleared_ranges:
            if range_begin < end and begin < range_end:
                return True
        return False


class MemoryDatabase:
    """
    Ordered, versioned key-value store held in memory.

    Every key keeps its list of (version, value) pairs, with None marking a
    clear, so a transaction reads the state as of its read version. Commits
    are checked optimistically: a transaction aborts when a transaction that
    committed after its read version wrote into one of its read ranges.
    """

    def __init__(self):
        self._keys: List[bytes] = []
        self._versions: Dict[bytes, List[Tuple[int, Optional[bytes]]]] = {}
        self._version = 0
        self._history: List[CommittedWrites] = []
        self._active = set()
        self._lock = threading.RLock()

        # Statistics
        self.transactions_started = 0
        self.transactions_committed = 0
        self.transactions_aborted = 0
        self.conflicts = 0

    def create_transaction(self):
        """Create a new transaction bound to this database."""
        from ..concurrency.transactions import Transaction
        return Transaction(self)

    def get_version(self) -> int:
        with self._lock:
            return self._version

    def register(self, transaction) -> int:
        """Register a starting transaction and return its read version."""
        with self._lock:
            self._active.add(transaction)
            self.transactions_started += 1
            return self._version

    def read(self, key: bytes, version: int) -> Optional[bytes]:
        """Return the value of key as of version, or None if absent."""
        with self._lock:
            history = self._versions.get(key)
            if not history:
                return None
            for entry_version, value in reversed(history):
                if entry_version <= version:
                    return value
            return None

    def latest(self, key: bytes) -> Optional[bytes]:
        with self._lock:
            return self.read(key, self._version)

    def keys_in_range(self, begin: bytes, end: bytes) -> List[bytes]:
        """Return every key ever written in [begin, end), in order."""
        with self._lock:
            low = bisect.bisect_left(self._keys, begin)
            high = bisect.bisect_left(self._keys, end)
            return self._keys[low:high]

    def iter_keys(self, begin: bytes, end: bytes, reverse: bool = False) -> Iterator[bytes]:
        """
        Lazily yield every key ever written in [begin, end), in order.

        Each step re-seeks from the last key returned, so keys inserted by
        commits during the walk do not shift it.
        """
        if reverse:
            upper = end
            while True:
                with self._lock:
                    position = bisect.bisect_left(self._keys, upper)
                    if position == 0:
                        return
                    key = self._keys[position - 1]
                if key < begin:
                    return
                yield key
                upper = key
        else:
            position_of = bisect.bisect_left
            lower = begin
            while True:
                with self._lock:
                    position = position_of(self._keys, lower)
                    if position >= len(self._keys):
                        return
                    key = self._keys[position]
                if key >= end:
                    return
                yield key
                lower = key
                position_of = bisect.bisect_right

    def commit(self, transaction, read_version: int,
               read_ranges: List[Tuple[bytes, bytes]],
               cleared_ranges: List[Tuple[bytes, bytes]],
               writes: Dict[bytes, object]) -> int:
        """
        Check a transaction for conflicts and apply its writes atomically.

        Args:
            transaction: The committing transaction
            read_version: Version its serializable reads observed
            read_ranges: Key ranges read without the snapshot flag
            cleared_ranges: Ranges cleared, applied before the point writes
            writes: Per-key pending writes, each resolved against the latest
                committed value through its ``apply`` method

        Returns:
            The commit version

        Raises:
            TransactionConflictError: If a read range was written after
                read_version
        """
        with self._lock:
            for committed in self._history:
                if committed.version <= read_version:
                    continue
                for begin, end in read_ranges:
                    if committed.intersects(begin, end):
                        self.conflicts += 1
                        self._finish(transaction, committed=False)
                        logger.warning(
                            "Transaction %s conflicts with version %d",
                            transaction.tid, committed.version)
                        raise TransactionConflictError(
                            f"Transaction {transaction.tid} conflicts with a write "
                            f"committed at version {committed.version}")

            if not writes and not cleared_ranges:
                self._finish(transaction, committed=True)
                return read_version

            version = self._version + 1
            for begin, end in cleared_ranges:
                for key in self.keys_in_range(begin, end):
                    if self.read(key, self._version) is not None:
                        self._versions[key].append((version, None))

            for key, write in writes.items():
                value = write.apply(self.read(key, version))
                self._put(key, version, value)

            self._version = version
            self._history.append(CommittedWrites(
                version, frozenset(writes), tuple(cleared_ranges)))
            self._finish(transaction, committed=True)
            self._prune_history()
            return version

    def abort(self, transaction) -> None:
        with self._lock:
            self._finish(transaction, committed=False)

    def _put(self, key: bytes, version: int, value: Optional[bytes]) -> None:
        history = self._versions.get(key)
        if history is None:
            if value is None:
                return
            bisect.insort(self._keys, key)
            self._versions[key] = history = []
        if history[-1:] and history[-1][0] == version:
            history[-1] = (version, value)
        else:
            history.append((version, value))

    def _finish(self, transaction, committed: bool) -> None:
        if transaction in self._active:
            self._active.discard(transaction)
            if committed:
                self.transactions_committed += 1
            else:
                self.transactions_aborted += 1

    def _prune_history(self) -> None:
        # entries at or below every live read version can no longer conflict
        live = [t.read_version for t in self._active if t.read_version is not None]
        floor = min(live) if live else self._version
        self._history = [c for c in self._history if c.version > floor]

    def get_statistics(self) -> dict:
        with self._lock:
            return {
                'version': self._version,
                'keys': sum(1 for k in self._keys if self.latest(k) is not None),
                'active_transactions': len(self._active),
                'transactions_started': self.transactions_started,
                'transactions_committed': self.transactions_committed,
                'transactions_aborted': self.transactions_aborted,
                'conflicts': self.conflicts,
            }

    def __repr__(self) -> str:
        return f"MemoryDatabase(version={self._version}, keys={len(self._keys)})"
