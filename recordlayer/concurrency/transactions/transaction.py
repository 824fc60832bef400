import heapq
import itertools
import logging
import threading
import time
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from ...core.exceptions import DbException
from ...storage.key_selector import resolve_key

logger = logging.getLogger(__name__)

_transaction_ids = itertools.count(1)


class TransactionState(Enum):
    """States a transaction can be in during its lifecycle."""
    CREATED = "CREATED"
    ACTIVE = "ACTIVE"
    COMMITTED = "COMMITTED"
    ABORTED = "ABORTED"


def add_little_endian(existing: Optional[bytes], param: bytes) -> bytes:
    """
    Atomic add on little-endian integers.

    The result has the length of param; the existing value is zero-extended
    or truncated to that length first and the sum wraps around.
    """
    width = len(param)
    base = int.from_bytes((existing or b'')[:width].ljust(width, b'\x00'), 'little')
    total = (base + int.from_bytes(param, 'little')) % (1 << (8 * width))
    return total.to_bytes(width, 'little')


class PendingWrite:
    """
    Staged mutation of a single key.

    A write is concrete once its final value no longer depends on the stored
    one (after a set or clear). Until then it is a list of atomic adds that
    are applied to whatever value is committed when the transaction commits.
    """

    def __init__(self, concrete: bool = False, value: Optional[bytes] = None):
        self.concrete = concrete
        self.value = value
        self.adds: List[bytes] = []

    def add(self, param: bytes) -> None:
        if self.concrete:
            self.value = add_little_endian(self.value, param)
        else:
            self.adds.append(param)

    def apply(self, base: Optional[bytes]) -> Optional[bytes]:
        if self.concrete:
            return self.value
        value = base
        for param in self.adds:
            value = add_little_endian(value, param)
        return value


class Transaction:
    """
    Optimistic transaction over a MemoryDatabase.

    Reads see the database as of the read version taken at start, overlaid
    with this transaction's own writes. Non-snapshot reads record their key
    ranges; commit fails with TransactionConflictError if another
    transaction committed a write into one of them in the meantime. Writes
    are buffered and become visible to others only at commit.
    """

    def __init__(self, database):
        self.tid = next(_transaction_ids)
        self.database = database
        self.state = TransactionState.CREATED
        self.read_version: Optional[int] = None
        self.commit_version: Optional[int] = None
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None
        self._lock = threading.RLock()

        self._writes: Dict[bytes, PendingWrite] = {}
        self._cleared_ranges: List[Tuple[bytes, bytes]] = []
        self._read_ranges: List[Tuple[bytes, bytes]] = []

        # Statistics
        self.reads = 0
        self.operations_count = 0

    def start(self) -> None:
        """Start the transaction and take its read version."""
        with self._lock:
            if self.state != TransactionState.CREATED:
                raise DbException(
                    f"Cannot start transaction in state {self.state}")
            self.read_version = self.database.register(self)
            self.state = TransactionState.ACTIVE
            self.start_time = time.time()

    def get_state(self) -> TransactionState:
        return self.state

    def is_active(self) -> bool:
        return self.state == TransactionState.ACTIVE

    def _check_active(self) -> None:
        if self.state != TransactionState.ACTIVE:
            raise DbException(
                f"Transaction {self.tid} is not active (state {self.state})")

    def _in_cleared_range(self, key: bytes) -> bool:
        return any(begin <= key < end for begin, end in self._cleared_ranges)

    def _resolve(self, key: bytes, snapshot: bool) -> Optional[bytes]:
        write = self._writes.get(key)
        if write is not None and write.concrete:
            return write.value

        if self._in_cleared_range(key):
            base = None
        else:
            if not snapshot:
                self._read_ranges.append((key, key + b'\x00'))
            base = self.database.read(key, self.read_version)

        return write.apply(base) if write is not None else base

    def get(self, key: bytes, snapshot: bool = False) -> Optional[bytes]:
        """
        Read a single key.

        Args:
            key: The key to read
            snapshot: If True, the read does not take part in conflict checks

        Returns:
            The value, or None if the key is absent
        """
        with self._lock:
            self._check_active()
            self.reads += 1
            return self._resolve(key, snapshot)

    def get_range(self, begin, end, limit: int = 0, reverse: bool = False,
                  snapshot: bool = False) -> Iterator[Tuple[bytes, bytes]]:
        """
        Read the key-value pairs in [begin, end) in key order.

        Args:
            begin: First key or KeySelector (inclusive)
            end: Last key or KeySelector (exclusive)
            limit: Maximum number of pairs to return, 0 for no limit
            reverse: Iterate from the end of the range
            snapshot: If True, the range is not recorded for conflict checks

        Returns:
            A lazy iterator of (key, value) pairs
        """
        with self._lock:
            self._check_active()
            begin_key = resolve_key(begin)
            end_key = resolve_key(end)
            if begin_key >= end_key:
                return iter(())

            if not snapshot:
                self._read_ranges.append((begin_key, end_key))

            local_keys = sorted((k for k in self._writes if begin_key <= k < end_key),
                                reverse=reverse)

        keys = heapq.merge(self.database.iter_keys(begin_key, end_key, reverse),
                           local_keys, reverse=reverse)
        return self._iterate_range(keys, limit)

    def _iterate_range(self, keys: Iterator[bytes],
                       limit: int) -> Iterator[Tuple[bytes, bytes]]:
        returned = 0
        previous = None
        for key in keys:
            # a key both stored and written locally comes out of the merge twice
            if key == previous:
                continue
            previous = key
            with self._lock:
                self._check_active()
                # the whole range was recorded above
                value = self._resolve(key, snapshot=True)
            if value is None:
                continue
            self.reads += 1
            yield key, value
            returned += 1
            if limit and returned >= limit:
                return

    def set(self, key: bytes, value: bytes) -> None:
        with self._lock:
            self._check_active()
            self._writes[key] = PendingWrite(concrete=True, value=bytes(value))
            self.operations_count += 1

    def clear(self, key: bytes) -> None:
        with self._lock:
            self._check_active()
            self._writes[key] = PendingWrite(concrete=True, value=None)
            self.operations_count += 1

    def clear_range(self, begin, end) -> None:
        """Clear every key in [begin, end)."""
        with self._lock:
            self._check_active()
            begin_key = resolve_key(begin)
            end_key = resolve_key(end)
            if begin_key >= end_key:
                return
            self._cleared_ranges.append((begin_key, end_key))
            for key in [k for k in self._writes if begin_key <= k < end_key]:
                self._writes[key] = PendingWrite(concrete=True, value=None)
            self.operations_count += 1

    def atomic_add(self, key: bytes, param: bytes) -> None:
        """
        Add param to the stored value as little-endian integers.

        Does not read the key, so concurrent adds to the same key never
        conflict with each other.
        """
        with self._lock:
            self._check_active()
            write = self._writes.get(key)
            if write is None:
                if self._in_cleared_range(key):
                    write = PendingWrite(concrete=True, value=None)
                else:
                    write = PendingWrite()
                self._writes[key] = write
            write.add(bytes(param))
            self.operations_count += 1

    def commit(self) -> None:
        """
        Commit all staged writes atomically.

        Raises:
            DbException: If the transaction is not active
            TransactionConflictError: If a serializable read was invalidated
        """
        with self._lock:
            self._check_active()
            try:
                self.commit_version = self.database.commit(
                    self, self.read_version, self._read_ranges,
                    self._cleared_ranges, self._writes)
            except Exception:
                self.state = TransactionState.ABORTED
                self.end_time = time.time()
                raise
            self.state = TransactionState.COMMITTED
            self.end_time = time.time()
            logger.debug("Transaction %s committed at version %s",
                         self.tid, self.commit_version)

    def abort(self, reason: str = "Explicit abort requested") -> None:
        """Discard all staged writes."""
        with self._lock:
            if self.state in [TransactionState.COMMITTED, TransactionState.ABORTED]:
                return

            if self.state == TransactionState.ACTIVE:
                self.database.abort(self)
            self.state = TransactionState.ABORTED
            self.end_time = time.time()
            self._writes.clear()
            self._cleared_ranges.clear()
            logger.warning("Transaction %s aborted: %s", self.tid, reason)

    def get_statistics(self) -> dict:
        """Get transaction statistics."""
        with self._lock:
            duration = 0.0
            if self.start_time:
                end_time = self.end_time or time.time()
                duration = end_time - self.start_time

            return {
                'transaction_id': self.tid,
                'state': self.state.value,
                'duration': duration,
                'read_version': self.read_version,
                'commit_version': self.commit_version,
                'reads': self.reads,
                'operations_count': self.operations_count,
                'read_ranges': len(self._read_ranges),
                'pending_writes': len(self._writes),
            }

    def __str__(self) -> str:
        return f"Transaction({self.tid}, state={self.state.value})"

    def __repr__(self) -> str:
        return self.__str__()

    def __enter__(self):
        """Context manager entry - start the transaction."""
        if self.state == TransactionState.CREATED:
            self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - commit or abort based on exception."""
        if exc_type is None:
            if self.state == TransactionState.ACTIVE:
                self.commit()
        else:
            self.abort(f"Exception occurred: {exc_val}")
        return False
