from typing import Any, Iterable, Tuple as PyTuple

from .tuple import pack, unpack
from .exceptions import InvalidKeyError


class Subspace:
    """
    A key-prefix namespace.

    Every key packed through a subspace starts with its prefix, so one
    subspace can never read or clear another's keys unless one is nested
    inside the other.
    """

    def __init__(self, prefix_tuple: Iterable[Any] = (), raw_prefix: bytes = b''):
        self.raw_prefix = bytes(raw_prefix) + pack(prefix_tuple)

    def key(self) -> bytes:
        """Return the raw prefix of this subspace."""
        return self.raw_prefix

    def pack(self, items: Iterable[Any] = ()) -> bytes:
        """Return the prefix followed by the encoding of items."""
        return self.raw_prefix + pack(items)

    def unpack(self, key: bytes) -> PyTuple[Any, ...]:
        """
        Decode the part of key that follows the prefix.

        Raises:
            InvalidKeyError: If key is outside this subspace or malformed
        """
        if not self.contains(key):
            raise InvalidKeyError(f"Key {key!r} is not in subspace {self.raw_prefix!r}")
        return unpack(key[len(self.raw_prefix):])

    def range(self, items: Iterable[Any] = ()) -> PyTuple[bytes, bytes]:
        """
        Return the (begin, end) key range of every tuple that extends items.

        The prefix key itself is excluded.
        """
        prefix = self.pack(items)
        return prefix + b'\x00', prefix + b'\xff'

    def contains(self, key: bytes) -> bool:
        return key.startswith(self.raw_prefix)

    def subspace(self, *elements: Any) -> 'Subspace':
        """Return the nested subspace for the given tuple elements."""
        return Subspace(elements, self.raw_prefix)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Subspace) and self.raw_prefix == other.raw_prefix

    def __hash__(self) -> int:
        return hash(self.raw_prefix)

    def __repr__(self) -> str:
        return f"Subspace({self.raw_prefix!r})"
