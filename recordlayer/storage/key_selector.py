from dataclasses import dataclass


@dataclass(frozen=True)
class KeySelector:
    """
    Names the first key at or after (or strictly after) a reference key.

    Range reads accept a selector wherever they accept a raw key.
    """
    key: bytes
    or_equal: bool = True

    @classmethod
    def first_greater_or_equal(cls, key: bytes) -> 'KeySelector':
        return cls(key, True)

    @classmethod
    def first_greater_than(cls, key: bytes) -> 'KeySelector':
        return cls(key, False)

    def resolve(self) -> bytes:
        """Return the smallest key this selector can match."""
        if self.or_equal:
            return self.key
        # the key's immediate successor in byte order
        return self.key + b'\x00'


def resolve_key(key) -> bytes:
    """Turn bytes or a KeySelector into a concrete range boundary."""
    if isinstance(key, KeySelector):
        return key.resolve()
    if isinstance(key, (bytes, bytearray)):
        return bytes(key)
    raise TypeError(f"Expected bytes or KeySelector, got {type(key)}")
