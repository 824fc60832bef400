"""
Order-preserving tuple encoding.

Byte layout follows the FoundationDB tuple layer, so that comparing two
encoded tuples byte by byte gives the same result as comparing the decoded
values element by element:

    0x00        null
    0x01        byte string, 0x00 escaped as 0x00 0xFF, terminated by 0x00
    0x02        UTF-8 string, same escaping as byte strings
    0x05        nested tuple, terminated by 0x00 (nested nulls are 0x00 0xFF)
    0x0B        negative integer longer than 8 bytes
    0x0C..0x13  negative integer of 8..1 bytes, ones' complement
    0x14        integer zero
    0x15..0x1C  positive integer of 1..8 bytes, big-endian
    0x1D        positive integer longer than 8 bytes
    0x20        single-precision float
    0x21        double-precision float
    0x26, 0x27  False, True
"""
import struct
from typing import Any, Iterable, Tuple as PyTuple

from .single_float import SingleFloat
from ..exceptions import InvalidKeyError

NULL_CODE = 0x00
BYTES_CODE = 0x01
STRING_CODE = 0x02
NESTED_CODE = 0x05
NEG_INT_START = 0x0B
INT_ZERO_CODE = 0x14
POS_INT_END = 0x1D
FLOAT_CODE = 0x20
DOUBLE_CODE = 0x21
FALSE_CODE = 0x26
TRUE_CODE = 0x27

ESCAPE_BYTE = 0xFF


def _encode_float_bits(raw: bytes) -> bytes:
    # negative: invert every bit; positive: flip the sign bit
    if raw[0] & 0x80:
        return bytes(b ^ 0xFF for b in raw)
    return bytes([raw[0] ^ 0x80]) + raw[1:]


def _decode_float_bits(raw: bytes) -> bytes:
    if raw[0] & 0x80:
        return bytes([raw[0] ^ 0x80]) + raw[1:]
    return bytes(b ^ 0xFF for b in raw)


def _encode_int(value: int) -> bytes:
    if value == 0:
        return bytes([INT_ZERO_CODE])

    magnitude = abs(value)
    length = (magnitude.bit_length() + 7) // 8
    if length > 255:
        raise ValueError(f"Integer too large to encode: {length} bytes")

    if value > 0:
        body = magnitude.to_bytes(length, 'big')
        if length > 8:
            return bytes([POS_INT_END, length]) + body
        return bytes([INT_ZERO_CODE + length]) + body

    body = (value + (1 << (8 * length)) - 1).to_bytes(length, 'big')
    if length > 8:
        return bytes([NEG_INT_START, length ^ 0xFF]) + body
    return bytes([INT_ZERO_CODE - length]) + body


def _encode_element(value: Any, nested: bool) -> bytes:
    if value is None:
        return bytes([NULL_CODE, ESCAPE_BYTE]) if nested else bytes([NULL_CODE])
    if isinstance(value, bool):
        return bytes([TRUE_CODE if value else FALSE_CODE])
    if isinstance(value, int):
        return _encode_int(value)
    if isinstance(value, SingleFloat):
        return bytes([FLOAT_CODE]) + _encode_float_bits(struct.pack('>f', value))
    if isinstance(value, float):
        return bytes([DOUBLE_CODE]) + _encode_float_bits(struct.pack('>d', value))
    if isinstance(value, (bytes, bytearray)):
        return (bytes([BYTES_CODE]) + bytes(value).replace(b'\x00', b'\x00\xff')
                + b'\x00')
    if isinstance(value, str):
        return (bytes([STRING_CODE]) + value.encode('utf-8').replace(b'\x00', b'\x00\xff')
                + b'\x00')
    if isinstance(value, (tuple, list)):
        body = b''.join(_encode_element(item, True) for item in value)
        return bytes([NESTED_CODE]) + body + b'\x00'
    raise TypeError(f"Unsupported tuple element type: {type(value)}")


def pack(items: Iterable[Any]) -> bytes:
    """
    Encode a sequence of elements.

    Args:
        items: Elements of type None, bool, int, float, SingleFloat, str,
            bytes, or nested tuples/lists of those

    Returns:
        The order-preserving encoding

    Raises:
        TypeError: If an element has an unsupported type
        ValueError: If an integer needs more than 255 bytes
    """
    return b''.join(_encode_element(item, False) for item in items)


def _find_terminator(data: bytes, pos: int) -> int:
    while True:
        end = data.find(b'\x00', pos)
        if end < 0:
            raise InvalidKeyError("Unterminated byte string in tuple")
        if end + 1 < len(data) and data[end + 1] == ESCAPE_BYTE:
            pos = end + 2
            continue
        return end


def _take(data: bytes, pos: int, length: int) -> bytes:
    if pos + length > len(data):
        raise InvalidKeyError("Truncated tuple element")
    return data[pos:pos + length]


def _decode_element(data: bytes, pos: int) -> PyTuple[Any, int]:
    code = data[pos]

    if code == NULL_CODE:
        return None, pos + 1

    if code in (BYTES_CODE, STRING_CODE):
        end = _find_terminator(data, pos + 1)
        raw = data[pos + 1:end].replace(b'\x00\xff', b'\x00')
        if code == STRING_CODE:
            try:
                return raw.decode('utf-8'), end + 1
            except UnicodeDecodeError as e:
                raise InvalidKeyError(f"Invalid UTF-8 in tuple string: {e}")
        return raw, end + 1

    if code == NESTED_CODE:
        items = []
        pos += 1
        while True:
            if pos >= len(data):
                raise InvalidKeyError("Unterminated nested tuple")
            if data[pos] == NULL_CODE:
                if pos + 1 < len(data) and data[pos + 1] == ESCAPE_BYTE:
                    items.append(None)
                    pos += 2
                    continue
                return tuple(items), pos + 1
            item, pos = _decode_element(data, pos)
            items.append(item)

    if INT_ZERO_CODE < code < POS_INT_END:
        length = code - INT_ZERO_CODE
        return int.from_bytes(_take(data, pos + 1, length), 'big'), pos + 1 + length

    if NEG_INT_START < code < INT_ZERO_CODE:
        length = INT_ZERO_CODE - code
        body = int.from_bytes(_take(data, pos + 1, length), 'big')
        return body - ((1 << (8 * length)) - 1), pos + 1 + length

    if code == INT_ZERO_CODE:
        return 0, pos + 1

    if code == POS_INT_END:
        length = _take(data, pos + 1, 1)[0]
        return int.from_bytes(_take(data, pos + 2, length), 'big'), pos + 2 + length

    if code == NEG_INT_START:
        length = _take(data, pos + 1, 1)[0] ^ 0xFF
        body = int.from_bytes(_take(data, pos + 2, length), 'big')
        return body - ((1 << (8 * length)) - 1), pos + 2 + length

    if code == FLOAT_CODE:
        raw = _decode_float_bits(_take(data, pos + 1, 4))
        return SingleFloat(struct.unpack('>f', raw)[0]), pos + 5

    if code == DOUBLE_CODE:
        raw = _decode_float_bits(_take(data, pos + 1, 8))
        return struct.unpack('>d', raw)[0], pos + 9

    if code == FALSE_CODE:
        return False, pos + 1

    if code == TRUE_CODE:
        return True, pos + 1

    raise InvalidKeyError(f"Unknown tuple type code 0x{code:02x} at offset {pos}")


def unpack(data: bytes) -> PyTuple[Any, ...]:
    """
    Decode bytes produced by ``pack``.

    Raises:
        InvalidKeyError: If data is not a valid encoding
    """
    items = []
    pos = 0
    while pos < len(data):
        item, pos = _decode_element(data, pos)
        items.append(item)
    return tuple(items)
