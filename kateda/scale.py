"""SCALE codec: compact integers and vectors of byte strings."""

from __future__ import annotations

from collections.abc import Iterable

_SINGLE_BYTE_LIMIT = 1 << 6
_TWO_BYTE_LIMIT = 1 << 14
_FOUR_BYTE_LIMIT = 1 << 30
_MAX_BIG_INT_BYTES = 67
_U32_MAX = (1 << 32) - 1


def encode_compact(value: int) -> bytes:
    """Encode a non-negative integer in SCALE compact form."""
    if value < 0:
        raise ValueError(f"compact integers must not be negative: {value}")
    if value < _SINGLE_BYTE_LIMIT:
        return bytes([value << 2])
    if value < _TWO_BYTE_LIMIT:
        return ((value << 2) | 0b01).to_bytes(2, "little")
    if value < _FOUR_BYTE_LIMIT:
        return ((value << 2) | 0b10).to_bytes(4, "little")
    length = max(4, (value.bit_length() + 7) // 8)
    if length > _MAX_BIG_INT_BYTES:
        raise ValueError(f"value too large for compact encoding: {value}")
    return bytes([((length - 4) << 2) | 0b11]) + value.to_bytes(length, "little")


def _take(data: bytes, offset: int, count: int) -> bytes:
    end = offset + count
    if end > len(data):
        raise ValueError("unexpected end of input")
    return data[offset:end]


def decode_compact(data: bytes, offset: int = 0) -> tuple[int, int]:
    """Decode a compact integer at ``offset``; return it and the offset just past it."""
    data = bytes(data)
    if offset < 0 or offset >= len(data):
        raise ValueError("unexpected end of input")
    prefix = data[offset]
    mode = prefix & 0b11
    if mode == 0b00:
        return prefix >> 2, offset + 1
    if mode == 0b01:
        value = int.from_bytes(_take(data, offset, 2), "little") >> 2
        if value < _SINGLE_BYTE_LIMIT:
            raise ValueError("compact integer out of range for its encoding mode")
        return value, offset + 2
    if mode == 0b10:
        value = int.from_bytes(_take(data, offset, 4), "little") >> 2
        if value < _TWO_BYTE_LIMIT:
            raise ValueError("compact integer out of range for its encoding mode")
        return value, offset + 4
    length = (prefix >> 2) + 4
    value = int.from_bytes(_take(data, offset + 1, length), "little")
    if value < _FOUR_BYTE_LIMIT or (length > 4 and value < 1 << ((length - 1) * 8)):
        raise ValueError("compact integer out of range for its encoding mode")
    return value, offset + 1 + length


def encode_byte_vectors(items: Iterable[bytes]) -> bytes:
    """Encode a sequence of byte strings as a SCALE ``Vec<Vec<u8>>``."""
    items = [bytes(item) for item in items]
    parts = [encode_compact(len(items))]
    for item in items:
        parts.append(encode_compact(len(item)))
        parts.append(item)
    return b"".join(parts)


def _decode_length(data: bytes, offset: int) -> tuple[int, int]:
    length, offset = decode_compact(data, offset)
    if length > _U32_MAX:
        raise ValueError(f"length {length} does not fit in 32 bits")
    return length, offset


def decode_byte_vectors(data: bytes) -> list[bytes]:
    """Decode a SCALE ``Vec<Vec<u8>>`` from the start of ``data``; trailing bytes are ignored."""
    data = bytes(data)
    count, offset = _decode_length(data, 0)
    result: list[bytes] = []
    for _ in range(count):
        length, offset = _decode_length(data, offset)
        result.append(_take(data, offset, length))
        offset += length
    return result