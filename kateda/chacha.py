"""ChaCha20 keystream random number generator with a 32-byte seed."""

from __future__ import annotations

import struct

_CONSTANTS = (0x61707865, 0x3320646E, 0x79622D32, 0x6B206574)
_MASK32 = 0xFFFFFFFF
_MASK64 = (1 << 64) - 1
_ROUNDS = 20
_SEED_SIZE = 32


def _rotl(value: int, shift: int) -> int:
    return ((value << shift) & _MASK32) | (value >> (32 - shift))


def _quarter_round(x: list[int], a: int, b: int, c: int, d: int) -> None:
    x[a] = (x[a] + x[b]) & _MASK32
    x[d] = _rotl(x[d] ^ x[a], 16)
    x[c] = (x[c] + x[d]) & _MASK32
    x[b] = _rotl(x[b] ^ x[c], 12)
    x[a] = (x[a] + x[b]) & _MASK32
    x[d] = _rotl(x[d] ^ x[a], 8)
    x[c] = (x[c] + x[d]) & _MASK32
    x[b] = _rotl(x[b] ^ x[c], 7)


def _chacha_block(key: tuple[int, ...], counter: int, stream: int = 0) -> list[int]:
    state = [
        *_CONSTANTS,
        *key,
        counter & _MASK32,
        (counter >> 32) & _MASK32,
        stream & _MASK32,
        (stream >> 32) & _MASK32,
    ]
    working = list(state)
    for _ in range(_ROUNDS // 2):
        _quarter_round(working, 0, 4, 8, 12)
        _quarter_round(working, 1, 5, 9, 13)
        _quarter_round(working, 2, 6, 10, 14)
        _quarter_round(working, 3, 7, 11, 15)
        _quarter_round(working, 0, 5, 10, 15)
        _quarter_round(working, 1, 6, 11, 12)
        _quarter_round(working, 2, 7, 8, 13)
        _quarter_round(working, 3, 4, 9, 14)
    return [(w + s) & _MASK32 for w, s in zip(working, state)]


class ChaChaRng:
    """Deterministic generator producing the ChaCha20 keystream as 32-bit words."""

    def __init__(self, seed: bytes) -> None:
        seed = bytes(seed)
        if len(seed) != _SEED_SIZE:
            raise ValueError(f"seed must be {_SEED_SIZE} bytes, got {len(seed)}")
        self._key = struct.unpack("<8I", seed)
        self._counter = 0
        self._buffer: list[int] = []
        self._index = 0

    def __repr__(self) -> str:
        return f"ChaChaRng(block={self._counter}, index={self._index})"

    def _refill(self) -> None:
        self._buffer = _chacha_block(self._key, self._counter)
        self._counter = (self._counter + 1) & _MASK64
        self._index = 0

    def next_u32(self) -> int:
        """Next 32-bit word of the keystream."""
        if self._index >= len(self._buffer):
            self._refill()
        value = self._buffer[self._index]
        self._index += 1
        return value

    def next_u64(self) -> int:
        """Next 64-bit value, built from two words with the low word first."""
        low = self.next_u32()
        high = self.next_u32()
        return (high << 32) | low

    def gen_u8(self) -> int:
        """A random byte: the low byte of the next word."""
        return self.next_u32() & 0xFF

    def gen_bytes(self, count: int) -> bytes:
        """``count`` random bytes, one word consumed per byte."""
        if count < 0:
            raise ValueError("byte count must not be negative")
        return bytes(self.gen_u8() for _ in range(count))

    def gen_range(self, low: int, high: int) -> int:
        """Uniform integer in ``[low, high)`` using widening-multiply rejection sampling."""
        if low >= high:
            raise ValueError("cannot sample empty range")
        if low < 0 or high > 1 << 64:
            raise ValueError("range bounds must lie within unsigned 64-bit integers")
        span = high - low
        if span == 1 << 64:
            return low + self.next_u64()
        zone = ((span << (64 - span.bit_length())) - 1) & _MASK64
        while True:
            product = self.next_u64() * span
            if product & _MASK64 <= zone:
                return low + (product >> 64)