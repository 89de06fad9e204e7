"""Arithmetic in the BLS12-381 scalar field and radix-2 evaluation domains over it."""

from __future__ import annotations

from collections.abc import Iterator, Sequence

MODULUS = 0x73EDA753299D7D483339D80809A1D80553BDA402FFFE5BFEFFFFFFFF00000001
TWO_ADICITY = 32
GENERATOR = 7
ROOT_OF_UNITY = pow(GENERATOR, (MODULUS - 1) >> TWO_ADICITY, MODULUS)

SCALAR_BYTES = 32


def scalar_from_bytes(data: bytes) -> int:
    """Decode a canonical little-endian 32-byte field element."""
    data = bytes(data)
    if len(data) != SCALAR_BYTES:
        raise ValueError(f"expected {SCALAR_BYTES} bytes, got {len(data)}")
    value = int.from_bytes(data, "little")
    if value >= MODULUS:
        raise ValueError("bytes do not encode a canonical field element")
    return value


def scalar_to_bytes(value: int) -> bytes:
    """Encode a field element as 32 little-endian bytes."""
    return (value % MODULUS).to_bytes(SCALAR_BYTES, "little")


def invert(value: int) -> int:
    """Multiplicative inverse in the scalar field."""
    value %= MODULUS
    if value == 0:
        raise ZeroDivisionError("zero has no inverse in the scalar field")
    return pow(value, MODULUS - 2, MODULUS)


def _bit_reverse(values: list[int]) -> None:
    n = len(values)
    j = 0
    for i in range(1, n):
        bit = n >> 1
        while j & bit:
            j ^= bit
            bit >>= 1
        j |= bit
        if i < j:
            values[i], values[j] = values[j], values[i]


def _transform(values: list[int], omega: int) -> list[int]:
    _bit_reverse(values)
    n = len(values)
    half = 1
    while half < n:
        w_m = pow(omega, n // (2 * half), MODULUS)
        twiddles = [1] * half
        for k in range(1, half):
            twiddles[k] = twiddles[k - 1] * w_m % MODULUS
        for start in range(0, n, 2 * half):
            for k, w in enumerate(twiddles):
                lo = start + k
                hi = lo + half
                t = values[hi] * w % MODULUS
                values[hi] = (values[lo] - t) % MODULUS
                values[lo] = (values[lo] + t) % MODULUS
        half *= 2
    return values


class EvaluationDomain:
    """Multiplicative subgroup of power-of-two size used for (i)FFTs."""

    def __init__(self, num_coeffs: int) -> None:
        if num_coeffs < 0:
            raise ValueError("number of coefficients must not be negative")
        size = 1 << max(num_coeffs - 1, 0).bit_length()
        log_size = size.bit_length() - 1
        if log_size >= TWO_ADICITY:
            raise ValueError(f"domain of size {size} exceeds the field's two-adicity")
        self.size = size
        self.log_size_of_group = log_size
        self.group_gen = pow(ROOT_OF_UNITY, 1 << (TWO_ADICITY - log_size), MODULUS)
        self.group_gen_inv = invert(self.group_gen)
        self.size_inv = invert(size)

    def __repr__(self) -> str:
        return f"EvaluationDomain(size={self.size})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, EvaluationDomain) and other.size == self.size

    def __hash__(self) -> int:
        return hash(self.size)

    def elements(self) -> Iterator[int]:
        """Yield the domain points 1, g, g^2, ..., g^(size-1)."""
        point = 1
        for _ in range(self.size):
            yield point
            point = point * self.group_gen % MODULUS

    def _prepare(self, values: Sequence[int]) -> list[int]:
        if len(values) > self.size:
            raise ValueError(f"{len(values)} values do not fit a domain of size {self.size}")
        prepared = [v % MODULUS for v in values]
        prepared.extend([0] * (self.size - len(prepared)))
        return prepared

    def fft(self, values: Sequence[int]) -> list[int]:
        """Evaluate the polynomial with coefficients ``values`` over the domain."""
        return _transform(self._prepare(values), self.group_gen)

    def ifft(self, values: Sequence[int]) -> list[int]:
        """Interpolate coefficients from evaluations ``values`` over the domain."""
        result = _transform(self._prepare(values), self.group_gen_inv)
        return [v * self.size_inv % MODULUS for v in result]