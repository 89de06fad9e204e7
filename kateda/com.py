"""Erasure-coding extension of a block's data matrix over the scalar field."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator

from .config import EXTENSION_FACTOR, LOG_TARGET, SCALAR_SIZE, BlockDimensions
from .field import EvaluationDomain, scalar_from_bytes
from .padding import KateError

_log = logging.getLogger(LOG_TARGET)


class InvalidChunkLengthError(KateError):
    """A chunk does not have the size of one scalar."""


class CellLengthExceededError(KateError):
    """A chunk does not encode a canonical field element."""


def to_bls_scalar(chunk: bytes) -> int:
    """Convert a 32-byte chunk into a field element."""
    chunk = bytes(chunk)
    if len(chunk) != SCALAR_SIZE:
        raise InvalidChunkLengthError(f"expected {SCALAR_SIZE} bytes, got {len(chunk)}")
    try:
        return scalar_from_bytes(chunk)
    except ValueError as exc:
        raise CellLengthExceededError(str(exc)) from exc


def _chunks(data: bytes, size: int) -> Iterator[bytes]:
    for start in range(0, len(data), size):
        yield data[start : start + size]


def extend_data_matrix(block_dims: BlockDimensions, block: bytes) -> list[int]:
    """Extend the data matrix column by column, interleaving data with codes.

    The result is column-major: each column holds ``rows * EXTENSION_FACTOR``
    scalars, with the original data at the even positions.
    """
    start = time.perf_counter()
    block = bytes(block)
    rows_num = block_dims.rows
    extended_rows_num = rows_num * EXTENSION_FACTOR
    chunk_size = block_dims.chunk_size

    if chunk_size <= 0 or len(block) % chunk_size:
        raise ValueError("block is not a whole number of chunks")
    if rows_num <= 0:
        raise ValueError("number of rows must be positive")

    scalars = [to_bls_scalar(chunk) for chunk in _chunks(block, chunk_size)]

    try:
        extended_domain = EvaluationDomain(extended_rows_num)
        column_domain = EvaluationDomain(rows_num)
    except ValueError as exc:
        raise KateError(str(exc)) from exc
    if column_domain.size != rows_num:
        raise ValueError(f"number of rows {rows_num} is not a power of two")

    full_columns = len(scalars) // rows_num
    result: list[int] = []
    for column_start in range(0, full_columns * rows_num, rows_num):
        column = scalars[column_start : column_start + rows_num]
        coefficients = column_domain.ifft(column)
        result.extend(extended_domain.fft(coefficients))

    _log.info("Time to extend block %.6fs", time.perf_counter() - start)
    return result