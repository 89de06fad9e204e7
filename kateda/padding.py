"""Grouping, padding and flattening of application extrinsics into a block."""

from __future__ import annotations

import itertools
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from .chacha import ChaChaRng
from .config import (
    DATA_CHUNK_SIZE,
    MINIMUM_BLOCK_SIZE,
    BlockDimensions,
    padded_len_of_pad_iec_9797_1,
)
from .scale import encode_byte_vectors

PADDING_TAIL_VALUE = 0x80


class KateError(Exception):
    """Base class for errors raised while building a block."""


class BlockTooBigError(KateError):
    """The data does not fit in the largest allowed block."""


@dataclass(frozen=True)
class AppExtrinsic:
    """Opaque extrinsic data tagged with the application it belongs to."""

    app_id: int
    data: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", bytes(self.data))


def group_by_app_id(extrinsics: Iterable[AppExtrinsic]) -> list[tuple[int, list[bytes]]]:
    """Group consecutive extrinsics sharing an app id into ``(app_id, [data, ...])``."""
    return [
        (app_id, [xt.data for xt in group])
        for app_id, group in itertools.groupby(extrinsics, key=lambda xt: xt.app_id)
    ]


def pad_iec_9797_1(data: bytes) -> list[bytes]:
    """Append the 0x80 tail and zeros, then split into data chunks of 31 bytes."""
    data = bytes(data)
    padded_size = padded_len_of_pad_iec_9797_1(len(data))
    padded = (data + bytes([PADDING_TAIL_VALUE])).ljust(padded_size, b"\x00")
    return [
        padded[start : start + DATA_CHUNK_SIZE]
        for start in range(0, len(padded), DATA_CHUNK_SIZE)
    ]


def _pad_with_zeroes(chunk: bytes, length: int) -> bytes:
    return bytes(chunk)[:length].ljust(length, b"\x00")


def pad_to_chunk(chunk: bytes, chunk_size: int) -> bytes:
    """Widen a data chunk to ``chunk_size`` bytes with trailing zeros."""
    if chunk_size < DATA_CHUNK_SIZE:
        raise ValueError(
            f"chunk size {chunk_size} is smaller than the data chunk size {DATA_CHUNK_SIZE}"
        )
    return _pad_with_zeroes(chunk, chunk_size)


def _next_power_of_two(value: int) -> int:
    if value <= 1:
        return 1
    return 1 << (value - 1).bit_length()


def get_block_dimensions(
    block_size: int, max_rows_num: int, max_cols_num: int, chunk_size: int
) -> BlockDimensions:
    """Smallest power-of-two block shape holding ``block_size`` bytes, rows minimised."""
    max_dims = BlockDimensions(rows=max_rows_num, cols=max_cols_num, chunk_size=chunk_size)
    if block_size > max_dims.size():
        raise BlockTooBigError(
            f"block of {block_size} bytes exceeds the maximum of {max_dims.size()}"
        )
    if block_size == max_dims.size():
        return max_dims

    nearest_power_2_size = max(_next_power_of_two(block_size), MINIMUM_BLOCK_SIZE)
    total_cells = -(-nearest_power_2_size // chunk_size)

    if total_cells > max_cols_num:
        cols, rows = max_cols_num, total_cells // max_cols_num
    else:
        cols, rows = total_cells, 1
    return BlockDimensions(rows=rows, cols=cols, chunk_size=chunk_size)


def flatten_and_pad_block(
    max_rows_num: int,
    max_cols_num: int,
    chunk_size: int,
    extrinsics: Sequence[AppExtrinsic],
    rng_seed: bytes,
) -> tuple[list[tuple[int, int]], bytes, BlockDimensions]:
    """Lay extrinsics out as padded chunks and fill the block with seeded random chunks.

    Returns the layout (app id and number of chunks per app), the block bytes
    and the block dimensions.
    """
    ordered = sorted(extrinsics, key=lambda xt: xt.app_id)
    layout: list[tuple[int, int]] = []
    pieces: list[bytes] = []
    for app_id, datas in group_by_app_id(ordered):
        chunks = pad_iec_9797_1(encode_byte_vectors(datas))
        layout.append((app_id, len(chunks)))
        pieces.extend(pad_to_chunk(chunk, chunk_size) for chunk in chunks)
    padded_block = bytearray(b"".join(pieces))

    block_dims = get_block_dimensions(len(padded_block), max_rows_num, max_cols_num, chunk_size)
    if len(padded_block) > block_dims.size():
        raise BlockTooBigError(
            f"block of {len(padded_block)} bytes exceeds {block_dims.size()} bytes"
        )

    remaining = block_dims.size() - len(padded_block)
    if remaining % block_dims.chunk_size:
        raise ValueError("block padding is not a whole number of chunks")

    rng = ChaChaRng(rng_seed)
    for _ in range(remaining // block_dims.chunk_size):
        padded_block += _pad_with_zeroes(rng.gen_bytes(DATA_CHUNK_SIZE), chunk_size)

    return layout, bytes(padded_block), block_dims