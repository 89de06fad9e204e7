"""Block layout constants and the padding-length arithmetic they imply."""

from __future__ import annotations

from dataclasses import dataclass

LOG_TARGET = "kate"

SCALAR_SIZE_WIDE = 64
SCALAR_SIZE = 32
# Data bytes carried per chunk; the chunk becomes SCALAR_SIZE bytes after zero padding.
DATA_CHUNK_SIZE = 31
EXTENSION_FACTOR = 2
PROVER_KEY_SIZE = 48
PROOF_SIZE = 48
MAX_PROOFS_REQUEST = 30
# These three must be powers of two because of the FFT requirements.
MINIMUM_BLOCK_SIZE = 128
MAX_BLOCK_ROWS = 256
MAX_BLOCK_COLUMNS = 256

_USIZE_MAX = 2**64 - 1
_U32_MAX = 2**32 - 1


@dataclass(frozen=True)
class BlockDimensions:
    """Shape of a data block: rows x cols cells of ``chunk_size`` bytes."""

    rows: int
    cols: int
    chunk_size: int

    def size(self) -> int:
        """Total block size in bytes, saturating at the platform word maximum."""
        return min(self.rows * self.cols * self.chunk_size, _USIZE_MAX)


def _check_length(length: int) -> None:
    if not 0 <= length < _U32_MAX:
        raise ValueError(f"length out of range: {length}")


def padded_len_of_pad_iec_9797_1(length: int) -> int:
    """Length of ``length`` bytes after ISO/IEC 9797-1 padding to whole data chunks."""
    _check_length(length)
    with_tail = length + 1
    return with_tail + (DATA_CHUNK_SIZE - with_tail % DATA_CHUNK_SIZE) % DATA_CHUNK_SIZE


def padded_len(length: int, chunk_size: int) -> int:
    """Length of ``length`` bytes once padded and every data chunk widened to ``chunk_size``."""
    if chunk_size < DATA_CHUNK_SIZE:
        raise ValueError(
            f"chunk size {chunk_size} is smaller than the data chunk size {DATA_CHUNK_SIZE}"
        )
    iec_len = padded_len_of_pad_iec_9797_1(length)
    diff_per_chunk = chunk_size - DATA_CHUNK_SIZE
    chunks_count = iec_len // DATA_CHUNK_SIZE
    return iec_len + chunks_count * diff_per_chunk