"""Reconstruction of application data from sampled cells of an extended matrix."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from .config import DATA_CHUNK_SIZE, SCALAR_SIZE
from .field import MODULUS, EvaluationDomain, invert, scalar_from_bytes, scalar_to_bytes
from .padding import PADDING_TAIL_VALUE
from .scale import decode_byte_vectors

CHUNK_SIZE = SCALAR_SIZE
_SHIFT_FACTOR = 5
_SHIFT_FACTOR_INV = invert(_SHIFT_FACTOR)


@dataclass(frozen=True)
class ExtendedMatrixDimensions:
    """Shape of the erasure-coded matrix: extended rows by columns."""

    rows: int
    cols: int


@dataclass
class Cell:
    """A single matrix cell with its position and 32-byte scalar data."""

    row: int = 0
    col: int = 0
    data: bytes = b""

    def __post_init__(self) -> None:
        self.data = bytes(self.data)

    @classmethod
    def new_empty(cls, col: int, row: int) -> Cell:
        """A cell at the given position carrying no data."""
        return cls(row=row, col=col, data=b"")


class ReconstructionError(Exception):
    """Application data cannot be reconstructed from the given cells."""


def _map_cells(
    dimensions: ExtendedMatrixDimensions, cells: Iterable[Cell]
) -> dict[int, dict[int, Cell]]:
    result: dict[int, dict[int, Cell]] = {}
    for cell in cells:
        if cell.row > dimensions.rows or cell.col > dimensions.cols:
            raise ReconstructionError(f"Invalid cell (col {cell.col}, row {cell.row})")
        column = result.setdefault(cell.col, {})
        if cell.row in column:
            raise ReconstructionError("Duplicate cell found")
        column[cell.row] = cell
    return result


def data_ranges(layout: Iterable[tuple[int, int]]) -> list[tuple[int, range]]:
    """Byte range of each application's data in the flattened matrix."""
    ranges: list[tuple[int, range]] = []
    start = 0
    for app_id, size in layout:
        end = start + size * CHUNK_SIZE
        ranges.append((app_id, range(start, end)))
        start = end
    return ranges


def _trim_to_chunk_data(chunk: bytes) -> bytes:
    if len(chunk) <= DATA_CHUNK_SIZE:
        raise ValueError("Cannot trim to bigger size!")
    return chunk[:DATA_CHUNK_SIZE]


def unflatten_padded_data(
    layout: Iterable[tuple[int, range]], data: bytes, chunk_size: int
) -> list[tuple[int, list[bytes]]]:
    """Strip chunk, IEC 9797-1 and block padding, then decode each app's extrinsics."""
    data = bytes(data)
    if chunk_size <= 0 or len(data) % chunk_size:
        raise ValueError("data is not a whole number of chunks")

    result: list[tuple[int, list[bytes]]] = []
    for app_id, span in layout:
        segment = data[span.start : span.stop]
        whole = len(segment) - len(segment) % chunk_size
        orig = b"".join(
            _trim_to_chunk_data(segment[start : start + chunk_size])
            for start in range(0, whole, chunk_size)
        )
        trimmed = orig.rstrip(b"\x00")
        if trimmed and trimmed[-1] == PADDING_TAIL_VALUE:
            payload = trimmed[:-1]
        else:
            payload = orig
        result.append((app_id, decode_byte_vectors(payload)))
    return result


def app_specific_column_cells(
    layout: Sequence[tuple[int, int]], dimensions: ExtendedMatrixDimensions, app_id: int
) -> list[Cell] | None:
    """Empty cells of every column holding data of ``app_id``, or None if it has none."""
    span = next((r for aid, r in data_ranges(layout) if aid == app_id), None)
    if span is None:
        return None

    row_size = dimensions.rows * CHUNK_SIZE
    column_start = span.start * 2 // row_size
    column_end = span.stop * 2 // row_size
    if span.stop * 2 % row_size > 0:
        column_end += 1

    return [
        Cell.new_empty(col, row)
        for col in range(column_start, column_end)
        for row in range(dimensions.rows)
    ]


def _resize(values: Sequence[int], size: int) -> list[int]:
    resized = list(values[:size])
    resized.extend([0] * (size - len(resized)))
    return resized


def _zero_poly(
    eval_domain: EvaluationDomain, missing_indices: Sequence[int], length: int
) -> tuple[list[int], list[int]]:
    stride = eval_domain.size // length
    coefficients = [1]
    for index in missing_indices:
        root = pow(eval_domain.group_gen, index * stride, MODULUS)
        product = [0] * (len(coefficients) + 1)
        for k, c in enumerate(coefficients):
            product[k + 1] = (product[k + 1] + c) % MODULUS
            product[k] = (product[k] - root * c) % MODULUS
        coefficients = product
    zero_poly = _resize(coefficients, eval_domain.size)
    return zero_poly, eval_domain.fft(zero_poly)


def _shift_poly(poly: Sequence[int]) -> list[int]:
    shifted = []
    factor = 1
    for coef in poly:
        shifted.append(coef * factor % MODULUS)
        factor = factor * _SHIFT_FACTOR_INV % MODULUS
    return shifted


def _unshift_poly(poly: Sequence[int]) -> list[int]:
    unshifted = []
    factor = 1
    for coef in poly:
        unshifted.append(coef * factor % MODULUS)
        factor = factor * _SHIFT_FACTOR % MODULUS
    return unshifted


def reconstruct_poly(eval_domain: EvaluationDomain, subset: Sequence[int | None]) -> list[int]:
    """Recover the original half-domain data from at least half of the coded evaluations.

    ``subset`` holds one entry per domain point, None where the value is missing.
    """
    subset = list(subset)
    if not subset:
        raise ValueError("subset must not be empty")
    missing = [i for i, value in enumerate(subset) if value is None]
    zero_poly, zero_eval = _zero_poly(eval_domain, missing, len(subset))

    if any(subset[i] is None and zero_eval[i] != 0 for i in range(len(subset))):
        raise ReconstructionError("bad zero poly evaluation !")

    evals_with_zero = [
        0 if value is None else value * zero_eval[i] % MODULUS
        for i, value in enumerate(subset)
    ]
    poly_with_zero = eval_domain.ifft(evals_with_zero)

    eval_shifted_with_zero = eval_domain.fft(_shift_poly(poly_with_zero))
    eval_shifted_zero = eval_domain.fft(_shift_poly(zero_poly))
    quotient = [
        a * invert(b) % MODULUS for a, b in zip(eval_shifted_with_zero, eval_shifted_zero)
    ]

    reconstructed = _unshift_poly(eval_domain.ifft(quotient))
    short_domain = EvaluationDomain(eval_domain.size // 2)
    return short_domain.fft(_resize(reconstructed, short_domain.size))


def reconstruct_column(row_count: int, cells: Sequence[Cell]) -> list[int]:
    """Recover a column's original scalars from at least half of its coded cells."""
    cells = list(cells)
    if row_count <= 0 or row_count & (row_count - 1):
        raise ValueError(f"row count {row_count} is not a power of two")
    if not row_count // 2 <= len(cells) <= row_count:
        raise ValueError(
            f"{len(cells)} cells given; between {row_count // 2} and {row_count} are needed"
        )
    if not cells:
        raise ValueError("no cells given")
    column = cells[0].col
    if any(cell.col != column for cell in cells):
        raise ValueError("cells belong to different columns")

    by_row: dict[int, Cell] = {}
    for cell in cells:
        by_row.setdefault(cell.row, cell)

    subset = [
        scalar_from_bytes(by_row[i].data) if i in by_row else None for i in range(row_count)
    ]
    return reconstruct_poly(EvaluationDomain(row_count), subset)


def reconstruct_app_extrinsics(
    layout: Sequence[tuple[int, int]],
    dimensions: ExtendedMatrixDimensions,
    cells: Iterable[Cell],
    app_id: int | None = None,
) -> list[tuple[int, list[bytes]]]:
    """Rebuild extrinsics from sampled cells; all apps when ``app_id`` is None."""
    cells_map = _map_cells(dimensions, cells)
    half_rows = dimensions.rows // 2
    parts: list[bytes] = []
    for column_number in range(dimensions.cols):
        column_cells = cells_map.get(column_number)
        if column_cells is None:
            parts.append(bytes(half_rows * CHUNK_SIZE))
            continue
        if len(column_cells) < half_rows:
            raise ReconstructionError(f"Column {column_number} contains less than half rows")
        try:
            scalars = reconstruct_column(dimensions.rows, list(column_cells.values()))
        except (ValueError, ZeroDivisionError, ReconstructionError) as exc:
            raise ReconstructionError(f"Cannot reconstruct column: {exc}") from exc
        parts.extend(scalar_to_bytes(s) for s in scalars)

    ranges = [
        (aid, span) for aid, span in data_ranges(layout) if app_id is None or aid == app_id
    ]
    return unflatten_padded_data(ranges, b"".join(parts), CHUNK_SIZE)