# kateda

Building blocks for a data-availability block. Extrinsics are grouped by
application, SCALE-encoded, padded into 32-byte chunks, laid out as a matrix
of BLS12-381 scalars and erasure coded column by column. Any half of a
column's cells is enough to recover the whole column, and from the recovered
columns the application data can be decoded again.

The package is pure Python and has no runtime dependencies.

## Installation

```
pip install .
```

Use `pip install .[test]` to also get pytest.

## Modules

- `kateda.config`: block constants (`DATA_CHUNK_SIZE`, `SCALAR_SIZE`,
  `EXTENSION_FACTOR`, `MINIMUM_BLOCK_SIZE`, `MAX_BLOCK_ROWS`,
  `MAX_BLOCK_COLUMNS`, ...), the `BlockDimensions` dataclass with its
  `size()` method, and `padded_len_of_pad_iec_9797_1` / `padded_len` for
  working out padded sizes ahead of time.
- `kateda.field`: arithmetic in the scalar field (`MODULUS`,
  `scalar_from_bytes`, `scalar_to_bytes`, `invert`) and `EvaluationDomain`,
  a power-of-two subgroup with `elements()`, `fft()` and `ifft()`.
- `kateda.scale`: SCALE compact integers (`encode_compact`,
  `decode_compact`) and lists of byte strings (`encode_byte_vectors`,
  `decode_byte_vectors`).
- `kateda.chacha`: `ChaChaRng`, a ChaCha20 keystream generator seeded with
  32 bytes, with `next_u32`, `next_u64`, `gen_u8`, `gen_bytes` and
  `gen_range`. It fills unused block space deterministically.
- `kateda.padding`: `AppExtrinsic`, `group_by_app_id`, `pad_iec_9797_1`,
  `pad_to_chunk`, `get_block_dimensions` and `flatten_and_pad_block`;
  errors are `KateError` and its subclass `BlockTooBigError`.
- `kateda.com`: `to_bls_scalar` and `extend_data_matrix`, which returns the
  extended matrix column-major with the original data at even row positions;
  errors are `InvalidChunkLengthError` and `CellLengthExceededError`.
- `kateda.recovery`: `ExtendedMatrixDimensions`, `Cell`, `data_ranges`,
  `unflatten_padded_data`, `app_specific_column_cells`, `reconstruct_poly`,
  `reconstruct_column` and `reconstruct_app_extrinsics`; failures raise
  `ReconstructionError` (or `ValueError` for malformed input).
- `kateda.registry`: `DataAvailability`, an in-memory registry of
  application keys (`create_application_key`, `application_key`,
  `submit_data`, `submit_block_length_proposal`, ...), the `ROOT` origin
  marker, `AppKeyInfo`, and the `CheckAppId` transaction check. Errors are
  `RegistryError`, `BadOriginError` and `InvalidTransactionError`.

## Example

Build a block, extend it, then recover the data from half of each column:

```python
from kateda.padding import AppExtrinsic, flatten_and_pad_block
from kateda.com import extend_data_matrix
from kateda.recovery import Cell, ExtendedMatrixDimensions, reconstruct_app_extrinsics
from kateda.field import scalar_to_bytes

xts = [AppExtrinsic(app_id=1, data=b"hello")]
layout, block, dims = flatten_and_pad_block(32, 4, 32, xts, bytes(32))
matrix = extend_data_matrix(dims, block)

rows = dims.rows * 2
cells = [
    Cell(row=r, col=c, data=scalar_to_bytes(matrix[c * rows + r]))
    for c in range(dims.cols)
    for r in range(0, rows, 2)
]
extended = ExtendedMatrixDimensions(rows=rows, cols=dims.cols)
print(reconstruct_app_extrinsics(layout, extended, cells, None))
```

Registering an application and checking a transaction against it:

```python
from kateda.registry import AppKeyInfo, CheckAppId, DataAvailability, SUBMIT_DATA_CALL

registry = DataAvailability([(b"Data Avail", AppKeyInfo(owner=1, id=0))])
app_id = registry.create_application_key(3, b"New App")   # returns 1
CheckAppId(app_id).validate(registry, SUBMIT_DATA_CALL)
```

## What it does not do

The package stops at the data matrix. It does not compute polynomial
commitments or cell proofs, does not verify proofs, and has no node, network,
storage or command-line program. `DataAvailability` keeps its state in memory
only.

## Tests

```
pytest
```