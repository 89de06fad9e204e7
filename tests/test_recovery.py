import pytest

from kateda.chacha import ChaChaRng
from kateda.com import extend_data_matrix
from kateda.field import EvaluationDomain, scalar_from_bytes, scalar_to_bytes
from kateda.padding import AppExtrinsic, flatten_and_pad_block
from kateda.recovery import (
    Cell,
    ExtendedMatrixDimensions,
    ReconstructionError,
    app_specific_column_cells,
    data_ranges,
    reconstruct_app_extrinsics,
    reconstruct_column,
    reconstruct_poly,
    unflatten_padded_data,
)

SEED_42 = bytes([42] * 32)


def _random_subset(data, seed):
    rng = ChaChaRng(seed)
    subset = []
    available = 0
    for item in data:
        if rng.gen_u8() % 2 == 0:
            subset.append(item)
            available += 1
        else:
            subset.append(None)
    half = len(data) // 2
    for i, value in enumerate(subset):
        if available >= half:
            break
        if value is None:
            subset[i] = data[i]
            available += 1
    return subset, available


def _drop_few(subset, available):
    idx = 0
    while available >= len(subset) // 2:
        if subset[idx] is not None:
            subset[idx] = None
            available -= 1
        idx += 1


def _random_indexes(length, seed):
    idx = list(range(length))
    rng = ChaChaRng(seed)
    chosen = []
    for _ in range(length // 2):
        chosen.append(idx.pop(rng.gen_range(0, len(idx))))
    return chosen


def _sample_cells(matrix, dims, columns=None):
    column_len = dims.rows * 2
    cells = []
    for col_idx, start in enumerate(range(0, len(matrix), column_len)):
        column = matrix[start : start + column_len]
        for i in _random_indexes(len(column), SEED_42):
            if columns is None or col_idx in columns:
                cells.append(Cell(row=i, col=col_idx, data=scalar_to_bytes(column[i])))
    return cells


def _coded_column():
    coefficients = EvaluationDomain(4).ifft([2, 4, 8, 16])
    return EvaluationDomain(8).fft(coefficients)


def _coded_source(domain_size):
    src = [1 << (i + 1) for i in range(domain_size)] + [0] * domain_size
    temp = EvaluationDomain(domain_size).ifft(src[:domain_size])
    return src, EvaluationDomain(domain_size * 2).fft(temp)


def test_app_specific_column_cells():
    layout = [(0, 5), (1, 3)]
    dims = ExtendedMatrixDimensions(rows=4, cols=4)

    result_0 = app_specific_column_cells(layout, dims, 0)
    assert [(c.col, c.row) for c in result_0] == [(c, r) for c in range(3) for r in range(4)]

    result_1 = app_specific_column_cells(layout, dims, 1)
    assert [(c.col, c.row) for c in result_1] == [(c, r) for c in range(2, 4) for r in range(4)]

    assert app_specific_column_cells(layout, dims, 2) is None


def test_app_specific_column_cells_gt_chunk_size():
    layout = [(0, 1), (1, 89)]
    dims = ExtendedMatrixDimensions(rows=2, cols=128)
    result = app_specific_column_cells(layout, dims, 1)
    assert [(c.col, c.row) for c in result] == [
        (c, r) for c in range(1, 90) for r in range(2)
    ]
    assert all(c.data == b"" for c in result)


def test_data_ranges():
    assert data_ranges([(0, 2), (5, 3)]) == [(0, range(0, 64)), (5, range(64, 160))]
    assert data_ranges([]) == []


def test_data_reconstruction_success():
    domain_size = 16
    src, coded = _coded_source(domain_size)
    subset, _ = _random_subset(coded, SEED_42)
    recovered = reconstruct_poly(EvaluationDomain(domain_size * 2), subset)
    assert recovered[:domain_size] == src[:domain_size]


def test_data_reconstruction_failure_0():
    domain_size = 16
    _, coded = _coded_source(domain_size)
    subset, available = _random_subset(coded, SEED_42)
    _drop_few(subset, available)
    assert sum(v is not None for v in subset) < len(subset) // 2
    recovered = reconstruct_poly(EvaluationDomain(domain_size * 2), subset)
    mismatches = sum(coded[i] != recovered[i] for i in range(domain_size))
    assert mismatches > 0


def test_data_reconstruction_failure_2():
    group = 31
    data = bytes([0xFF] * (32 << 4))
    domain_size = -(-len(data) // group)
    half_domain = EvaluationDomain(domain_size)
    eval_domain = EvaluationDomain(domain_size * 2)

    wide = [
        data[start : start + group].ljust(group, b"\x00") + b"\x00"
        for start in range(0, len(data), group)
    ]
    src = [scalar_from_bytes(chunk) for chunk in wide] + [0] * domain_size

    coded = eval_domain.fft(half_domain.ifft(src[:domain_size]))
    subset, _ = _random_subset(coded, SEED_42)
    recovered = reconstruct_poly(eval_domain, subset)

    assert recovered[:domain_size] == src[:domain_size]
    for i in range(domain_size):
        original = data[i * group : (i + 1) * group]
        assert scalar_to_bytes(recovered[i])[: len(original)] == original, f"at i = {i}"


def test_reconstruct_column_success_0():
    coded = _coded_column()
    cells = [Cell(row=r, data=scalar_to_bytes(coded[r])) for r in (0, 4, 6, 2)]
    reconstructed = reconstruct_column(8, cells)
    assert reconstructed == [coded[i * 2] for i in range(4)]
    assert reconstructed == [2, 4, 8, 16]


def test_reconstruct_column_failure_duplicate_rows():
    coded = _coded_column()
    cells = [Cell(row=r, data=scalar_to_bytes(coded[r])) for r in (0, 0, 6, 2)]
    reconstructed = reconstruct_column(8, cells)
    assert len(reconstructed) == 4
    assert sum(coded[i * 2] != reconstructed[i] for i in range(4)) > 0


def test_reconstruct_column_failure_too_few_cells():
    coded = _coded_column()
    cells = [Cell(row=r, data=scalar_to_bytes(coded[r])) for r in (4, 6, 2)]
    with pytest.raises(ValueError):
        reconstruct_column(8, cells)


def test_reconstruct_column_failure_wrong_row():
    coded = _coded_column()
    cells = [
        Cell(row=0, data=scalar_to_bytes(coded[0])),
        Cell(row=5, data=scalar_to_bytes(coded[4])),
        Cell(row=6, data=scalar_to_bytes(coded[6])),
        Cell(row=2, data=scalar_to_bytes(coded[2])),
    ]
    reconstructed = reconstruct_column(8, cells)
    assert len(reconstructed) == 4
    assert sum(coded[i * 2] != reconstructed[i] for i in range(4)) > 0


def test_reconstruct_column_rejects_non_canonical_scalar():
    cells = [Cell(row=r, data=bytes([0xFF] * 32)) for r in range(4)]
    with pytest.raises(ValueError):
        reconstruct_column(8, cells)


def test_reconstruct_column_rejects_mixed_columns():
    coded = _coded_column()
    cells = [Cell(row=r, col=r % 2, data=scalar_to_bytes(coded[r])) for r in range(4)]
    with pytest.raises(ValueError):
        reconstruct_column(8, cells)


def test_reconstruct_column_rejects_non_power_of_two():
    coded = _coded_column()
    cells = [Cell(row=r, data=scalar_to_bytes(coded[r])) for r in range(4)]
    with pytest.raises(ValueError):
        reconstruct_column(6, cells)


def test_cell_new_empty():
    cell = Cell.new_empty(3, 7)
    assert (cell.col, cell.row, cell.data) == (3, 7, b"")


def test_flatten_then_unflatten_round_trip():
    extrinsics = [
        AppExtrinsic(0, bytes(range(1, 30))),
        AppExtrinsic(1, bytes(range(1, 31))),
        AppExtrinsic(2, bytes(range(1, 32))),
        AppExtrinsic(3, bytes(range(1, 61))),
    ]
    layout, data, dims = flatten_and_pad_block(128, 256, 32, extrinsics, bytes(32))
    assert layout == [(0, 2), (1, 2), (2, 2), (3, 3)]

    res = unflatten_padded_data(data_ranges(layout), data, 32)
    assert len(res) == len(extrinsics)
    for (app_id, datas), xt in zip(res, extrinsics):
        assert app_id == xt.app_id
        assert datas[0] == xt.data


def test_unflatten_rejects_partial_chunk():
    with pytest.raises(ValueError):
        unflatten_padded_data([(0, range(0, 32))], bytes(33), 32)


def test_reconstruct_app_extrinsics_with_app_id():
    app_1 = (
        b'"This is mocked test data. It will be formatted as a matrix of BLS scalar '
        b"cells and then individual columns \nget erasure coded to ensure redundancy."
    )
    app_2 = (
        b'"Let\'s see how this gets encoded and then reconstructed by sampling only some data.'
    )
    xts = [AppExtrinsic(0, b"\x00"), AppExtrinsic(1, app_1), AppExtrinsic(2, app_2)]

    layout, data, dims = flatten_and_pad_block(32, 4, 32, xts, bytes(32))
    coded = extend_data_matrix(dims, data)
    extended = ExtendedMatrixDimensions(rows=dims.rows * 2, cols=dims.cols)

    res_1 = reconstruct_app_extrinsics(layout, extended, _sample_cells(coded, dims, {0, 1}), 1)
    assert res_1[0][1][0] == app_1

    res_2 = reconstruct_app_extrinsics(layout, extended, _sample_cells(coded, dims, {1, 2}), 2)
    assert res_2[0][1][0] == app_2


def test_extend_mock_data():
    orig = (
        b"This is mocked test data. It will be formatted as a matrix of BLS scalar cells "
        b"and then individual columns \nget erasure coded to ensure redundancy.\n"
        b"Let's see how this gets encoded and then reconstructed by sampling only some data."
    )
    layout, data, dims = flatten_and_pad_block(128, 2, 32, [AppExtrinsic(0, orig)], bytes(32))
    coded = extend_data_matrix(dims, data)
    extended = ExtendedMatrixDimensions(rows=dims.rows * 2, cols=dims.cols)
    res = reconstruct_app_extrinsics(layout, extended, _sample_cells(coded, dims), None)
    assert res[0][1][0] == orig


def test_multiple_extrinsics_for_same_app_id():
    xt1, xt2 = b"\x05\x05", b"\x06\x06"
    xts = [AppExtrinsic(1, xt1), AppExtrinsic(1, xt2)]
    layout, data, dims = flatten_and_pad_block(128, 2, 32, xts, bytes(32))
    coded = extend_data_matrix(dims, data)
    extended = ExtendedMatrixDimensions(rows=dims.rows * 2, cols=dims.cols)
    res = reconstruct_app_extrinsics(layout, extended, _sample_cells(coded, dims), None)
    assert res[0] == (1, [xt1, xt2])


def test_reconstruct_rejects_duplicate_cells():
    dims = ExtendedMatrixDimensions(rows=4, cols=2)
    cells = [Cell(row=1, col=0, data=bytes(32)), Cell(row=1, col=0, data=bytes(32))]
    with pytest.raises(ReconstructionError, match="Duplicate cell found"):
        reconstruct_app_extrinsics([(0, 1)], dims, cells)


def test_reconstruct_rejects_out_of_bounds_cell():
    dims = ExtendedMatrixDimensions(rows=4, cols=2)
    cells = [Cell(row=5, col=0, data=bytes(32))]
    with pytest.raises(ReconstructionError, match=r"Invalid cell \(col 0, row 5\)"):
        reconstruct_app_extrinsics([(0, 1)], dims, cells)


def test_reconstruct_rejects_sparse_column():
    dims = ExtendedMatrixDimensions(rows=4, cols=2)
    cells = [Cell(row=0, col=1, data=bytes(32))]
    with pytest.raises(ReconstructionError, match="Column 1 contains less than half rows"):
        reconstruct_app_extrinsics([(0, 1)], dims, cells)