import pytest

from kateda.field import (
    MODULUS,
    EvaluationDomain,
    invert,
    scalar_from_bytes,
    scalar_to_bytes,
)


def test_all_ones_bytes_are_not_canonical():
    data = bytearray([0xFF] * 32)
    with pytest.raises(ValueError):
        scalar_from_bytes(bytes(data))
    data[31] = 0x3F
    assert scalar_to_bytes(scalar_from_bytes(bytes(data))) == bytes(data)


def test_wrong_length_rejected():
    with pytest.raises(ValueError):
        scalar_from_bytes(b"\x00" * 31)


def test_modulus_bytes_rejected():
    with pytest.raises(ValueError):
        scalar_from_bytes(MODULUS.to_bytes(32, "little"))


def test_bytes_are_little_endian():
    assert scalar_to_bytes(1) == b"\x01" + b"\x00" * 31
    assert scalar_from_bytes(b"\x02" + b"\x00" * 31) == 2


@pytest.mark.parametrize("value", [1, 2, 5, 12345, MODULUS - 1])
def test_invert(value):
    assert value * invert(value) % MODULUS == 1


def test_invert_zero_raises():
    with pytest.raises(ZeroDivisionError):
        invert(0)


@pytest.mark.parametrize("requested, expected", [(1, 1), (2, 2), (3, 4), (16, 16), (17, 32)])
def test_domain_size_rounds_to_power_of_two(requested, expected):
    assert EvaluationDomain(requested).size == expected


def test_domain_too_large():
    with pytest.raises(ValueError):
        EvaluationDomain(2**32)


@pytest.mark.parametrize("size", [1, 2, 4, 8, 32])
def test_elements_form_group(size):
    domain = EvaluationDomain(size)
    points = list(domain.elements())
    assert len(points) == size
    assert points[0] == 1
    assert len(set(points)) == size
    assert pow(domain.group_gen, size, MODULUS) == 1
    if size > 1:
        assert pow(domain.group_gen, size // 2, MODULUS) == MODULUS - 1


@pytest.mark.parametrize("size", [1, 2, 4, 16])
def test_fft_ifft_round_trip(size):
    domain = EvaluationDomain(size)
    values = [(3 * i * i + 7) % MODULUS for i in range(size)]
    assert domain.ifft(domain.fft(values)) == values
    assert domain.fft(domain.ifft(values)) == values


def test_fft_of_constant_is_constant():
    domain = EvaluationDomain(8)
    assert domain.fft([42]) == [42] * 8


def test_fft_of_x_gives_domain_points():
    domain = EvaluationDomain(8)
    assert domain.fft([0, 1]) == list(domain.elements())


def test_fft_pads_short_input():
    domain = EvaluationDomain(4)
    assert len(domain.fft([1, 2])) == 4


def test_fft_rejects_too_many_values():
    with pytest.raises(ValueError):
        EvaluationDomain(4).fft([1, 2, 3, 4, 5])


def test_erasure_extension_keeps_original_on_even_points():
    half = EvaluationDomain(4)
    full = EvaluationDomain(8)
    src = [2, 4, 8, 16]
    coded = full.fft(half.ifft(src))
    assert coded[0::2] == src