import operator

import pytest

from pmtypes.types import (
    Dtype,
    Kind,
    Pmt,
    PmtCastError,
    bytes_per_element,
    cast,
    elements,
    get_map,
    get_vector,
)

SCALAR_TYPES = [
    Dtype.UINT8,
    Dtype.INT8,
    Dtype.UINT16,
    Dtype.INT16,
    Dtype.UINT32,
    Dtype.INT32,
    Dtype.UINT64,
    Dtype.INT64,
    Dtype.FLOAT32,
    Dtype.FLOAT64,
    Dtype.COMPLEX64,
    Dtype.COMPLEX128,
]

REAL_TYPES = [d for d in SCALAR_TYPES if not d.is_complex]

VECTOR_TYPES = [
    Dtype.UINT32,
    Dtype.INT8,
    Dtype.UINT16,
    Dtype.INT16,
    Dtype.INT32,
    Dtype.UINT64,
    Dtype.INT64,
    Dtype.FLOAT32,
    Dtype.FLOAT64,
    Dtype.COMPLEX64,
    Dtype.COMPLEX128,
]

ITEM_SIZES = {
    Dtype.UINT8: 1,
    Dtype.INT8: 1,
    Dtype.UINT16: 2,
    Dtype.INT16: 2,
    Dtype.UINT32: 4,
    Dtype.INT32: 4,
    Dtype.UINT64: 8,
    Dtype.INT64: 8,
    Dtype.FLOAT32: 4,
    Dtype.FLOAT64: 8,
    Dtype.COMPLEX64: 8,
    Dtype.COMPLEX128: 16,
}


def sample(dtype):
    if dtype.is_complex:
        return complex(4.1, -4.1)
    if dtype.is_float:
        return 4.1
    return 4


def item(dtype, i):
    if dtype.is_complex:
        return complex(i, -i)
    if dtype.is_float:
        return float(i)
    return i


def test_null_default():
    x = Pmt()
    assert x.kind is Kind.NULL
    assert operator.eq(x, None)
    assert x == Pmt(None)


@pytest.mark.parametrize("dtype", SCALAR_TYPES)
def test_scalar_construction(dtype):
    value = sample(dtype)
    d = Pmt(value, dtype)
    assert d == value
    assert value == d
    c = Pmt(d)
    assert c == d
    assert c == value
    assert c.dtype is dtype
    assert c.kind is Kind.SCALAR


@pytest.mark.parametrize("dtype", SCALAR_TYPES)
def test_scalar_value_change(dtype):
    value = sample(dtype)
    x = Pmt(value * 2, dtype)
    assert x == value * 2
    assert not (x == value)


def test_float32_is_narrowed():
    narrow = Pmt(4.1, Dtype.FLOAT32).value
    assert narrow == pytest.approx(4.1, rel=1e-6)
    assert narrow != 4.1
    assert Pmt(4.1, Dtype.FLOAT64).value == 4.1


@pytest.mark.parametrize("dtype", SCALAR_TYPES)
def test_explicit_cast(dtype):
    x = Pmt(sample(dtype), dtype)
    y = cast(x, dtype)
    assert x == y
    if dtype.is_complex:
        assert cast(x, Dtype.COMPLEX128) == x.value
        z2 = cast(x, Dtype.COMPLEX64)
        assert z2.real == pytest.approx(4.1, rel=1e-6)
        assert z2.imag == pytest.approx(-4.1, rel=1e-6)
    else:
        assert cast(x, Dtype.COMPLEX128) == complex(x.value)
        assert cast(x, Dtype.FLOAT64) == float(x.value)
        assert cast(x, float) == float(x.value)


@pytest.mark.parametrize("dtype", REAL_TYPES)
def test_wrong_cast(dtype):
    p0 = 54.0 if dtype.is_float else 54
    p1 = Pmt(p0, dtype)
    assert p0 == p1
    if dtype.is_float:
        assert not (p1 == 54)
    else:
        assert not (p1 == 54.0)


@pytest.mark.parametrize("dtype", SCALAR_TYPES)
def test_scalar_element_size(dtype):
    x = Pmt(sample(dtype), dtype)
    assert elements(x) == 1
    assert x.size() == 1
    assert bytes_per_element(x) == ITEM_SIZES[dtype]


def test_cast_wraps_integers():
    assert cast(Pmt(300, Dtype.INT64), Dtype.UINT8) == 44
    assert cast(Pmt(-1, Dtype.INT32), Dtype.UINT16) == 65535
    assert cast(Pmt(3.9), int) == 3
    assert cast(Pmt(-3.9), Dtype.INT32) == -3


def test_cast_errors():
    with pytest.raises(PmtCastError):
        cast(Pmt("abc"), Dtype.FLOAT32)
    with pytest.raises(PmtCastError):
        cast(Pmt(1 + 2j), Dtype.FLOAT64)
    with pytest.raises(PmtCastError):
        cast(Pmt(), int)
    with pytest.raises(PmtCastError):
        cast(Pmt([1, 2], Dtype.INT32), str)


def test_cast_string_and_string_vector():
    assert cast(Pmt("hello world"), str) == "hello world"
    assert cast(Pmt(["hello world", "abc"], str), list) == ["hello world", "abc"]


def test_scalar_range_checks():
    with pytest.raises(ValueError):
        Pmt(200, Dtype.INT8)
    with pytest.raises(ValueError):
        Pmt(-1, Dtype.UINT32)
    with pytest.raises(TypeError):
        Pmt(1.5, Dtype.INT32)


def test_dtype_from_value():
    assert Dtype.from_value(True) is Dtype.BOOL
    assert Dtype.from_value(3) is Dtype.INT64
    assert Dtype.from_value(2.5) is Dtype.FLOAT64
    assert Dtype.from_value(1j) is Dtype.COMPLEX128
    with pytest.raises(TypeError):
        Dtype.from_value(object())


@pytest.mark.parametrize("dtype", VECTOR_TYPES)
def test_vector_constructors(dtype):
    empty = Pmt([], dtype)
    assert empty.kind is Kind.UNIFORM_VECTOR
    assert len(get_vector(empty, dtype)) == 0

    sized = Pmt.filled(dtype, 10)
    assert sized.size() == 10
    assert all(v == 0 for v in get_vector(sized, dtype))

    vec = [item(dtype, i) for i in range(10)]
    range_vec = Pmt.vector(dtype, iter(vec))
    assert range_vec.size() == 10
    assert get_vector(range_vec, dtype) == vec

    pmt_vec = Pmt(vec, dtype)
    assert pmt_vec == vec
    a = Pmt(pmt_vec)
    assert a == vec
    assert a == pmt_vec


@pytest.mark.parametrize("dtype", VECTOR_TYPES)
def test_vector_in_place_updates(dtype):
    vec = [item(dtype, i) for i in range(10)]
    squared = [v * v for v in vec]
    doubled = [v + v for v in vec]

    pmt_vec = Pmt(vec, dtype)
    span = get_vector(pmt_vec, dtype)
    span[:] = [x * x for x in span]
    assert pmt_vec == squared

    pmt_vec = Pmt(vec, dtype)
    span = get_vector(pmt_vec, dtype)
    span[:] = [x + x for x in span]
    assert pmt_vec == doubled


@pytest.mark.parametrize("dtype", VECTOR_TYPES)
def test_vector_writes(dtype):
    vec = [item(dtype, i) for i in range(10)]
    expected = list(vec)
    expected[2] = item(dtype, 2) + item(dtype, 2)
    expected[9] = item(dtype, 9) + item(dtype, 9)

    pmt_vec = Pmt(vec, dtype)
    span = get_vector(pmt_vec, dtype)
    span[2] += item(dtype, 2)
    span[9] += item(dtype, 9)
    assert pmt_vec == expected


@pytest.mark.parametrize("dtype", VECTOR_TYPES)
def test_vector_get_as(dtype):
    vec = [item(dtype, i) for i in range(10)]
    x = Pmt(vec, dtype)
    y = list(get_vector(x, dtype))
    assert x == y
    assert cast(x, list) == vec


def test_vector_copy_is_independent():
    a = Pmt([1, 2], Dtype.INT32)
    b = Pmt(a)
    get_vector(b)[0] = 9
    assert a == [1, 2]
    assert b == [9, 2]


def test_get_vector_wrong_type():
    with pytest.raises(PmtCastError):
        get_vector(Pmt([1, 2], Dtype.INT32), Dtype.FLOAT32)
    with pytest.raises(PmtCastError):
        get_vector(Pmt(3))
    with pytest.raises(PmtCastError):
        get_vector(Pmt(["a"], str), Pmt)


def test_vector_elements_and_bytes():
    x = Pmt([1, 2, 3], Dtype.INT16)
    assert elements(x) == 3
    assert len(x) == 3
    assert bytes_per_element(x) == 2


def test_null_and_string_sizes():
    assert elements(Pmt()) == 0
    assert bytes_per_element(Pmt()) == 0
    assert elements(Pmt("hello")) == 5
    assert bytes_per_element(Pmt("hello")) == 1
    with pytest.raises(TypeError):
        bytes_per_element(Pmt([Pmt(1)]))


def test_pmt_vector_constructor():
    empty = Pmt([])
    assert empty.kind is Kind.PMT_VECTOR
    assert len(get_vector(empty, Pmt)) == 0

    il_vec = Pmt([1.0, 2, "abc"])
    items = get_vector(il_vec, Pmt)
    assert items[0] == Pmt(1.0, Dtype.FLOAT64)
    assert items[1].dtype is Dtype.INT64
    assert items[2] == "abc"

    vec = [Pmt(1, Dtype.INT32), Pmt([1, 2, 3], Dtype.UINT32)]
    p = Pmt(vec)
    vec2 = get_vector(p, Pmt)
    assert vec[0] == vec2[0]
    assert vec[1] == vec2[1]


def test_string_vector_requires_strings():
    assert Pmt(["hello world", "abc"], str).kind is Kind.STRING_VECTOR
    with pytest.raises(TypeError):
        Pmt(["abc", 1], str)


def test_map_assignment_wraps_values():
    empty = Pmt({})
    v = get_map(empty)
    v["abc"] = Pmt(4, Dtype.UINT64)
    v["xyz"] = Pmt([1, 2, 3, 4, 5], Dtype.FLOAT64)
    assert v["abc"] == Pmt(4, Dtype.UINT64)
    assert v.get("abc") == 4
    assert empty.size() == 2
    v["raw"] = "text"
    assert v["raw"].kind is Kind.STRING


def test_map_equals_its_contents():
    x = Pmt(
        {
            "key1": Pmt(complex(1.2, -3.4), Dtype.COMPLEX64),
            "key2": Pmt([44, 34563, -255729, 4402], Dtype.INT32),
        }
    )
    y = get_map(x)
    assert x == y
    assert get_vector(y["key2"], Dtype.INT32) == [44, 34563, -255729, 4402]


def test_map_errors():
    with pytest.raises(TypeError):
        Pmt({1: 2})
    with pytest.raises(PmtCastError):
        get_map(Pmt(1))


def test_copy_with_dtype_rejected():
    with pytest.raises(TypeError):
        Pmt(Pmt(1), Dtype.INT32)