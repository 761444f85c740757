"""Polymorphic message values: scalars, strings, vectors and string-keyed maps."""

from __future__ import annotations

import enum
import math
import struct
from collections.abc import Iterable, Mapping, Sequence
from numbers import Complex, Integral, Real
from typing import Any

PMT_VERSION = 1


class PmtCastError(TypeError):
    """Raised when a value cannot be read or converted as the requested type."""


class Dtype(enum.Enum):
    """Element types that a scalar or uniform vector can hold."""

    BOOL = ("bool", 1, "?")
    UINT8 = ("uint8", 1, "B")
    UINT16 = ("uint16", 2, "H")
    UINT32 = ("uint32", 4, "I")
    UINT64 = ("uint64", 8, "Q")
    INT8 = ("int8", 1, "b")
    INT16 = ("int16", 2, "h")
    INT32 = ("int32", 4, "i")
    INT64 = ("int64", 8, "q")
    FLOAT32 = ("float32", 4, "f")
    FLOAT64 = ("float64", 8, "d")
    COMPLEX64 = ("complex64", 8, "f")
    COMPLEX128 = ("complex128", 16, "d")

    def __init__(self, label: str, itemsize: int, code: str) -> None:
        self.label = label
        self.itemsize = itemsize
        self.code = code

    @property
    def is_bool(self) -> bool:
        return self is Dtype.BOOL

    @property
    def is_integer(self) -> bool:
        return self.label.startswith(("int", "uint"))

    @property
    def is_signed(self) -> bool:
        return self.label.startswith("int")

    @property
    def is_float(self) -> bool:
        return self.label.startswith("float")

    @property
    def is_complex(self) -> bool:
        return self.label.startswith("complex")

    @property
    def component_size(self) -> int:
        """Size in bytes of one real component (half the item size for complex)."""
        return self.itemsize // 2 if self.is_complex else self.itemsize

    @property
    def bounds(self) -> tuple[int, int]:
        """Inclusive range of an integer type."""
        if not self.is_integer:
            raise TypeError(f"{self.label} is not an integer type")
        bits = self.itemsize * 8
        if self.is_signed:
            return -(1 << (bits - 1)), (1 << (bits - 1)) - 1
        return 0, (1 << bits) - 1

    @property
    def zero(self) -> Any:
        if self.is_bool:
            return False
        if self.is_integer:
            return 0
        if self.is_float:
            return 0.0
        return 0j

    @classmethod
    def from_value(cls, value: Any) -> Dtype:
        """Pick the natural type for a plain Python number."""
        if isinstance(value, bool):
            return cls.BOOL
        if isinstance(value, Integral):
            return cls.INT64
        if isinstance(value, Real):
            return cls.FLOAT64
        if isinstance(value, Complex):
            return cls.COMPLEX128
        raise TypeError(f"no element type for {type(value).__name__}")


class Kind(enum.Enum):
    """The shape of a value held by a Pmt."""

    NULL = "null"
    SCALAR = "scalar"
    STRING = "string"
    UNIFORM_VECTOR = "uniform_vector"
    STRING_VECTOR = "string_vector"
    PMT_VECTOR = "pmt_vector"
    MAP = "map"


_VECTOR_KINDS = (Kind.UNIFORM_VECTOR, Kind.STRING_VECTOR, Kind.PMT_VECTOR)


def _category(value: Any) -> str | None:
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, Integral):
        return "int"
    if isinstance(value, Real):
        return "float"
    if isinstance(value, Complex):
        return "complex"
    return None


def _dtype_category(dtype: Dtype) -> str:
    if dtype.is_bool:
        return "bool"
    if dtype.is_integer:
        return "int"
    if dtype.is_float:
        return "float"
    return "complex"


def _narrow_float(value: float, dtype: Dtype) -> float:
    if dtype.component_size != 4:
        return value
    try:
        return struct.unpack("<f", struct.pack("<f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def _narrow(value: Any, dtype: Dtype) -> Any:
    if dtype.is_complex:
        c = complex(value)
        return complex(_narrow_float(c.real, dtype), _narrow_float(c.imag, dtype))
    return _narrow_float(float(value), dtype)


def _coerce(value: Any, dtype: Dtype) -> Any:
    """Check that a value fits an element type and return it in stored form."""
    if dtype.is_bool:
        if isinstance(value, Integral) and int(value) in (0, 1):
            return bool(value)
        raise TypeError(f"{value!r} is not a bool")
    if dtype.is_integer:
        if not isinstance(value, Integral):
            raise TypeError(f"{value!r} is not an integer")
        number = int(value)
        low, high = dtype.bounds
        if not low <= number <= high:
            raise ValueError(f"{number} is out of range for {dtype.label}")
        return number
    if dtype.is_float:
        if not isinstance(value, Real):
            raise TypeError(f"{value!r} is not a real number")
        return _narrow(value, dtype)
    if not isinstance(value, Complex):
        raise TypeError(f"{value!r} is not a number")
    return _narrow(value, dtype)


def _convert(value: Any, dtype: Dtype) -> Any:
    """Convert a scalar the way a static cast does, wrapping integers."""
    if dtype.is_bool:
        return bool(value)
    if dtype.is_integer:
        if isinstance(value, float) and not math.isfinite(value):
            raise PmtCastError(f"cannot convert {value} to {dtype.label}")
        bits = dtype.itemsize * 8
        number = int(value) & ((1 << bits) - 1)
        if dtype.is_signed and number >= 1 << (bits - 1):
            number -= 1 << bits
        return number
    return _narrow(value, dtype)


class _PmtMap(dict):
    """A dict with string keys whose values are always stored as Pmt."""

    def __init__(self, items: Any = ()) -> None:
        super().__init__()
        self.update(items)

    def __setitem__(self, key: str, value: Any) -> None:
        if not isinstance(key, str):
            raise TypeError(f"map keys must be str, not {type(key).__name__}")
        super().__setitem__(key, Pmt(value))

    def update(self, *args: Any, **kwargs: Any) -> None:
        for key, value in dict(*args, **kwargs).items():
            self[key] = value

    def setdefault(self, key: str, default: Any = None) -> Pmt:
        if key not in self:
            self[key] = default
        return self[key]

    def copy(self) -> _PmtMap:
        return _PmtMap(self)


def _copy_payload(kind: Kind, value: Any) -> Any:
    if kind is Kind.MAP:
        return _PmtMap(value)
    if kind is Kind.PMT_VECTOR:
        return [Pmt(item) for item in value]
    if kind in (Kind.UNIFORM_VECTOR, Kind.STRING_VECTOR):
        return list(value)
    return value


def _build(value: Any, dtype: Any) -> tuple[Kind, Dtype | None, Any]:
    if value is None:
        if dtype is not None:
            raise TypeError("a null value takes no dtype")
        return Kind.NULL, None, None
    if isinstance(value, str):
        if dtype not in (None, str):
            raise TypeError("a string value takes no element dtype")
        return Kind.STRING, None, value
    if isinstance(value, Mapping):
        if dtype is not None:
            raise TypeError("a map value takes no dtype")
        return Kind.MAP, None, _PmtMap(value)
    if isinstance(value, Sequence):
        if dtype is None or dtype is Pmt:
            return Kind.PMT_VECTOR, None, [Pmt(item) for item in value]
        if dtype is str:
            items = list(value)
            if not all(isinstance(item, str) for item in items):
                raise TypeError("a string vector holds only str items")
            return Kind.STRING_VECTOR, None, items
        if isinstance(dtype, Dtype):
            return Kind.UNIFORM_VECTOR, dtype, [_coerce(item, dtype) for item in value]
        raise TypeError(f"unsupported vector dtype {dtype!r}")
    if dtype is None:
        dtype = Dtype.from_value(value)
    elif not isinstance(dtype, Dtype):
        raise TypeError(f"unsupported scalar dtype {dtype!r}")
    return Kind.SCALAR, dtype, _coerce(value, dtype)


def _scalar_matches(raw: Any, dtype: Dtype, stored: Any) -> bool:
    if _category(raw) != _dtype_category(dtype):
        return False
    try:
        return _coerce(raw, dtype) == stored
    except (TypeError, ValueError, OverflowError):
        return False


def _matches(pmt: Pmt, raw: Any) -> bool:
    kind = pmt.kind
    if kind is Kind.NULL:
        return raw is None
    if kind is Kind.SCALAR:
        return _scalar_matches(raw, pmt.dtype, pmt.value)
    if kind is Kind.STRING:
        return isinstance(raw, str) and raw == pmt.value
    if kind is Kind.MAP:
        if not isinstance(raw, Mapping) or set(raw) != set(pmt.value):
            return False
        return all(pmt.value[key] == raw[key] for key in raw)
    if not isinstance(raw, Sequence) or isinstance(raw, (str, bytes, bytearray)):
        return False
    items = list(raw)
    if len(items) != len(pmt.value):
        return False
    pairs = zip(pmt.value, items)
    if kind is Kind.UNIFORM_VECTOR:
        return all(_scalar_matches(r, pmt.dtype, v) for v, r in pairs)
    if kind is Kind.STRING_VECTOR:
        return all(isinstance(r, str) and r == v for v, r in pairs)
    return all(v == r for v, r in pairs)


class Pmt:
    """A value that is null, a scalar, a string, a vector or a string-keyed map.

    ``dtype`` picks the element type: a :class:`Dtype` for scalars and uniform
    vectors, ``str`` for a vector of strings, ``Pmt`` (or nothing) for a vector
    of Pmt values.
    """

    def __init__(self, value: Any = None, dtype: Any = None) -> None:
        if isinstance(value, Pmt):
            if dtype is not None:
                raise TypeError("dtype cannot be given when copying a Pmt")
            self._kind = value._kind
            self._dtype = value._dtype
            self._value = _copy_payload(value._kind, value._value)
            return
        self._kind, self._dtype, self._value = _build(value, dtype)

    @classmethod
    def vector(cls, dtype: Any, values: Iterable[Any]) -> Pmt:
        """Build a vector of the given element type from any iterable."""
        return cls(list(values), dtype)

    @classmethod
    def filled(cls, dtype: Any, count: int) -> Pmt:
        """Build a vector of ``count`` zero (or empty) elements."""
        if count < 0:
            raise ValueError("count must not be negative")
        if isinstance(dtype, Dtype):
            fill: Any = dtype.zero
        elif dtype is str:
            fill = ""
        elif dtype is None or dtype is Pmt:
            fill = None
        else:
            raise TypeError(f"unsupported vector dtype {dtype!r}")
        return cls([fill] * count, dtype)

    @property
    def kind(self) -> Kind:
        return self._kind

    @property
    def dtype(self) -> Dtype | None:
        """Element type of a scalar or uniform vector, else None."""
        return self._dtype

    @property
    def value(self) -> Any:
        """The held value; containers are returned as the stored objects."""
        return self._value

    def size(self) -> int:
        return elements(self)

    def __len__(self) -> int:
        return self.size()

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Pmt):
            return (
                self._kind is other._kind
                and self._dtype is other._dtype
                and self._value == other._value
            )
        return _matches(self, other)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        if self._dtype is not None:
            return f"Pmt({self._value!r}, Dtype.{self._dtype.name})"
        if self._kind is Kind.STRING_VECTOR:
            return f"Pmt({self._value!r}, str)"
        if self._kind is Kind.MAP:
            return f"Pmt({dict(self._value)!r})"
        return f"Pmt({self._value!r})"


def _as_pmt(value: Any) -> Pmt:
    return value if isinstance(value, Pmt) else Pmt(value)


def elements(value: Any) -> int:
    """Number of elements: 0 for null, 1 for a scalar, the length otherwise."""
    pmt = _as_pmt(value)
    if pmt.kind is Kind.NULL:
        return 0
    if pmt.kind is Kind.SCALAR:
        return 1
    return len(pmt.value)


def bytes_per_element(value: Any) -> int:
    """Size in bytes of one element of a null, scalar, string or uniform vector."""
    pmt = _as_pmt(value)
    if pmt.kind is Kind.NULL:
        return 0
    if pmt.kind is Kind.STRING:
        return 1
    if pmt.dtype is not None:
        return pmt.dtype.itemsize
    raise TypeError(f"a {pmt.kind.value} has no fixed element size")


_PY_TARGETS = {
    bool: Dtype.BOOL,
    int: Dtype.INT64,
    float: Dtype.FLOAT64,
    complex: Dtype.COMPLEX128,
}


def _describe(pmt: Pmt) -> str:
    if pmt.dtype is not None:
        return f"{pmt.kind.value} of {pmt.dtype.label}"
    return pmt.kind.value


def cast(value: Any, target: Any) -> Any:
    """Read a value out of a Pmt, converting between numeric types as needed.

    ``target`` is a :class:`Dtype`, one of ``bool``, ``int``, ``float``,
    ``complex``, ``str``, ``list`` (any vector) or ``dict`` (a map).
    """
    pmt = _as_pmt(value)
    if isinstance(target, type) and target in _PY_TARGETS:
        target = _PY_TARGETS[target]
    if isinstance(target, Dtype):
        if pmt.kind is Kind.SCALAR and (target.is_complex or not pmt.dtype.is_complex):
            return _convert(pmt.value, target)
        raise PmtCastError(f"invalid cast from {_describe(pmt)} to {target.label}")
    if target is str and pmt.kind is Kind.STRING:
        return pmt.value
    if target is list and pmt.kind in _VECTOR_KINDS:
        return _copy_payload(pmt.kind, pmt.value)
    if target is dict and pmt.kind is Kind.MAP:
        return {key: Pmt(item) for key, item in pmt.value.items()}
    name = getattr(target, "__name__", repr(target))
    raise PmtCastError(f"invalid cast from {_describe(pmt)} to {name}")


def get_map(value: Any) -> dict[str, Pmt]:
    """Return the stored map of a map Pmt; changes to it change the Pmt."""
    if isinstance(value, Pmt) and value.kind is Kind.MAP:
        return value.value
    kind = _describe(value) if isinstance(value, Pmt) else type(value).__name__
    raise PmtCastError(f"{kind} is not a map")


def get_vector(value: Any, dtype: Any = None) -> list[Any]:
    """Return the stored list of a vector Pmt, checking its element type if given."""
    if not isinstance(value, Pmt) or value.kind not in _VECTOR_KINDS:
        kind = _describe(value) if isinstance(value, Pmt) else type(value).__name__
        raise PmtCastError(f"{kind} is not a vector")
    if dtype is not None:
        expected = {
            Kind.UNIFORM_VECTOR: value.dtype,
            Kind.STRING_VECTOR: str,
            Kind.PMT_VECTOR: Pmt,
        }[value.kind]
        if dtype is not expected:
            raise PmtCastError(f"{_describe(value)} does not hold {dtype!r} elements")
    return value.value