"""Binary and base64 encoding of Pmt values, and conversion between dataclasses and maps."""

from __future__ import annotations

import dataclasses
import io
import struct
import typing
from collections.abc import Mapping, Sequence
from typing import Any, BinaryIO

from pmtypes import b64
from pmtypes.types import PMT_VERSION, Dtype, Kind, Pmt, PmtCastError, get_map

_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")
_U64 = struct.Struct("<Q")

_KIND_INDEX = {
    Kind.NULL: 0,
    Kind.STRING: 6,
    Kind.MAP: 7,
    Kind.STRING_VECTOR: 8,
    Kind.PMT_VECTOR: 9,
}


class DeserializeError(ValueError):
    """Raised when bytes do not hold a valid serialised Pmt."""


def type_index(dtype: Dtype | Kind) -> int:
    """Type number of an element type, or of a kind that has no element type."""
    if isinstance(dtype, Dtype):
        if dtype.is_bool:
            return 1
        if dtype.is_integer:
            return 2 if dtype.is_signed else 3
        if dtype.is_float:
            return 4
        return 5
    if isinstance(dtype, Kind) and dtype in _KIND_INDEX:
        return _KIND_INDEX[dtype]
    raise ValueError(f"no type index for {dtype!r}")


def _scalar_id(dtype: Dtype) -> int:
    return type_index(dtype) << 8 | dtype.component_size


def _vector_id(dtype: Dtype) -> int:
    return (type_index(dtype) << 4) << 8 | dtype.itemsize


_NULL_ID = type_index(Kind.NULL) << 8
_STRING_ID = type_index(Kind.STRING) << 8 | 1
_MAP_ID = type_index(Kind.MAP) << 8
_STRING_VECTOR_ID = type_index(Kind.STRING_VECTOR) << 8
_PMT_VECTOR_ID = type_index(Kind.PMT_VECTOR) << 8

_SCALAR_IDS = {_scalar_id(dtype): dtype for dtype in Dtype}
_VECTOR_IDS = {_vector_id(dtype): dtype for dtype in Dtype}


def _as_pmt(value: Any) -> Pmt:
    return value if isinstance(value, Pmt) else Pmt(value)


def serial_id(value: Any) -> int:
    """The 16-bit type identifier written ahead of a value's payload."""
    pmt = _as_pmt(value)
    kind = pmt.kind
    if kind is Kind.SCALAR:
        return _scalar_id(pmt.dtype)
    if kind is Kind.UNIFORM_VECTOR:
        return _vector_id(pmt.dtype)
    if kind is Kind.STRING:
        return _STRING_ID
    return type_index(kind) << 8


def _to_bytes(text: str) -> bytes:
    return text.encode("utf-8", "surrogateescape")


def _from_bytes(data: bytes) -> str:
    return data.decode("utf-8", "surrogateescape")


def _pack_items(dtype: Dtype, items: Sequence[Any]) -> bytes:
    if dtype.is_complex:
        flat = [part for item in items for part in (item.real, item.imag)]
    else:
        flat = list(items)
    return struct.pack(f"<{len(flat)}{dtype.code}", *flat)


def _unpack_items(dtype: Dtype, data: bytes, count: int) -> list[Any]:
    width = count * 2 if dtype.is_complex else count
    flat = struct.unpack(f"<{width}{dtype.code}", data)
    if dtype.is_complex:
        return [complex(re, im) for re, im in zip(flat[::2], flat[1::2])]
    return list(flat)


def _encode(pmt: Pmt, out: bytearray) -> None:
    out += _U16.pack(PMT_VERSION)
    out += _U16.pack(serial_id(pmt))
    kind = pmt.kind
    if kind is Kind.SCALAR:
        out += _pack_items(pmt.dtype, [pmt.value])
    elif kind is Kind.UNIFORM_VECTOR:
        out += _U64.pack(len(pmt.value))
        out += _pack_items(pmt.dtype, pmt.value)
    elif kind is Kind.STRING:
        data = _to_bytes(pmt.value)
        out += _U64.pack(len(data))
        out += data
    elif kind is Kind.STRING_VECTOR:
        out += _U64.pack(len(pmt.value))
        for text in pmt.value:
            data = _to_bytes(text)
            out += _U64.pack(len(data))
            out += data
    elif kind is Kind.PMT_VECTOR:
        out += _U64.pack(len(pmt.value))
        for item in pmt.value:
            _encode(item, out)
    elif kind is Kind.MAP:
        entries = sorted(
            ((_to_bytes(key), item) for key, item in pmt.value.items()),
            key=lambda entry: entry[0],
        )
        out += _U32.pack(len(entries))
        for key, item in entries:
            out += _U32.pack(len(key))
            out += key
            _encode(item, out)


class _Reader:
    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream

    def read(self, size: int) -> bytes:
        data = self._stream.read(size) if size else b""
        if data is None or len(data) != size:
            raise DeserializeError("unexpected end of data")
        return bytes(data)

    def u16(self) -> int:
        return _U16.unpack(self.read(_U16.size))[0]

    def u32(self) -> int:
        return _U32.unpack(self.read(_U32.size))[0]

    def u64(self) -> int:
        return _U64.unpack(self.read(_U64.size))[0]


def _decode(reader: _Reader) -> Pmt:
    reader.u16()  # format version
    ident = reader.u16()
    if ident == _NULL_ID:
        return Pmt()
    if ident in _SCALAR_IDS:
        dtype = _SCALAR_IDS[ident]
        return Pmt(_unpack_items(dtype, reader.read(dtype.itemsize), 1)[0], dtype)
    if ident in _VECTOR_IDS:
        dtype = _VECTOR_IDS[ident]
        count = reader.u64()
        return Pmt(_unpack_items(dtype, reader.read(count * dtype.itemsize), count), dtype)
    if ident == _STRING_ID:
        return Pmt(_from_bytes(reader.read(reader.u64())))
    if ident == _STRING_VECTOR_ID:
        count = reader.u64()
        return Pmt([_from_bytes(reader.read(reader.u64())) for _ in range(count)], str)
    if ident == _PMT_VECTOR_ID:
        count = reader.u64()
        return Pmt([_decode(reader) for _ in range(count)])
    if ident == _MAP_ID:
        count = reader.u32()
        entries = {}
        for _ in range(count):
            key = _from_bytes(reader.read(reader.u32()))
            entries[key] = _decode(reader)
        return Pmt(entries)
    raise DeserializeError(f"invalid PMT type id 0x{ident:04x}")


def serialize(value: Any, stream: BinaryIO) -> int:
    """Write a value to a binary stream and return the number of bytes written."""
    out = bytearray()
    _encode(_as_pmt(value), out)
    stream.write(out)
    return len(out)


def deserialize(stream: BinaryIO) -> Pmt:
    """Read one value from a binary stream."""
    return _decode(_Reader(stream))


def dumps(value: Any) -> bytes:
    """Serialise a value to bytes."""
    stream = io.BytesIO()
    serialize(value, stream)
    return stream.getvalue()


def loads(data: bytes | bytearray | memoryview) -> Pmt:
    """Read one value from the start of a byte string."""
    return deserialize(io.BytesIO(bytes(data)))


def to_base64(value: Any) -> str:
    """Serialise a value and encode the bytes as base64 text."""
    return b64.encode(dumps(value))


def from_base64(text: str | bytes) -> Pmt:
    """Decode base64 text produced by :func:`to_base64`."""
    return loads(b64.decode(text))


_PY_DTYPES = {
    bool: Dtype.BOOL,
    int: Dtype.INT64,
    float: Dtype.FLOAT64,
    complex: Dtype.COMPLEX128,
}

_HINT_NAMES: dict[str, Any] = {
    "bool": bool,
    "int": int,
    "float": float,
    "complex": complex,
    "str": str,
    "dict": dict,
    "Dict": dict,
    "Mapping": Mapping,
    "list": list,
    "List": list,
    "tuple": tuple,
    "Tuple": tuple,
    "Sequence": Sequence,
}

_Spec = typing.Optional[typing.Tuple[Kind, typing.Optional[Dtype]]]


def _lookup_name(text: str) -> Any:
    return _HINT_NAMES.get(text.strip().rsplit(".", 1)[-1])


def _hint_parts(hint: Any) -> tuple[Any, Any]:
    """Origin and first argument of an annotation, read without evaluating it."""
    if isinstance(hint, str):
        base, bracket, rest = hint.strip().partition("[")
        origin = _lookup_name(base)
        item = None
        if bracket:
            inner = rest.rsplit("]", 1)[0]
            item = _lookup_name(inner.split(",", 1)[0]) if "[" not in inner.split(",", 1)[0] else None
        return origin, item
    origin = typing.get_origin(hint) or hint
    args = typing.get_args(hint)
    return origin, (args[0] if args else None)


def _field_spec(hint: Any, dtype: Any) -> _Spec:
    origin, item = _hint_parts(hint)
    if origin in (list, tuple, Sequence):
        if isinstance(dtype, Dtype):
            return Kind.UNIFORM_VECTOR, dtype
        if item is str:
            return Kind.STRING_VECTOR, None
        if item in _PY_DTYPES:
            return Kind.UNIFORM_VECTOR, _PY_DTYPES[item]
        return Kind.PMT_VECTOR, None
    if isinstance(dtype, Dtype):
        return Kind.SCALAR, dtype
    if origin is str:
        return Kind.STRING, None
    if origin in (dict, Mapping):
        return Kind.MAP, None
    if origin in _PY_DTYPES:
        return Kind.SCALAR, _PY_DTYPES[origin]
    return None


def _fields(cls: Any) -> list[tuple[dataclasses.Field, _Spec]]:
    if not dataclasses.is_dataclass(cls):
        raise TypeError(f"{cls!r} is not a dataclass")
    target = cls if isinstance(cls, type) else type(cls)
    return [
        (field, _field_spec(field.type, field.metadata.get("dtype")))
        for field in dataclasses.fields(target)
    ]


def _to_pmt(value: Any, spec: _Spec) -> Pmt:
    if isinstance(value, Pmt) or spec is None:
        return Pmt(value)
    kind, dtype = spec
    if kind is Kind.SCALAR:
        return Pmt(value, dtype)
    if kind is Kind.UNIFORM_VECTOR:
        return Pmt(list(value), dtype)
    if kind is Kind.STRING_VECTOR:
        return Pmt(list(value), str)
    if kind is Kind.PMT_VECTOR:
        return Pmt(list(value))
    return Pmt(value)


def _holds(pmt: Pmt, spec: _Spec) -> bool:
    if spec is None:
        return True
    kind, dtype = spec
    return pmt.kind is kind and pmt.dtype is dtype


def _from_pmt(pmt: Pmt, spec: _Spec) -> Any:
    if spec is None:
        return Pmt(pmt)
    kind = spec[0]
    if kind is Kind.PMT_VECTOR:
        return [Pmt(item) for item in pmt.value]
    if kind in (Kind.UNIFORM_VECTOR, Kind.STRING_VECTOR):
        return list(pmt.value)
    if kind is Kind.MAP:
        return {key: Pmt(item) for key, item in pmt.value.items()}
    return pmt.value


def _entries(mapping: Any) -> Mapping[str, Any]:
    if isinstance(mapping, Pmt):
        return get_map(mapping)
    if isinstance(mapping, Mapping):
        return mapping
    raise TypeError(f"expected a map, not {type(mapping).__name__}")


def map_from_struct(obj: Any) -> dict[str, Pmt]:
    """Build a map from the fields of a dataclass instance.

    A field's ``metadata["dtype"]`` picks the element type; otherwise it
    follows from the field's annotation.
    """
    if isinstance(obj, type):
        raise TypeError("map_from_struct needs a dataclass instance")
    return {
        field.name: _to_pmt(getattr(obj, field.name), spec) for field, spec in _fields(obj)
    }


def to_struct(mapping: Any, cls: type) -> Any:
    """Build a dataclass instance from a map whose entries hold each field's type."""
    entries = _entries(mapping)
    init: dict[str, Any] = {}
    later: dict[str, Any] = {}
    for field, spec in _fields(cls):
        if field.name not in entries:
            raise KeyError(field.name)
        pmt = _as_pmt(entries[field.name])
        if not _holds(pmt, spec):
            raise PmtCastError(f"map entry {field.name!r} does not hold the field's type")
        (init if field.init else later)[field.name] = _from_pmt(pmt, spec)
    obj = cls(**init)
    for name, value in later.items():
        object.__setattr__(obj, name, value)
    return obj


def validate_map(mapping: Any, cls: type, exact: bool = False) -> bool:
    """Whether the map holds every field of ``cls`` with the right type.

    With ``exact`` the map must also hold nothing else.
    """
    entries = _entries(mapping)
    fields = _fields(cls)
    if exact and len(entries) != len(fields):
        return False
    return all(
        field.name in entries and _holds(_as_pmt(entries[field.name]), spec)
        for field, spec in fields
    )