"""Text rendering of Pmt values."""

from __future__ import annotations

import math
import struct
from typing import Any

from pmtypes.types import Dtype, Kind, Pmt


def _to_float32(value: float) -> float:
    try:
        return struct.unpack("<f", struct.pack("<f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def _shortest(value: float) -> str:
    text = repr(float(value))
    return text[:-2] if text.endswith(".0") else text


def _format_real(value: float, single: bool) -> str:
    value = float(value)
    if not single or not math.isfinite(value):
        return _shortest(value)
    target = _to_float32(value)
    for precision in range(1, 10):
        candidate = float(f"{target:.{precision}g}")
        if _to_float32(candidate) == target:
            return _shortest(candidate)
    return _shortest(target)


def _format_complex(value: complex, single: bool) -> str:
    value = complex(value)
    if value.imag >= 0:
        return f"{_format_real(value.real, single)}+j{_format_real(value.imag, single)}"
    return f"{_format_real(value.real, single)}-j{_format_real(-value.imag, single)}"


def _format_scalar(value: Any, dtype: Dtype) -> str:
    if dtype.is_bool:
        return "true" if value else "false"
    if dtype.is_integer:
        return str(int(value))
    single = dtype.component_size == 4
    if dtype.is_float:
        return _format_real(value, single)
    return _format_complex(value, single)


def format_complex(value: Any) -> str:
    """Render a complex number as ``re+jim`` or ``re-jim``.

    A complex Pmt scalar is rendered with the precision of its element type;
    a plain number is treated as double precision.
    """
    if isinstance(value, Pmt):
        if value.kind is not Kind.SCALAR or not value.dtype.is_complex:
            raise TypeError("format_complex needs a complex scalar")
        return _format_complex(value.value, value.dtype.component_size == 4)
    return _format_complex(value, False)


def format_pmt(value: Any) -> str:
    """Render a Pmt (or a value that converts to one) as text."""
    pmt = value if isinstance(value, Pmt) else Pmt(value)
    kind = pmt.kind
    if kind is Kind.NULL:
        return "null"
    if kind is Kind.SCALAR:
        return _format_scalar(pmt.value, pmt.dtype)
    if kind is Kind.STRING:
        return pmt.value
    if kind is Kind.UNIFORM_VECTOR:
        return "[" + ", ".join(_format_scalar(item, pmt.dtype) for item in pmt.value) + "]"
    if kind is Kind.STRING_VECTOR:
        return "[" + ", ".join(pmt.value) + "]"
    if kind is Kind.PMT_VECTOR:
        return "[" + ", ".join(format_pmt(item) for item in pmt.value) + "]"
    entries = (f"{key}: {format_pmt(pmt.value[key])}" for key in sorted(pmt.value))
    return "{" + ", ".join(entries) + "}"