"""Base64 encoding with a lenient decoder that stops at the first non-alphabet character."""

from __future__ import annotations

import base64

_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
_SIXBITS = {char: index for index, char in enumerate(_ALPHABET)}


def _as_text(text: str | bytes | bytearray) -> str:
    if isinstance(text, (bytes, bytearray)):
        return bytes(text).decode("latin-1")
    if isinstance(text, str):
        return text
    raise TypeError(f"expected str or bytes, not {type(text).__name__}")


def _significant(text: str) -> str:
    """The leading run of characters that belong to the base64 alphabet."""
    for position, char in enumerate(text):
        if char not in _SIXBITS:
            return text[:position]
    return text


def encoded_length(length: int) -> int:
    """Number of characters, padding included, that encoding ``length`` bytes yields."""
    if length < 0:
        raise ValueError("length must not be negative")
    return (length + 2) // 3 * 4


def encode(data: bytes | bytearray | memoryview) -> str:
    """Encode bytes as padded base64 text."""
    return base64.b64encode(data).decode("ascii")


def decoded_length(text: str | bytes) -> int:
    """Upper bound on the number of bytes that ``decode(text)`` returns."""
    count = len(_significant(_as_text(text)))
    return (count + 3) // 4 * 3


def decode(text: str | bytes) -> bytes:
    """Decode base64 text, reading up to the first character outside the alphabet.

    Padding is optional; a lone trailing character that cannot form a byte
    is ignored.
    """
    values = [_SIXBITS[char] for char in _significant(_as_text(text))]
    out = bytearray()
    for start in range(0, len(values), 4):
        group = values[start:start + 4]
        if len(group) > 1:
            out.append((group[0] << 2 | group[1] >> 4) & 0xFF)
        if len(group) > 2:
            out.append((group[1] << 4 | group[2] >> 2) & 0xFF)
        if len(group) > 3:
            out.append((group[2] << 6 | group[3]) & 0xFF)
    return bytes(out)