"""Polymorphic message types with text rendering, binary and base64 serialisation, and benchmarks."""

__version__ = "0.0.2"
__all__ = ["types", "b64", "formatting", "serialiser", "bench"]