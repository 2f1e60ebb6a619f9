"""Text codec for single elements.

Real elements are decimal tokens (``-1``, ``1.1``, ``NaN``), complex elements
are written ``(<real>,<imag>)`` with no whitespace.
"""

from __future__ import annotations

from typing import Any

import numpy as np

from .descriptor import ElementKind
from .errors import ElementParseError


_NON_FINITE = {"nan": "NaN", "inf": "Inf", "-inf": "-Inf"}
_NA_TOKENS = ("na", "+na", "-na")


def format_real(value: Any, kind: ElementKind) -> str:
    """Format one real element of the given kind."""
    if kind.is_integer:
        # 8-bit kinds go through int() as well, so they never print as chars
        return str(int(value))
    if kind.is_float:
        value = kind.dtype.type(value)
        if not np.isfinite(value):
            return _NON_FINITE[str(float(value)).lower()]
        return str(value)
    raise TypeError(f"Cannot format {kind.name} elements as numbers")


def complex_parts(value: Any) -> tuple[Any, Any]:
    """Split a complex element into (real, imag).

    Accepts Python/numpy complex numbers, structured (real, imag) records and
    plain 2-tuples.
    """
    if isinstance(value, np.void) and value.dtype.names == ("real", "imag"):
        return value["real"], value["imag"]
    if isinstance(value, (tuple, list)):
        if len(value) != 2:
            raise ValueError(f"Complex pair must have 2 parts, got {len(value)}")
        return value[0], value[1]
    return value.real, value.imag


def format_complex(value: Any, kind: ElementKind) -> str:
    real, imag = complex_parts(value)
    return f"({format_real(real, kind)},{format_real(imag, kind)})"


def format_element(value: Any, kind: ElementKind, is_complex: bool) -> str:
    if is_complex:
        return format_complex(value, kind)
    return format_real(value, kind)


def parse_real(token: str, kind: ElementKind, line: int = None) -> Any:
    """Parse one real token as ``kind``, returning a numpy scalar."""
    try:
        if kind.is_integer:
            number = int(token)
            info = np.iinfo(kind.dtype)
            if not info.min <= number <= info.max:
                raise ElementParseError(
                    f"{token} out of range for {kind.name}", line
                )
            return kind.dtype.type(number)
        if kind.is_float:
            if token.lower() in _NA_TOKENS:
                token = "nan"
            return kind.dtype.type(token)
    except ValueError:
        raise ElementParseError(f"Invalid {kind.name} value: {token!r}", line)
    raise ElementParseError(f"Cannot parse {kind.name} elements as numbers", line)


def parse_complex(token: str, kind: ElementKind, line: int = None) -> tuple[Any, Any]:
    """Parse ``(<real>,<imag>)`` into a (real, imag) pair of numpy scalars."""
    parts = token.replace("(", " ").replace(",", " ").replace(")", " ").split()
    if len(parts) != 2:
        raise ElementParseError(f"Invalid complex value: {token!r}", line)
    return parse_real(parts[0], kind, line), parse_real(parts[1], kind, line)


def parse_element(token: str, kind: ElementKind, is_complex: bool, line: int = None) -> Any:
    if is_complex:
        return parse_complex(token, kind, line)
    return parse_real(token, kind, line)


def to_array(elements: list, kind: ElementKind, is_complex: bool) -> np.ndarray:
    """Pack parsed elements into a 1-D array of the kind's value dtype."""
    dtype = kind.value_dtype(is_complex)
    if is_complex and dtype.names is None:
        return np.array([complex(re, im) for re, im in elements], dtype=dtype)
    return np.array(elements, dtype=dtype)


def to_scalar(element: Any, kind: ElementKind, is_complex: bool) -> Any:
    """Pack one parsed element into a numpy scalar of the kind's value dtype."""
    return to_array([element], kind, is_complex)[0]
