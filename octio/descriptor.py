"""
descriptor.py - Object descriptors and the header tag vocabulary

Header layout:
    # name: <identifier>
    # type: [<kind>] [complex] <scalar|string|matrix>
    # rows: <R>                  (matrix, legacy form)
    # columns: <C>
    # ndims: 2                   (matrix, equivalent form)
     <R> <C>
    # elements: <n>              (string)
    # length: <L>

A missing kind tag means double precision ("char" for strings).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

import numpy as np


MARKER = "#"
NAME_TAG = "name:"
TYPE_TAG = "type:"
ROWS_TAG = "rows:"
COLS_TAG = "columns:"
NDIMS_TAG = "ndims:"
ELEMENTS_TAG = "elements:"
LENGTH_TAG = "length:"
COMPLEX_TAG = "complex"
SCALAR_TAG = "scalar"
STRING_TAG = "string"
MATRIX_TAG = "matrix"

INVALID_NAME = "INVALID"


class ObjectShape(Enum):
    SCALAR = "scalar"
    STRING = "string"
    VECTOR = "vector"
    COVECTOR = "covector"
    MATRIX = "matrix"
    INVALID = "invalid"


class ElementKind(Enum):
    """Element kinds with their header tag and numpy dtype.

    DOUBLE carries no tag in the header; SINGLE uses Octave's ``float``.
    """

    DOUBLE = ("", np.float64)
    SINGLE = ("float", np.float32)
    INT8 = ("int8", np.int8)
    INT16 = ("int16", np.int16)
    INT32 = ("int32", np.int32)
    INT64 = ("int64", np.int64)
    UINT8 = ("uint8", np.uint8)
    UINT16 = ("uint16", np.uint16)
    UINT32 = ("uint32", np.uint32)
    UINT64 = ("uint64", np.uint64)
    CHAR = ("char", np.str_)

    def __init__(self, tag: str, scalar_type: type):
        self.tag = tag
        self.dtype = np.dtype(scalar_type)

    @property
    def is_integer(self) -> bool:
        return np.issubdtype(self.dtype, np.integer)

    @property
    def is_float(self) -> bool:
        return np.issubdtype(self.dtype, np.floating)

    @property
    def complex_dtype(self) -> np.dtype:
        """dtype holding complex elements of this kind.

        Integer kinds use a (real, imag) structured pair so values stay exact.
        """
        if self is ElementKind.SINGLE:
            return np.dtype(np.complex64)
        if self is ElementKind.DOUBLE:
            return np.dtype(np.complex128)
        if self.is_integer:
            return np.dtype([("real", self.dtype), ("imag", self.dtype)])
        raise ValueError(f"{self.name} elements cannot be complex")

    def value_dtype(self, is_complex: bool) -> np.dtype:
        return self.complex_dtype if is_complex else self.dtype

    @classmethod
    def from_tag(cls, tag: str) -> "ElementKind":
        for kind in cls:
            if kind.tag == tag and tag:
                return kind
        raise ValueError(f"Unknown element kind tag: {tag!r}")

    @classmethod
    def from_dtype(cls, dtype: Any) -> tuple["ElementKind", bool]:
        """Map a numpy dtype to (kind, is_complex)."""
        dtype = np.dtype(dtype)
        if dtype.names == ("real", "imag"):
            kind, _ = cls.from_dtype(dtype["real"])
            if not kind.is_integer:
                raise TypeError(f"Unsupported complex pair dtype: {dtype}")
            return kind, True
        if dtype == np.complex64:
            return cls.SINGLE, True
        if np.issubdtype(dtype, np.complexfloating):
            return cls.DOUBLE, True
        if dtype.kind in "US":
            return cls.CHAR, False
        for kind in cls:
            if kind is not cls.CHAR and kind.dtype == dtype:
                return kind, False
        if np.issubdtype(dtype, np.floating):
            return cls.DOUBLE, False
        raise TypeError(f"Unsupported dtype: {dtype}")


@dataclass(frozen=True)
class ObjectDescriptor:
    """Shape, element kind, complex flag and extent of one stored object.

    ``dims`` is empty for scalars, ``(n,)`` for vectors and covectors,
    ``(length,)`` for strings and ``(rows, cols)`` for matrices.
    ``elements`` counts the strings of a string object.
    """

    shape: ObjectShape
    element_kind: ElementKind = ElementKind.DOUBLE
    is_complex: bool = False
    dims: tuple = ()
    elements: int = 1

    def __post_init__(self):
        object.__setattr__(self, "dims", tuple(int(d) for d in self.dims))
        if self.shape is ObjectShape.INVALID:
            return
        if self.shape is ObjectShape.SCALAR:
            if self.dims:
                raise ValueError("Scalar descriptors have no dims")
        elif self.shape is ObjectShape.STRING:
            if len(self.dims) != 1 or self.dims[0] < 0 or self.elements < 1:
                raise ValueError(f"Invalid string dims: {self.dims}")
            if self.is_complex or self.element_kind is not ElementKind.CHAR:
                raise ValueError("String descriptors hold real char elements")
        elif self.shape in (ObjectShape.VECTOR, ObjectShape.COVECTOR):
            if len(self.dims) != 1 or self.dims[0] <= 0:
                raise ValueError(f"Invalid {self.shape.value} dims: {self.dims}")
        elif len(self.dims) != 2 or min(self.dims) <= 0:
            raise ValueError(f"Invalid matrix dims: {self.dims}")
        if self.shape is not ObjectShape.STRING and self.element_kind is ElementKind.CHAR:
            raise ValueError("char elements are only valid for strings")

    @classmethod
    def for_matrix(
        cls, rows: int, cols: int, kind: ElementKind = ElementKind.DOUBLE, is_complex: bool = False
    ) -> "ObjectDescriptor":
        """Describe a rows x cols object, demoting single-row/column extents.

        A 1 x 1 matrix becomes a vector.
        """
        if rows == 1:
            return cls(ObjectShape.VECTOR, kind, is_complex, (cols,))
        if cols == 1:
            return cls(ObjectShape.COVECTOR, kind, is_complex, (rows,))
        return cls(ObjectShape.MATRIX, kind, is_complex, (rows, cols))

    @property
    def rows(self) -> int:
        if self.shape is ObjectShape.VECTOR:
            return 1
        if self.shape in (ObjectShape.COVECTOR, ObjectShape.MATRIX):
            return self.dims[0]
        return 0

    @property
    def cols(self) -> int:
        if self.shape is ObjectShape.VECTOR:
            return self.dims[0]
        if self.shape is ObjectShape.COVECTOR:
            return 1
        if self.shape is ObjectShape.MATRIX:
            return self.dims[1]
        return 0

    @property
    def body_lines(self) -> int:
        """Number of lines the object's body occupies, terminator excluded."""
        if self.shape is ObjectShape.STRING:
            # every string after the first carries its own "# length:" line
            return 2 * self.elements - 1
        return max(self.rows, 1)

    @property
    def type_words(self) -> list[str]:
        """Words of the ``# type:`` line for this descriptor."""
        words = []
        if self.element_kind.tag and self.element_kind is not ElementKind.CHAR:
            words.append(self.element_kind.tag)
        if self.is_complex:
            words.append(COMPLEX_TAG)
        if self.shape is ObjectShape.SCALAR:
            words.append(SCALAR_TAG)
        elif self.shape is ObjectShape.STRING:
            words.append(STRING_TAG)
        else:
            words.append(MATRIX_TAG)
        return words


INVALID_DESCRIPTOR = ObjectDescriptor(ObjectShape.INVALID)


@dataclass(frozen=True)
class NamedObject:
    """One named variable read from a stream."""

    name: str
    descriptor: ObjectDescriptor
    value: Any
