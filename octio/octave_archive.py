"""
octave_archive.py - Reader and writer for Octave-style "#-tagged" text archives

Format specification:
- Title: first line, "# <free text>"
- Each object: "# name: <name>" and "# type: [<kind>] [complex] <shape>",
  then dimension lines, then the body and two blank lines
- Scalars: one token on one line
- Strings: "# elements: <n>", "# length: <L>", then the raw characters
- Matrices: "# rows: <R>", "# columns: <C>" (or "# ndims: 2" and "<R> <C>"),
  then R lines of C space-separated tokens
- Complex tokens: (<real>,<imag>)

Matrices with a single row read back as vectors, with a single column as
covectors.

Usage:
    import octio

    # Write objects one at a time
    with octio.Writer("data.mat", "Test file") as out:
        out.write(np.int32(-1), "int_var")
        out.write([0, 1, -2, 3, -4], "int_vect")
        out.write_as_column([1.5, 2.5], "col")

    # Read them back, inspecting each header before decoding
    with octio.Reader("data.mat") as reader:
        while reader.next_kind() is not ObjectShape.INVALID:
            if reader.next_name() == "int_vect":
                vect = reader.read(ObjectShape.VECTOR, ElementKind.INT32)
            else:
                reader.skip_one()

    # Whole-file helpers
    data = octio.load("data.mat")
    octio.dump({"x": 1.5}, "out.mat")
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Any, Iterator, Optional, TextIO, Union

import numpy as np

from . import values
from .descriptor import (
    COLS_TAG,
    ELEMENTS_TAG,
    INVALID_NAME,
    LENGTH_TAG,
    MARKER,
    NAME_TAG,
    NDIMS_TAG,
    ROWS_TAG,
    TYPE_TAG,
    ElementKind,
    NamedObject,
    ObjectDescriptor,
    ObjectShape,
)
from .errors import ElementParseError, KindMismatch, ParseError, StructuralParseError
from .header import HeaderParser, TextSource

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Created by octio"
DIMS_STYLES = ("rows", "ndims")


# =============================================================================
# Object codec
# =============================================================================


def accepts(descriptor: ObjectDescriptor, shape: ObjectShape, kind: ElementKind, is_complex: bool) -> bool:
    """Whether an object with ``descriptor`` can be decoded as the requested kind.

    Vectors may be read from covectors, and matrices from either.
    """
    if descriptor.shape is ObjectShape.INVALID:
        return False
    if shape is ObjectShape.STRING:
        return descriptor.shape is ObjectShape.STRING
    if kind is ElementKind.CHAR or descriptor.is_complex != is_complex:
        return False
    if shape is descriptor.shape:
        return True
    if shape is ObjectShape.VECTOR:
        return descriptor.shape is ObjectShape.COVECTOR
    if shape is ObjectShape.MATRIX:
        return descriptor.shape in (ObjectShape.VECTOR, ObjectShape.COVECTOR)
    return False


def _read_body_lines(source: TextSource, count: int) -> list[str]:
    lines = []
    for _ in range(count):
        line = source.read_line()
        if line is None:
            source.push_back(lines)
            raise StructuralParseError("Unexpected end of stream in object body", source.line_num)
        lines.append(line)
    return lines


def _parse_row(line: str, cols: int, kind: ElementKind, is_complex: bool, line_num: int) -> list:
    tokens = line.split()
    if len(tokens) != cols:
        raise ElementParseError(f"Expected {cols} values, got {len(tokens)}", line_num)
    return [values.parse_element(t, kind, is_complex, line_num) for t in tokens]


def _decode_string(lines: list[str], descriptor: ObjectDescriptor) -> Union[str, list[str]]:
    strings = [lines[0][: descriptor.dims[0]]]
    for i in range(1, descriptor.elements):
        marker_line, text = lines[2 * i - 1], lines[2 * i]
        words = marker_line.split()
        if len(words) != 3 or words[0] != MARKER or words[1] != LENGTH_TAG:
            raise StructuralParseError(f"Expected '{MARKER} {LENGTH_TAG}', got {marker_line!r}")
        try:
            length = int(words[2])
        except ValueError:
            length = -1
        if length < 0:
            raise StructuralParseError(f"Invalid string length in {marker_line!r}")
        strings.append(text[:length])
    if descriptor.elements == 1:
        return strings[0]
    return strings


def decode_body(lines: list[str], descriptor: ObjectDescriptor, shape: ObjectShape, kind: ElementKind, is_complex: bool, first_line: int = None) -> Any:
    """Decode the body lines of ``descriptor`` as the requested kind.

    Returns a numpy scalar, a 1-D array (VECTOR requests), a 2-D array
    (MATRIX requests) or a string.
    """
    if not accepts(descriptor, shape, kind, is_complex):
        raise KindMismatch(
            f"Cannot read {descriptor.shape.value} object as {shape.value}"
        )
    if descriptor.shape is ObjectShape.STRING:
        return _decode_string(lines, descriptor)
    if descriptor.shape is ObjectShape.SCALAR:
        tokens = lines[0].split()
        if not tokens:
            raise ElementParseError("Missing scalar value", first_line)
        return values.to_scalar(
            values.parse_element(tokens[0], kind, is_complex, first_line), kind, is_complex
        )

    rows, cols = descriptor.rows, descriptor.cols
    elements = []
    for i, line in enumerate(lines):
        line_num = None if first_line is None else first_line + i
        elements.extend(_parse_row(line, cols, kind, is_complex, line_num))
    arr = values.to_array(elements, kind, is_complex)
    if shape is ObjectShape.VECTOR:
        return arr
    return arr.reshape(rows, cols)


def _check_single_line(text: str):
    if "\n" in text or "\r" in text:
        raise ValueError("Strings written to an archive cannot contain line breaks")


def _check_name(name: str):
    if not isinstance(name, str):
        raise TypeError(f"Object names must be str, got {type(name)}")
    if not name or name.split() != [name]:
        raise ValueError(f"Object names must be a single non-empty token, got {name!r}")


def _int_kind(value: int) -> ElementKind:
    """Narrowest of int32, int64 and uint64 that holds a Python int."""
    for kind in (ElementKind.INT32, ElementKind.INT64, ElementKind.UINT64):
        info = np.iinfo(kind.dtype)
        if info.min <= value <= info.max:
            return kind
    raise OverflowError(f"{value} does not fit in a 64-bit integer")


def _check_range(arr: np.ndarray, kind: ElementKind):
    """Refuse integer casts that would wrap around."""
    if not kind.is_integer or not np.issubdtype(arr.dtype, np.integer) or arr.size == 0:
        return
    info = np.iinfo(kind.dtype)
    low, high = int(arr.min()), int(arr.max())
    if low < info.min or high > info.max:
        raise OverflowError(f"Values in [{low}, {high}] do not fit in {kind.name}")


def describe(value: Any, kind: Optional[ElementKind] = None, column: bool = False) -> tuple[Optional[ObjectDescriptor], Any]:
    """Infer the descriptor for ``value``.

    Returns (descriptor, payload) where payload is a string, a list of
    strings, a 0-d/1-d/2-d numpy array, or (None, None) for empty containers.
    """
    if isinstance(value, str):
        _check_single_line(value)
        return ObjectDescriptor(ObjectShape.STRING, ElementKind.CHAR, False, (len(value),)), value
    if isinstance(value, (list, tuple)) and value and all(isinstance(v, str) for v in value):
        strings = list(value)
        for s in strings:
            _check_single_line(s)
        return ObjectDescriptor(
            ObjectShape.STRING, ElementKind.CHAR, False, (len(strings[0]),), len(strings)
        ), strings
    if isinstance(value, (bool, np.bool_)):
        raise TypeError(f"Unsupported type: {type(value)}")

    if isinstance(value, int):
        inferred_int = _int_kind(value)
        if kind is None:
            kind = inferred_int

    arr = np.asarray(value)
    inferred, is_complex = ElementKind.from_dtype(arr.dtype)
    if inferred is ElementKind.CHAR:
        raise TypeError(f"Unsupported type: {type(value)}")
    if kind is None:
        kind = inferred
    if kind is ElementKind.CHAR:
        raise ValueError("char elements are only valid for strings")
    if is_complex and not kind.is_integer and arr.dtype.names is None:
        arr = arr.astype(kind.complex_dtype)
    elif is_complex and kind.is_integer and arr.dtype.names is None:
        pairs = np.empty(arr.shape, dtype=kind.complex_dtype)
        pairs["real"] = arr.real
        pairs["imag"] = arr.imag
        arr = pairs
    elif not is_complex:
        _check_range(arr, kind)
        arr = arr.astype(kind.dtype)

    if arr.ndim == 0:
        return ObjectDescriptor(ObjectShape.SCALAR, kind, is_complex), arr
    if arr.size == 0:
        return None, None
    if arr.ndim == 1:
        if column:
            return ObjectDescriptor(ObjectShape.COVECTOR, kind, is_complex, (arr.size,)), arr
        return ObjectDescriptor(ObjectShape.VECTOR, kind, is_complex, (arr.size,)), arr
    if arr.ndim == 2:
        if column:
            raise ValueError("Only 1-D values can be written as a column")
        return ObjectDescriptor.for_matrix(arr.shape[0], arr.shape[1], kind, is_complex), arr
    raise ValueError(f"Only 0-D, 1-D and 2-D values are supported, got {arr.ndim}-D")


def encode_body(descriptor: ObjectDescriptor, payload: Any) -> str:
    """Format the body lines of an object, terminator excluded."""
    if descriptor.shape is ObjectShape.STRING:
        strings = [payload] if isinstance(payload, str) else payload
        lines = [strings[0]]
        for s in strings[1:]:
            lines.append(f"{MARKER} {LENGTH_TAG} {len(s)}")
            lines.append(s)
        return "\n".join(lines) + "\n"

    kind, is_complex = descriptor.element_kind, descriptor.is_complex
    if descriptor.shape is ObjectShape.SCALAR:
        return " " + values.format_element(payload[()], kind, is_complex) + "\n"

    rows = np.asarray(payload).reshape(descriptor.rows, descriptor.cols)
    out = []
    for row in rows:
        out.append("".join(" " + values.format_element(v, kind, is_complex) for v in row))
    return "\n".join(out) + "\n"


# =============================================================================
# Reader
# =============================================================================


class Reader:
    """Sequential reader for Octave-style text archives.

    The header of the next object is always parsed ahead, so its name and
    descriptor can be inspected before deciding how to read it (or whether to
    skip it).
    """

    def __init__(self, source: Union[str, Path, TextIO]):
        if isinstance(source, (str, Path)):
            self._file = open(source, "r")
            self._owns_file = True
        else:
            self._file = source
            self._owns_file = False
        self._source = TextSource(self._file)
        self._header = HeaderParser(self._source)
        try:
            self._header.advance()
        except BaseException:
            self.close()
            raise
        self.last_error: Optional[Exception] = self.cursor.error

    @classmethod
    def open(cls, source: Union[str, Path, TextIO]) -> "Reader":
        return cls(source)

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def close(self):
        if self._owns_file and not self._file.closed:
            self._file.close()

    @property
    def cursor(self):
        return self._header.cursor

    def title(self) -> str:
        if self.cursor.valid:
            return self.cursor.title
        return INVALID_NAME

    def next_kind(self) -> ObjectShape:
        if self.cursor.valid:
            return self.cursor.descriptor.shape
        return ObjectShape.INVALID

    def next_name(self) -> str:
        if self.cursor.valid:
            return self.cursor.name
        return INVALID_NAME

    def next_descriptor(self) -> ObjectDescriptor:
        return self.cursor.descriptor

    def read(self, shape: ObjectShape, kind: ElementKind = ElementKind.DOUBLE, *, is_complex: bool = False) -> Any:
        """Decode the pending object as the requested kind.

        Returns the value and advances to the next header, or returns None
        and leaves the reader where it was if the object does not match the
        request or its data does not parse as ``kind``.
        """
        cursor = self.cursor
        if not cursor.valid:
            self.last_error = cursor.error
            return None
        descriptor = cursor.descriptor
        if not accepts(descriptor, shape, kind, is_complex):
            self.last_error = KindMismatch(
                f"{cursor.name!r} is a {descriptor.shape.value} object, not {shape.value}"
            )
            return None

        first_line = self._source.line_num + 1
        try:
            lines = _read_body_lines(self._source, descriptor.body_lines)
        except StructuralParseError as e:
            cursor.invalidate(e)
            self.last_error = e
            return None
        try:
            value = decode_body(lines, descriptor, shape, kind, is_complex, first_line)
        except ParseError as e:
            self._source.push_back(lines)
            self.last_error = e
            logger.debug("Could not decode %r as %s: %s", cursor.name, kind.name, e)
            return None

        self._header.advance()
        self.last_error = self.cursor.error
        return value

    def read_next(self) -> Any:
        """Decode the pending object using its own descriptor's kind."""
        descriptor = self.cursor.descriptor
        shape = descriptor.shape
        if shape is ObjectShape.COVECTOR:
            shape = ObjectShape.VECTOR
        return self.read(shape, descriptor.element_kind, is_complex=descriptor.is_complex)

    def skip_one(self) -> bool:
        """Step past the pending object without decoding it."""
        skipped = self._header.skip_body()
        self.last_error = self.cursor.error
        return skipped

    def __iter__(self) -> Iterator[NamedObject]:
        while self.cursor.valid:
            name, descriptor = self.cursor.name, self.cursor.descriptor
            value = self.read_next()
            if value is None:
                if self.cursor.valid:
                    logger.warning("Skipping %r: %s", name, self.last_error)
                    self.skip_one()
                continue
            yield NamedObject(name, descriptor, value)


# =============================================================================
# Writer
# =============================================================================


class Writer:
    """Writer for Octave-style text archives.

    The title line is written on construction. Paths are opened (and closed
    by :meth:`close`); file objects are written to and left open.
    """

    def __init__(self, dest: Union[str, Path, TextIO], title: str = DEFAULT_TITLE, *, dims_style: str = "rows"):
        if dims_style not in DIMS_STYLES:
            raise ValueError(f"dims_style must be one of {DIMS_STYLES}, got {dims_style!r}")
        if isinstance(dest, (str, Path)):
            self._file = open(dest, "w")
            self._owns_file = True
        else:
            self._file = dest
            self._owns_file = False
        self._dims_style = dims_style
        try:
            self._file.write(f"{MARKER} {title}\n")
        except BaseException:
            self.close()
            raise

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def close(self):
        if self._owns_file and not self._file.closed:
            self._file.close()

    def _format_header(self, name: str, descriptor: ObjectDescriptor) -> str:
        lines = [
            f"{MARKER} {NAME_TAG} {name}",
            f"{MARKER} {TYPE_TAG} {' '.join(descriptor.type_words)}",
        ]
        if descriptor.shape is ObjectShape.STRING:
            lines.append(f"{MARKER} {ELEMENTS_TAG} {descriptor.elements}")
            lines.append(f"{MARKER} {LENGTH_TAG} {descriptor.dims[0]}")
        elif descriptor.shape is not ObjectShape.SCALAR:
            if self._dims_style == "ndims":
                lines.append(f"{MARKER} {NDIMS_TAG} 2")
                lines.append(f" {descriptor.rows} {descriptor.cols}")
            else:
                lines.append(f"{MARKER} {ROWS_TAG} {descriptor.rows}")
                lines.append(f"{MARKER} {COLS_TAG} {descriptor.cols}")
        return "\n".join(lines) + "\n"

    def _write_object(self, name: str, descriptor: Optional[ObjectDescriptor], payload: Any) -> bool:
        if descriptor is None:
            logger.debug("Not writing empty object %r", name)
            return False
        self._file.write(self._format_header(name, descriptor))
        self._file.write(encode_body(descriptor, payload))
        self._file.write("\n\n")
        return True

    def write(self, value: Any, name: str, *, kind: Optional[ElementKind] = None) -> bool:
        """Write one named object; returns False if ``value`` is empty."""
        _check_name(name)
        descriptor, payload = describe(value, kind)
        return self._write_object(name, descriptor, payload)

    def write_as_column(self, value: Any, name: str, *, kind: Optional[ElementKind] = None) -> bool:
        """Write a 1-D value as a single column (one element per line)."""
        _check_name(name)
        descriptor, payload = describe(value, kind, column=True)
        if descriptor is not None and descriptor.shape is ObjectShape.VECTOR:
            descriptor = ObjectDescriptor(
                ObjectShape.COVECTOR, descriptor.element_kind, descriptor.is_complex, descriptor.dims
            )
        return self._write_object(name, descriptor, payload)


# Convenience functions


def load(source: Union[str, Path, TextIO]) -> dict:
    """Load every decodable object of an archive into a dict.

    Args:
        source: File path (str or Path) or text file object

    Returns:
        Dictionary of name -> value, in file order. Vectors and covectors are
        1-D arrays, matrices 2-D arrays.

    Example:
        data = octio.load("data.mat")
    """
    result = {}
    with Reader(source) as reader:
        for obj in reader:
            if obj.name in result:
                logger.warning("Duplicate object %r ignored", obj.name)
                continue
            result[obj.name] = obj.value
    return result


def dump(data: dict, dest: Union[str, Path, TextIO], title: str = DEFAULT_TITLE, *, dims_style: str = "rows"):
    """Write a dict of name -> value to an archive.

    Empty containers are left out.

    Example:
        octio.dump({"x": 1.5, "v": np.arange(3)}, "out.mat")
    """
    with Writer(dest, title, dims_style=dims_style) as writer:
        for name, value in data.items():
            writer.write(value, name)


def loads(text: str) -> dict:
    """Parse an archive from a string.

    Example:
        data = octio.loads("# t\\n# name: x\\n# type: scalar\\n 1.5\\n\\n\\n")
    """
    return load(io.StringIO(text))


def dumps(data: dict, title: str = DEFAULT_TITLE, *, dims_style: str = "rows") -> str:
    """Serialize a dict of name -> value to an archive string."""
    buf = io.StringIO()
    dump(data, buf, title, dims_style=dims_style)
    return buf.getvalue()
