"""Header state machine for octio text archives.

The reader keeps exactly one parsed header ahead of the stream: after the
title, the first object's header is parsed; each consumed or skipped body is
followed by parsing the next header. A header that fails to parse, or end of
stream, leaves the cursor invalid for good.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, TextIO

from .descriptor import (
    COLS_TAG,
    COMPLEX_TAG,
    ELEMENTS_TAG,
    INVALID_DESCRIPTOR,
    INVALID_NAME,
    LENGTH_TAG,
    MARKER,
    MATRIX_TAG,
    NAME_TAG,
    NDIMS_TAG,
    ROWS_TAG,
    SCALAR_TAG,
    STRING_TAG,
    TYPE_TAG,
    ElementKind,
    ObjectDescriptor,
    ObjectShape,
)
from .errors import EndOfStream, ParseError, StructuralParseError

logger = logging.getLogger(__name__)


class TextSource:
    """Line-buffered view of a text stream.

    Supports both whole-line reads (bodies) and whitespace-skipping token
    reads (headers), plus pushing lines back for a retry.
    """

    def __init__(self, stream: TextIO):
        self._stream = stream
        self._line = ""
        self._pushed: list[str] = []
        self.line_num = 0

    def _fill(self) -> bool:
        """Make sure the current line buffer is non-empty, if possible."""
        while not self._line:
            if self._pushed:
                self._line = self._pushed.pop()
            else:
                self._line = self._stream.readline()
                if not self._line:
                    return False
            self.line_num += 1
        return True

    def _skip_whitespace(self):
        while self._fill():
            stripped = self._line.lstrip()
            if stripped:
                self._line = stripped
                return
            self._line = ""

    def read_char(self) -> str:
        """Next non-whitespace character, or "" at end of stream."""
        self._skip_whitespace()
        if not self._line:
            return ""
        c, self._line = self._line[0], self._line[1:]
        return c

    def read_token(self) -> str:
        """Next whitespace-delimited token, or "" at end of stream."""
        self._skip_whitespace()
        if not self._line:
            return ""
        parts = self._line.split(None, 1)
        token = parts[0]
        self._line = self._line[len(token):]
        return token

    def read_line(self) -> Optional[str]:
        """Rest of the current line without its newline, or None at end."""
        if not self._fill():
            return None
        line, self._line = self._line, ""
        return line.rstrip("\r\n")

    def skip_blank_lines(self, limit: int) -> int:
        """Consume up to ``limit`` blank lines; return how many were skipped."""
        skipped = 0
        while skipped < limit and self._fill() and not self._line.strip():
            self._line = ""
            skipped += 1
        return skipped

    def push_back(self, lines: list[str]):
        """Return whole lines to the front of the source, first line first."""
        if self._line:
            self._pushed.append(self._line)
            self.line_num -= 1
            self._line = ""
        for line in reversed(lines):
            self._pushed.append(line + "\n")
            self.line_num -= 1


@dataclass
class Cursor:
    """Reader state: the title plus the already-parsed next header."""

    title: str = INVALID_NAME
    name: str = INVALID_NAME
    descriptor: ObjectDescriptor = INVALID_DESCRIPTOR
    valid: bool = False
    count: int = 0
    error: Optional[ParseError] = None

    def invalidate(self, error: Optional[ParseError] = None):
        self.name = INVALID_NAME
        self.descriptor = INVALID_DESCRIPTOR
        self.valid = False
        self.error = error


class HeaderParser:
    """Parses the title and per-object headers into a :class:`Cursor`."""

    def __init__(self, source: TextSource):
        self.source = source
        self.cursor = Cursor()

    def _fail(self, message: str):
        context = None if self.cursor.name == INVALID_NAME else self.cursor.name
        raise StructuralParseError(message, self.source.line_num, context)

    def _read_marker_line(self) -> tuple[str, str]:
        """Read ``# <tag> <rest>`` and return (tag, rest)."""
        c = self.source.read_char()
        if c == "":
            raise EndOfStream("End of stream", self.source.line_num)
        if c != MARKER:
            self._fail(f"Expected '{MARKER}', got '{c}'")
        tag = self.source.read_token()
        rest = self.source.read_line()
        return tag, (rest or "").strip()

    def _read_field(self, tag: str) -> str:
        found, rest = self._read_marker_line()
        if found != tag:
            self._fail(f"Expected '{tag}', got '{found}'")
        if not rest:
            self._fail(f"Missing value for '{tag}'")
        return rest

    def _read_name(self) -> str:
        words = self._read_field(NAME_TAG).split()
        if len(words) != 1:
            self._fail(f"Object name must be a single token, got {' '.join(words)!r}")
        return words[0]

    def _read_count(self, tag: str) -> int:
        text = self._read_field(tag)
        try:
            value = int(text)
        except ValueError:
            self._fail(f"Invalid value for '{tag}': {text!r}")
        if value < 0:
            self._fail(f"Negative value for '{tag}': {value}")
        return value

    def read_title(self):
        c = self.source.read_char()
        if c != MARKER:
            raise StructuralParseError("Missing title line", self.source.line_num)
        self.cursor.title = (self.source.read_line() or "").strip()

    def _parse_type(self, words: list[str]) -> tuple[str, Optional[ElementKind], bool]:
        if not words:
            self._fail("Empty type")
        shape_word, modifiers = words[-1], words[:-1]
        is_complex = False
        kind = None
        for word in modifiers:
            if word == COMPLEX_TAG and not is_complex:
                is_complex = True
            elif kind is None and word != COMPLEX_TAG:
                try:
                    kind = ElementKind.from_tag(word)
                except ValueError:
                    self._fail(f"Unknown type modifier '{word}'")
            else:
                self._fail(f"Repeated type modifier '{word}'")
        if kind is ElementKind.CHAR:
            self._fail("'char' is not a numeric element kind")
        return shape_word, kind, is_complex

    def _read_matrix_dims(self) -> tuple[int, int]:
        tag, rest = self._read_marker_line()
        if tag == ROWS_TAG:
            try:
                rows = int(rest)
            except ValueError:
                self._fail(f"Invalid value for '{ROWS_TAG}': {rest!r}")
            cols = self._read_count(COLS_TAG)
        elif tag == NDIMS_TAG:
            if rest != "2":
                self._fail(f"Only 2-D objects are supported, got ndims {rest}")
            line = self.source.read_line()
            try:
                rows, cols = (int(d) for d in (line or "").split())
            except ValueError:
                self._fail(f"Invalid dimension list: {line!r}")
        else:
            self._fail(f"Expected '{ROWS_TAG}' or '{NDIMS_TAG}', got '{tag}'")
        if rows <= 0 or cols <= 0:
            self._fail(f"Unsupported matrix extent {rows}x{cols}")
        return rows, cols

    def _parse(self):
        if self.cursor.count == 0:
            self.read_title()
        else:
            self.source.skip_blank_lines(2)

        name = self._read_name()
        self.cursor.name = name
        shape_word, kind, is_complex = self._parse_type(self._read_field(TYPE_TAG).split())

        if shape_word == SCALAR_TAG:
            descriptor = ObjectDescriptor(
                ObjectShape.SCALAR, kind or ElementKind.DOUBLE, is_complex
            )
        elif shape_word == STRING_TAG:
            if kind is not None or is_complex:
                self._fail("Strings take no type modifiers")
            elements = self._read_count(ELEMENTS_TAG)
            if elements < 1:
                self._fail("String objects need at least one element")
            length = self._read_count(LENGTH_TAG)
            descriptor = ObjectDescriptor(
                ObjectShape.STRING, ElementKind.CHAR, False, (length,), elements
            )
        elif shape_word == MATRIX_TAG:
            rows, cols = self._read_matrix_dims()
            descriptor = ObjectDescriptor.for_matrix(
                rows, cols, kind or ElementKind.DOUBLE, is_complex
            )
        else:
            self._fail(f"Unknown object type '{shape_word}'")

        self.cursor.descriptor = descriptor
        self.cursor.valid = True
        self.cursor.error = None
        self.cursor.count += 1

    def advance(self) -> Cursor:
        """Parse the next header into the cursor.

        Failures of any kind leave the cursor in its terminal invalid state.
        """
        self.cursor.invalidate()
        try:
            self._parse()
        except ParseError as e:
            self.cursor.invalidate(e)
            logger.debug("Header parse stopped: %s", e)
        else:
            logger.debug(
                "Parsed header %r: %s", self.cursor.name, self.cursor.descriptor
            )
        return self.cursor

    def skip_body(self) -> bool:
        """Discard the pending body without interpreting it, then advance."""
        if not self.cursor.valid:
            return False
        for _ in range(self.cursor.descriptor.body_lines):
            if self.source.read_line() is None:
                break
        logger.debug("Skipped %r", self.cursor.name)
        self.advance()
        return True
