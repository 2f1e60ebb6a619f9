"""Exceptions raised while reading and writing octio archives."""

from __future__ import annotations


class OctioError(Exception):
    """Base class for octio errors."""


class ParseError(OctioError):
    """Error during archive parsing."""

    def __init__(self, message: str, line: int = None, context: str = None):
        self.line = line
        self.context = context
        full_msg = message
        if line is not None:
            full_msg = f"Line {line}: {message}"
        if context:
            full_msg += f" (in {context})"
        super().__init__(full_msg)


class StructuralParseError(ParseError):
    """A required header token or line is missing or malformed."""


class ElementParseError(ParseError):
    """A data token does not convert to the requested element kind."""


class EndOfStream(ParseError):
    """No further objects in the stream."""


class KindMismatch(OctioError):
    """The requested kind does not match the pending object's descriptor."""
