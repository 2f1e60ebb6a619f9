"""octio - read and write Octave-style "#-tagged" text archives."""

__version__ = "0.3.0"

from .descriptor import ElementKind, NamedObject, ObjectDescriptor, ObjectShape
from .errors import (
    ElementParseError,
    EndOfStream,
    KindMismatch,
    OctioError,
    ParseError,
    StructuralParseError,
)
from .octave_archive import Reader, Writer, dump, dumps, load, loads
from .probe import FileType, probe, probe_path
