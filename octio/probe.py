"""Guess the format of a data stream from its first bytes.

Octave text archives start with the '#' marker, HDF5 files with their
binary signature, and headerless delimited files with a number.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import BinaryIO, TextIO, Union

HDF5_SIGNATURE = b"\x89HDF"
_NUMBER_START = "0123456789+-."


class FileType(Enum):
    UNKNOWN = "unknown"
    HDF5 = "hdf5"
    OCTAVE = "octave"
    CSV = "csv"


def _classify(head: Union[bytes, str]) -> FileType:
    if isinstance(head, bytes):
        if head.startswith(HDF5_SIGNATURE):
            return FileType.HDF5
        head = head.decode("latin-1")
    if head.startswith("#"):
        return FileType.OCTAVE
    first = head.lstrip(" ")[:1]
    if first and first in _NUMBER_START:
        return FileType.CSV
    return FileType.UNKNOWN


def probe(stream: Union[BinaryIO, TextIO], scan: int = 64) -> FileType:
    """Classify a seekable stream without consuming it.

    The stream position is restored before returning.
    """
    pos = stream.tell()
    try:
        head = stream.read(scan)
    finally:
        stream.seek(pos)
    return _classify(head)


def probe_path(path: Union[str, Path]) -> FileType:
    """Classify a file on disk."""
    with open(path, "rb") as f:
        return probe(f)
