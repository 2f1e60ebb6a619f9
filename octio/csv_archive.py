"""
csv_archive.py - Headerless delimited vectors and matrices

Vectors: whitespace-separated numbers, written one per line.
Matrices: one row per line, values separated by commas. A trailing comma
at the end of a row is accepted on read.

Usage:
    with open("m.csv") as f:
        m = csv_archive.read_matrix(f)
    with open("v.txt", "w") as f:
        csv_archive.write_vector(v, f)
"""

from __future__ import annotations

from typing import TextIO

import numpy as np

from .errors import ParseError


def read_vector(stream: TextIO, dtype=float) -> np.ndarray:
    """Read every whitespace-separated number in the stream."""
    values = []
    for line_num, line in enumerate(stream, 1):
        for token in line.split():
            try:
                values.append(float(token))
            except ValueError:
                raise ParseError(f"Invalid number: {token}", line_num)
    return np.array(values, dtype=dtype)


def write_vector(vector, stream: TextIO):
    """Write one value per line in fixed notation with 18 decimals."""
    np.savetxt(stream, np.asarray(vector, dtype=float).reshape(-1), fmt="%.18f")


def read_matrix(stream: TextIO, dtype=float) -> np.ndarray:
    """Read comma-separated rows; blank lines are ignored."""
    rows = []
    for line_num, line in enumerate(stream, 1):
        line = line.strip()
        if not line:
            continue
        fields = line.split(",")
        if fields[-1].strip() == "":
            fields.pop()
        try:
            row = [float(field) for field in fields]
        except ValueError:
            raise ParseError(f"Invalid row: {line}", line_num)
        if rows and len(row) != len(rows[0]):
            raise ParseError(
                f"Expected {len(rows[0])} values, got {len(row)}", line_num
            )
        rows.append(row)
    if not rows:
        return np.zeros((0, 0), dtype=dtype)
    return np.array(rows, dtype=dtype)


def write_matrix(matrix, stream: TextIO):
    """Write a 2-D array as comma-separated rows."""
    matrix = np.atleast_2d(np.asarray(matrix, dtype=float))
    for row in matrix:
        stream.write(",".join(repr(float(v)) for v in row) + "\n")
