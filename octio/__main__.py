"""Command line tools for octio archives.

Usage: python -m octio <command> ...
"""

import argparse
import logging
import sys
from pathlib import Path

import numpy as np

from . import csv_archive
from .descriptor import ObjectShape
from .octave_archive import DEFAULT_TITLE, Reader, Writer
from .probe import probe_path

logger = logging.getLogger(__name__)


def _open_in(path):
    if path == "-":
        return sys.stdin
    return open(path, "r")


def _open_out(path):
    if path == "-":
        return sys.stdout
    return open(path, "w")


def _close(f):
    if f not in (sys.stdin, sys.stdout):
        f.close()


def _format_dims(descriptor):
    if descriptor.shape is ObjectShape.STRING:
        return f"{descriptor.elements}x{descriptor.dims[0]}"
    if descriptor.shape is ObjectShape.SCALAR:
        return "1x1"
    return f"{descriptor.rows}x{descriptor.cols}"


def cmd_probe(args):
    for filename in args.files:
        print(f"{filename}: {probe_path(filename).value}")
    return 0


def cmd_list(args):
    with Reader(args.file) as reader:
        print(f"Title: {reader.title()}")
        while reader.next_kind() is not ObjectShape.INVALID:
            d = reader.next_descriptor()
            kind = d.element_kind.name.lower()
            if d.is_complex:
                kind = f"complex {kind}"
            print(f"  {reader.next_name()}: {d.shape.value} {kind} [{_format_dims(d)}]")
            reader.skip_one()
    return 0


def cmd_show(args):
    wanted = set(args.names or [])
    found = set()
    with Reader(args.file) as reader:
        for obj in reader:
            if wanted and obj.name not in wanted:
                continue
            found.add(obj.name)
            print(f"{obj.name} =")
            if isinstance(obj.value, np.ndarray):
                print(np.array2string(obj.value, threshold=args.threshold))
            else:
                print(f"  {obj.value}")
    missing = wanted - found
    if missing:
        print(f"Error: objects not found: {', '.join(sorted(missing))}")
        return 1
    return 0


def cmd_csv2oct(args):
    src = _open_in(args.input)
    try:
        matrix = csv_archive.read_matrix(src)
    finally:
        _close(src)
    dest = _open_out(args.output)
    try:
        writer = Writer(dest, args.title)
        if args.column:
            written = writer.write_as_column(matrix.reshape(-1), args.name)
        else:
            written = writer.write(matrix, args.name)
    finally:
        _close(dest)
    if not written:
        logger.warning("Input matrix is empty, nothing written")
    return 0


def cmd_oct2csv(args):
    src = _open_in(args.input)
    try:
        reader = Reader(src)
        value = None
        while reader.next_kind() is not ObjectShape.INVALID:
            if reader.next_name() == args.name:
                value = reader.read(ObjectShape.MATRIX)
                break
            reader.skip_one()
    finally:
        _close(src)
    if value is None:
        print(f"Error: no real matrix named '{args.name}' in {args.input}")
        return 1
    dest = _open_out(args.output)
    try:
        csv_archive.write_matrix(value, dest)
    finally:
        _close(dest)
    return 0


def build_parser():
    parser = argparse.ArgumentParser(
        prog="python -m octio",
        description="Inspect and convert Octave-style text archives",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s probe data.mat other.csv     # Guess file formats
  %(prog)s list data.mat                # List stored objects
  %(prog)s show data.mat int_mat        # Print selected objects
  %(prog)s csv2oct m.csv m.mat -n m     # Wrap a CSV matrix in an archive
  %(prog)s oct2csv m.mat - -n m         # Extract a matrix as CSV to stdout
""",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("probe", help="Guess the format of files")
    p.add_argument("files", nargs="+")
    p.set_defaults(func=cmd_probe)

    p = sub.add_parser("list", help="List the objects of an archive")
    p.add_argument("file")
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("show", help="Print objects of an archive")
    p.add_argument("file")
    p.add_argument("names", nargs="*", help="Objects to print (default: all)")
    p.add_argument(
        "--threshold", type=int, default=1000, help="Summarize arrays larger than this"
    )
    p.set_defaults(func=cmd_show)

    p = sub.add_parser("csv2oct", help="Convert a CSV matrix to an archive")
    p.add_argument("input", help="CSV file, or - for stdin")
    p.add_argument("output", help="Archive file, or - for stdout")
    p.add_argument("-n", "--name", required=True, help="Object name")
    p.add_argument("-t", "--title", default=DEFAULT_TITLE, help="Archive title")
    p.add_argument(
        "--column", action="store_true", help="Store the values as a single column"
    )
    p.set_defaults(func=cmd_csv2oct)

    p = sub.add_parser("oct2csv", help="Extract a real matrix as CSV")
    p.add_argument("input", help="Archive file, or - for stdin")
    p.add_argument("output", help="CSV file, or - for stdout")
    p.add_argument("-n", "--name", required=True, help="Object name")
    p.set_defaults(func=cmd_oct2csv)

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    for attr in ("file", "input"):
        filename = getattr(args, attr, None)
        if filename and filename != "-" and not Path(filename).exists():
            print(f"Error: file not found: {filename}")
            return 1
    for filename in getattr(args, "files", None) or []:
        if not Path(filename).exists():
            print(f"Error: file not found: {filename}")
            return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
