# Copyright (c) TileDB, Inc. and The Chan Zuckerberg Initiative Foundation
#
# Licensed under the MIT License.

"""The ``adview`` command: head/all/shape/fields/CSV export for ``.h5ad`` files.
"""

from __future__ import annotations

import argparse
import builtins
import os
import sys
from typing import Callable, List, Optional, TextIO

from . import _commands, _general_utilities, logging
from ._commands import WriteStatus
from ._constants import DEFAULT_MISSING_DISPLAY, OBS, TABLE_NAMES, VAR
from ._exception import AdviewError
from ._h5ad import H5AD
from .options import ReadOptions

_Command = Callable[[H5AD, argparse.Namespace, TextIO], WriteStatus]


def _non_negative_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}") from None
    if n < 0:
        raise argparse.ArgumentTypeError(f"must be non-negative, got {n}")
    return n


def _positive_int(value: str) -> int:
    n = _non_negative_int(value)
    if n == 0:
        raise argparse.ArgumentTypeError("must be positive, got 0")
    return n


def _head(table: str) -> _Command:
    def run(h5ad: H5AD, args: argparse.Namespace, sink: TextIO) -> WriteStatus:
        return _commands.show_head(
            h5ad.table(table),
            args.lines,
            sink,
            column_names=args.columns,
            missing_display=h5ad.options.missing_display,
        )

    return run


def _all(table: str) -> _Command:
    def run(h5ad: H5AD, args: argparse.Namespace, sink: TextIO) -> WriteStatus:
        return _commands.show_all(
            h5ad.table(table),
            sink,
            column_names=args.columns,
            missing_display=h5ad.options.missing_display,
        )

    return run


def _shape(h5ad: H5AD, args: argparse.Namespace, sink: TextIO) -> WriteStatus:
    return _commands.show_shape(h5ad, sink)


def _fields(h5ad: H5AD, args: argparse.Namespace, sink: TextIO) -> WriteStatus:
    return _commands.show_fields(h5ad, sink)


def _export_csv(h5ad: H5AD, args: argparse.Namespace, sink: TextIO) -> WriteStatus:
    df = h5ad.table(args.table)
    na_rep = h5ad.options.na_rep if args.na_rep is None else args.na_rep
    if args.output is None or args.output == "-":
        return _commands.export_csv(df, sink, column_names=args.columns, na_rep=na_rep)
    with builtins.open(args.output, "w", newline="", encoding="utf-8") as f:
        try:
            return _commands.export_csv(
                df, f, column_names=args.columns, na_rep=na_rep
            )
        except AdviewError:
            # No truncated CSV is left behind on a decode failure.
            f.close()
            os.remove(args.output)
            raise


def _add_file_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("file", metavar="FILE", help="H5AD file path")


def _add_columns_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-c",
        "--column",
        dest="columns",
        action="append",
        metavar="COLUMN",
        help="Only show this column (repeatable; default: all columns)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="adview",
        description="Adata Viewer: head/all/shape/fields of an h5ad file in the terminal",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_general_utilities.get_implementation_version()}",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Log to stderr: -v for files and tables, -vv for every chunk read",
    )
    parser.add_argument(
        "--chunk-size",
        type=_positive_int,
        default=None,
        help="Elements read per chunk (default: $ADVIEW_CHUNK_SIZE or 4096)",
    )
    parser.add_argument(
        "--missing",
        default=None,
        metavar="TEXT",
        help=f"How previews show missing values (default: {DEFAULT_MISSING_DISPLAY})",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND", required=True)

    for table, short in ((OBS, "o"), (VAR, "v")):
        p = subparsers.add_parser(
            f"{table}-head", aliases=[f"{short}h"], help=f"Show first n {table}"
        )
        _add_file_arg(p)
        p.add_argument(
            "-n",
            "--lines",
            type=_non_negative_int,
            default=10,
            help="Number of lines to show (default: 10)",
        )
        _add_columns_arg(p)
        p.set_defaults(func=_head(table))

        p = subparsers.add_parser(
            f"{table}-all", aliases=[f"{short}a"], help=f"Show all {table}"
        )
        _add_file_arg(p)
        _add_columns_arg(p)
        p.set_defaults(func=_all(table))

    p = subparsers.add_parser("shape", aliases=["s"], help="Show shapes of obs and var")
    _add_file_arg(p)
    p.set_defaults(func=_shape)

    p = subparsers.add_parser("field", aliases=["f"], help="Show fields in obs and var")
    _add_file_arg(p)
    p.set_defaults(func=_fields)

    p = subparsers.add_parser(
        "export-csv", aliases=["e"], help="Write obs or var as CSV"
    )
    p.add_argument("table", choices=TABLE_NAMES, help="Which table to export")
    _add_file_arg(p)
    p.add_argument(
        "-o",
        "--output",
        default=None,
        help="Output CSV path (default: stdout)",
    )
    p.add_argument(
        "--na-rep",
        default=None,
        metavar="TEXT",
        help="How missing values are written (default: empty field)",
    )
    _add_columns_arg(p)
    p.set_defaults(func=_export_csv)

    return parser


def _discard_stdout() -> None:
    """Points stdout at /dev/null so the interpreter's final flush of a closed
    pipe does not print a traceback."""
    try:
        fd = sys.stdout.fileno()
    except (AttributeError, OSError, ValueError):
        return
    devnull = os.open(os.devnull, os.O_WRONLY)
    os.dup2(devnull, fd)
    os.close(devnull)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose >= 2:
        logging.debug()
    elif args.verbose == 1:
        logging.info()

    try:
        options = ReadOptions.from_env()
    except ValueError as e:
        parser.error(str(e))
    if args.chunk_size is not None:
        options = options.replace(chunk_size=args.chunk_size)
    if args.missing is not None:
        options = options.replace(missing_display=args.missing)

    sink = sys.stdout
    try:
        with H5AD.open(args.file, options) as h5ad:
            status = args.func(h5ad, args, sink)
    except AdviewError as e:
        print(f"adview: error: {e}", file=sys.stderr)  # noqa: T201
        return 1
    except OSError as e:
        # e.g. an unwritable --output path
        print(f"adview: error: {e}", file=sys.stderr)  # noqa: T201
        return 1

    if status is WriteStatus.DOWNSTREAM_CLOSED:
        logging.log_io_same("Output closed early; stopping")
        _discard_stdout()
    return 0


if __name__ == "__main__":
    sys.exit(main())
