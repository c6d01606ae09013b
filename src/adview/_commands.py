# Copyright (c) TileDB, Inc. and The Chan Zuckerberg Initiative Foundation
#
# Licensed under the MIT License.

"""Queries over ``obs``/``var`` and their text and CSV renderings.

The query functions (:func:`shape`, :func:`head`, :func:`all_rows`,
:func:`fields`) return data. The ``show_*`` functions and
:func:`export_csv` write to a text sink one line at a time and return a
:class:`WriteStatus`: a sink whose reader has gone away (``adview ... | head``)
ends the command early and is not an error.
"""

from __future__ import annotations

import csv
import enum
from typing import Any, Iterable, Iterator, List, Optional, Sequence, TextIO, Tuple

from . import _util, logging
from ._constants import DEFAULT_MISSING_DISPLAY, DEFAULT_NA_REP, TABLE_NAMES
from ._dataframe import DataFrame, Row
from ._h5ad import H5AD
from ._types import DisplayValue


class WriteStatus(enum.Enum):
    """Outcome of writing a command's output."""

    COMPLETE = "complete"
    DOWNSTREAM_CLOSED = "downstream-closed"


def write_line(sink: TextIO, line: str) -> WriteStatus:
    """Writes ``line`` and a newline, reporting a closed reader instead of raising."""
    try:
        sink.write(line + "\n")
    except BrokenPipeError:
        return WriteStatus.DOWNSTREAM_CLOSED
    return WriteStatus.COMPLETE


def flush(sink: TextIO) -> WriteStatus:
    try:
        sink.flush()
    except BrokenPipeError:
        return WriteStatus.DOWNSTREAM_CLOSED
    return WriteStatus.COMPLETE


def _write_lines(sink: TextIO, lines: Iterable[str]) -> WriteStatus:
    for line in lines:
        if write_line(sink, line) is WriteStatus.DOWNSTREAM_CLOSED:
            return WriteStatus.DOWNSTREAM_CLOSED
    return flush(sink)


# ----------------------------------------------------------------
# Queries


def shape(h5ad: H5AD) -> Tuple[int, int]:
    """Returns ``(n_obs, n_var)`` without decoding any column."""
    return h5ad.shape()


def head(
    df: DataFrame, n: int, column_names: Optional[Sequence[str]] = None
) -> Iterator[Row]:
    """Lazily yields the first ``min(n, len(df))`` rows.

    No row at or past ``n`` is read from the file.
    """
    if n < 0:
        raise ValueError(f"n must be non-negative, got {n}")
    return df.rows(column_names, stop=n)


def all_rows(df: DataFrame, column_names: Optional[Sequence[str]] = None) -> Iterator[Row]:
    """Lazily yields every row. Each call starts over from the first row."""
    return head(df, df.row_count(), column_names)


def fields(df: DataFrame) -> List[Tuple[str, str]]:
    """Returns ``(name, encoding-type)`` for the index and each member column."""
    return df.encodings()


# ----------------------------------------------------------------
# Renderings


def _display(value: DisplayValue, missing_display: str) -> str:
    return missing_display if value is None else value


def _preview_lines(
    df: DataFrame,
    rows: Iterator[Row],
    column_names: Optional[Sequence[str]],
    missing_display: str,
) -> Iterator[str]:
    names = df.column_names if column_names is None else tuple(column_names)
    if not names:
        for row in rows:
            yield f"{row.position}: {_display(row.index, missing_display)}"
    elif column_names is not None and len(names) == 1:
        for row in rows:
            yield f"{row.position}: {_display(row.values[0][1], missing_display)}"
    else:
        yield "\t".join((df.index_name,) + tuple(names))
        for row in rows:
            yield "\t".join(_display(v, missing_display) for v in row.cells())


def show_head(
    df: DataFrame,
    n: int,
    sink: TextIO,
    *,
    column_names: Optional[Sequence[str]] = None,
    missing_display: str = DEFAULT_MISSING_DISPLAY,
) -> WriteStatus:
    """Writes a preview of the first ``n`` rows.

    With exactly one value per row (an index-only table, or a single
    requested column) each line is ``"<position>: <value>"``; otherwise a
    tab-separated header is followed by tab-separated rows.
    """
    rows = head(df, n, column_names)
    return _write_lines(sink, _preview_lines(df, rows, column_names, missing_display))


def show_all(
    df: DataFrame,
    sink: TextIO,
    *,
    column_names: Optional[Sequence[str]] = None,
    missing_display: str = DEFAULT_MISSING_DISPLAY,
) -> WriteStatus:
    """Writes a preview of every row; see :func:`show_head`."""
    return show_head(
        df,
        df.row_count(),
        sink,
        column_names=column_names,
        missing_display=missing_display,
    )


def show_shape(h5ad: H5AD, sink: TextIO) -> WriteStatus:
    n_obs, n_var = shape(h5ad)
    lines = [f"obs shape: {n_obs}", f"var shape: {n_var}"]
    matrix_shape = h5ad.matrix_shape()
    if matrix_shape is not None:
        lines.append(f"X shape: {matrix_shape}")
    return _write_lines(sink, lines)


def show_fields(h5ad: H5AD, sink: TextIO) -> WriteStatus:
    """Lists each table's columns with their stored encodings, index first.

    Columns are listed even when their encoding cannot be decoded.
    """
    lines: List[str] = []
    for i, name in enumerate(TABLE_NAMES):
        if i > 0:
            lines.append("")
        lines.append(f"{name} fields:")
        for field, encoding_type in h5ad.field_tags(name):
            lines.append(f"\t{field} ({encoding_type})")
    return _write_lines(sink, lines)


def export_csv(
    df: DataFrame,
    sink: TextIO,
    *,
    column_names: Optional[Sequence[str]] = None,
    na_rep: str = DEFAULT_NA_REP,
) -> WriteStatus:
    """Streams ``df`` to ``sink`` as CSV.

    The header is the index name followed by the member column names (or
    ``column_names``, when given). Each row is written as soon as it is
    decoded; missing values are written as ``na_rep``. Lines end with
    ``"\\n"`` and fields are quoted only when needed.

    Open file sinks with ``newline=""``, as for any ``csv.writer``.
    """
    s = _util.get_start_stamp()
    rows = all_rows(df, column_names)
    names = df.column_names if column_names is None else tuple(column_names)
    writer = csv.writer(sink, lineterminator="\n")

    logging.log_io(f"Exporting {df.path}", f"START  EXPORTING {df.path} as CSV")
    status = _write_csv_row(writer, (df.index_name,) + tuple(names))
    n_written = 0
    if status is WriteStatus.COMPLETE:
        for row in rows:
            status = _write_csv_row(
                writer, [na_rep if v is None else v for v in row.cells()]
            )
            if status is WriteStatus.DOWNSTREAM_CLOSED:
                break
            n_written += 1
        else:
            status = flush(sink)

    logging.log_io(
        None,
        _util.format_elapsed(
            s, f"FINISH EXPORTING {df.path}: {n_written} rows, {status.value}"
        ),
    )
    return status


def _write_csv_row(writer: Any, record: Sequence[str]) -> WriteStatus:
    try:
        writer.writerow(record)
    except BrokenPipeError:
        return WriteStatus.DOWNSTREAM_CLOSED
    return WriteStatus.COMPLETE
