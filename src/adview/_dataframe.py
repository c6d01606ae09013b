# Copyright (c) TileDB, Inc. and The Chan Zuckerberg Initiative Foundation
#
# Licensed under the MIT License.

"""Implementation of a read-only view over an H5AD ``dataframe`` group.
"""

from __future__ import annotations

from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import attrs
import h5py

from . import _util, logging
from ._column import Column, open_column
from ._constants import (
    DATAFRAME_COLUMN_ORDER_KEY,
    DATAFRAME_INDEX_KEY,
    ENCODING_TYPE_KEY,
    LEGACY_CATEGORIES_GROUP,
)
from ._encoding import DataFrameEncoding, resolve
from ._exception import (
    AdviewError,
    ColumnNotFoundError,
    InconsistentRowCountError,
    UnknownEncodingError,
)
from ._types import DisplayValue
from .options import ReadOptions


@attrs.define(frozen=True)
class Row:
    """One row of a dataframe: its zero-based ``position``, the ``index``
    value, and ``(column_name, value)`` pairs in column order.

    Lifecycle:
        Experimental.
    """

    position: int
    index: DisplayValue
    values: Tuple[Tuple[str, DisplayValue], ...]

    def cells(self) -> Tuple[DisplayValue, ...]:
        """The index value followed by every column value."""
        return (self.index,) + tuple(value for _, value in self.values)


class DataFrame:
    """An H5AD annotation table (``obs`` or ``var``).

    The index column is named by the group's ``_index`` attribute and the
    member columns, in order, by its ``column-order`` attribute. Opening the
    table resolves every column and checks that all of them have as many
    rows as the index; only attributes and shapes are read, so the row count
    and column names are available without decoding any column data.

    Lifecycle:
        Experimental.
    """

    def __init__(
        self,
        encoding: DataFrameEncoding,
        index: Column,
        columns: Sequence[Column],
        options: ReadOptions,
        *,
        name: Optional[str] = None,
    ):
        self._encoding = encoding
        self._index = index
        self._columns: Dict[str, Column] = {column.name: column for column in columns}
        self._column_names = tuple(column.name for column in columns)
        self._options = options
        self.name = name if name is not None else encoding.path.strip("/")

    @classmethod
    def open(
        cls,
        group: h5py.Group,
        options: Optional[ReadOptions] = None,
        *,
        name: Optional[str] = None,
    ) -> "DataFrame":
        """Opens the ``dataframe`` encoded ``group``.

        Raises:
            UnknownEncodingError: if the group is not a dataframe, or any of
                its columns is missing or has an unknown encoding.
            UnsupportedVersionError: if the dataframe or a column encoding
                version is not supported.
            InconsistentRowCountError: if a column's length differs from the
                index's.
        """
        options = options or ReadOptions()
        s = _util.get_start_stamp()
        encoding, index = _open_index(group, options)
        index_name = index.name

        columns = [
            _open_member(group, column_name, len(index), options)
            for column_name in _column_order(group, index_name)
        ]
        logging.log_io(
            f"Opened {group.name}: {len(index)} rows, {len(columns)} columns",
            _util.format_elapsed(
                s,
                f"Opened {group.name}: index {index_name!r} ({index.encoding_type}), "
                f"{len(index)} rows, columns {[c.name for c in columns]}",
            ),
        )
        return cls(encoding, index, columns, options, name=name)

    @property
    def path(self) -> str:
        return self._encoding.path

    @property
    def encoding_version(self) -> Optional[str]:
        return self._encoding.encoding_version

    @property
    def index_name(self) -> str:
        return self._index.name

    @property
    def index(self) -> Column:
        return self._index

    @property
    def column_names(self) -> Tuple[str, ...]:
        """Member column names in stored order, not including the index."""
        return self._column_names

    def keys(self) -> Tuple[str, ...]:
        """The index name followed by the member column names."""
        return (self.index_name,) + self._column_names

    def row_count(self) -> int:
        """Returns the number of rows. Same as ``len(df)``.

        Reads only the index's declared shape; no column data is decoded.
        """
        return len(self._index)

    def __len__(self) -> int:
        return self.row_count()

    def column(self, name: str) -> Column:
        """Returns the decoder for member column ``name``. The index name
        returns the index column.

        Raises:
            ColumnNotFoundError: if ``name`` is neither a member column nor
                the index.
        """
        try:
            return self._columns[name]
        except KeyError:
            if name == self.index_name:
                return self._index
            raise ColumnNotFoundError(self.path, name) from None

    @property
    def columns(self) -> Tuple[Column, ...]:
        """All member columns, in stored order."""
        return tuple(self._columns[name] for name in self._column_names)

    def encodings(self) -> List[Tuple[str, str]]:
        """``(name, encoding-type)`` for the index and then every member column."""
        return [(self.index_name, self._index.encoding_type)] + [
            (column.name, column.encoding_type) for column in self.columns
        ]

    def rows(
        self,
        column_names: Optional[Sequence[str]] = None,
        *,
        start: int = 0,
        stop: Optional[int] = None,
    ) -> Iterator[Row]:
        """Lazily yields rows ``[start, stop)`` in stored order.

        Args:
            column_names:
                The columns to read, in the order they should appear. The
                index name is accepted too. ``None`` means all member
                columns, in stored order.
            start:
                The first row position to yield.
            stop:
                One past the last row position to yield. ``None`` means the
                end of the table. Nothing at or past ``stop`` is read.

        Each call returns a fresh iterator. Unknown column names are
        reported here rather than on first ``next()``.
        """
        names = self._column_names if column_names is None else tuple(column_names)
        columns = [self.column(name) for name in names]
        lo, hi = _util.clamp_range(self.row_count(), start, stop)
        return self._iter_rows(columns, lo, hi)

    def _iter_rows(self, columns: Sequence[Column], lo: int, hi: int) -> Iterator[Row]:
        names = [column.name for column in columns]
        value_iters = [column.values(lo, hi) for column in columns]
        index_values = self._index.values(lo, hi)
        for position, (index_value, *values) in enumerate(
            zip(index_values, *value_iters), lo
        ):
            yield Row(position, index_value, tuple(zip(names, values)))

    def __iter__(self) -> Iterator[Row]:
        return self.rows()

    def __repr__(self) -> str:
        return (
            f"<DataFrame {self.path!r} index={self.index_name!r} "
            f"rows={self.row_count()} columns={list(self._column_names)}>"
        )


def count_rows(group: h5py.Group) -> int:
    """Returns the row count of the ``dataframe`` encoded ``group`` from its
    index alone. Member columns are not resolved, so a table with a column
    adview cannot decode still has a row count.
    """
    _, index = _open_index(group, ReadOptions())
    return len(index)


def field_tags(group: h5py.Group) -> List[Tuple[str, str]]:
    """Returns ``(name, encoding-type)`` for the index and each listed column
    of ``group``, as stored.

    Tags are reported whether or not adview can decode them. Untagged
    nodes report the encoding they are read as, or ``"untagged"`` when
    there is none; listed columns absent from the group report
    ``"missing"``. No column is opened and no data is read.
    """
    index_name = _index_name(group)
    out = []
    for name in [index_name] + _column_order(group, index_name):
        node = group.get(name)
        if node is None:
            out.append((name, "missing"))
            continue
        raw_type = node.attrs.get(ENCODING_TYPE_KEY)
        if raw_type is not None:
            out.append((name, _util.to_str(raw_type)))
            continue
        try:
            out.append((name, resolve(node).encoding_type.value))
        except AdviewError:
            out.append((name, "untagged"))
    return out


def _index_name(group: h5py.Group) -> str:
    raw_index_name = group.attrs.get(DATAFRAME_INDEX_KEY)
    if raw_index_name is None:
        raise UnknownEncodingError(
            group.name, f"dataframe has no {DATAFRAME_INDEX_KEY!r} attribute"
        )
    return _util.to_str(raw_index_name)


def _open_index(
    group: h5py.Group, options: ReadOptions
) -> Tuple[DataFrameEncoding, Column]:
    encoding = resolve(group)
    if not isinstance(encoding, DataFrameEncoding):
        raise UnknownEncodingError(
            group.name,
            f"expected encoding-type 'dataframe', found "
            f"{encoding.encoding_type.value!r}",
        )
    index_name = _index_name(group)
    index_node = group.get(index_name)
    if index_node is None:
        raise UnknownEncodingError(
            group.name, f"index column {index_name!r} not found"
        )
    return encoding, open_column(index_name, resolve(index_node), options)


def _column_order(group: h5py.Group, index_name: str) -> List[str]:
    raw = group.attrs.get(DATAFRAME_COLUMN_ORDER_KEY)
    if raw is None:
        # Files without column-order list their columns in the order the
        # container enumerates them.
        return [
            key
            for key in group.keys()
            if key not in (index_name, LEGACY_CATEGORIES_GROUP)
        ]
    return _util.to_str_list(raw)


def _open_member(
    group: h5py.Group, name: str, row_count: int, options: ReadOptions
) -> Column:
    node = group.get(name)
    if node is None:
        raise UnknownEncodingError(
            group.name, f"column {name!r} is listed in column-order but missing"
        )
    column = open_column(name, resolve(node), options)
    if len(column) != row_count:
        raise InconsistentRowCountError(column.path, row_count, len(column))
    logging.log_io(None, f"Opened column {column!r}")
    return column
