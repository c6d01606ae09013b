# Copyright (c) TileDB, Inc. and The Chan Zuckerberg Initiative Foundation
#
# Licensed under the MIT License.

"""Read-only handle over one ``.h5ad`` file.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import h5py

from . import _util, logging
from ._constants import MATRIX, OBS, SPARSE_SHAPE_KEY, TABLE_NAMES, VAR
from ._dataframe import DataFrame, count_rows, field_tags
from ._exception import ContainerOpenError, UnknownEncodingError
from ._types import NTuple, Path, TableName
from .options import ReadOptions


class H5AD:
    """An opened ``.h5ad`` file, exposing its ``obs`` and ``var`` tables and the
    shape of its ``X`` matrix.

    Usually obtained from :func:`adview.open` and used as a context manager;
    the file is closed on exit.

    Lifecycle:
        Experimental.
    """

    def __init__(self, handle: h5py.File, path: str, options: ReadOptions):
        self._handle = handle
        self.path = path
        self.options = options
        self._tables: Dict[str, DataFrame] = {}

    @classmethod
    def open(cls, path: Path, options: Optional[ReadOptions] = None) -> "H5AD":
        """Opens ``path`` read-only.

        Raises:
            ContainerOpenError:
                If the file does not exist, cannot be read, is not HDF5, or has
                no ``obs`` or ``var`` group.
        """
        options = options or ReadOptions()
        path_str = str(path)
        s = _util.get_start_stamp()
        try:
            handle = h5py.File(path_str, "r")
        except OSError as e:
            raise ContainerOpenError(path_str, str(e)) from e

        try:
            for key in TABLE_NAMES:
                if not isinstance(handle.get(key), h5py.Group):
                    raise ContainerOpenError(path_str, f"no {key!r} group")
        except Exception:
            handle.close()
            raise

        logging.log_io(
            f"Opened {path_str}",
            _util.format_elapsed(s, f"Opened {path_str} chunk_size={options.chunk_size}"),
        )
        return cls(handle, path_str, options)

    @property
    def obs(self) -> DataFrame:
        """The cell annotations."""
        return self.table(OBS)

    @property
    def var(self) -> DataFrame:
        """The feature annotations."""
        return self.table(VAR)

    def table(self, name: TableName) -> DataFrame:
        """Returns ``obs`` or ``var`` by name."""
        if name not in TABLE_NAMES:
            raise ValueError(f"table must be one of {TABLE_NAMES}, got {name!r}")
        try:
            return self._tables[name]
        except KeyError:
            pass
        df = DataFrame.open(self._handle[name], self.options, name=name)
        self._tables[name] = df
        return df

    def shape(self) -> Tuple[int, int]:
        """Returns ``(n_obs, n_var)`` from the index lengths alone.

        Member columns are not opened, so this works even when a table holds
        a column adview cannot decode.
        """
        return (self._row_count(OBS), self._row_count(VAR))

    def _row_count(self, name: TableName) -> int:
        if name in self._tables:
            return self._tables[name].row_count()
        return count_rows(self._handle[name])

    def field_tags(self, name: TableName) -> List[Tuple[str, str]]:
        """Returns ``(name, encoding-type)`` for every field of ``obs`` or
        ``var`` as stored, without opening the table's columns.
        """
        if name not in TABLE_NAMES:
            raise ValueError(f"table must be one of {TABLE_NAMES}, got {name!r}")
        return field_tags(self._handle[name])

    def matrix_shape(self) -> Optional[NTuple]:
        """Returns the shape of ``X``, or ``None`` when the file has none.

        Dense ``X`` is a dataset; sparse ``X`` is a group carrying a ``shape``
        attribute. Matrix values are never read.
        """
        node = self._handle.get(MATRIX)
        if node is None:
            return None
        if isinstance(node, h5py.Dataset):
            return tuple(int(d) for d in node.shape)
        shape = node.attrs.get(SPARSE_SHAPE_KEY)
        if shape is None:
            raise UnknownEncodingError(node.name, "sparse matrix has no shape attribute")
        return tuple(int(d) for d in shape)

    def close(self) -> None:
        """Closes the file. Tables opened from it become unusable."""
        if self._handle:
            logging.log_io(None, f"Closing {self.path}")
            self._handle.close()
        self._tables.clear()

    @property
    def closed(self) -> bool:
        # A closed h5py.File is falsy.
        return not bool(self._handle)

    def __enter__(self) -> "H5AD":
        return self

    def __exit__(self, *_: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<H5AD {self.path!r} ({state})>"


def open(path: Path, options: Optional[ReadOptions] = None) -> H5AD:
    """Opens an ``.h5ad`` file for reading.

    Args:
        path:
            Path of the file.
        options:
            Chunking and rendering options. Defaults to ``ReadOptions()``.

    Returns:
        The opened :class:`H5AD`, for use as a context manager.

    Raises:
        ContainerOpenError:
            If the file cannot be opened as an H5AD file.

    Lifecycle:
        Experimental.
    """
    return H5AD.open(path, options)
