# Copyright (c) TileDB, Inc. and The Chan Zuckerberg Initiative Foundation
#
# Licensed under the MIT License.

"""Adata Viewer

``adview`` reads the annotation tables of an AnnData ``.h5ad`` file (the
cell annotations ``obs`` and the feature annotations ``var``) directly
from the HDF5 container, one chunk at a time, without loading the file into
memory. It is meant for looking at very large files from a terminal:
previewing the first rows, paging through all of them, checking the shape,
listing columns, and exporting a table to CSV.

Using the documentation
-------------------------

Documentation is also available via the Python builtin ``help`` function:

>>> import adview
>>> help(adview.DataFrame)

Example
---------

>>> with adview.open("pbmc3k.h5ad") as h5ad:
...     print(h5ad.shape())
...     for row in adview.head(h5ad.obs, 5):
...         print(row.index, row.values)

Encodings
-----------

Columns are decoded according to their ``encoding-type`` attribute:

- ``array`` and ``string-array``: plain numeric, boolean, or text datasets.
- ``categorical``: integer codes into a dictionary of categories; code
  ``-1`` is missing.
- ``nullable-integer`` and ``nullable-boolean``: values plus a mask; a set
  mask bit is missing.

Missing values are ``None`` in :class:`Row` values. Previews show them as
``ReadOptions.missing_display`` and CSV export writes ``na_rep``.

Error handling
---------------
:class:`AdviewError` is the base class for all adview-specific errors. A file
that cannot be opened raises :class:`ContainerOpenError`; an unknown or
unsupported encoding raises :class:`UnknownEncodingError` or
:class:`UnsupportedVersionError`; a malformed table raises
:class:`InconsistentRowCountError` or :class:`CategoryIndexOutOfRangeError`.
"""

from ._column import (
    ArrayColumn,
    CategoricalColumn,
    Column,
    NullableColumn,
    open_column,
)
from ._commands import (
    WriteStatus,
    all_rows,
    export_csv,
    fields,
    head,
    shape,
    show_all,
    show_fields,
    show_head,
    show_shape,
)
from ._dataframe import DataFrame, Row
from ._encoding import (
    ArrayEncoding,
    CategoricalEncoding,
    DataFrameEncoding,
    Encoding,
    EncodingType,
    NullableEncoding,
    StringArrayEncoding,
    resolve,
)
from ._exception import (
    AdviewError,
    CategoryIndexOutOfRangeError,
    ColumnNotFoundError,
    ContainerOpenError,
    InconsistentRowCountError,
    UnknownEncodingError,
    UnsupportedVersionError,
)
from ._general_utilities import get_implementation_version, show_package_versions
from ._h5ad import H5AD, open
from .options import ReadOptions

__version__ = get_implementation_version()

__all__ = [
    "AdviewError",
    "ArrayColumn",
    "ArrayEncoding",
    "CategoricalColumn",
    "CategoricalEncoding",
    "CategoryIndexOutOfRangeError",
    "Column",
    "ColumnNotFoundError",
    "ContainerOpenError",
    "DataFrame",
    "DataFrameEncoding",
    "Encoding",
    "EncodingType",
    "H5AD",
    "InconsistentRowCountError",
    "NullableColumn",
    "NullableEncoding",
    "ReadOptions",
    "Row",
    "StringArrayEncoding",
    "UnknownEncodingError",
    "UnsupportedVersionError",
    "WriteStatus",
    "all_rows",
    "export_csv",
    "fields",
    "get_implementation_version",
    "head",
    "open",
    "open_column",
    "resolve",
    "shape",
    "show_all",
    "show_fields",
    "show_head",
    "show_package_versions",
]
