# Copyright (c) TileDB, Inc. and The Chan Zuckerberg Initiative Foundation
#
# Licensed under the MIT License.

"""Exceptions.
"""

from __future__ import annotations

from typing import Optional


class AdviewError(Exception):
    """Base error type for adview-specific exceptions.

    Lifecycle: Maturing.
    """

    pass


class ContainerOpenError(AdviewError):
    """Raised when a file is missing, unreadable, not HDF5, or lacks the
    ``obs``/``var`` groups every H5AD file has.

    Lifecycle: Maturing.
    """

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Failed to open file {path!r}: {reason}")
        self.path = path
        self.reason = reason


class UnknownEncodingError(AdviewError):
    """Raised when a node's ``encoding-type`` is not one we know how to read,
    or when the node does not have the structure its encoding requires.

    Lifecycle: Maturing.
    """

    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path


class UnsupportedVersionError(AdviewError):
    """Raised when a node's ``encoding-version`` is outside the supported
    set for its ``encoding-type``.

    Lifecycle: Maturing.
    """

    def __init__(
        self, path: str, encoding_type: str, encoding_version: Optional[str]
    ) -> None:
        super().__init__(
            f"{path}: unsupported encoding-version {encoding_version!r} "
            f"for encoding-type {encoding_type!r}"
        )
        self.path = path
        self.encoding_type = encoding_type
        self.encoding_version = encoding_version


class InconsistentRowCountError(AdviewError):
    """Raised when a column's length disagrees with its dataframe's index,
    or a nullable column's mask disagrees with its values.

    Lifecycle: Maturing.
    """

    def __init__(self, path: str, expected: int, actual: int) -> None:
        super().__init__(f"{path}: expected {expected} rows, found {actual}")
        self.path = path
        self.expected = expected
        self.actual = actual


class CategoryIndexOutOfRangeError(AdviewError):
    """Raised when a categorical code is neither the missing sentinel nor a
    valid index into the categories.

    Lifecycle: Maturing.
    """

    def __init__(self, path: str, code: int, n_categories: int) -> None:
        super().__init__(
            f"{path}: categorical code {code} is out of range "
            f"for {n_categories} categories"
        )
        self.path = path
        self.code = code
        self.n_categories = n_categories


class ColumnNotFoundError(AdviewError, KeyError):
    """Raised when a requested column is not present in a dataframe.

    Lifecycle: Maturing.
    """

    def __init__(self, path: str, name: str) -> None:
        super().__init__(f"{path}: no column named {name!r}")
        self.path = path
        self.name = name

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message.
        return str(self.args[0])
