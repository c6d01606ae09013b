# Copyright (c) TileDB, Inc. and The Chan Zuckerberg Initiative Foundation
#
# Licensed under the MIT License.

"""Column decoders.

A :class:`Column` turns one classified H5AD node into a lazy, restartable
sequence of display values. Values are read from the file in ranged chunks of
``ReadOptions.chunk_size`` elements, so memory is bounded by the chunk size
(plus, for categoricals, the number of distinct categories) rather than by
the number of rows.
"""

from __future__ import annotations

import abc
from typing import Iterator, List, Optional

import h5py
import numpy as np
import numpy.typing as npt

from . import logging
from ._constants import CATEGORICAL_MISSING_CODE
from ._encoding import (
    ArrayEncoding,
    CategoricalEncoding,
    ColumnEncoding,
    Encoding,
    NullableEncoding,
    StringArrayEncoding,
)
from ._exception import (
    CategoryIndexOutOfRangeError,
    InconsistentRowCountError,
    UnknownEncodingError,
)
from ._types import DisplayValue
from ._util import chunk_ranges, clamp_range
from .options import ReadOptions


def read_range(dataset: h5py.Dataset, start: int, stop: int) -> npt.NDArray[np.generic]:
    """Reads ``dataset[start:stop]``, decoding text to ``str``."""
    if h5py.check_string_dtype(dataset.dtype) is not None:
        return dataset.asstr(encoding="utf-8", errors="replace")[start:stop]
    return dataset[start:stop]


def format_values(chunk: npt.NDArray[np.generic]) -> List[DisplayValue]:
    """Renders a 1-d chunk as display strings according to its storage type.

    Floating-point NaN is the missing marker. Everything else is present,
    including the empty string.
    """
    kind = chunk.dtype.kind
    if kind == "f":
        isnan = np.isnan(chunk)
        return [None if m else str(v) for v, m in zip(chunk, isnan)]
    if kind == "S":
        return [bytes(v).decode("utf-8", errors="replace") for v in chunk]
    return [str(v) for v in chunk.tolist()]


def _require_1d(dataset: h5py.Dataset) -> h5py.Dataset:
    if dataset.ndim != 1:
        raise UnknownEncodingError(
            dataset.name, f"expected a 1-d dataset, found shape {dataset.shape}"
        )
    return dataset


class Column(metaclass=abc.ABCMeta):
    """One decoded annotation column.

    ``len(column)`` comes from the stored shape and never reads data.
    ``values()`` returns a fresh iterator on every call, re-reading from the
    file each time.

    Lifecycle:
        Experimental.
    """

    def __init__(self, name: str, encoding: ColumnEncoding, options: ReadOptions):
        self.name = name
        self.encoding = encoding
        self._options = options

    @property
    def path(self) -> str:
        return self.encoding.path

    @property
    def encoding_type(self) -> str:
        return self.encoding.encoding_type.value

    @abc.abstractmethod
    def __len__(self) -> int:
        raise NotImplementedError()

    def values(self, start: int = 0, stop: Optional[int] = None) -> Iterator[DisplayValue]:
        """Lazily yields the display values of rows ``[start, stop)``.

        Nothing at or past ``stop`` is read from the file.
        """
        lo, hi = clamp_range(len(self), start, stop)
        return self._iter_values(lo, hi)

    def __iter__(self) -> Iterator[DisplayValue]:
        return self.values()

    @abc.abstractmethod
    def _iter_values(self, start: int, stop: int) -> Iterator[DisplayValue]:
        raise NotImplementedError()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r} {self.encoding_type} len={len(self)}>"


class ArrayColumn(Column):
    """``array`` and ``string-array`` columns: one dataset, read directly."""

    def __init__(
        self,
        name: str,
        encoding: ArrayEncoding | StringArrayEncoding,
        options: ReadOptions,
    ):
        super().__init__(name, encoding, options)
        self._dataset = _require_1d(encoding.dataset)

    def __len__(self) -> int:
        return int(self._dataset.shape[0])

    def _iter_values(self, start: int, stop: int) -> Iterator[DisplayValue]:
        for lo, hi in chunk_ranges(start, stop, self._options.chunk_size):
            logging.log_io(None, f"READ {self.path} [{lo}:{hi})")
            yield from format_values(read_range(self._dataset, lo, hi))


class CategoricalColumn(Column):
    """``categorical`` columns.

    The categories are read in full once per iteration and the codes are
    streamed against them. Code ``-1`` is the missing marker; any other code
    outside ``[0, len(categories))`` is an error.
    """

    def __init__(self, name: str, encoding: CategoricalEncoding, options: ReadOptions):
        super().__init__(name, encoding, options)
        self._codes = _require_1d(encoding.codes)
        self._categories = _require_1d(encoding.categories)

    def __len__(self) -> int:
        return int(self._codes.shape[0])

    @property
    def ordered(self) -> bool:
        return bool(self.encoding.ordered)  # type: ignore[union-attr]

    def categories(self) -> List[DisplayValue]:
        """Returns the formatted category dictionary, in stored order."""
        out: List[DisplayValue] = []
        n = int(self._categories.shape[0])
        for lo, hi in chunk_ranges(0, n, self._options.chunk_size):
            out.extend(format_values(read_range(self._categories, lo, hi)))
        return out

    def _iter_values(self, start: int, stop: int) -> Iterator[DisplayValue]:
        if start >= stop:
            return
        categories = self.categories()
        n_categories = len(categories)
        logging.log_io(
            None, f"READ {self._categories.name}: {n_categories} categories"
        )
        # The trailing None is what code -1 lands on.
        lookup = np.empty(n_categories + 1, dtype=object)
        lookup[:n_categories] = categories
        lookup[n_categories] = None

        for lo, hi in chunk_ranges(start, stop, self._options.chunk_size):
            logging.log_io(None, f"READ {self._codes.name} [{lo}:{hi})")
            raw = np.asarray(self._codes[lo:hi])
            # Checked before the cast: uint64 codes past 2**63 would wrap.
            if raw.dtype.kind == "u":
                bad = raw >= n_categories
            else:
                bad = (raw < CATEGORICAL_MISSING_CODE) | (raw >= n_categories)
            if bad.any():
                code = int(raw[np.argmax(bad)])
                raise CategoryIndexOutOfRangeError(self.path, code, n_categories)
            yield from lookup[raw.astype(np.int64)].tolist()


class NullableColumn(Column):
    """``nullable-integer`` and ``nullable-boolean`` columns.

    ``values`` and ``mask`` are read in lock-step; wherever the mask is set
    the row is missing, whatever ``values`` holds there.
    """

    def __init__(self, name: str, encoding: NullableEncoding, options: ReadOptions):
        super().__init__(name, encoding, options)
        self._values = _require_1d(encoding.values)
        self._mask = _require_1d(encoding.mask)
        if self._mask.shape[0] != self._values.shape[0]:
            raise InconsistentRowCountError(
                self._mask.name, int(self._values.shape[0]), int(self._mask.shape[0])
            )

    def __len__(self) -> int:
        return int(self._values.shape[0])

    def _iter_values(self, start: int, stop: int) -> Iterator[DisplayValue]:
        for lo, hi in chunk_ranges(start, stop, self._options.chunk_size):
            logging.log_io(None, f"READ {self.path} values+mask [{lo}:{hi})")
            values = format_values(read_range(self._values, lo, hi))
            mask = np.asarray(self._mask[lo:hi], dtype=bool)
            for value, missing in zip(values, mask.tolist()):
                yield None if missing else value


def open_column(name: str, encoding: Encoding, options: ReadOptions) -> Column:
    """Opens the decoder for an already-resolved column encoding."""
    if isinstance(encoding, (ArrayEncoding, StringArrayEncoding)):
        return ArrayColumn(name, encoding, options)
    if isinstance(encoding, CategoricalEncoding):
        return CategoricalColumn(name, encoding, options)
    if isinstance(encoding, NullableEncoding):
        return NullableColumn(name, encoding, options)
    raise UnknownEncodingError(
        encoding.path,
        f"encoding-type {encoding.encoding_type.value!r} cannot be used as a column",
    )
