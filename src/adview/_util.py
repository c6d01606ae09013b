# Copyright (c) TileDB, Inc. and The Chan Zuckerberg Initiative Foundation
#
# Licensed under the MIT License.

from __future__ import annotations

import time
from typing import Any, Iterator, List, Optional, Tuple

import numpy as np


def get_start_stamp() -> float:
    """Returns information about start time of an event.

    Nominally float seconds since the epoch, but articulated here
    as being compatible with the format_elapsed function.
    """
    return time.time()


def format_elapsed(start_stamp: float, message: str) -> str:
    """Returns the message along with an elapsed-time indicator,
    with end time relative to start start from ``get_start_stamp``.

    Used for annotating elapsed time of a task.
    """
    return "%s TIME %.3f seconds" % (message, time.time() - start_stamp)


def chunk_ranges(start: int, stop: int, chunk_size: int) -> Iterator[Tuple[int, int]]:
    """Yields half-open ``(lo, hi)`` ranges covering ``[start, stop)``, each at
    most ``chunk_size`` long.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    for lo in range(start, stop, chunk_size):
        yield lo, min(lo + chunk_size, stop)


def clamp_range(length: int, start: int, stop: Optional[int]) -> Tuple[int, int]:
    """Normalizes a ``[start, stop)`` request against an axis of ``length``."""
    if start < 0:
        raise ValueError(f"start must be non-negative, got {start}")
    if stop is None or stop > length:
        stop = length
    return min(start, stop), stop


def to_str(value: Any) -> str:
    """Normalizes an HDF5 string attribute value to ``str``.

    h5py hands these back as ``str``, ``bytes``, or numpy scalars depending on
    how the writer stored them.
    """
    if isinstance(value, (bytes, np.bytes_)):
        return bytes(value).decode("utf-8")
    if isinstance(value, np.ndarray) and value.shape == ():
        return to_str(value[()])
    return str(value)


def to_str_list(value: Any) -> List[str]:
    """Normalizes an HDF5 string-list attribute value to a list of ``str``.

    A single string is a one-element list. anndata stores an empty list as an
    empty float array, which comes back here as ``[]``.
    """
    if isinstance(value, (str, bytes, np.bytes_, np.str_)):
        return [to_str(value)]
    return [to_str(v) for v in np.asarray(value).ravel()]
