# Copyright (c) TileDB, Inc. and The Chan Zuckerberg Initiative Foundation
#
# Licensed under the MIT License.

from __future__ import annotations

import pathlib
from typing import Optional, Tuple, Union

import h5py
from typing_extensions import Literal, TypeAlias

Path: TypeAlias = Union[str, pathlib.Path]

Node: TypeAlias = Union[h5py.Group, h5py.Dataset]

DisplayValue: TypeAlias = Optional[str]
"""A rendered cell. ``None`` is the missing marker."""

TableName = Literal["obs", "var"]

NTuple = Tuple[int, ...]
