# Copyright (c) TileDB, Inc. and The Chan Zuckerberg Initiative Foundation
#
# Licensed under the MIT License.

from ._read_options import ReadConfig, ReadOptions

__all__ = [
    "ReadConfig",
    "ReadOptions",
]
