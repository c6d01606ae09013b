# Copyright (c) TileDB, Inc. and The Chan Zuckerberg Initiative Foundation
#
# Licensed under the MIT License.

"""Global package constants
"""

ENCODING_TYPE_KEY = "encoding-type"
ENCODING_VERSION_KEY = "encoding-version"

DATAFRAME_INDEX_KEY = "_index"
DATAFRAME_COLUMN_ORDER_KEY = "column-order"

# dataframe 0.1.0 keeps categorical dictionaries here, referenced from each
# codes dataset's ``categories`` attribute.
LEGACY_CATEGORIES_GROUP = "__categories"
LEGACY_CATEGORIES_KEY = "categories"

CATEGORICAL_ORDERED_KEY = "ordered"
CATEGORICAL_MISSING_CODE = -1

OBS = "obs"
VAR = "var"
TABLE_NAMES = (OBS, VAR)
MATRIX = "X"
SPARSE_SHAPE_KEY = "shape"

DEFAULT_CHUNK_SIZE = 4096
DEFAULT_MISSING_DISPLAY = "NA"
DEFAULT_NA_REP = ""
CHUNK_SIZE_ENV_VAR = "ADVIEW_CHUNK_SIZE"
