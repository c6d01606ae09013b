# Copyright (c) TileDB, Inc. and The Chan Zuckerberg Initiative Foundation
#
# Licensed under the MIT License.

"""Classification of H5AD nodes by their ``encoding-type`` attributes.

Every group or dataset that AnnData writes carries ``encoding-type`` and
``encoding-version`` attributes. :func:`resolve` reads those once and returns
a tagged variant holding exactly the child nodes needed to decode the node,
so that decode paths never have to re-inspect attributes.
"""

from __future__ import annotations

import enum
from typing import Callable, ClassVar, Dict, FrozenSet, Optional, Union

import attrs
import h5py
import numpy as np

from ._constants import (
    CATEGORICAL_ORDERED_KEY,
    ENCODING_TYPE_KEY,
    ENCODING_VERSION_KEY,
    LEGACY_CATEGORIES_KEY,
)
from ._exception import UnknownEncodingError, UnsupportedVersionError
from ._types import Node
from ._util import to_str


class EncodingType(enum.Enum):
    """The ``encoding-type`` tags this package can decode."""

    DATAFRAME = "dataframe"
    CATEGORICAL = "categorical"
    STRING_ARRAY = "string-array"
    ARRAY = "array"
    NULLABLE_INTEGER = "nullable-integer"
    NULLABLE_BOOLEAN = "nullable-boolean"


SUPPORTED_VERSIONS: Dict[EncodingType, FrozenSet[str]] = {
    EncodingType.DATAFRAME: frozenset({"0.1.0", "0.2.0"}),
    EncodingType.CATEGORICAL: frozenset({"0.2.0"}),
    EncodingType.STRING_ARRAY: frozenset({"0.2.0"}),
    EncodingType.ARRAY: frozenset({"0.2.0"}),
    EncodingType.NULLABLE_INTEGER: frozenset({"0.1.0"}),
    EncodingType.NULLABLE_BOOLEAN: frozenset({"0.1.0"}),
}


@attrs.define(frozen=True)
class DataFrameEncoding:
    group: h5py.Group
    encoding_version: Optional[str]

    encoding_type: ClassVar[EncodingType] = EncodingType.DATAFRAME

    @property
    def path(self) -> str:
        return str(self.group.name)


@attrs.define(frozen=True)
class ArrayEncoding:
    """A plain dataset. ``encoding_version`` is ``None`` when the dataset
    carried no encoding attributes and was classified by its dtype."""

    dataset: h5py.Dataset
    encoding_version: Optional[str]

    encoding_type: ClassVar[EncodingType] = EncodingType.ARRAY

    @property
    def path(self) -> str:
        return str(self.dataset.name)


@attrs.define(frozen=True)
class StringArrayEncoding:
    dataset: h5py.Dataset
    encoding_version: Optional[str]

    encoding_type: ClassVar[EncodingType] = EncodingType.STRING_ARRAY

    @property
    def path(self) -> str:
        return str(self.dataset.name)


@attrs.define(frozen=True)
class CategoricalEncoding:
    """Integer ``codes`` looked up in a separate ``categories`` dictionary.

    For files written with ``dataframe`` 0.1.0 the codes are a bare dataset
    whose ``categories`` attribute references the dictionary; ``path`` is
    then the codes dataset itself.
    """

    codes: h5py.Dataset
    categories: h5py.Dataset
    ordered: bool
    encoding_version: Optional[str]
    node: Node

    encoding_type: ClassVar[EncodingType] = EncodingType.CATEGORICAL

    @property
    def path(self) -> str:
        return str(self.node.name)


@attrs.define(frozen=True)
class NullableEncoding:
    """``values`` plus a parallel boolean ``mask``; true means missing."""

    group: h5py.Group
    values: h5py.Dataset
    mask: h5py.Dataset
    encoding_type: EncodingType
    encoding_version: Optional[str]

    @property
    def path(self) -> str:
        return str(self.group.name)


Encoding = Union[
    DataFrameEncoding,
    ArrayEncoding,
    StringArrayEncoding,
    CategoricalEncoding,
    NullableEncoding,
]

ColumnEncoding = Union[
    ArrayEncoding,
    StringArrayEncoding,
    CategoricalEncoding,
    NullableEncoding,
]


def resolve(node: Node) -> Encoding:
    """Classifies ``node`` into one of the known encodings.

    Raises:
        UnknownEncodingError: if the tag is not known, or the node lacks the
            structure its tag requires.
        UnsupportedVersionError: if the tag is known but the version is not.
    """
    raw_type = node.attrs.get(ENCODING_TYPE_KEY)
    if raw_type is None:
        return _infer(node)

    type_name = to_str(raw_type)
    try:
        encoding_type = EncodingType(type_name)
    except ValueError:
        raise UnknownEncodingError(
            node.name, f"unknown encoding-type {type_name!r}"
        ) from None

    raw_version = node.attrs.get(ENCODING_VERSION_KEY)
    version = None if raw_version is None else to_str(raw_version)
    if version not in SUPPORTED_VERSIONS[encoding_type]:
        raise UnsupportedVersionError(node.name, type_name, version)

    return _BUILDERS[encoding_type](node, version)


def is_decodable_dtype(dtype: np.dtype) -> bool:
    """True for the storage types ``array`` columns can be rendered from."""
    return h5py.check_string_dtype(dtype) is not None or dtype.kind in "biuf"


def _infer(node: Node) -> Encoding:
    if not isinstance(node, h5py.Dataset):
        raise UnknownEncodingError(node.name, "group has no encoding-type attribute")

    ref = node.attrs.get(LEGACY_CATEGORIES_KEY)
    if isinstance(ref, h5py.Reference):
        if not ref:
            raise UnknownEncodingError(node.name, "null categories reference")
        categories = node.file[ref]
        if not isinstance(categories, h5py.Dataset):
            raise UnknownEncodingError(
                node.name, "categories reference does not point to a dataset"
            )
        return CategoricalEncoding(
            codes=_checked_codes(node),
            categories=categories,
            ordered=bool(node.attrs.get(CATEGORICAL_ORDERED_KEY, False)),
            encoding_version=None,
            node=node,
        )

    if not is_decodable_dtype(node.dtype):
        raise UnknownEncodingError(
            node.name, f"cannot infer an encoding for dtype {node.dtype}"
        )
    return ArrayEncoding(dataset=node, encoding_version=None)


def _require_group(node: Node, type_name: str) -> h5py.Group:
    if not isinstance(node, h5py.Group):
        raise UnknownEncodingError(
            node.name, f"encoding-type {type_name!r} must be stored as a group"
        )
    return node


def _require_dataset(node: Node, type_name: str) -> h5py.Dataset:
    if not isinstance(node, h5py.Dataset):
        raise UnknownEncodingError(
            node.name, f"encoding-type {type_name!r} must be stored as a dataset"
        )
    return node


def _require_child(group: h5py.Group, key: str) -> h5py.Dataset:
    child = group.get(key)
    if child is None:
        raise UnknownEncodingError(group.name, f"missing child {key!r}")
    if not isinstance(child, h5py.Dataset):
        raise UnknownEncodingError(group.name, f"child {key!r} is not a dataset")
    return child


def _checked_codes(codes: h5py.Dataset) -> h5py.Dataset:
    if codes.dtype.kind not in "iu":
        raise UnknownEncodingError(
            codes.name, f"categorical codes must be integers, not {codes.dtype}"
        )
    return codes


def _build_dataframe(node: Node, version: Optional[str]) -> Encoding:
    return DataFrameEncoding(
        group=_require_group(node, "dataframe"), encoding_version=version
    )


def _build_array(node: Node, version: Optional[str]) -> Encoding:
    return ArrayEncoding(
        dataset=_require_dataset(node, "array"), encoding_version=version
    )


def _build_string_array(node: Node, version: Optional[str]) -> Encoding:
    return StringArrayEncoding(
        dataset=_require_dataset(node, "string-array"), encoding_version=version
    )


def _build_categorical(node: Node, version: Optional[str]) -> Encoding:
    group = _require_group(node, "categorical")
    return CategoricalEncoding(
        codes=_checked_codes(_require_child(group, "codes")),
        categories=_require_child(group, "categories"),
        ordered=bool(group.attrs.get(CATEGORICAL_ORDERED_KEY, False)),
        encoding_version=version,
        node=group,
    )


def _nullable_builder(
    encoding_type: EncodingType,
) -> Callable[[Node, Optional[str]], Encoding]:
    def build(node: Node, version: Optional[str]) -> Encoding:
        group = _require_group(node, encoding_type.value)
        return NullableEncoding(
            group=group,
            values=_require_child(group, "values"),
            mask=_require_child(group, "mask"),
            encoding_type=encoding_type,
            encoding_version=version,
        )

    return build


_BUILDERS: Dict[EncodingType, Callable[[Node, Optional[str]], Encoding]] = {
    EncodingType.DATAFRAME: _build_dataframe,
    EncodingType.ARRAY: _build_array,
    EncodingType.STRING_ARRAY: _build_string_array,
    EncodingType.CATEGORICAL: _build_categorical,
    EncodingType.NULLABLE_INTEGER: _nullable_builder(EncodingType.NULLABLE_INTEGER),
    EncodingType.NULLABLE_BOOLEAN: _nullable_builder(EncodingType.NULLABLE_BOOLEAN),
}
