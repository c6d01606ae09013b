# Copyright (c) TileDB, Inc. and The Chan Zuckerberg Initiative Foundation
#
# Licensed under the MIT License.

from __future__ import annotations

import os
from typing import Any, Dict, Mapping, Tuple, Union

import attrs as attrs_  # We use the name `attrs` later.
import attrs.validators as vld  # Short name because we use this a bunch.
from typing_extensions import Self

from .._constants import (
    CHUNK_SIZE_ENV_VAR,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_MISSING_DISPLAY,
    DEFAULT_NA_REP,
)

ReadConfig = Mapping[str, object]


def _positive(instance: object, attribute: "attrs_.Attribute[int]", value: int) -> None:
    if value <= 0:
        raise ValueError(f"{attribute.name} must be positive, got {value}")


@attrs_.define(frozen=True, kw_only=True, slots=True)
class ReadOptions:
    """Tuning and rendering options used when reading H5AD annotations.

    ``chunk_size`` is the number of elements fetched from the file per read.
    It bounds peak memory and never changes what is decoded.
    ``missing_display`` is how previews render a missing value, and ``na_rep``
    is how CSV export writes one.
    """

    chunk_size: int = attrs_.field(
        validator=[vld.instance_of(int), _positive], default=DEFAULT_CHUNK_SIZE
    )
    missing_display: str = attrs_.field(
        validator=vld.instance_of(str), default=DEFAULT_MISSING_DISPLAY
    )
    na_rep: str = attrs_.field(validator=vld.instance_of(str), default=DEFAULT_NA_REP)

    @classmethod
    def from_config(cls, config: Union[ReadConfig, "ReadOptions", None] = None) -> Self:
        """Creates the object from a ``ReadOptions`` or a plain dict.

        Keys that are not option names are ignored, so one dict can carry
        settings for several consumers.
        """
        if config is None:
            return cls()
        if isinstance(config, cls):
            return config
        if not isinstance(config, Mapping):
            raise TypeError(f"read options must be a dict, not {type(config)}")
        attrs: Tuple[attrs_.Attribute, ...] = cls.__attrs_attrs__  # type: ignore[type-arg]
        attr_names = frozenset(a.name for a in attrs)
        filtered: Dict[str, Any] = {
            key: value for (key, value) in config.items() if key in attr_names
        }
        return cls(**filtered)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] = os.environ) -> Self:
        """Creates the object, taking ``chunk_size`` from ``ADVIEW_CHUNK_SIZE``
        when it is set.
        """
        raw = environ.get(CHUNK_SIZE_ENV_VAR)
        if raw is None or raw.strip() == "":
            return cls()
        try:
            chunk_size = int(raw)
        except ValueError:
            raise ValueError(
                f"{CHUNK_SIZE_ENV_VAR} must be an integer, got {raw!r}"
            ) from None
        return cls(chunk_size=chunk_size)

    def replace(self, **changes: Any) -> Self:
        """Returns a copy with the given options changed."""
        return attrs_.evolve(self, **changes)
