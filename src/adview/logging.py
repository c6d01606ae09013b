# Copyright (c) TileDB, Inc. and The Chan Zuckerberg Initiative Foundation
#
# Licensed under the MIT License.

import logging
import sys
from typing import Optional


def warning() -> None:
    """Sets ``adview.logging`` to a WARNING level.

    Lifecycle:
        Experimental.
    """
    _set_level(logging.WARNING)


def info() -> None:
    """Sets ``adview.logging`` to an INFO level.
    Use ``adview.logging.info()`` to see which file and columns are opened.

    Lifecycle:
        Experimental.
    """
    _set_level(logging.INFO)


def debug() -> None:
    """Sets ``adview.logging`` to an DEBUG level.
    Use ``adview.logging.debug()`` to see every chunk read from the file.

    Lifecycle:
        Experimental.
    """
    _set_level(logging.DEBUG)


def _set_level(level: int) -> None:
    logger.setLevel(level)
    # Without this check, if someone does ``adview.logging.info()`` twice, or
    # ``adview.logging.info()`` then ``adview.logging.debug()``, etc., then log messages will appear
    # twice.
    if not logger.hasHandlers():
        logger.addHandler(logging.StreamHandler(stream=sys.stderr))


def log_io(info_message: Optional[str], debug_message: str) -> None:
    """Some folks want to know which file is being read; some want to see every chunk.
    For I/O and for I/O only, it's helpful to print a short message at INFO level,
    or a different, longer message at/beyond DEBUG level.

    Lifecycle:
        Experimental.
    """
    if logger.level == logging.INFO:
        if info_message is not None:
            logger.info(info_message)
    elif logger.level <= logging.DEBUG:
        if debug_message is not None:
            logger.debug(debug_message)


def log_io_same(message: str) -> None:
    """Like ``log_io`` but with the same message at both levels."""
    log_io(message, message)


logger = logging.getLogger("adview")
# stdout carries previews and CSV, so log records always go to stderr.
_set_level(logging.WARNING)
