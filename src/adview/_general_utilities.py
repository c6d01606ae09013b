# Copyright (c) TileDB, Inc. and The Chan Zuckerberg Initiative Foundation
#
# Licensed under the MIT License.

"""General utility functions."""

import importlib.metadata
import platform
import sys
from typing import Optional, TextIO

import h5py
import numpy as np


def get_implementation_version() -> str:
    """Returns the package implementation version as a semver.

    Lifecycle: Maturing.
    """
    try:
        return importlib.metadata.version("adview")
    except importlib.metadata.PackageNotFoundError:
        return "unknown"


def get_hdf5_version() -> str:
    """Returns the version of the HDF5 library h5py is linked against.

    Lifecycle: Maturing.
    """
    return str(h5py.version.hdf5_version)


def show_package_versions(file: Optional[TextIO] = None) -> None:
    """Nominal use is for bug reports, so issue filers and issue fixers can be on
    the same page.

    Lifecycle: Maturing.
    """
    file = file or sys.stdout
    u = platform.uname()
    # fmt: off
    print("adview.__version__   ", get_implementation_version(), file=file)  # noqa: T201
    print("h5py version         ", h5py.__version__, file=file)  # noqa: T201
    print("HDF5 version         ", get_hdf5_version(), file=file)  # noqa: T201
    print("numpy version        ", np.__version__, file=file)  # noqa: T201
    print("python version       ", ".".join(str(v) for v in sys.version_info), file=file)  # noqa: T201
    print("OS version           ", u.system, u.release, file=file)  # noqa: T201
    # fmt: on
