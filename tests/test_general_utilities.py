import io
from unittest import mock

import h5py

import adview
from adview._general_utilities import get_hdf5_version


def test_versions_api():
    assert adview.get_implementation_version() == adview.__version__


def test_unknown_version_when_not_installed():
    with mock.patch(
        "importlib.metadata.version",
        side_effect=adview._general_utilities.importlib.metadata.PackageNotFoundError,
    ):
        assert adview.get_implementation_version() == "unknown"


def test_show_package_versions():
    out = io.StringIO()
    adview.show_package_versions(out)
    text = out.getvalue()
    assert text.splitlines()[0].startswith("adview.__version__")
    assert h5py.__version__ in text
    assert get_hdf5_version() in text
