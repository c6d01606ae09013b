import numpy as np
import pytest

from adview._util import (
    chunk_ranges,
    clamp_range,
    format_elapsed,
    get_start_stamp,
    to_str,
    to_str_list,
)


@pytest.mark.parametrize(
    "start,stop,chunk_size,expected",
    [
        (0, 10, 4, [(0, 4), (4, 8), (8, 10)]),
        (0, 8, 4, [(0, 4), (4, 8)]),
        (3, 5, 100, [(3, 5)]),
        (5, 5, 2, []),
        (0, 3, 1, [(0, 1), (1, 2), (2, 3)]),
    ],
)
def test_chunk_ranges(start, stop, chunk_size, expected):
    assert list(chunk_ranges(start, stop, chunk_size)) == expected


def test_chunk_ranges_rejects_non_positive():
    with pytest.raises(ValueError):
        list(chunk_ranges(0, 10, 0))


def test_clamp_range():
    assert clamp_range(10, 0, None) == (0, 10)
    assert clamp_range(10, 2, 5) == (2, 5)
    assert clamp_range(10, 2, 50) == (2, 10)
    assert clamp_range(10, 12, None) == (10, 10)
    assert clamp_range(10, 6, 4) == (4, 4)
    with pytest.raises(ValueError):
        clamp_range(10, -1, None)


def test_to_str():
    assert to_str("array") == "array"
    assert to_str(b"array") == "array"
    assert to_str(np.bytes_(b"0.2.0")) == "0.2.0"
    assert to_str(np.array("_index", dtype=object)) == "_index"


def test_to_str_list():
    assert to_str_list("a") == ["a"]
    assert to_str_list(b"a") == ["a"]
    assert to_str_list(np.array(["a", "b"], dtype=object)) == ["a", "b"]
    assert to_str_list(np.array([b"a", b"b"])) == ["a", "b"]
    assert to_str_list(np.array([], dtype=np.float64)) == []


def test_format_elapsed():
    s = get_start_stamp()
    assert format_elapsed(s, "DONE").startswith("DONE TIME ")
