import h5py
import numpy as np
import pytest

from adview import (
    ColumnNotFoundError,
    DataFrame,
    InconsistentRowCountError,
    ReadOptions,
    Row,
    UnknownEncodingError,
    UnsupportedVersionError,
)

from adview._dataframe import count_rows, field_tags

from ._util import (
    STR_DTYPE,
    count_dataset_reads,
    set_encoding,
    write_array,
    write_categorical,
    write_dataframe,
    write_string_array,
)
from .conftest import OBS_COLUMNS, OBS_ROWS, VAR_ROWS


@pytest.fixture
def obs(pbmc_like):
    with h5py.File(pbmc_like, "r") as f:
        yield DataFrame.open(f["obs"])


def test_open(obs):
    assert obs.path == "/obs"
    assert obs.name == "obs"
    assert obs.encoding_version == "0.2.0"
    assert obs.index_name == "_index"
    assert obs.column_names == OBS_COLUMNS
    assert obs.keys() == ("_index",) + OBS_COLUMNS
    assert obs.row_count() == 3
    assert len(obs) == 3


def test_rows(obs):
    assert list(obs.rows()) == OBS_ROWS
    assert list(obs) == OBS_ROWS


def test_named_index(pbmc_like):
    with h5py.File(pbmc_like, "r") as f:
        var = DataFrame.open(f["var"])
        assert var.index_name == "symbol"
        assert var.keys() == ("symbol", "highly_variable", "gene_ids")
        assert list(var) == VAR_ROWS


def test_rows_are_restartable(obs):
    first = list(obs.rows())
    assert list(obs.rows()) == first


@pytest.mark.parametrize("chunk_size", [1, 2, 4096])
def test_rows_with_chunk_size(pbmc_like, chunk_size):
    with h5py.File(pbmc_like, "r") as f:
        df = DataFrame.open(f["obs"], ReadOptions(chunk_size=chunk_size))
        assert list(df) == OBS_ROWS


def test_row_cells(obs):
    assert OBS_ROWS[1].cells() == ("c2", "B", "20", None, None, "False", "")


def test_column_selection(obs):
    rows = list(obs.rows(["note", "cell_type"]))
    assert rows == [
        Row(0, "c1", (("note", "x"), ("cell_type", "A"))),
        Row(1, "c2", (("note", ""), ("cell_type", "B"))),
        Row(2, "c3", (("note", "hello, world"), ("cell_type", None))),
    ]
    assert list(obs.rows([])) == [Row(i, f"c{i + 1}", ()) for i in range(3)]


def test_ranged_rows(obs):
    assert list(obs.rows(start=1)) == OBS_ROWS[1:]
    assert list(obs.rows(stop=2)) == OBS_ROWS[:2]
    assert list(obs.rows(start=1, stop=2)) == OBS_ROWS[1:2]
    assert list(obs.rows(stop=100)) == OBS_ROWS
    assert list(obs.rows(start=5)) == []


def test_unknown_column(obs):
    with pytest.raises(ColumnNotFoundError) as einfo:
        obs.rows(["cell_type", "nope"])
    assert einfo.value.name == "nope"
    assert "nope" in str(einfo.value)
    with pytest.raises(KeyError):
        obs.column("nope")


def test_column_lookup(obs):
    assert obs.column("cell_type") is obs.column("cell_type")
    assert [c.name for c in obs.columns] == list(OBS_COLUMNS)


def test_encodings(obs):
    assert obs.encodings() == [
        ("_index", "string-array"),
        ("cell_type", "categorical"),
        ("n_genes", "array"),
        ("score", "array"),
        ("count", "nullable-integer"),
        ("flag", "nullable-boolean"),
        ("note", "string-array"),
    ]


def test_open_and_row_count_do_not_read(pbmc_like):
    with h5py.File(pbmc_like, "r") as f:
        with count_dataset_reads() as reads:
            df = DataFrame.open(f["obs"])
            assert df.row_count() == 3
            assert df.keys() == ("_index",) + OBS_COLUMNS
            repr(df)
        assert reads == []


def test_column_length_mismatch(h5_file):
    df = write_dataframe(h5_file, "obs", ["a", "b", "c"], column_order=["short"])
    write_array(df, "short", [1, 2])
    with pytest.raises(InconsistentRowCountError) as einfo:
        DataFrame.open(df)
    assert einfo.value.path == "/obs/short"
    assert einfo.value.expected == 3
    assert einfo.value.actual == 2


def test_listed_column_is_missing(h5_file):
    write_dataframe(h5_file, "obs", ["a"], column_order=["ghost"])
    with pytest.raises(UnknownEncodingError, match="ghost"):
        DataFrame.open(h5_file["obs"])


def test_unsupported_column_fails_open(h5_file):
    df = write_dataframe(h5_file, "obs", ["a", "b"], column_order=["ok", "odd"])
    write_string_array(df, "ok", ["x", "y"])
    odd = df.create_group("odd")
    set_encoding(odd, "nullable-string-array", "0.1.0")
    with pytest.raises(UnknownEncodingError) as einfo:
        DataFrame.open(df)
    assert einfo.value.path == "/obs/odd"


def test_empty_column_order(h5_file):
    write_dataframe(h5_file, "var", ["g1", "g2"], column_order=[])
    df = DataFrame.open(h5_file["var"])
    assert df.column_names == ()
    assert list(df) == [Row(0, "g1", ()), Row(1, "g2", ())]


def test_single_string_column_order(h5_file):
    g = write_dataframe(h5_file, "obs", ["a"], column_order=None)
    g.attrs["column-order"] = "only"
    write_string_array(g, "only", ["v"])
    assert DataFrame.open(g).column_names == ("only",)


def test_missing_column_order_uses_stored_order(h5_file):
    g = write_dataframe(h5_file, "obs", ["a", "b"], column_order=None)
    write_array(g, "zeta", [1, 2])
    write_array(g, "alpha", [3, 4])
    df = DataFrame.open(g)
    expected = tuple(k for k in g.keys() if k != "_index")
    assert df.column_names == expected
    assert set(df.column_names) == {"zeta", "alpha"}


def test_empty_table(h5_file):
    write_dataframe(h5_file, "obs", [], column_order=["c"])
    write_categorical(h5_file["obs"], "c", [], ["a"])
    df = DataFrame.open(h5_file["obs"])
    assert df.row_count() == 0
    assert list(df) == []


def test_not_a_dataframe(h5_file):
    write_string_array(h5_file, "s", ["a"])
    with pytest.raises(UnknownEncodingError, match="dataframe"):
        DataFrame.open(h5_file["s"])


def test_missing_index_attribute(h5_file):
    g = h5_file.create_group("obs")
    set_encoding(g, "dataframe", "0.2.0")
    with pytest.raises(UnknownEncodingError, match="_index"):
        DataFrame.open(g)


def test_missing_index_column(h5_file):
    g = h5_file.create_group("obs")
    set_encoding(g, "dataframe", "0.2.0")
    g.attrs["_index"] = "cell_id"
    with pytest.raises(UnknownEncodingError, match="cell_id"):
        DataFrame.open(g)


def test_unsupported_dataframe_version(h5_file):
    write_dataframe(h5_file, "obs", ["a"], encoding_version="0.3.0")
    with pytest.raises(UnsupportedVersionError):
        DataFrame.open(h5_file["obs"])


def test_legacy_dataframe(h5_file):
    # The layout anndata 0.7 wrote: untagged columns, categories by reference.
    g = h5_file.create_group("obs")
    set_encoding(g, "dataframe", "0.1.0")
    g.attrs["_index"] = "index"
    g.attrs.create(
        "column-order", np.array(["louvain", "n_counts"], dtype=object), dtype=STR_DTYPE
    )
    g.create_dataset(
        "index", data=np.array(["AAAC", "AAAG", "AACT"], dtype=object), dtype=STR_DTYPE
    )
    cats = g.create_group("__categories")
    louvain_cats = cats.create_dataset(
        "louvain", data=np.array(["B cells", "T cells"], dtype=object), dtype=STR_DTYPE
    )
    codes = g.create_dataset("louvain", data=np.array([1, -1, 0], dtype=np.int8))
    codes.attrs["categories"] = louvain_cats.ref
    g.create_dataset("n_counts", data=np.array([2419.0, 4903.0, 3147.0], dtype=np.float32))

    df = DataFrame.open(g)
    assert df.encoding_version == "0.1.0"
    assert list(df) == [
        Row(0, "AAAC", (("louvain", "T cells"), ("n_counts", "2419.0"))),
        Row(1, "AAAG", (("louvain", None), ("n_counts", "4903.0"))),
        Row(2, "AACT", (("louvain", "B cells"), ("n_counts", "3147.0"))),
    ]
    assert df.encodings() == [
        ("index", "array"),
        ("louvain", "categorical"),
        ("n_counts", "array"),
    ]


def test_legacy_dataframe_without_column_order_skips_categories(h5_file):
    g = h5_file.create_group("obs")
    set_encoding(g, "dataframe", "0.1.0")
    g.attrs["_index"] = "index"
    g.create_dataset("index", data=np.array(["a"], dtype=object), dtype=STR_DTYPE)
    cats = g.create_group("__categories")
    c = cats.create_dataset("k", data=np.array(["x"], dtype=object), dtype=STR_DTYPE)
    codes = g.create_dataset("k", data=np.array([0], dtype=np.int8))
    codes.attrs["categories"] = c.ref

    df = DataFrame.open(g)
    assert df.column_names == ("k",)
    assert list(df) == [Row(0, "a", (("k", "x"),))]


def test_index_by_name(obs):
    assert obs.column("_index") is obs.index
    assert list(obs.rows(["_index", "cell_type"], stop=1)) == [
        Row(0, "c1", (("_index", "c1"), ("cell_type", "A")))
    ]


def _with_undecodable_column(h5_file):
    df = write_dataframe(h5_file, "obs", ["a", "b"], column_order=["ok", "odd", "gone"])
    write_string_array(df, "ok", ["x", "y"])
    odd = df.create_group("odd")
    set_encoding(odd, "nullable-string-array", "0.1.0")
    return df


def test_count_rows_skips_member_columns(h5_file):
    df = _with_undecodable_column(h5_file)
    with count_dataset_reads() as reads:
        assert count_rows(df) == 2
    assert reads == []


def test_count_rows_requires_dataframe(h5_file):
    write_string_array(h5_file, "s", ["a"])
    with pytest.raises(UnknownEncodingError, match="dataframe"):
        count_rows(h5_file["s"])


def test_field_tags_as_stored(h5_file):
    df = _with_undecodable_column(h5_file)
    with count_dataset_reads() as reads:
        assert field_tags(df) == [
            ("_index", "string-array"),
            ("ok", "string-array"),
            ("odd", "nullable-string-array"),
            ("gone", "missing"),
        ]
    assert reads == []


def test_field_tags_untagged(h5_file):
    g = h5_file.create_group("obs")
    set_encoding(g, "dataframe", "0.1.0")
    g.attrs["_index"] = "index"
    g.create_dataset("index", data=np.array(["a"], dtype=object), dtype=STR_DTYPE)
    g.create_dataset("n_counts", data=np.array([1.5]))
    g.create_group("blob")
    tags = dict(field_tags(g))
    assert field_tags(g)[0] == ("index", "array")
    assert tags == {"index": "array", "n_counts": "array", "blob": "untagged"}


def test_field_tags_missing_index_attribute(h5_file):
    g = h5_file.create_group("obs")
    set_encoding(g, "dataframe", "0.2.0")
    with pytest.raises(UnknownEncodingError, match="_index"):
        field_tags(g)
