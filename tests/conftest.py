from __future__ import annotations

import pathlib

import h5py
import numpy as np
import pytest

from adview import Row, logging

from ._util import (
    write_array,
    write_categorical,
    write_dataframe,
    write_dense_matrix,
    write_nullable,
    write_sparse_matrix,
    write_string_array,
)

OBS_COLUMNS = ("cell_type", "n_genes", "score", "count", "flag", "note")

# What ``pbmc_like`` decodes to, row by row.
OBS_ROWS = [
    Row(
        0,
        "c1",
        (
            ("cell_type", "A"),
            ("n_genes", "10"),
            ("score", "0.5"),
            ("count", "1"),
            ("flag", "True"),
            ("note", "x"),
        ),
    ),
    Row(
        1,
        "c2",
        (
            ("cell_type", "B"),
            ("n_genes", "20"),
            ("score", None),
            ("count", None),
            ("flag", "False"),
            ("note", ""),
        ),
    ),
    Row(
        2,
        "c3",
        (
            ("cell_type", None),
            ("n_genes", "30"),
            ("score", "1.25"),
            ("count", "3"),
            ("flag", None),
            ("note", "hello, world"),
        ),
    ),
]

VAR_ROWS = [
    Row(0, "g1", (("highly_variable", "True"), ("gene_ids", "ENSG1"))),
    Row(1, "g2", (("highly_variable", "False"), ("gene_ids", "ENSG2"))),
    Row(2, "g3", (("highly_variable", "False"), ("gene_ids", "ENSG3"))),
    Row(3, "g4", (("highly_variable", "True"), ("gene_ids", "ENSG4"))),
]


@pytest.fixture
def pbmc_like(tmp_path: pathlib.Path) -> pathlib.Path:
    """A small file using every supported column encoding."""
    path = tmp_path / "pbmc_like.h5ad"
    with h5py.File(path, "w") as f:
        obs = write_dataframe(f, "obs", ["c1", "c2", "c3"], column_order=OBS_COLUMNS)
        write_categorical(obs, "cell_type", [0, 1, -1], ["A", "B"])
        write_array(obs, "n_genes", [10, 20, 30], dtype=np.int64)
        write_array(obs, "score", [0.5, np.nan, 1.25], dtype=np.float64)
        write_nullable(obs, "count", [1, 999, 3], [False, True, False])
        write_nullable(
            obs,
            "flag",
            [True, False, True],
            [False, False, True],
            encoding_type="nullable-boolean",
        )
        write_string_array(obs, "note", ["x", "", "hello, world"])

        var = write_dataframe(
            f,
            "var",
            ["g1", "g2", "g3", "g4"],
            index_name="symbol",
            column_order=["highly_variable", "gene_ids"],
        )
        write_array(var, "highly_variable", [True, False, False, True], dtype=bool)
        write_string_array(var, "gene_ids", ["ENSG1", "ENSG2", "ENSG3", "ENSG4"])

        write_dense_matrix(f, (3, 4))
    return path


@pytest.fixture
def large_obs(tmp_path: pathlib.Path) -> pathlib.Path:
    """1000 cells with a categorical column spanning many chunks, and a var
    table with no member columns."""
    rng = np.random.default_rng(12345)
    n = 1000
    path = tmp_path / "large_obs.h5ad"
    with h5py.File(path, "w") as f:
        obs = write_dataframe(
            f,
            "obs",
            [f"cell{i}" for i in range(n)],
            column_order=["cluster", "umi", "doublet"],
        )
        write_categorical(
            obs,
            "cluster",
            rng.integers(-1, 7, size=n),
            [f"cluster_{k}" for k in range(7)],
        )
        umi = rng.random(n)
        umi[rng.random(n) < 0.1] = np.nan
        write_array(obs, "umi", umi)
        write_nullable(
            obs,
            "doublet",
            rng.random(n) < 0.5,
            rng.random(n) < 0.2,
            encoding_type="nullable-boolean",
        )
        write_dataframe(f, "var", ["only_gene"])
    return path


@pytest.fixture
def atlas_shaped(tmp_path: pathlib.Path) -> pathlib.Path:
    """The annotation shape of a 15235-cell, 36601-gene atlas, with a sparse X."""
    path = tmp_path / "atlas.h5ad"
    with h5py.File(path, "w") as f:
        obs = write_dataframe(
            f,
            "obs",
            [f"cell{i}" for i in range(15235)],
            column_order=["leiden"],
        )
        write_categorical(
            obs, "leiden", np.zeros(15235, dtype=np.int8), ["0"]
        )
        write_dataframe(f, "var", [f"gene{i}" for i in range(36601)])
        write_sparse_matrix(f, (15235, 36601))
    return path


@pytest.fixture
def h5_file(tmp_path: pathlib.Path):
    """An empty writable HDF5 file, for building one-off layouts."""
    with h5py.File(tmp_path / "scratch.h5ad", "w") as f:
        yield f


@pytest.fixture(autouse=True)
def reset_log_level():
    yield
    logging.warning()
