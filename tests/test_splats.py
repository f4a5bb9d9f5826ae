"""Tests for record layout validation and SH reordering."""
from __future__ import annotations

import logging

import numpy as np
import pytest

from splat_asset.errors import FormatError
from splat_asset.ply_reader import read_ply_file
from splat_asset.splats import (
    EXPECTED_ATTRIBUTE_NAMES,
    INPUT_SPLAT_DTYPE,
    INPUT_SPLAT_FLOATS,
    as_input_splats,
    load_input_splats,
    reorder_shs,
    unreorder_shs,
)


def reference_reorder(data, count, stride, sh_start=9, sh_count=15):
    """Record-by-record transpose with explicit index arithmetic."""
    out = data.copy()
    for i in range(count):
        base = i * stride + sh_start
        tmp = [0.0] * (sh_count * 3)
        for j in range(sh_count):
            tmp[j * 3 + 0] = data[base + j]
            tmp[j * 3 + 1] = data[base + j + sh_count]
            tmp[j * 3 + 2] = data[base + j + sh_count * 2]
        out[base:base + sh_count * 3] = tmp
    return out


def test_record_layout():
    assert INPUT_SPLAT_DTYPE.itemsize == 62 * 4
    assert INPUT_SPLAT_FLOATS == 62
    assert len(EXPECTED_ATTRIBUTE_NAMES) == 62


def test_reorder_matches_reference():
    count = 4
    data = np.arange(count * INPUT_SPLAT_FLOATS, dtype=np.float32)
    expected = reference_reorder(data, count, INPUT_SPLAT_FLOATS)

    reorder_shs(data, count)

    np.testing.assert_array_equal(data, expected)


def test_reorder_first_record_by_hand():
    data = np.arange(INPUT_SPLAT_FLOATS, dtype=np.float32)

    reorder_shs(data, 1)

    # coefficient 0: channels at 9, 24, 39; coefficient 1: 10, 25, 40
    np.testing.assert_array_equal(data[9:15], [9, 24, 39, 10, 25, 40])
    np.testing.assert_array_equal(data[51:54], [23, 38, 53])


def test_reorder_leaves_other_fields_untouched():
    count = 3
    rng = np.random.default_rng(0)
    data = rng.normal(size=count * INPUT_SPLAT_FLOATS).astype(np.float32)
    before = data.reshape(count, -1).copy()

    reorder_shs(data, count)

    after = data.reshape(count, -1)
    np.testing.assert_array_equal(after[:, :9], before[:, :9])
    np.testing.assert_array_equal(after[:, 54:], before[:, 54:])


def test_unreorder_then_reorder_restores_buffer():
    count = 16
    rng = np.random.default_rng(42)
    data = rng.normal(size=count * INPUT_SPLAT_FLOATS).astype(np.float32)
    original = data.copy()

    unreorder_shs(data, count)
    reorder_shs(data, count)

    assert data.tobytes() == original.tobytes()


def test_reorder_zero_records():
    data = np.zeros(0, dtype=np.float32)
    assert reorder_shs(data, 0) is data


def test_stride_mismatch(tmp_path, make_vertices, write_ply):
    names = [n for n in EXPECTED_ATTRIBUTE_NAMES if n != "rot_3"]
    path = write_ply(tmp_path / "cloud.ply", make_vertices(2, names=names))
    vertex_data = read_ply_file(path)

    with pytest.raises(FormatError) as excinfo:
        as_input_splats(vertex_data, path)

    assert excinfo.value.expected == 248
    assert excinfo.value.actual == 244
    assert "248" in str(excinfo.value)
    assert "244" in str(excinfo.value)


def test_load_input_splats(tmp_path, make_vertices, write_ply):
    vertices = make_vertices(6, seed=3)
    path = write_ply(tmp_path / "cloud.ply", vertices)

    records = load_input_splats(path)

    assert records.dtype == INPUT_SPLAT_DTYPE
    assert len(records) == 6
    np.testing.assert_array_equal(records["pos"][:, 2], vertices["z"])
    np.testing.assert_array_equal(records["opacity"], vertices["opacity"])
    np.testing.assert_array_equal(records["rot"][:, 0], vertices["rot_0"])
    for j in range(15):
        for c in range(3):
            np.testing.assert_array_equal(
                records["sh"][:, j, c], vertices[f"f_rest_{c * 15 + j}"]
            )


def test_unexpected_attribute_names_warn(tmp_path, make_vertices, write_ply, caplog):
    names = ["px" if n == "x" else n for n in EXPECTED_ATTRIBUTE_NAMES]
    path = write_ply(tmp_path / "cloud.ply", make_vertices(1, names=names))

    with caplog.at_level(logging.WARNING, logger="splat_asset"):
        records = load_input_splats(path)

    assert len(records) == 1
    assert "Unexpected vertex attributes" in caplog.text
