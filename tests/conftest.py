"""Shared fixtures: synthetic 3DGS scenes written with plyfile."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Callable, List, Optional

import numpy as np
import pytest
from plyfile import PlyData, PlyElement

from splat_asset.splats import EXPECTED_ATTRIBUTE_NAMES


def _make_vertices(
    count: int,
    seed: int = 0,
    names: Optional[List[str]] = None,
) -> np.ndarray:
    names = list(names or EXPECTED_ATTRIBUTE_NAMES)
    rng = np.random.default_rng(seed)
    vertices = np.zeros(count, dtype=[(name, "<f4") for name in names])
    for name in names:
        vertices[name] = rng.normal(size=count).astype(np.float32)
    return vertices


def _write_ply(path: Path, vertices: np.ndarray) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    element = PlyElement.describe(vertices, "vertex")
    PlyData([element], text=False, byte_order="<").write(str(path))
    return path


@pytest.fixture
def make_vertices() -> Callable[..., np.ndarray]:
    """Factory for structured vertex arrays in the standard 3DGS layout."""
    return _make_vertices


@pytest.fixture
def write_ply() -> Callable[[Path, np.ndarray], Path]:
    """Write a binary little-endian PLY with a single vertex element."""
    return _write_ply


@pytest.fixture
def camera_entries() -> List[dict]:
    return [
        {
            "id": 0,
            "img_name": "00001",
            "width": 1600,
            "height": 1066,
            "position": [1.0, 2.0, 3.0],
            "rotation": [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]],
            "fx": 1159.5,
            "fy": 1164.6,
        },
        {
            "id": 1,
            "img_name": "00002",
            "width": 1600,
            "height": 1066,
            "position": [-0.5, 0.25, 4.0],
            "rotation": [[0.0, 1.0, 0.0], [-1.0, 0.0, 0.0], [0.0, 0.0, 1.0]],
            "fx": 1159.5,
            "fy": 1164.6,
        },
    ]


@pytest.fixture
def scene_folder(tmp_path, camera_entries) -> Path:
    """A trained scene with 5 splats at iteration 30000 and two cameras."""
    folder = tmp_path / "garden"
    _write_ply(
        folder / "point_cloud" / "iteration_30000" / "point_cloud.ply",
        _make_vertices(5, seed=1),
    )
    (folder / "cameras.json").write_text(json.dumps(camera_entries))
    return folder


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers installed by setup_logging so they don't outlive the test's stdout."""
    yield
    logger = logging.getLogger("splat_asset")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
