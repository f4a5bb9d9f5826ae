"""Input splat record layout and SH coefficient reordering.

A trained 3DGS point cloud stores, per vertex, 62 float32 values::

    x y z  nx ny nz  f_dc_0..2  f_rest_0..44  opacity  scale_0..2  rot_0..3

``f_rest`` holds the 15 higher-order SH coefficients coefficient-major
(15 red values, then 15 green, then 15 blue). The rest of the converter
wants them channel-major: one RGB triple per coefficient.
"""

from __future__ import annotations

from pathlib import Path
from typing import Union

import numpy as np

from .errors import FormatError
from .ply_reader import PLYVertexData, find_point_cloud_file, read_ply_file
from .utils.logging import get_logger

logger = get_logger("splats")

SH_START_OFFSET = 9  # floats before f_rest: 3 pos + 3 normal + 3 dc
SH_COEFF_COUNT = 15

INPUT_SPLAT_DTYPE = np.dtype([
    ("pos", "<f4", (3,)),
    ("nor", "<f4", (3,)),
    ("dc0", "<f4", (3,)),
    ("sh", "<f4", (SH_COEFF_COUNT, 3)),
    ("opacity", "<f4"),
    ("scale", "<f4", (3,)),
    ("rot", "<f4", (4,)),
])

INPUT_SPLAT_FLOATS = INPUT_SPLAT_DTYPE.itemsize // 4

EXPECTED_ATTRIBUTE_NAMES = (
    ["x", "y", "z", "nx", "ny", "nz", "f_dc_0", "f_dc_1", "f_dc_2"]
    + [f"f_rest_{i}" for i in range(SH_COEFF_COUNT * 3)]
    + ["opacity", "scale_0", "scale_1", "scale_2", "rot_0", "rot_1", "rot_2", "rot_3"]
)


def _sh_block(
    floats: np.ndarray,
    count: int,
    stride_floats: int,
    sh_start: int,
    sh_count: int,
) -> np.ndarray:
    records = floats.reshape(count, stride_floats)
    return records[:, sh_start:sh_start + sh_count * 3]


def reorder_shs(
    floats: np.ndarray,
    count: int,
    stride_floats: int = INPUT_SPLAT_FLOATS,
    sh_start: int = SH_START_OFFSET,
    sh_count: int = SH_COEFF_COUNT,
) -> np.ndarray:
    """Rewrite the SH block of every record from coefficient-major to channel-major, in place.

    Within each record, float ``sh_start + j*3 + c`` receives the value that
    was at ``sh_start + c*sh_count + j`` (coefficient ``j``, channel ``c``).

    Args:
        floats: Flat float32 view of ``count`` records.
        count: Number of records.
        stride_floats: Floats per record.
        sh_start: Offset of the SH block inside a record.
        sh_count: Number of SH coefficients per channel.

    Returns:
        ``floats``, for chaining.
    """
    if count == 0:
        return floats
    block = _sh_block(floats, count, stride_floats, sh_start, sh_count)
    transposed = block.reshape(count, 3, sh_count).transpose(0, 2, 1).copy()
    block[:] = transposed.reshape(count, sh_count * 3)
    return floats


def unreorder_shs(
    floats: np.ndarray,
    count: int,
    stride_floats: int = INPUT_SPLAT_FLOATS,
    sh_start: int = SH_START_OFFSET,
    sh_count: int = SH_COEFF_COUNT,
) -> np.ndarray:
    """Inverse of :func:`reorder_shs`: channel-major back to coefficient-major, in place."""
    if count == 0:
        return floats
    block = _sh_block(floats, count, stride_floats, sh_start, sh_count)
    transposed = block.reshape(count, sh_count, 3).transpose(0, 2, 1).copy()
    block[:] = transposed.reshape(count, sh_count * 3)
    return floats


def as_input_splats(vertex_data: PLYVertexData, path: Union[str, Path, None] = None) -> np.ndarray:
    """Reinterpret raw vertex bytes as input splat records.

    This is the only place raw bytes are viewed as records; the view shares
    memory with ``vertex_data.raw``.

    Raises:
        FormatError: If the record stride is not the expected 248 bytes.
    """
    expected = INPUT_SPLAT_DTYPE.itemsize
    if vertex_data.stride != expected:
        raise FormatError(
            f"InputVertex size mismatch, we expect {expected} but file has {vertex_data.stride}",
            path=path,
            expected=expected,
            actual=vertex_data.stride,
        )
    return vertex_data.raw.view(INPUT_SPLAT_DTYPE)


def load_input_splats(path: Union[str, Path]) -> np.ndarray:
    """Read a point cloud and return its records with SH coefficients reordered.

    Args:
        path: Path to a 3DGS .ply file.

    Returns:
        Structured array with dtype :data:`INPUT_SPLAT_DTYPE`.
    """
    vertex_data = read_ply_file(path)
    records = as_input_splats(vertex_data, path)

    if vertex_data.attribute_names != EXPECTED_ATTRIBUTE_NAMES:
        logger.warning(
            f"Unexpected vertex attributes in {path}; assuming standard 3DGS order "
            f"(got {', '.join(vertex_data.attribute_names[:12])}, ...)"
        )

    floats = vertex_data.raw.view("<f4")
    reorder_shs(floats, vertex_data.count)
    return records


def load_scene_splats(folder: Union[str, Path], use_30k: bool = True) -> np.ndarray:
    """Locate and load the trained point cloud of a scene folder."""
    return load_input_splats(find_point_cloud_file(folder, use_30k))
