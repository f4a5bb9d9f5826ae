"""Per-splat attribute conversion.

Turns raw 3DGS parameters into the values the renderer samples:

    - rotation: normalized quaternion, swizzled from stored (w, x, y, z)
      to (x, y, z, w)
    - scale: stored as log, converted with exp
    - color: RGB from the SH0 (DC) term, opacity stored as logit -> sigmoid
    - SH1..SHF: passed through (already reordered to RGB triples)

All functions operate on whole arrays; there are no cross-record
dependencies apart from the bounds reduction.
"""

from __future__ import annotations

import warnings
from typing import Tuple

import numpy as np

from .errors import DegenerateInputWarning, EmptyInputError
from .models import AssetBounds, DerivedSplats
from .utils.logging import get_logger

logger = get_logger("transform")

# Zeroth spherical harmonic basis value, 1 / (2 * sqrt(pi))
SH_C0 = 0.28209479177387814

# Output component i takes normalized input component ROTATION_SWIZZLE[i]
ROTATION_SWIZZLE = (1, 2, 3, 0)

IDENTITY_ROTATION = np.array([0.0, 0.0, 0.0, 1.0], dtype=np.float32)


def normalize_swizzle_rotation(rot: np.ndarray) -> np.ndarray:
    """Normalize quaternions and reorder their components for the renderer.

    Zero-length quaternions cannot be normalized; they become the identity
    rotation and a :class:`DegenerateInputWarning` is issued for the batch.

    Args:
        rot: Raw quaternions (..., 4) as stored in the point cloud.

    Returns:
        Unit quaternions (..., 4), float32.
    """
    rot = np.asarray(rot, dtype=np.float32)
    norms = np.linalg.norm(rot, axis=-1, keepdims=True)
    degenerate = ~(norms[..., 0] > 0)

    with np.errstate(divide="ignore", invalid="ignore"):
        unit = rot / norms
    result = unit[..., list(ROTATION_SWIZZLE)]

    if np.any(degenerate):
        count = int(np.count_nonzero(degenerate))
        result[degenerate] = IDENTITY_ROTATION
        logger.warning(f"{count} splat(s) have a zero-length rotation; using identity")
        warnings.warn(
            f"{count} zero-length rotation quaternion(s) replaced by identity",
            DegenerateInputWarning,
            stacklevel=2,
        )

    return result.astype(np.float32, copy=False)


def linear_scale(log_scale: np.ndarray) -> np.ndarray:
    """Convert log-space scales to linear scales (never negative)."""
    log_scale = np.asarray(log_scale)
    return np.abs(np.exp(log_scale))


def sh0_to_color(dc0: np.ndarray) -> np.ndarray:
    """Convert the SH0 (DC) coefficient to RGB. The result is not clamped."""
    dc0 = np.asarray(dc0)
    if not np.issubdtype(dc0.dtype, np.floating):
        dc0 = dc0.astype(np.float64)
    return dc0 * dc0.dtype.type(SH_C0) + dc0.dtype.type(0.5)


def sigmoid(x: np.ndarray) -> np.ndarray:
    """Numerically stable logistic function; sigmoid(0) == 0.5.

    The result lies in (0, 1) only while it is representable in the input
    dtype. Large positive inputs round to exactly 1.0 (above about 17 for
    float32, 37 for float64) and large negative inputs underflow to 0.0
    (below about -104 for float32). Trained opacities have always been
    decoded this way, so no clamping into the open interval is applied.
    """
    x = np.asarray(x)
    if not np.issubdtype(x.dtype, np.floating):
        x = x.astype(np.float64)
    z = np.exp(-np.abs(x))
    one = x.dtype.type(1)
    return np.where(x >= 0, one / (one + z), z / (one + z))


def compute_bounds(positions: np.ndarray) -> AssetBounds:
    """Component-wise min/max over all positions.

    Raises:
        EmptyInputError: If there are no positions.
    """
    positions = np.asarray(positions, dtype=np.float32).reshape(-1, 3)
    if positions.shape[0] == 0:
        raise EmptyInputError("Cannot compute bounds of zero splats")
    return AssetBounds(min=positions.min(axis=0), max=positions.max(axis=0))


def derive_splats(records: np.ndarray) -> Tuple[DerivedSplats, AssetBounds]:
    """Derive packed attributes and bounds from reordered input records.

    Args:
        records: Structured array with dtype ``INPUT_SPLAT_DTYPE``.

    Returns:
        Tuple of (derived attributes, bounds).

    Raises:
        EmptyInputError: If ``records`` is empty.
    """
    if len(records) == 0:
        raise EmptyInputError("Point cloud contains no splats")

    pos = np.ascontiguousarray(records["pos"], dtype=np.float32)
    bounds = compute_bounds(pos)

    color = sh0_to_color(records["dc0"].astype(np.float32))
    alpha = sigmoid(records["opacity"].astype(np.float32))
    col = np.concatenate([color, alpha[:, None]], axis=1).astype(np.float32)

    derived = DerivedSplats(
        pos=pos,
        rot=normalize_swizzle_rotation(records["rot"]),
        scl=linear_scale(records["scale"].astype(np.float32)).astype(np.float32),
        col=col,
        sh=np.ascontiguousarray(records["sh"], dtype=np.float32),
    )

    logger.info(
        f"Derived {len(derived):,} splats, bounds "
        f"{bounds.min.tolist()} .. {bounds.max.tolist()}"
    )
    return derived, bounds
