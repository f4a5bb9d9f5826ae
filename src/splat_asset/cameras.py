"""Camera list conversion.

``cameras.json`` written by 3DGS training is a list of::

    {"id": 0, "img_name": "DSC0001", "width": 1600, "height": 1066,
     "position": [x, y, z], "rotation": [[...], [...], [...]],
     "fx": 1100.0, "fy": 1100.0}

``rotation`` is a view matrix: the world-space camera axes are its columns.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Union

import numpy as np

from .errors import FormatError
from .models import CameraInfo
from .utils.io import load_json
from .utils.logging import get_logger

logger = get_logger("cameras")

CAMERAS_JSON = "cameras.json"

# TODO: derive from fx/fy and the image size instead of a fixed value
DEFAULT_CAMERA_FOV = 25.0


@dataclass
class JsonCamera:
    """One entry of ``cameras.json``."""
    id: int
    img_name: str
    width: int
    height: int
    position: np.ndarray  # (3,)
    rotation: np.ndarray  # (3, 3), row-major as stored
    fx: float
    fy: float

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "JsonCamera":
        """Parse one camera entry.

        Raises:
            KeyError, TypeError, ValueError: On missing or malformed fields.
        """
        position = np.asarray(data["position"], dtype=np.float32)
        rotation = np.asarray(data["rotation"], dtype=np.float32)
        if position.shape != (3,):
            raise ValueError(f"position must have 3 values, got shape {position.shape}")
        if rotation.shape != (3, 3):
            raise ValueError(f"rotation must be 3x3, got shape {rotation.shape}")

        return cls(
            id=int(data.get("id", 0)),
            img_name=str(data.get("img_name", "")),
            width=int(data.get("width", 0)),
            height=int(data.get("height", 0)),
            position=position,
            rotation=rotation,
            fx=float(data.get("fx", 0.0)),
            fy=float(data.get("fy", 0.0)),
        )


def convert_camera(camera: JsonCamera, fov: float = DEFAULT_CAMERA_FOV) -> CameraInfo:
    """Convert one camera to the renderer's coordinate convention.

    Axes are read from the columns of the view matrix; then position z,
    the whole Y axis, and the z component of every axis are negated.
    """
    pos = camera.position.astype(np.float32).copy()
    axis_x = camera.rotation[:, 0].astype(np.float32).copy()
    axis_y = camera.rotation[:, 1].astype(np.float32).copy()
    axis_z = camera.rotation[:, 2].astype(np.float32).copy()

    pos[2] *= -1
    axis_y *= -1
    axis_x[2] *= -1
    axis_y[2] *= -1
    axis_z[2] *= -1

    return CameraInfo(pos=pos, axis_x=axis_x, axis_y=axis_y, axis_z=axis_z, fov=fov)


def convert_cameras(entries: List[Dict[str, Any]], fov: float = DEFAULT_CAMERA_FOV) -> List[CameraInfo]:
    """Convert parsed ``cameras.json`` entries, keeping their order."""
    return [convert_camera(JsonCamera.from_dict(entry), fov) for entry in entries]


def load_json_cameras_file(
    folder: Union[str, Path],
    fov: float = DEFAULT_CAMERA_FOV,
) -> List[CameraInfo]:
    """Load and convert ``cameras.json`` from a scene folder.

    Camera data is optional: a missing or empty file yields an empty list.

    Raises:
        FormatError: If the file exists but cannot be parsed.
    """
    path = Path(folder) / CAMERAS_JSON
    if not path.is_file():
        logger.info(f"No {CAMERAS_JSON} in {folder}, asset will have no cameras")
        return []

    try:
        entries = load_json(path)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise FormatError(f"Invalid camera JSON: {e}", path=path)

    if not entries:
        return []
    if not isinstance(entries, list):
        raise FormatError("Camera file must contain a JSON array", path=path)

    try:
        cameras = convert_cameras(entries, fov)
    except (KeyError, TypeError, ValueError) as e:
        raise FormatError(f"Malformed camera entry: {e}", path=path)

    logger.info(f"Loaded {len(cameras)} cameras from {path}")
    return cameras
