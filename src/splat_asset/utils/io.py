"""File I/O utilities for asset conversion."""
from __future__ import annotations

import hashlib
import json
import os
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

import numpy as np


def ensure_local_dir(path: Path) -> Path:
    """Ensure a directory exists, creating it if necessary.

    Args:
        path: Directory path to create.

    Returns:
        The same path, for chaining.
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


@contextmanager
def temp_workspace(
    prefix: str = "splat_asset_",
    parent: Optional[Path] = None,
    cleanup: bool = True,
) -> Iterator[Path]:
    """Create a temporary workspace directory.

    Args:
        prefix: Prefix for the temp directory name.
        parent: Directory to create the workspace in (system temp if None).
        cleanup: Whether to delete the directory on exit.

    Yields:
        Path to the temporary directory.
    """
    workspace = Path(tempfile.mkdtemp(prefix=prefix, dir=parent))
    try:
        yield workspace
    finally:
        if cleanup and workspace.exists():
            shutil.rmtree(workspace)


def compute_checksum(path: Path, algorithm: str = "sha256") -> str:
    """Compute checksum of a file.

    Args:
        path: File path.
        algorithm: Hash algorithm ('md5', 'sha256', etc.).

    Returns:
        Hex-encoded checksum string.
    """
    hasher = hashlib.new(algorithm)
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            hasher.update(chunk)
    return hasher.hexdigest()


def save_json(data: Union[Dict, List], path: Path, indent: int = 2) -> Path:
    """Save data as JSON file.

    Args:
        data: Data to serialize.
        path: Output path.
        indent: JSON indentation (0 for compact).

    Returns:
        Path to saved file.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=indent if indent > 0 else None, default=_json_serializer)
    return path


def load_json(path: Path) -> Union[Dict, List]:
    """Load data from JSON file.

    Args:
        path: Path to JSON file.

    Returns:
        Loaded data.
    """
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def load_config_file(path: Path) -> Dict[str, Any]:
    """Load a configuration mapping from a JSON or YAML file."""
    if path.suffix in (".yaml", ".yml"):
        try:
            import yaml
        except ImportError:
            raise ImportError("pyyaml is required for YAML configs. Install with: pip install pyyaml")
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    else:
        data = load_json(path)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {path}")
    return data


def _json_serializer(obj: Any) -> Any:
    """Custom JSON serializer for special types."""
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.floating):
        return float(obj)
    if isinstance(obj, Path):
        return str(obj)
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    raise TypeError(f"Object of type {type(obj)} is not JSON serializable")


def save_numpy(array: "np.ndarray", path: Path) -> Path:
    """Save numpy array to a .npy file.

    Args:
        array: Array to save.
        path: Output path.

    Returns:
        Path to saved file.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    np.save(path, array)
    return path


def load_numpy(path: Path) -> "np.ndarray":
    """Load numpy array from a .npy file."""
    return np.load(path)


def _import_cv2():
    # OpenCV only enables its EXR codec when this is set before import.
    os.environ.setdefault("OPENCV_IO_ENABLE_OPENEXR", "1")
    try:
        import cv2
    except ImportError:
        raise ImportError("OpenCV is required for EXR output. Install with: pip install opencv-python")
    return cv2


def save_exr(image: "np.ndarray", path: Path) -> Path:
    """Save a float image as an uncompressed 32-bit float EXR.

    Args:
        image: Image array (H, W, 3) RGB or (H, W, 4) RGBA.
        path: Output path.

    Returns:
        Path to saved image.
    """
    cv2 = _import_cv2()

    if image.ndim != 3 or image.shape[2] not in (3, 4):
        raise ValueError(f"Expected an (H, W, 3|4) image, got shape {image.shape}")

    path.parent.mkdir(parents=True, exist_ok=True)

    # OpenCV stores channels as BGR(A)
    order = [2, 1, 0] if image.shape[2] == 3 else [2, 1, 0, 3]
    bgr = np.ascontiguousarray(image[:, :, order], dtype=np.float32)

    params = [
        cv2.IMWRITE_EXR_TYPE, cv2.IMWRITE_EXR_TYPE_FLOAT,
        cv2.IMWRITE_EXR_COMPRESSION, cv2.IMWRITE_EXR_COMPRESSION_NO,
    ]
    if not cv2.imwrite(str(path), bgr, params):
        raise RuntimeError(f"OpenCV failed to write EXR image: {path}")
    return path


def load_exr(path: Path) -> "np.ndarray":
    """Load a float EXR image as an (H, W, C) RGB(A) array."""
    cv2 = _import_cv2()

    image = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    if image is None:
        raise RuntimeError(f"OpenCV failed to read EXR image: {path}")

    order = [2, 1, 0] if image.shape[2] == 3 else [2, 1, 0, 3]
    return np.ascontiguousarray(image[:, :, order])
