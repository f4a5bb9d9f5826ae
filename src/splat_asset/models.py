"""Data models for the splat asset converter.

Holds the configuration of a conversion run, the intermediate per-splat
attribute arrays and the scalar asset record written next to the textures.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np

IMAGE_FORMATS = ("exr", "npy")


def _vec3(values) -> np.ndarray:
    return np.asarray(values, dtype=np.float32).reshape(3)


@dataclass
class AssetBounds:
    """Axis-aligned bounds of all splat positions."""
    min: np.ndarray  # (3,)
    max: np.ndarray  # (3,)

    def merge(self, other: "AssetBounds") -> "AssetBounds":
        """Combine two partial bounds (associative and commutative)."""
        return AssetBounds(
            min=np.minimum(self.min, other.min),
            max=np.maximum(self.max, other.max),
        )

    @property
    def center(self) -> np.ndarray:
        return (self.min + self.max) / 2

    @property
    def size(self) -> np.ndarray:
        return self.max - self.min


@dataclass
class DerivedSplats:
    """Per-splat attributes ready for packing, one row per splat.

    Attributes:
        pos: Positions (N, 3).
        rot: Unit quaternions, swizzled for the renderer (N, 4).
        scl: Linear scales (N, 3).
        col: RGB from SH0 plus sigmoid opacity (N, 4).
        sh: Higher-order SH coefficient triples (N, 15, 3).
    """
    pos: np.ndarray
    rot: np.ndarray
    scl: np.ndarray
    col: np.ndarray
    sh: np.ndarray

    def __len__(self) -> int:
        return self.pos.shape[0]


@dataclass
class CameraInfo:
    """Camera position and world-space axis frame in the renderer's convention."""
    pos: np.ndarray
    axis_x: np.ndarray
    axis_y: np.ndarray
    axis_z: np.ndarray
    fov: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pos": self.pos.tolist(),
            "axisX": self.axis_x.tolist(),
            "axisY": self.axis_y.tolist(),
            "axisZ": self.axis_z.tolist(),
            "fov": self.fov,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CameraInfo":
        return cls(
            pos=_vec3(data["pos"]),
            axis_x=_vec3(data["axisX"]),
            axis_y=_vec3(data["axisY"]),
            axis_z=_vec3(data["axisZ"]),
            fov=float(data["fov"]),
        )


@dataclass
class TextureFile:
    """One written planar image of an asset."""
    name: str
    channels: int
    file: str
    checksum: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "channels": self.channels,
            "file": self.file,
            "sha256": self.checksum,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TextureFile":
        return cls(
            name=data["name"],
            channels=int(data["channels"]),
            file=data["file"],
            checksum=data.get("sha256"),
        )


@dataclass
class GaussianSplatAsset:
    """Scalar asset record: splat count, bounds, cameras and texture list."""
    name: str
    splat_count: int
    bounds_min: np.ndarray
    bounds_max: np.ndarray
    texture_width: int
    texture_height: int
    image_format: str = "exr"
    cameras: List[CameraInfo] = field(default_factory=list)
    textures: List[TextureFile] = field(default_factory=list)

    def texture_path(self, name: str, folder: Path) -> Path:
        """Resolve the file of the texture called ``name`` inside ``folder``."""
        for texture in self.textures:
            if texture.name == name:
                return folder / texture.file
        raise KeyError(f"Asset {self.name} has no texture named {name!r}")

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "name": self.name,
            "splatCount": self.splat_count,
            "boundsMin": np.asarray(self.bounds_min).tolist(),
            "boundsMax": np.asarray(self.bounds_max).tolist(),
            "textureWidth": self.texture_width,
            "textureHeight": self.texture_height,
            "imageFormat": self.image_format,
            "cameras": [c.to_dict() for c in self.cameras],
            "textures": [t.to_dict() for t in self.textures],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GaussianSplatAsset":
        """Deserialize from dictionary."""
        return cls(
            name=data["name"],
            splat_count=int(data["splatCount"]),
            bounds_min=_vec3(data["boundsMin"]),
            bounds_max=_vec3(data["boundsMax"]),
            texture_width=int(data["textureWidth"]),
            texture_height=int(data["textureHeight"]),
            image_format=data.get("imageFormat", "exr"),
            cameras=[CameraInfo.from_dict(c) for c in data.get("cameras", [])],
            textures=[TextureFile.from_dict(t) for t in data.get("textures", [])],
        )


@dataclass
class ConverterConfig:
    """Configuration for one asset conversion.

    This can be loaded from a JSON/YAML file and overridden from the CLI.
    """

    input_folder: Optional[str] = None
    output_folder: str = "GaussianAssets"

    # Prefer point_cloud/iteration_30000 over iteration_7000
    use_30k: bool = True

    # Texture layout
    texture_width: int = 2048
    block_height: int = 4
    image_format: str = "exr"

    # Placeholder until focal lengths are used
    camera_fov: float = 25.0

    overwrite: bool = True
    write_report: bool = False

    def validate(self) -> None:
        """Check values that would otherwise fail deep inside the conversion.

        Raises:
            ValueError: If a setting is out of range.
        """
        if self.texture_width <= 0 or self.texture_width & (self.texture_width - 1):
            raise ValueError(f"texture_width must be a power of two, got {self.texture_width}")
        if self.block_height <= 0:
            raise ValueError(f"block_height must be positive, got {self.block_height}")
        if self.image_format not in IMAGE_FORMATS:
            raise ValueError(
                f"image_format must be one of {', '.join(IMAGE_FORMATS)}, got {self.image_format!r}"
            )

    @property
    def base_name(self) -> str:
        """Asset base name: input folder name plus the iteration suffix."""
        folder = Path(self.input_folder or "").resolve().stem
        return folder + ("_30k" if self.use_30k else "_7k")

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "input_folder": self.input_folder,
            "output_folder": self.output_folder,
            "use_30k": self.use_30k,
            "texture_width": self.texture_width,
            "block_height": self.block_height,
            "image_format": self.image_format,
            "camera_fov": self.camera_fov,
            "overwrite": self.overwrite,
            "write_report": self.write_report,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConverterConfig":
        """Deserialize from dictionary."""
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})
