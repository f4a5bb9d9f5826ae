"""Packing of per-splat attributes into planar float textures.

Every attribute group gets its own W x H image. Splat ``i`` is stored at
pixel ``(i % W, i // W)`` in all of them, i.e. ``image[i // W, i % W]``;
pixels past the last splat stay zero.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Tuple, Union

import numpy as np

from .models import DerivedSplats
from .splats import SH_COEFF_COUNT
from .utils.io import load_exr, load_numpy, save_exr, save_numpy

TEXTURE_WIDTH = 2048
BLOCK_HEIGHT = 4  # compressed texture formats work on 4-row blocks

SH_TEXTURE_NAMES = [f"sh{i:x}" for i in range(1, SH_COEFF_COUNT + 1)]

# (name, channels) in asset order
TEXTURE_LAYOUT: List[Tuple[str, int]] = [
    ("pos", 3),
    ("rot", 4),
    ("scl", 3),
    ("col", 4),
] + [(name, 3) for name in SH_TEXTURE_NAMES]


def compute_texture_size(
    count: int,
    width: int = TEXTURE_WIDTH,
    block_height: int = BLOCK_HEIGHT,
) -> Tuple[int, int]:
    """Compute the texture size that holds ``count`` splats.

    The height is the number of rows needed, at least one, rounded up to a
    multiple of ``block_height``.

    Returns:
        (width, height)
    """
    if count < 0:
        raise ValueError(f"count must be non-negative, got {count}")
    height = max(1, (count + width - 1) // width)
    height = (height + block_height - 1) // block_height * block_height
    return width, height


@dataclass
class TextureSet:
    """All packed images of one asset, sharing one size."""
    width: int
    height: int
    count: int
    images: "OrderedDict[str, np.ndarray]" = field(default_factory=OrderedDict)

    def __getitem__(self, name: str) -> np.ndarray:
        return self.images[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self.images)

    def __len__(self) -> int:
        return len(self.images)

    def items(self):
        return self.images.items()


def _pack(values: np.ndarray, width: int, height: int) -> np.ndarray:
    channels = values.shape[1]
    image = np.zeros((height, width, channels), dtype=np.float32)
    image.reshape(-1, channels)[: values.shape[0]] = values
    return image


def pack_textures(
    derived: DerivedSplats,
    width: int = TEXTURE_WIDTH,
    block_height: int = BLOCK_HEIGHT,
) -> TextureSet:
    """Lay out derived splat attributes into planar float images.

    Args:
        derived: Per-splat attributes.
        width: Texture width in pixels.
        block_height: Height alignment in rows.

    Returns:
        TextureSet with one (H, W, C) float32 image per entry of TEXTURE_LAYOUT.
    """
    count = len(derived)
    width, height = compute_texture_size(count, width, block_height)

    sources: Dict[str, np.ndarray] = {
        "pos": derived.pos,
        "rot": derived.rot,
        "scl": derived.scl,
        "col": derived.col,
    }
    for index, name in enumerate(SH_TEXTURE_NAMES):
        sources[name] = derived.sh[:, index, :]

    textures = TextureSet(width=width, height=height, count=count)
    for name, channels in TEXTURE_LAYOUT:
        values = np.asarray(sources[name], dtype=np.float32)
        if values.shape != (count, channels):
            raise ValueError(
                f"Attribute '{name}' has shape {values.shape}, expected ({count}, {channels})"
            )
        textures.images[name] = _pack(values, width, height)

    return textures


def texel(image: np.ndarray, index: int) -> np.ndarray:
    """Read back the value stored for splat ``index``."""
    width = image.shape[1]
    return image[index // width, index % width]


def unpack_texture(image: np.ndarray, count: int) -> np.ndarray:
    """Return the first ``count`` entries of a packed image as (count, C)."""
    return image.reshape(-1, image.shape[2])[:count]


def texture_filename(base_name: str, name: str, image_format: str) -> str:
    return f"{base_name}_{name}.{image_format}"


def save_texture(path: Union[str, Path], image: np.ndarray, image_format: str = "exr") -> Path:
    """Write one packed image as uncompressed 32-bit float data."""
    path = Path(path)
    if image_format == "exr":
        return save_exr(image, path)
    if image_format == "npy":
        return save_numpy(image.astype(np.float32, copy=False), path)
    raise ValueError(f"Unsupported image format: {image_format}")


def load_texture(path: Union[str, Path]) -> np.ndarray:
    """Read a packed image written by :func:`save_texture`."""
    path = Path(path)
    if path.suffix == ".exr":
        return load_exr(path)
    if path.suffix == ".npy":
        return load_numpy(path)
    raise ValueError(f"Unsupported texture file: {path}")
