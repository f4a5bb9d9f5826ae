"""Gaussian splat asset creator.

Converts a trained 3D Gaussian Splatting scene (INRIA PLY format) into a
GPU-friendly asset: 19 planar float textures holding position, rotation,
scale, color/opacity and SH coefficients of every splat, plus a JSON record
with splat count, bounds and cameras.

Pipeline stages:
    1. Read  - binary PLY body with layout validation
    2. Reorder - SH coefficients to one RGB triple per coefficient
    3. Transform - rotation/scale/color/opacity to renderer values + bounds
    4. Pack - fixed-width textures, height aligned to 4-row blocks
    5. Cameras - cameras.json view matrices to position + axis frames

Usage:
    from splat_asset import ConverterConfig, GaussianSplatAssetCreator

    asset = GaussianSplatAssetCreator(ConverterConfig(input_folder="scenes/garden")).create_asset()
"""

from .errors import (
    DegenerateInputWarning,
    EmptyInputError,
    FormatError,
    NotFoundError,
    SplatAssetError,
)
from .models import (
    AssetBounds,
    CameraInfo,
    ConverterConfig,
    DerivedSplats,
    GaussianSplatAsset,
    TextureFile,
)
from .ply_reader import PLYVertexData, find_point_cloud_file, read_ply_file
from .splats import (
    INPUT_SPLAT_DTYPE,
    as_input_splats,
    load_input_splats,
    reorder_shs,
    unreorder_shs,
)
from .transform import (
    compute_bounds,
    derive_splats,
    linear_scale,
    normalize_swizzle_rotation,
    sh0_to_color,
    sigmoid,
)
from .texture import (
    TEXTURE_LAYOUT,
    TextureSet,
    compute_texture_size,
    pack_textures,
    texel,
)
from .cameras import convert_camera, load_json_cameras_file
from .creator import GaussianSplatAssetCreator, create_asset, load_asset


__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Errors
    "SplatAssetError",
    "NotFoundError",
    "FormatError",
    "EmptyInputError",
    "DegenerateInputWarning",
    # Models
    "AssetBounds",
    "CameraInfo",
    "ConverterConfig",
    "DerivedSplats",
    "GaussianSplatAsset",
    "TextureFile",
    # Reading
    "PLYVertexData",
    "find_point_cloud_file",
    "read_ply_file",
    "INPUT_SPLAT_DTYPE",
    "as_input_splats",
    "load_input_splats",
    "reorder_shs",
    "unreorder_shs",
    # Transform
    "compute_bounds",
    "derive_splats",
    "linear_scale",
    "normalize_swizzle_rotation",
    "sh0_to_color",
    "sigmoid",
    # Packing
    "TEXTURE_LAYOUT",
    "TextureSet",
    "compute_texture_size",
    "pack_textures",
    "texel",
    # Cameras
    "convert_camera",
    "load_json_cameras_file",
    # Creation
    "GaussianSplatAssetCreator",
    "create_asset",
    "load_asset",
]
