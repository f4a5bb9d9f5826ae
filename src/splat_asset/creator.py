"""Gaussian splat asset creation.

Sequences the conversion of one trained scene folder:

    cameras.json         -> camera list
    point_cloud/*.ply    -> records -> derived splats + bounds -> textures
    textures + metadata  -> <output>/<base>_<tex>.<fmt> + <output>/<base>.asset.json

Textures are written to a staging directory inside the output folder and
only moved into place once every image has been written, so a failed run
leaves no partial asset behind.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional, Tuple

from .cameras import load_json_cameras_file
from .errors import NotFoundError
from .models import ConverterConfig, GaussianSplatAsset, TextureFile
from .splats import load_scene_splats
from .texture import TEXTURE_LAYOUT, pack_textures, save_texture, texture_filename
from .transform import derive_splats
from .utils.io import compute_checksum, ensure_local_dir, load_json, save_json, temp_workspace
from .utils.logging import ProgressCallback, ProgressTracker, get_logger

ASSET_SUFFIX = ".asset.json"


class GaussianSplatAssetCreator:
    """Build a splat asset from a trained 3DGS scene folder.

    Example:
        creator = GaussianSplatAssetCreator(ConverterConfig(input_folder="scenes/garden"))
        asset = creator.create_asset()
    """

    def __init__(
        self,
        config: ConverterConfig,
        progress_callback: Optional[ProgressCallback] = None,
    ):
        """Initialize the creator.

        Args:
            config: Conversion settings.
            progress_callback: Called with (fraction, label) at each stage boundary.
        """
        self.config = config
        self.progress_callback = progress_callback
        self.logger = get_logger("creator")

    @property
    def output_folder(self) -> Path:
        return Path(self.config.output_folder)

    @property
    def asset_path(self) -> Path:
        return self.output_folder / f"{self.config.base_name}{ASSET_SUFFIX}"

    @property
    def target_paths(self) -> List[Path]:
        """Every file a successful run places in the output folder."""
        base_name = self.config.base_name
        paths = [
            self.output_folder / texture_filename(base_name, name, self.config.image_format)
            for name, _ in TEXTURE_LAYOUT
        ]
        paths.append(self.asset_path)
        return paths

    def _validate(self) -> Path:
        self.config.validate()
        if not self.config.input_folder or not self.config.input_folder.strip():
            raise ValueError("Select input folder")
        input_folder = Path(self.config.input_folder)
        if not input_folder.is_dir():
            raise NotFoundError(f"Input folder not found: {input_folder}", paths=[input_folder])
        if not self.config.overwrite:
            existing = [p for p in self.target_paths if p.exists()]
            if existing:
                names = ", ".join(p.name for p in existing)
                raise FileExistsError(f"Asset files already exist in {self.output_folder}: {names}")
        return input_folder

    def create_asset(self) -> GaussianSplatAsset:
        """Run the conversion.

        Returns:
            The asset record that was written next to the textures.

        Raises:
            NotFoundError: If the input folder or point cloud is missing.
            FormatError: If an input file is malformed.
            EmptyInputError: If the point cloud has no splats.
        """
        config = self.config
        input_folder = self._validate()
        base_name = config.base_name

        tracker = ProgressTracker(base_name, logger=self.logger, callback=self.progress_callback)
        self.logger.info(f"Creating asset {base_name} from {input_folder}")

        with tracker.stage("Reading cameras info", 0.0):
            cameras = load_json_cameras_file(input_folder, fov=config.camera_fov)
            tracker.log_metric("camera_count", len(cameras))

        with tracker.stage("Reading PLY file", 0.1):
            records = load_scene_splats(input_folder, use_30k=config.use_30k)
            tracker.log_metric("splat_count", len(records))

        with tracker.stage("Creating texture objects", 0.2):
            derived, bounds = derive_splats(records)
            del records
            textures = pack_textures(derived, config.texture_width, config.block_height)
            del derived
            tracker.log_metric("texture_size", f"{textures.width}x{textures.height}")

        asset = GaussianSplatAsset(
            name=base_name,
            splat_count=textures.count,
            bounds_min=bounds.min,
            bounds_max=bounds.max,
            texture_width=textures.width,
            texture_height=textures.height,
            image_format=config.image_format,
            cameras=cameras,
        )

        output_folder = ensure_local_dir(self.output_folder)
        with temp_workspace(prefix=f".{base_name}_", parent=output_folder) as staging:
            staged: List[Path] = []
            with tracker.stage("Writing texture files", 0.3):
                for name, image in textures.items():
                    filename = texture_filename(base_name, name, config.image_format)
                    path = save_texture(staging / filename, image, config.image_format)
                    staged.append(path)
                    asset.textures.append(
                        TextureFile(
                            name=name,
                            channels=image.shape[2],
                            file=filename,
                            checksum=compute_checksum(path),
                        )
                    )

            with tracker.stage("Setup textures onto asset", 0.8):
                staged.append(save_json(asset.to_dict(), staging / self.asset_path.name))

            with tracker.stage("Saving assets", 0.9):
                self._commit(staged, output_folder, staging)
                self.logger.info(f"Saved asset to {self.asset_path}")

        if config.write_report:
            tracker.save_report(output_folder / f"{base_name}.report.json")

        tracker.report(1.0, "Done")
        return asset

    def _commit(self, staged: List[Path], output_folder: Path, staging: Path) -> None:
        """Move staged files into the output folder, all or nothing.

        Files being replaced are parked in the staging directory first and
        put back if any move fails.
        """
        moved: List[Path] = []
        parked: List[Tuple[Path, Path]] = []
        try:
            for path in staged:
                target = output_folder / path.name
                if target.exists():
                    backup = staging / f".previous_{path.name}"
                    os.replace(target, backup)
                    parked.append((backup, target))
                os.replace(path, target)
                moved.append(target)
        except OSError:
            self.logger.error(f"Failed to move asset files into {output_folder}, rolling back")
            for target in moved:
                target.unlink(missing_ok=True)
            for backup, target in parked:
                os.replace(backup, target)
            raise


def create_asset(
    input_folder: str,
    output_folder: str = "GaussianAssets",
    use_30k: bool = True,
    progress_callback: Optional[ProgressCallback] = None,
    **overrides,
) -> GaussianSplatAsset:
    """Convenience wrapper around :class:`GaussianSplatAssetCreator`."""
    config = ConverterConfig.from_dict({
        **overrides,
        "input_folder": str(input_folder),
        "output_folder": str(output_folder),
        "use_30k": use_30k,
    })
    return GaussianSplatAssetCreator(config, progress_callback).create_asset()


def load_asset(path: Path) -> GaussianSplatAsset:
    """Load an asset record written by :meth:`GaussianSplatAssetCreator.create_asset`."""
    return GaussianSplatAsset.from_dict(load_json(Path(path)))
