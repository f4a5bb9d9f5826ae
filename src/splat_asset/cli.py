"""Command-line interface for splat asset creation.

Usage:
    create-splat-asset scenes/garden -o GaussianAssets
    create-splat-asset scenes/garden --use-7k --format npy
    create-splat-asset --config convert.yaml
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .creator import GaussianSplatAssetCreator
from .errors import SplatAssetError
from .models import IMAGE_FORMATS, ConverterConfig
from .utils.io import load_config_file
from .utils.logging import setup_logging


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Convert a trained 3DGS point cloud into a GPU-friendly splat asset",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "input_folder",
        type=Path,
        nargs="?",
        help="Scene folder containing point_cloud/ and cameras.json",
    )

    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Output folder (default: GaussianAssets)",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="JSON or YAML file with converter settings",
    )

    parser.add_argument(
        "--use-7k",
        action="store_true",
        help="Use the iteration_7000 point cloud even if iteration_30000 exists",
    )

    parser.add_argument(
        "--texture-width",
        type=int,
        default=None,
        help="Texture width in pixels, a power of two (default: 2048)",
    )

    parser.add_argument(
        "--format",
        type=str,
        default=None,
        choices=list(IMAGE_FORMATS),
        help="Texture file format (default: exr)",
    )

    parser.add_argument(
        "--no-overwrite",
        action="store_true",
        help="Fail if the asset already exists",
    )

    parser.add_argument(
        "--report",
        action="store_true",
        help="Write a JSON report with stage timings next to the asset",
    )

    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Emit structured JSON log lines",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output",
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> ConverterConfig:
    """Merge config file values with command line overrides."""
    data = load_config_file(args.config) if args.config else {}

    if args.input_folder is not None:
        data["input_folder"] = str(args.input_folder)
    if args.output is not None:
        data["output_folder"] = str(args.output)
    if args.use_7k:
        data["use_30k"] = False
    if args.texture_width is not None:
        data["texture_width"] = args.texture_width
    if args.format is not None:
        data["image_format"] = args.format
    if args.no_overwrite:
        data["overwrite"] = False
    if args.report:
        data["write_report"] = True

    return ConverterConfig.from_dict(data)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logger = setup_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        structured=args.log_json,
    )

    try:
        config = build_config(args)
    except (OSError, ValueError, ImportError) as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    if not config.input_folder:
        logger.error("input_folder is required")
        logger.error("Usage: create-splat-asset <input_folder> -o <output_folder>")
        return 1

    def progress_callback(progress: float, label: str) -> None:
        logger.info(f"[{progress * 100:5.1f}%] {label}")

    try:
        asset = GaussianSplatAssetCreator(config, progress_callback).create_asset()
    except (SplatAssetError, OSError, ValueError) as e:
        logger.error(f"Asset creation failed: {e}", exc_info=args.verbose)
        return 1

    logger.info(
        f"Created {asset.name}: {asset.splat_count:,} splats, "
        f"{len(asset.textures)} textures of {asset.texture_width}x{asset.texture_height}, "
        f"{len(asset.cameras)} cameras"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
