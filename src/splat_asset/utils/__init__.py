"""Utility modules for the splat asset converter."""
from __future__ import annotations

from .logging import setup_logging, get_logger, ProgressTracker, ProgressCallback
from .io import (
    ensure_local_dir,
    temp_workspace,
    compute_checksum,
    save_json,
    load_json,
    load_config_file,
    save_numpy,
    load_numpy,
    save_exr,
    load_exr,
)

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "ProgressTracker",
    "ProgressCallback",
    # I/O
    "ensure_local_dir",
    "temp_workspace",
    "compute_checksum",
    "save_json",
    "load_json",
    "load_config_file",
    "save_numpy",
    "load_numpy",
    "save_exr",
    "load_exr",
]
