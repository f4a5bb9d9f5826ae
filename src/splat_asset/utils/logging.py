"""Logging and progress tracking utilities."""
from __future__ import annotations

import json
import logging
import sys
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

ProgressCallback = Callable[[float, str], None]


class StructuredFormatter(logging.Formatter):
    """Formatter that outputs one JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "severity": record.levelname,
            "message": record.getMessage(),
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "logger": record.name,
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra"):
            log_entry.update(record.extra)

        return json.dumps(log_entry)


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter for terminal output."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        timestamp = datetime.now().strftime("%H:%M:%S")

        msg = f"{color}[{timestamp}] {record.levelname:8s}{self.RESET} {record.getMessage()}"

        if record.exc_info:
            msg += "\n" + self.formatException(record.exc_info)

        return msg


def setup_logging(
    level: int = logging.INFO,
    asset_name: Optional[str] = None,
    structured: bool = False,
) -> logging.Logger:
    """Set up logging for asset conversion.

    Args:
        level: Logging level.
        asset_name: Name of the asset being built, attached to structured records.
        structured: If True, emit JSON lines instead of colored console output.

    Returns:
        Configured package logger.
    """
    logger = logging.getLogger("splat_asset")
    logger.setLevel(level)

    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)

    if structured:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(ConsoleFormatter())

    logger.addHandler(handler)

    if asset_name:
        old_factory = logging.getLogRecordFactory()

        def record_factory(*args, **kwargs):
            record = old_factory(*args, **kwargs)
            record.extra = {"asset_name": asset_name}
            return record

        logging.setLogRecordFactory(record_factory)

    return logger


def get_logger(name: str = "splat_asset") -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Logger name (will be prefixed with 'splat_asset.').

    Returns:
        Logger instance.
    """
    if not name.startswith("splat_asset"):
        name = f"splat_asset.{name}"
    return logging.getLogger(name)


@dataclass
class StageMetrics:
    """Metrics for a single conversion stage."""
    stage_name: str
    start_time: float
    progress: float = 0.0
    end_time: Optional[float] = None
    errors: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def duration_seconds(self) -> float:
        if self.end_time is None:
            return time.time() - self.start_time
        return self.end_time - self.start_time

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stage_name": self.stage_name,
            "progress": self.progress,
            "duration_seconds": self.duration_seconds,
            "errors": self.errors,
            "metadata": self.metadata,
        }


class ProgressTracker:
    """Track progress across the stages of one asset conversion.

    Each stage is entered with the overall fraction reached at its start,
    which is forwarded to the optional progress callback together with the
    stage label.
    """

    def __init__(
        self,
        asset_name: str,
        logger: Optional[logging.Logger] = None,
        callback: Optional[ProgressCallback] = None,
    ):
        """Initialize progress tracker.

        Args:
            asset_name: Name of the asset being built.
            logger: Logger instance (creates one if not provided).
            callback: Called synchronously with (fraction, label) at stage boundaries.
        """
        self.asset_name = asset_name
        self.logger = logger or get_logger("creator")
        self.callback = callback

        self.stages: List[StageMetrics] = []
        self.current_stage: Optional[StageMetrics] = None
        self.start_time = time.time()
        self.metadata: Dict[str, Any] = {}

    def report(self, progress: float, label: str) -> None:
        """Forward a progress point to the callback, if any."""
        if self.callback is not None:
            self.callback(progress, label)

    @contextmanager
    def stage(self, label: str, progress: float):
        """Context manager for tracking a conversion stage.

        Args:
            label: Stage label, also passed to the progress callback.
            progress: Overall fraction (0..1) reached when the stage starts.

        Yields:
            StageMetrics object for the stage.
        """
        stage_metrics = StageMetrics(
            stage_name=label,
            start_time=time.time(),
            progress=progress,
        )
        self.current_stage = stage_metrics

        self.logger.info(f"Starting stage: {label}")
        self.report(progress, label)

        try:
            yield stage_metrics
        except Exception as e:
            stage_metrics.errors.append(str(e))
            self.logger.error(f"Stage {label} failed: {e}")
            raise
        finally:
            stage_metrics.end_time = time.time()
            self.logger.debug(
                f"Completed stage: {label} in {stage_metrics.duration_seconds:.2f}s"
            )
            self.stages.append(stage_metrics)
            self.current_stage = None

    def log_metric(self, name: str, value: Any):
        """Log a named metric for the current stage or the whole conversion.

        Args:
            name: Metric name.
            value: Metric value.
        """
        if self.current_stage is not None:
            self.current_stage.metadata[name] = value
        else:
            self.metadata[name] = value

        self.logger.info(f"Metric: {name} = {value}")

    def generate_report(self) -> Dict[str, Any]:
        """Generate a summary report of the conversion.

        Returns:
            Dictionary containing stage timings and metrics.
        """
        return {
            "asset_name": self.asset_name,
            "total_duration_seconds": time.time() - self.start_time,
            "stages": [s.to_dict() for s in self.stages],
            "metadata": self.metadata,
            "success": all(len(s.errors) == 0 for s in self.stages),
        }

    def save_report(self, path: Path):
        """Save the progress report to a JSON file.

        Args:
            path: Output path for the report.
        """
        report = self.generate_report()
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(report, f, indent=2)
        self.logger.info(f"Saved progress report to: {path}")
