"""Exceptions and warnings raised while building a splat asset."""
from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence, Union


class SplatAssetError(Exception):
    """Base class for all conversion errors."""


class NotFoundError(SplatAssetError, FileNotFoundError):
    """A required input file does not exist.

    Attributes:
        paths: Every path that was probed.
    """

    def __init__(self, message: str, paths: Sequence[Union[str, Path]] = ()):
        super().__init__(message)
        self.paths = [Path(p) for p in paths]


class FormatError(SplatAssetError, ValueError):
    """An input file is malformed (bad header, stride mismatch, truncated body).

    Attributes:
        path: File being read, if known.
        expected: Expected value (byte count, stride, ...), if applicable.
        actual: Value found in the file, if applicable.
    """

    def __init__(
        self,
        message: str,
        path: Optional[Union[str, Path]] = None,
        expected: Optional[int] = None,
        actual: Optional[int] = None,
    ):
        if path is not None:
            message = f"{message} ({path})"
        super().__init__(message)
        self.path = Path(path) if path is not None else None
        self.expected = expected
        self.actual = actual


class EmptyInputError(SplatAssetError, ValueError):
    """The point cloud holds zero splats; there is no valid empty asset."""


class DegenerateInputWarning(UserWarning):
    """Recoverable bad input, e.g. a zero-length rotation quaternion."""
