"""Binary PLY reader for trained Gaussian splat point clouds.

Only what a 3DGS training run writes is supported: a single ``vertex``
element of scalar properties in ``binary_little_endian`` format. The body
is returned as raw bytes so that the record layout can be validated and
reinterpreted in one place (see :mod:`splat_asset.splats`).

Typical layout of a trained scene folder::

    <scene>/
        cameras.json
        point_cloud/iteration_7000/point_cloud.ply
        point_cloud/iteration_30000/point_cloud.ply
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, List, Tuple, Union

import numpy as np

from .errors import FormatError, NotFoundError
from .utils.logging import get_logger

logger = get_logger("ply_reader")

POINT_CLOUD_7K = Path("point_cloud/iteration_7000/point_cloud.ply")
POINT_CLOUD_30K = Path("point_cloud/iteration_30000/point_cloud.ply")

HEADER_END = "end_header"
MAX_HEADER_BYTES = 64 * 1024
MAX_VERTEX_COUNT = 2**32 - 1

# Byte sizes of PLY scalar property types
PROPERTY_SIZES = {
    "char": 1, "int8": 1,
    "uchar": 1, "uint8": 1,
    "short": 2, "int16": 2,
    "ushort": 2, "uint16": 2,
    "int": 4, "int32": 4,
    "uint": 4, "uint32": 4,
    "float": 4, "float32": 4,
    "double": 8, "float64": 8,
}


@dataclass
class PLYHeader:
    """Parsed header of a binary PLY file."""
    vertex_count: int
    properties: List[Tuple[str, str]] = field(default_factory=list)  # (name, type)
    header_size: int = 0

    @property
    def attribute_names(self) -> List[str]:
        return [name for name, _ in self.properties]

    @property
    def stride(self) -> int:
        """Size in bytes of one vertex record."""
        return sum(PROPERTY_SIZES[prop_type] for _, prop_type in self.properties)


@dataclass
class PLYVertexData:
    """Raw vertex body of a PLY file.

    Attributes:
        count: Number of vertex records.
        stride: Bytes per record.
        attribute_names: Property names in record order.
        raw: Writable contiguous uint8 buffer of ``count * stride`` bytes.
    """
    count: int
    stride: int
    attribute_names: List[str]
    raw: np.ndarray

    def __len__(self) -> int:
        return self.count


def find_point_cloud_file(folder: Union[str, Path], use_30k: bool = True) -> Path:
    """Locate the trained point cloud inside a scene folder.

    The 30k-iteration cloud is preferred when ``use_30k`` is set; the
    7k-iteration cloud is the fallback.

    Raises:
        NotFoundError: If no candidate exists.
    """
    folder = Path(folder)
    candidates = [folder / POINT_CLOUD_30K] if use_30k else []
    candidates.append(folder / POINT_CLOUD_7K)

    for candidate in candidates:
        if candidate.is_file():
            return candidate

    raise NotFoundError(f"Did not find {candidates[-1]} file", paths=candidates)


def read_ply_header(f: BinaryIO, path: Union[str, Path, None] = None) -> PLYHeader:
    """Parse the textual header, leaving ``f`` positioned at the body.

    Raises:
        FormatError: On a missing magic or sentinel, an unsupported format,
            or a bad vertex count.
    """
    lines = []
    consumed = 0
    while True:
        raw_line = f.readline(MAX_HEADER_BYTES + 1)
        if not raw_line:
            raise FormatError(f"PLY header is missing the '{HEADER_END}' line", path=path)
        consumed += len(raw_line)
        if consumed > MAX_HEADER_BYTES:
            raise FormatError(
                f"PLY header exceeds {MAX_HEADER_BYTES} bytes without '{HEADER_END}'", path=path
            )
        try:
            line = raw_line.decode("ascii").strip()
        except UnicodeDecodeError:
            raise FormatError("PLY header contains non-ASCII data", path=path)
        if line == HEADER_END:
            break
        lines.append(line)

    if not lines or lines[0] != "ply":
        raise FormatError("Not a PLY file (missing 'ply' magic line)", path=path)

    vertex_count = None
    in_vertex = False
    properties: List[Tuple[str, str]] = []

    for line in lines[1:]:
        parts = line.split()
        if not parts or parts[0] in ("comment", "obj_info"):
            continue

        if parts[0] == "format":
            if len(parts) < 2 or parts[1] != "binary_little_endian":
                raise FormatError(
                    f"Unsupported PLY format '{' '.join(parts[1:])}', expected binary_little_endian",
                    path=path,
                )

        elif parts[0] == "element":
            if len(parts) != 3:
                raise FormatError(f"Malformed element line: {line!r}", path=path)
            in_vertex = parts[1] == "vertex"
            if not in_vertex:
                if vertex_count is None:
                    raise FormatError(
                        f"Element '{parts[1]}' precedes the vertex element", path=path
                    )
                continue
            try:
                vertex_count = int(parts[2])
            except ValueError:
                raise FormatError(f"Invalid vertex count {parts[2]!r}", path=path)
            if vertex_count < 0 or vertex_count > MAX_VERTEX_COUNT:
                raise FormatError(f"Invalid vertex count {vertex_count}", path=path)

        elif parts[0] == "property":
            if not in_vertex:
                continue
            if len(parts) != 3 or parts[1] == "list":
                raise FormatError(f"Unsupported vertex property: {line!r}", path=path)
            prop_type, prop_name = parts[1], parts[2]
            if prop_type not in PROPERTY_SIZES:
                raise FormatError(f"Unknown property type '{prop_type}'", path=path)
            properties.append((prop_name, prop_type))

    if vertex_count is None:
        raise FormatError("PLY header has no vertex element", path=path)

    return PLYHeader(vertex_count=vertex_count, properties=properties, header_size=consumed)


def read_ply_file(path: Union[str, Path]) -> PLYVertexData:
    """Read the vertex records of a binary little-endian PLY file.

    Args:
        path: Path to the .ply file.

    Returns:
        PLYVertexData with the raw record bytes.

    Raises:
        NotFoundError: If the file does not exist.
        FormatError: If the header is malformed or the body is truncated.
    """
    path = Path(path)
    if not path.is_file():
        raise NotFoundError(f"PLY file not found: {path}", paths=[path])

    with open(path, "rb") as f:
        header = read_ply_header(f, path)

        stride = header.stride
        expected = header.vertex_count * stride
        available = os.fstat(f.fileno()).st_size - header.header_size
        if available < expected:
            _raise_truncated(path, header, expected, max(available, 0))

        raw = np.empty(expected, dtype=np.uint8)
        view = memoryview(raw)
        actual = 0
        while actual < expected:
            n = f.readinto(view[actual:])
            if not n:
                break
            actual += n

    if actual != expected:
        _raise_truncated(path, header, expected, actual)

    logger.debug(
        f"Read {header.vertex_count:,} vertices ({stride} bytes each) from {path}"
    )

    return PLYVertexData(
        count=header.vertex_count,
        stride=stride,
        attribute_names=header.attribute_names,
        raw=raw,
    )


def _raise_truncated(path: Path, header: PLYHeader, expected: int, actual: int) -> None:
    raise FormatError(
        f"PLY body truncated: expected {expected} bytes "
        f"({header.vertex_count} x {header.stride}) but file has {actual}",
        path=path,
        expected=expected,
        actual=actual,
    )
