"""Tests for the create-splat-asset command."""
from __future__ import annotations

import json

import pytest

from splat_asset.cli import build_config, main, parse_args


def test_converts_scene(tmp_path, scene_folder):
    output = tmp_path / "assets"

    code = main([str(scene_folder), "-o", str(output), "--format", "npy"])

    assert code == 0
    data = json.loads((output / "garden_30k.asset.json").read_text())
    assert data["splatCount"] == 5
    assert data["imageFormat"] == "npy"


def test_use_7k_changes_name(tmp_path, scene_folder, make_vertices, write_ply):
    write_ply(scene_folder / "point_cloud" / "iteration_7000" / "point_cloud.ply", make_vertices(2))
    output = tmp_path / "assets"

    assert main([str(scene_folder), "-o", str(output), "--format", "npy", "--use-7k"]) == 0

    data = json.loads((output / "garden_7k.asset.json").read_text())
    assert data["splatCount"] == 2


def test_config_file_with_overrides(tmp_path, scene_folder):
    config_path = tmp_path / "convert.yaml"
    config_path.write_text(
        f"input_folder: {scene_folder}\n"
        f"output_folder: {tmp_path / 'from_config'}\n"
        "texture_width: 1024\n"
        "image_format: npy\n"
        "unknown_key: ignored\n"
    )
    output = tmp_path / "from_cli"

    assert main(["--config", str(config_path), "-o", str(output)]) == 0

    data = json.loads((output / "garden_30k.asset.json").read_text())
    assert data["textureWidth"] == 1024
    assert not (tmp_path / "from_config").exists()


def test_build_config_defaults(tmp_path):
    config = build_config(parse_args([str(tmp_path)]))

    assert config.input_folder == str(tmp_path)
    assert config.use_30k is True
    assert config.texture_width == 2048
    assert config.image_format == "exr"


def test_missing_input_folder_argument():
    assert main([]) == 1


def test_missing_scene(tmp_path):
    assert main([str(tmp_path / "nope"), "-o", str(tmp_path / "out")]) == 1


def test_invalid_texture_width(tmp_path, scene_folder):
    code = main([str(scene_folder), "-o", str(tmp_path / "out"), "--texture-width", "1000"])

    assert code == 1
    assert not (tmp_path / "out").exists()


def test_bad_format_choice(tmp_path):
    with pytest.raises(SystemExit):
        parse_args([str(tmp_path), "--format", "png"])


def test_oversized_vertex_count(tmp_path, make_vertices):
    scene = tmp_path / "garden"
    ply = scene / "point_cloud" / "iteration_30000" / "point_cloud.ply"
    ply.parent.mkdir(parents=True)
    header = ["ply", "format binary_little_endian 1.0", "element vertex 4294967295"]
    header += [f"property float {name}" for name in make_vertices(0).dtype.names]
    header.append("end_header")
    ply.write_bytes(("\n".join(header) + "\n").encode("ascii") + make_vertices(2).tobytes())

    assert main([str(scene), "-o", str(tmp_path / "out"), "--format", "npy"]) == 1
    assert not (tmp_path / "out").exists() or not any((tmp_path / "out").iterdir())
