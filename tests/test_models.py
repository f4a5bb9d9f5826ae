"""Tests for configuration and asset record models."""
from __future__ import annotations

import numpy as np
import pytest

from splat_asset.models import (
    AssetBounds,
    CameraInfo,
    ConverterConfig,
    GaussianSplatAsset,
    TextureFile,
)


class TestConverterConfig:
    def test_from_dict_ignores_unknown_keys(self):
        config = ConverterConfig.from_dict({"texture_width": 4096, "colour": "blue"})

        assert config.texture_width == 4096
        assert config.to_dict()["texture_width"] == 4096

    def test_round_trip(self):
        config = ConverterConfig(input_folder="scenes/garden", use_30k=False, image_format="npy")

        assert ConverterConfig.from_dict(config.to_dict()) == config

    @pytest.mark.parametrize(
        "kwargs",
        [{"texture_width": 0}, {"texture_width": 3000}, {"block_height": 0}, {"image_format": "png"}],
    )
    def test_validate_rejects(self, kwargs):
        with pytest.raises(ValueError):
            ConverterConfig(**kwargs).validate()

    def test_base_name(self, tmp_path):
        assert ConverterConfig(input_folder=str(tmp_path / "garden")).base_name == "garden_30k"
        assert ConverterConfig(input_folder=str(tmp_path / "garden/"), use_30k=False).base_name == "garden_7k"


def test_bounds_merge():
    a = AssetBounds(min=np.array([0.0, -1.0, 2.0]), max=np.array([1.0, 1.0, 3.0]))
    b = AssetBounds(min=np.array([-2.0, 0.0, 2.5]), max=np.array([0.5, 4.0, 2.6]))

    merged = a.merge(b)

    np.testing.assert_array_equal(merged.min, [-2.0, -1.0, 2.0])
    np.testing.assert_array_equal(merged.max, [1.0, 4.0, 3.0])
    np.testing.assert_array_equal(b.merge(a).min, merged.min)
    np.testing.assert_array_equal(merged.center, [-0.5, 1.5, 2.5])


def test_asset_dict_round_trip(tmp_path):
    camera = CameraInfo(
        pos=np.array([1.0, 2.0, -3.0], dtype=np.float32),
        axis_x=np.array([1.0, 0.0, 0.0], dtype=np.float32),
        axis_y=np.array([0.0, -1.0, 0.0], dtype=np.float32),
        axis_z=np.array([0.0, 0.0, -1.0], dtype=np.float32),
        fov=25.0,
    )
    asset = GaussianSplatAsset(
        name="garden_30k",
        splat_count=5,
        bounds_min=np.array([-1.0, -2.0, -3.0], dtype=np.float32),
        bounds_max=np.array([1.0, 2.0, 3.0], dtype=np.float32),
        texture_width=2048,
        texture_height=4,
        image_format="npy",
        cameras=[camera],
        textures=[TextureFile(name="pos", channels=3, file="garden_30k_pos.npy")],
    )

    data = asset.to_dict()
    loaded = GaussianSplatAsset.from_dict(data)

    assert data["splatCount"] == 5
    assert data["cameras"][0]["axisY"] == [0.0, -1.0, 0.0]
    assert loaded.to_dict() == data
    assert loaded.texture_path("pos", tmp_path) == tmp_path / "garden_30k_pos.npy"
    with pytest.raises(KeyError):
        loaded.texture_path("rot", tmp_path)
