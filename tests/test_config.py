"""
Test configuration system.
"""

import json
import math

import pytest

from config import AppConfig


def test_default_config():
    config = AppConfig()
    assert (config.width, config.height) == (960, 720)
    assert config.fovy == 45.0
    assert config.smoothing_window == 10
    assert config.ground_extent == 100
    assert config.ground_spacing == 2
    assert config.reach == 8
    assert config.start_yaw_rad == pytest.approx(-math.pi / 2)


def test_from_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"ground_extent": 10, "start_position": [1, 2, 3]}))

    config = AppConfig.from_file(str(path))
    assert config.ground_extent == 10
    assert config.start_position == (1.0, 2.0, 3.0)
    assert config.speed == 14.0


def test_save_and_reload(tmp_path):
    path = tmp_path / "saved.json"
    original = AppConfig(fovy=70.0, clear_color=(0.0, 0.0, 0.0))
    original.save(str(path))

    assert AppConfig.from_file(str(path)) == original


def test_unknown_key_rejected():
    with pytest.raises(ValueError, match="Unknown config key"):
        AppConfig.from_dict({"fov": 90})


def test_non_object_file_rejected(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("[1, 2, 3]")
    with pytest.raises(ValueError):
        AppConfig.from_file(str(path))


@pytest.mark.parametrize("key, value", [
    ("clear_color", None),
    ("clear_color", ["red", 0, 0, 1]),
    ("start_position", 5),
])
def test_bad_vector_value_names_key(key, value):
    with pytest.raises(ValueError, match=key):
        AppConfig.from_dict({key: value})
