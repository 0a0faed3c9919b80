"""
Tests for player movement and pitch clamping.
"""

import math

import numpy as np
import pytest

from camera import Camera, Projection
from controller import PlayerVelocityIntent
from player import PITCH_LIMIT, Player


def _player(yaw=0.0, pitch=0.0, position=(0.0, 0.0, 0.0)):
    cam = Camera(Projection(800, 600, 45.0, 0.1, 200.0), 800, 600)
    return Player(position, yaw, pitch, cam)


def test_pitch_stays_clamped():
    p = _player()
    for delta in [1.0, 5.0, 0.3, -20.0, -0.1, 100.0, math.pi, -math.pi]:
        p.apply(PlayerVelocityIntent(pitch_delta=delta))
        assert -math.pi / 2 < p.pitch < math.pi / 2
    assert abs(p.pitch) == pytest.approx(PITCH_LIMIT)


def test_initial_pitch_clamped():
    p = _player(pitch=3.0)
    assert p.pitch == pytest.approx(PITCH_LIMIT)


def test_yaw_is_unclamped():
    p = _player()
    for _ in range(10):
        p.apply(PlayerVelocityIntent(yaw_delta=1.0))
    assert p.yaw == pytest.approx(10.0)


def test_forward_ignores_pitch():
    p = _player(yaw=math.pi / 2, pitch=1.2)
    p.apply(PlayerVelocityIntent(forward=1.0, step=2.0))
    np.testing.assert_allclose(p.position, [0.0, 0.0, 2.0], atol=1e-5)


def test_strafe_and_vertical():
    p = _player(yaw=0.0)
    p.apply(PlayerVelocityIntent(right=1.0, up=-1.0, step=3.0))
    np.testing.assert_allclose(p.position, [0.0, -3.0, 3.0], atol=1e-5)


def test_translation_uses_yaw_before_rotation():
    p = _player(yaw=0.0)
    p.apply(PlayerVelocityIntent(forward=1.0, step=1.0, yaw_delta=math.pi / 2))
    np.testing.assert_allclose(p.position, [1.0, 0.0, 0.0], atol=1e-5)
    assert p.yaw == pytest.approx(math.pi / 2)


def test_sync_camera_writes_uniform():
    p = _player(position=(1.0, 5.0, -2.0))
    p.sync_camera()
    np.testing.assert_allclose(p.camera.uniform.view_position, [1.0, 5.0, -2.0, 1.0])
