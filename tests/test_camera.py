"""
Tests for projection and camera math.
"""

import math

import numpy as np
import pytest

from camera import Camera, Projection, look_direction


def _ndc_depth(m, z):
    clip = m @ np.array([0.0, 0.0, z, 1.0])
    return clip[2] / clip[3]


def test_projection_maps_near_and_far_planes_gl():
    proj = Projection(800, 600, 45.0, 0.1, 200.0)
    m = proj.matrix()
    assert _ndc_depth(m, -0.1) == pytest.approx(-1.0, abs=1e-4)
    assert _ndc_depth(m, -200.0) == pytest.approx(1.0, abs=1e-4)


def test_projection_maps_near_and_far_planes_zero_to_one():
    proj = Projection(800, 600, 45.0, 0.1, 200.0, zero_to_one=True)
    m = proj.matrix()
    assert _ndc_depth(m, -0.1) == pytest.approx(0.0, abs=1e-4)
    assert _ndc_depth(m, -200.0) == pytest.approx(1.0, abs=1e-4)


def test_projection_resize_updates_aspect_only():
    proj = Projection(800, 600, 45.0, 0.1, 200.0)
    proj.resize(1920, 1080)
    assert proj.aspect == pytest.approx(1920 / 1080)
    assert (proj.fovy, proj.znear, proj.zfar) == (45.0, 0.1, 200.0)


def test_projection_resize_idempotent():
    proj = Projection(800, 600, 45.0, 0.1, 200.0)
    proj.resize(1024, 768)
    first = proj.aspect
    proj.resize(1024, 768)
    assert proj.aspect == first


def test_look_direction():
    np.testing.assert_allclose(look_direction(0.0, 0.0), [1, 0, 0], atol=1e-6)
    np.testing.assert_allclose(look_direction(0.0, math.pi / 2), [0, 0, 1], atol=1e-6)
    np.testing.assert_allclose(look_direction(math.pi / 4, 0.0),
                               [math.sqrt(0.5), math.sqrt(0.5), 0], atol=1e-6)
    assert np.linalg.norm(look_direction(0.3, 1.7)) == pytest.approx(1.0)


def test_camera_update_centres_target_in_view():
    cam = Camera(Projection(800, 600, 45.0, 0.1, 200.0), 800, 600)
    vp = cam.update((0.0, 0.0, 0.0), pitch=0.0, yaw=math.pi / 2)

    ahead = vp @ np.array([0.0, 0.0, 5.0, 1.0])
    assert ahead[3] > 0
    assert ahead[0] / ahead[3] == pytest.approx(0.0, abs=1e-5)
    assert ahead[1] / ahead[3] == pytest.approx(0.0, abs=1e-5)

    behind = vp @ np.array([0.0, 0.0, -5.0, 1.0])
    assert behind[3] < 0


def test_camera_uniform_record():
    cam = Camera(Projection(800, 600, 45.0, 0.1, 200.0), 800, 600)
    vp = cam.update((1.0, 2.0, 3.0), pitch=0.1, yaw=0.2)

    np.testing.assert_allclose(cam.uniform.view_position, [1.0, 2.0, 3.0, 1.0])
    assert cam.view_projection is vp
    # vec4 + mat4
    assert len(cam.uniform.to_bytes()) == (4 + 16) * 4


class _FakeDepth:
    def __init__(self, w, h):
        self.size = (w, h)
        self.released = False

    def release(self):
        self.released = True


def test_camera_resize_recreates_depth():
    made = []

    def factory(w, h):
        d = _FakeDepth(w, h)
        made.append(d)
        return d

    cam = Camera(Projection(800, 600, 45.0, 0.1, 200.0), 800, 600, depth_factory=factory)
    assert cam.depth.size == (800, 600)

    cam.resize(1024, 768)
    assert cam.depth_size == (1024, 768)
    assert cam.depth.size == (1024, 768)
    assert made[0].released
    assert not made[1].released
    assert cam.projection.aspect == pytest.approx(1024 / 768)
