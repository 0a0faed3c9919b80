"""
Camera Module
=============
First-person perspective camera, pure NumPy.

* :class:`Projection` – perspective matrix from aspect ratio + vertical
  field of view + near / far planes.  Only the aspect ratio changes on
  resize.
* :class:`Camera` – turns ``(position, pitch, yaw)`` into a look-to view
  matrix, multiplies it with the projection and stores the result in a
  :class:`CameraUniform` ready for upload.  Also owns the depth attachment,
  which is recreated whenever the surface is resized so the two always
  have the same dimensions.

Conventions: right-handed, +Y up, matrices are row-major NumPy arrays and
are transposed to column-major only when packed for GLSL.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence, Tuple

import numpy as np

# Remaps OpenGL clip depth (-1..1) to the 0..1 range used by D3D / Vulkan /
# WebGPU style backends.
OPENGL_TO_ZERO_ONE = np.array([
    [1.0, 0.0, 0.0, 0.0],
    [0.0, 1.0, 0.0, 0.0],
    [0.0, 0.0, 0.5, 0.5],
    [0.0, 0.0, 0.0, 1.0],
], dtype=np.float32)

WORLD_UP = np.array([0.0, 1.0, 0.0], dtype=np.float32)

DepthFactory = Callable[[int, int], Any]


# ======================================================================
# Matrix helpers
# ======================================================================

def look_direction(pitch: float, yaw: float) -> np.ndarray:
    """Unit view vector for the given angles (yaw 0 looks down +X)."""
    cp = math.cos(pitch)
    d = np.array([cp * math.cos(yaw), math.sin(pitch), cp * math.sin(yaw)],
                 dtype=np.float32)
    return d / np.linalg.norm(d)


def look_to_rh(eye: np.ndarray, direction: np.ndarray, up: np.ndarray) -> np.ndarray:
    f = np.asarray(direction, dtype=np.float32)
    f = f / np.linalg.norm(f)
    s = np.cross(f, up)
    s /= np.linalg.norm(s)
    u = np.cross(s, f)

    M = np.eye(4, dtype=np.float32)
    M[0, :3] = s
    M[1, :3] = u
    M[2, :3] = -f
    M[0, 3] = -s.dot(eye)
    M[1, 3] = -u.dot(eye)
    M[2, 3] = f.dot(eye)
    return M


def perspective(fov_deg: float, aspect: float, near: float, far: float) -> np.ndarray:
    f = 1.0 / np.tan(np.radians(fov_deg) / 2.0)
    M = np.zeros((4, 4), dtype=np.float32)
    M[0, 0] = f / aspect
    M[1, 1] = f
    M[2, 2] = (far + near) / (near - far)
    M[2, 3] = 2.0 * far * near / (near - far)
    M[3, 2] = -1.0
    return M


def mat_bytes(m: np.ndarray) -> bytes:
    """Pack row-major NumPy matrix → column-major bytes for GLSL."""
    return m.astype(np.float32).tobytes(order='F')


# ======================================================================
# Projection
# ======================================================================

class Projection:
    """
    Perspective projection.

    Parameters
    ----------
    fovy : float
        Vertical field of view in degrees.
    zero_to_one : bool
        Emit 0..1 clip depth instead of OpenGL's -1..1.  The moderngl
        renderer uses the OpenGL convention.
    """

    def __init__(
        self,
        width: int,
        height: int,
        fovy: float,
        znear: float,
        zfar: float,
        zero_to_one: bool = False,
    ) -> None:
        self.aspect = width / height
        self.fovy = fovy
        self.znear = znear
        self.zfar = zfar
        self.correction = OPENGL_TO_ZERO_ONE if zero_to_one else np.eye(4, dtype=np.float32)

    def resize(self, width: int, height: int) -> None:
        self.aspect = width / height

    def matrix(self) -> np.ndarray:
        return self.correction @ perspective(self.fovy, self.aspect, self.znear, self.zfar)


# ======================================================================
# Camera
# ======================================================================

@dataclass
class CameraUniform:
    """GPU-visible camera record: vec4 eye position + mat4 view-projection."""
    view_position: np.ndarray = field(default_factory=lambda: np.zeros(4, dtype=np.float32))
    view_proj: np.ndarray = field(default_factory=lambda: np.eye(4, dtype=np.float32))

    def to_bytes(self) -> bytes:
        return self.view_position.astype(np.float32).tobytes() + mat_bytes(self.view_proj)


class Camera:
    """
    Perspective camera driven by an external position / pitch / yaw.

    The depth attachment is produced by *depth_factory(width, height)*.
    Whatever it returns is opaque to the camera; if it has a ``release()``
    method that is called before the replacement is created.
    """

    def __init__(
        self,
        projection: Projection,
        width: int,
        height: int,
        depth_factory: Optional[DepthFactory] = None,
    ) -> None:
        self.projection = projection
        self.uniform = CameraUniform()
        self._depth_factory = depth_factory
        self.depth: Any = None
        self.depth_size: Tuple[int, int] = (0, 0)
        self._recreate_depth(width, height)

    # ---- per-frame --------------------------------------------------

    def update(self, position: Sequence[float], pitch: float, yaw: float) -> np.ndarray:
        """Rebuild the view-projection matrix; returns it for convenience."""
        eye = np.asarray(position, dtype=np.float32)
        view = look_to_rh(eye, look_direction(pitch, yaw), WORLD_UP)

        self.uniform.view_position = np.append(eye, 1.0).astype(np.float32)
        self.uniform.view_proj = self.projection.matrix() @ view
        return self.uniform.view_proj

    @property
    def view_projection(self) -> np.ndarray:
        return self.uniform.view_proj

    # ---- lifecycle --------------------------------------------------

    def resize(self, width: int, height: int) -> None:
        self.projection.resize(width, height)
        self._recreate_depth(width, height)

    def release(self) -> None:
        if self.depth is not None and hasattr(self.depth, "release"):
            self.depth.release()
        self.depth = None

    def _recreate_depth(self, width: int, height: int) -> None:
        if self._depth_factory is not None:
            self.release()
            self.depth = self._depth_factory(width, height)
        self.depth_size = (width, height)
