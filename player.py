"""
Player Module
=============
The free-flying observer: position, yaw, pitch and the camera that renders
from them.

Horizontal motion follows yaw only (looking down does not slow you down);
vertical motion adds straight to ``position.y``.  Pitch is clamped just
short of ±90° so the look-to matrix never degenerates.
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from camera import Camera, look_direction
from controller import PlayerVelocityIntent

PITCH_LIMIT = math.pi / 2 - 1e-4


class Player:
    """Camera state aggregate.  Mutated once per frame by the frame loop."""

    def __init__(
        self,
        position: Sequence[float],
        yaw: float,
        pitch: float,
        camera: Camera,
    ) -> None:
        self.position = np.array(position, dtype=np.float32)
        self.yaw = float(yaw)
        self.pitch = float(np.clip(pitch, -PITCH_LIMIT, PITCH_LIMIT))
        self.camera = camera

    # ---- bases ------------------------------------------------------

    def forward_basis(self) -> np.ndarray:
        return np.array([math.cos(self.yaw), 0.0, math.sin(self.yaw)], dtype=np.float32)

    def right_basis(self) -> np.ndarray:
        return np.array([-math.sin(self.yaw), 0.0, math.cos(self.yaw)], dtype=np.float32)

    def look_direction(self) -> np.ndarray:
        return look_direction(self.pitch, self.yaw)

    # ---- per-frame --------------------------------------------------

    def apply(self, intent: PlayerVelocityIntent) -> None:
        """Translate along the current yaw, then rotate."""
        self.position += (
            self.forward_basis() * intent.forward
            + self.right_basis() * intent.right
        ) * intent.step
        self.position[1] += intent.up * intent.step

        self.yaw += intent.yaw_delta
        self.pitch = float(np.clip(self.pitch + intent.pitch_delta, -PITCH_LIMIT, PITCH_LIMIT))

    def sync_camera(self) -> np.ndarray:
        """Push the current state into the camera; returns the view-projection."""
        return self.camera.update(self.position, self.pitch, self.yaw)
