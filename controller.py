"""
Camera Controller Module
========================
Accumulates raw keyboard / mouse input between frames and hands the frame
loop one :class:`PlayerVelocityIntent` per tick.

Keyboard
--------
Each bound key sets one of six directional flags to 1.0 on press and 0.0 on
release (last write wins).  Flags persist across frames, so holding a key
keeps moving the player until the release event arrives.

Mouse smoothing
~~~~~~~~~~~~~~~
Absolute pointer positions go into a fixed-size ring buffer (default 10
samples, oldest overwritten).  On every ``consume`` the rotation is the
difference between the current buffer average and the average seen on the
previous consume.  This lags by roughly half the window but removes
single-sample jitter.  ``smoothing_window=1`` gives raw per-frame deltas.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

import numpy as np

# key name → movement axis
DEFAULT_BINDINGS: Dict[str, str] = {
    "w": "forward",    "up": "forward",
    "s": "backward",   "down": "backward",
    "a": "left",       "left": "left",
    "d": "right",      "right": "right",
    "space": "up",
    "left_shift": "down",
}


@dataclass
class PlayerVelocityIntent:
    """What the player should do this frame."""
    forward: float = 0.0      # [-1, 1]
    right: float = 0.0        # [-1, 1]
    up: float = 0.0           # [-1, 1]
    step: float = 0.0         # distance per unit of axis input (speed * dt)
    yaw_delta: float = 0.0    # radians
    pitch_delta: float = 0.0  # radians


class MouseSmoother:
    """Moving average over the last *capacity* pointer positions."""

    def __init__(self, capacity: int = 10) -> None:
        if capacity < 1:
            raise ValueError("smoothing window must hold at least one sample")
        self.capacity = capacity
        self._samples = np.zeros((capacity, 2), dtype=np.float64)
        self._head = 0
        self._count = 0
        self._last_avg: Optional[np.ndarray] = None

    def push(self, x: float, y: float) -> None:
        self._samples[self._head] = (x, y)
        self._head = (self._head + 1) % self.capacity
        self._count = min(self._count + 1, self.capacity)

    def average(self) -> Optional[np.ndarray]:
        if self._count == 0:
            return None
        return self._samples[:self._count].mean(axis=0)

    def take_delta(self) -> np.ndarray:
        """Average movement since the previous call; zero on the first call."""
        avg = self.average()
        if avg is None:
            return np.zeros(2)
        if self._last_avg is None:
            self._last_avg = avg
        delta = avg - self._last_avg
        self._last_avg = avg
        return delta

    def reset(self) -> None:
        self._head = 0
        self._count = 0
        self._last_avg = None

    def __len__(self) -> int:
        return self._count


class CameraController:
    """
    Input accumulator for the first-person camera.

    Parameters
    ----------
    speed : float
        World units per second at full axis input.
    sensitivity : float
        Radians per pixel of smoothed pointer motion, per second of frame
        time.
    smoothing_window : int
        Ring buffer capacity for the pointer moving average.
    """

    def __init__(
        self,
        speed: float = 14.0,
        sensitivity: float = 3.0,
        smoothing_window: int = 10,
        bindings: Optional[Dict[str, str]] = None,
    ) -> None:
        self.speed = speed
        self.sensitivity = sensitivity
        self.bindings = dict(DEFAULT_BINDINGS if bindings is None else bindings)
        self.amounts: Dict[str, float] = {
            "forward": 0.0, "backward": 0.0,
            "left": 0.0, "right": 0.0,
            "up": 0.0, "down": 0.0,
        }
        self.mouse = MouseSmoother(smoothing_window)

    # ------------------------------------------------------------------
    # Raw input
    # ------------------------------------------------------------------

    def process_key(self, key: str, pressed: bool) -> bool:
        """Returns *True* if *key* is bound to a movement axis."""
        axis = self.bindings.get(key)
        if axis is None:
            return False
        self.amounts[axis] = 1.0 if pressed else 0.0
        return True

    def process_mouse(self, x: float, y: float) -> None:
        self.mouse.push(x, y)

    def reset(self) -> None:
        for axis in self.amounts:
            self.amounts[axis] = 0.0
        self.mouse.reset()

    # ------------------------------------------------------------------
    # Per-frame
    # ------------------------------------------------------------------

    def consume(self, dt: float) -> PlayerVelocityIntent:
        a = self.amounts
        dx, dy = self.mouse.take_delta()
        scale = self.sensitivity * dt
        return PlayerVelocityIntent(
            forward=a["forward"] - a["backward"],
            right=a["right"] - a["left"],
            up=a["up"] - a["down"],
            step=self.speed * dt,
            yaw_delta=float(dx) * scale,
            # screen Y grows downwards
            pitch_delta=-float(dy) * scale,
        )
