"""
Frame Orchestration Module
==========================
Owns the long-lived state (world, player, input) and runs exactly one
update + render pass per frame tick.

Per-tick pipeline
-----------------
1. ``controller.consume(dt)``  → velocity intent
2. ``player.apply(intent)``    → new position / yaw / pitch
3. targeting ray               → destroy the first block within reach
4. ``player.sync_camera()``    → view-projection for this frame
5. ``render()``                → instance snapshot + frame submission

Input events are routed through a dispatch table keyed by event type, so
input handling and rendering can each be driven headlessly.

Submission failures
~~~~~~~~~~~~~~~~~~~
* lost / outdated surface  → reconfigure at the last known size
* out of memory            → stop the loop
* timeout                  → drop the frame, carry on
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

import numpy as np

from controller import CameraController
from errors import SurfaceLost, SurfaceOutdated, SurfaceOutOfMemory, SurfaceTimeout
from events import (
    CloseRequested, FocusChanged, FrameTick, KeyDown, KeyUp, MouseMove, Resize,
)
from player import Player
from world import GridCoord, World

logger = logging.getLogger("Frame")

DEFAULT_REACH = 8


def round_half_away(v: float) -> int:
    """Round to nearest integer, halves away from zero (2.5 → 3, -2.5 → -3)."""
    return int(math.copysign(math.floor(abs(v) + 0.5), v))


@dataclass
class FrameStats:
    frames: int = 0
    dropped: int = 0
    destroyed: int = 0
    reconfigures: int = 0


class FrameOrchestrator:
    """
    Single-threaded frame loop core.

    *renderer* is the frame-submission boundary.  It must provide::

        submit_frame(uniform, instances, depth) -> None   # raises SurfaceError
        resize(width, height) -> None

    where *uniform* is the camera's :class:`camera.CameraUniform`,
    *instances* the ``(N, 25)`` array from :meth:`world.World.get_instance_data`
    and *depth* the camera's current depth attachment.
    """

    def __init__(
        self,
        world: World,
        player: Player,
        controller: CameraController,
        renderer: Any,
        size: Tuple[int, int],
        reach: int = DEFAULT_REACH,
    ) -> None:
        self.world = world
        self.player = player
        self.controller = controller
        self.renderer = renderer
        self.size = size
        self.reach = reach
        self.running = True
        self.stats = FrameStats()

        self._dispatch: Dict[type, Callable[[Any], None]] = {
            KeyDown: self._on_key_down,
            KeyUp: self._on_key_up,
            MouseMove: self._on_mouse_move,
            Resize: self._on_resize,
            FocusChanged: self._on_focus,
            CloseRequested: self._on_close,
            FrameTick: self._on_frame_tick,
        }

    # ------------------------------------------------------------------
    # Event dispatch
    # ------------------------------------------------------------------

    def handle(self, event: Any) -> None:
        handler = self._dispatch.get(type(event))
        if handler is None:
            logger.debug("Ignoring unknown event %r", event)
            return
        handler(event)

    def _on_key_down(self, event: KeyDown) -> None:
        if event.key == "escape":
            self.close()
            return
        self.controller.process_key(event.key, True)

    def _on_key_up(self, event: KeyUp) -> None:
        self.controller.process_key(event.key, False)

    def _on_mouse_move(self, event: MouseMove) -> None:
        self.controller.process_mouse(event.x, event.y)

    def _on_resize(self, event: Resize) -> None:
        self.resize(event.width, event.height)

    def _on_focus(self, event: FocusChanged) -> None:
        # key releases are not delivered while unfocused
        if not event.focused:
            self.controller.reset()

    def _on_close(self, _event: CloseRequested) -> None:
        self.close()

    def _on_frame_tick(self, event: FrameTick) -> None:
        self.tick(event.dt)

    # ------------------------------------------------------------------
    # Frame
    # ------------------------------------------------------------------

    def tick(self, dt: float) -> None:
        if not self.running:
            return
        self.update(dt)
        self.render()

    def update(self, dt: float) -> None:
        intent = self.controller.consume(dt)
        self.player.apply(intent)
        self.cast_target_ray()
        self.player.sync_camera()

    def cast_target_ray(self) -> Optional[GridCoord]:
        """
        March ``reach`` unit steps along the view direction and destroy the
        first occupied cell.  Returns the destroyed coordinate, if any.
        """
        point = self.player.position.astype(np.float64)
        step = self.player.look_direction().astype(np.float64)

        for _ in range(self.reach):
            point += step
            coord = (
                round_half_away(point[0]),
                round_half_away(point[1]),
                round_half_away(point[2]),
            )
            if self.world.contains(coord):
                self.world.destroy(coord)
                self.stats.destroyed += 1
                logger.debug("Destroyed block %s", coord)
                return coord
        return None

    def render(self) -> bool:
        """Submit one frame.  Returns *True* if it reached the surface."""
        camera = self.player.camera
        try:
            self.renderer.submit_frame(
                camera.uniform, self.world.get_instance_data(), camera.depth,
            )
        except (SurfaceLost, SurfaceOutdated) as exc:
            logger.warning("Surface %s – reconfiguring at %dx%d",
                           type(exc).__name__, *self.size)
            self.stats.reconfigures += 1
            self.resize(*self.size)
            return False
        except SurfaceOutOfMemory:
            logger.error("Out of GPU memory – stopping")
            self.running = False
            return False
        except SurfaceTimeout:
            logger.warning("Surface timeout – frame dropped")
            self.stats.dropped += 1
            return False

        self.stats.frames += 1
        return True

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def resize(self, width: int, height: int) -> None:
        # minimised windows report 0×0
        if width <= 0 or height <= 0:
            return
        self.size = (width, height)
        self.player.camera.resize(width, height)
        self.renderer.resize(width, height)

    def close(self) -> None:
        self.running = False
