#!/usr/bin/env python3
"""
Voxel Flight – first-person voxel world viewer
==============================================

Main application entry-point.

Controls
--------
**Keyboard**
  * W / A / S / D or arrows – fly forward / left / back / right
  * Space / Left Shift      – fly up / down
  * ESC                     – quit

**Mouse**
  * Move – look around (pointer is captured)

Any block the view ray touches within reach is destroyed.
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from typing import Dict, List, Optional

import glfw
import moderngl

from camera import Camera, Projection
from config import AppConfig
from controller import CameraController
from events import (
    CloseRequested, FocusChanged, FrameTick, KeyDown, KeyUp, MouseMove, Resize,
)
from frame import FrameOrchestrator
from mesh import load_mesh
from player import Player
from renderer import Renderer
from world import World

logger = logging.getLogger("App")

# glfw key code → key name understood by the controller
KEY_NAMES: Dict[int, str] = {
    glfw.KEY_W: "w", glfw.KEY_A: "a", glfw.KEY_S: "s", glfw.KEY_D: "d",
    glfw.KEY_UP: "up", glfw.KEY_DOWN: "down",
    glfw.KEY_LEFT: "left", glfw.KEY_RIGHT: "right",
    glfw.KEY_SPACE: "space",
    glfw.KEY_LEFT_SHIFT: "left_shift",
    glfw.KEY_ESCAPE: "escape",
}


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="[%(name)s] %(message)s",
    )


# ======================================================================
# Application
# ======================================================================

class Application:
    """Top-level application – owns the window, GL context, and game loop."""

    def __init__(self, config: AppConfig) -> None:
        self.config = config

        # ---- GLFW window + GL context --------------------------------
        if not glfw.init():
            raise RuntimeError("GLFW init failed")

        glfw.window_hint(glfw.CONTEXT_VERSION_MAJOR, 3)
        glfw.window_hint(glfw.CONTEXT_VERSION_MINOR, 3)
        glfw.window_hint(glfw.OPENGL_PROFILE, glfw.OPENGL_CORE_PROFILE)
        glfw.window_hint(glfw.OPENGL_FORWARD_COMPAT, True)   # required on macOS
        glfw.window_hint(glfw.COCOA_RETINA_FRAMEBUFFER, False)

        self._win = glfw.create_window(config.width, config.height,
                                       config.title, None, None)
        if not self._win:
            glfw.terminate()
            raise RuntimeError("Failed to create GLFW window")

        glfw.make_context_current(self._win)
        glfw.swap_interval(1 if config.vsync else 0)
        glfw.set_input_mode(self._win, glfw.CURSOR, glfw.CURSOR_DISABLED)

        self._ctx = moderngl.create_context()
        width, height = glfw.get_framebuffer_size(self._win)

        # ---- sub-systems ---------------------------------------------
        # A MeshLoadError here aborts start-up.
        world = World.create(
            lambda name: load_mesh(name, config.asset_dir),
            mesh_name=config.mesh,
            extent=config.ground_extent,
            spacing=config.ground_spacing,
        )
        self._renderer = Renderer(self._ctx, width, height, world.mesh,
                                  clear_color=config.clear_color)
        camera = Camera(
            Projection(width, height, config.fovy, config.znear, config.zfar),
            width, height,
            depth_factory=self._renderer.create_depth_attachment,
        )
        player = Player(config.start_position, config.start_yaw_rad,
                        config.start_pitch_rad, camera)
        controller = CameraController(config.speed, config.sensitivity,
                                      config.smoothing_window)
        self._frame = FrameOrchestrator(world, player, controller, self._renderer,
                                        size=(width, height), reach=config.reach)

        # ---- FPS bookkeeping -----------------------------------------
        self._t0 = time.perf_counter()
        self._frames = 0
        self._fps = 0.0

        # ---- GLFW callbacks ------------------------------------------
        glfw.set_framebuffer_size_callback(self._win, self._cb_resize)
        glfw.set_key_callback(self._win, self._cb_key)
        glfw.set_cursor_pos_callback(self._win, self._cb_cursor)
        glfw.set_window_focus_callback(self._win, self._cb_focus)
        glfw.set_window_close_callback(self._win, self._cb_close)

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    def run(self) -> None:
        logger.info("Running.  ESC to quit")

        last = time.perf_counter()
        while self._frame.running:
            glfw.poll_events()
            now = time.perf_counter()
            self._frame.handle(FrameTick(now - last))
            last = now
            glfw.swap_buffers(self._win)
            self._update_fps()

        self._shutdown()

    # ------------------------------------------------------------------
    # GLFW callbacks
    # ------------------------------------------------------------------

    def _cb_key(self, _win, key: int, _scancode: int, action: int, _mods: int) -> None:
        name = KEY_NAMES.get(key)
        if name is None or action == glfw.REPEAT:
            return
        if action == glfw.PRESS:
            self._frame.handle(KeyDown(name))
        else:
            self._frame.handle(KeyUp(name))

    def _cb_cursor(self, _win, x: float, y: float) -> None:
        self._frame.handle(MouseMove(x, y))

    def _cb_resize(self, _win, w: int, h: int) -> None:
        self._frame.handle(Resize(w, h))

    def _cb_focus(self, _win, focused: int) -> None:
        self._frame.handle(FocusChanged(bool(focused)))

    def _cb_close(self, _win) -> None:
        self._frame.handle(CloseRequested())

    # ------------------------------------------------------------------
    # FPS
    # ------------------------------------------------------------------

    def _update_fps(self) -> None:
        self._frames += 1
        elapsed = time.perf_counter() - self._t0
        if elapsed >= 1.0:
            self._fps = self._frames / elapsed
            self._frames = 0
            self._t0 = time.perf_counter()
            glfw.set_window_title(
                self._win,
                f"{self.config.title}  |  {self._fps:.0f} FPS  |  "
                f"{self._frame.world.block_count} blocks",
            )

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    def _shutdown(self) -> None:
        stats = self._frame.stats
        self._frame.player.camera.release()
        self._renderer.cleanup()
        glfw.terminate()
        logger.info("Shutdown complete.  %d frame(s), %d dropped, %d block(s) destroyed.",
                    stats.frames, stats.dropped, stats.destroyed)


# ======================================================================
# Entry point
# ======================================================================

def parse_args(argv: Optional[List[str]] = None) -> AppConfig:
    parser = argparse.ArgumentParser(prog="voxel-flight",
                                     description="First-person voxel world viewer.")
    parser.add_argument("--config", help="JSON config file")
    parser.add_argument("--ground", type=int, help="Ground plane extent (blocks per side)")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ...")
    args = parser.parse_args(argv)

    config = AppConfig.from_file(args.config) if args.config else AppConfig()
    if args.ground is not None:
        config.ground_extent = args.ground
    if args.log_level:
        config.log_level = args.log_level
    return config


def main(argv: Optional[List[str]] = None) -> None:
    config = parse_args(argv)
    configure_logging(config.log_level)
    try:
        app = Application(config)
        app.run()
    except Exception:
        logger.exception("Fatal error")
        sys.exit(1)


if __name__ == "__main__":
    main()
