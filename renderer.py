"""
Rendering Module
================
GPU rendering with **ModernGL** (OpenGL 3.3 core).  This is the frame
submission boundary used by :class:`frame.FrameOrchestrator`.

Architecture
~~~~~~~~~~~~
1. **Block pass** – every block is one instance of the shared mesh.  Per
   instance: model matrix (mat4) + normal matrix (mat3).  The camera
   uniform block holds the view-projection and eye position.  Diffuse +
   ambient lighting, darkened face edges.
2. **Present** – the pass renders into an offscreen framebuffer whose depth
   attachment belongs to the camera; the colour result is copied to the
   window's default framebuffer.

Failures of the GL backend are translated into the ``SurfaceError``
taxonomy from ``errors.py``.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

import moderngl
import numpy as np

from camera import CameraUniform
from errors import SurfaceLost, SurfaceOutdated, SurfaceOutOfMemory
from mesh import Mesh
from world import INSTANCE_FLOATS

logger = logging.getLogger("Renderer")

# ======================================================================
# GLSL shader sources
# ======================================================================

_BLOCK_VERT = """
#version 330 core

layout (std140) uniform Camera {
    vec4 view_position;
    mat4 view_proj;
};

in vec3 in_pos;
in vec3 in_normal;
in vec2 in_uv;

// per-instance
in mat4 i_model;
in mat3 i_normal;

out vec3 v_normal;
out vec2 v_uv;
out vec3 v_world;

void main() {
    vec4 wp = i_model * vec4(in_pos, 1.0);
    gl_Position = view_proj * wp;
    v_normal = i_normal * in_normal;
    v_uv     = in_uv;
    v_world  = wp.xyz;
}
"""

_BLOCK_FRAG = """
#version 330 core

layout (std140) uniform Camera {
    vec4 view_position;
    mat4 view_proj;
};

in vec3 v_normal;
in vec2 v_uv;
in vec3 v_world;

out vec4 frag;

uniform vec3 u_color;
uniform vec3 u_light_dir;
uniform vec3 u_light_col;
uniform vec3 u_ambient;

void main() {
    float diff = max(dot(normalize(v_normal), normalize(u_light_dir)), 0.0);
    float edge = min(min(v_uv.x, 1.0 - v_uv.x), min(v_uv.y, 1.0 - v_uv.y));
    float rim  = mix(0.65, 1.0, smoothstep(0.0, 0.06, edge));
    float fog  = clamp(length(v_world - view_position.xyz) / 180.0, 0.0, 1.0);
    vec3 lit = (u_ambient + diff * u_light_col) * u_color * rim;
    frag = vec4(mix(lit, vec3(0.1, 0.2, 0.3), fog * fog), 1.0);
}
"""


# ======================================================================
# Renderer
# ======================================================================

class Renderer:
    """
    Manages all OpenGL state and draws each frame.

    Typical per-frame usage::

        renderer.submit_frame(camera.uniform, world.get_instance_data(), camera.depth)

    The camera obtains its depth attachment from
    :meth:`create_depth_attachment`; the colour target is rebuilt to match
    whenever a new depth attachment shows up.
    """

    def __init__(
        self,
        ctx: moderngl.Context,
        width: int,
        height: int,
        mesh: Mesh,
        clear_color: Tuple[float, float, float] = (0.1, 0.2, 0.3),
    ) -> None:
        self.ctx = ctx
        self.width = width
        self.height = height
        self.clear_color = clear_color

        self.ctx.enable(moderngl.DEPTH_TEST | moderngl.CULL_FACE)

        # ---- camera uniform block -----------------------------------
        self._camera_ubo = ctx.buffer(reserve=len(CameraUniform().to_bytes()))

        # ---- block pass (instanced) ---------------------------------
        self._block_prog = ctx.program(vertex_shader=_BLOCK_VERT, fragment_shader=_BLOCK_FRAG)
        self._block_prog['Camera'].binding = 0
        self._block_prog['u_color'].value = tuple(mesh.material.color)
        self._block_prog['u_light_dir'].value = (0.4, 0.9, 0.3)
        self._block_prog['u_light_col'].value = (0.75, 0.75, 0.72)
        self._block_prog['u_ambient'].value = (0.35, 0.35, 0.38)

        self._mesh_vbo = ctx.buffer(mesh.vertices.astype(np.float32).tobytes())
        self._mesh_ibo = ctx.buffer(mesh.indices.astype(np.int32).tobytes())
        self._inst_vbo = ctx.buffer(reserve=INSTANCE_FLOATS * 4 * 4096)
        self._inst_count: int = 0
        self._last_instances: Optional[np.ndarray] = None
        self._block_vao = self._build_vao()

        # ---- offscreen target ---------------------------------------
        self._color_rb: Optional[moderngl.Renderbuffer] = None
        self._fbo: Optional[moderngl.Framebuffer] = None
        self._fbo_depth: Optional[moderngl.Renderbuffer] = None

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    def create_depth_attachment(self, width: int, height: int) -> moderngl.Renderbuffer:
        """Depth factory handed to :class:`camera.Camera`."""
        return self.ctx.depth_renderbuffer((width, height))

    def _build_vao(self) -> moderngl.VertexArray:
        return self.ctx.vertex_array(
            self._block_prog,
            [
                (self._mesh_vbo, '3f 3f 2f', 'in_pos', 'in_normal', 'in_uv'),
                (self._inst_vbo, '16f 9f /i', 'i_model', 'i_normal'),
            ],
            index_buffer=self._mesh_ibo,
        )

    def _ensure_target(self, depth: moderngl.Renderbuffer) -> moderngl.Framebuffer:
        if self._fbo is not None and depth is self._fbo_depth:
            return self._fbo

        if self._fbo is not None:
            self._fbo.release()
        if self._color_rb is not None:
            self._color_rb.release()

        self._color_rb = self.ctx.renderbuffer(depth.size, 4)
        self._fbo = self.ctx.framebuffer(
            color_attachments=[self._color_rb], depth_attachment=depth,
        )
        self._fbo_depth = depth
        logger.debug("Render target rebuilt at %dx%d", *depth.size)
        return self._fbo

    def _upload_instances(self, instances: np.ndarray) -> None:
        if instances is self._last_instances:
            return
        self._last_instances = instances
        self._inst_count = len(instances)
        if self._inst_count == 0:
            return

        raw = np.ascontiguousarray(instances, dtype=np.float32).tobytes()
        if len(raw) > self._inst_vbo.size:
            self._block_vao.release()
            self._inst_vbo.release()
            self._inst_vbo = self.ctx.buffer(raw)
            self._block_vao = self._build_vao()
        else:
            self._inst_vbo.write(raw)

    # ------------------------------------------------------------------
    # Frame submission
    # ------------------------------------------------------------------

    def submit_frame(
        self,
        uniform: CameraUniform,
        instances: np.ndarray,
        depth: Optional[moderngl.Renderbuffer],
    ) -> None:
        """
        Draw one complete frame and copy it to the window.

        Raises
        ------
        SurfaceOutdated
            The depth attachment does not match the current surface size.
        SurfaceOutOfMemory
            The driver ran out of memory.
        SurfaceLost
            Any other backend failure.
        """
        if depth is None or tuple(depth.size) != (self.width, self.height):
            raise SurfaceOutdated("depth attachment does not match surface")

        try:
            self._camera_ubo.write(uniform.to_bytes())
            self._upload_instances(instances)

            fbo = self._ensure_target(depth)
            fbo.use()
            fbo.clear(*self.clear_color, 1.0, depth=1.0)

            if self._inst_count > 0:
                self._camera_ubo.bind_to_uniform_block(0)
                self._block_vao.render(instances=self._inst_count)

            self.ctx.copy_framebuffer(self.ctx.screen, fbo)
            self.ctx.screen.use()
        except MemoryError as exc:
            raise SurfaceOutOfMemory(str(exc)) from exc
        except moderngl.Error as exc:
            if "out of memory" in str(exc).lower():
                raise SurfaceOutOfMemory(str(exc)) from exc
            raise SurfaceLost(str(exc)) from exc

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def resize(self, w: int, h: int) -> None:
        self.width, self.height = w, h
        self.ctx.viewport = (0, 0, w, h)

    def cleanup(self) -> None:
        for res in (self._fbo, self._color_rb, self._block_vao,
                    self._inst_vbo, self._mesh_vbo, self._mesh_ibo,
                    self._camera_ubo, self._block_prog):
            if res is not None:
                res.release()
