"""
Mesh Module
===========
CPU-side geometry shared by every block instance.

A :class:`Mesh` is an interleaved vertex array plus a triangle index
buffer.  Vertex layout: 3f position, 3f normal, 2f uv (32 B/vertex).
The renderer uploads it once; the world never touches vertex data.

Sources
-------
* ``"cube"`` – built-in unit cube centred on the origin (side 1).
* anything else – ``<asset_dir>/<name>.obj``, read with ``trimesh``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Tuple

import numpy as np
import trimesh

from errors import MeshLoadError

VERTEX_FLOATS = 8


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclass
class Material:
    """Default material bound with a mesh (flat diffuse colour)."""
    name: str = "cobble"
    color: Tuple[float, float, float] = (0.55, 0.55, 0.52)


@dataclass
class Mesh:
    name: str
    vertices: np.ndarray     # (N, 8) float32
    indices: np.ndarray      # (M,) int32, M % 3 == 0
    material: Material = field(default_factory=Material)

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def index_count(self) -> int:
        return len(self.indices)


# ---------------------------------------------------------------------------
# Built-in geometry
# ---------------------------------------------------------------------------

def unit_cube() -> Mesh:
    """
    Unit cube spanning (-0.5,-0.5,-0.5)→(0.5,0.5,0.5), one quad per face so
    every face gets a flat normal.
    """
    faces = [
        # normal,        corners (counter-clockwise seen from outside)
        ((0, 0, 1),  [(-1, -1, 1), (1, -1, 1), (1, 1, 1), (-1, 1, 1)]),
        ((0, 0, -1), [(1, -1, -1), (-1, -1, -1), (-1, 1, -1), (1, 1, -1)]),
        ((0, 1, 0),  [(-1, 1, 1), (1, 1, 1), (1, 1, -1), (-1, 1, -1)]),
        ((0, -1, 0), [(-1, -1, -1), (1, -1, -1), (1, -1, 1), (-1, -1, 1)]),
        ((1, 0, 0),  [(1, -1, 1), (1, -1, -1), (1, 1, -1), (1, 1, 1)]),
        ((-1, 0, 0), [(-1, -1, -1), (-1, -1, 1), (-1, 1, 1), (-1, 1, -1)]),
    ]
    uvs = [(0, 1), (1, 1), (1, 0), (0, 0)]

    rows = []
    idx = []
    for f, (normal, corners) in enumerate(faces):
        for corner, uv in zip(corners, uvs):
            rows.append([c * 0.5 for c in corner] + list(normal) + list(uv))
        b = f * 4
        idx += [b, b + 1, b + 2, b, b + 2, b + 3]

    return Mesh(
        name="cube",
        vertices=np.array(rows, dtype=np.float32),
        indices=np.array(idx, dtype=np.int32),
    )


# ---------------------------------------------------------------------------
# OBJ loading
# ---------------------------------------------------------------------------

def _to_mesh(tm: trimesh.Trimesh, name: str) -> Mesh:
    """Interleave a trimesh into the ``(N, 8)`` vertex layout."""
    positions = np.asarray(tm.vertices, dtype=np.float32)
    normals = np.asarray(tm.vertex_normals, dtype=np.float32)

    uv = getattr(tm.visual, "uv", None)
    if uv is None or len(uv) != len(positions):
        uv = np.zeros((len(positions), 2), dtype=np.float32)

    return Mesh(
        name=name,
        vertices=np.hstack([positions, normals, np.asarray(uv, dtype=np.float32)]),
        indices=np.asarray(tm.faces, dtype=np.int32).reshape(-1),
    )


def load_mesh(name: str, asset_dir: str = "assets") -> Mesh:
    """
    Resolve *name* to a mesh.

    Files are read with ``trimesh``; scenes are concatenated into a single
    mesh.  Missing files, undecodable data or a file without faces raise
    :class:`MeshLoadError`.
    """
    if name == "cube":
        return unit_cube()

    path = Path(asset_dir) / f"{name}.obj"
    if not path.is_file():
        raise MeshLoadError(f"mesh file not found: {path}")

    try:
        loaded = trimesh.load(str(path), force="mesh")
        if isinstance(loaded, trimesh.Scene):
            geometry = tuple(loaded.geometry.values())
            loaded = trimesh.util.concatenate(geometry) if geometry else None
    except Exception as exc:
        raise MeshLoadError(f"cannot load mesh {path}: {exc}") from exc

    if not isinstance(loaded, trimesh.Trimesh) or len(loaded.faces) == 0:
        raise MeshLoadError(f"{path}: no faces found")

    return _to_mesh(loaded, name)
