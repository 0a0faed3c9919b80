"""
World System Module
===================
Manages the voxel world: a **sparse grid** backed by a Python dictionary
keyed on integer ``(x, y, z)`` tuples.

The dictionary is the single source of truth for which blocks exist: a key
is present iff a block occupies that cell, absence means empty space.
Edits live in memory only and vanish when the process exits.

Features
--------
* Place / destroy blocks at arbitrary integer grid positions.
* Flat ground plane populated at start-up (every ``spacing``-th cell).
* Render-data cache – instance array only rebuilt when blocks change
  (dirty flag).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

from mesh import Mesh

logger = logging.getLogger("World")

GridCoord = Tuple[int, int, int]

IDENTITY_QUAT: Tuple[float, float, float, float] = (1.0, 0.0, 0.0, 0.0)

# 16 floats model matrix + 9 floats normal matrix, both column-major
INSTANCE_FLOATS = 25


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

def quat_to_mat3(q) -> np.ndarray:
    """
    Rotation matrix of a unit quaternion ``(w, x, y, z)``.  Also accepts an
    ``(N, 4)`` array and returns ``(N, 3, 3)``.
    """
    q = np.asarray(q, dtype=np.float32)
    w, x, y, z = q[..., 0], q[..., 1], q[..., 2], q[..., 3]
    rows = [
        [1 - 2 * (y * y + z * z), 2 * (x * y - w * z),     2 * (x * z + w * y)],
        [2 * (x * y + w * z),     1 - 2 * (x * x + z * z), 2 * (y * z - w * x)],
        [2 * (x * z - w * y),     2 * (y * z + w * x),     1 - 2 * (x * x + y * y)],
    ]
    return np.stack([np.stack(r, axis=-1) for r in rows], axis=-2).astype(np.float32)


@dataclass
class Block:
    """Single block stored in the world."""
    position: np.ndarray                 # float32 (3,), world units
    rotation: Tuple[float, float, float, float] = IDENTITY_QUAT

    def model_matrix(self) -> np.ndarray:
        M = np.eye(4, dtype=np.float32)
        M[:3, :3] = quat_to_mat3(self.rotation)
        M[:3, 3] = self.position
        return M

    def normal_matrix(self) -> np.ndarray:
        return quat_to_mat3(self.rotation)

    def to_instance(self) -> np.ndarray:
        """Pack into one ``INSTANCE_FLOATS`` row (column-major for GLSL)."""
        return np.concatenate([
            self.model_matrix().flatten(order="F"),
            self.normal_matrix().flatten(order="F"),
        ])


# ---------------------------------------------------------------------------
# World
# ---------------------------------------------------------------------------

class World:
    """
    Sparse voxel world.

    Storage
    ~~~~~~~
    ``_blocks`` is ``Dict[Tuple[int,int,int], Block]``.
    Only occupied cells consume memory.  Grid coordinates are integer world
    cells, so a key converts to its render position by a plain float cast.

    Dirty flag
    ~~~~~~~~~~
    ``_dirty`` is set whenever blocks are placed / destroyed.  The frame
    loop calls ``get_instance_data()`` every frame; the array is cached
    until the next mutation.
    """

    def __init__(self, mesh: Optional[Mesh] = None) -> None:
        self.mesh = mesh
        self._blocks: Dict[GridCoord, Block] = {}
        self._dirty: bool = True
        self._instance_cache: Optional[np.ndarray] = None

    @classmethod
    def create(
        cls,
        mesh_loader: Callable[[str], Mesh],
        mesh_name: str = "cube",
        extent: int = 100,
        spacing: int = 2,
    ) -> World:
        """
        Load the shared block mesh and lay the ground plane.

        A :class:`errors.MeshLoadError` from *mesh_loader* is not caught:
        the world cannot exist without its mesh.
        """
        world = cls(mesh=mesh_loader(mesh_name))
        world.populate_ground(extent, spacing)
        return world

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def place(self, coord: GridCoord) -> None:
        """Place a block.  An occupied cell is overwritten."""
        key = (int(coord[0]), int(coord[1]), int(coord[2]))
        self._blocks[key] = Block(position=np.array(key, dtype=np.float32))
        self._dirty = True

    def destroy(self, coord: GridCoord) -> bool:
        """Remove a block.  Returns *False* if the cell was already empty."""
        key = (int(coord[0]), int(coord[1]), int(coord[2]))
        if self._blocks.pop(key, None) is None:
            return False
        self._dirty = True
        return True

    def populate_ground(self, extent: int = 100, spacing: int = 2) -> None:
        """Lay an *extent*×*extent* plane at Y=0, one block every *spacing* cells."""
        for x in range(extent):
            for z in range(extent):
                self.place((x * spacing, 0, z * spacing))
        logger.info("Ground plane %d×%d (spacing %d) → %d block(s)",
                    extent, extent, spacing, len(self._blocks))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def contains(self, coord: GridCoord) -> bool:
        return tuple(coord) in self._blocks

    def get(self, coord: GridCoord) -> Optional[Block]:
        return self._blocks.get(tuple(coord))

    def blocks(self) -> List[Block]:
        """Snapshot of the current blocks (mutating it leaves the world intact)."""
        return list(self._blocks.values())

    def coords(self) -> List[GridCoord]:
        return list(self._blocks)

    @property
    def block_count(self) -> int:
        return len(self._blocks)

    # ------------------------------------------------------------------
    # Render data
    # ------------------------------------------------------------------

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    def get_instance_data(self) -> np.ndarray:
        """
        Return an ``(N, 25)`` float32 array: model matrix (16) then normal
        matrix (9) per block, both column-major.
        Result is cached until the world mutates.
        """
        if not self._dirty and self._instance_cache is not None:
            return self._instance_cache

        blocks = list(self._blocks.values())
        if not blocks:
            self._instance_cache = np.empty((0, INSTANCE_FLOATS), dtype=np.float32)
        else:
            n = len(blocks)
            rot = quat_to_mat3([b.rotation for b in blocks])
            model = np.zeros((n, 4, 4), dtype=np.float32)
            model[:, :3, :3] = rot
            model[:, :3, 3] = [b.position for b in blocks]
            model[:, 3, 3] = 1.0
            # row-major transpose == column-major flatten
            self._instance_cache = np.concatenate([
                model.transpose(0, 2, 1).reshape(n, 16),
                rot.transpose(0, 2, 1).reshape(n, 9),
            ], axis=1)

        self._dirty = False
        return self._instance_cache
