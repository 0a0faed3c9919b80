"""
Error Types
===========
Failures that cross the boundary between the frame loop and its
collaborators (graphics backend, asset loader).

Surface errors
--------------
* **SurfaceLost / SurfaceOutdated** – recoverable, the surface is
  reconfigured at the last known size and the next tick proceeds.
* **SurfaceOutOfMemory** – fatal, the run loop terminates.
* **SurfaceTimeout** – the frame is dropped and logged.
"""

from __future__ import annotations


class SurfaceError(Exception):
    """Base class for frame submission failures."""


class SurfaceLost(SurfaceError):
    pass


class SurfaceOutdated(SurfaceError):
    pass


class SurfaceOutOfMemory(SurfaceError):
    pass


class SurfaceTimeout(SurfaceError):
    pass


class MeshLoadError(Exception):
    """Raised when a mesh asset is missing or malformed."""
