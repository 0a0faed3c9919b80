"""
Input events produced by the window shell and consumed by the frame loop.

Keys are identified by lower-case names (``"w"``, ``"space"``,
``"left_shift"``, ``"escape"`` …) so the core never depends on a windowing
library's key codes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class KeyDown:
    key: str


@dataclass(frozen=True)
class KeyUp:
    key: str


@dataclass(frozen=True)
class MouseMove:
    x: float   # absolute pointer position, device pixels
    y: float


@dataclass(frozen=True)
class Resize:
    width: int
    height: int


@dataclass(frozen=True)
class FocusChanged:
    focused: bool


@dataclass(frozen=True)
class CloseRequested:
    pass


@dataclass(frozen=True)
class FrameTick:
    dt: float  # seconds since the previous tick


Event = Union[KeyDown, KeyUp, MouseMove, Resize, FocusChanged, CloseRequested, FrameTick]
