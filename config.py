"""
Configuration Module
====================
Single dataclass holding every tunable of the application.

Defaults reproduce the stock experience (960×720 window, 100×100 ground
plane, 45° vertical field of view).  Values can be overridden from a JSON
file and then from the command line (see ``main.py``).
"""

from __future__ import annotations

import json
import math
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Tuple


@dataclass
class AppConfig:
    """
    Application configuration.

    Angles are given in degrees here and converted to radians at the point
    of use (``start_yaw_rad`` / ``start_pitch_rad``).
    """

    # ---- window ---------------------------------------------------------
    width: int = 960
    height: int = 720
    title: str = "Voxel Flight"
    vsync: bool = True
    clear_color: Tuple[float, float, float] = (0.1, 0.2, 0.3)

    # ---- projection -----------------------------------------------------
    fovy: float = 45.0
    znear: float = 0.1
    zfar: float = 200.0

    # ---- player ---------------------------------------------------------
    start_position: Tuple[float, float, float] = (0.0, 5.0, 10.0)
    start_yaw: float = -90.0
    start_pitch: float = -20.0
    speed: float = 14.0
    sensitivity: float = 3.0
    smoothing_window: int = 10
    reach: int = 8

    # ---- world ----------------------------------------------------------
    ground_extent: int = 100
    ground_spacing: int = 2
    mesh: str = "cube"
    asset_dir: str = "assets"

    # ---- misc -----------------------------------------------------------
    log_level: str = "INFO"

    @property
    def start_yaw_rad(self) -> float:
        return math.radians(self.start_yaw)

    @property
    def start_pitch_rad(self) -> float:
        return math.radians(self.start_pitch)

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> AppConfig:
        """
        Build a config from a mapping, starting from the defaults.

        Raises
        ------
        ValueError
            If *data* contains a key that is not a config field, or a
            vector field that is not a list of numbers.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(
                f"Unknown config key(s): {unknown}. Available: {sorted(known)}"
            )

        values = dict(data)
        # JSON has no tuples
        for key in ("clear_color", "start_position"):
            if key in values:
                try:
                    values[key] = tuple(float(v) for v in values[key])
                except (TypeError, ValueError) as exc:
                    raise ValueError(
                        f"Config key {key!r} must be a list of numbers, got {values[key]!r}"
                    ) from exc
        return cls(**values)

    @classmethod
    def from_file(cls, filepath: str) -> AppConfig:
        """Load configuration from a JSON file."""
        payload = json.loads(Path(filepath).read_text())
        if not isinstance(payload, dict):
            raise ValueError(f"Config file {filepath} must contain a JSON object")
        return cls.from_dict(payload)

    def save(self, filepath: str) -> None:
        Path(filepath).write_text(json.dumps(self.to_dict(), indent=2))
