"""
Scene - Data Models
===================
Pydantic models for simulation settings and per-object snapshots.

Snapshots are the read-only view handed to renderers, status panels and
the trajectory recorder.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import numpy as np
from pydantic import BaseModel, Field

from simulation import MAX_PATH_LEN, ConstantAltitude, SimObject


class SimulationSettings(BaseModel):
    """Global simulation controls."""
    time_step: float = Field(10.0, ge=1.0, le=1000.0, description="Simulated seconds per tick")
    frame_rotation: float = Field(
        1.0, ge=0.0, le=1.0, description="View frame rotation as a fraction of the Earth's"
    )
    running: bool = False
    max_path_len: int = Field(MAX_PATH_LEN, gt=0)


class ObjectSnapshot(BaseModel):
    """
    State of one object at a point in simulated time.

    Cartesian quantities are expressed in the frame given by ``frame_omega``.
    """
    index: int = Field(..., ge=0)
    t: float = 0.0
    frame_omega: float = 0.0

    # Geodetic position
    latitude_deg: float = 0.0
    longitude_deg: float = 0.0
    elevation_m: float = 0.0

    # Cartesian state in the requested frame
    position: List[float] = Field(default_factory=lambda: [0.0, 0.0, 0.0])
    velocity: List[float] = Field(default_factory=lambda: [0.0, 0.0, 0.0])

    # Ground-relative velocity
    velocity_east: float = 0.0
    velocity_north: float = 0.0
    velocity_up: float = 0.0

    grounded: bool = False
    altitude_m: Optional[float] = None
    color: Tuple[float, float, float] = (1.0, 0.0, 0.0)

    @property
    def speed(self) -> float:
        """Speed in the snapshot frame (m/s)."""
        return float(np.linalg.norm(self.velocity))

    @property
    def ground_speed(self) -> float:
        """Horizontal speed relative to the ground (m/s)."""
        return float(np.hypot(self.velocity_east, self.velocity_north))

    @classmethod
    def from_object(cls, index: int, obj: SimObject, frame_omega: float) -> ObjectSnapshot:
        lat, lon, elev = obj.lat_lon_elev()
        v_e, v_n, v_u = obj.vel.east_north_up(obj.pos)
        altitude = obj.flight_state.altitude if isinstance(obj.flight_state, ConstantAltitude) else None

        return cls(
            index=index,
            t=obj.time,
            frame_omega=frame_omega,
            latitude_deg=lat,
            longitude_deg=lon,
            elevation_m=elev,
            position=obj.position_in(frame_omega).pos.tolist(),
            velocity=obj.velocity_in(frame_omega).vel.tolist(),
            velocity_east=v_e,
            velocity_north=v_n,
            velocity_up=v_u,
            grounded=obj.is_grounded,
            altitude_m=altitude,
            color=obj.color,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return self.model_dump()
