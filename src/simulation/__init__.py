"""
Simulation Package
===================
Frame-aware kinematics, force model and integrators for objects moving
near the rotating Earth.
"""

from .geodesy import (
    OMEGA,
    GM,
    R_EQU,
    R_POL,
    ECC2,
    lat_lon_elev_to_vec3,
    pos_to_lat_lon_elev,
    geocentric_latitude,
    earth_radius,
    surface_normal,
    coords_at_distance,
)
from .frames import Position, Velocity, polar_rotation
from .forces import (
    Attractor,
    NoAttractor,
    PendulumRestoring,
    CenterSeeking,
    air_density,
    friction,
    drag,
)
from .integrator import IntegrableState, RK4Integrator, AdaptiveIntegrator
from .objects import (
    MAX_PATH_LEN,
    FreeFlight,
    ConstantAltitude,
    FlightState,
    SimObject,
)

__all__ = [
    "OMEGA",
    "GM",
    "R_EQU",
    "R_POL",
    "ECC2",
    "lat_lon_elev_to_vec3",
    "pos_to_lat_lon_elev",
    "geocentric_latitude",
    "earth_radius",
    "surface_normal",
    "coords_at_distance",
    "Position",
    "Velocity",
    "polar_rotation",
    "Attractor",
    "NoAttractor",
    "PendulumRestoring",
    "CenterSeeking",
    "air_density",
    "friction",
    "drag",
    "IntegrableState",
    "RK4Integrator",
    "AdaptiveIntegrator",
    "MAX_PATH_LEN",
    "FreeFlight",
    "ConstantAltitude",
    "FlightState",
    "SimObject",
]
