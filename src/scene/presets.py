"""
Object Presets
==============
Factories for the standard demonstration setups.

- Free object with arbitrary east/north/up velocity
- Cyclone: a ring of air parcels drawn towards a low-pressure center
- Anticyclone: parcels spreading out from a single point
- Foucault pendulum: restoring force around a ground-fixed anchor
- Plane: constant-altitude flight holding its heading against Coriolis
"""

from __future__ import annotations

from typing import List, Tuple

import numpy as np

from simulation import CenterSeeking, Position, SimObject, Velocity, coords_at_distance


Color = Tuple[float, float, float]

PARTICLE_RADIUS = 100e3  # m, display radius for weather parcels
CYCLONE_ATTRACTOR_COEFF = 2e4
PENDULUM_STIFFNESS = 2e-6  # 1/s²


def create_object(lat: float, lon: float, elev: float, v_e: float, v_n: float, v_u: float) -> SimObject:
    """
    Create a free object from geodetic coordinates and ENU velocity.

    Args:
        lat, lon: Degrees
        elev: Meters above the ellipsoid
        v_e, v_n, v_u: Velocity components (m/s)
    """
    pos = Position.from_lat_lon_elev(lat, lon, elev)
    vel = Velocity.from_east_north_up(pos, v_e, v_n, v_u)
    return SimObject(pos, vel)


def anticyclone(
    lat: float,
    lon: float,
    elev: float,
    vel: float,
    vel_up: float,
    num_objects: int,
    color: Color
) -> List[SimObject]:
    """
    Parcels starting together and moving outward at evenly spaced azimuths.
    """
    pos = Position.from_lat_lon_elev(lat, lon, elev)
    objects = []
    for index in range(num_objects):
        azim = 2.0 * np.pi / num_objects * index
        velocity = Velocity.from_east_north_up(pos, vel * np.sin(azim), vel * np.cos(azim), vel_up)
        objects.append(
            SimObject(pos, velocity)
            .with_color(*color)
            .with_radius(PARTICLE_RADIUS)
            .with_constant_altitude()
        )
    return objects


def cyclone(
    lat: float,
    lon: float,
    elev: float,
    radius: float,
    attractor_coeff: float,
    vel: float,
    vel_up: float,
    num_objects: int,
    color: Color
) -> List[SimObject]:
    """
    Ring of parcels around a low-pressure center.

    Parcel k sits at great-circle distance ``radius`` from the center at
    azimuth 2πk/n, moving towards the center with horizontal speed ``vel``.

    Args:
        lat, lon, elev: Center (degrees, degrees, m)
        radius: Ring radius along the surface (m)
        attractor_coeff: Strength of the inverse-distance pull (m²/s²)
        vel: Initial horizontal speed (m/s)
        vel_up: Initial vertical speed (m/s)
        num_objects: Number of parcels
        color: RGB in 0..1
    """
    center = Position.from_lat_lon_elev(lat, lon, elev)
    objects = []
    for index in range(num_objects):
        azim = 2.0 * np.pi / num_objects * index
        n_lat, n_lon = coords_at_distance(lat, lon, np.degrees(azim), radius)
        pos = Position.from_lat_lon_elev(n_lat, n_lon, elev)
        velocity = Velocity.from_east_north_up(pos, -vel * np.sin(azim), -vel * np.cos(azim), vel_up)
        objects.append(
            SimObject(pos, velocity)
            .with_color(*color)
            .with_radius(PARTICLE_RADIUS)
            .with_attractor(CenterSeeking(center, attractor_coeff))
            .with_constant_altitude()
        )
    return objects


def foucault(
    lat: float,
    lon: float,
    elev: float,
    vel: float,
    azim: float,
    color: Color,
    k: float = PENDULUM_STIFFNESS
) -> SimObject:
    """
    Foucault pendulum bob released through its rest point.

    Args:
        azim: Initial swing direction, clockwise from north (degrees)
        k: Restoring stiffness (1/s²)
    """
    azim = np.radians(azim)
    return (
        create_object(lat, lon, elev, vel * np.sin(azim), vel * np.cos(azim), 0.0)
        .with_color(*color)
        .as_pendulum(k)
    )


def plane(
    lat: float,
    lon: float,
    elev: float,
    vel: float,
    azim: float,
    color: Color
) -> SimObject:
    """
    Aircraft at constant altitude that cancels the sideways Coriolis push.
    """
    azim = np.radians(azim)
    return (
        create_object(lat, lon, elev, vel * np.sin(azim), vel * np.cos(azim), 0.0)
        .with_color(*color)
        .with_constant_altitude()
        .with_coriolis_counteraction()
    )
