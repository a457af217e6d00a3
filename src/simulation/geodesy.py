"""
Planet Geodesy
==============
Oblate-spheroid model of the Earth and conversions between geodetic
coordinates and Cartesian vectors.

Coordinate Convention:
----------------------
- Y: Polar axis (north pole at +Y)
- X, Z: Equatorial plane, longitude measured from +Z towards +X

A geodetic triple (lat, lon, elev) maps to

    (r·sin(lon), z, r·cos(lon))

with r = (N + h)·cos(φ) and z = (N·(1 - e²) + h)·sin(φ), where N is the
prime vertical radius of curvature.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np
from numpy.typing import NDArray


# Physical constants
OMEGA = 7.29212351699e-5  # rad/s, Earth's angular speed
GM = 3.986004418e14  # m³/s², Earth's mass times G

R_EQU = 6_378_137.0  # m
R_POL = 6_356_752.0  # m
ECC2 = (R_EQU * R_EQU - R_POL * R_POL) / R_EQU / R_EQU

# Mean radius used for great-circle offsets
MEAN_RADIUS = 6371e3  # m

# Inverse projection limits
MAX_GEODETIC_ITERATIONS = 5
GEODETIC_TOLERANCE = 1e-10


def nphi(lat_r: float) -> float:
    """Prime vertical radius of curvature N(φ)."""
    s = np.sin(lat_r)
    return R_EQU / np.sqrt(1.0 - ECC2 * s * s)


def meridian_radius(lat_r: float) -> float:
    """Meridional radius of curvature M(φ) = a(1 - e²) / W^(3/2)."""
    s = np.sin(lat_r)
    w = 1.0 - ECC2 * s * s
    return R_EQU * (1.0 - ECC2) / (w * np.sqrt(w))


def prime_vertical_radius(lat_r: float) -> float:
    """Alias of :func:`nphi`, named after the principal section it measures."""
    return nphi(lat_r)


def lat_lon_elev_to_vec3(lat: float, lon: float, elev: float) -> NDArray:
    """
    Convert geodetic coordinates to a Cartesian vector.

    Args:
        lat: Geodetic latitude (degrees)
        lon: Longitude (degrees)
        elev: Elevation above the reference ellipsoid (m)

    Returns:
        Position vector in the planet frame (m)
    """
    lat = np.radians(lat)
    lon = np.radians(lon)

    n = nphi(lat)
    r = (n + elev) * np.cos(lat)
    z = (n * (1.0 - ECC2) + elev) * np.sin(lat)

    return np.array([r * np.sin(lon), z, r * np.cos(lon)])


def pos_to_lat_lon_elev(pos: NDArray) -> Tuple[float, float, float]:
    """
    Inverse of :func:`lat_lon_elev_to_vec3`.

    Geodetic latitude is found with Newton's method on

        f(φ) = p·sin(φ) - y·cos(φ) - e²·N(φ)·sin(φ)·cos(φ) = 0

    where p is the distance from the polar axis. Iteration stops after
    MAX_GEODETIC_ITERATIONS steps or when the update drops below
    GEODETIC_TOLERANCE.

    Args:
        pos: Position vector in the planet frame (m)

    Returns:
        (latitude in degrees, longitude in degrees, elevation in m)
    """
    x, y, z = (float(c) for c in pos)
    p = np.hypot(x, z)
    if p == 0.0 and y == 0.0:
        raise ValueError("Cannot project the planet's center to geodetic coordinates")

    lon = np.arctan2(x, z)

    # Initial guess from the surface-point relation
    lat = np.arctan2(y, p * (1.0 - ECC2))

    for _ in range(MAX_GEODETIC_ITERATIONS):
        s, c = np.sin(lat), np.cos(lat)
        w = 1.0 - ECC2 * s * s
        n = R_EQU / np.sqrt(w)
        dn = n * ECC2 * s * c / w

        f = p * s - y * c - ECC2 * n * s * c
        df = p * c + y * s - ECC2 * (dn * s * c + n * (c * c - s * s))

        delta = f / df
        lat -= delta
        if abs(delta) < GEODETIC_TOLERANCE:
            break

    s, c = np.sin(lat), np.cos(lat)
    elev = p * c + y * s - R_EQU * np.sqrt(1.0 - ECC2 * s * s)

    return float(np.degrees(lat)), float(np.degrees(lon)), float(elev)


def geocentric_latitude(pos: NDArray) -> float:
    """Latitude measured from the planet's center (radians)."""
    return float(np.arctan2(pos[1], np.hypot(pos[0], pos[2])))


def earth_radius(geocentric_lat: float) -> float:
    """
    Distance from the center to the ellipsoid surface.

    Args:
        geocentric_lat: Geocentric latitude (rad)

    Returns:
        Surface radius (m)
    """
    c = np.cos(geocentric_lat)
    s = np.sin(geocentric_lat)
    return R_EQU * R_POL / np.sqrt(R_POL * R_POL * c * c + R_EQU * R_EQU * s * s)


def surface_normal(pos: NDArray) -> NDArray:
    """
    Geodetic "up" direction at a point.

    The ellipsoid is symmetric about the polar axis, so the result is the
    same in every frame rotating about that axis.
    """
    grad = np.array([
        pos[0] / (R_EQU * R_EQU),
        pos[1] / (R_POL * R_POL),
        pos[2] / (R_EQU * R_EQU),
    ])
    norm = np.linalg.norm(grad)
    if norm == 0.0:
        raise ValueError("Surface normal is undefined at the planet's center")
    return grad / norm


def east_north(pos: NDArray, up: NDArray) -> Tuple[NDArray, NDArray]:
    """Local east and north unit vectors for a point and its up direction."""
    lon = np.arctan2(pos[0], pos[2])
    east = np.array([np.cos(lon), 0.0, -np.sin(lon)])
    north = np.cross(up, east)
    return east, north


def coords_at_distance(
    lat: float,
    lon: float,
    azimuth: float,
    dist: float
) -> Tuple[float, float]:
    """
    Destination of a great-circle path on a sphere of MEAN_RADIUS.

    Args:
        lat: Start latitude (degrees)
        lon: Start longitude (degrees)
        azimuth: Initial heading, clockwise from north (degrees)
        dist: Distance along the surface (m)

    Returns:
        (latitude, longitude) in degrees
    """
    lat = np.radians(lat)
    lon = np.radians(lon)
    azimuth = np.radians(azimuth)
    ang = dist / MEAN_RADIUS

    # Local basis with Z as the polar axis
    v_pos = np.array([np.cos(lat) * np.cos(lon), np.cos(lat) * np.sin(lon), np.sin(lat)])
    v_e = np.array([-np.sin(lon), np.cos(lon), 0.0])
    v_n = np.cross(v_pos, v_e)
    v_dir = v_n * np.cos(azimuth) + v_e * np.sin(azimuth)

    end = v_pos * np.cos(ang) + v_dir * np.sin(ang)
    end = end / np.linalg.norm(end)

    return float(np.degrees(np.arcsin(end[2]))), float(np.degrees(np.arctan2(end[1], end[0])))
