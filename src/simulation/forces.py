"""
Force Model
===========
Accelerations acting on a simulated object, expressed in the object's own
rotating frame.

Inertial terms (gravity, centrifugal, Coriolis) live on Position and
Velocity. This module adds the surface-relative terms:

- Friction: proportional to the velocity relative to the co-rotating ground
- Drag: quadratic in the same relative velocity, scaled by air density
- Attraction: per-object force providers (pendulum, cyclone center)
- Curvature correction: holds an object on a constant-altitude surface
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from .frames import Position, Velocity
from .geodesy import OMEGA, east_north, meridian_radius, prime_vertical_radius


# Atmosphere
SEA_LEVEL_AIR_DENSITY = 1.225  # kg/m³
AIR_DENSITY_DECAY = 1.25e-4  # 1/m


def air_density(elev: float) -> float:
    """Exponential atmosphere, clamped to sea level below the surface."""
    return SEA_LEVEL_AIR_DENSITY * np.exp(-AIR_DENSITY_DECAY * max(elev, 0.0))


def surface_velocity(pos: Position) -> NDArray:
    """
    Velocity of the co-rotating ground at ``pos`` as seen from its frame.

    The ground rotates at OMEGA, so in a frame rotating at ω it moves with
    (OMEGA - ω)·(Y × r).
    """
    x, _, z = pos.pos
    return (OMEGA - pos.omega) * np.array([z, 0.0, -x])


def friction(pos: Position, vel: Velocity, coeff: float) -> NDArray:
    """
    Linear friction towards the ground velocity.

    Args:
        pos: Object position
        vel: Object velocity, in the same frame as ``pos``
        coeff: Friction coefficient (1/s)
    """
    return coeff * (surface_velocity(pos) - vel.vel)


def drag(pos: Position, vel: Velocity, coeff: float, elev: float) -> NDArray:
    """
    Quadratic air drag relative to the co-rotating atmosphere.

    Args:
        pos: Object position
        vel: Object velocity, in the same frame as ``pos``
        coeff: Mass-independent drag coefficient (m²/kg)
        elev: Elevation used for the air density (m)
    """
    v_rel = surface_velocity(pos) - vel.vel
    # |v_rel|·v_rel vanishes smoothly at zero, no normalisation needed
    return coeff * air_density(elev) * np.linalg.norm(v_rel) * v_rel


def curvature_correction(
    acc: NDArray,
    normal: NDArray,
    vel: NDArray,
    pos: NDArray,
    lat_r: float,
    altitude: float
) -> NDArray:
    """
    Replace the normal component of ``acc`` with the centripetal term
    needed to follow a surface at ``altitude`` above the ellipsoid.

    Uses Euler's normal-curvature form

        a·n = -(v_N² / (M + h) + v_E² / (N + h))

    where v_N, v_E are the tangential velocity components and M, N the
    meridional and prime vertical radii of curvature.

    Args:
        acc: Candidate acceleration (m/s²)
        normal: Outward surface normal (unit)
        vel: Velocity (m/s)
        pos: Position (m)
        lat_r: Geodetic latitude (rad)
        altitude: Height of the constraint surface (m)

    Returns:
        Corrected acceleration (m/s²)
    """
    east, north = east_north(pos, normal)
    v_e = float(vel @ east)
    v_n = float(vel @ north)

    required = -(
        v_n * v_n / (meridian_radius(lat_r) + altitude)
        + v_e * v_e / (prime_vertical_radius(lat_r) + altitude)
    )
    return acc + (required - float(acc @ normal)) * normal


def coriolis_counteraction(coriolis: NDArray, normal: NDArray) -> NDArray:
    """Acceleration cancelling the tangential part of the Coriolis term."""
    return -(coriolis - float(coriolis @ normal) * normal)


# =============================================================================
# ATTRACTORS
# =============================================================================

class Attractor:
    """
    Per-object custom force provider.

    Attractors are immutable once built, so copies of an object may share
    the same instance.
    """

    def acceleration(self, pos: Position) -> NDArray:
        raise NotImplementedError


class NoAttractor(Attractor):

    def acceleration(self, pos: Position) -> NDArray:
        return np.zeros(3)

    def __repr__(self) -> str:
        return "NoAttractor()"


def _anchor_at(anchor: Position, pos: Position) -> NDArray:
    # Anchors are fixed to the ground: move them to the query time and frame
    return anchor.with_t(pos.t).to_omega(pos.omega).pos


@dataclass(frozen=True, eq=False)
class PendulumRestoring(Attractor):
    """
    Linear restoring force towards a ground-fixed anchor, k·(anchor - pos).

    With the object held at constant altitude this reproduces a Foucault
    pendulum in the small-amplitude limit.
    """
    anchor: Position
    k: float

    def acceleration(self, pos: Position) -> NDArray:
        return self.k * (_anchor_at(self.anchor, pos) - pos.pos)


@dataclass(frozen=True, eq=False)
class CenterSeeking(Attractor):
    """
    Inverse-distance pull towards a ground-fixed center, coeff·d/|d|².

    Models the pressure-gradient force around a low-pressure center.
    """
    center: Position
    coeff: float

    def acceleration(self, pos: Position) -> NDArray:
        diff = _anchor_at(self.center, pos) - pos.pos
        dist2 = float(diff @ diff)
        if dist2 == 0.0:
            return np.zeros(3)
        return diff / dist2 * self.coeff
