"""
Frame-Relative Kinematics
=========================
Positions and velocities expressed in reference frames rotating about the
planet's polar axis (Y).

Every value is tagged with the angular velocity ω of its frame. All frames
coincide at t = 0, so moving a value from frame ω_old to frame ω_new is a
rotation about Y by

    θ = (ω_old - ω_new) · t

Velocities additionally pick up the relative frame motion

    v_new = v_old - Δω·(Y × r)

before the rotation is applied, which is why a velocity conversion always
needs the paired position.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

import numpy as np
from numpy.typing import NDArray

from .geodesy import GM, OMEGA, east_north, lat_lon_elev_to_vec3


def polar_rotation(theta: float) -> NDArray:
    """
    Rotation matrix around the polar (Y) axis.

    Args:
        theta: Rotation angle in radians

    Returns:
        3x3 rotation matrix
    """
    c, s = np.cos(theta), np.sin(theta)
    return np.array([
        [c, 0, s],
        [0, 1, 0],
        [-s, 0, c]
    ])


@dataclass(eq=False)
class Position:
    """
    A point in a rotating frame.

    Attributes:
        pos: Cartesian coordinates (m)
        t: Seconds since simulation start
        omega: Angular velocity of the frame (rad/s)
    """
    pos: NDArray = field(default_factory=lambda: np.zeros(3))
    t: float = 0.0
    omega: float = OMEGA

    def __post_init__(self):
        self.pos = np.array(self.pos, dtype=float)

    @classmethod
    def from_lat_lon_elev(cls, lat: float, lon: float, elev: float) -> Position:
        """Create a position at t = 0 in the planet's own frame."""
        return cls(lat_lon_elev_to_vec3(lat, lon, elev), 0.0, OMEGA)

    def copy(self) -> Position:
        return Position(self.pos.copy(), self.t, self.omega)

    def with_t(self, t: float) -> Position:
        return Position(self.pos.copy(), t, self.omega)

    def to_omega(self, omega: float) -> Position:
        """
        Express this point in a frame rotating at ``omega``.

        Args:
            omega: Target frame angular velocity (rad/s)

        Returns:
            New Position tagged with ``omega``
        """
        if self.omega == omega:
            return self.copy()
        R = polar_rotation((self.omega - omega) * self.t)
        return Position(R @ self.pos, self.t, omega)

    def dir_to_omega(self, vec: NDArray, omega: float) -> NDArray:
        """Rotate a free vector from this position's frame into ``omega``."""
        R = polar_rotation((self.omega - omega) * self.t)
        return R @ np.asarray(vec, dtype=float)

    def grav(self, gm: float) -> NDArray:
        """Inverse-square gravitational acceleration."""
        r = np.linalg.norm(self.pos)
        if r == 0.0:
            raise ValueError("Gravity is undefined at the planet's center")
        return -gm / r / r / r * self.pos

    def centrifugal(self) -> NDArray:
        r_xz = np.array([self.pos[0], 0.0, self.pos[2]])
        return r_xz * self.omega * self.omega

    @property
    def r(self) -> float:
        return float(np.linalg.norm(self.pos))

    def increase(self, v: NDArray) -> None:
        self.pos += v

    def increase_time(self, dt: float) -> None:
        self.t += dt

    def scale(self, x: float) -> None:
        self.pos *= x

    def isclose(self, other: Position, rtol: float = 1e-9, atol: float = 1e-6) -> bool:
        """Compare two positions taken in the same frame at the same time."""
        return (
            self.omega == other.omega
            and np.isclose(self.t, other.t)
            and bool(np.allclose(self.pos, other.pos, rtol=rtol, atol=atol))
        )


def _enu_basis(pos: Position) -> Tuple[NDArray, NDArray, NDArray]:
    # "Up" opposes effective gravity in the planet frame
    eff_grav = pos.grav(GM) + pos.centrifugal()
    up = -eff_grav / np.linalg.norm(eff_grav)
    east, north = east_north(pos.pos, up)
    return east, north, up


@dataclass(eq=False)
class Velocity:
    """
    A velocity vector in a rotating frame.

    Attributes:
        vel: Cartesian rate vector (m/s)
        omega: Angular velocity of the frame (rad/s)
    """
    vel: NDArray = field(default_factory=lambda: np.zeros(3))
    omega: float = OMEGA

    def __post_init__(self):
        self.vel = np.array(self.vel, dtype=float)

    @classmethod
    def from_east_north_up(cls, pos: Position, e: float, n: float, u: float) -> Velocity:
        """
        Build a velocity from local east/north/up components.

        "Up" is opposite to effective gravity (gravity plus centrifugal) in
        the planet frame. The result is tagged with the position's frame.

        Args:
            pos: Where the velocity applies
            e: East component (m/s)
            n: North component (m/s)
            u: Up component (m/s)
        """
        old_omega = pos.omega
        pos = pos.to_omega(OMEGA)
        east, north, up = _enu_basis(pos)

        vel = cls(e * east + n * north + u * up, OMEGA)
        return vel.to_omega(pos, old_omega)

    def east_north_up(self, pos: Position) -> Tuple[float, float, float]:
        """
        Decompose into the local east/north/up basis of the planet frame.

        Inverse of :meth:`from_east_north_up`.
        """
        planet_pos = pos.to_omega(OMEGA)
        vel = self.to_omega(pos, OMEGA).vel
        east, north, up = _enu_basis(planet_pos)
        return float(vel @ east), float(vel @ north), float(vel @ up)

    def copy(self) -> Velocity:
        return Velocity(self.vel.copy(), self.omega)

    def to_omega(self, pos: Position, omega: float) -> Velocity:
        """
        Express this velocity in a frame rotating at ``omega``.

        Args:
            pos: Paired position (any frame)
            omega: Target frame angular velocity (rad/s)

        Returns:
            New Velocity tagged with ``omega``
        """
        if self.omega == omega:
            return self.copy()

        pos = pos.to_omega(self.omega)
        x, _, z = pos.pos

        dw = omega - self.omega
        shifted = np.array([
            self.vel[0] - z * dw,
            self.vel[1],
            self.vel[2] + x * dw,
        ])
        R = polar_rotation((self.omega - omega) * pos.t)

        return Velocity(R @ shifted, omega)

    def coriolis(self) -> NDArray:
        omega_v = np.array([0.0, self.omega, 0.0])
        return -2.0 * np.cross(omega_v, self.vel)

    @property
    def speed(self) -> float:
        return float(np.linalg.norm(self.vel))

    def increase(self, v: NDArray) -> None:
        self.vel += v

    def scale(self, x: float) -> None:
        self.vel *= x
