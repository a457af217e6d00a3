"""
Simulated Objects
=================
Point objects moving near the rotating planet.

Each object owns its current Position/Velocity pair, physical parameters,
a bounded trajectory history and a flight state:

- FreeFlight: ballistic, full 3D force model
- ConstantAltitude(h): held on a surface h meters above the ellipsoid

Objects integrate in the frame their Position was created in (the planet
frame for every geodetic constructor) and can be queried in any frame.
"""

from __future__ import annotations

import copy
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional, Tuple, Union

import numpy as np
from numpy.typing import NDArray
from loguru import logger

from . import forces
from .frames import Position, Velocity
from .geodesy import GM, OMEGA, earth_radius, geocentric_latitude, pos_to_lat_lon_elev, surface_normal
from .integrator import RK4Integrator, AdaptiveIntegrator


MAX_PATH_LEN = 5000

PathEntry = Tuple[Position, Velocity]


@dataclass(frozen=True)
class FreeFlight:
    """Ballistic motion under gravity, centrifugal and Coriolis terms."""

    def describe(self) -> str:
        return "Free flight"


@dataclass(frozen=True)
class ConstantAltitude:
    """Motion constrained to a surface ``altitude`` meters above the ellipsoid."""
    altitude: float = 0.0

    def describe(self) -> str:
        return f"Constant altitude ({self.altitude:.1f} m)"


FlightState = Union[FreeFlight, ConstantAltitude]


def surface_elevation(pos: NDArray) -> float:
    """Radial height above the ellipsoid surface (m)."""
    return float(np.linalg.norm(pos)) - earth_radius(geocentric_latitude(pos))


class SimObject:
    """
    A simulated point object.

    Usage:
        pos = Position.from_lat_lon_elev(45.0, 0.0, 1000.0)
        vel = Velocity.from_east_north_up(pos, 100.0, 0.0, 0.0)
        obj = SimObject(pos, vel).with_color(0.0, 1.0, 0.0).with_drag(1e-4)

        integrator = RK4Integrator()
        for _ in range(100):
            obj.step(integrator, 10.0)
    """

    def __init__(self, pos: Position, vel: Velocity, max_path_len: int = MAX_PATH_LEN):
        """
        Args:
            pos: Initial position
            vel: Initial velocity (converted to the position's frame)
            max_path_len: Capacity of the trajectory history
        """
        self.pos = pos.copy()
        self.vel = vel.to_omega(pos, pos.omega)

        # Presentation
        self.color: Tuple[float, float, float] = (1.0, 0.0, 0.0)
        self.radius = 50e3  # m

        # Physical parameters
        self.gm = GM
        self.drag_coeff = 0.0
        self.friction_coeff = 0.0
        self.attractor: forces.Attractor = forces.NoAttractor()
        self.drag_in_free_flight = True
        self.counteract_coriolis = False

        self.flight_state: FlightState = FreeFlight()

        self.path: Deque[PathEntry] = deque(maxlen=max_path_len)

    # -------------------------------------------------------------------------
    # Builder
    # -------------------------------------------------------------------------

    def with_color(self, r: float, g: float, b: float) -> SimObject:
        self.color = (r, g, b)
        return self

    def with_radius(self, radius: float) -> SimObject:
        self.radius = radius
        return self

    def with_gm(self, gm: float) -> SimObject:
        self.gm = gm
        return self

    def with_gravity_strength(self, g: float) -> SimObject:
        """Scale gravity relative to the Earth's (1.0 = normal gravity)."""
        return self.with_gm(GM * g)

    def with_drag(self, drag: float) -> SimObject:
        self.drag_coeff = drag
        return self

    def with_friction(self, friction: float) -> SimObject:
        self.friction_coeff = friction
        return self

    def with_attractor(self, attractor: forces.Attractor) -> SimObject:
        self.attractor = attractor
        return self

    def as_pendulum(self, k: float) -> SimObject:
        """Anchor a restoring force at the current point and hold altitude."""
        anchor = self.pos.to_omega(OMEGA)
        return self.with_attractor(forces.PendulumRestoring(anchor, k)).with_constant_altitude()

    def with_constant_altitude(self, altitude: Optional[float] = None) -> SimObject:
        """
        Start the object constrained to a constant-altitude surface.

        Args:
            altitude: Surface height (m), default: current height
        """
        if altitude is None:
            altitude = surface_elevation(self.pos.pos)
        self.flight_state = ConstantAltitude(altitude)
        return self

    def with_free_flight_drag(self, enabled: bool) -> SimObject:
        self.drag_in_free_flight = enabled
        return self

    def with_coriolis_counteraction(self, enabled: bool = True) -> SimObject:
        self.counteract_coriolis = enabled
        return self

    # -------------------------------------------------------------------------
    # Integration contract
    # -------------------------------------------------------------------------

    def derivative(self) -> NDArray:
        """
        Time derivative of the state.

        Returns:
            [vx, vy, vz, ax, ay, az, 1.0]
        """
        pos, vel = self.pos, self.vel

        if isinstance(self.flight_state, ConstantAltitude):
            acc = self._constrained_acceleration(self.flight_state.altitude)
        else:
            acc = pos.grav(self.gm) + pos.centrifugal() + vel.coriolis()
            if self.drag_in_free_flight and self.drag_coeff != 0.0:
                acc = acc + forces.drag(pos, vel, self.drag_coeff, surface_elevation(pos.pos))

        return np.concatenate((vel.vel, acc, [1.0]))

    def _constrained_acceleration(self, altitude: float) -> NDArray:
        pos, vel = self.pos, self.vel
        normal = surface_normal(pos.pos)
        lat_r = float(np.arcsin(np.clip(normal[1], -1.0, 1.0)))

        coriolis = vel.coriolis()
        acc = (
            coriolis
            + forces.friction(pos, vel, self.friction_coeff)
            + forces.drag(pos, vel, self.drag_coeff, altitude)
            + self.attractor.acceleration(pos)
        )
        if self.counteract_coriolis:
            acc = acc + forces.coriolis_counteraction(coriolis, normal)

        return forces.curvature_correction(acc, normal, vel.vel, pos.pos, lat_r, altitude)

    def shift_in_place(self, direction: NDArray, amount: float) -> None:
        shift = np.asarray(direction) * amount
        self.pos.increase(shift[0:3])
        self.vel.increase(shift[3:6])
        self.pos.increase_time(shift[6])

    def copy(self) -> SimObject:
        """
        Copy with independent kinematics.

        The history deque and the attractor are shared with the original.
        """
        clone = copy.copy(self)
        clone.pos = self.pos.copy()
        clone.vel = self.vel.copy()
        return clone

    # -------------------------------------------------------------------------
    # Stepping
    # -------------------------------------------------------------------------

    def step(self, integrator: Union[RK4Integrator, AdaptiveIntegrator], dt: float) -> None:
        """
        Advance by one tick.

        Records the pre-step state, integrates, then applies the surface
        contact correction.

        Args:
            integrator: Any integrator with a ``step(state, dt)`` method
            dt: Time step (s)

        Raises:
            FloatingPointError: If integration produced a non-finite state
        """
        previous = (self.pos.copy(), self.vel.copy())

        integrator.step(self, dt)

        if not self._is_finite():
            logger.error(f"Non-finite state after step at t={previous[0].t:.1f}s, reverting")
            self.pos, self.vel = previous
            raise FloatingPointError("Integration produced a non-finite state")

        self.path.append(previous)
        self._correct_surface_contact()

    def _is_finite(self) -> bool:
        return bool(
            np.all(np.isfinite(self.pos.pos))
            and np.all(np.isfinite(self.vel.vel))
            and np.isfinite(self.pos.t)
        )

    def _correct_surface_contact(self) -> None:
        planet_pos = self.pos.to_omega(OMEGA)
        r = planet_pos.r
        earth_r = earth_radius(geocentric_latitude(planet_pos.pos))

        if isinstance(self.flight_state, ConstantAltitude):
            self._snap_to_radius(r, earth_r + self.flight_state.altitude, hold=True)
            return

        if r >= earth_r:
            return

        target_r = earth_r
        self._snap_to_radius(r, target_r, hold=False)
        self.flight_state = ConstantAltitude(target_r - earth_r)
        logger.debug(f"Surface contact at t={self.pos.t:.1f}s, switching to constant altitude")

    def _snap_to_radius(self, r: float, target_r: float, hold: bool) -> None:
        # Scaling commutes with rotation about the polar axis, so it is
        # valid in the object's own frame
        ratio = target_r / r
        self.pos.scale(ratio)
        self.vel.scale(1.0 / ratio)

        normal = surface_normal(self.pos.pos)
        v_normal = float(self.vel.vel @ normal)
        if hold or v_normal < 0.0:
            self.vel.increase(-v_normal * normal)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def time(self) -> float:
        return self.pos.t

    @property
    def is_grounded(self) -> bool:
        return isinstance(self.flight_state, ConstantAltitude)

    def position_in(self, omega: float) -> Position:
        return self.pos.to_omega(omega)

    def velocity_in(self, omega: float) -> Velocity:
        return self.vel.to_omega(self.pos, omega)

    def lat_lon_elev(self) -> Tuple[float, float, float]:
        return pos_to_lat_lon_elev(self.pos.to_omega(OMEGA).pos)

    def history(self) -> List[PathEntry]:
        """Trajectory history, oldest first."""
        return list(self.path)

    def state_at(self, max_t: Optional[float] = None) -> PathEntry:
        """
        Latest recorded state with ``t <= max_t``.

        Falls back to the oldest retained entry when ``max_t`` predates the
        history.

        Args:
            max_t: Time limit (s), default: current state
        """
        if max_t is None or max_t >= self.pos.t or not self.path:
            return self.pos.copy(), self.vel.copy()

        for pos, vel in reversed(self.path):
            if pos.t <= max_t:
                return pos.copy(), vel.copy()

        pos, vel = self.path[0]
        return pos.copy(), vel.copy()

    def trajectory(self, omega: float, max_t: Optional[float] = None) -> NDArray:
        """
        Trail points in a frame rotating at ``omega``.

        Args:
            omega: Frame angular velocity (rad/s)
            max_t: Only include points up to this time (s)

        Returns:
            Array of shape (N, 3), oldest first
        """
        points = [
            pos.to_omega(omega).pos
            for pos, _ in self.path
            if max_t is None or pos.t <= max_t
        ]
        if max_t is None or self.pos.t <= max_t:
            points.append(self.pos.to_omega(omega).pos)

        if not points:
            return np.empty((0, 3))
        return np.array(points)

    def status(self, omega: float, max_t: Optional[float] = None) -> List[str]:
        """
        Human-readable status lines.

        Args:
            omega: Frame the speed is reported in (rad/s)
            max_t: Report the recorded state at this time (s)
        """
        pos, vel = self.state_at(max_t)
        lat, lon, elev = pos_to_lat_lon_elev(pos.to_omega(OMEGA).pos)
        v_e, v_n, v_u = vel.east_north_up(pos)
        speed = vel.to_omega(pos, omega).speed

        return [
            f"Time: {pos.t:.1f} s",
            f"Latitude: {lat:.4f}°",
            f"Longitude: {lon:.4f}°",
            f"Elevation: {elev:.1f} m",
            f"Velocity east: {v_e:.2f} m/s",
            f"Velocity north: {v_n:.2f} m/s",
            f"Velocity up: {v_u:.2f} m/s",
            f"Speed in view frame: {speed:.2f} m/s",
            f"State: {self.flight_state.describe()}",
        ]

    def __repr__(self) -> str:
        return (
            f"SimObject(t={self.pos.t:.1f}, pos={self.pos.pos.tolist()}, "
            f"state={self.flight_state})"
        )
