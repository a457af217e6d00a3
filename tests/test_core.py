"""
Test Suite for the Simulation Core
==================================
Frames, geodesy, forces, integrators and object stepping.
"""

import pytest
import numpy as np

# Import modules to test
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from simulation import (
    OMEGA,
    GM,
    R_EQU,
    R_POL,
    Position,
    Velocity,
    polar_rotation,
    lat_lon_elev_to_vec3,
    pos_to_lat_lon_elev,
    geocentric_latitude,
    earth_radius,
    surface_normal,
    coords_at_distance,
    NoAttractor,
    PendulumRestoring,
    CenterSeeking,
    air_density,
    friction,
    drag,
    RK4Integrator,
    AdaptiveIntegrator,
    FreeFlight,
    ConstantAltitude,
    SimObject,
)


def jacobi_integral(obj: SimObject) -> float:
    """Energy-like constant of free motion in the planet frame."""
    pos = obj.position_in(OMEGA).pos
    vel = obj.velocity_in(OMEGA).vel
    return (
        0.5 * float(vel @ vel)
        - GM / float(np.linalg.norm(pos))
        - 0.5 * OMEGA * OMEGA * (pos[0] ** 2 + pos[2] ** 2)
    )


def make_object(lat, lon, elev, v_e=0.0, v_n=0.0, v_u=0.0, max_path_len=5000):
    pos = Position.from_lat_lon_elev(lat, lon, elev)
    vel = Velocity.from_east_north_up(pos, v_e, v_n, v_u)
    return SimObject(pos, vel, max_path_len=max_path_len)


FRAME_PAIRS = [
    (0.0, OMEGA / 2),
    (-OMEGA, 2 * OMEGA),
    (0.3 * OMEGA, 0.0),
    (OMEGA, -0.5 * OMEGA),
]


class ExponentialState:
    """Scalar state for dy/dt = y."""

    def __init__(self, y: float):
        self.y = y

    def derivative(self):
        return np.array([self.y])

    def shift_in_place(self, direction, amount):
        self.y += direction[0] * amount

    def copy(self):
        return ExponentialState(self.y)


class TestPolarRotation:
    """Tests for the Y-axis rotation matrix."""

    def test_identity_at_zero_angle(self):
        np.testing.assert_array_almost_equal(polar_rotation(0.0), np.eye(3), decimal=12)

    def test_rotation_90_degrees(self):
        expected = np.array([
            [0, 0, 1],
            [0, 1, 0],
            [-1, 0, 0]
        ])
        np.testing.assert_array_almost_equal(polar_rotation(np.pi / 2), expected, decimal=12)

    def test_rotation_orthogonality(self):
        for theta in np.linspace(-np.pi, np.pi, 7):
            R = polar_rotation(theta)
            np.testing.assert_array_almost_equal(R @ R.T, np.eye(3), decimal=12)
            assert np.linalg.det(R) == pytest.approx(1.0)


class TestGeodesy:
    """Tests for ellipsoid conversions."""

    def test_equator_prime_meridian(self):
        vec = lat_lon_elev_to_vec3(0.0, 0.0, 0.0)
        np.testing.assert_allclose(vec, [0.0, 0.0, R_EQU], atol=1e-6)

    def test_longitude_90_lies_on_x(self):
        vec = lat_lon_elev_to_vec3(0.0, 90.0, 0.0)
        np.testing.assert_allclose(vec, [R_EQU, 0.0, 0.0], atol=1e-6)

    def test_north_pole(self):
        vec = lat_lon_elev_to_vec3(90.0, 0.0, 0.0)
        np.testing.assert_allclose(vec, [0.0, R_POL, 0.0], atol=1e-3)

    def test_round_trip(self):
        """Geodetic -> Cartesian -> geodetic recovers the input."""
        for lat in (-80.0, -45.0, -10.0, 0.0, 23.5, 60.0, 89.0):
            for lon in (-170.0, -30.0, 0.0, 45.0, 179.0):
                for elev in (-500.0, 0.0, 1500.0, 400e3, 1e6):
                    out = pos_to_lat_lon_elev(lat_lon_elev_to_vec3(lat, lon, elev))
                    assert out[0] == pytest.approx(lat, abs=1e-6)
                    assert out[1] == pytest.approx(lon, abs=1e-6)
                    assert out[2] == pytest.approx(elev, abs=1e-3)

    def test_center_has_no_geodetic_coordinates(self):
        with pytest.raises(ValueError):
            pos_to_lat_lon_elev(np.zeros(3))

    def test_earth_radius_limits(self):
        assert earth_radius(0.0) == pytest.approx(R_EQU)
        assert earth_radius(np.pi / 2) == pytest.approx(R_POL)

    def test_surface_point_matches_earth_radius(self):
        vec = lat_lon_elev_to_vec3(37.0, 12.0, 0.0)
        r = np.linalg.norm(vec)
        assert r == pytest.approx(earth_radius(geocentric_latitude(vec)), abs=1e-6)

    def test_surface_normal_is_geodetic_up(self):
        lat = 40.0
        normal = surface_normal(lat_lon_elev_to_vec3(lat, 0.0, 0.0))
        assert np.linalg.norm(normal) == pytest.approx(1.0)
        assert np.degrees(np.arcsin(normal[1])) == pytest.approx(lat, abs=1e-9)

    def test_coords_at_distance_zero(self):
        lat, lon = coords_at_distance(12.0, 34.0, 77.0, 0.0)
        assert lat == pytest.approx(12.0)
        assert lon == pytest.approx(34.0)

    def test_coords_at_distance_north(self):
        # One degree of arc on the mean sphere, heading north
        dist = np.radians(1.0) * 6371e3
        lat, lon = coords_at_distance(10.0, 20.0, 0.0, dist)
        assert lat == pytest.approx(11.0, abs=1e-9)
        assert lon == pytest.approx(20.0, abs=1e-9)


class TestFrames:
    """Tests for frame conversions of positions and velocities."""

    def setup_method(self):
        """Setup test fixtures."""
        self.pos = Position(np.array([3.0e6, 4.0e6, 2.5e6]), 7200.0, OMEGA)
        self.vel = Velocity(np.array([120.0, -35.0, 60.0]), OMEGA)

    @pytest.mark.parametrize("w1,w2", FRAME_PAIRS)
    def test_position_round_trip(self, w1, w2):
        back = self.pos.to_omega(w1).to_omega(w2).to_omega(OMEGA)
        assert back.isclose(self.pos)

    def test_position_identity_conversion(self):
        same = self.pos.to_omega(OMEGA)
        assert same is not self.pos
        np.testing.assert_array_equal(same.pos, self.pos.pos)
        assert same.t == self.pos.t

    def test_position_at_t0_is_frame_independent(self):
        pos = Position(np.array([1.0, 2.0, 3.0]), 0.0, OMEGA)
        np.testing.assert_allclose(pos.to_omega(0.0).pos, pos.pos)

    def test_position_preserves_radius(self):
        assert self.pos.to_omega(0.3 * OMEGA).r == pytest.approx(self.pos.r)

    def test_dir_to_omega_matches_point_conversion(self):
        other = Position(self.pos.pos + np.array([10.0, -5.0, 2.0]), self.pos.t, OMEGA)
        expected = other.to_omega(0.0).pos - self.pos.to_omega(0.0).pos
        rotated = self.pos.dir_to_omega(other.pos - self.pos.pos, 0.0)
        np.testing.assert_allclose(rotated, expected, atol=1e-6)

    @pytest.mark.parametrize("w1,w2", FRAME_PAIRS)
    def test_velocity_round_trip(self, w1, w2):
        back = (
            self.vel.to_omega(self.pos, w1)
            .to_omega(self.pos, w2)
            .to_omega(self.pos, OMEGA)
        )
        np.testing.assert_allclose(back.vel, self.vel.vel, atol=1e-8)
        assert back.omega == OMEGA

    def test_velocity_identity_conversion(self):
        same = self.vel.to_omega(self.pos, OMEGA)
        assert same is not self.vel
        np.testing.assert_array_equal(same.vel, self.vel.vel)

    def test_ground_at_rest_moves_in_inertial_frame(self):
        """A point fixed to the planet moves at OMEGA * distance from the axis."""
        pos = Position.from_lat_lon_elev(0.0, 0.0, 0.0)
        vel = Velocity(np.zeros(3), OMEGA).to_omega(pos, 0.0)
        assert vel.speed == pytest.approx(OMEGA * R_EQU)

    def test_enu_round_trip(self):
        pos = Position.from_lat_lon_elev(51.5, -0.1, 200.0)
        vel = Velocity.from_east_north_up(pos, 12.0, -7.0, 3.0)
        e, n, u = vel.east_north_up(pos)
        assert (e, n, u) == pytest.approx((12.0, -7.0, 3.0), abs=1e-9)

    def test_coriolis_vanishes_in_inertial_frame(self):
        np.testing.assert_array_equal(Velocity(np.ones(3), 0.0).coriolis(), np.zeros(3))

    def test_coriolis_direction(self):
        # Eastward motion at the equator is pushed outward
        acc = Velocity(np.array([100.0, 0.0, 0.0]), OMEGA).coriolis()
        np.testing.assert_allclose(acc, [0.0, 0.0, 200.0 * OMEGA])

    def test_centrifugal_is_horizontal(self):
        acc = Position(np.array([1.0, 5.0, 2.0]), 0.0, OMEGA).centrifugal()
        np.testing.assert_allclose(acc, OMEGA ** 2 * np.array([1.0, 0.0, 2.0]))

    def test_gravity_undefined_at_center(self):
        with pytest.raises(ValueError):
            Position(np.zeros(3)).grav(GM)


class TestForces:
    """Tests for surface-relative forces and attractors."""

    def test_air_density(self):
        assert air_density(0.0) == pytest.approx(1.225)
        assert air_density(-100.0) == pytest.approx(1.225)
        assert air_density(8000.0) == pytest.approx(1.225 * np.exp(-1.0))

    def test_drag_zero_relative_velocity(self):
        pos = Position.from_lat_lon_elev(30.0, 10.0, 0.0)
        vel = Velocity(np.zeros(3), OMEGA)
        np.testing.assert_array_equal(drag(pos, vel, 1e-3, 0.0), np.zeros(3))

    def test_drag_opposes_motion(self):
        pos = Position.from_lat_lon_elev(30.0, 10.0, 0.0)
        vel = Velocity(np.array([10.0, 0.0, 0.0]), OMEGA)
        acc = drag(pos, vel, 1e-3, 0.0)
        np.testing.assert_allclose(acc, [-1e-3 * 1.225 * 100.0, 0.0, 0.0])

    def test_drag_in_inertial_frame_is_relative_to_ground(self):
        planet_pos = Position.from_lat_lon_elev(0.0, 0.0, 0.0).with_t(0.0)
        pos = planet_pos.to_omega(0.0)
        ground = Velocity(np.zeros(3), OMEGA).to_omega(planet_pos, 0.0)
        np.testing.assert_allclose(drag(pos, ground, 1e-3, 0.0), np.zeros(3), atol=1e-12)

    def test_friction_towards_ground(self):
        pos = Position.from_lat_lon_elev(0.0, 0.0, 0.0)
        vel = Velocity(np.array([5.0, 0.0, 0.0]), OMEGA)
        np.testing.assert_allclose(friction(pos, vel, 0.1), [-0.5, 0.0, 0.0])

    def test_no_attractor(self):
        pos = Position.from_lat_lon_elev(10.0, 10.0, 0.0)
        np.testing.assert_array_equal(NoAttractor().acceleration(pos), np.zeros(3))

    def test_pendulum_restoring(self):
        anchor = Position.from_lat_lon_elev(45.0, 0.0, 0.0)
        attractor = PendulumRestoring(anchor, 2e-6)

        np.testing.assert_allclose(attractor.acceleration(anchor.with_t(500.0)), np.zeros(3), atol=1e-12)

        displaced = Position(anchor.pos + np.array([1000.0, 0.0, 0.0]), 500.0, OMEGA)
        np.testing.assert_allclose(attractor.acceleration(displaced), [-2e-3, 0.0, 0.0], atol=1e-12)

    def test_anchor_follows_the_ground(self):
        anchor = Position.from_lat_lon_elev(45.0, 0.0, 0.0)
        attractor = PendulumRestoring(anchor, 1.0)
        # The anchor seen from the inertial frame at t
        inertial = anchor.with_t(3600.0).to_omega(0.0)
        np.testing.assert_allclose(attractor.acceleration(inertial), np.zeros(3), atol=1e-6)

    def test_center_seeking(self):
        center = Position.from_lat_lon_elev(0.0, 0.0, 0.0)
        attractor = CenterSeeking(center, 2e4)

        np.testing.assert_array_equal(attractor.acceleration(center), np.zeros(3))

        pos = Position(center.pos + np.array([1e5, 0.0, 0.0]), 0.0, OMEGA)
        acc = attractor.acceleration(pos)
        assert np.linalg.norm(acc) == pytest.approx(2e4 / 1e5)
        assert acc[0] < 0.0


class TestIntegrators:
    """Tests for the generic integrators."""

    def test_rk4_exponential(self):
        state = ExponentialState(1.0)
        integrator = RK4Integrator(0.01)
        for _ in range(100):
            integrator.step(state)
        assert state.y == pytest.approx(np.e, abs=1e-8)

    def test_rk4_explicit_step_overrides_default(self):
        state = ExponentialState(1.0)
        RK4Integrator(100.0).step(state, 0.001)
        assert state.y == pytest.approx(np.exp(0.001), abs=1e-12)

    def test_adaptive_exponential(self):
        state = ExponentialState(1.0)
        AdaptiveIntegrator(1.0, rtol=1e-12, atol=1e-12).step(state)
        assert state.y == pytest.approx(np.e, rel=1e-8)

    def test_adaptive_default_tolerances(self):
        state = ExponentialState(1.0)
        AdaptiveIntegrator(1.0).step(state)
        assert state.y == pytest.approx(np.e, rel=1e-7)

    def test_adaptive_matches_rk4_on_objects(self):
        a = make_object(20.0, 30.0, 10000.0, v_e=300.0, v_u=500.0)
        b = make_object(20.0, 30.0, 10000.0, v_e=300.0, v_u=500.0)
        rk4 = RK4Integrator()
        adaptive = AdaptiveIntegrator()

        for _ in range(10):
            a.step(rk4, 10.0)
            b.step(adaptive, 10.0)

        assert a.time == pytest.approx(100.0)
        assert b.time == pytest.approx(100.0)
        np.testing.assert_allclose(a.pos.pos, b.pos.pos, atol=1.0)


class TestSimObject:
    """Tests for object stepping and the flight state machine."""

    def test_builders_chain(self):
        obj = (
            make_object(0.0, 0.0, 100.0)
            .with_color(0.0, 1.0, 0.0)
            .with_radius(10.0)
            .with_drag(1e-4)
            .with_friction(0.1)
            .with_gravity_strength(0.5)
        )
        assert obj.color == (0.0, 1.0, 0.0)
        assert obj.radius == 10.0
        assert obj.drag_coeff == 1e-4
        assert obj.friction_coeff == 0.1
        assert obj.gm == pytest.approx(0.5 * GM)
        assert obj.flight_state == FreeFlight()

    def test_velocity_converted_to_position_frame(self):
        pos = Position.from_lat_lon_elev(0.0, 0.0, 0.0).with_t(100.0)
        obj = SimObject(pos, Velocity(np.zeros(3), 0.0))
        assert obj.vel.omega == OMEGA

    def test_derivative_layout(self):
        obj = make_object(10.0, 10.0, 1000.0, v_e=50.0)
        d = obj.derivative()
        assert d.shape == (7,)
        np.testing.assert_array_equal(d[0:3], obj.vel.vel)
        assert d[6] == 1.0

    def test_free_flight_drag_flag(self):
        obj = make_object(0.0, 0.0, 1000.0, v_u=100.0).with_drag(1e-3)
        with_drag = obj.derivative()[3:6]
        without_drag = obj.with_free_flight_drag(False).derivative()[3:6]

        up = surface_normal(obj.pos.pos)
        assert float(with_drag @ up) < float(without_drag @ up)

    def test_surface_contact_transition(self):
        obj = make_object(30.0, 0.0, 100.0)
        integrator = RK4Integrator()

        for _ in range(20):
            obj.step(integrator, 1.0)
            if obj.is_grounded:
                break

        assert obj.flight_state == ConstantAltitude(0.0)
        r = obj.pos.r
        assert r == pytest.approx(earth_radius(geocentric_latitude(obj.pos.pos)), abs=1e-6)
        assert float(obj.vel.vel @ surface_normal(obj.pos.pos)) >= -1e-9

    @pytest.mark.parametrize("lat", [0.0, 30.0, 60.0, 85.0])
    def test_surface_launch_grounds_on_first_step(self, lat):
        obj = make_object(lat, 15.0, 0.0)
        obj.step(RK4Integrator(), 10.0)

        assert obj.flight_state == ConstantAltitude(0.0)
        r = obj.pos.r
        assert r == pytest.approx(earth_radius(geocentric_latitude(obj.pos.pos)), abs=1e-6)
        assert float(obj.vel.vel @ surface_normal(obj.pos.pos)) >= -1e-9

    def test_grounding_is_permanent(self):
        obj = make_object(0.0, 0.0, 10.0, v_u=-5.0)
        integrator = RK4Integrator()
        obj.step(integrator, 10.0)
        assert obj.is_grounded

        obj.vel.increase(1000.0 * surface_normal(obj.pos.pos))
        obj.step(integrator, 10.0)
        assert obj.is_grounded

    def test_constant_altitude_holds_height(self):
        obj = make_object(45.0, 0.0, 0.0, v_e=100.0, v_n=50.0).with_constant_altitude()
        integrator = RK4Integrator()
        for _ in range(50):
            obj.step(integrator, 10.0)
        _, _, elev = obj.lat_lon_elev()
        assert elev == pytest.approx(0.0, abs=1e-3)
        assert float(obj.vel.vel @ surface_normal(obj.pos.pos)) == pytest.approx(0.0, abs=1e-9)

    def test_constant_altitude_defaults_to_current_height(self):
        obj = make_object(0.0, 0.0, 5000.0).with_constant_altitude()
        assert obj.flight_state.altitude == pytest.approx(5000.0, abs=1e-6)

    def test_curvature_correction_at_equator(self):
        v = 100.0
        obj = make_object(0.0, 0.0, 0.0, v_e=v).with_constant_altitude(0.0)
        acc = obj.derivative()[3:6]
        normal = surface_normal(obj.pos.pos)
        assert float(acc @ normal) == pytest.approx(-v * v / R_EQU, rel=1e-9)

    def test_coriolis_counteraction_leaves_only_normal_acceleration(self):
        obj = make_object(45.0, 10.0, 10000.0, v_n=250.0).with_constant_altitude().with_coriolis_counteraction()
        acc = obj.derivative()[3:6]
        normal = surface_normal(obj.pos.pos)
        np.testing.assert_allclose(np.cross(acc, normal), np.zeros(3), atol=1e-10)

    def test_jacobi_integral_conservation(self):
        """Drift shrinks with the time step, as expected for RK4."""
        total = 6000.0
        drifts = {}
        for dt in (60.0, 30.0):
            obj = make_object(0.0, 0.0, 1000e3, v_e=6812.0)
            start = jacobi_integral(obj)
            integrator = RK4Integrator()
            for _ in range(int(total / dt)):
                obj.step(integrator, dt)
            assert not obj.is_grounded
            drifts[dt] = abs(jacobi_integral(obj) - start) / abs(start)

        assert drifts[30.0] < drifts[60.0] / 4
        assert drifts[30.0] < 1e-5

    def test_bounded_history(self):
        obj = make_object(0.0, 0.0, 1000e3, v_e=6812.0, max_path_len=10)
        integrator = RK4Integrator()
        for _ in range(25):
            obj.step(integrator, 10.0)

        history = obj.history()
        assert len(history) == 10
        assert history[0][0].t == pytest.approx(150.0)
        assert history[-1][0].t == pytest.approx(240.0)
        assert obj.time == pytest.approx(250.0)

    def test_non_finite_state_is_rejected(self):
        obj = make_object(0.0, 0.0, 1000.0).with_gm(float("nan"))
        before = obj.pos.pos.copy()

        with pytest.raises(FloatingPointError):
            obj.step(RK4Integrator(), 10.0)

        assert len(obj.history()) == 0
        np.testing.assert_array_equal(obj.pos.pos, before)
        assert obj.time == 0.0

    def test_copy_is_independent(self):
        obj = make_object(0.0, 0.0, 1000.0)
        clone = obj.copy()
        clone.shift_in_place(np.ones(7), 1.0)
        assert obj.time == 0.0
        assert clone.time == 1.0
        assert clone.attractor is obj.attractor

    def test_state_at(self):
        obj = make_object(0.0, 0.0, 1000e3, v_e=6812.0)
        integrator = RK4Integrator()
        for _ in range(5):
            obj.step(integrator, 10.0)

        pos, _ = obj.state_at(25.0)
        assert pos.t == pytest.approx(20.0)
        pos, _ = obj.state_at(None)
        assert pos.t == pytest.approx(50.0)
        pos, _ = obj.state_at(-10.0)
        assert pos.t == pytest.approx(0.0)

    def test_trajectory(self):
        obj = make_object(0.0, 0.0, 1000e3, v_e=6812.0)
        integrator = RK4Integrator()
        for _ in range(5):
            obj.step(integrator, 10.0)

        assert obj.trajectory(OMEGA).shape == (6, 3)
        assert obj.trajectory(0.0, max_t=20.0).shape == (3, 3)
        np.testing.assert_allclose(obj.trajectory(0.0)[-1], obj.position_in(0.0).pos)

    def test_status_lines(self):
        obj = make_object(12.0, 34.0, 0.0).with_constant_altitude()
        lines = obj.status(OMEGA)
        assert len(lines) == 9
        assert lines[0].startswith("Time:")
        assert lines[1] == "Latitude: 12.0000°"
        assert lines[-1].startswith("State: Constant altitude")


# Fixtures

@pytest.fixture
def orbiting_object():
    """Provide an object in a near-circular equatorial orbit."""
    return make_object(0.0, 0.0, 1000e3, v_e=6812.0)


def test_orbit_stays_clear_of_surface(orbiting_object):
    integrator = RK4Integrator()
    for _ in range(100):
        orbiting_object.step(integrator, 60.0)
    _, _, elev = orbiting_object.lat_lon_elev()
    assert elev > 500e3
    assert orbiting_object.flight_state == FreeFlight()
