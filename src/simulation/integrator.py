"""
Numerical Integrators
=====================
Fixed-step and adaptive integrators that are generic over any state
exposing the ``IntegrableState`` contract:

- ``derivative()``: pure, returns the state derivative as a flat array
- ``shift_in_place(direction, amount)``: ``state += direction * amount``
- ``copy()``: independent copy that can be shifted without touching
  the original

Neither integrator knows anything about planets or frames.
"""

from __future__ import annotations

from typing import Optional, Protocol, TypeVar

import numpy as np
from numpy.typing import NDArray
from scipy.integrate import solve_ivp


class IntegrableState(Protocol):
    """Behavioural contract required by the integrators."""

    def derivative(self) -> NDArray:
        ...

    def shift_in_place(self, direction: NDArray, amount: float) -> None:
        ...

    def copy(self) -> "IntegrableState":
        ...


S = TypeVar("S", bound=IntegrableState)


class RK4Integrator:
    """
    Classic 4th-order Runge-Kutta integrator.

    Usage:
        integrator = RK4Integrator(10.0)
        integrator.step(state)          # default step
        integrator.step(state, 0.5)     # explicit step
    """

    def __init__(self, default_step: float = 10.0):
        """
        Args:
            default_step: Step used when ``step`` is called without ``dt`` (s)
        """
        self.default_step = default_step

    def step(self, state: S, dt: Optional[float] = None) -> S:
        """
        Advance ``state`` in place by one RK4 step.

        Workflow:
        1) k1 at the current state
        2) k2 after shifting a copy by dt/2 along k1
        3) k3 after shifting a fresh copy by dt/2 along k2
        4) k4 after shifting a fresh copy by dt along k3
        Then shift the original by (k1 + 2*k2 + 2*k3 + k4)/6 * dt.

        Args:
            state: Any IntegrableState
            dt: Step size (default: ``default_step``)

        Returns:
            The same ``state`` object, mutated
        """
        h = self.default_step if dt is None else dt

        k1 = state.derivative()

        s2 = state.copy()
        s2.shift_in_place(k1, h * 0.5)
        k2 = s2.derivative()

        s3 = state.copy()
        s3.shift_in_place(k2, h * 0.5)
        k3 = s3.derivative()

        s4 = state.copy()
        s4.shift_in_place(k3, h)
        k4 = s4.derivative()

        state.shift_in_place((k1 + 2.0 * k2 + 2.0 * k3 + k4) / 6.0, h)
        return state


class AdaptiveIntegrator:
    """
    Adaptive integrator backed by ``scipy.integrate.solve_ivp``.

    The solver integrates the displacement y from the state at the start of
    the step: the derivative at y is taken from a copy of the original state
    shifted by y. This keeps it generic over the same contract as
    RK4Integrator.
    """

    def __init__(
        self,
        default_step: float = 10.0,
        method: str = "DOP853",
        rtol: float = 1e-10,
        atol: float = 1e-9
    ):
        self.default_step = default_step
        self.method = method
        self.rtol = rtol
        self.atol = atol

    def step(self, state: S, dt: Optional[float] = None) -> S:
        h = self.default_step if dt is None else dt
        size = len(state.derivative())

        def rhs(_t: float, y: NDArray) -> NDArray:
            shifted = state.copy()
            shifted.shift_in_place(y, 1.0)
            return shifted.derivative()

        sol = solve_ivp(
            rhs,
            (0.0, h),
            np.zeros(size),
            method=self.method,
            rtol=self.rtol,
            atol=self.atol,
        )
        if not sol.success:
            raise RuntimeError(f"Adaptive integration failed: {sol.message}")

        state.shift_in_place(sol.y[:, -1], 1.0)
        return state
