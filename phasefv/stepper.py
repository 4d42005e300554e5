"""Second-order Runge-Kutta integration with Strang splitting."""

from __future__ import annotations

import math
from typing import Callable

import numpy as np

from .dynamics import SplittingSystem
from .parallel import Thread

_Update = Callable[[np.ndarray, np.ndarray, float, float], "tuple[np.ndarray, float]"]


class RungeKutta2SplittingStepper:
    """Three-stage splitting step built from two-stage Runge-Kutta updates.

    Each step advances the angle by ``dt/2``, the angular velocity by ``dt``
    and the angle again by ``dt/2``.  Only the cells owned by ``thread`` are
    advanced; all other cells keep their values.
    """

    order = 2

    def __init__(self, thread: Thread, dt: float) -> None:
        if not dt > 0.0:
            raise ValueError(f"dt must be positive, got {dt}")
        self.thread = thread
        self.dt = float(dt)
        self.average_flux_limiter_count = [0, 0]
        self.suggested_dt = math.inf
        self._owned = np.asarray(thread.loop_indices, dtype=np.intp)
        self._size = thread.num_cells_phi * thread.num_cells_omega

    def do_step(self, system: SplittingSystem, system_state) -> np.ndarray:
        """Advance ``system_state`` by one time step and return the new state.

        The input is left untouched.  After the step, ``suggested_dt`` holds
        the time step allowed by the CFL conditions of the three stages and
        ``average_flux_limiter_count`` the limiter activations per stage.
        """
        state = np.array(system_state, dtype=float).ravel()
        if state.size != self._size:
            raise ValueError(f"expected {self._size} values, got {state.size}")

        system.reset_flux_limiter_count()
        half = self.dt / 2.0
        stage_dts = (
            2.0 * self._advance(system.angular_update, state, half),
            self._advance(system.angular_velocity_update, state, self.dt),
            2.0 * self._advance(system.angular_update, state, half),
        )
        self.suggested_dt = min(stage_dts)
        self._average_flux_limiter_counts(system)
        return state

    def _advance(self, update: _Update, state: np.ndarray, dt: float) -> float:
        """Apply one two-stage Runge-Kutta update in place; return its CFL step."""
        k_1, dt_1 = update(state, np.zeros_like(state), 0.0, dt)
        k_2, dt_2 = update(state, k_1, 1.0, dt)
        owned = self._owned
        state[owned] += (k_1[owned] + k_2[owned]) * dt / 2.0
        return min(dt_1, dt_2)

    def _average_flux_limiter_counts(self, system: SplittingSystem) -> None:
        angle, velocity = system.flux_limiter_count
        # two angular stages per step, each with `order` evaluations
        self.average_flux_limiter_count = [
            int(angle) // (2 * self.order),
            int(velocity) // self.order,
        ]