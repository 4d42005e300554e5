"""Strang-split finite-volume right-hand side on the (angle, angular velocity) grid."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod

import numpy as np

from .definitions import Dimension, Parameters
from .parallel import Thread

_THETA = 1.0


def _minmod_arrays(a: np.ndarray, b: np.ndarray, c: np.ndarray) -> np.ndarray:
    """Element-wise minmod of three arrays."""
    positive = (a > 0.0) & (b > 0.0) & (c > 0.0)
    negative = (a < 0.0) & (b < 0.0) & (c < 0.0)
    smallest = np.minimum(np.minimum(a, b), c)
    largest = np.maximum(np.maximum(a, b), c)
    return np.where(positive, smallest, np.where(negative, largest, 0.0))


def _cfl_time_step(delta: float, speed: float) -> float:
    """Largest stable time step for a given cell width and maximal speed."""
    if speed > 0.0:
        return delta / (2.0 * speed)
    return math.inf


class SplittingSystem(ABC):
    """Right-hand side of the kinetic equation under Strang splitting.

    The integration is split into an angular update (dt/2), an angular
    velocity update (dt) and another angular update (dt/2).  Subclasses
    supply the numerical fluxes through each cell's upper interface and
    record the largest transport speeds in ``cfl_a`` and ``cfl_b``.
    """

    def __init__(self, params: Parameters, thread: Thread) -> None:
        if (thread.num_cells_phi, thread.num_cells_omega) != (
            params.num_cells_phi,
            params.num_cells_omega,
        ):
            raise ValueError(
                f"thread grid {thread.num_cells_phi}x{thread.num_cells_omega} does not match "
                f"model grid {params.num_cells_phi}x{params.num_cells_omega}"
            )
        self.params = params
        self.thread = thread
        phases = params.phi(np.arange(params.num_cells_phi, dtype=float))
        self.sin_of_phase = np.sin(phases)
        self.cos_of_phase = np.cos(phases)
        self.density_slope_wrt_angle = np.zeros(params.size)
        self.density_slope_wrt_angular_velocity = np.zeros(params.size)
        self.cfl_a = 0.0
        self.cfl_b = 0.0
        self.flux_limiter_count = [0, 0]
        self._owned = np.asarray(thread.loop_indices, dtype=np.intp)

    # -- fluxes supplied by concrete models ---------------------------------

    @abstractmethod
    def angular_flux(self, state: np.ndarray) -> np.ndarray:
        """Flux through the upper angular interface of every cell."""

    @abstractmethod
    def angular_velocity_flux(self, state: np.ndarray) -> np.ndarray:
        """Flux through the upper angular-velocity interface of every cell."""

    # -- grid helpers -------------------------------------------------------

    def _grid(self, values) -> np.ndarray:
        array = np.asarray(values, dtype=float)
        if array.size != self.params.size:
            raise ValueError(f"expected {self.params.size} values, got {array.size}")
        return array.reshape(self.params.num_cells_omega, self.params.num_cells_phi)

    def _axis(self, dim: Dimension) -> tuple[int, float]:
        if dim is Dimension.PHI:
            return 1, self.params.dphi
        return 0, self.params.domega

    def _slope_store(self, dim: Dimension) -> np.ndarray:
        if dim is Dimension.PHI:
            return self.density_slope_wrt_angle
        return self.density_slope_wrt_angular_velocity

    def _stage_state(self, system_state, k_prev, k_coef: float, dt: float) -> np.ndarray:
        state = self._grid(system_state).ravel()
        previous = self._grid(k_prev).ravel()
        return state + k_coef * dt * previous

    def _owned_only(self, values: np.ndarray) -> np.ndarray:
        result = np.zeros(self.params.size)
        result[self._owned] = values.ravel()[self._owned]
        return result

    # -- splitting stages ---------------------------------------------------

    def angular_update(self, system_state, k_prev, k_coef: float, dt: float) -> tuple[np.ndarray, float]:
        """Rate of change from angular transport at ``state + k_coef*dt*k_prev``.

        Returns the rate and the time step allowed by the CFL condition.
        """
        self.cfl_a = 0.0
        stage = self._stage_state(system_state, k_prev, k_coef, dt)
        flux = self._grid(self.angular_flux(stage))
        rate = -(flux - np.roll(flux, 1, axis=1)) / self.params.dphi
        return self._owned_only(rate), _cfl_time_step(self.params.dphi, self.cfl_a)

    def angular_velocity_update(
        self, system_state, k_prev, k_coef: float, dt: float
    ) -> tuple[np.ndarray, float]:
        """Rate of change from angular-velocity transport with zero-flux walls.

        Returns the rate and the time step allowed by the CFL condition.
        """
        self.cfl_b = 0.0
        stage = self._stage_state(system_state, k_prev, k_coef, dt)
        flux = self._grid(self.angular_velocity_flux(stage))
        upper = flux.copy()
        lower = np.roll(flux, 1, axis=0)
        lower[0, :] = 0.0
        if self.params.num_cells_omega > 1:
            upper[-1, :] = 0.0
        rate = -(upper - lower) / self.params.domega
        return self._owned_only(rate), _cfl_time_step(self.params.dphi, self.cfl_b)

    # -- slope reconstruction -----------------------------------------------

    def density_slopes(self, dim: Dimension, state) -> np.ndarray:
        """Central-difference density slopes along ``dim`` (periodic wrap).

        The result is stored in the slope array of that dimension and returned.
        """
        grid = self._grid(state)
        axis, delta = self._axis(dim)
        slopes = (np.roll(grid, -1, axis=axis) - np.roll(grid, 1, axis=axis)) / (2.0 * delta)
        target = self._slope_store(dim)
        target[self._owned] = slopes.ravel()[self._owned]
        return target

    def limit_density_slopes(self, dim: Dimension, state, slopes) -> np.ndarray:
        """Apply the minmod limiter wherever a reconstructed interface density is negative.

        Updates the slope array of ``dim``, counts the limited cells and
        returns the slope array.
        """
        grid = self._grid(state)
        given = self._grid(slopes)
        axis, delta = self._axis(dim)
        half_step = delta / 2.0 * given
        violates = ((grid - half_step) < 0.0) | ((grid + half_step) < 0.0)
        owned_mask = np.zeros(self.params.size, dtype=bool)
        owned_mask[self._owned] = True
        violates &= owned_mask.reshape(grid.shape)

        forward = _THETA * (np.roll(grid, -1, axis=axis) - grid) / delta
        backward = _THETA * (grid - np.roll(grid, 1, axis=axis)) / delta
        limited = _minmod_arrays(forward, given, backward)
        result = np.where(violates, limited, given).ravel()

        target = self._slope_store(dim)
        target[self._owned] = result[self._owned]
        self.flux_limiter_count[dim.value] += int(violates.sum())
        return target

    def reset_flux_limiter_count(self) -> None:
        """Zero the per-dimension counts of limiter activations."""
        self.flux_limiter_count = [0, 0]