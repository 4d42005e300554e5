"""Splitting system with a convolution interaction kernel evaluated by FFT."""

from __future__ import annotations

import math

import numpy as np

from .definitions import Dimension, Parameters, positive_modulo, to_flat_index
from .dynamics import SplittingSystem
from .fourier import fast_convolution
from .parallel import Thread


class FastSplittingSystem(SplittingSystem):
    """Finite-volume fluxes for the self-propelled phase model.

    Angular transport moves density with the angular velocity itself;
    angular-velocity transport follows the gradient of a potential made of
    friction, an alignment interaction computed by circular convolution over
    the angle, and a diffusion term ``D * log(density)``.
    """

    def __init__(self, params: Parameters, thread: Thread | None = None) -> None:
        if thread is None:
            thread = Thread(params.num_cells_phi, params.num_cells_omega)
        super().__init__(params, thread)
        shifted = params.phi(np.arange(params.num_cells_phi, dtype=float)) + params.alpha
        self.cos_kernel = (-params.c2 + params.c1) * np.cos(shifted)
        self.sin_kernel = -params.c1 * np.sin(shifted)
        self._omegas = params.omega(np.arange(params.num_cells_omega, dtype=float))
        owned_mask = np.zeros(params.size, dtype=bool)
        owned_mask[self._owned] = True
        self._owned_mask = owned_mask

    # -- helpers ------------------------------------------------------------

    def _restrict_to_owned(self, values: np.ndarray) -> np.ndarray:
        result = np.zeros(self.params.size)
        result[self._owned_mask] = values.ravel()[self._owned_mask]
        return result

    def _max_owned_speed(self, velocity: np.ndarray) -> float:
        speeds = np.broadcast_to(np.abs(velocity), (self.params.num_cells_omega, self.params.num_cells_phi))
        owned = speeds.ravel()[self._owned_mask]
        return float(owned.max()) if owned.size else 0.0

    def _limited_slopes(self, dim: Dimension, grid: np.ndarray) -> np.ndarray:
        slopes = self.density_slopes(dim, grid)
        return self._grid(self.limit_density_slopes(dim, grid, slopes))

    def _potentials(self, grid: np.ndarray, convolution: np.ndarray, normalization: float) -> np.ndarray:
        omegas = self._omegas[:, None]
        with np.errstate(divide="ignore", invalid="ignore"):
            potential = (
                0.5 * self.params.friction * omegas * omegas
                - self.params.sigma * omegas * convolution[None, :] / normalization
            )
            if self.params.diffusion_constant > 0.0:
                log_density = np.log(grid)
                # extremely small densities would otherwise poison the potential
                potential = potential + self.params.diffusion_constant * np.where(
                    np.isfinite(log_density), log_density, 0.0
                )
        return potential

    # -- fluxes -------------------------------------------------------------

    def angular_flux(self, state) -> np.ndarray:
        """Upwind flux through the upper angular interface of each owned cell."""
        grid = self._grid(state)
        slopes = self._limited_slopes(Dimension.PHI, grid)
        half = self.params.dphi / 2.0
        velocity = self._omegas[:, None]
        leaving = velocity * (grid + half * slopes)
        entering = velocity * (np.roll(grid, -1, axis=1) - half * np.roll(slopes, -1, axis=1))
        flux = np.where(velocity > 0.0, leaving, entering)
        self.cfl_a = max(self.cfl_a, self._max_owned_speed(velocity))
        return self._restrict_to_owned(flux)

    def angular_velocity_flux(self, state) -> np.ndarray:
        """Upwind flux through the upper angular-velocity interface of each owned cell."""
        grid = self._grid(state)
        self._limited_slopes(Dimension.PHI, grid)
        slopes = self._limited_slopes(Dimension.OMEGA, grid)
        convolution, normalization = self.convolution(grid)
        potential = self._potentials(grid, convolution, normalization)
        velocity = -(np.roll(potential, -1, axis=0) - potential) / self.params.domega
        half = self.params.domega / 2.0
        leaving = velocity * (grid + half * slopes)
        entering = velocity * (np.roll(grid, -1, axis=0) - half * np.roll(slopes, -1, axis=0))
        flux = np.where(velocity > 0.0, leaving, entering)
        self.cfl_b = max(self.cfl_b, self._max_owned_speed(velocity))
        return self._restrict_to_owned(flux)

    # -- interaction --------------------------------------------------------

    def convolution(self, state) -> tuple[np.ndarray, float]:
        """Interaction term over the angle and the total mass used to normalise it.

        Uses the densities projected onto the angle together with the current
        angular density slopes.
        """
        grid = self._grid(state)
        projected_state = grid.sum(axis=0)
        projected_slope = self._grid(self.density_slope_wrt_angle).sum(axis=0)
        result = fast_convolution(projected_state, self.sin_kernel) + fast_convolution(
            projected_slope, self.cos_kernel
        )
        return result, float(projected_state.sum())

    def velocity_potential(self, state, i: int, j: int, convolution, normalization: float) -> float:
        """Potential at the centre of cell ``(i, j)``."""
        flat = self._grid(state).ravel()
        omega_j = self.params.omega(j)
        with np.errstate(divide="ignore", invalid="ignore"):
            potential = float(
                0.5 * self.params.friction * omega_j * omega_j
                - self.params.sigma * omega_j * np.float64(convolution[i]) / np.float64(normalization)
            )
        if self.params.diffusion_constant > 0.0:
            density = float(flat[to_flat_index(i, j, self.params.num_cells_phi)])
            if density > 0.0 and math.isfinite(density):
                potential += self.params.diffusion_constant * math.log(density)
        return potential

    def velocity_at_cell_interface(self, state, i: int, j: int, convolution, normalization: float) -> float:
        """Angular-velocity drift at the upper interface of cell ``(i, j)``."""
        current = self.velocity_potential(state, i, j, convolution, normalization)
        following = self.velocity_potential(
            state, i, positive_modulo(j + 1, self.params.num_cells_omega), convolution, normalization
        )
        return -(following - current) / self.params.domega