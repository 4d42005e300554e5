"""Initial densities on the phase-space grid and loading of saved states."""

from __future__ import annotations

import math
from pathlib import Path

import numpy as np

from .definitions import Parameters, to_flat_index

_PERTURBATION = 0.0001
_OP_MAGNITUDE = 0.99496192622318713
_FLOAT32 = np.dtype(np.float32)
_FLOAT64 = np.dtype(np.float64)


def _generator(rng: np.random.Generator | None) -> np.random.Generator:
    return rng if rng is not None else np.random.default_rng()


def _grid_points(params: Parameters) -> tuple[np.ndarray, np.ndarray]:
    """Angles and angular velocities of every cell, in flat-index order."""
    phis = params.phi(np.arange(params.num_cells_phi, dtype=float))
    omegas = params.omega(np.arange(params.num_cells_omega, dtype=float))
    omega_grid, phi_grid = np.meshgrid(omegas, phis, indexing="ij")
    return phi_grid.ravel(), omega_grid.ravel()


def normalize(state, params: Parameters) -> np.ndarray:
    """Scale a density so that it integrates to one over the grid."""
    values = np.asarray(state, dtype=float)
    total = values.sum() * params.dphi * params.domega
    if total == 0.0 or not math.isfinite(total):
        raise ValueError(f"cannot normalise a density of total mass {total}")
    return values / total


def uniform_perturbed(params: Parameters, rng: np.random.Generator | None = None) -> np.ndarray:
    """Uniform density with a small positive random perturbation (unnormalised)."""
    base = 1.0 / params.phi_size * (1.0 / params.omega_size)
    return base + _generator(rng).uniform(0.0, _PERTURBATION, params.size)


def von_mises_gaussian_product(params: Parameters) -> np.ndarray:
    """Von Mises density in the angle times a Gaussian in the angular velocity."""
    gamma = params.sigma * params.friction * _OP_MAGNITUDE / params.diffusion_constant
    two_pi = 2.0 * math.pi
    s = math.sqrt(params.diffusion_constant / params.friction)
    phis, omegas = _grid_points(params)
    angular = np.exp(gamma * np.cos(phis)) / (two_pi * np.i0(gamma))
    velocity = np.exp(-0.5 * omegas * omegas / (s * s)) / math.sqrt(two_pi * s * s)
    return angular * velocity


def uniform_gaussian_product_perturbed(
    params: Parameters, rng: np.random.Generator | None = None
) -> np.ndarray:
    """Uniform angle, Gaussian angular velocity, with a small relative perturbation."""
    two_pi = 2.0 * math.pi
    s = math.sqrt(params.diffusion_constant / params.friction)
    _, omegas = _grid_points(params)
    gaussian = 1.0 / (two_pi ** 1.5 * s) * np.exp(-0.5 * omegas * omegas / (s * s))
    return gaussian * (1.0 + _generator(rng).uniform(0.0, _PERTURBATION, params.size))


def coarse_grained_particle_density(
    path,
    params: Parameters,
    number_of_particles: int = 100000,
    state_dimension: int = 4,
    skip_time: int = 0,
) -> np.ndarray:
    """Histogram of particle angles and angular velocities from a float32 trajectory file.

    Each frame holds a time followed by ``state_dimension`` values per
    particle, of which the third is the angle and the fourth the angular
    velocity.  Returns per-cell particle counts for frame ``skip_time``.
    """
    if state_dimension < 4:
        raise ValueError(f"state_dimension must be at least 4, got {state_dimension}")
    frame_values = 1 + state_dimension * number_of_particles
    with Path(path).open("rb") as stream:
        stream.seek(skip_time * frame_values * _FLOAT32.itemsize)
        raw = stream.read(frame_values * _FLOAT32.itemsize)
    if len(raw) < frame_values * _FLOAT32.itemsize:
        raise ValueError(f"{path} holds no complete frame at index {skip_time}")
    particles = np.frombuffer(raw, dtype=_FLOAT32)[1:].reshape(number_of_particles, state_dimension)

    state = np.zeros(params.size)
    num_phi, num_omega = params.num_cells_phi, params.num_cells_omega
    for phi_raw, omega_raw in particles[:, 2:4].astype(float):
        phi = phi_raw - math.floor(phi_raw / params.phi_size) * params.phi_size
        cell_phi = int(phi / params.phi_size * num_phi)
        cell_omega = int(omega_raw / params.omega_size * num_omega + num_omega / 2.0)
        if not (0 <= cell_phi < num_phi and 0 <= cell_omega < num_omega):
            raise ValueError(f"particle at ({phi_raw}, {omega_raw}) lies outside the grid")
        state[to_flat_index(cell_phi, cell_omega, num_phi)] += 1.0
    return state


def add_perturbation(state, params: Parameters, rng: np.random.Generator | None = None) -> np.ndarray:
    """Add a small positive random perturbation and renormalise."""
    values = np.asarray(state, dtype=float)
    perturbed = values + _generator(rng).uniform(0.0, _PERTURBATION, values.shape)
    return normalize(perturbed, params)


def read_state_from_file(path, params: Parameters, time_index: int) -> tuple[float, np.ndarray]:
    """Read record ``time_index`` of a float64 state file as ``(time, state)``."""
    record_values = 1 + params.size
    with Path(path).open("rb") as stream:
        stream.seek(time_index * record_values * _FLOAT64.itemsize)
        raw = stream.read(record_values * _FLOAT64.itemsize)
    if len(raw) < record_values * _FLOAT64.itemsize:
        raise ValueError(f"{path} holds no complete record at index {time_index}")
    record = np.frombuffer(raw, dtype=_FLOAT64)
    return float(record[0]), record[1:].copy()