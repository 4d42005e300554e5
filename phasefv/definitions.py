"""Model, grid and time-stepping constants together with grid index helpers."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum


class Dimension(Enum):
    """Phase-space direction: the angle or the angular velocity."""

    PHI = 0
    OMEGA = 1


@dataclass(frozen=True)
class Parameters:
    """Physical, discretisation and integration parameters of the model."""

    phi_size: float = 2.0 * math.pi
    omega_size: float = 20.0
    microscopic_velocity: float = 1.0
    friction: float = 0.1
    sigma: float = 1.0
    rho: float = 0.8
    alpha: float = 0.3
    diffusion_constant: float = 0.01
    bits: int = 7
    num_cells_omega: int = 400
    t0: float = 0.0
    t1: float = 1000.0
    dt: float = 0.005

    def __post_init__(self) -> None:
        if self.bits < 1:
            raise ValueError(f"bits must be at least 1, got {self.bits}")
        if self.num_cells_omega < 1:
            raise ValueError(f"num_cells_omega must be positive, got {self.num_cells_omega}")
        if self.dt <= 0.0:
            raise ValueError(f"dt must be positive, got {self.dt}")
        if self.phi_size <= 0.0 or self.omega_size <= 0.0:
            raise ValueError("domain sizes must be positive")

    @property
    def num_cells_phi(self) -> int:
        """Number of cells along the angle; always a power of two."""
        return 1 << self.bits

    @property
    def size(self) -> int:
        """Total number of cells in the phase-space grid."""
        return self.num_cells_phi * self.num_cells_omega

    @property
    def dphi(self) -> float:
        return self.phi_size / self.num_cells_phi

    @property
    def domega(self) -> float:
        return self.omega_size / self.num_cells_omega

    @property
    def inverse_dt(self) -> int:
        """Number of time steps per unit time, truncated to an integer."""
        return int(1.0 / self.dt)

    @property
    def c0(self) -> float:
        return self.dphi / 2.0

    @property
    def c1(self) -> float:
        half = self.dphi / 2.0
        return math.sin(half) / half

    @property
    def c2(self) -> float:
        return math.cos(self.dphi / 2.0)

    @property
    def c3(self) -> float:
        return math.sin(self.dphi / 2.0)

    def phi(self, i: float) -> float:
        """Angle at the centre of cell ``i``; cell interfaces lie at half-integers."""
        return i * self.dphi

    def omega(self, j: float) -> float:
        """Angular velocity at the centre of cell ``j``."""
        return (-(self.num_cells_omega // 2) + j) * self.domega


def positive_modulo(i: int, n: int) -> int:
    """Wrap an index that lies at most one period outside ``[0, n)``."""
    if i < 0:
        return n + i
    if i >= n:
        return i - n
    return i


def to_flat_index(phi: int, omega: int, num_cells_phi: int) -> int:
    """Flatten a (phi, omega) cell index; phi runs fastest."""
    return phi + num_cells_phi * omega


def from_flat_index(idx: int, num_cells_phi: int) -> tuple[int, int]:
    """Split a flat cell index into its (phi, omega) components."""
    omega, phi = divmod(idx, num_cells_phi)
    return phi, omega


def minmod(a: float, b: float, c: float) -> float:
    """Smallest magnitude of three numbers of one sign, zero otherwise."""
    if a > 0.0 and b > 0.0 and c > 0.0:
        return min(a, b, c)
    if a < 0.0 and b < 0.0 and c < 0.0:
        return max(a, b, c)
    return 0.0