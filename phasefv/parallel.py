"""Partitioning of the phase-space grid between workers."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Thread:
    """One worker's share of the grid, split along the angular velocity.

    A single worker (the default) owns every cell and acts as the root.
    """

    num_cells_phi: int
    num_cells_omega: int
    rank: int = 0
    number_of_threads: int = 1
    root_rank: int = field(default=0, init=False)
    elements_per_thread: int = field(init=False)
    loop_indices: range = field(init=False)
    angular_velocity_loop_indices: range = field(init=False)

    def __post_init__(self) -> None:
        if self.num_cells_phi < 1 or self.num_cells_omega < 1:
            raise ValueError("grid dimensions must be positive")
        if self.number_of_threads < 1:
            raise ValueError(f"number_of_threads must be positive, got {self.number_of_threads}")
        if self.num_cells_omega % self.number_of_threads:
            raise ValueError(
                f"{self.num_cells_omega} angular velocity cells cannot be split "
                f"evenly between {self.number_of_threads} threads"
            )
        if not 0 <= self.rank < self.number_of_threads:
            raise ValueError(f"rank {self.rank} outside [0, {self.number_of_threads})")

        per_thread = self.num_cells_phi * self.num_cells_omega // self.number_of_threads
        omega_per_thread = self.num_cells_omega // self.number_of_threads
        object.__setattr__(self, "elements_per_thread", per_thread)
        object.__setattr__(
            self, "loop_indices", range(self.rank * per_thread, (self.rank + 1) * per_thread)
        )
        object.__setattr__(
            self,
            "angular_velocity_loop_indices",
            range(self.rank * omega_per_thread, (self.rank + 1) * omega_per_thread),
        )

    @property
    def is_root(self) -> bool:
        return self.rank == self.root_rank