"""Simulation driver and command-line entry point."""

from __future__ import annotations

import argparse
import logging
from dataclasses import replace
from pathlib import Path

import numpy as np

from .definitions import Parameters
from .fast_system import FastSplittingSystem
from .initial_conditions import add_perturbation, normalize, read_state_from_file, uniform_perturbed
from .observer import BinaryObserver
from .parallel import Thread
from .stepper import RungeKutta2SplittingStepper

logger = logging.getLogger(__name__)


class SimulationEngine:
    """Sets up an initial density and integrates it from ``t0`` past ``t1``."""

    def __init__(
        self,
        params: Parameters,
        output_folder,
        thread: Thread | None = None,
        rng: np.random.Generator | None = None,
    ) -> None:
        self.params = params
        self.output_folder = Path(output_folder)
        self.thread = thread if thread is not None else Thread(params.num_cells_phi, params.num_cells_omega)
        self.rng = rng if rng is not None else np.random.default_rng()
        self.system_state: np.ndarray | None = None
        self.time = params.t0
        self.terminated = False

    def _checked(self, state) -> np.ndarray:
        values = np.array(state, dtype=float).ravel()
        if values.size != self.params.size:
            raise ValueError(f"expected {self.params.size} values, got {values.size}")
        return values

    def initialize_by_rule(self) -> np.ndarray:
        """Start from a normalised, slightly perturbed uniform density."""
        self.system_state = normalize(uniform_perturbed(self.params, self.rng), self.params)
        return self.system_state

    def initialize_from_file(self, path, time_index: int = 1000, add_perturbation: bool = True) -> np.ndarray:
        """Start from record ``time_index`` of a saved state file, optionally perturbed."""
        _, state = read_state_from_file(path, self.params, time_index)
        if add_perturbation:
            state = globals_free_perturb(state, self.params, self.rng)
        self.system_state = state
        return state

    def run(self, initial_state=None) -> tuple[float, np.ndarray]:
        """Integrate until ``t1`` is passed or the solution becomes invalid.

        Uses ``initial_state`` when given, otherwise the state set up before,
        otherwise a state built by rule.  Returns the final time and state.
        """
        if initial_state is not None:
            self.system_state = self._checked(initial_state)
        elif self.system_state is None:
            self.initialize_by_rule()

        if self.thread.is_root:
            logger.info("simulation started with %d threads", self.thread.number_of_threads)

        system = FastSplittingSystem(self.params, self.thread)
        stepper = RungeKutta2SplittingStepper(self.thread, self.params.dt)
        state = self._checked(self.system_state)
        t = self.params.t0

        with BinaryObserver(self.params, self.output_folder, self.thread) as observer:
            observer.save_system_state(state, t)
            while t <= self.params.t1:
                t += stepper.dt
                state = stepper.do_step(system, state)
                observer.save_system_state(state, t)
                observer.save_summary_statistics(state, t)
                observer.save_additional_information(
                    stepper.average_flux_limiter_count, system.cfl_a, system.cfl_b, t
                )
                if observer.should_terminate:
                    break
            self.terminated = observer.should_terminate

        self.system_state = state
        self.time = t
        if self.thread.is_root:
            logger.info("simulation ended")
        return t, state


def globals_free_perturb(state, params: Parameters, rng: np.random.Generator) -> np.ndarray:
    """Perturb and renormalise a density."""
    return add_perturbation(state, params, rng)


def _parser() -> argparse.ArgumentParser:
    defaults = Parameters()
    parser = argparse.ArgumentParser(description="Finite-volume simulation of a kinetic phase model.")
    parser.add_argument("--output", default=".", help="folder for the output files")
    parser.add_argument("--initial-state", help="binary state file to start from")
    parser.add_argument("--time-index", type=int, default=1000, help="record of the state file to use")
    parser.add_argument("--no-perturbation", action="store_true", help="do not perturb a loaded state")
    parser.add_argument("--bits", type=int, default=defaults.bits, help="log2 of the number of angle cells")
    parser.add_argument("--omega-cells", type=int, default=defaults.num_cells_omega)
    parser.add_argument("--t1", type=float, default=defaults.t1)
    parser.add_argument("--dt", type=float, default=defaults.dt)
    parser.add_argument("--alpha", type=float, default=defaults.alpha)
    parser.add_argument("--diffusion", type=float, default=defaults.diffusion_constant)
    parser.add_argument("--seed", type=int, help="seed of the random perturbations")
    return parser


def main(argv=None) -> int:
    """Run a simulation from the command line."""
    args = _parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    try:
        params = replace(
            Parameters(),
            bits=args.bits,
            num_cells_omega=args.omega_cells,
            t1=args.t1,
            dt=args.dt,
            alpha=args.alpha,
            diffusion_constant=args.diffusion,
        )
    except ValueError as error:
        logger.error("%s", error)
        return 2

    engine = SimulationEngine(params, args.output, rng=np.random.default_rng(args.seed))
    if args.initial_state:
        engine.initialize_from_file(args.initial_state, args.time_index, not args.no_perturbation)
    else:
        engine.initialize_by_rule()
    engine.run()
    return 0