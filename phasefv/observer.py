"""Recording of density snapshots, order parameters and solver diagnostics."""

from __future__ import annotations

import logging
import math
import time
from pathlib import Path
from typing import IO, Iterable

import numpy as np

from .definitions import Parameters
from .parallel import Thread

logger = logging.getLogger(__name__)

_STATE_DTYPE = np.dtype(np.float64)


def _fmt(value: float) -> str:
    """Six significant digits, the default text formatting of the output files."""
    return f"{float(value):g}"


def output_file_stem(params: Parameters) -> str:
    """Base file name that encodes the parameters of a run."""
    return (
        f"dt_{_fmt(params.dt)}_v0_{_fmt(params.microscopic_velocity)}"
        f"_xi_{_fmt(params.friction)}_sigma_{_fmt(params.sigma)}"
        f"_rho_{_fmt(params.rho)}_alpha_{_fmt(params.alpha)}"
        f"_Dphi_{_fmt(params.diffusion_constant)}"
        f"_{params.num_cells_phi}_{params.num_cells_omega}"
    )


class BinaryObserver:
    """Writes simulation output for the root worker.

    Three files are produced in ``folder``: a binary file of
    ``(time, density...)`` records in float64, a text file of polar and
    nematic order parameters, and a text file of flux-limiter activity and
    CFL speeds.  Each is written once per unit of simulated time.
    Non-root workers write nothing.
    """

    def __init__(self, params: Parameters, folder, thread: Thread | None = None) -> None:
        if thread is None:
            thread = Thread(params.num_cells_phi, params.num_cells_omega)
        self.params = params
        self.thread = thread
        self.should_terminate = False
        self._counters = [0, 0, 0]
        threshold = max(params.inverse_dt, 1)
        self._thresholds = (threshold, threshold, threshold)

        folder_path = Path(folder)
        stem = output_file_stem(params)
        self.output_path = folder_path / f"{stem}.bin"
        self.summary_statistics_path = folder_path / f"{stem}.txt"
        self.flux_limiter_activity_path = folder_path / f"flux_limiter_{stem}.txt"

        self._output_file: IO[bytes] | None = None
        self._summary_file: IO[str] | None = None
        self._flux_limiter_file: IO[str] | None = None
        self._timer = time.perf_counter()

        phases = params.phi(np.arange(params.num_cells_phi, dtype=float))
        self._phases = np.tile(phases, params.num_cells_omega).astype(np.float32)

        if thread.is_root:
            folder_path.mkdir(parents=True, exist_ok=True)
            for path in (self.output_path, self.summary_statistics_path, self.flux_limiter_activity_path):
                path.unlink(missing_ok=True)
            self._output_file = self.output_path.open("ab")
            self._summary_file = self.summary_statistics_path.open("a", encoding="utf-8")
            self._flux_limiter_file = self.flux_limiter_activity_path.open("a", encoding="utf-8")

    # -- lifetime -------------------------------------------------------------

    def close(self) -> None:
        """Close every output file; further writes are not possible."""
        for stream in (self._output_file, self._summary_file, self._flux_limiter_file):
            if stream is not None and not stream.closed:
                stream.close()

    def __enter__(self) -> "BinaryObserver":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # -- helpers --------------------------------------------------------------

    def _due(self, channel: int) -> bool:
        due = self._counters[channel] % self._thresholds[channel] == 0
        self._counters[channel] += 1
        return due

    # -- recording ------------------------------------------------------------

    def validate_solution(self, system_state) -> bool:
        """Check that every density is finite and non-negative.

        On the first violation the observer is marked for termination and
        ``False`` is returned.
        """
        values = np.asarray(system_state, dtype=float).ravel()
        finite = np.isfinite(values)
        with np.errstate(invalid="ignore"):
            bad = ~finite | (values < 0.0)
        if not bad.any():
            return True
        first = int(np.argmax(bad))
        if not finite[first]:
            logger.warning("finiteness assertion failed!")
        else:
            logger.warning("positivity assertion failed: density == %s < 0.0!", _fmt(values[first]))
        self.should_terminate = True
        return False

    def save_system_state(self, system_state, t: float) -> None:
        """Validate the state and append it to the binary output when due."""
        if not self.thread.is_root:
            return
        values = np.asarray(system_state, dtype=float).ravel()
        self.validate_solution(values)
        total_mass = values.sum() * self.params.dphi * self.params.domega
        now = time.perf_counter()
        logger.info("total mass: %s", _fmt(total_mass))
        logger.info("t:%s | integration time:%ss", _fmt(t), _fmt(now - self._timer))
        self._timer = now

        if self._due(0):
            record = np.concatenate(([float(t)], values)).astype(_STATE_DTYPE)
            self._output_file.write(record.tobytes())
            self._output_file.flush()

    def save_summary_statistics(self, system_state, t: float) -> None:
        """Append the polar and nematic order parameters (magnitude, angle) when due."""
        if not self.thread.is_root:
            return
        if not self._due(1):
            return
        weights = np.asarray(system_state, dtype=float).ravel().astype(np.float32)
        phases = self._phases
        with np.errstate(divide="ignore", invalid="ignore"):
            normalization = np.float32(weights.sum(dtype=np.float32))
            polar = np.complex64(
                np.sum((np.cos(phases) + 1j * np.sin(phases)).astype(np.complex64) * weights)
            ) / normalization
            double = np.float32(2.0) * phases
            nematic = np.complex64(
                np.sum((np.cos(double) + 1j * np.sin(double)).astype(np.complex64) * weights)
            ) / normalization
        fields = (
            np.float32(t),
            np.abs(polar),
            np.angle(polar),
            np.abs(nematic),
            np.angle(nematic),
        )
        self._summary_file.write("\t".join(_fmt(value) for value in fields) + "\n")
        self._summary_file.flush()

    def save_additional_information(
        self, flux_limiter_count: Iterable[int], cfl_a: float, cfl_b: float, t: float
    ) -> None:
        """Append flux-limiter counts and the CFL speeds when due."""
        if not self.thread.is_root:
            return
        if not self._due(2):
            return
        line = _fmt(t) + "\t"
        line += "".join(f"{int(count)}\t" for count in flux_limiter_count)
        line += f"{_fmt(cfl_a)}\t{_fmt(cfl_b)}\n"
        self._flux_limiter_file.write(line)
        self._flux_limiter_file.flush()