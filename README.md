# phasefv

`phasefv` solves a kinetic equation for a density `f(phi, omega, t)`. Here `phi` is a phase
in `[0, 2*pi)` and `omega` is an angular velocity in `[-10, 10)`. The solver uses a
second-order finite-volume scheme. The phase direction is periodic, and the
angular-velocity direction has zero-flux walls.

Each time step uses Strang splitting:

1. half a step of phase transport,
2. a full step of angular-velocity transport,
3. another half step of phase transport.

Each of these sub-steps is a two-stage Runge–Kutta update. Cell slopes are found by
central differences. Wherever a reconstructed interface density would be negative, the
slope is replaced by a minmod-limited one.

The angular-velocity drift is the gradient of a potential with three parts:

- friction,
- an alignment interaction, computed as a circular convolution over the phase with a
  radix-2 Fourier transform,
- a diffusion term `D * log(density)`.

## Installation

```
pip install .
```

To install the test dependencies as well:

```
pip install .[test]
```

## Command line

```
phasefv --output out --bits 5 --omega-cells 40 --t1 2 --seed 1
```

Options:

| Option | Effect | Default |
| --- | --- | --- |
| `--output` | Folder for the output files. | `.` |
| `--initial-state FILE` | Start from a binary state file instead of a perturbed uniform density. | none |
| `--time-index` | Record of that file to use. | 1000 |
| `--no-perturbation` | Use the loaded state as it is. | loaded state is perturbed and renormalised |
| `--bits` | Log2 of the number of phase cells. | 7, giving 128 cells |
| `--omega-cells` | Number of angular-velocity cells. | 400 |
| `--t1` | End time. | 1000 |
| `--dt` | Time step. | 0.005 |
| `--alpha` | Phase lag of the interaction. | 0.3 |
| `--diffusion` | Diffusion constant `D`. | 0.01 |
| `--seed` | Seed for the random perturbations. | none |

Progress is logged to standard error: the total mass at each step and the wall time per
step.

A run starts at `t0 = 0` and takes steps while `t <= t1`, so the last step goes just past
`t1`. It writes three files to the output folder. Each file gets one entry per unit of
simulated time. The binary file also gets the initial state.

- `<stem>.bin` holds records of the time followed by the whole density grid, as native
  `float64`.
- `<stem>.txt` holds tab-separated lines with these fields:
  - the time,
  - the modulus of the polar order parameter,
  - the argument of the polar order parameter,
  - the modulus of the nematic order parameter,
  - the argument of the nematic order parameter.
- `flux_limiter_<stem>.txt` holds tab-separated lines with these fields:
  - the time,
  - the average number of limiter activations per stage, first in the phase direction
    and then in the angular-velocity direction,
  - the largest phase speed,
  - the largest angular-velocity speed.

The stem encodes the parameters, for example
`dt_0.005_v0_1_xi_0.1_sigma_1_rho_0.8_alpha_0.3_Dphi_0.01_128_400`.

A run stops early as soon as the density has a negative or non-finite value.

## Library use

```python
import numpy as np

from phasefv.definitions import Parameters
from phasefv.engine import SimulationEngine

params = Parameters(bits=5, num_cells_omega=40, t1=1.0)
engine = SimulationEngine(params, "out", rng=np.random.default_rng(1))
engine.initialize_by_rule()
t, state = engine.run()
```

`SimulationEngine` offers four ways to set up and run a simulation:

- `initialize_by_rule()` sets up a normalised, slightly perturbed uniform density.
- `initialize_from_file(path, time_index, add_perturbation)` loads a record from a
  binary state file.
- `run(initial_state)` uses the state it is given. Without one, it uses the state set up
  before, or else builds one by rule.
- `engine.terminated` tells whether the run stopped early.

### Modules

- `phasefv.definitions`
  - `Parameters`: model, grid and time-step settings. Its derived values include
    `num_cells_phi`, `size`, `dphi`, `domega` and `inverse_dt`. Its `phi(i)` and
    `omega(j)` give the cell centres.
  - `Dimension`
  - grid helpers: `positive_modulo`, `to_flat_index`, `from_flat_index`, `minmod`.
- `phasefv.fourier`: `inverse_fourier_transform`, for lengths that are powers of two, and
  the circular `fast_convolution`.
- `phasefv.initial_conditions`
  - initial densities: `uniform_perturbed`, `von_mises_gaussian_product`,
    `uniform_gaussian_product_perturbed`.
  - `coarse_grained_particle_density`: a histogram built from a `float32` particle
    trajectory file.
  - `normalize` and `add_perturbation`.
  - `read_state_from_file`: returns a record of a `.bin` output file.
- `phasefv.parallel.Thread`: the range of cells and of angular-velocity rows that one
  worker owns.
- `phasefv.dynamics.SplittingSystem`: the abstract right-hand side. It provides
  `angular_update`, `angular_velocity_update`, `density_slopes`, `limit_density_slopes`
  and the flux-limiter counters.
- `phasefv.fast_system.FastSplittingSystem`: the concrete fluxes, with `convolution`,
  `velocity_potential` and `velocity_at_cell_interface`.
- `phasefv.stepper.RungeKutta2SplittingStepper`: `do_step(system, state)` returns the
  state after one split step. It also sets `suggested_dt` from the CFL conditions and
  sets `average_flux_limiter_count`.
- `phasefv.observer.BinaryObserver`: validates the solution and writes the three output
  files. It is a context manager. `output_file_stem(params)` gives the file stem.

A density is a flat array of length `num_cells_phi * num_cells_omega`, with the phase
index varying fastest.

## What it does not do

Runs take place in a single process. A `Thread` can describe one worker's share of the
grid, and the stepper then advances only those cells. Nothing in the package starts
several workers or exchanges data between them, so a run split over several workers
does not produce a complete solution.

The time step is fixed. The CFL-based `suggested_dt` is reported but never applied.