"""Finite-volume solver for the phase and angular-velocity density of coupled oscillators."""

__version__ = "0.1.0"
__all__ = [
    "definitions",
    "fourier",
    "parallel",
    "dynamics",
    "initial_conditions",
    "fast_system",
    "observer",
    "stepper",
    "engine",
]