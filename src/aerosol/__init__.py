"""
Aerosol Settling Library

Terminal velocity and relaxation time of spherical particles in air.
"""

__version__ = "0.1.0"

from .settling import (
    DEFAULT_PARTICLE_DENSITY,
    DEFAULT_PRESSURE,
    DEFAULT_TEMPERATURE,
    ConvergenceError,
    air_density,
    air_viscosity,
    drag_coefficient,
    initial_velocity_guess,
    mean_free_path,
    relaxation_time,
    reynolds_number,
    slip_correction,
    terminal_velocities,
    terminal_velocity,
    velocity_after_release,
)

__all__ = [
    "__version__",
    "DEFAULT_PARTICLE_DENSITY",
    "DEFAULT_PRESSURE",
    "DEFAULT_TEMPERATURE",
    "ConvergenceError",
    "air_density",
    "air_viscosity",
    "drag_coefficient",
    "initial_velocity_guess",
    "mean_free_path",
    "relaxation_time",
    "reynolds_number",
    "slip_correction",
    "terminal_velocities",
    "terminal_velocity",
    "velocity_after_release",
]
