"""
Process Control Laboratory Library

State-space simulation of the thermoelectric temperature stage and the
feedback controllers used to drive it.

This package provides the following modules:

    state_space   : Fixed-step RK4 integrator for linear state-space models
    thermal_stage : Physical constants and model of the Peltier stage
    controllers   : On-Off, P, PI, PID and trajectory controllers
    simulation    : Open and closed loop drivers, history buffers, metrics
    config        : Run configuration with JSON round-trip
"""

__version__ = "0.1.0"

# ============================================================================
# Integrator
# ============================================================================
from .state_space import (
    StateSpaceModel,
    advance_state,
    rk4_step,
    state_space_solve,
)

# ============================================================================
# Plant
# ============================================================================
from .thermal_stage import (
    ThermalStageParams,
    equilibrium_temperature,
    solve_constant_voltage,
    solve_variable_voltage,
    stage_forcing,
    stage_model,
    update_stage,
)

# ============================================================================
# Controllers
# ============================================================================
from .controllers import (
    FeedbackController,
    OnOffController,
    OnOffState,
    PController,
    PIController,
    PIDController,
    PIDGains,
    TrajectoryController,
    clip_unit,
    initial_state,
    make_controller,
)
from .exceptions import InsufficientHistoryError

# ============================================================================
# Simulation drivers
# ============================================================================
from .simulation import (
    SimulationHistory,
    compute_tracking_metrics,
    run_closed_loop,
    simulate_on_off,
    simulate_open_loop,
    simulate_p,
    simulate_pi,
    simulate_pid,
    simulate_trajectory,
)
from .config import ControlRunConfig, load_config, save_config

__all__ = [
    "__version__",
    # Integrator
    "StateSpaceModel",
    "advance_state",
    "rk4_step",
    "state_space_solve",
    # Plant
    "ThermalStageParams",
    "equilibrium_temperature",
    "solve_constant_voltage",
    "solve_variable_voltage",
    "stage_forcing",
    "stage_model",
    "update_stage",
    # Controllers
    "FeedbackController",
    "OnOffController",
    "OnOffState",
    "PController",
    "PIController",
    "PIDController",
    "PIDGains",
    "TrajectoryController",
    "clip_unit",
    "initial_state",
    "make_controller",
    "InsufficientHistoryError",
    # Simulation
    "SimulationHistory",
    "compute_tracking_metrics",
    "run_closed_loop",
    "simulate_on_off",
    "simulate_open_loop",
    "simulate_p",
    "simulate_pi",
    "simulate_pid",
    "simulate_trajectory",
    # Configuration
    "ControlRunConfig",
    "load_config",
    "save_config",
]
