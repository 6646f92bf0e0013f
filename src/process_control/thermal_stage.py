"""
thermal_stage.py

Physical constants and state-space model of the thermoelectric (Peltier)
temperature stage used in the process control laboratory.

The stage is a small aluminium block sitting on a thermoelectric cooler
(TEC). The TEC moves heat between the block and a heat sink held at the hot
side temperature, while the block also exchanges heat with the room. With
the block temperature T as the only state, the energy balance reads

    m c dT/dt = -a1 sqrt(V) + a2 (T - T_hot) - a3 + h S (T_env - T)

which in canonical form q' = A q + B f, y = C q + D f has

    A = -k + a2/(m c)
    B = [-a1/(m c), -a2/(m c), -a3/(m c), k]
    C = 1,  D = [0, 0, 0, 0]
    f = [sign(V) sqrt(|V|), T_hot, 1, T_env]

with k = h S / (m c). A positive voltage pumps heat out of the block, so
positive actuation cools the stage.

Every other module imports the parameters from here so that the open loop
demonstrations and the control loops integrate the same plant.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Callable, Optional, Tuple

import numpy as np

from .state_space import StateSpaceModel, advance_state

# ============================================================================
# Block properties
# ============================================================================
STAGE_MASS = 0.3              # kg
STAGE_SPECIFIC_HEAT = 502.0   # J kg^-1 K^-1 (aluminium)
STAGE_AREA = 0.025 * 0.025    # m^2, exposed face

# Heat transfer coefficient to the room [W m^-2 K^-1]. The control loops use
# the insulated value; the constant voltage demonstration uses the bare stage.
HEAT_TRANSFER_COEFF = 200.0
HEAT_TRANSFER_COEFF_BARE = 300.0

# ============================================================================
# TEC performance fit
# ============================================================================
# Heat pumped by the module as a function of voltage and hot side temperature,
# fitted to the manufacturer's data sheet.
TEC_A1 = 11.07      # W V^-0.5
TEC_A2 = -0.352     # W K^-1
TEC_A3 = -8.29      # W

# ============================================================================
# Operating conditions
# ============================================================================
HOT_SIDE_TEMPERATURE = 280.0      # K, heat sink
ENVIRONMENT_TEMPERATURE = 300.0   # K, room
FULL_SCALE_VOLTAGE = 12.0         # V, supply limit


@dataclass
class ThermalStageParams:
    """Physical parameters of the TEC stage."""
    mass: float = STAGE_MASS
    specific_heat: float = STAGE_SPECIFIC_HEAT
    heat_transfer_coeff: float = HEAT_TRANSFER_COEFF
    area: float = STAGE_AREA
    a1: float = TEC_A1
    a2: float = TEC_A2
    a3: float = TEC_A3
    hot_side_temperature: float = HOT_SIDE_TEMPERATURE
    environment_temperature: float = ENVIRONMENT_TEMPERATURE
    full_scale_voltage: float = FULL_SCALE_VOLTAGE

    def __post_init__(self):
        if self.mass <= 0 or self.specific_heat <= 0:
            raise ValueError("mass and specific_heat must be > 0")
        if self.full_scale_voltage <= 0:
            raise ValueError("full_scale_voltage must be > 0")

    @property
    def heat_capacity(self) -> float:
        """m c [J K^-1]."""
        return self.mass * self.specific_heat

    @property
    def loss_rate(self) -> float:
        """k = h S / (m c) [s^-1]."""
        return self.heat_transfer_coeff * self.area / self.heat_capacity

    def to_dict(self) -> dict:
        return asdict(self)


def stage_model(params: Optional[ThermalStageParams] = None) -> StateSpaceModel:
    """
    Build the single-state model of the stage.

    Args:
        params: Stage parameters (defaults to the laboratory stage)

    Returns:
        StateSpaceModel with one state and four forcing channels
    """
    p = params or ThermalStageParams()
    mc = p.heat_capacity
    k = p.loss_rate

    A = -k + p.a2 / mc
    B = [-p.a1 / mc, -p.a2 / mc, -p.a3 / mc, k]
    C = 1.0
    D = [0.0, 0.0, 0.0, 0.0]
    return StateSpaceModel(A, B, C, D)


def signed_sqrt(voltage: float) -> float:
    """sign(V) * sqrt(|V|); keeps the TEC fit usable for reversed polarity."""
    return float(np.sign(voltage) * np.sqrt(np.abs(voltage)))


def stage_forcing(voltage: float,
                  params: Optional[ThermalStageParams] = None) -> Callable[[float], np.ndarray]:
    """Constant forcing f = [sign(V) sqrt(|V|), T_hot, 1, T_env] for one step."""
    p = params or ThermalStageParams()
    f = np.array([signed_sqrt(voltage), p.hot_side_temperature, 1.0, p.environment_temperature])

    def forcing(t):
        return f

    return forcing


def variable_voltage_forcing(voltage_fn: Callable[[float], float],
                             params: Optional[ThermalStageParams] = None) -> Callable[[float], np.ndarray]:
    """Time-varying forcing built from a voltage schedule V(t)."""
    p = params or ThermalStageParams()

    def forcing(t):
        return np.array([signed_sqrt(voltage_fn(t)), p.hot_side_temperature,
                         1.0, p.environment_temperature])

    return forcing


def update_stage(temperature: float,
                 voltage: float,
                 dt: float,
                 params: Optional[ThermalStageParams] = None,
                 model: Optional[StateSpaceModel] = None) -> float:
    """
    Advance the stage temperature by one control period.

    The voltage is held constant over ``dt``. This is the process block of
    every control loop in ``process_control.simulation``.

    Args:
        temperature: Current block temperature [K]
        voltage: Applied TEC voltage [V], positive cools
        dt: Control period [s]
        params: Stage parameters
        model: Pre-built model for ``params`` (saves rebuilding every step)

    Returns:
        Block temperature after ``dt`` [K]
    """
    p = params or ThermalStageParams()
    model = model or stage_model(p)
    q = advance_state([temperature], stage_forcing(voltage, p), dt, model)
    return float(q[0])


def equilibrium_temperature(voltage: float,
                            params: Optional[ThermalStageParams] = None) -> float:
    """Steady state temperature for a constant voltage, T = -B f / A."""
    p = params or ThermalStageParams()
    model = stage_model(p)
    f = stage_forcing(voltage, p)(0.0)
    return float(-(model.B @ f)[0] / model.A[0, 0])


def solve_constant_voltage(voltage: float,
                           initial_temperature: float = ENVIRONMENT_TEMPERATURE,
                           duration: float = 3000.0,
                           params: Optional[ThermalStageParams] = None,
                           n_steps: int = 300) -> Tuple[np.ndarray, np.ndarray]:
    """
    Open loop response of the bare stage to a constant voltage.

    Returns:
        Tuple of (t, T): time grid [s] and temperature [K]
    """
    p = params or ThermalStageParams(heat_transfer_coeff=HEAT_TRANSFER_COEFF_BARE)
    t, _, y = stage_model(p).simulate([initial_temperature], stage_forcing(voltage, p),
                                      (0.0, duration), n_steps=n_steps)
    return t, y[:, 0]


def solve_variable_voltage(voltage_fn: Callable[[float], float],
                           initial_temperature: float = ENVIRONMENT_TEMPERATURE,
                           duration: float = 3000.0,
                           params: Optional[ThermalStageParams] = None,
                           n_steps: int = 600) -> Tuple[np.ndarray, np.ndarray]:
    """
    Open loop response to a voltage schedule V(t).

    The grid is fine enough that the schedule is resolved by the RK4 steps;
    pass a larger ``n_steps`` for fast schedules.

    Returns:
        Tuple of (t, T): time grid [s] and temperature [K]
    """
    p = params or ThermalStageParams()
    t, _, y = stage_model(p).simulate([initial_temperature], variable_voltage_forcing(voltage_fn, p),
                                      (0.0, duration), n_steps=n_steps)
    return t, y[:, 0]
