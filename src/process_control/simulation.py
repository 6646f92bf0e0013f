"""
Closed and open loop simulation of the thermoelectric stage.

The loop observes the stage once per sample period ``dt``:

    measurements -> controller.update -> actuation -> plant step -> new measurement

The plant step integrates the state-space model over the whole period with
the actuation held constant, so running the loop without intervention gives
the same trajectory as one long integration.

History buffers grow by one entry per step. Every closed loop run seeds two
entries (t = 0 and t = dt, both at the initial temperature) so that
controllers comparing the current and previous sample always have both.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

import numpy as np

from .controllers import (
    FeedbackController,
    OnOffController,
    PController,
    PIController,
    PIDController,
    PIDGains,
    TrajectoryController,
)
from .thermal_stage import ThermalStageParams, stage_model, update_stage

PlantStep = Callable[[float, float, float], float]


@dataclass
class SimulationHistory:
    """Append-only record of one simulation run."""
    time: List[float] = field(default_factory=list)
    state: List[float] = field(default_factory=list)
    actuation: List[float] = field(default_factory=list)
    setpoint: List[float] = field(default_factory=list)
    integral: List[float] = field(default_factory=list)
    derivative: List[float] = field(default_factory=list)

    def append(self,
               time: float,
               state: float,
               actuation: float,
               setpoint: float = np.nan,
               integral: float = 0.0,
               derivative: float = 0.0) -> None:
        self.time.append(float(time))
        self.state.append(float(state))
        self.actuation.append(float(actuation))
        self.setpoint.append(float(setpoint))
        self.integral.append(float(integral))
        self.derivative.append(float(derivative))

    def __len__(self) -> int:
        return len(self.time)

    def as_arrays(self) -> Dict[str, np.ndarray]:
        return {
            't': np.asarray(self.time),
            'T': np.asarray(self.state),
            'V': np.asarray(self.actuation),
            'setpoint': np.asarray(self.setpoint),
            'integral': np.asarray(self.integral),
            'derivative': np.asarray(self.derivative),
        }

    def to_dict(self) -> Dict[str, List[float]]:
        return {
            'time': list(self.time),
            'state': list(self.state),
            'actuation': list(self.actuation),
            'setpoint': list(self.setpoint),
            'integral': list(self.integral),
            'derivative': list(self.derivative),
        }


def _stage_step(params: ThermalStageParams) -> PlantStep:
    """Plant step bound to one parameter set, with the model built once."""
    model = stage_model(params)

    def step(temperature, voltage, dt):
        return update_stage(temperature, voltage, dt, params=params, model=model)

    return step


def simulate_open_loop(initial_temperature: float,
                       voltage: float,
                       n: int,
                       dt: float = 1.0,
                       params: Optional[ThermalStageParams] = None) -> SimulationHistory:
    """
    Step the stage ``n`` times at constant voltage without a controller.

    The result matches a single integration over ``n * dt`` seconds.
    """
    if n < 0:
        raise ValueError("n must be >= 0")
    step = _stage_step(params or ThermalStageParams())

    history = SimulationHistory()
    history.append(0.0, initial_temperature, voltage)
    for _ in range(n):
        new_temperature = step(history.state[-1], voltage, dt)
        history.append(history.time[-1] + dt, new_temperature, voltage)
    return history


def run_closed_loop(controller: FeedbackController,
                    initial_temperature: float,
                    n: int,
                    dt: float = 1.0,
                    params: Optional[ThermalStageParams] = None,
                    plant_step: Optional[PlantStep] = None) -> SimulationHistory:
    """
    Run ``n`` control steps of ``controller`` on the stage.

    Args:
        controller: Any FeedbackController
        initial_temperature: Stage temperature at t = 0 [K]
        n: Number of control steps after the two seeded entries
        dt: Sample period [s]
        params: Stage parameters (ignored when ``plant_step`` is given)
        plant_step: Optional process block ``step(T, V, dt) -> T_new``

    Returns:
        SimulationHistory with n + 2 entries
    """
    if n < 0:
        raise ValueError("n must be >= 0")
    if not dt > 0:
        raise ValueError(f"dt must be > 0, got {dt}")
    step = plant_step or _stage_step(params or ThermalStageParams())

    history = SimulationHistory()
    seed_actuation = controller.initial_actuation()
    for k in range(2):
        history.append(k * dt, initial_temperature, seed_actuation,
                       setpoint=controller.setpoint)

    for _ in range(n):
        voltage = controller.update(history.state, dt)
        new_temperature = step(history.state[-1], voltage, dt)
        history.append(history.time[-1] + dt, new_temperature, voltage,
                       setpoint=controller.setpoint,
                       integral=controller.integral,
                       derivative=controller.derivative)
    return history


def simulate_on_off(environment_temperature: float,
                    n: int,
                    setpoint: float = 280.0,
                    deadband: float = 2.0,
                    params: Optional[ThermalStageParams] = None,
                    dt: float = 1.0) -> SimulationHistory:
    """On-off control starting from the environment temperature."""
    p = params or ThermalStageParams()
    p = ThermalStageParams(**{**p.to_dict(), 'environment_temperature': environment_temperature})
    controller = OnOffController(setpoint, deadband=deadband,
                                 environment_temperature=environment_temperature,
                                 full_scale=p.full_scale_voltage)
    return run_closed_loop(controller, environment_temperature, n, dt=dt, params=p)


def simulate_p(initial_temperature: float,
               n: int,
               setpoint: float = 280.0,
               gains: Optional[PIDGains] = None,
               params: Optional[ThermalStageParams] = None,
               dt: float = 1.0) -> SimulationHistory:
    """Proportional control; shows the steady offset of a P controller."""
    g = gains or PIDGains()
    p = params or ThermalStageParams()
    controller = PController(setpoint, Kp=g.Kp, span=g.span, bias=g.bias,
                             full_scale=p.full_scale_voltage)
    return run_closed_loop(controller, initial_temperature, n, dt=dt, params=p)


def simulate_pi(initial_temperature: float,
                n: int,
                setpoint: float = 280.0,
                gains: Optional[PIDGains] = None,
                params: Optional[ThermalStageParams] = None,
                dt: float = 1.0) -> SimulationHistory:
    """Proportional-integral control."""
    g = gains or PIDGains()
    p = params or ThermalStageParams()
    controller = PIController(setpoint, Kp=g.Kp, Ki=g.Ki, span=g.span,
                              full_scale=p.full_scale_voltage)
    return run_closed_loop(controller, initial_temperature, n, dt=dt, params=p)


def simulate_pid(initial_temperature: float,
                 n: int,
                 setpoint: float = 280.0,
                 gains: Optional[PIDGains] = None,
                 params: Optional[ThermalStageParams] = None,
                 dt: float = 1.0) -> SimulationHistory:
    """Full PID control."""
    g = gains or PIDGains()
    p = params or ThermalStageParams()
    controller = PIDController(setpoint, Kp=g.Kp, Ki=g.Ki, Kd=g.Kd, span=g.span,
                               full_scale=p.full_scale_voltage)
    return run_closed_loop(controller, initial_temperature, n, dt=dt, params=p)


def simulate_trajectory(initial_temperature: float,
                        n: int,
                        initial_setpoint: float = 300.0,
                        rate: float = 1.0,
                        gains: Optional[PIDGains] = None,
                        params: Optional[ThermalStageParams] = None,
                        dt: float = 1.0) -> SimulationHistory:
    """PID control along a setpoint ramp of ``rate`` K/min."""
    g = gains or PIDGains()
    p = params or ThermalStageParams()
    controller = TrajectoryController(initial_setpoint, rate=rate, Kp=g.Kp, Ki=g.Ki,
                                      Kd=g.Kd, span=g.span, full_scale=p.full_scale_voltage)
    return run_closed_loop(controller, initial_temperature, n, dt=dt, params=p)


def compute_tracking_metrics(history: SimulationHistory, band: float = 0.5) -> Dict[str, float]:
    """
    Summarise how well the loop tracked its setpoint.

    Parameters
    ----------
    history : SimulationHistory
        Result of a closed loop run (setpoint recorded every step).
    band : float
        Half width [K] of the band used for the settling time.

    Returns
    -------
    dict
        final_error, rms_error, peak_error, overshoot, settling_time,
        switch_count and max_actuation. settling_time is inf if the error
        never stays inside the band until the end of the run.
    """
    arrays = history.as_arrays()
    t, y, r, v = arrays['t'], arrays['T'], arrays['setpoint'], arrays['V']
    if len(t) == 0:
        raise ValueError("History is empty")

    e = y - r
    valid = np.isfinite(e)
    if not np.any(valid):
        raise ValueError("History has no recorded setpoint")
    e = e[valid]
    t = t[valid]

    # Overshoot: excursion past the setpoint on the far side from the start
    start_sign = np.sign(e[0])
    overshoot = 0.0
    if start_sign != 0:
        beyond = -start_sign * e
        overshoot = float(max(0.0, np.max(beyond)))

    settling_time = np.inf
    outside = np.flatnonzero(np.abs(e) > band)
    if len(outside) == 0:
        settling_time = float(t[0])
    elif outside[-1] < len(e) - 1:
        settling_time = float(t[outside[-1] + 1])

    signs = np.sign(v)
    switch_count = int(np.count_nonzero(signs[1:] * signs[:-1] < 0))

    return {
        'final_error': float(e[-1]),
        'rms_error': float(np.sqrt(np.mean(e**2))),
        'peak_error': float(np.max(np.abs(e))),
        'overshoot': overshoot,
        'settling_time': settling_time,
        'switch_count': switch_count,
        'max_actuation': float(np.max(np.abs(v))),
    }
