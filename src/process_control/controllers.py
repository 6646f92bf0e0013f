"""
Feedback Controller Module.

Discrete-time controllers for the thermoelectric stage. Every controller
reads the history of measured temperatures and returns the actuation
(TEC voltage) to apply over the next sample period.

Control laws, with the normalised error e = (y - r) / span:

    On-Off:      +-full_scale, switched only when the error crosses a
                 deadband edge (edge triggered, holds otherwise)
    P:           g = Kp * e + p0
    PI:          I += e * Ki * dt,   g = Kp * e + Ki * I
    PID:         D = (e[k-1] - e[k]) / dt,   g = Kp * e + Ki * I + Kd * D
    Trajectory:  PID with a setpoint ramp r -= rate / 60 * dt every step

and actuation = clip(g, -1, 1) * full_scale. Saturation is the normal
operating mode under large errors, so it is never reported as an error.

The integral accumulator is not clamped; only the combined output is.
Under sustained saturation the integral therefore winds up, which is the
textbook behaviour the laboratory demonstrates.

Positive actuation cools the stage, so a positive error (stage warmer than
the setpoint) produces positive voltage.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Dict, List, Sequence

import numpy as np

from .exceptions import InsufficientHistoryError
from .thermal_stage import FULL_SCALE_VOLTAGE


def clip_unit(value: float) -> float:
    """Clip a normalised controller output to [-1, 1]."""
    return float(np.clip(value, -1.0, 1.0))


# ============================================================================
# Parameter containers
# ============================================================================

@dataclass
class PIDGains:
    """Tunable gains shared by the P, PI, PID and trajectory controllers."""
    Kp: float = 1.4
    Ki: float = 1.0
    Kd: float = 1.0
    span: float = 20.0
    bias: float = 0.0

    def __post_init__(self):
        if self.span <= 0:
            raise ValueError("span must be > 0")

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


# ============================================================================
# Base class
# ============================================================================

class FeedbackController:
    """
    Common interface of all controllers.

    Attributes:
        setpoint: Current setpoint [K]
        full_scale: Actuation at normalised output 1 [V]
        min_history: Number of measurements ``update`` needs
    """

    min_history = 1

    def __init__(self, setpoint: float, full_scale: float = FULL_SCALE_VOLTAGE):
        if full_scale <= 0:
            raise ValueError("full_scale must be > 0")
        self.setpoint = float(setpoint)
        self.full_scale = float(full_scale)
        self.integral = 0.0
        self.derivative = 0.0

    def _check_history(self, measurements: Sequence[float]) -> None:
        if len(measurements) < self.min_history:
            raise InsufficientHistoryError(type(self).__name__, self.min_history, len(measurements))

    def initial_actuation(self) -> float:
        """Actuation recorded for the seeded history entries."""
        return self.full_scale

    def reset(self) -> None:
        """Clear the internal accumulators."""
        self.integral = 0.0
        self.derivative = 0.0

    def update(self, measurements: Sequence[float], dt: float) -> float:
        """
        Compute the actuation for the next sample period.

        Args:
            measurements: Measured process values, oldest first
            dt: Sample period [s]

        Returns:
            Actuation [V]
        """
        raise NotImplementedError

    def describe(self) -> str:
        return f"{type(self).__name__}(setpoint={self.setpoint:.2f}, full_scale={self.full_scale:.1f})"


# ============================================================================
# On-Off control
# ============================================================================

class OnOffState(Enum):
    """Output state of the on-off controller, valued by the actuation sign."""
    COOLING = 1.0
    HEATING = -1.0


def initial_state(setpoint: float, environment_temperature: float) -> OnOffState:
    """Cool if the setpoint lies below the starting temperature, otherwise heat."""
    return OnOffState.COOLING if setpoint < environment_temperature else OnOffState.HEATING


class OnOffController(FeedbackController):
    """
    Edge-triggered on-off controller with a deadband.

    With u = r - y (setpoint minus measurement) and deadband d:

        COOLING when u + d < 0 and previously u + d >= 0
        HEATING when u - d > 0 and previously u - d <= 0

    Between crossings the previous command is held. A measurement inside the
    deadband therefore never changes the output, which prevents chatter; the
    price is a sustained oscillation whose amplitude grows with d.
    """

    min_history = 2

    def __init__(self,
                 setpoint: float,
                 deadband: float = 2.0,
                 environment_temperature: float = 300.0,
                 full_scale: float = FULL_SCALE_VOLTAGE):
        super().__init__(setpoint, full_scale)
        if deadband < 0:
            raise ValueError("deadband must be >= 0")
        self.deadband = float(deadband)
        self.environment_temperature = float(environment_temperature)
        self.state = initial_state(self.setpoint, self.environment_temperature)

    @property
    def actuation(self) -> float:
        return self.state.value * self.full_scale

    def initial_actuation(self) -> float:
        return self.actuation

    def reset(self) -> None:
        super().reset()
        self.state = initial_state(self.setpoint, self.environment_temperature)

    def update(self, measurements: Sequence[float], dt: float) -> float:
        self._check_history(measurements)
        d = self.deadband
        u = self.setpoint - measurements[-1]
        u_past = self.setpoint - measurements[-2]

        if (u + d) < 0 and (u_past + d) >= 0:
            self.state = OnOffState.COOLING
        if (u - d) > 0 and (u_past - d) <= 0:
            self.state = OnOffState.HEATING

        return self.actuation

    def describe(self) -> str:
        return (f"OnOffController(setpoint={self.setpoint:.2f}, deadband={self.deadband:.2f}, "
                f"state={self.state.name})")


# ============================================================================
# Proportional family
# ============================================================================

class PController(FeedbackController):
    """
    Proportional controller with span normalisation and bias.

    The span sets the error at which the output saturates; the bias p0 is
    the output at zero error and can trim the offset for one operating point.
    """

    def __init__(self,
                 setpoint: float,
                 Kp: float = 1.4,
                 span: float = 20.0,
                 bias: float = 0.0,
                 full_scale: float = FULL_SCALE_VOLTAGE):
        super().__init__(setpoint, full_scale)
        if span <= 0:
            raise ValueError("span must be > 0")
        self.Kp = float(Kp)
        self.span = float(span)
        self.bias = float(bias)

    def error(self, measurement: float, setpoint: float = None) -> float:
        """Normalised error (y - r) / span."""
        r = self.setpoint if setpoint is None else setpoint
        return (measurement - r) / self.span

    def update(self, measurements: Sequence[float], dt: float) -> float:
        self._check_history(measurements)
        g = self.Kp * self.error(measurements[-1]) + self.bias
        return clip_unit(g) * self.full_scale

    def describe(self) -> str:
        return f"PController(setpoint={self.setpoint:.2f}, Kp={self.Kp}, span={self.span}, bias={self.bias})"


class PIController(PController):
    """Proportional-integral controller, integral accumulated without clamping."""

    def __init__(self,
                 setpoint: float,
                 Kp: float = 1.4,
                 Ki: float = 1.0,
                 span: float = 20.0,
                 full_scale: float = FULL_SCALE_VOLTAGE):
        super().__init__(setpoint, Kp=Kp, span=span, bias=0.0, full_scale=full_scale)
        self.Ki = float(Ki)

    def update(self, measurements: Sequence[float], dt: float) -> float:
        self._check_history(measurements)
        e = self.error(measurements[-1])
        self.integral += e * self.Ki * dt
        mv = self.Kp * e + self.Ki * self.integral
        return clip_unit(mv) * self.full_scale

    def describe(self) -> str:
        return f"PIController(setpoint={self.setpoint:.2f}, Kp={self.Kp}, Ki={self.Ki}, span={self.span})"


class PIDController(PIController):
    """
    Proportional-integral-derivative controller.

    The derivative term D = (e[k-1] - e[k]) / dt is a backward difference of
    the last two normalised errors, so at least two measurements are needed.
    """

    min_history = 2

    def __init__(self,
                 setpoint: float,
                 Kp: float = 1.4,
                 Ki: float = 1.0,
                 Kd: float = 1.0,
                 span: float = 20.0,
                 full_scale: float = FULL_SCALE_VOLTAGE):
        super().__init__(setpoint, Kp=Kp, Ki=Ki, span=span, full_scale=full_scale)
        self.Kd = float(Kd)

    def _errors(self, measurements: Sequence[float]):
        """Current and previous normalised error."""
        return self.error(measurements[-1]), self.error(measurements[-2])

    def update(self, measurements: Sequence[float], dt: float) -> float:
        self._check_history(measurements)
        e, e_past = self._errors(measurements)

        self.integral += e * self.Ki * dt
        self.derivative = (e_past - e) / dt
        mv = self.Kp * e + self.Ki * self.integral + self.Kd * self.derivative
        return clip_unit(mv) * self.full_scale

    def describe(self) -> str:
        return (f"PIDController(setpoint={self.setpoint:.2f}, Kp={self.Kp}, Ki={self.Ki}, "
                f"Kd={self.Kd}, span={self.span})")


class TrajectoryController(PIDController):
    """
    PID controller tracking a linear setpoint ramp.

    The setpoint starts at ``initial_setpoint`` and decreases by
    ``rate / 60 * dt`` after every control step (rate in K/min). The error
    of the previous step is taken against the previous setpoint, so the
    controller keeps its own setpoint history alongside the measurements.
    """

    def __init__(self,
                 initial_setpoint: float = 300.0,
                 rate: float = 1.0,
                 Kp: float = 1.4,
                 Ki: float = 1.0,
                 Kd: float = 1.0,
                 span: float = 20.0,
                 full_scale: float = FULL_SCALE_VOLTAGE):
        super().__init__(initial_setpoint, Kp=Kp, Ki=Ki, Kd=Kd, span=span, full_scale=full_scale)
        self.initial_setpoint = float(initial_setpoint)
        self.rate = float(rate)
        # Two entries to match the two seeded measurements
        self.setpoints: List[float] = [self.initial_setpoint, self.initial_setpoint]

    def reset(self) -> None:
        super().reset()
        self.setpoint = self.initial_setpoint
        self.setpoints = [self.initial_setpoint, self.initial_setpoint]

    def _errors(self, measurements: Sequence[float]):
        return (self.error(measurements[-1], self.setpoints[-1]),
                self.error(measurements[-2], self.setpoints[-2]))

    def update(self, measurements: Sequence[float], dt: float) -> float:
        actuation = super().update(measurements, dt)
        self.setpoint = self.setpoints[-1] - self.rate / 60.0 * dt
        self.setpoints.append(self.setpoint)
        return actuation

    def describe(self) -> str:
        return (f"TrajectoryController(start={self.initial_setpoint:.2f}, rate={self.rate} K/min, "
                f"Kp={self.Kp}, Ki={self.Ki}, Kd={self.Kd}, span={self.span})")


# ============================================================================
# Factory
# ============================================================================

CONTROLLER_TYPES = ("ONOFF", "P", "PI", "PID", "TRAJECTORY")


def make_controller(kind: str,
                    setpoint: float = 280.0,
                    gains: PIDGains = None,
                    deadband: float = 2.0,
                    environment_temperature: float = 300.0,
                    rate: float = 1.0,
                    full_scale: float = FULL_SCALE_VOLTAGE) -> FeedbackController:
    """
    Convenience function to build a controller by name.

    Parameters
    ----------
    kind : str
        'ONOFF', 'P', 'PI', 'PID' or 'TRAJECTORY' (case insensitive)
    setpoint : float
        Setpoint [K]; the starting setpoint for 'TRAJECTORY'
    gains : PIDGains, optional
        Gains for the proportional family
    deadband : float
        Deadband [K] for 'ONOFF'
    environment_temperature : float
        Starting temperature [K], decides the initial on-off state
    rate : float
        Ramp rate [K/min] for 'TRAJECTORY'
    full_scale : float
        Actuation at normalised output 1 [V]

    Returns
    -------
    FeedbackController

    Examples
    --------
    >>> ctrl = make_controller('pid', setpoint=280.0, gains=PIDGains(Kp=2.0))
    """
    kind = kind.upper().replace("-", "").replace("_", "")
    g = gains or PIDGains()

    if kind == 'ONOFF':
        return OnOffController(setpoint, deadband=deadband,
                               environment_temperature=environment_temperature,
                               full_scale=full_scale)
    elif kind == 'P':
        return PController(setpoint, Kp=g.Kp, span=g.span, bias=g.bias, full_scale=full_scale)
    elif kind == 'PI':
        return PIController(setpoint, Kp=g.Kp, Ki=g.Ki, span=g.span, full_scale=full_scale)
    elif kind == 'PID':
        return PIDController(setpoint, Kp=g.Kp, Ki=g.Ki, Kd=g.Kd, span=g.span, full_scale=full_scale)
    elif kind == 'TRAJECTORY':
        return TrajectoryController(setpoint, rate=rate, Kp=g.Kp, Ki=g.Ki, Kd=g.Kd,
                                    span=g.span, full_scale=full_scale)
    else:
        raise ValueError(f"Unknown controller type: {kind}. Use one of {', '.join(CONTROLLER_TYPES)}")
