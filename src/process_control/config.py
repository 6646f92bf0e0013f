"""
Simulation configuration.

A control run is fully described by a ``ControlRunConfig``: the stage
parameters, the controller type and its gains, the initial conditions and
the run length. Configurations round-trip through plain dicts and JSON so
that a demo run can be reproduced from a file, the same way the sweep
scripts pass overrides between runs.

Example JSON::

    {
        "controller": "pid",
        "setpoint": 285.0,
        "gains": {"Kp": 2.0, "Ki": 0.5, "Kd": 0.0},
        "stage": {"hot_side_temperature": 285.0}
    }
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Union

from .controllers import CONTROLLER_TYPES, FeedbackController, PIDGains, make_controller
from .thermal_stage import ThermalStageParams


def dataclass_from_dict(cls, data: Dict[str, Any]):
    """Instantiate ``cls`` from ``data``, rejecting unknown keys."""
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown {cls.__name__} keys: {sorted(unknown)}")
    return cls(**data)


@dataclass
class ControlRunConfig:
    """Everything needed to reproduce one closed loop run."""
    controller: str = "pid"
    setpoint: float = 280.0
    initial_temperature: float = 300.0
    n_steps: int = 3600
    dt: float = 1.0
    deadband: float = 2.0
    rate: float = 1.0
    gains: PIDGains = field(default_factory=PIDGains)
    stage: ThermalStageParams = field(default_factory=ThermalStageParams)

    def __post_init__(self):
        if self.controller.upper().replace("-", "").replace("_", "") not in CONTROLLER_TYPES:
            raise ValueError(f"Unknown controller type: {self.controller}")
        if self.n_steps < 0:
            raise ValueError("n_steps must be >= 0")
        if not self.dt > 0:
            raise ValueError("dt must be > 0")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ControlRunConfig":
        data = dict(data)
        gains = dataclass_from_dict(PIDGains, data.pop("gains", {}))
        stage = dataclass_from_dict(ThermalStageParams, data.pop("stage", {}))
        known = {f.name for f in fields(cls)} - {"gains", "stage"}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown ControlRunConfig keys: {sorted(unknown)}")
        return cls(gains=gains, stage=stage, **data)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def build_controller(self) -> FeedbackController:
        return make_controller(
            self.controller,
            setpoint=self.setpoint,
            gains=self.gains,
            deadband=self.deadband,
            environment_temperature=self.initial_temperature,
            rate=self.rate,
            full_scale=self.stage.full_scale_voltage,
        )


def load_config(path: Union[str, Path]) -> ControlRunConfig:
    """Read a ``ControlRunConfig`` from a JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        return ControlRunConfig.from_dict(json.load(f))


def save_config(config: ControlRunConfig, path: Union[str, Path]) -> None:
    """Write a ``ControlRunConfig`` to a JSON file."""
    with open(path, "w", encoding="utf-8") as f:
        json.dump(config.to_dict(), f, indent=2)
