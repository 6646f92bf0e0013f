"""
Unit tests for run configuration.

Tests verify:
- Defaults and validation
- Nested dict parsing and unknown key rejection
- JSON save/load round trip
- Controller construction from a configuration
"""

import json

import pytest
from process_control import (
    ControlRunConfig,
    OnOffController,
    PIDController,
    PIDGains,
    ThermalStageParams,
    TrajectoryController,
    load_config,
    save_config,
)


class TestControlRunConfig:
    """Tests for ControlRunConfig"""

    def test_defaults(self):
        config = ControlRunConfig()
        assert config.controller == "pid"
        assert config.setpoint == 280.0
        assert config.gains == PIDGains()
        assert config.stage == ThermalStageParams()

    def test_from_dict_nested(self):
        config = ControlRunConfig.from_dict({
            "controller": "trajectory",
            "rate": 2.0,
            "gains": {"Kp": 2.0, "Ki": 0.05},
            "stage": {"hot_side_temperature": 285.0},
        })
        assert config.rate == 2.0
        assert config.gains.Kp == 2.0
        assert config.gains.Kd == PIDGains().Kd
        assert config.stage.hot_side_temperature == 285.0

    @pytest.mark.parametrize("data", [
        {"kp": 1.0},
        {"gains": {"Kx": 1.0}},
        {"stage": {"colour": "red"}},
    ])
    def test_unknown_keys_rejected(self, data):
        with pytest.raises(ValueError, match="Unknown"):
            ControlRunConfig.from_dict(data)

    def test_unknown_controller_rejected(self):
        with pytest.raises(ValueError):
            ControlRunConfig(controller="fuzzy")

    def test_invalid_dt_rejected(self):
        with pytest.raises(ValueError):
            ControlRunConfig(dt=0.0)

    def test_dict_round_trip(self):
        config = ControlRunConfig(controller="onoff", deadband=1.5,
                                  stage=ThermalStageParams(mass=0.5))
        assert ControlRunConfig.from_dict(config.to_dict()) == config

    def test_json_round_trip(self, tmp_path):
        config = ControlRunConfig(controller="pi", setpoint=285.0, gains=PIDGains(Kp=3.0))
        path = tmp_path / "run.json"
        save_config(config, path)
        assert json.loads(path.read_text())["gains"]["Kp"] == 3.0
        assert load_config(path) == config

    def test_partial_json(self, tmp_path):
        path = tmp_path / "run.json"
        path.write_text(json.dumps({"controller": "pid", "gains": {"Kd": 0.0}}))
        config = load_config(path)
        assert config.gains.Kd == 0.0
        assert config.n_steps == 3600


class TestBuildController:
    """Tests for ControlRunConfig.build_controller"""

    def test_pid(self):
        ctrl = ControlRunConfig(gains=PIDGains(Kp=2.0)).build_controller()
        assert isinstance(ctrl, PIDController)
        assert ctrl.Kp == 2.0

    def test_on_off_uses_start_temperature(self):
        config = ControlRunConfig(controller="on-off", setpoint=310.0, initial_temperature=300.0)
        ctrl = config.build_controller()
        assert isinstance(ctrl, OnOffController)
        assert ctrl.initial_actuation() == -12.0

    def test_trajectory_rate(self):
        ctrl = ControlRunConfig(controller="trajectory", setpoint=300.0, rate=3.0).build_controller()
        assert isinstance(ctrl, TrajectoryController)
        assert ctrl.rate == 3.0

    def test_full_scale_from_stage(self):
        config = ControlRunConfig(stage=ThermalStageParams(full_scale_voltage=6.0))
        assert config.build_controller().full_scale == 6.0
