"""
Unit tests for the feedback controllers.

Tests verify:
- On-off switching is edge triggered at the deadband edges
- P, PI and PID control laws and saturation
- Integral windup under sustained saturation
- PID degrades to PI and P when gains are zero
- Trajectory setpoint ramp
- Controller factory and history checks
"""

import numpy as np
import pytest
from process_control import (
    InsufficientHistoryError,
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


def run_sequence(controller, temperatures, dt=1.0):
    """Feed a measured sequence one sample at a time, as the loop does."""
    outputs = []
    for i in range(controller.min_history, len(temperatures) + 1):
        outputs.append(controller.update(temperatures[:i], dt))
    return np.array(outputs)


class TestClipAndGains:
    """Tests for shared helpers"""

    @pytest.mark.parametrize("value, expected", [(-3.0, -1.0), (-0.2, -0.2), (0.0, 0.0), (5.0, 1.0)])
    def test_clip_unit(self, value, expected):
        assert clip_unit(value) == expected

    def test_gains_defaults(self):
        g = PIDGains()
        assert (g.Kp, g.Ki, g.Kd, g.span, g.bias) == (1.4, 1.0, 1.0, 20.0, 0.0)

    def test_non_positive_span_rejected(self):
        with pytest.raises(ValueError):
            PIDGains(span=0.0)


class TestOnOffController:
    """Tests for the edge-triggered on-off controller"""

    def test_initial_state_from_environment(self):
        assert initial_state(280.0, 300.0) is OnOffState.COOLING
        assert initial_state(310.0, 300.0) is OnOffState.HEATING

    def test_initial_actuation_sign(self):
        assert OnOffController(280.0, environment_temperature=300.0).initial_actuation() == 12.0
        assert OnOffController(310.0, environment_temperature=300.0).initial_actuation() == -12.0

    def test_switches_once_each_way_on_monotonic_ramps(self):
        """Cool past the lower edge, then warm past the upper edge"""
        temperatures = list(np.arange(300.0, 269.0, -1.0)) + list(np.arange(271.0, 291.0, 1.0))
        ctrl = OnOffController(280.0, deadband=2.0, environment_temperature=300.0)
        out = run_sequence(ctrl, temperatures)

        changes = np.flatnonzero(np.diff(out) != 0)
        assert len(changes) == 2
        assert out[0] == 12.0
        assert out[changes[0] + 1] == -12.0
        assert out[changes[1] + 1] == 12.0

    def test_switch_to_heating_at_lower_edge(self):
        ctrl = OnOffController(280.0, deadband=2.0, environment_temperature=300.0)
        assert ctrl.update([279.0, 278.0], 1.0) == 12.0
        assert ctrl.update([278.0, 277.9], 1.0) == -12.0

    def test_holds_inside_deadband(self):
        ctrl = OnOffController(280.0, deadband=2.0, environment_temperature=300.0)
        for pair in ([281.0, 279.0], [279.0, 281.5], [281.5, 278.5]):
            assert ctrl.update(pair, 1.0) == 12.0
        assert ctrl.state is OnOffState.COOLING

    def test_level_outside_band_does_not_retrigger(self):
        """Only the crossing switches; staying below the band just holds"""
        ctrl = OnOffController(280.0, deadband=2.0, environment_temperature=300.0)
        ctrl.state = OnOffState.COOLING
        assert ctrl.update([270.0, 270.0], 1.0) == 12.0

    def test_needs_two_measurements(self):
        ctrl = OnOffController(280.0)
        with pytest.raises(InsufficientHistoryError):
            ctrl.update([290.0], 1.0)

    def test_reset_restores_initial_state(self):
        ctrl = OnOffController(280.0, deadband=2.0, environment_temperature=300.0)
        ctrl.update([279.0, 277.0], 1.0)
        assert ctrl.state is OnOffState.HEATING
        ctrl.reset()
        assert ctrl.state is OnOffState.COOLING

    def test_negative_deadband_rejected(self):
        with pytest.raises(ValueError):
            OnOffController(280.0, deadband=-1.0)


class TestPController:
    """Tests for proportional control"""

    def test_proportional_output(self):
        ctrl = PController(280.0, Kp=1.4, span=20.0)
        assert np.isclose(ctrl.update([290.0], 1.0), 0.7 * 12.0)

    def test_zero_error_gives_bias(self):
        ctrl = PController(280.0, Kp=1.4, span=20.0, bias=0.25)
        assert np.isclose(ctrl.update([280.0], 1.0), 3.0)

    def test_saturates_without_error(self):
        ctrl = PController(280.0, Kp=1.4, span=20.0)
        assert ctrl.update([400.0], 1.0) == 12.0
        assert ctrl.update([150.0], 1.0) == -12.0

    def test_warm_stage_asks_for_cooling(self):
        ctrl = PController(280.0)
        assert ctrl.update([285.0], 1.0) > 0

    def test_empty_history_rejected(self):
        with pytest.raises(InsufficientHistoryError):
            PController(280.0).update([], 1.0)


class TestPIController:
    """Tests for proportional-integral control"""

    def test_integral_accumulates(self):
        ctrl = PIController(280.0, Kp=0.0, Ki=1.0, span=20.0)
        assert np.isclose(ctrl.update([290.0], 1.0), 6.0)
        assert np.isclose(ctrl.integral, 0.5)
        assert np.isclose(ctrl.update([290.0], 1.0), 12.0)
        assert np.isclose(ctrl.integral, 1.0)

    def test_integral_scaled_by_dt(self):
        ctrl = PIController(280.0, Kp=0.0, Ki=1.0, span=20.0)
        ctrl.update([290.0], 0.5)
        assert np.isclose(ctrl.integral, 0.25)

    def test_integral_winds_up_under_saturation(self):
        """The accumulator keeps growing while the output is clipped"""
        ctrl = PIController(280.0, Kp=1.4, Ki=1.0, span=20.0)
        outputs = [ctrl.update([300.0], 1.0) for _ in range(50)]
        assert all(v == 12.0 for v in outputs)
        assert np.isclose(ctrl.integral, 50.0)

    def test_reset_clears_integral(self):
        ctrl = PIController(280.0)
        ctrl.update([300.0], 1.0)
        ctrl.reset()
        assert ctrl.integral == 0.0


class TestPIDController:
    """Tests for proportional-integral-derivative control"""

    def test_derivative_backward_difference(self):
        ctrl = PIDController(280.0, Kp=0.0, Ki=0.0, Kd=1.0, span=20.0)
        v = ctrl.update([290.0, 300.0], 1.0)
        assert np.isclose(ctrl.derivative, -0.5)
        assert np.isclose(v, -6.0)

    def test_needs_two_measurements(self):
        with pytest.raises(InsufficientHistoryError) as excinfo:
            PIDController(280.0).update([290.0], 1.0)
        assert excinfo.value.required == 2
        assert excinfo.value.available == 1

    def test_zero_kd_matches_pi(self):
        temperatures = [300.0, 300.0, 296.0, 291.0, 287.0, 284.0, 282.5, 281.0, 280.2, 279.9]
        pid = PIDController(280.0, Kp=1.4, Ki=0.05, Kd=0.0)
        pi = PIController(280.0, Kp=1.4, Ki=0.05)
        for i in range(2, len(temperatures) + 1):
            assert pid.update(temperatures[:i], 1.0) == pi.update(temperatures[:i], 1.0)

    def test_zero_ki_kd_matches_p(self):
        temperatures = [300.0, 300.0, 296.0, 291.0, 287.0, 284.0, 282.5, 281.0]
        pid = PIDController(280.0, Kp=2.0, Ki=0.0, Kd=0.0)
        p = PController(280.0, Kp=2.0)
        for i in range(2, len(temperatures) + 1):
            assert pid.update(temperatures[:i], 1.0) == p.update(temperatures[:i], 1.0)


class TestTrajectoryController:
    """Tests for setpoint ramp tracking"""

    def test_setpoint_ramps_down(self):
        ctrl = TrajectoryController(300.0, rate=1.0)
        history = [300.0, 300.0]
        for _ in range(60):
            ctrl.update(history, 1.0)
            history.append(history[-1])
        assert np.isclose(ctrl.setpoint, 299.0)
        assert len(ctrl.setpoints) == 62

    def test_ramp_scales_with_dt(self):
        ctrl = TrajectoryController(300.0, rate=6.0)
        ctrl.update([300.0, 300.0], 10.0)
        assert np.isclose(ctrl.setpoint, 299.0)

    def test_errors_use_matching_setpoints(self):
        """Previous error is taken against the previous setpoint"""
        ctrl = TrajectoryController(300.0, rate=60.0, Kp=0.0, Ki=0.0, Kd=1.0, span=1.0)
        ctrl.update([300.0, 300.0], 1.0)
        assert ctrl.setpoint == 299.0
        ctrl.update([300.0, 300.0, 300.0], 1.0)
        # e = (300 - 299), e_past = (300 - 300)
        assert np.isclose(ctrl.derivative, -1.0)

    def test_reset_restarts_ramp(self):
        ctrl = TrajectoryController(300.0, rate=1.0)
        ctrl.update([300.0, 300.0], 30.0)
        ctrl.reset()
        assert ctrl.setpoint == 300.0
        assert ctrl.setpoints == [300.0, 300.0]


class TestMakeController:
    """Tests for the controller factory"""

    @pytest.mark.parametrize("kind, cls", [
        ("onoff", OnOffController),
        ("On-Off", OnOffController),
        ("P", PController),
        ("pi", PIController),
        ("PID", PIDController),
        ("trajectory", TrajectoryController),
    ])
    def test_builds_requested_type(self, kind, cls):
        assert type(make_controller(kind)) is cls

    def test_gains_passed_through(self):
        ctrl = make_controller("p", setpoint=285.0, gains=PIDGains(Kp=2.0, bias=0.1, span=10.0))
        assert (ctrl.setpoint, ctrl.Kp, ctrl.bias, ctrl.span) == (285.0, 2.0, 0.1, 10.0)

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValueError, match="Unknown controller type"):
            make_controller("lqr")
