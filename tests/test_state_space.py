"""
Unit tests for the fixed-step state-space integrator.

Tests verify:
- Shape handling of scalar, row and matrix inputs
- Agreement with analytic solutions of linear systems
- advance_state covers exactly dt and has no side effects
- Invalid step lengths and shapes are rejected
"""

import numpy as np
import pytest
from process_control import StateSpaceModel, advance_state, rk4_step, state_space_solve


def constant(value):
    f = np.atleast_1d(np.asarray(value, dtype=float))
    return lambda t: f


class TestModelConstruction:
    """Tests for StateSpaceModel shape normalisation"""

    def test_scalars_promoted_to_matrices(self):
        model = StateSpaceModel(A=-1.0, B=1.0, C=1.0, D=0.0)
        assert model.A.shape == (1, 1)
        assert model.B.shape == (1, 1)
        assert model.n_states == 1
        assert model.n_inputs == 1
        assert model.n_outputs == 1

    def test_row_b_for_single_state(self):
        """A 1-D B is one row: one state, several forcing channels"""
        model = StateSpaceModel(A=-0.5, B=[1.0, 2.0, 3.0, 4.0], C=1.0, D=[0, 0, 0, 0])
        assert model.B.shape == (1, 4)
        assert model.n_inputs == 4

    def test_row_b_transposed_for_multi_state(self):
        A = np.array([[0.0, 1.0], [-1.0, 0.0]])
        model = StateSpaceModel(A=A, B=[0.0, 1.0], C=[[1.0, 0.0]], D=0.0)
        assert model.B.shape == (2, 1)

    def test_non_square_a_rejected(self):
        with pytest.raises(ValueError):
            StateSpaceModel(A=np.ones((2, 3)), B=np.ones((2, 1)), C=np.ones((1, 3)), D=0.0)

    def test_mismatched_d_rejected(self):
        with pytest.raises(ValueError):
            StateSpaceModel(A=-1.0, B=[1.0, 1.0], C=1.0, D=0.0)

    def test_wrong_forcing_length_rejected(self):
        model = StateSpaceModel(A=-1.0, B=[1.0, 1.0], C=1.0, D=[0.0, 0.0])
        with pytest.raises(ValueError):
            model.advance([0.0], constant([1.0]), 1.0)


class TestRK4Step:
    """Tests for the single Runge-Kutta step"""

    def test_exact_for_cubic_polynomial(self):
        """RK4 integrates q' = 3 t^2 exactly"""
        q = rk4_step(lambda t, q: np.array([3.0 * t**2]), 0.0, np.array([0.0]), 2.0)
        assert np.isclose(q[0], 8.0)

    def test_fourth_order_error_on_decay(self):
        h = 0.1
        q = rk4_step(lambda t, q: -q, 0.0, np.array([1.0]), h)
        assert abs(q[0] - np.exp(-h)) < h**5


class TestAdvanceState:
    """Tests for the one-call step used by the control loops"""

    def test_exponential_decay_matches_analytic(self):
        """Repeated steps of q' = -a q + a u track the analytic response"""
        a, u = 0.05, 10.0
        model = StateSpaceModel(A=-a, B=a, C=1.0, D=0.0)
        q = np.array([0.0])
        for k in range(1, 101):
            q = advance_state(q, constant(u), 1.0, model)
            exact = u * (1.0 - np.exp(-a * k))
            assert abs(q[0] - exact) / exact < 1e-6

    def test_stiff_system_is_subdivided(self):
        model = StateSpaceModel(A=-50.0, B=50.0, C=1.0, D=0.0)
        assert model.substeps(1.0) >= 5000
        q = advance_state([0.0], constant(1.0), 1.0, model)
        assert np.isclose(q[0], 1.0 - np.exp(-50.0), rtol=1e-6)

    def test_max_step_bounds_substeps(self):
        model = StateSpaceModel(A=0.0, B=1.0, C=1.0, D=0.0)
        assert model.substeps(1.0, max_step=0.1) == 10

    def test_oscillator_conserves_phase(self):
        """Undamped oscillator returns to its start after one period"""
        A = np.array([[0.0, 1.0], [-1.0, 0.0]])
        model = StateSpaceModel(A=A, B=np.zeros((2, 1)), C=np.eye(2), D=np.zeros((2, 1)))
        q = advance_state([1.0, 0.0], constant(0.0), 2 * np.pi, model)
        assert np.allclose(q, [1.0, 0.0], atol=1e-6)

    def test_input_not_modified(self):
        model = StateSpaceModel(A=-1.0, B=1.0, C=1.0, D=0.0)
        q0 = np.array([2.0])
        advance_state(q0, constant(0.0), 1.0, model)
        assert q0[0] == 2.0

    def test_nan_propagates(self):
        model = StateSpaceModel(A=-1.0, B=1.0, C=1.0, D=0.0)
        q = advance_state([np.nan], constant(0.0), 1.0, model)
        assert np.isnan(q[0])

    @pytest.mark.parametrize("dt", [0.0, -1.0])
    def test_non_positive_dt_rejected(self, dt):
        model = StateSpaceModel(A=-1.0, B=1.0, C=1.0, D=0.0)
        with pytest.raises(ValueError):
            advance_state([0.0], constant(0.0), dt, model)

    def test_split_steps_equal_one_long_step(self):
        """Ten 1 s calls land where one 10 s call lands"""
        model = StateSpaceModel(A=-0.02, B=0.02, C=1.0, D=0.0)
        q = np.array([300.0])
        for _ in range(10):
            q = advance_state(q, constant(280.0), 1.0, model)
        q_long = advance_state([300.0], constant(280.0), 10.0, model)
        assert np.isclose(q[0], q_long[0], rtol=1e-9)


class TestStateSpaceSolve:
    """Tests for whole-trajectory integration"""

    def test_output_grid_and_shapes(self):
        t, q, y = state_space_solve(-1.0, 1.0, 1.0, 0.0, [0.0], constant(1.0), (0.0, 5.0), n_steps=50)
        assert t.shape == (51,)
        assert q.shape == (51, 1)
        assert y.shape == (51, 1)
        assert t[0] == 0.0 and t[-1] == 5.0

    def test_trajectory_matches_analytic(self):
        t, q, y = state_space_solve(-1.0, 1.0, 1.0, 0.0, [0.0], constant(1.0), (0.0, 5.0), n_steps=50)
        assert np.allclose(y[:, 0], 1.0 - np.exp(-t), rtol=1e-6, atol=1e-9)

    def test_feedthrough_in_output(self):
        t, q, y = state_space_solve(-1.0, 1.0, 2.0, 0.5, [1.0], constant(4.0), (0.0, 1.0), n_steps=10)
        assert np.allclose(y[:, 0], 2.0 * q[:, 0] + 2.0)

    def test_time_varying_forcing(self):
        """q' = cos t integrates to sin t"""
        t, q, y = state_space_solve(0.0, 1.0, 1.0, 0.0, [0.0], lambda t: [np.cos(t)],
                                    (0.0, np.pi), n_steps=100)
        assert np.allclose(q[:, 0], np.sin(t), atol=1e-8)

    def test_decreasing_span_rejected(self):
        with pytest.raises(ValueError):
            state_space_solve(-1.0, 1.0, 1.0, 0.0, [0.0], constant(1.0), (5.0, 0.0))
