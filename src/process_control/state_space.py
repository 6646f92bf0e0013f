"""
State-Space Integrator
======================

Fixed-step integration of linear time-invariant state-space models

    q'(t) = A q(t) + B f(t)
    y(t)  = C q(t) + D f(t)

where q is the state vector, f(t) the exogenous forcing vector and y the
output. The integrator is the classical 4th-order Runge-Kutta scheme on a
uniform grid. The grid spacing is chosen from the spectral radius of A so
that a single call covering one control period is accurate far beyond what
a control loop can observe.

The control loops in ``process_control.simulation`` call ``advance_state``
once per sample period: the forcing is held constant over the call and a
switch of the actuation (bang-bang control) becomes a new call with new
forcing, never a discontinuity inside one integration.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

import numpy as np

ForcingFunction = Callable[[float], np.ndarray]

# Largest |lambda| * h accepted for one RK4 sub-step. RK4 local error scales
# with (|lambda| h)^5 / 120, so 0.01 keeps it near 1e-12 relative.
_STIFFNESS_STEP = 0.01


def _as_matrix(value, name: str) -> np.ndarray:
    """Promote scalars and 1-D arrays to 2-D float matrices."""
    mat = np.atleast_2d(np.asarray(value, dtype=float))
    if mat.ndim != 2:
        raise ValueError(f"{name} must be at most 2-D, got shape {np.shape(value)}")
    return mat


def rk4_step(fun: Callable[[float, np.ndarray], np.ndarray],
             t: float,
             q: np.ndarray,
             h: float) -> np.ndarray:
    """
    Advance ``q`` by one classical Runge-Kutta step of size ``h``.

    Parameters
    ----------
    fun : callable
        Right hand side ``fun(t, q)`` returning dq/dt.
    t : float
        Current time (s).
    q : ndarray
        Current state.
    h : float
        Step size (s).

    Returns
    -------
    ndarray
        State at ``t + h``.
    """
    k1 = fun(t, q)
    k2 = fun(t + 0.5 * h, q + 0.5 * h * k1)
    k3 = fun(t + 0.5 * h, q + 0.5 * h * k2)
    k4 = fun(t + h, q + h * k3)
    return q + (h / 6.0) * (k1 + 2.0 * k2 + 2.0 * k3 + k4)


@dataclass
class StateSpaceModel:
    """
    Linear time-invariant state-space model (A, B, C, D).

    Scalars are promoted to 1x1 matrices. A 1-D ``B`` or ``D`` is read as a
    single row, which is the layout of the single-state thermal stage
    (one state, four forcing channels).

    Attributes:
        A: State matrix (n x n)
        B: Input matrix (n x m)
        C: Output matrix (p x n)
        D: Feedthrough matrix (p x m)
    """

    A: np.ndarray
    B: np.ndarray
    C: np.ndarray
    D: np.ndarray

    def __post_init__(self):
        self.A = _as_matrix(self.A, "A")
        self.B = _as_matrix(self.B, "B")
        self.C = _as_matrix(self.C, "C")
        self.D = _as_matrix(self.D, "D")

        n = self.A.shape[0]
        if self.A.shape != (n, n):
            raise ValueError(f"A must be square, got shape {self.A.shape}")
        if self.B.shape[0] != n:
            # Column vector given as a row for multi-state systems
            if self.B.shape == (1, n):
                self.B = self.B.T
            else:
                raise ValueError(f"B must have {n} rows, got shape {self.B.shape}")
        if self.C.shape[1] != n:
            raise ValueError(f"C must have {n} columns, got shape {self.C.shape}")
        if self.D.shape != (self.C.shape[0], self.B.shape[1]):
            raise ValueError(
                f"D must have shape {(self.C.shape[0], self.B.shape[1])}, got {self.D.shape}"
            )

        self._spectral_radius = float(np.max(np.abs(np.linalg.eigvals(self.A))))

    @property
    def n_states(self) -> int:
        return self.A.shape[0]

    @property
    def n_inputs(self) -> int:
        return self.B.shape[1]

    @property
    def n_outputs(self) -> int:
        return self.C.shape[0]

    def _forcing(self, forcing_fn: ForcingFunction, t: float) -> np.ndarray:
        f = np.atleast_1d(np.asarray(forcing_fn(t), dtype=float)).ravel()
        if f.shape[0] != self.n_inputs:
            raise ValueError(f"Forcing must have {self.n_inputs} entries, got {f.shape[0]}")
        return f

    def derivative(self, q: np.ndarray, t: float, forcing_fn: ForcingFunction) -> np.ndarray:
        """Canonical state equation q' = A q + B f(t)."""
        return self.A @ q + self.B @ self._forcing(forcing_fn, t)

    def output(self, q: np.ndarray, t: float, forcing_fn: ForcingFunction) -> np.ndarray:
        """Canonical output equation y = C q + D f(t)."""
        return self.C @ q + self.D @ self._forcing(forcing_fn, t)

    def substeps(self, dt: float, max_step: Optional[float] = None) -> int:
        """Number of RK4 sub-steps needed to cover ``dt``."""
        n = 1
        if self._spectral_radius > 0.0:
            n = max(n, int(np.ceil(dt * self._spectral_radius / _STIFFNESS_STEP)))
        if max_step is not None:
            if max_step <= 0:
                raise ValueError("max_step must be > 0")
            n = max(n, int(np.ceil(dt / max_step)))
        return n

    def advance(self,
                q: np.ndarray,
                forcing_fn: ForcingFunction,
                dt: float,
                t0: float = 0.0,
                max_step: Optional[float] = None) -> np.ndarray:
        """
        Integrate the state from ``t0`` to ``t0 + dt``.

        Args:
            q: Current state vector (n,)
            forcing_fn: Forcing f(t) returning an (m,) vector
            dt: Step length [s], must be > 0
            t0: Start time passed to the forcing function [s]
            max_step: Optional upper bound on the RK4 sub-step [s]

        Returns:
            New state vector (n,)
        """
        if not dt > 0:
            raise ValueError(f"dt must be > 0, got {dt}")

        q = np.asarray(q, dtype=float).reshape(self.n_states)
        n_sub = self.substeps(dt, max_step)
        h = dt / n_sub

        def rhs(t, state):
            return self.derivative(state, t, forcing_fn)

        t = float(t0)
        for _ in range(n_sub):
            q = rk4_step(rhs, t, q, h)
            t += h
        return q

    def simulate(self,
                 q0: Sequence[float],
                 forcing_fn: ForcingFunction,
                 tspan: Tuple[float, float],
                 n_steps: Optional[int] = None,
                 max_step: Optional[float] = None) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Integrate over ``tspan`` and evaluate the output on the solver grid.

        Args:
            q0: Initial state (n,)
            forcing_fn: Forcing f(t) returning an (m,) vector
            tspan: (t_start, t_end) [s]
            n_steps: Number of output intervals; chosen from the stiffness
                of A when omitted
            max_step: Optional upper bound on the RK4 step [s]

        Returns:
            Tuple of (t, q, y) with shapes (k,), (k, n) and (k, p)
        """
        t_start, t_end = float(tspan[0]), float(tspan[1])
        if not t_end > t_start:
            raise ValueError(f"tspan must be increasing, got {tspan}")

        span = t_end - t_start
        if n_steps is None:
            n_steps = self.substeps(span, max_step)
        if n_steps < 1:
            raise ValueError("n_steps must be >= 1")

        t = np.linspace(t_start, t_end, n_steps + 1)
        q = np.zeros((n_steps + 1, self.n_states))
        y = np.zeros((n_steps + 1, self.n_outputs))

        q[0] = np.asarray(q0, dtype=float).reshape(self.n_states)
        y[0] = self.output(q[0], t[0], forcing_fn)
        for i in range(n_steps):
            q[i + 1] = self.advance(q[i], forcing_fn, t[i + 1] - t[i], t0=t[i], max_step=max_step)
            y[i + 1] = self.output(q[i + 1], t[i + 1], forcing_fn)

        return t, q, y


def advance_state(state: Sequence[float],
                  forcing_fn: ForcingFunction,
                  dt: float,
                  model: StateSpaceModel,
                  t0: float = 0.0,
                  max_step: Optional[float] = None) -> np.ndarray:
    """
    Advance ``state`` by exactly ``dt`` seconds of simulated time.

    Parameters
    ----------
    state : array-like
        Current state vector.
    forcing_fn : callable
        Forcing f(t), usually built from the current actuation and held
        constant over the call.
    dt : float
        Step length (s), must be positive.
    model : StateSpaceModel
        System matrices.
    t0 : float, optional
        Time at the start of the step, passed to ``forcing_fn``.
    max_step : float, optional
        Upper bound on the internal RK4 sub-step (s).

    Returns
    -------
    ndarray
        New state. The input is not modified. NaN inputs propagate.

    Examples
    --------
    >>> model = StateSpaceModel(A=-1.0, B=1.0, C=1.0, D=0.0)
    >>> q = advance_state([0.0], lambda t: [1.0], 0.1, model)
    """
    return model.advance(state, forcing_fn, dt, t0=t0, max_step=max_step)


def state_space_solve(A, B, C, D,
                      q0: Sequence[float],
                      forcing_fn: ForcingFunction,
                      tspan: Tuple[float, float],
                      n_steps: Optional[int] = None,
                      max_step: Optional[float] = None) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Generic state-space solver.

    Builds a ``StateSpaceModel`` from the matrices and integrates it over
    ``tspan``; see ``StateSpaceModel.simulate``.

    Returns
    -------
    t : ndarray
        Solver grid (s).
    q : ndarray
        State trajectory, one row per grid point.
    y : ndarray
        Output trajectory, one row per grid point.
    """
    model = StateSpaceModel(A, B, C, D)
    return model.simulate(q0, forcing_fn, tspan, n_steps=n_steps, max_step=max_step)
