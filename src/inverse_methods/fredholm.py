"""
Discretisation of Fredholm integral equations of the first kind.

    integral_a^b K(x, t) u(t) dt = y(x),    t in [a, b],  x in [c, d]

Midpoint quadrature on n nodes in t and m nodes in x turns the equation
into the linear system ``A u = y`` with

    w_n = (b - a) / n,        w_m = (d - c) / m
    t_i = a + (i - 1/2) w_n,  x_j = c + (j - 1/2) w_m      (i, j from 1)
    A[j, i] = w_n K(x_j, t_i)

so A is m x n and need not be square.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Tuple

import numpy as np

Kernel = Callable[[np.ndarray, np.ndarray], np.ndarray]

# Lower x bound of the Baart problem; y(x) = 2 sinh(x) / x is singular at 0
BAART_X_MIN = 1e-20


@dataclass
class Discretization:
    """Design matrix with the quadrature nodes it was built on."""
    A: np.ndarray
    t: np.ndarray
    x: np.ndarray

    @property
    def shape(self) -> Tuple[int, int]:
        return self.A.shape


@dataclass
class BaartProblem:
    """
    The Baart test problem on an m x n grid.

    ``u`` is the exact solution sampled at ``t``, ``Au`` its forward image
    through the discretised operator and ``y`` the exact right hand side
    sampled at ``x``. The gap between ``Au`` and ``y`` is the
    discretisation error.
    """
    A: np.ndarray
    u: np.ndarray
    Au: np.ndarray
    y: np.ndarray
    t: np.ndarray
    x: np.ndarray

    def as_tuple(self):
        return self.A, self.u, self.Au, self.y, self.t, self.x


def midpoints(n: int, bounds: Tuple[float, float]) -> Tuple[np.ndarray, float]:
    """Midpoint nodes and weight of an n interval rule on ``bounds``."""
    if int(n) != n or n <= 0:
        raise ValueError(f"Number of nodes must be a positive integer, got {n}")
    lo, hi = bounds
    if not hi > lo:
        raise ValueError(f"Empty integration domain: {bounds}")
    w = (hi - lo) / n
    return lo + (np.arange(1, int(n) + 1) - 0.5) * w, w


def discretize_kernel(kernel: Kernel,
                      n: int,
                      m: int,
                      t_bounds: Tuple[float, float] = (0.0, 1.0),
                      x_bounds: Tuple[float, float] = (0.0, 1.0)) -> Discretization:
    """
    Build the m x n design matrix of a Fredholm kernel by midpoint quadrature.

    Args:
        kernel: Vectorised ``K(x, t)``
        n: Number of nodes in t (columns)
        m: Number of nodes in x (rows)
        t_bounds: Integration interval (a, b)
        x_bounds: Observation interval (c, d)

    Returns:
        Discretization with ``A[j, i] = w_n K(x_j, t_i)``
    """
    t, w_n = midpoints(n, t_bounds)
    x, _ = midpoints(m, x_bounds)
    X, T = np.meshgrid(x, t, indexing='ij')
    A = w_n * np.asarray(kernel(X, T), dtype=float)
    if A.shape != (m, n):
        raise ValueError(f"Kernel returned shape {A.shape}, expected {(m, n)}")
    return Discretization(A=A, t=t, x=x)


def baart_kernel(x, t):
    """K(x, t) = exp(x cos t)."""
    return np.exp(x * np.cos(t))


def baart_problem(n: int, m: Optional[int] = None) -> BaartProblem:
    """
    Discretised Baart problem.

    The identity

        integral_0^pi exp(x cos t) sin t dt = 2 sinh(x) / x

    gives a kernel with known solution ``u(t) = sin t`` on t in [0, pi] and
    data ``y(x) = 2 sinh(x) / x`` on x in (0, pi/2]. The operator smooths
    strongly, so its singular values decay almost exponentially and the
    plain least squares solution is unstable for n beyond about 10.

    Args:
        n: Number of unknowns
        m: Number of observations (defaults to n)
    """
    m = n if m is None else m
    disc = discretize_kernel(baart_kernel, n, m,
                             t_bounds=(0.0, np.pi),
                             x_bounds=(BAART_X_MIN, np.pi / 2))
    u = np.sin(disc.t)
    y = 2.0 * np.sinh(disc.x) / disc.x
    return BaartProblem(A=disc.A, u=u, Au=disc.A @ u, y=y, t=disc.t, x=disc.x)


def add_uniform_noise(y, level: float, rng: Optional[np.random.Generator] = None):
    """
    Perturb observations with uniform noise ``level * (U(0, 1) - 1/2)``.

    Args:
        y: Noise free observations
        level: Full width of the noise band
        rng: Random generator; a fresh default generator if omitted
    """
    if level < 0:
        raise ValueError(f"Noise level must be >= 0, got {level}")
    rng = rng or np.random.default_rng()
    y = np.asarray(y, dtype=float)
    return y + level * (rng.random(y.shape) - 0.5)
