"""
Linear Regression and Regularised Inversion
===========================================

Least squares solutions of ``A u = y`` and their regularised variants.

Ordinary least squares minimises ``||A u - y||^2`` and is solved through the
normal equations

    u = (A^T A)^-1 A^T y

which only exist when A has full column rank. The Moore-Penrose
pseudoinverse ``A+ = V S+ U^T`` covers every case, but near zero singular
values make its entries (and the solution) blow up with the noise in y.

Tikhonov regularisation trades residual for a bounded solution:

    u_lam = argmin ||A u - y||^2 + lam^2 ||L (u - u0)||^2
          = (A^T A + lam^2 L^T L)^-1 (A^T y + lam^2 L^T L u0)

lam = 0 recovers least squares and lam -> inf tends to the prior u0.

References:
-----------
Hansen, P. C. (2010). Discrete Inverse Problems: Insight and Algorithms.
SIAM.
"""

import warnings
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
from scipy import linalg

from .exceptions import RankDeficiencyError, RankDeficiencyWarning

# Normal equations square the condition number; beyond this cond(A) the
# product A^T A carries no significant digits.
CONDITION_LIMIT = 1.0 / np.sqrt(np.finfo(float).eps)


def _as_system(A, y):
    A = np.atleast_2d(np.asarray(A, dtype=float))
    y = np.asarray(y, dtype=float)
    if A.ndim != 2:
        raise ValueError(f"A must be a matrix, got shape {A.shape}")
    if y.ndim != 1 or len(y) != A.shape[0]:
        raise ValueError(f"y must be a vector of length {A.shape[0]}, got shape {y.shape}")
    return A, y


# ==============================================================================
# REGRESSION
# ==============================================================================

def design_matrix(columns: Sequence, intercept: bool = True):
    """
    Stack predictor columns into a design matrix.

    Parameters
    ----------
    columns : sequence of array_like
        One array per predictor, all of equal length.
    intercept : bool
        Prepend a column of ones for the constant term.

    Examples
    --------
    Fuel use modelled as c1 w + c2 h + c3 w h + c4:

    >>> A = design_matrix([w, h, w * h])
    """
    cols = [np.asarray(c, dtype=float) for c in columns]
    if not cols and not intercept:
        raise ValueError("Design matrix needs at least one column")
    n = len(cols[0]) if cols else 0
    if any(c.shape != (n,) for c in cols):
        raise ValueError("All columns must be 1-D and of equal length")
    if intercept:
        cols.insert(0, np.ones(n))
    return np.column_stack(cols)


def linear_fit(x, y):
    """
    Straight line ``y = b + m x`` by least squares.

    Returns
    -------
    beta : ndarray
        [b, m], intercept then slope.
    """
    A = design_matrix([x])
    return least_squares(A, y)


def sse(y, A, beta) -> float:
    """Sum of squared errors ``||y - A beta||^2``."""
    r = np.asarray(y, dtype=float) - np.asarray(A, dtype=float) @ np.asarray(beta, dtype=float)
    return float(r @ r)


def r_squared(y, A, beta) -> float:
    """Coefficient of determination ``1 - SSE / ||y - mean(y)||^2``."""
    y = np.asarray(y, dtype=float)
    total = y - np.mean(y)
    return 1.0 - sse(y, A, beta) / float(total @ total)


# ==============================================================================
# SINGULAR VALUE DIAGNOSTICS
# ==============================================================================

def singular_values(A):
    """Singular values of A in descending order."""
    return linalg.svdvals(np.atleast_2d(np.asarray(A, dtype=float)))


def condition_number(A) -> float:
    """2-norm condition number ``s_max / s_min``; inf for a singular matrix."""
    s = singular_values(A)
    if s[-1] == 0:
        return np.inf
    return float(s[0] / s[-1])


def numerical_rank(A, tol: Optional[float] = None) -> int:
    """
    Number of singular values above ``tol``.

    The default tolerance ``s_max * max(m, n) * eps`` counts values that
    are distinguishable from round-off.
    """
    A = np.atleast_2d(np.asarray(A, dtype=float))
    s = singular_values(A)
    if tol is None:
        tol = s[0] * max(A.shape) * np.finfo(float).eps
    return int(np.count_nonzero(s > tol))


def pseudoinverse(A, rcond: Optional[float] = None):
    """
    Moore-Penrose pseudoinverse ``V S+ U^T`` from the SVD.

    Singular values at or below ``rcond * s_max`` are treated as zero and
    contribute nothing to ``S+``.

    Parameters
    ----------
    A : array_like
        m x n matrix.
    rcond : float, optional
        Relative cutoff; defaults to ``max(m, n) * eps``.

    Returns
    -------
    ndarray
        n x m pseudoinverse.
    """
    A = np.atleast_2d(np.asarray(A, dtype=float))
    if rcond is None:
        rcond = max(A.shape) * np.finfo(float).eps
    U, s, Vt = linalg.svd(A, full_matrices=False)
    cutoff = rcond * (s[0] if len(s) else 0.0)
    s_inv = np.zeros_like(s)
    keep = s > cutoff
    s_inv[keep] = 1.0 / s[keep]
    return (Vt.T * s_inv) @ U.T


def least_squares(A, y, rcond: Optional[float] = None, strict: bool = False):
    """
    Ordinary least squares solution ``(A^T A)^-1 A^T y``.

    When A has fewer rows than columns, or its condition number exceeds
    ``CONDITION_LIMIT`` (so that ``A^T A`` is singular to working
    precision), the normal equations are abandoned: a
    ``RankDeficiencyWarning`` is issued and the pseudoinverse solution
    ``A+ y`` is returned instead.

    Parameters
    ----------
    A : array_like
        m x n design matrix.
    y : array_like
        m observations.
    rcond : float, optional
        Cutoff passed to ``pseudoinverse`` on the fallback path.
    strict : bool
        Raise ``RankDeficiencyError`` instead of falling back.

    Returns
    -------
    ndarray
        n coefficients.
    """
    A, y = _as_system(A, y)
    m, n = A.shape
    condition = condition_number(A)

    if m < n or condition > CONDITION_LIMIT:
        rank = numerical_rank(A)
        if strict:
            raise RankDeficiencyError(condition, rank, n)
        warnings.warn(
            f"Normal equations are singular to working precision "
            f"(rank {rank} of {n}, condition {condition:.3e}); "
            f"using the pseudoinverse",
            RankDeficiencyWarning, stacklevel=2)
        return pseudoinverse(A, rcond) @ y

    return linalg.solve(A.T @ A, A.T @ y, assume_a='sym')


# ==============================================================================
# TIKHONOV REGULARISATION
# ==============================================================================

def difference_operator(n: int, order: int = 1):
    """
    (n - order) x n finite difference matrix for smoothness priors.

    order = 0 gives the identity.
    """
    if order < 0 or order >= n:
        raise ValueError(f"order must be in [0, {n - 1}], got {order}")
    L = np.eye(n)
    for _ in range(order):
        L = L[1:] - L[:-1]
    return L


def tikhonov(A, y, lam: float, L=None, u0=None):
    """
    Tikhonov regularised solution of ``A u = y``.

    Parameters
    ----------
    A : array_like
        m x n design matrix.
    y : array_like
        m observations.
    lam : float
        Regularisation parameter, >= 0. Zero delegates to
        ``least_squares``.
    L : array_like, optional
        p x n regularisation matrix (identity by default).
    u0 : array_like, optional
        Prior solution the regulariser pulls towards (zero by default).

    Returns
    -------
    ndarray
        n coefficients.
    """
    if lam < 0:
        raise ValueError(f"lam must be >= 0, got {lam}")
    A, y = _as_system(A, y)
    if lam == 0:
        return least_squares(A, y)

    n = A.shape[1]
    L = np.eye(n) if L is None else np.atleast_2d(np.asarray(L, dtype=float))
    u0 = np.zeros(n) if u0 is None else np.asarray(u0, dtype=float)
    if L.shape[1] != n:
        raise ValueError(f"L must have {n} columns, got shape {L.shape}")
    if u0.shape != (n,):
        raise ValueError(f"u0 must have shape ({n},), got {u0.shape}")

    LtL = L.T @ L
    lhs = A.T @ A + lam**2 * LtL
    rhs = A.T @ y + lam**2 * (LtL @ u0)
    return linalg.solve(lhs, rhs, assume_a='sym')


def residual_norm(A, u, y) -> float:
    """Residual norm ``||A u - y||``."""
    return float(np.linalg.norm(np.asarray(A, dtype=float) @ np.asarray(u, dtype=float)
                                - np.asarray(y, dtype=float)))


def solution_norm(u, L=None, u0=None) -> float:
    """Solution (semi)norm ``||L (u - u0)||``."""
    u = np.asarray(u, dtype=float)
    d = u if u0 is None else u - np.asarray(u0, dtype=float)
    if L is not None:
        d = np.asarray(L, dtype=float) @ d
    return float(np.linalg.norm(d))


@dataclass
class LCurve:
    """Residual and solution norms of the Tikhonov solution for each lambda."""
    lambdas: np.ndarray
    residual_norms: np.ndarray
    solution_norms: np.ndarray


def l_curve(A, y, lambdas, L=None, u0=None) -> LCurve:
    """
    Tabulate the trade-off between fit and regularity over ``lambdas``.

    Plotted on log-log axes the points trace the characteristic L shape;
    its corner balances fitting the data against fitting the noise.
    """
    lambdas = np.sort(np.asarray(lambdas, dtype=float))
    res = np.empty(len(lambdas))
    sol = np.empty(len(lambdas))
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", RankDeficiencyWarning)
        for i, lam in enumerate(lambdas):
            u = tikhonov(A, y, lam, L=L, u0=u0)
            res[i] = residual_norm(A, u, y)
            sol[i] = solution_norm(u, L=L, u0=u0)
    return LCurve(lambdas=lambdas, residual_norms=res, solution_norms=sol)


def discrepancy_lambda(A, y, noise_level: float, lambdas, L=None, u0=None) -> float:
    """
    Morozov discrepancy principle.

    Chooses the largest lambda whose residual norm does not exceed the
    noise level ``delta = ||y - y_true||``, so that the solution fits the
    data no more closely than the noise allows.

    Raises
    ------
    ValueError
        If no candidate lambda reaches the noise level.
    """
    if noise_level < 0:
        raise ValueError(f"noise_level must be >= 0, got {noise_level}")
    curve = l_curve(A, y, lambdas, L=L, u0=u0)
    admissible = curve.lambdas[curve.residual_norms <= noise_level]
    if len(admissible) == 0:
        raise ValueError(
            f"No lambda reaches the noise level {noise_level:.3e}; "
            f"smallest residual is {curve.residual_norms.min():.3e}")
    return float(admissible.max())
