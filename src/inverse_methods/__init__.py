"""
Inverse Methods Library

Linear regression, pseudoinverse and Tikhonov regularised inversion of
discretised Fredholm integral equations.

This package provides the following modules:

    fredholm   : Midpoint quadrature of integral kernels, Baart test problem
    regression : Least squares, SVD diagnostics, Tikhonov, lambda selection
"""

__version__ = "0.1.0"

from .exceptions import RankDeficiencyError, RankDeficiencyWarning
from .fredholm import (
    BaartProblem,
    Discretization,
    add_uniform_noise,
    baart_kernel,
    baart_problem,
    discretize_kernel,
)
from .regression import (
    LCurve,
    condition_number,
    design_matrix,
    difference_operator,
    discrepancy_lambda,
    l_curve,
    least_squares,
    linear_fit,
    numerical_rank,
    pseudoinverse,
    r_squared,
    residual_norm,
    singular_values,
    solution_norm,
    sse,
    tikhonov,
)

__all__ = [
    "__version__",
    "RankDeficiencyError",
    "RankDeficiencyWarning",
    "BaartProblem",
    "Discretization",
    "add_uniform_noise",
    "baart_kernel",
    "baart_problem",
    "discretize_kernel",
    "LCurve",
    "condition_number",
    "design_matrix",
    "difference_operator",
    "discrepancy_lambda",
    "l_curve",
    "least_squares",
    "linear_fit",
    "numerical_rank",
    "pseudoinverse",
    "r_squared",
    "residual_norm",
    "singular_values",
    "solution_norm",
    "sse",
    "tikhonov",
]
