"""Regularised inversion of the Baart test problem.

Discretises the Baart integral equation, adds uniform noise to the right
hand side and compares the naive least squares solution with Tikhonov
solutions. The regularisation parameter is either given on the command
line or chosen by the discrepancy principle from a logarithmic sweep,
which also traces the L-curve.

Generates:
    - Singular value spectrum and condition number of the operator
    - Solution errors for least squares and Tikhonov
    - L-curve and recovered solution plots
    - CSV export of the L-curve

Examples:
    python scripts/run_inversion_demo.py --n 40 --noise 1e-3
    python scripts/run_inversion_demo.py --lam 0.05 --order 2
"""

from __future__ import annotations

import argparse
import csv
import json
import sys
import warnings
from pathlib import Path
from typing import Iterable, List

# Add src directory to path for inverse_methods imports
_script_dir = Path(__file__).parent.resolve()
_src_dir = _script_dir.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

import matplotlib.pyplot as plt
import numpy as np

from inverse_methods import (
    LCurve,
    RankDeficiencyWarning,
    add_uniform_noise,
    baart_problem,
    condition_number,
    difference_operator,
    discrepancy_lambda,
    l_curve,
    least_squares,
    numerical_rank,
    singular_values,
    tikhonov,
)

DEFAULTS = {
    "n": 40,
    "noise": 1e-3,
    "lam": None,
    "order": 0,
    "lam_min": 1e-6,
    "lam_max": 1.0,
    "n_lambdas": 25,
    "seed": 0,
}


def _write_csv(path: Path, headers: List[str], rows: Iterable[List]) -> None:
    """Write CSV file."""
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(headers)
        writer.writerows(rows)


def relative_error(u, u_true) -> float:
    return float(np.linalg.norm(u - u_true) / np.linalg.norm(u_true))


def plot_inversion(problem, u_ls, u_tik, lam, curve: LCurve, out_dir: Path) -> Path:
    """Singular values, L-curve and recovered solutions."""
    plt.rcParams.update({
        "font.size": 11,
        "axes.grid": True,
        "grid.alpha": 0.3,
    })
    fig, axes = plt.subplots(1, 3, figsize=(16, 5))

    s = singular_values(problem.A)
    axes[0].semilogy(np.arange(1, len(s) + 1), s, "o", ms=4, color="#1f77b4")
    axes[0].set_xlabel("Index")
    axes[0].set_ylabel("Singular value")
    axes[0].set_title("Singular values of A")

    axes[1].loglog(curve.residual_norms, curve.solution_norms, "-o", ms=3, color="#2ca02c")
    i = int(np.argmin(np.abs(curve.lambdas - lam)))
    axes[1].loglog(curve.residual_norms[i], curve.solution_norms[i], "o", ms=9,
                   color="#d62728", label=f"lambda = {lam:.2e}")
    axes[1].set_xlabel("||A u - y||")
    axes[1].set_ylabel("||L u||")
    axes[1].set_title("L-curve")
    axes[1].legend(loc="upper right")

    axes[2].plot(problem.t, problem.u, color="black", lw=2.0, label="exact")
    axes[2].plot(problem.t, u_tik, color="#d62728", lw=1.5, label="Tikhonov")
    # Least squares is usually orders of magnitude off; clip it to the frame
    lim = 3.0 * np.max(np.abs(problem.u))
    axes[2].plot(problem.t, np.clip(u_ls, -lim, lim), color="#7f7f7f", lw=0.8,
                 alpha=0.7, label="least squares (clipped)")
    axes[2].set_xlabel("t")
    axes[2].set_ylabel("u(t)")
    axes[2].set_title("Recovered solution")
    axes[2].legend(loc="upper right")

    plt.tight_layout()
    plot_path = out_dir / "inversion_demo.png"
    plt.savefig(plot_path, dpi=200, bbox_inches="tight", facecolor="white")
    plt.close(fig)
    print(f"Saved plot: {plot_path}")
    return plot_path


def main() -> None:
    """Parse command line arguments and run the inversion demo."""
    parser = argparse.ArgumentParser(description="Baart problem inversion demo")
    parser.add_argument("--config", default=None, help="JSON file overriding the defaults below")
    parser.add_argument("--n", type=int, default=None, help="Grid size")
    parser.add_argument("--noise", type=float, default=None, help="Uniform noise level")
    parser.add_argument("--lam", type=float, default=None,
                        help="Regularisation parameter (default: discrepancy principle)")
    parser.add_argument("--order", type=int, default=None,
                        help="Order of the difference operator L (0 is the identity)")
    parser.add_argument("--seed", type=int, default=None, help="Noise RNG seed")
    parser.add_argument("--out-dir", default=None, help="Output directory (default: ../output)")
    parser.add_argument("--no-plots", action="store_true", help="Skip plot generation")
    parser.add_argument("--no-csv", action="store_true", help="Skip CSV export")
    args = parser.parse_args()

    opts = dict(DEFAULTS)
    if args.config:
        with open(args.config, "r", encoding="utf-8") as f:
            opts.update(json.load(f))
    for key in ("n", "noise", "lam", "order", "seed"):
        value = getattr(args, key)
        if value is not None:
            opts[key] = value

    problem = baart_problem(int(opts["n"]))
    rng = np.random.default_rng(opts["seed"])
    y_noisy = add_uniform_noise(problem.y, opts["noise"], rng=rng)
    delta = float(np.linalg.norm(y_noisy - problem.y))
    L = difference_operator(problem.A.shape[1], int(opts["order"]))

    print(f"Baart problem, n = {opts['n']}")
    print(f"  condition number : {condition_number(problem.A):.3e}")
    print(f"  numerical rank   : {numerical_rank(problem.A)} of {problem.A.shape[1]}")
    print(f"  discretisation   : ||A u - y|| = {np.linalg.norm(problem.Au - problem.y):.3e}")
    print(f"  noise norm       : {delta:.3e}")

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", RankDeficiencyWarning)
        u_ls = least_squares(problem.A, y_noisy)
    if caught:
        print("  least squares fell back to the pseudoinverse")

    lambdas = np.logspace(np.log10(opts["lam_min"]), np.log10(opts["lam_max"]), int(opts["n_lambdas"]))
    curve = l_curve(problem.A, y_noisy, lambdas, L=L)
    lam = opts["lam"]
    if lam is None:
        lam = discrepancy_lambda(problem.A, y_noisy, delta, lambdas, L=L)
        print(f"Discrepancy principle chose lambda = {lam:.3e}")
    u_tik = tikhonov(problem.A, y_noisy, lam, L=L)

    print()
    print(f"{'Method':<16}{'lambda':>12}{'rel. error':>14}")
    print("-" * 42)
    print(f"{'least squares':<16}{0.0:>12.3e}{relative_error(u_ls, problem.u):>14.3e}")
    print(f"{'Tikhonov':<16}{lam:>12.3e}{relative_error(u_tik, problem.u):>14.3e}")

    out_dir = Path(args.out_dir) if args.out_dir else _script_dir.parent / "output"
    if not (args.no_plots and args.no_csv):
        out_dir.mkdir(parents=True, exist_ok=True)
    if not args.no_plots:
        plot_inversion(problem, u_ls, u_tik, lam, curve, out_dir)
    if not args.no_csv:
        path = out_dir / "inversion_l_curve.csv"
        _write_csv(path, ["lambda", "residual_norm", "solution_norm"],
                   zip(curve.lambdas, curve.residual_norms, curve.solution_norms))
        print(f"Wrote L-curve CSV: {path}")


if __name__ == "__main__":
    main()
