"""Terminal settling velocity of aerosol particles.

Tabulates the terminal velocity and relaxation time over a range of
particle diameters at the given air temperature and pressure, and plots
the velocity against diameter on log axes.

Generates:
    - Table of diameter, slip correction, terminal velocity, Reynolds
      number and relaxation time
    - Log-log plot of terminal velocity
    - CSV export of the table
"""

from __future__ import annotations

import argparse
import csv
import sys
from pathlib import Path
from typing import Iterable, List

# Add src directory to path for aerosol imports
_script_dir = Path(__file__).parent.resolve()
_src_dir = _script_dir.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

import matplotlib.pyplot as plt
import numpy as np

from aerosol import (
    DEFAULT_PARTICLE_DENSITY,
    DEFAULT_PRESSURE,
    DEFAULT_TEMPERATURE,
    relaxation_time,
    reynolds_number,
    slip_correction,
    terminal_velocities,
)


def _write_csv(path: Path, headers: List[str], rows: Iterable[List]) -> None:
    """Write CSV file."""
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(headers)
        writer.writerows(rows)


def main() -> None:
    """Parse command line arguments and tabulate settling velocities."""
    parser = argparse.ArgumentParser(description="Aerosol settling velocity table")
    parser.add_argument("--d-min", type=float, default=1e-8, help="Smallest diameter [m]")
    parser.add_argument("--d-max", type=float, default=1e-4, help="Largest diameter [m]")
    parser.add_argument("--points", type=int, default=9, help="Diameters per sweep (log spaced)")
    parser.add_argument("--T", type=float, default=DEFAULT_TEMPERATURE, help="Air temperature [K]")
    parser.add_argument("--p", type=float, default=DEFAULT_PRESSURE, help="Air pressure [Pa]")
    parser.add_argument("--rho-p", type=float, default=DEFAULT_PARTICLE_DENSITY,
                        help="Particle density [kg m-3]")
    parser.add_argument("--out-dir", default=None, help="Output directory (default: ../output)")
    parser.add_argument("--no-plots", action="store_true", help="Skip plot generation")
    parser.add_argument("--no-csv", action="store_true", help="Skip CSV export")
    args = parser.parse_args()

    d = np.logspace(np.log10(args.d_min), np.log10(args.d_max), args.points)
    vt = terminal_velocities(d, T=args.T, p=args.p, rho_p=args.rho_p)
    cc = slip_correction(d, args.T, args.p)
    Re = reynolds_number(vt, d, args.T, args.p)
    tau = relaxation_time(d, args.T, args.p, args.rho_p)

    print(f"T = {args.T:g} K, p = {args.p:g} Pa, rho_p = {args.rho_p:g} kg/m3")
    print(f"{'d [m]':>10}{'Cc':>10}{'v_t [m/s]':>12}{'Re':>12}{'tau [s]':>12}")
    print("-" * 56)
    rows = list(zip(d, cc, vt, Re, tau))
    for row in rows:
        print(f"{row[0]:>10.2e}{row[1]:>10.3f}{row[2]:>12.3e}{row[3]:>12.3e}{row[4]:>12.3e}")

    out_dir = Path(args.out_dir) if args.out_dir else _script_dir.parent / "output"
    if not (args.no_plots and args.no_csv):
        out_dir.mkdir(parents=True, exist_ok=True)

    if not args.no_plots:
        plt.rcParams.update({
            "font.size": 11,
            "axes.grid": True,
            "grid.alpha": 0.3,
        })
        fig, ax = plt.subplots(figsize=(8, 6))
        ax.loglog(d, vt, "-o", ms=4, color="#1f77b4")
        ax.set_xlabel("Particle diameter [m]")
        ax.set_ylabel("Terminal velocity [m/s]")
        ax.set_title("Terminal settling velocity in air")
        plt.tight_layout()
        plot_path = out_dir / "settling_velocity.png"
        plt.savefig(plot_path, dpi=200, bbox_inches="tight", facecolor="white")
        plt.close(fig)
        print(f"Saved plot: {plot_path}")

    if not args.no_csv:
        path = out_dir / "settling_velocity.csv"
        _write_csv(path, ["diameter_m", "slip_correction", "terminal_velocity_m_s",
                          "reynolds_number", "relaxation_time_s"], rows)
        print(f"Wrote settling CSV: {path}")


if __name__ == "__main__":
    main()
