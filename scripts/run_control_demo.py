"""Closed loop temperature control of the thermoelectric stage.

Runs one or all controllers (On-Off, P, PI, PID, trajectory) on the
Peltier stage model from the same starting temperature and compares how
well each one tracks its setpoint.

Generates:
    - Temperature and actuation traces for every controller
    - Tracking metrics (final/RMS error, overshoot, settling time, switches)
    - CSV exports of the metrics and the full histories

Gains, setpoint and stage parameters come from flags or a JSON file
(``--config``) in the layout of ``process_control.ControlRunConfig``.
"""

from __future__ import annotations

import argparse
import csv
import sys
from dataclasses import replace
from pathlib import Path
from typing import Dict, Iterable, List

# Add src directory to path for process_control imports
_script_dir = Path(__file__).parent.resolve()
_src_dir = _script_dir.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

import matplotlib.pyplot as plt

from process_control import (
    ControlRunConfig,
    SimulationHistory,
    compute_tracking_metrics,
    load_config,
    run_closed_loop,
)
from process_control.controllers import CONTROLLER_TYPES

CONTROLLER_COLORS = {
    "ONOFF": "#7f7f7f",
    "P": "#1f77b4",
    "PI": "#2ca02c",
    "PID": "#d62728",
    "TRAJECTORY": "#9467bd",
}


def _write_csv(path: Path, headers: List[str], rows: Iterable[List]) -> None:
    """Write CSV file."""
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(headers)
        writer.writerows(rows)


def run_controller(config: ControlRunConfig) -> SimulationHistory:
    """Run the closed loop described by ``config``."""
    controller = config.build_controller()
    print(f"Running {controller.describe()} for {config.n_steps} steps of {config.dt:g} s")
    return run_closed_loop(controller, config.initial_temperature, config.n_steps,
                           dt=config.dt, params=config.stage)


def print_metrics(results: Dict[str, Dict[str, float]]) -> None:
    """Print the metrics table."""
    header = f"{'Controller':<12}{'final [K]':>11}{'RMS [K]':>10}{'overshoot':>11}{'settle [s]':>12}{'switches':>10}"
    print()
    print(header)
    print("-" * len(header))
    for name, m in results.items():
        print(f"{name:<12}{m['final_error']:>11.3f}{m['rms_error']:>10.3f}{m['overshoot']:>11.3f}"
              f"{m['settling_time']:>12.0f}{m['switch_count']:>10d}")


def plot_histories(histories: Dict[str, SimulationHistory], out_dir: Path) -> Path:
    """Temperature and actuation of every run, shared time axis."""
    plt.rcParams.update({
        "font.size": 11,
        "axes.grid": True,
        "grid.alpha": 0.3,
    })
    fig, (ax_T, ax_V) = plt.subplots(2, 1, figsize=(11, 7), sharex=True)

    for name, history in histories.items():
        arrays = history.as_arrays()
        color = CONTROLLER_COLORS.get(name, None)
        ax_T.plot(arrays["t"], arrays["T"], color=color, lw=1.5, label=name)
        ax_T.plot(arrays["t"], arrays["setpoint"], color=color, lw=0.8, ls="--")
        ax_V.step(arrays["t"], arrays["V"], where="post", color=color, lw=1.0, label=name)

    ax_T.set_ylabel("Stage temperature [K]")
    ax_T.legend(loc="upper right")
    ax_V.set_xlabel("Time [s]")
    ax_V.set_ylabel("TEC voltage [V]")
    ax_T.set_title("Closed loop control of the thermoelectric stage")

    plt.tight_layout()
    plot_path = out_dir / "control_demo.png"
    plt.savefig(plot_path, dpi=200, bbox_inches="tight", facecolor="white")
    plt.close(fig)
    print(f"Saved plot: {plot_path}")
    return plot_path


def export_csv(histories: Dict[str, SimulationHistory],
               results: Dict[str, Dict[str, float]],
               out_dir: Path) -> None:
    """Write metrics and histories."""
    keys = ["final_error", "rms_error", "peak_error", "overshoot",
            "settling_time", "switch_count", "max_actuation"]
    path = out_dir / "control_metrics.csv"
    _write_csv(path, ["controller"] + keys,
               ([name] + [results[name][k] for k in keys] for name in results))
    print(f"Wrote control metrics CSV: {path}")

    for name, history in histories.items():
        path = out_dir / f"control_history_{name.lower()}.csv"
        d = history.to_dict()
        _write_csv(path, list(d), zip(*d.values()))
        print(f"Wrote control history CSV: {path}")


def main() -> None:
    """Parse command line arguments and run the control demo."""
    parser = argparse.ArgumentParser(description="Thermoelectric stage control demo")
    parser.add_argument("--config", default=None, help="JSON run configuration")
    parser.add_argument("--controller", default=None,
                        help=f"One of {', '.join(CONTROLLER_TYPES)} or ALL (default: config value)")
    parser.add_argument("--setpoint", type=float, default=None, help="Setpoint [K]")
    parser.add_argument("--T0", type=float, default=None, help="Initial temperature [K]")
    parser.add_argument("--steps", type=int, default=None, help="Number of control steps")
    parser.add_argument("--Kp", type=float, default=None)
    parser.add_argument("--Ki", type=float, default=None)
    parser.add_argument("--Kd", type=float, default=None)
    parser.add_argument("--out-dir", default=None, help="Output directory (default: ../output)")
    parser.add_argument("--no-plots", action="store_true", help="Skip plot generation")
    parser.add_argument("--no-csv", action="store_true", help="Skip CSV export")
    args = parser.parse_args()

    config = load_config(args.config) if args.config else ControlRunConfig()
    gains = replace(config.gains, **{k: v for k, v in
                                     (("Kp", args.Kp), ("Ki", args.Ki), ("Kd", args.Kd))
                                     if v is not None})
    overrides = {"gains": gains}
    if args.setpoint is not None:
        overrides["setpoint"] = args.setpoint
    if args.T0 is not None:
        overrides["initial_temperature"] = args.T0
    if args.steps is not None:
        overrides["n_steps"] = args.steps
    config = replace(config, **overrides)

    kinds = [config.controller]
    if args.controller is not None:
        kinds = list(CONTROLLER_TYPES) if args.controller.upper() == "ALL" else [args.controller]

    histories: Dict[str, SimulationHistory] = {}
    results: Dict[str, Dict[str, float]] = {}
    for kind in kinds:
        run_config = replace(config, controller=kind)
        if kind.upper() == "TRAJECTORY" and args.setpoint is None:
            # Ramp starts at the initial temperature
            run_config = replace(run_config, setpoint=config.initial_temperature)
        name = kind.upper().replace("-", "").replace("_", "")
        histories[name] = run_controller(run_config)
        results[name] = compute_tracking_metrics(histories[name])

    print_metrics(results)

    out_dir = Path(args.out_dir) if args.out_dir else _script_dir.parent / "output"
    if not (args.no_plots and args.no_csv):
        out_dir.mkdir(parents=True, exist_ok=True)
    if not args.no_plots:
        plot_histories(histories, out_dir)
    if not args.no_csv:
        export_csv(histories, results, out_dir)


if __name__ == "__main__":
    main()
