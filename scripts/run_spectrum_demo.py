"""Spectral analysis of a sampled series.

Either superposes three cosine waves of known amplitude, frequency and
phase (the default, so the recovered peaks can be read against the
inputs) or loads a two column series from a text file. The series is
resampled onto a uniform grid if needed, tapered, transformed and
tabulated, then low-pass filtered.

Generates:
    - Summary of the strongest peaks and the mean/variance self check
    - Series, amplitude spectrum and low-pass filtered series plot
    - CSV export of the spectrum table

Examples:
    python scripts/run_spectrum_demo.py --taper 0.1 --cutoff 0.05
    python scripts/run_spectrum_demo.py --file sunspots.txt --missing -1 --cutoff 0.01
"""

from __future__ import annotations

import argparse
import csv
import json
import sys
from pathlib import Path
from typing import Iterable, List

# Add src directory to path for signal_analysis imports
_script_dir = Path(__file__).parent.resolve()
_src_dir = _script_dir.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

import matplotlib.pyplot as plt
import numpy as np

from signal_analysis import (
    SpectrumTable,
    load_series,
    lowpass_filter,
    resample_uniform,
    sample_spacing,
    spectrum_table,
    superpose_cosines,
)

# Default test signal: three waves well inside the Nyquist limit
DEFAULT_WAVES = {
    "amplitudes": [1.0, 0.5, 0.25],
    "frequencies": [0.02, 0.1, 0.25],
    "phases_deg": [0.0, 45.0, 90.0],
    "sample_rate": 1.0,
    "n_samples": 500,
}


def _write_csv(path: Path, headers: List[str], rows: Iterable[List]) -> None:
    """Write CSV file."""
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(headers)
        writer.writerows(rows)


def build_wave_series(waves: dict):
    """Sample the superposed cosines described by ``waves``."""
    t = np.arange(int(waves["n_samples"])) / float(waves["sample_rate"])
    x = superpose_cosines(t, waves["amplitudes"], waves["frequencies"], waves["phases_deg"])
    return t, x


def prepare_file_series(path: str, missing: float = None):
    """Load a series and bring it onto a uniform grid if its spacing varies."""
    t, x = load_series(path, missing_value=missing)
    spacing = sample_spacing(t)
    if not np.allclose(spacing, spacing[0]):
        print(f"Irregular sampling in {path}; resampling onto a uniform grid")
        t, x = resample_uniform(t, x)
    return t, x


def print_summary(table: SpectrumTable, peaks: int) -> None:
    """Print the peak table and the consistency check."""
    print()
    print(f"N = {table.n_samples}, fs = {table.sample_rate:g}, df = {table.df:.4g}")
    print(f"{'f':>10}{'amplitude':>12}{'phase [deg]':>14}{'period':>10}")
    print("-" * 46)
    for f, A, phi in table.peaks(peaks):
        period = 1.0 / f if f > 0 else np.inf
        print(f"{f:>10.4f}{A:>12.4f}{phi:>14.1f}{period:>10.2f}")
    print()
    print(f"mean     : A(0) = {table.amplitude[0]:.6g}   |mean(x)| = {abs(table.mean):.6g}")
    print(f"variance : sum P = {table.spectral_variance():.6g}   var(x) = {table.variance:.6g}")
    status = "PASS" if table.check_consistency() else "FAIL"
    print(f"Consistency check: {status}")


def plot_spectrum(t, x, filtered, table: SpectrumTable, cutoff, out_dir: Path) -> Path:
    """Series, its amplitude spectrum and the filtered series."""
    plt.rcParams.update({
        "font.size": 11,
        "axes.grid": True,
        "grid.alpha": 0.3,
    })
    fig, axes = plt.subplots(3, 1, figsize=(11, 9))

    axes[0].plot(t, x, color="#1f77b4", lw=1.0)
    axes[0].set_xlabel("Time")
    axes[0].set_ylabel("x")
    axes[0].set_title("Series")

    axes[1].stem(table.f[1:], table.amplitude[1:], basefmt=" ")
    if cutoff is not None:
        axes[1].axvline(cutoff, color="#d62728", ls="--", lw=1.0, label=f"cutoff {cutoff:g}")
        axes[1].legend(loc="upper right")
    axes[1].set_xlabel("Frequency")
    axes[1].set_ylabel("Amplitude")
    axes[1].set_title("Amplitude spectrum")

    axes[2].plot(t, x, color="#7f7f7f", lw=0.8, alpha=0.6, label="original")
    if filtered is not None:
        axes[2].plot(t, filtered, color="#2ca02c", lw=1.5, label="low-pass")
    axes[2].set_xlabel("Time")
    axes[2].set_ylabel("x")
    axes[2].legend(loc="upper right")

    plt.tight_layout()
    plot_path = out_dir / "spectrum_demo.png"
    plt.savefig(plot_path, dpi=200, bbox_inches="tight", facecolor="white")
    plt.close(fig)
    print(f"Saved plot: {plot_path}")
    return plot_path


def main() -> None:
    """Parse command line arguments and run the spectrum demo."""
    parser = argparse.ArgumentParser(description="Fourier spectrum demo")
    parser.add_argument("--config", default=None,
                        help="JSON file with amplitudes, frequencies, phases_deg, sample_rate, n_samples")
    parser.add_argument("--file", default=None, help="Two column text file (time, value)")
    parser.add_argument("--missing", type=float, default=None, help="Missing value sentinel in --file")
    parser.add_argument("--taper", type=float, default=0.0, help="Cosine taper ratio in [0, 1]")
    parser.add_argument("--cutoff", type=float, default=None, help="Low-pass cutoff frequency")
    parser.add_argument("--peaks", type=int, default=3, help="Number of peaks to report")
    parser.add_argument("--out-dir", default=None, help="Output directory (default: ../output)")
    parser.add_argument("--no-plots", action="store_true", help="Skip plot generation")
    parser.add_argument("--no-csv", action="store_true", help="Skip CSV export")
    args = parser.parse_args()

    if args.file:
        t, x = prepare_file_series(args.file, args.missing)
    else:
        waves = dict(DEFAULT_WAVES)
        if args.config:
            with open(args.config, "r", encoding="utf-8") as f:
                waves.update(json.load(f))
        t, x = build_wave_series(waves)

    sample_rate = 1.0 / float(t[1] - t[0])
    table = spectrum_table(x, sample_rate, taper_ratio=args.taper)
    print_summary(table, args.peaks)

    filtered = None
    if args.cutoff is not None:
        filtered, _ = lowpass_filter(x, args.cutoff, sample_rate)
        removed = np.sqrt(np.mean((x - filtered)**2))
        print(f"Low-pass at {args.cutoff:g}: RMS of removed content {removed:.4g}")

    out_dir = Path(args.out_dir) if args.out_dir else _script_dir.parent / "output"
    if not (args.no_plots and args.no_csv):
        out_dir.mkdir(parents=True, exist_ok=True)
    if not args.no_plots:
        plot_spectrum(t, x, filtered, table, args.cutoff, out_dir)
    if not args.no_csv:
        d = table.to_dict()
        path = out_dir / "spectrum_table.csv"
        _write_csv(path, list(d), zip(*d.values()))
        print(f"Wrote spectrum CSV: {path}")


if __name__ == "__main__":
    main()
