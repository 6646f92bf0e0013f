"""
Series preparation ahead of a Fourier transform.

The transform assumes a clean series: no gaps, constant sample spacing and,
for the classic radix-2 FFT, a power of two length. These helpers bring
measured data into that shape.
"""

from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

import numpy as np


def superpose_cosines(t,
                      amplitudes: Sequence[float],
                      frequencies: Sequence[float],
                      phases_deg: Sequence[float]):
    """
    Sum of cosine waves ``A cos(2 pi f t + phi)`` sampled at ``t``.

    Phases are given in degrees, matching ``fourier.phase_spectrum``.
    """
    if not len(amplitudes) == len(frequencies) == len(phases_deg):
        raise ValueError("amplitudes, frequencies and phases_deg must have equal length")
    t = np.asarray(t, dtype=float)
    y = np.zeros_like(t)
    for A, f, phi in zip(amplitudes, frequencies, phases_deg):
        y += A * np.cos(2.0 * np.pi * f * t + np.radians(phi))
    return y


def sample_spacing(t) -> np.ndarray:
    """Differences between consecutive sample times; must all be positive."""
    t = np.asarray(t, dtype=float)
    if t.ndim != 1 or len(t) < 2:
        raise ValueError("Need at least two sample times")
    spacing = np.diff(t)
    if np.any(spacing <= 0):
        raise ValueError("Sample times must be strictly increasing")
    return spacing


def resample_uniform(t, x, dt: Optional[float] = None) -> Tuple[np.ndarray, np.ndarray]:
    """
    Linearly interpolate an irregularly sampled series onto a constant grid.

    Args:
        t: Strictly increasing sample times
        x: Values at ``t``
        dt: Grid spacing; defaults to the median spacing of ``t``

    Returns:
        (t_uniform, x_uniform) starting at ``t[0]`` and not extending past ``t[-1]``
    """
    t = np.asarray(t, dtype=float)
    x = np.asarray(x, dtype=float)
    if t.shape != x.shape:
        raise ValueError(f"t and x must have the same shape, got {t.shape} and {x.shape}")
    spacing = sample_spacing(t)
    if dt is None:
        dt = float(np.median(spacing))
    if not dt > 0:
        raise ValueError(f"dt must be > 0, got {dt}")

    n = int(np.floor((t[-1] - t[0]) / dt + 1e-9)) + 1
    t_uniform = t[0] + dt * np.arange(n)
    return t_uniform, np.interp(t_uniform, t, x)


def load_series(path: Union[str, Path],
                time_col: int = 0,
                value_col: int = 1,
                delimiter: Optional[str] = None,
                skip_header: int = 0,
                missing_value: Optional[float] = None) -> Tuple[np.ndarray, np.ndarray]:
    """
    Read a two column time series from a plain text or CSV file.

    Args:
        path: File to read
        time_col: Column holding the sample time
        value_col: Column holding the value
        delimiter: Column separator (None splits on whitespace)
        skip_header: Number of leading lines to skip
        missing_value: Sentinel marking a missing value (e.g. -1 in the
            sunspot records); such values are replaced with 0

    Returns:
        (t, x) as float arrays
    """
    data = np.loadtxt(path, delimiter=delimiter, skiprows=skip_header,
                      usecols=(time_col, value_col), ndmin=2)
    t = data[:, 0].copy()
    x = data[:, 1].copy()
    if missing_value is not None:
        x[x == missing_value] = 0.0
    return t, x


def next_power_of_two(n: int) -> int:
    """Smallest power of two >= n."""
    if n < 1:
        raise ValueError(f"n must be >= 1, got {n}")
    return 1 << (int(n) - 1).bit_length()


def truncate_power_of_two(x):
    """Keep the first 2^m samples, the largest power of two that fits."""
    x = np.asarray(x)
    if len(x) == 0:
        raise ValueError("Series is empty")
    n = 1 << (len(x).bit_length() - 1)
    return x[:n]


def zero_pad_power_of_two(x):
    """Append zeros up to the next power of two length."""
    x = np.asarray(x)
    n = next_power_of_two(len(x))
    return np.concatenate([x, np.zeros(n - len(x), dtype=x.dtype)])
