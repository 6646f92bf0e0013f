"""
Discrete Fourier Transform and Spectral Analysis
================================================

Fourier coefficients of a regularly sampled real series and the spectra
derived from them.

For N samples ``x_n`` the coefficients are

    X(k) = sum_n x_n exp(-i 2 pi k n / N),    k = 0 .. N-1

and, for real input, ``X(k) = conj(X(N-k))`` so only bins 0 .. N/2 carry
information. From the coefficients:

    A(0) = |X(0)| / N                      (the mean; no mirrored partner)
    A(k) = 2 |X(k)| / N,  k >= 1            (positive and negative frequency)
    phi(k) = atan2(Im X, Re X) in degrees, wrapped to [0, 360)
    P(k) = A(k)^2 / 2                       (variance contributed by bin k)
    PSD(k) = P(k) / df,  df = fs / N

Two identities make a quick self check of any spectrum:

    A(0) = |mean(x)|,     sum_{k=1}^{N/2} P(k) = var(x)

With the factor 2 amplitude the Nyquist bin of an even length series has no
mirrored partner either, so its power enters the variance sum halved.

Tapering the series with a cosine (Tukey) window before the transform
reduces leakage from the jump between the last and first sample. It also
suppresses the longest period components, which is expected.
"""

import warnings
from dataclasses import dataclass
from typing import Dict, List, Tuple

import numpy as np
from scipy.signal import windows

from .exceptions import SpectralConsistencyWarning


def _as_series(x, dtype=float) -> np.ndarray:
    x = np.asarray(x, dtype=dtype)
    if x.ndim != 1:
        raise ValueError(f"Expected a 1-D series, got shape {x.shape}")
    if len(x) == 0:
        raise ValueError("Series is empty")
    return x


def _check_sample_rate(sample_rate):
    if not sample_rate > 0:
        raise ValueError(f"sample_rate must be > 0, got {sample_rate}")


# ==============================================================================
# TRANSFORMS
# ==============================================================================

def dft(x):
    """
    Discrete Fourier transform evaluated straight from its definition.

    Every coefficient is a sum over all N samples, so the cost is O(N^2).
    Kept as the reference the fast transform is checked against.

    Parameters
    ----------
    x : array_like
        Samples of the series (real or complex).

    Returns
    -------
    X : ndarray of complex
        Coefficients for k = 0 .. N-1.

    Examples
    --------
    >>> x = np.sin(2 * np.pi * np.arange(8) / 8)
    >>> np.round(dft(x), 6)   # energy in k = 1 and its mirror k = 7
    """
    x = _as_series(x, dtype=complex)
    N = len(x)
    n = np.arange(N)
    k = n.reshape(-1, 1)
    return np.exp(-2j * np.pi * k * n / N) @ x


def fft(x):
    """Fast Fourier transform; same coefficients as ``dft`` for any N."""
    return np.fft.fft(_as_series(x, dtype=complex))


# ==============================================================================
# SPECTRA
# ==============================================================================

def amplitude_spectrum(X):
    """Amplitude of every bin: |X(0)|/N for the mean, 2|X(k)|/N otherwise."""
    X = _as_series(X, dtype=complex)
    N = len(X)
    A = 2.0 * np.abs(X) / N
    A[0] = np.abs(X[0]) / N
    return A


def phase_spectrum(X):
    """Phase angle of every bin in degrees, wrapped to [0, 360)."""
    X = _as_series(X, dtype=complex)
    theta = np.degrees(np.arctan2(X.imag, X.real))
    return np.mod(theta + 360.0, 360.0)


def power_spectrum(X):
    """Power (variance contribution) of every bin, ``A(k)^2 / 2``."""
    return 0.5 * amplitude_spectrum(X)**2


def bin_width(N: int, sample_rate: float) -> float:
    """Frequency resolution ``df = fs / N`` of an N point transform."""
    if N <= 0:
        raise ValueError(f"N must be > 0, got {N}")
    _check_sample_rate(sample_rate)
    return sample_rate / N


def frequency_bins(N: int, sample_rate: float):
    """Frequency ``k fs / N`` of every bin k = 0 .. N-1."""
    return np.arange(N) * bin_width(N, sample_rate)


def power_spectral_density(X, sample_rate: float):
    """Power normalised by the bin width, ``P(k) / df``."""
    X = _as_series(X, dtype=complex)
    return power_spectrum(X) / bin_width(len(X), sample_rate)


def cosine_taper(L: int, r: float):
    """
    L point cosine taper (Tukey window).

    The window is evaluated on L linearly spaced points between 0 and 1:

        w(x) = (1 + cos(2 pi / r (x - r/2))) / 2       x < r/2
        w(x) = 1                                       r/2 <= x < 1 - r/2
        w(x) = (1 + cos(2 pi / r (x - 1 + r/2))) / 2   x >= 1 - r/2

    Parameters
    ----------
    L : int
        Window length.
    r : float
        Ratio of the tapered section to the whole window, in [0, 1].
        r = 0 is the rectangular window, r = 1 the Hann window.

    Returns
    -------
    w : ndarray
        Window weights, symmetric about the centre.
    """
    if int(L) != L or L < 1:
        raise ValueError(f"L must be a positive integer, got {L}")
    if not 0.0 <= r <= 1.0:
        raise ValueError(f"Taper ratio must be in [0, 1], got {r}")
    return windows.tukey(int(L), alpha=r, sym=True)


# ==============================================================================
# SUMMARY TABLE
# ==============================================================================

@dataclass
class SpectrumTable:
    """
    One row per unique bin k = 0 .. N/2 of a real series.

    ``mean`` and ``variance`` are those of the (tapered) series that was
    transformed; ``check_consistency`` compares them to the spectrum.
    """
    k: np.ndarray
    f: np.ndarray
    X: np.ndarray
    amplitude: np.ndarray
    phase: np.ndarray
    power: np.ndarray
    psd: np.ndarray
    n_samples: int
    sample_rate: float
    mean: float
    variance: float

    @property
    def df(self) -> float:
        return bin_width(self.n_samples, self.sample_rate)

    def spectral_variance(self) -> float:
        """Sum of the power in bins 1 .. N/2, Nyquist bin halved for even N."""
        power = self.power[1:].copy()
        if self.n_samples % 2 == 0 and len(power) > 0:
            power[-1] *= 0.5
        return float(np.sum(power))

    def check_consistency(self, rtol: float = 1e-6, atol: float = 1e-10) -> bool:
        """
        Verify ``A(0) == |mean|`` and ``sum P(k) == var`` of the series.

        Each failed identity issues a ``SpectralConsistencyWarning``.

        Returns
        -------
        bool
            True if both identities hold within tolerance.
        """
        ok = True
        if not np.isclose(self.amplitude[0], abs(self.mean), rtol=rtol, atol=atol):
            warnings.warn(SpectralConsistencyWarning(
                "mean", float(self.amplitude[0]), abs(self.mean)), stacklevel=2)
            ok = False
        spectral_variance = self.spectral_variance()
        if not np.isclose(spectral_variance, self.variance, rtol=rtol, atol=atol):
            warnings.warn(SpectralConsistencyWarning(
                "variance", spectral_variance, self.variance), stacklevel=2)
            ok = False
        return ok

    def peaks(self, count: int = 3) -> List[Tuple[float, float, float]]:
        """The ``count`` strongest non-mean bins as (frequency, amplitude, phase)."""
        order = np.argsort(self.amplitude[1:])[::-1][:count] + 1
        return [(float(self.f[i]), float(self.amplitude[i]), float(self.phase[i]))
                for i in order]

    def to_dict(self) -> Dict[str, list]:
        return {
            'k': self.k.tolist(),
            'f': self.f.tolist(),
            'X_real': self.X.real.tolist(),
            'X_imag': self.X.imag.tolist(),
            'amplitude': self.amplitude.tolist(),
            'phase': self.phase.tolist(),
            'power': self.power.tolist(),
            'psd': self.psd.tolist(),
        }


def spectrum_table(x, sample_rate: float, taper_ratio: float = 0.0) -> SpectrumTable:
    """
    Taper, transform and tabulate a real series.

    Parameters
    ----------
    x : array_like
        Regularly sampled real series.
    sample_rate : float
        Sampling frequency fs.
    taper_ratio : float
        Cosine taper ratio r in [0, 1]; 0 leaves the series untouched.

    Returns
    -------
    SpectrumTable
        Bins k = 0 .. N/2 with frequency, coefficient, amplitude, phase,
        power and power spectral density.
    """
    x = _as_series(x)
    _check_sample_rate(sample_rate)
    N = len(x)
    tapered = x * cosine_taper(N, taper_ratio)

    X = fft(tapered)
    half = slice(0, N // 2 + 1)
    return SpectrumTable(
        k=np.arange(N)[half],
        f=frequency_bins(N, sample_rate)[half],
        X=X[half],
        amplitude=amplitude_spectrum(X)[half],
        phase=phase_spectrum(X)[half],
        power=power_spectrum(X)[half],
        psd=power_spectral_density(X, sample_rate)[half],
        n_samples=N,
        sample_rate=float(sample_rate),
        mean=float(np.mean(tapered)),
        variance=float(np.var(tapered)),
    )


# ==============================================================================
# FILTERING
# ==============================================================================

def lowpass_filter(x, cutoff: float, sample_rate: float):
    """
    Remove every frequency above ``cutoff`` and transform back.

    The coefficients of bin k and its mirror N-k share the frequency
    ``min(k, N-k) fs / N``; both are zeroed when it exceeds the cutoff.
    This brick wall filter may ring near sharp features.

    Parameters
    ----------
    x : array_like
        Regularly sampled real series.
    cutoff : float
        Highest frequency kept, in the units of ``sample_rate``.
    sample_rate : float
        Sampling frequency fs.

    Returns
    -------
    filtered : ndarray
        Real part of the inverse transform of the kept coefficients.
    Z : ndarray of complex
        The filtered coefficients.
    """
    x = _as_series(x)
    _check_sample_rate(sample_rate)
    if cutoff < 0:
        raise ValueError(f"cutoff must be >= 0, got {cutoff}")

    N = len(x)
    Z = fft(x)
    k = np.arange(N)
    f = np.minimum(k, N - k) * sample_rate / N
    Z[f > cutoff] = 0.0
    return np.fft.ifft(Z).real, Z
