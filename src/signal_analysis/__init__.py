"""
Signal Analysis Library

Discrete Fourier transform, spectra and frequency filtering of regularly
sampled real series.

This package provides the following modules:

    fourier : DFT/FFT, amplitude, phase and power spectra, cosine taper,
              spectrum table with self check, low-pass filter
    series  : Resampling, loading and power-of-two length helpers
"""

__version__ = "0.1.0"

from .exceptions import SpectralConsistencyWarning
from .fourier import (
    SpectrumTable,
    amplitude_spectrum,
    bin_width,
    cosine_taper,
    dft,
    fft,
    frequency_bins,
    lowpass_filter,
    phase_spectrum,
    power_spectral_density,
    power_spectrum,
    spectrum_table,
)
from .series import (
    load_series,
    next_power_of_two,
    resample_uniform,
    sample_spacing,
    superpose_cosines,
    truncate_power_of_two,
    zero_pad_power_of_two,
)

__all__ = [
    "__version__",
    "SpectralConsistencyWarning",
    "SpectrumTable",
    "amplitude_spectrum",
    "bin_width",
    "cosine_taper",
    "dft",
    "fft",
    "frequency_bins",
    "lowpass_filter",
    "phase_spectrum",
    "power_spectral_density",
    "power_spectrum",
    "spectrum_table",
    "load_series",
    "next_power_of_two",
    "resample_uniform",
    "sample_spacing",
    "superpose_cosines",
    "truncate_power_of_two",
    "zero_pad_power_of_two",
]
