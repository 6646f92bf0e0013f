"""
Unit tests for the discrete Fourier transform and spectra.

Tests verify:
- Naive DFT agrees with the FFT
- Amplitude, phase and power of known waves
- Cosine taper limits and shape
- Spectrum table self consistency (mean and variance)
- Low-pass filtering removes high frequencies
"""

import warnings

import numpy as np
import pytest
from scipy.signal import windows
from signal_analysis import (
    SpectralConsistencyWarning,
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
    superpose_cosines,
)


def three_waves():
    """Three cosines on exact bins: 500 samples over 5 s at 100 Hz"""
    t = np.arange(500) / 100.0
    return t, superpose_cosines(t, [1.0, 0.5, 2.0], [2.0, 10.0, 40.0], [15.0, 77.0, 270.0])


class TestTransforms:
    """Tests for dft and fft"""

    def test_single_sine_eight_samples(self):
        """1 Hz sine sampled at 8 Hz puts all energy in k = 1 and k = 7"""
        x = np.sin(2 * np.pi * np.arange(8) / 8)
        X = dft(x)
        assert np.isclose(X[1], -4j)
        assert np.isclose(X[7], 4j)
        others = np.delete(X, [1, 7])
        assert np.allclose(others, 0.0, atol=1e-12)

    @pytest.mark.parametrize("N", [1, 8, 37, 100])
    def test_dft_matches_fft(self, N):
        x = np.random.default_rng(N).normal(size=N)
        assert np.allclose(dft(x), fft(x), atol=1e-9)

    def test_conjugate_symmetry(self):
        x = np.random.default_rng(1).normal(size=16)
        X = fft(x)
        assert np.allclose(X[1:], np.conj(X[1:][::-1]))

    def test_first_coefficient_is_sum(self):
        x = np.array([1.0, 2.0, 3.0, 4.0, 5.0])
        assert np.isclose(dft(x)[0], 15.0)

    def test_empty_rejected(self):
        with pytest.raises(ValueError):
            dft([])

    def test_two_dimensional_rejected(self):
        with pytest.raises(ValueError):
            fft(np.ones((4, 4)))


class TestSpectra:
    """Tests for amplitude, phase and power spectra"""

    def test_amplitude_of_unit_sine(self):
        X = fft(np.sin(2 * np.pi * np.arange(8) / 8))
        A = amplitude_spectrum(X)
        assert np.isclose(A[1], 1.0)

    def test_mean_amplitude_not_doubled(self):
        X = fft(3.0 + np.sin(2 * np.pi * np.arange(8) / 8))
        assert np.isclose(amplitude_spectrum(X)[0], 3.0)

    def test_phase_of_cosine_and_sine(self):
        t = np.arange(8) / 8
        assert np.isclose(phase_spectrum(fft(np.cos(2 * np.pi * t + np.radians(15.0))))[1], 15.0)
        assert np.isclose(phase_spectrum(fft(np.sin(2 * np.pi * t)))[1], 270.0)

    def test_phase_range(self):
        X = fft(np.random.default_rng(2).normal(size=64))
        phi = phase_spectrum(X)
        assert np.all(phi >= 0.0) and np.all(phi < 360.0)

    def test_three_waves_recovered(self):
        t, x = three_waves()
        peaks = spectrum_table(x, 100.0).peaks(3)
        assert np.allclose([f for f, _, _ in peaks], [40.0, 2.0, 10.0])
        assert np.allclose([a for _, a, _ in peaks], [2.0, 1.0, 0.5])
        assert np.allclose([p for _, _, p in peaks], [270.0, 15.0, 77.0])

    def test_power_and_psd(self):
        t, x = three_waves()
        X = fft(x)
        A = amplitude_spectrum(X)
        assert np.allclose(power_spectrum(X), 0.5 * A**2)
        assert np.allclose(power_spectral_density(X, 100.0), 0.5 * A**2 / 0.2)

    def test_frequency_bins(self):
        assert np.allclose(frequency_bins(8, 8.0), np.arange(8))
        assert bin_width(500, 100.0) == 0.2

    @pytest.mark.parametrize("N, fs", [(0, 1.0), (8, 0.0), (8, -1.0)])
    def test_invalid_bins_rejected(self, N, fs):
        with pytest.raises(ValueError):
            bin_width(N, fs)


class TestCosineTaper:
    """Tests for the Tukey window"""

    def test_zero_ratio_is_rectangular(self):
        assert np.allclose(cosine_taper(64, 0.0), 1.0)

    def test_unit_ratio_is_hann(self):
        assert np.allclose(cosine_taper(64, 1.0), np.hanning(64))

    def test_matches_tukey(self):
        assert np.allclose(cosine_taper(2048, 0.1), windows.tukey(2048, 0.1))

    def test_matches_piecewise_definition(self):
        L, r = 101, 0.4
        x = np.linspace(0.0, 1.0, L)
        expected = np.ones(L)
        left = x < r / 2
        right = x >= 1 - r / 2
        expected[left] = 0.5 * (1 + np.cos(2 * np.pi / r * (x[left] - r / 2)))
        expected[right] = 0.5 * (1 + np.cos(2 * np.pi / r * (x[right] - 1 + r / 2)))
        assert np.allclose(cosine_taper(L, r), expected)

    def test_symmetric_and_bounded(self):
        w = cosine_taper(100, 0.3)
        assert np.allclose(w, w[::-1])
        assert w.min() >= 0.0 and w.max() <= 1.0

    @pytest.mark.parametrize("r", [-0.1, 1.5])
    def test_ratio_out_of_range_rejected(self, r):
        with pytest.raises(ValueError):
            cosine_taper(16, r)


class TestSpectrumTable:
    """Tests for the summary table and its self check"""

    def test_table_covers_unique_bins(self):
        table = spectrum_table(np.arange(10.0), 1.0)
        assert list(table.k) == [0, 1, 2, 3, 4, 5]
        table = spectrum_table(np.arange(11.0), 1.0)
        assert list(table.k) == [0, 1, 2, 3, 4, 5]

    @pytest.mark.parametrize("N, r", [(512, 0.0), (511, 0.0), (1000, 0.1), (64, 1.0)])
    def test_consistency_holds(self, N, r):
        x = 5.0 + np.random.default_rng(N).normal(size=N)
        table = spectrum_table(x, 10.0, taper_ratio=r)
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            assert table.check_consistency()

    def test_nyquist_bin_counted_once(self):
        table = spectrum_table([1.0, -1.0, 1.0, -1.0], 4.0)
        assert np.isclose(table.power[2], 2.0)
        assert np.isclose(table.spectral_variance(), 1.0)
        assert np.isclose(table.variance, 1.0)

    def test_negative_mean_compared_by_magnitude(self):
        table = spectrum_table(-2.0 + np.sin(2 * np.pi * np.arange(8) / 8), 8.0)
        assert np.isclose(table.amplitude[0], 2.0)
        assert table.check_consistency()

    def test_mismatch_warns(self):
        table = spectrum_table(np.random.default_rng(3).normal(size=64), 1.0)
        table.power = 2.0 * table.power
        with pytest.warns(SpectralConsistencyWarning, match="variance"):
            assert not table.check_consistency()

    def test_taper_reduces_mean(self):
        x = np.full(128, 4.0)
        assert spectrum_table(x, 1.0, taper_ratio=0.5).amplitude[0] < 4.0

    def test_to_dict(self):
        d = spectrum_table(np.arange(8.0), 8.0).to_dict()
        assert len(d['k']) == 5
        assert set(d) >= {'f', 'amplitude', 'phase', 'power', 'psd'}


class TestLowpassFilter:
    """Tests for frequency domain low-pass filtering"""

    def test_removes_high_frequency(self):
        t = np.arange(500) / 100.0
        slow = np.sin(2 * np.pi * 1.0 * t)
        x = slow + 0.5 * np.sin(2 * np.pi * 20.0 * t)
        filtered, Z = lowpass_filter(x, cutoff=5.0, sample_rate=100.0)
        assert np.allclose(filtered, slow, atol=1e-10)

    def test_both_mirrors_zeroed(self):
        x = np.random.default_rng(4).normal(size=100)
        filtered, Z = lowpass_filter(x, cutoff=0.1, sample_rate=1.0)
        k = np.arange(100)
        f = np.minimum(k, 100 - k) / 100.0
        assert np.all(Z[f > 0.1] == 0)
        assert np.allclose(Z[f <= 0.1], fft(x)[f <= 0.1])

    def test_cutoff_above_nyquist_is_identity(self):
        x = np.random.default_rng(5).normal(size=64)
        filtered, Z = lowpass_filter(x, cutoff=100.0, sample_rate=10.0)
        assert np.allclose(filtered, x)

    def test_zero_cutoff_leaves_mean(self):
        x = 3.0 + np.random.default_rng(6).normal(size=64)
        filtered, Z = lowpass_filter(x, cutoff=0.0, sample_rate=1.0)
        assert np.allclose(filtered, np.mean(x))

    def test_negative_cutoff_rejected(self):
        with pytest.raises(ValueError):
            lowpass_filter(np.ones(8), cutoff=-1.0, sample_rate=1.0)
