"""Warnings raised by the spectral analysis routines."""


class SpectralConsistencyWarning(RuntimeWarning):
    """
    The spectrum does not reproduce the mean and variance of its series.

    Raised by ``SpectrumTable.check_consistency`` when either
    ``A(0) == |mean(x)|`` or ``sum P(k) == var(x)`` fails.
    """

    def __init__(self, quantity, from_spectrum, from_series):
        self.quantity = quantity
        self.from_spectrum = from_spectrum
        self.from_series = from_series
        super().__init__(
            f"{quantity} from spectrum ({from_spectrum:.6g}) does not match "
            f"{quantity} of series ({from_series:.6g})"
        )
