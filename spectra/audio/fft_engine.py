from __future__ import annotations

import logging

import numpy as np
from scipy import fft as sp_fft

from .errors import EngineUnavailable, InvalidConfiguration, LengthMismatch

logger = logging.getLogger(__name__)

SUPPORTED_PRECISIONS = ("float32", "float64")


def is_power_of_two(n) -> bool:
    if isinstance(n, bool) or not isinstance(n, (int, np.integer)):
        return False
    return n > 0 and (n & (n - 1)) == 0


class ComplexFFTEngine:
    """
    Forward real-to-half-complex FFT of a fixed power-of-two length.

    ``forward`` returns the first N/2 bins of the one-sided spectrum as split
    real and imaginary parts. Bin 0 is DC (zero imaginary part); the Nyquist
    bin is not part of the output.
    """

    def __init__(self, sample_count: int, precision="float32"):
        if not is_power_of_two(sample_count):
            raise InvalidConfiguration(f"Number of samples is not a power of two: {sample_count}")
        try:
            dtype = np.dtype(precision)
        except TypeError as e:
            raise InvalidConfiguration(f"Unknown FFT precision: {precision!r}") from e
        if dtype.name not in SUPPORTED_PRECISIONS:
            raise InvalidConfiguration(
                f"Unsupported FFT precision {dtype.name}; "
                f"supported: {', '.join(SUPPORTED_PRECISIONS)}"
            )

        self.n = int(sample_count)
        self.n_half = self.n // 2
        self.log2n = self.n.bit_length() - 1
        self.dtype = dtype
        self._open = True
        logger.debug("FFT setup: n=%d log2n=%d precision=%s", self.n, self.log2n, dtype.name)

    @property
    def closed(self) -> bool:
        return not self._open

    def forward(self, windowed, real_out: np.ndarray | None = None, imag_out: np.ndarray | None = None):
        if not self._open:
            raise EngineUnavailable("FFT engine has been released")
        x = np.asarray(windowed, dtype=self.dtype)
        if x.shape != (self.n,):
            raise LengthMismatch(self.n, x.shape)

        bins = sp_fft.rfft(x)[: self.n_half]

        if real_out is None:
            real_out = np.empty(self.n_half, dtype=self.dtype)
        if imag_out is None:
            imag_out = np.empty(self.n_half, dtype=self.dtype)
        np.copyto(real_out, bins.real, casting="same_kind")
        np.copyto(imag_out, bins.imag, casting="same_kind")
        return real_out, imag_out

    def close(self):
        if self._open:
            logger.debug("FFT setup released: n=%d", self.n)
        self._open = False
