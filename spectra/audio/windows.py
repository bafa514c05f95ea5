from __future__ import annotations

from enum import Enum

import numpy as np
from scipy.signal import get_window

from .errors import InvalidConfiguration

# Gain applied on top of the periodic Hann window for the normalized variant.
HANN_NORM_GAIN = 0.8165


class WindowKind(str, Enum):
    BLACKMAN = "blackman"
    HAMMING = "hamming"
    HANNING_NORMALIZED = "hanningNormalized"
    HANNING_DENORMALIZED = "hanningDenormalized"
    NONE = "none"

    @classmethod
    def parse(cls, value) -> "WindowKind":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            options = [k.value for k in cls]
            raise InvalidConfiguration(f"Unknown window: {value!r}. Options: {options}") from None


# scipy names for the tapered kinds; all are periodic (fftbins=True) tables
_SCIPY_NAMES = {
    WindowKind.BLACKMAN: "blackman",
    WindowKind.HAMMING: "hamming",
    WindowKind.HANNING_NORMALIZED: "hann",
    WindowKind.HANNING_DENORMALIZED: "hann",
}


class WindowTableGenerator:
    """Builds window coefficient tables for a given kind and length."""

    def __init__(self, dtype=np.float32):
        self.dtype = np.dtype(dtype)

    def generate(self, kind, length: int, out: np.ndarray | None = None) -> np.ndarray:
        """
        Return ``length`` coefficients for ``kind``.

        When ``out`` is given the table is written into it and ``out`` is
        returned, so a long-lived buffer can be refreshed without allocating
        a new one.
        """
        kind = WindowKind.parse(kind)
        if kind is WindowKind.NONE:
            table = np.ones(length, dtype=self.dtype)
        else:
            table = get_window(_SCIPY_NAMES[kind], length, fftbins=True).astype(self.dtype)
            if kind is WindowKind.HANNING_NORMALIZED:
                table *= self.dtype.type(HANN_NORM_GAIN)

        if out is None:
            return table
        if out.shape != (length,):
            raise ValueError(f"Window buffer has shape {out.shape}, expected ({length},)")
        np.copyto(out, table)
        return out


def available_windows():
    """Return the list of accepted window names."""
    return [k.value for k in WindowKind]
