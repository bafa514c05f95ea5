from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum

import numpy as np

from ..config.settings import AnalyzerConfig
from .errors import EngineUnavailable, InvalidConfiguration, InvalidSignal, LengthMismatch
from .fft_engine import ComplexFFTEngine, is_power_of_two
from .windows import WindowKind, WindowTableGenerator

logger = logging.getLogger(__name__)

# Display scale is SCALE_NUMERATOR / (N/2): a windowed full-scale sine lands
# roughly in 0..1.
SCALE_NUMERATOR = 2.0


class SmoothingMode(str, Enum):
    DISABLED = "disabled"
    ENABLED = "enabled"


@dataclass
class SpectrumBuffers:
    """Working buffers for one (sample count, precision) configuration."""
    window: np.ndarray
    windowed: np.ndarray
    real: np.ndarray
    imag: np.ndarray
    raw: np.ndarray
    smoothed: np.ndarray

    @classmethod
    def allocate(cls, n: int, dtype) -> "SpectrumBuffers":
        half = n // 2
        return cls(
            window=np.ones(n, dtype=dtype),
            windowed=np.zeros(n, dtype=dtype),
            real=np.zeros(half, dtype=dtype),
            imag=np.zeros(half, dtype=dtype),
            raw=np.zeros(half, dtype=dtype),
            smoothed=np.zeros(half, dtype=dtype),
        )


def validate_smoothing(factor) -> float:
    try:
        value = float(factor)
    except (TypeError, ValueError):
        raise InvalidConfiguration(f"Smoothing must be a number, got {factor!r}") from None
    if not math.isfinite(value) or value < 0.0 or value >= 1.0:
        raise InvalidConfiguration(f"Smoothing must be in [0, 1), got {factor!r}")
    return value


def _read_only(arr: np.ndarray) -> np.ndarray:
    # as_strided views stay read-only even if the caller flips the flag back
    return np.lib.stride_tricks.as_strided(arr, writeable=False)


class SpectrumAnalyzer:
    """
    Windowed magnitude spectrum of fixed-size power-of-two blocks, with
    optional peak-hold smoothing.

    Each ``analyze`` call runs window -> FFT -> magnitude -> scale -> smooth
    over buffers allocated once per configuration. Accessors return
    read-only views of those buffers.

    Not thread-safe: use one analyzer per thread or serialize calls.
    """

    def __init__(self, sample_count: int, window=WindowKind.BLACKMAN, smoothing: float = 0.0,
                 precision="float32"):
        kind = WindowKind.parse(window)
        self._smoothing = validate_smoothing(smoothing)
        self._check_sample_count(sample_count)

        self._window_kind = kind
        self._windows = None
        self._fft = None
        self._buf = None
        self._samples = 0
        self._closed = False
        self._setup(sample_count, precision)
        logger.info("Spectrum analyzer ready: n=%d window=%s smoothing=%.3f precision=%s",
                    self._samples, kind.value, self._smoothing, self.precision)

    @classmethod
    def from_config(cls, config) -> "SpectrumAnalyzer":
        return cls(config.sample_count, window=config.window, smoothing=config.smoothing,
                   precision=config.precision)

    # ---------- configuration ----------
    @staticmethod
    def _check_sample_count(n):
        if not is_power_of_two(n):
            logger.error("Number of samples is not a power of two: %r", n)
            raise InvalidConfiguration(f"Number of samples is not a power of two: {n!r}")

    def _setup(self, n, precision):
        # Build everything first so a failure leaves the current setup intact.
        fft = ComplexFFTEngine(n, precision)
        windows = WindowTableGenerator(fft.dtype)
        buf = SpectrumBuffers.allocate(n, fft.dtype)
        windows.generate(self._window_kind, n, out=buf.window)

        if self._fft is not None:
            self._fft.close()
        self._fft = fft
        self._windows = windows
        self._buf = buf
        self._precision = fft.dtype.name
        self._samples = int(n)
        self._scale = fft.dtype.type(SCALE_NUMERATOR / fft.n_half if fft.n_half else 0.0)

    def set_sample_count(self, n: int):
        """Re-derive every buffer for a new block size. Smoothed state starts over."""
        self._ensure_open()
        self._check_sample_count(n)
        self._setup(n, self.precision)
        logger.info("Spectrum analyzer resized: n=%d", self._samples)

    def set_window_kind(self, kind):
        """Switch window function; only the window table is recomputed."""
        self._ensure_open()
        kind = WindowKind.parse(kind)
        self._windows.generate(kind, self._samples, out=self._buf.window)
        self._window_kind = kind
        logger.info("Window changed: %s", kind.value)

    def set_smoothing(self, factor: float):
        self._ensure_open()
        self._smoothing = validate_smoothing(factor)

    def reset(self):
        """Clear spectra and transform output so the next block starts from silence."""
        self._ensure_open()
        for arr in (self._buf.real, self._buf.imag, self._buf.raw, self._buf.smoothed):
            arr.fill(0)

    # ---------- properties ----------
    @property
    def sample_count(self) -> int:
        return self._samples

    @property
    def bin_count(self) -> int:
        return self._samples // 2

    @property
    def window_kind(self) -> WindowKind:
        return self._window_kind

    @property
    def smoothing(self) -> float:
        return self._smoothing

    @property
    def mode(self) -> SmoothingMode:
        return SmoothingMode.ENABLED if self._smoothing > 0.0 else SmoothingMode.DISABLED

    @property
    def precision(self) -> str:
        return self._precision

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def config(self):
        return AnalyzerConfig(sample_count=self._samples, window=self._window_kind.value,
                              smoothing=self._smoothing, precision=self.precision)

    # ---------- pipeline ----------
    def analyze(self, signal):
        """Run one block through window -> FFT -> magnitude -> scale -> smooth."""
        self._ensure_open()
        x = self._validate_signal(signal)
        self._apply_window(x)
        self._transform()
        if self._smoothing > 0.0:
            self._smooth()

    # transform-style name for the same call
    forward = analyze

    def apply_window(self, signal) -> np.ndarray:
        """Window a block without transforming it; returns a read-only view."""
        self._ensure_open()
        self._apply_window(self._validate_signal(signal))
        return _read_only(self._buf.windowed)

    def _validate_signal(self, signal) -> np.ndarray:
        x = np.asarray(signal)
        if x.ndim != 1 or x.shape[0] != self._samples:
            actual = x.shape[0] if x.ndim == 1 else x.shape
            logger.warning("Rejected block: expected %d samples, got %s", self._samples, actual)
            raise LengthMismatch(self._samples, actual)
        if not np.issubdtype(x.dtype, np.number) or np.iscomplexobj(x):
            raise TypeError(f"Signal must be real-valued, got dtype {x.dtype}")
        if not np.all(np.isfinite(x)):
            logger.warning("Rejected block: non-finite samples")
            raise InvalidSignal("Signal contains NaN or infinite samples")
        return x

    def _apply_window(self, x):
        np.multiply(x, self._buf.window, out=self._buf.windowed, casting="unsafe")

    def _transform(self):
        b = self._buf
        self._fft.forward(b.windowed, real_out=b.real, imag_out=b.imag)
        np.hypot(b.real, b.imag, out=b.raw)
        b.raw *= self._scale

    def _smooth(self):
        b = self._buf
        b.smoothed *= b.smoothed.dtype.type(self._smoothing)
        np.maximum(b.raw, b.smoothed, out=b.smoothed)

    # ---------- accessors ----------
    def get_spectrum(self) -> np.ndarray:
        self._ensure_open()
        if self.mode is SmoothingMode.ENABLED:
            return _read_only(self._buf.smoothed)
        return _read_only(self._buf.raw)

    def get_raw_spectrum(self) -> np.ndarray:
        self._ensure_open()
        return _read_only(self._buf.raw)

    def get_smoothed_spectrum(self) -> np.ndarray:
        self._ensure_open()
        return _read_only(self._buf.smoothed)

    def get_real(self) -> np.ndarray:
        self._ensure_open()
        return _read_only(self._buf.real)

    def get_imaginary(self) -> np.ndarray:
        self._ensure_open()
        return _read_only(self._buf.imag)

    def get_window(self) -> np.ndarray:
        self._ensure_open()
        return _read_only(self._buf.window)

    def bin_frequencies(self, sample_rate: float) -> np.ndarray:
        """Centre frequency in Hz of each spectrum bin."""
        return np.arange(self.bin_count, dtype=np.float64) * (float(sample_rate) / self._samples)

    # ---------- lifecycle ----------
    def _ensure_open(self):
        if self._closed:
            raise EngineUnavailable("Spectrum analyzer has been closed")

    def close(self):
        if self._closed:
            return
        if self._fft is not None:
            self._fft.close()
        self._fft = None
        self._buf = None
        self._windows = None
        self._closed = True
        logger.debug("Spectrum analyzer closed")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
