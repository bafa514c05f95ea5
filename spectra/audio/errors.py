from __future__ import annotations


class SpectraError(Exception):
    """Base class for every error raised by the analysis pipeline."""


class InvalidConfiguration(SpectraError, ValueError):
    """
    Rejected configuration.

    Raised for a sample count that is not a power of two, an unknown window
    kind, a smoothing factor outside [0, 1), an unsupported precision or a
    bad hop size. Nothing is committed when this is raised.
    """


class LengthMismatch(SpectraError, ValueError):
    """Signal block does not match the configured sample count."""

    def __init__(self, expected: int, actual, message: str | None = None):
        self.expected = expected
        self.actual = actual
        super().__init__(message or f"Expected {expected} samples, got {actual}")


class EngineUnavailable(SpectraError, RuntimeError):
    """The transform engine failed for valid parameters or has been released."""


class InvalidSignal(SpectraError, ValueError):
    """Signal block holds NaN or infinite samples. Prior state is left intact."""
