"""Exceptions raised for input the tempo pipeline cannot analyze."""


class TempoAnalysisError(Exception):
    """Base class for unanalyzable input."""


class InsufficientSamples(TempoAnalysisError):
    """The sample buffer is empty or shorter than one analysis window."""

    def __init__(self, n_samples: int, window_size: int):
        self.n_samples = n_samples
        self.window_size = window_size
        super().__init__(
            f"Need at least {window_size} samples to analyze, got {n_samples}"
        )


class InvalidSampleRate(TempoAnalysisError, ValueError):
    """Sample rate is not a positive number."""


class InvalidAudio(TempoAnalysisError, ValueError):
    """Samples are not a single channel of amplitudes."""
