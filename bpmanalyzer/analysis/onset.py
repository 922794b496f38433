"""Onset strength envelope and peak picking."""

import functools

import librosa
import numpy as np
from scipy.signal import get_window


@functools.lru_cache(maxsize=8)
def hann_window(size: int) -> np.ndarray:
    """Symmetric Hann window, ``0.5 * (1 - cos(2*pi*j / (size - 1)))``.

    Cached per size; the returned array is read-only.
    """
    window = get_window("hann", size, fftbins=False).astype(np.float64)
    window.flags.writeable = False
    return window


def build_onsets(
    samples: np.ndarray,
    sample_rate: int,
    window_size: int = 1024,
    hop_size: int = 512,
) -> np.ndarray:
    """Return the RMS energy of each Hann-windowed frame.

    Frames start every *hop_size* samples and only whole windows are used, so
    the result has ``(len(samples) - window_size) // hop_size + 1`` values, or
    none at all when the buffer is shorter than one window. *sample_rate* does
    not change the envelope; it is accepted so every pipeline stage shares the
    same signature.
    """
    samples = np.asarray(samples, dtype=np.float64)
    if len(samples) < window_size:
        return np.zeros(0, dtype=np.float64)

    frames = librosa.util.frame(samples, frame_length=window_size, hop_length=hop_size)
    windowed = frames * hann_window(window_size)[:, np.newaxis]
    return np.sqrt(np.sum(windowed ** 2, axis=0) / window_size)


def peak_threshold(
    onsets: np.ndarray,
    strategy: str = "max",
    threshold_ratio: float = 0.3,
    stddev_factor: float = 1.5,
) -> float:
    """Adaptive threshold for one onset envelope.

    "max" scales the envelope maximum by *threshold_ratio*; "stddev" uses
    ``mean + stddev_factor * std``.
    """
    if strategy == "max":
        return float(np.max(onsets)) * threshold_ratio
    if strategy == "stddev":
        return float(np.mean(onsets) + stddev_factor * np.std(onsets))
    raise ValueError(f"Unknown peak strategy: {strategy!r}")


def pick_peaks(
    onsets: np.ndarray,
    threshold_ratio: float = 0.3,
    strategy: str = "max",
    stddev_factor: float = 1.5,
) -> list[int]:
    """Indices of strict local maxima above the adaptive threshold.

    The first and last positions are never peaks, and a flat top of two or
    more equal values is not a peak either.
    """
    onsets = np.asarray(onsets, dtype=np.float64)
    if len(onsets) < 3:
        return []

    threshold = peak_threshold(onsets, strategy, threshold_ratio, stddev_factor)
    center = onsets[1:-1]
    is_peak = (center > onsets[:-2]) & (center > onsets[2:]) & (center > threshold)
    return [int(i) + 1 for i in np.flatnonzero(is_peak)]
