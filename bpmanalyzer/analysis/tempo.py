"""Tempo estimation from onset peaks, with an autocorrelation fallback."""

import logging
import math

import numpy as np

from bpmanalyzer.analysis.models import BpmCandidate

logger = logging.getLogger(__name__)

DEFAULT_BPM = 120.0

# Confidence scale for the autocorrelation fallback, which only runs when
# no beat-like peaks were found.
_FALLBACK_CONFIDENCE_SCALE = 0.5


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def peak_intervals(peaks: list[int], sample_rate: int, hop_size: int) -> list[float]:
    """Seconds between consecutive peak positions."""
    return [
        (peaks[k] - peaks[k - 1]) * hop_size / sample_rate
        for k in range(1, len(peaks))
    ]


def build_interval_histogram(
    intervals: list[float],
    min_bpm: float = 60,
    max_bpm: float = 200,
    direct_weight: float = 1.0,
    harmonic_weight: float = 0.5,
) -> dict[int, float]:
    """Accumulate BPM votes for each inter-peak interval.

    Every in-range interval votes *direct_weight* for its own BPM and
    *harmonic_weight* for its half-time and double-time BPM when those are in
    range too. Buckets keep first-seen order.
    """
    histogram: dict[int, float] = {}
    for interval in intervals:
        if interval <= 0:
            continue
        bpm = _round_half_up(60 / interval)
        if not min_bpm <= bpm <= max_bpm:
            continue
        histogram[bpm] = histogram.get(bpm, 0.0) + direct_weight

        half_time = _round_half_up(bpm / 2)
        double_time = _round_half_up(bpm * 2)
        if min_bpm <= half_time <= max_bpm:
            histogram[half_time] = histogram.get(half_time, 0.0) + harmonic_weight
        if min_bpm <= double_time <= max_bpm:
            histogram[double_time] = histogram.get(double_time, 0.0) + harmonic_weight

    return histogram


def dominant_bpm(histogram: dict[int, float], default: float = DEFAULT_BPM) -> tuple[float, float]:
    """Return (bpm, weight) of the heaviest bucket.

    Only a strictly greater weight replaces the current winner, so the bucket
    inserted first wins a tie. An empty histogram gives (default, 0.0).
    """
    best_bpm = default
    best_weight = 0.0
    for bpm, weight in histogram.items():
        if weight > best_weight:
            best_weight = weight
            best_bpm = float(bpm)
    return best_bpm, best_weight


def estimate_from_peaks(
    peaks: list[int],
    sample_rate: int,
    hop_size: int = 512,
    min_bpm: float = 60,
    max_bpm: float = 200,
    direct_weight: float = 1.0,
    harmonic_weight: float = 0.5,
    default_bpm: float = DEFAULT_BPM,
) -> BpmCandidate:
    """Estimate tempo from the histogram of inter-peak intervals.

    Needs at least two peaks. Confidence is the winning bucket's share of
    the total histogram weight.
    """
    if len(peaks) < 2:
        raise ValueError("Interval histogram needs at least two peaks")

    intervals = peak_intervals(peaks, sample_rate, hop_size)
    histogram = build_interval_histogram(
        intervals, min_bpm, max_bpm, direct_weight, harmonic_weight,
    )
    bpm, weight = dominant_bpm(histogram, default_bpm)
    logger.debug(f"  Histogram: {len(intervals)} intervals, {len(histogram)} buckets")

    if weight == 0.0:
        logger.debug("  No interval fell inside the BPM range; using default")
        return BpmCandidate(bpm=default_bpm, confidence=0.0, method="default")

    total = sum(histogram.values())
    return BpmCandidate(bpm=bpm, confidence=round(weight / total, 3), method="histogram")


def lag_range(sample_rate: int, hop_size: int, min_bpm: float, max_bpm: float) -> tuple[int, int]:
    """Onset-frame lags that correspond to the BPM range.

    The fastest tempo has the shortest period, so the minimum lag comes from
    *max_bpm*.
    """
    min_lag = math.floor((60 * sample_rate) / (max_bpm * hop_size))
    max_lag = math.floor((60 * sample_rate) / (min_bpm * hop_size))
    return min_lag, max_lag


def estimate_from_energy(
    onsets: np.ndarray,
    sample_rate: int,
    hop_size: int = 512,
    min_bpm: float = 60,
    max_bpm: float = 200,
    default_bpm: float = DEFAULT_BPM,
) -> BpmCandidate:
    """Estimate tempo from the autocorrelation of the onset envelope.

    Each lag in the BPM-derived range is scored by the mean of
    ``onsets[i] * onsets[i - lag]`` over every valid ``i``; lags without a
    valid ``i`` are skipped. A lag must beat a correlation of zero to win,
    otherwise *default_bpm* is used. The result is clamped to the range.
    """
    onsets = np.asarray(onsets, dtype=np.float64)
    n = len(onsets)
    min_lag, max_lag = lag_range(sample_rate, hop_size, min_bpm, max_bpm)

    best_lag = None
    best_corr = 0.0
    # Lag 0 compares the envelope with itself and has no period.
    for lag in range(max(min_lag, 1), max_lag + 1):
        count = n - lag
        if count <= 0:
            continue
        corr = float(np.dot(onsets[lag:], onsets[:count])) / count
        if corr > best_corr:
            best_corr = corr
            best_lag = lag

    if best_lag is None:
        logger.debug(f"  Autocorrelation: no usable lag in [{min_lag}, {max_lag}]")
        bpm = float(default_bpm)
        method = "default"
        confidence = 0.0
    else:
        interval_seconds = best_lag * hop_size / sample_rate
        bpm = 60 / interval_seconds
        method = "autocorrelation"
        energy = float(np.mean(onsets ** 2))
        confidence = min(1.0, best_corr / energy) * _FALLBACK_CONFIDENCE_SCALE if energy > 0 else 0.0
        logger.debug(f"  Autocorrelation: lag={best_lag} corr={best_corr:.4g} -> {bpm:.1f} BPM")

    bpm = max(float(min_bpm), min(float(max_bpm), bpm))
    return BpmCandidate(bpm=bpm, confidence=round(confidence, 3), method=method)


def classify_tempo(bpm: float) -> str:
    """Qualitative tempo label.

    Returns: "slow", "moderate", "fast", "very_fast", or "extreme".
    """
    if bpm < 70:
        return "slow"
    elif bpm < 100:
        return "moderate"
    elif bpm < 140:
        return "fast"
    elif bpm < 180:
        return "very_fast"
    else:
        return "extreme"


_GENRES_BY_BPM = [
    (70, ["Ballad", "Ambient"]),
    (90, ["Hip-Hop", "R&B"]),
    (110, ["Pop", "Rock"]),
    (130, ["Dance", "House"]),
    (150, ["Techno", "Trance"]),
    (180, ["Drum & Bass"]),
]


def suggest_genres(bpm: float) -> list[str]:
    """Genres typically played around this tempo."""
    for upper, genres in _GENRES_BY_BPM:
        if bpm < upper:
            return list(genres)
    return ["Hardcore", "Speedcore"]


def beat_interval_ms(bpm: float) -> float:
    return 60000.0 / bpm


def bars_per_minute(bpm: float, beats_per_bar: int = 4) -> float:
    return bpm / beats_per_bar
