"""Tempo pipeline orchestrator: onsets -> peaks -> histogram or autocorrelation."""

import logging
import math

import numpy as np

from bpmanalyzer.analysis.errors import InsufficientSamples, InvalidAudio, InvalidSampleRate
from bpmanalyzer.analysis.models import TempoResult
from bpmanalyzer.analysis.onset import build_onsets, pick_peaks
from bpmanalyzer.analysis.tempo import estimate_from_energy, estimate_from_peaks
from bpmanalyzer.audio.loader import load_audio
from bpmanalyzer.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


def _validate(samples, sample_rate, window_size: int) -> np.ndarray:
    if isinstance(sample_rate, bool) or not isinstance(sample_rate, (int, np.integer)):
        raise InvalidSampleRate(f"Sample rate must be an integer, got {sample_rate!r}")
    if sample_rate <= 0:
        raise InvalidSampleRate(f"Sample rate must be positive, got {sample_rate}")

    audio = np.asarray(samples, dtype=np.float64)
    if audio.ndim != 1:
        raise InvalidAudio(f"Expected one channel of samples, got shape {audio.shape}")
    if len(audio) < window_size:
        raise InsufficientSamples(len(audio), window_size)
    return audio


class TempoEngine:
    """Runs the tempo pipeline with one set of tunables.

    Holds no per-call state, so a single engine can serve many buffers,
    including from several threads at once.
    """

    def __init__(self, config: Settings | None = None):
        self.config = config if config is not None else default_settings

    def analyze_file(self, file_path: str) -> TempoResult:
        """Decode an audio file and estimate its tempo."""
        audio, sr = load_audio(file_path, sr=self.config.sample_rate)
        return self.analyze_audio(audio, sr)

    def analyze_audio(self, samples: np.ndarray, sr: int) -> TempoResult:
        """Estimate the tempo of one channel of decoded samples.

        Raises
        ------
        InsufficientSamples
            The buffer is shorter than one analysis window.
        InvalidSampleRate, InvalidAudio
            *sr* is not a positive integer, or *samples* is not 1-D.
        """
        cfg = self.config
        audio = _validate(samples, sr, cfg.window_size)
        duration = len(audio) / sr
        logger.info(f"Analyzing {duration:.1f}s of audio at {sr}Hz")

        # Step 1: Onset envelope
        onsets = build_onsets(audio, sr, cfg.window_size, cfg.hop_size)
        logger.info(f"Step 1: {len(onsets)} onset frames")

        # Step 2: Peak picking
        peaks = pick_peaks(
            onsets,
            threshold_ratio=cfg.peak_threshold_ratio,
            strategy=cfg.peak_strategy,
            stddev_factor=cfg.peak_stddev_factor,
        )
        logger.info(f"Step 2: {len(peaks)} peaks ({cfg.peak_strategy} threshold)")

        # Step 3: Tempo
        if len(peaks) >= 2:
            candidate = estimate_from_peaks(
                peaks, sr, cfg.hop_size, cfg.min_bpm, cfg.max_bpm,
                direct_weight=cfg.direct_weight,
                harmonic_weight=cfg.harmonic_weight,
                default_bpm=cfg.default_bpm,
            )
            used_fallback = candidate.method != "histogram"
        else:
            logger.info("  Fewer than two peaks; falling back to autocorrelation")
            candidate = estimate_from_energy(
                onsets, sr, cfg.hop_size, cfg.min_bpm, cfg.max_bpm,
                default_bpm=cfg.default_bpm,
            )
            used_fallback = True

        bpm = max(float(cfg.min_bpm), min(float(cfg.max_bpm), candidate.bpm))
        if not math.isfinite(bpm):
            bpm = float(cfg.default_bpm)
        logger.info(f"Step 3: {bpm:.2f} BPM via {candidate.method} "
                    f"(confidence={candidate.confidence:.2f})")

        return TempoResult(
            bpm=bpm,
            confidence=candidate.confidence,
            method=candidate.method,
            used_fallback=used_fallback,
            onset_count=len(onsets),
            peak_count=len(peaks),
            duration=duration,
            sample_rate=int(sr),
        )


def estimate_tempo(samples: np.ndarray, sample_rate: int, config: Settings | None = None) -> TempoResult:
    """Estimate the tempo of *samples* with the configured defaults."""
    return TempoEngine(config).analyze_audio(samples, sample_rate)


def estimate_bpm(
    samples: np.ndarray,
    sample_rate: int,
    precision: int | None = None,
    config: Settings | None = None,
) -> float:
    """Estimate the tempo as a bare number.

    *precision* of ``None`` returns the unrounded estimate, ``0`` the
    nearest integer and ``1`` the one-decimal display value.
    """
    return estimate_tempo(samples, sample_rate, config).rounded(precision)
