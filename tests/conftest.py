"""Shared test fixtures for tempo analysis tests."""

import numpy as np
import pytest
import soundfile as sf
from fastapi.testclient import TestClient

from bpmanalyzer.main import app


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)


def generate_click_track(
    bpm: float,
    duration_seconds: float = 10.0,
    sr: int = 44100,
    amplitude: float = 1.0,
    beats_per_bar: int = 4,
    accent_ratio: float = 1.0,
) -> np.ndarray:
    """Generate a synthetic click track, silence between clicks.

    Clicks land exactly every ``60 / bpm`` seconds. Returns mono audio at the
    given sample rate.
    """
    n_samples = int(duration_seconds * sr)
    audio = np.zeros(n_samples, dtype=np.float32)

    beat_interval = 60.0 / bpm  # seconds per beat
    click_duration = 0.02  # 20ms click
    click_samples = int(click_duration * sr)

    # Create click sound (short sine burst with envelope)
    t_click = np.arange(click_samples) / sr
    click = np.sin(2 * np.pi * 1000 * t_click) * np.exp(-t_click * 100)

    beat = 0
    while True:
        sample_pos = int(round(beat * beat_interval * sr))
        if sample_pos >= n_samples:
            break
        is_downbeat = (beat % beats_per_bar) == 0
        gain = amplitude * (accent_ratio if is_downbeat else 1.0)

        end = min(sample_pos + click_samples, n_samples)
        audio[sample_pos:end] += click[:end - sample_pos] * gain
        beat += 1

    return audio


def write_wav(path, audio: np.ndarray, sr: int = 44100) -> str:
    sf.write(str(path), audio, sr)
    return str(path)


@pytest.fixture
def click_120():
    """5 seconds of clicks at 120 BPM, 44.1 kHz."""
    return generate_click_track(bpm=120, duration_seconds=5)


@pytest.fixture
def click_wav(tmp_path):
    """A WAV file with 6 seconds of clicks at 120 BPM."""
    return write_wav(tmp_path / "click_120.wav", generate_click_track(bpm=120, duration_seconds=6))
