"""Audio file loading utilities."""

from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import Union

import librosa
import numpy as np

SUPPORTED_EXTENSIONS = {
    ".mp3", ".wav", ".m4a", ".aac", ".ogg", ".flac",
    # video containers, decoded through ffmpeg
    ".mp4", ".webm", ".mov", ".avi",
}


def is_supported(filename: str | None) -> bool:
    """Whether *filename* has an extension we can decode."""
    if not filename or "." not in filename:
        return False
    return "." + filename.rsplit(".", 1)[-1].lower() in SUPPORTED_EXTENSIONS


def load_audio(
    file_path_or_buffer: Union[str, Path, BytesIO],
    sr: int | None = None,
) -> tuple[np.ndarray, int]:
    """Load an audio file or buffer and keep its first channel.

    Parameters
    ----------
    file_path_or_buffer:
        Path to an audio file or a BytesIO buffer containing audio data.
    sr:
        Target sample rate. ``None`` keeps the file's native rate.

    Returns
    -------
    tuple[np.ndarray, int]
        A tuple of (audio_array, sample_rate).
    """
    audio, sample_rate = librosa.load(file_path_or_buffer, sr=sr, mono=False)
    if audio.ndim > 1:
        audio = audio[0]
    return np.ascontiguousarray(audio, dtype=np.float32), int(sample_rate)
