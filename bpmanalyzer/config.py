"""Application configuration."""

from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings with env var overrides."""

    # Audio
    sample_rate: int | None = None  # None keeps the file's native rate

    # Onset analysis
    window_size: int = 1024
    hop_size: int = 512

    # Peak picking
    peak_strategy: str = "max"  # "max" or "stddev"
    peak_threshold_ratio: float = 0.3
    peak_stddev_factor: float = 1.5

    # Tempo
    min_bpm: float = 60.0
    max_bpm: float = 200.0
    default_bpm: float = 120.0
    direct_weight: float = 1.0
    harmonic_weight: float = 0.5  # half-time / double-time contributions

    # Batch
    batch_workers: int = 1

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    max_upload_mb: int = 100

    model_config = {"env_prefix": "BPMANALYZER_"}

    @model_validator(mode="after")
    def _check_ranges(self):
        if self.window_size <= 0 or self.hop_size <= 0:
            raise ValueError("window_size and hop_size must be positive")
        if self.min_bpm <= 0 or self.min_bpm >= self.max_bpm:
            raise ValueError("expected 0 < min_bpm < max_bpm")
        if self.peak_strategy not in ("max", "stddev"):
            raise ValueError(f"unknown peak_strategy: {self.peak_strategy!r}")
        if self.batch_workers < 1:
            raise ValueError("batch_workers must be at least 1")
        return self


settings = Settings()
