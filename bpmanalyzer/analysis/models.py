"""Core data models for tempo analysis."""

from dataclasses import dataclass, field


@dataclass
class BpmCandidate:
    """A BPM estimate from a single method."""
    bpm: float
    confidence: float  # 0.0-1.0
    method: str  # "histogram", "autocorrelation" or "default"


@dataclass
class TempoResult:
    """Tempo of one sample buffer."""
    bpm: float  # unrounded, always within [min_bpm, max_bpm]
    confidence: float
    method: str
    used_fallback: bool = False
    onset_count: int = 0
    peak_count: int = 0
    duration: float = 0.0  # seconds
    sample_rate: int = 0

    def rounded(self, precision: int | None = 0) -> float:
        """BPM rounded for presentation; ``None`` returns it unchanged."""
        if precision is None:
            return self.bpm
        return round(self.bpm, precision)


@dataclass
class BatchSummary:
    """Aggregate figures over a finished (or partial) batch."""
    total: int
    completed: int
    errors: int
    average_bpm: float | None = None
    success_rate: float = 0.0
    categories: dict[str, int] = field(default_factory=dict)
