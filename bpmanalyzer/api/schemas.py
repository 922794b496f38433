"""Pydantic response models for API."""

from pydantic import BaseModel


class AnalysisResponse(BaseModel):
    filename: str | None = None
    bpm: float
    bpm_display: float  # one decimal place
    confidence: float
    method: str
    used_fallback: bool = False
    category: str
    genres: list[str] = []
    beat_interval_ms: float
    bars_per_minute: float
    duration: float = 0.0
    sample_rate: int = 0


class BatchItemResponse(BaseModel):
    filename: str
    status: str  # "completed" or "error"
    bpm: float | None = None
    confidence: float | None = None
    used_fallback: bool | None = None
    error: str | None = None
    size_mb: float = 0.0


class BatchSummaryResponse(BaseModel):
    total: int
    completed: int
    errors: int
    average_bpm: float | None = None
    success_rate: float = 0.0
    categories: dict[str, int] = {}


class BatchResponse(BaseModel):
    results: list[BatchItemResponse]
    summary: BatchSummaryResponse
