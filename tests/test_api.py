"""Tests for the HTTP API."""

import csv
import io

import numpy as np

from tests.conftest import generate_click_track, write_wav


def test_health_endpoint(client):
    """GET /api/health should return ok."""
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_api_analyze_endpoint(client, click_wav):
    """POST /api/analyze should return the tempo and its presentation fields."""
    with open(click_wav, "rb") as f:
        response = client.post("/api/analyze", files={"file": ("click.wav", f, "audio/wav")})

    assert response.status_code == 200
    data = response.json()
    assert data["filename"] == "click.wav"
    assert 118 <= data["bpm"] <= 122
    assert data["bpm_display"] == round(data["bpm"], 1)
    assert data["method"] == "histogram"
    assert data["used_fallback"] is False
    assert data["category"] == "fast"
    assert data["genres"]
    assert data["beat_interval_ms"] > 0
    assert data["sample_rate"] == 44100


def test_api_analyze_rejects_unsupported_format(client):
    response = client.post("/api/analyze", files={"file": ("notes.txt", b"hello", "text/plain")})
    assert response.status_code == 400
    assert "Unsupported format" in response.json()["detail"]


def test_api_analyze_rejects_oversized_file(client, monkeypatch):
    """Upload endpoint should reject files larger than configured limit."""
    from bpmanalyzer.config import settings

    monkeypatch.setattr(settings, "max_upload_mb", 1)
    payload = b"x" * (1024 * 1024 + 1)

    response = client.post(
        "/api/analyze",
        files={"file": ("big.wav", payload, "audio/wav")},
    )

    assert response.status_code == 400
    assert "File too large" in response.json()["detail"]


def test_api_analyze_short_audio(client, tmp_path):
    wav_path = write_wav(tmp_path / "short.wav", np.zeros(512, dtype=np.float32))
    with open(wav_path, "rb") as f:
        response = client.post("/api/analyze", files={"file": ("short.wav", f, "audio/wav")})

    assert response.status_code == 422
    assert response.json()["detail"] == "Audio too short to analyze"


def test_api_analyze_tempfile_failure_returns_generic_error(client, monkeypatch):
    """Upload endpoint should not leak internal exception details."""
    import bpmanalyzer.api.upload as upload_module

    def _raise_tempfile_error(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(upload_module.tempfile, "NamedTemporaryFile", _raise_tempfile_error)

    response = client.post(
        "/api/analyze",
        files={"file": ("test.wav", b"audio", "audio/wav")},
    )

    assert response.status_code == 500
    assert response.json()["detail"] == "Analysis failed"


def test_api_batch(client, tmp_path):
    good = write_wav(tmp_path / "good.wav", generate_click_track(120, 6))
    with open(good, "rb") as f:
        content = f.read()

    response = client.post(
        "/api/batch",
        files=[
            ("files", ("good.wav", content, "audio/wav")),
            ("files", ("broken.mp3", b"garbage", "audio/mpeg")),
            ("files", ("readme.txt", b"text", "text/plain")),
        ],
    )

    assert response.status_code == 200
    data = response.json()
    results = data["results"]
    assert [r["filename"] for r in results] == ["good.wav", "broken.mp3", "readme.txt"]
    assert results[0]["status"] == "completed"
    assert 118 <= results[0]["bpm"] <= 122
    assert results[1]["status"] == "error"
    assert results[2]["error"] == "Unsupported format"

    summary = data["summary"]
    assert summary["total"] == 3
    assert summary["completed"] == 1
    assert summary["errors"] == 2
    assert summary["average_bpm"] == results[0]["bpm"]


def test_api_batch_export(client, tmp_path):
    good = write_wav(tmp_path / "good.wav", generate_click_track(120, 6))
    with open(good, "rb") as f:
        content = f.read()

    response = client.post(
        "/api/batch/export",
        files=[("files", ("good.wav", content, "audio/wav"))],
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "bpm-analysis-results.csv" in response.headers["content-disposition"]
    rows = list(csv.reader(io.StringIO(response.text)))
    assert rows[0] == ["File Name", "BPM", "Size (MB)"]
    assert rows[1][0] == "good.wav"
