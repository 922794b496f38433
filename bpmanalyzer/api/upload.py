"""Upload endpoints for single-file and batch tempo analysis."""

import logging
import os
import tempfile

from fastapi import APIRouter, File, HTTPException, Response, UploadFile

from bpmanalyzer.analysis.batch import ERROR, BatchItem, BatchProcessor
from bpmanalyzer.analysis.engine import TempoEngine
from bpmanalyzer.analysis.errors import InsufficientSamples, TempoAnalysisError
from bpmanalyzer.analysis.tempo import (
    bars_per_minute,
    beat_interval_ms,
    classify_tempo,
    suggest_genres,
)
from bpmanalyzer.api.schemas import (
    AnalysisResponse,
    BatchItemResponse,
    BatchResponse,
    BatchSummaryResponse,
)
from bpmanalyzer.audio.loader import SUPPORTED_EXTENSIONS, is_supported
from bpmanalyzer.config import settings

logger = logging.getLogger(__name__)

router = APIRouter()


def _suffix(filename: str | None) -> str:
    if filename and "." in filename:
        return "." + filename.rsplit(".", 1)[-1].lower()
    return ""


def _max_bytes() -> int:
    return settings.max_upload_mb * 1024 * 1024


def _write_temp(content: bytes, filename: str | None) -> str:
    with tempfile.NamedTemporaryFile(suffix=_suffix(filename), delete=False) as tmp:
        tmp.write(content)
        return tmp.name


def _unlink(path: str | None) -> None:
    if path is None:
        return
    try:
        os.unlink(path)
    except OSError:
        pass


@router.post("/analyze", response_model=AnalysisResponse)
async def analyze_file(file: UploadFile = File(...)):
    """Analyze an uploaded audio or video file for its tempo."""
    if file.filename and _suffix(file.filename) and not is_supported(file.filename):
        raise HTTPException(400, f"Unsupported format. Use: {', '.join(sorted(SUPPORTED_EXTENSIONS))}")

    content = await file.read()
    if len(content) > _max_bytes():
        raise HTTPException(400, f"File too large (max {settings.max_upload_mb} MB)")

    tmp_path = None
    try:
        tmp_path = _write_temp(content, file.filename)
        result = TempoEngine().analyze_file(tmp_path)
    except InsufficientSamples:
        raise HTTPException(422, "Audio too short to analyze")
    except TempoAnalysisError as e:
        raise HTTPException(422, str(e))
    except Exception:
        logger.exception("Analysis of %s failed", file.filename)
        raise HTTPException(500, "Analysis failed")
    finally:
        _unlink(tmp_path)

    return AnalysisResponse(
        filename=file.filename,
        bpm=result.bpm,
        bpm_display=result.rounded(1),
        confidence=result.confidence,
        method=result.method,
        used_fallback=result.used_fallback,
        category=classify_tempo(result.bpm),
        genres=suggest_genres(result.bpm),
        beat_interval_ms=round(beat_interval_ms(result.bpm), 1),
        bars_per_minute=round(bars_per_minute(result.bpm), 1),
        duration=round(result.duration, 2),
        sample_rate=result.sample_rate,
    )


async def _run_batch(files: list[UploadFile]) -> BatchProcessor:
    """Stage uploads on disk and analyze them.

    Rejected uploads become error items so they still show up in the
    results and the summary.
    """
    items: list[BatchItem] = []
    tmp_paths: list[str] = []
    try:
        for upload in files:
            name = upload.filename or "upload"
            content = await upload.read()
            if not is_supported(name):
                items.append(BatchItem(path=name, name=name, size_bytes=len(content),
                                       status=ERROR, error="Unsupported format"))
                continue
            if len(content) > _max_bytes():
                items.append(BatchItem(path=name, name=name, size_bytes=len(content), status=ERROR,
                                       error=f"File too large (max {settings.max_upload_mb} MB)"))
                continue
            tmp_path = _write_temp(content, name)
            tmp_paths.append(tmp_path)
            items.append(BatchItem(path=tmp_path, name=name, size_bytes=len(content)))

        processor = BatchProcessor(items, max_workers=settings.batch_workers)
        processor.run()
        return processor
    finally:
        for tmp_path in tmp_paths:
            _unlink(tmp_path)


@router.post("/batch", response_model=BatchResponse)
async def analyze_batch(files: list[UploadFile] = File(...)):
    """Analyze several files; one failure never aborts the others."""
    processor = await _run_batch(files)
    summary = processor.summary()
    return BatchResponse(
        results=[
            BatchItemResponse(
                filename=item.name,
                status=item.status,
                bpm=round(item.bpm, 1) if item.bpm is not None else None,
                confidence=item.result.confidence if item.result else None,
                used_fallback=item.result.used_fallback if item.result else None,
                error=item.error,
                size_mb=round(item.size_mb, 1),
            )
            for item in processor.items
        ],
        summary=BatchSummaryResponse(
            total=summary.total,
            completed=summary.completed,
            errors=summary.errors,
            average_bpm=summary.average_bpm,
            success_rate=round(summary.success_rate, 3),
            categories=summary.categories,
        ),
    )


@router.post("/batch/export")
async def export_batch(files: list[UploadFile] = File(...)):
    """Analyze several files and return the completed ones as CSV."""
    processor = await _run_batch(files)
    return Response(
        content=processor.to_csv(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="bpm-analysis-results.csv"'},
    )
