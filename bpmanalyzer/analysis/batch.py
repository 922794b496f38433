"""Batch tempo analysis: one independent pipeline run per file."""

import csv
import io
import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from bpmanalyzer.analysis.engine import TempoEngine
from bpmanalyzer.analysis.models import BatchSummary, TempoResult
from bpmanalyzer.analysis.tempo import classify_tempo

logger = logging.getLogger(__name__)

PENDING = "pending"
PROCESSING = "processing"
COMPLETED = "completed"
ERROR = "error"

CSV_HEADER = ["File Name", "BPM", "Size (MB)"]


@dataclass
class BatchItem:
    """One file in a batch and its analysis state."""
    path: str
    name: str = ""
    size_bytes: int = 0
    # "pending" | "processing" | "completed" | "error"
    status: str = PENDING
    result: TempoResult | None = None
    error: str | None = None

    def __post_init__(self):
        if not self.name:
            self.name = Path(self.path).name

    @property
    def bpm(self) -> float | None:
        return self.result.bpm if self.result is not None else None

    @property
    def size_mb(self) -> float:
        return self.size_bytes / (1024 * 1024)

    @property
    def finished(self) -> bool:
        return self.status in (COMPLETED, ERROR)


def _file_size(path: str) -> int:
    try:
        return os.path.getsize(path)
    except OSError:
        return 0


class BatchProcessor:
    """Analyze many files, with pause/resume between files.

    Parameters
    ----------
    paths:
        Audio files, ``(path, display_name)`` pairs, or prepared
        :class:`BatchItem` objects (only pending ones are analyzed).
    engine:
        Shared :class:`TempoEngine`; a default one is created if omitted.
    max_workers:
        Files analyzed at once. Pause takes effect between chunks of this
        many files.
    on_update:
        Called with each item whenever its status changes.
    """

    def __init__(
        self,
        paths,
        engine: TempoEngine | None = None,
        max_workers: int = 1,
        on_update: Callable[[BatchItem], None] | None = None,
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.engine = engine or TempoEngine()
        self.max_workers = max_workers
        self.on_update = on_update
        self.items: list[BatchItem] = []
        for entry in paths:
            if isinstance(entry, BatchItem):
                self.items.append(entry)
                continue
            if isinstance(entry, tuple):
                path, name = entry
            else:
                path, name = entry, ""
            path = str(path)
            self.items.append(BatchItem(path=path, name=name, size_bytes=_file_size(path)))
        self._paused = threading.Event()
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def run(self) -> list[BatchItem]:
        """Process every pending item, stopping early if paused."""
        self._paused.clear()
        pending = [item for item in self.items if item.status == PENDING]
        logger.info(f"Batch: {len(pending)} of {len(self.items)} files pending")

        if self.max_workers == 1:
            for item in pending:
                if self._paused.is_set():
                    break
                self._process(item)
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                for start in range(0, len(pending), self.max_workers):
                    if self._paused.is_set():
                        break
                    chunk = pending[start:start + self.max_workers]
                    list(pool.map(self._process, chunk))

        if self._paused.is_set():
            logger.info(f"Batch paused at {self.progress:.0%}")
        else:
            logger.info(f"Batch complete: {len(self.completed)} completed, "
                        f"{len(self.failed)} errors")
        return self.items

    def pause(self) -> None:
        """Stop before the next file; ``run()`` resumes where it stopped."""
        self._paused.set()

    @property
    def paused(self) -> bool:
        return self._paused.is_set()

    def reset(self) -> None:
        """Forget all results and mark every item pending again."""
        self._paused.clear()
        with self._lock:
            for item in self.items:
                item.status = PENDING
                item.result = None
                item.error = None

    def _process(self, item: BatchItem) -> BatchItem:
        self._set_status(item, PROCESSING)
        try:
            result = self.engine.analyze_file(item.path)
        except Exception as e:
            logger.warning("Batch: %s failed: %s", item.name, e)
            with self._lock:
                item.error = str(e) or type(e).__name__
            self._set_status(item, ERROR)
        else:
            with self._lock:
                item.result = result
            self._set_status(item, COMPLETED)
        return item

    def _set_status(self, item: BatchItem, status: str) -> None:
        with self._lock:
            item.status = status
        if self.on_update is not None:
            self.on_update(item)

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    @property
    def completed(self) -> list[BatchItem]:
        return [item for item in self.items if item.status == COMPLETED]

    @property
    def failed(self) -> list[BatchItem]:
        return [item for item in self.items if item.status == ERROR]

    @property
    def progress(self) -> float:
        """Fraction of items that finished, successfully or not."""
        if not self.items:
            return 0.0
        return sum(1 for item in self.items if item.finished) / len(self.items)

    def summary(self) -> BatchSummary:
        completed = self.completed
        bpms = [item.bpm for item in completed]
        categories: dict[str, int] = {}
        for bpm in bpms:
            label = classify_tempo(bpm)
            categories[label] = categories.get(label, 0) + 1
        total = len(self.items)
        return BatchSummary(
            total=total,
            completed=len(completed),
            errors=len(self.failed),
            average_bpm=round(sum(bpms) / len(bpms), 1) if bpms else None,
            success_rate=len(completed) / total if total else 0.0,
            categories=categories,
        )

    def filter_items(self, status: str = "all") -> list[BatchItem]:
        """Items for one view: "all", "completed" or "errors"."""
        if status == "all":
            return list(self.items)
        if status == "completed":
            return self.completed
        if status == "errors":
            return self.failed
        raise ValueError(f"Unknown filter: {status!r}")

    def sorted_items(self, by: str = "name", status: str = "all") -> list[BatchItem]:
        """Items sorted by name (A-Z), bpm (fastest first) or size (largest first).

        Items without a BPM sort after those with one.
        """
        items = self.filter_items(status)
        if by == "name":
            return sorted(items, key=lambda item: item.name.lower())
        if by == "bpm":
            return sorted(items, key=lambda item: (item.bpm is None, -(item.bpm or 0.0)))
        if by == "size":
            return sorted(items, key=lambda item: -item.size_bytes)
        raise ValueError(f"Unknown sort key: {by!r}")

    def to_csv(self) -> str:
        """Completed items as CSV: file name, BPM and size in MB."""
        buf = io.StringIO()
        writer = csv.writer(buf, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
        writer.writerow(CSV_HEADER)
        for item in self.completed:
            writer.writerow([item.name, f"{item.bpm:.1f}", f"{item.size_mb:.1f}"])
        return buf.getvalue()
