#!/usr/bin/env python3
"""Estimate the tempo of audio files from the command line.

Usage:
    python scripts/analyze.py song.mp3                    # one file
    python scripts/analyze.py music/ --workers 4          # every supported file under music/
    python scripts/analyze.py music/ --csv results.csv    # also export completed results
    python scripts/analyze.py song.wav --precision 0      # integer BPM
    python scripts/analyze.py song.wav --verbose          # pipeline logging
"""

import argparse
import logging
import sys
from pathlib import Path

from tqdm import tqdm

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from bpmanalyzer.analysis.batch import COMPLETED, BatchProcessor
from bpmanalyzer.analysis.engine import TempoEngine
from bpmanalyzer.analysis.tempo import classify_tempo
from bpmanalyzer.audio.loader import SUPPORTED_EXTENSIONS
from bpmanalyzer.config import settings


def collect_files(paths: list[str]) -> list[Path]:
    """Expand directories into the supported audio files they contain."""
    files: list[Path] = []
    for raw in paths:
        p = Path(raw)
        if p.is_dir():
            files.extend(
                sorted(f for f in p.rglob("*") if f.is_file() and f.suffix.lower() in SUPPORTED_EXTENSIONS)
            )
        else:
            files.append(p)
    return files


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Estimate BPM of audio files")
    parser.add_argument("paths", nargs="+", help="audio files or directories")
    parser.add_argument("--workers", type=int, default=settings.batch_workers,
                        help="files analyzed at once")
    parser.add_argument("--csv", type=Path, default=None, help="write completed results as CSV")
    parser.add_argument("--precision", type=int, default=1, help="decimal places to print")
    parser.add_argument("--verbose", "-v", action="store_true", help="show pipeline logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(name)s %(levelname)s: %(message)s",
    )

    files = collect_files(args.paths)
    if not files:
        print("No audio files found", file=sys.stderr)
        return 1

    pbar = tqdm(total=len(files), desc="Analyzing", unit="file", disable=len(files) < 2)

    def on_update(item):
        if item.finished:
            pbar.update(1)

    processor = BatchProcessor(files, engine=TempoEngine(), max_workers=args.workers,
                               on_update=on_update)
    processor.run()
    pbar.close()

    name_width = max(len(item.name) for item in processor.items)
    for item in processor.items:
        if item.status == COMPLETED:
            bpm = item.result.rounded(args.precision)
            flag = "  (fallback)" if item.result.used_fallback else ""
            print(f"{item.name:<{name_width}}  {bpm:>7} BPM  {classify_tempo(item.bpm)}{flag}")
        else:
            print(f"{item.name:<{name_width}}  ERROR: {item.error}")

    summary = processor.summary()
    avg = f"{summary.average_bpm:.1f}" if summary.average_bpm is not None else "-"
    print(f"\n{summary.completed}/{summary.total} analyzed, {summary.errors} errors, "
          f"average {avg} BPM")

    if args.csv:
        args.csv.write_text(processor.to_csv())
        print(f"Wrote {args.csv}")

    return 0 if summary.errors == 0 else 2


if __name__ == "__main__":
    sys.exit(main())
