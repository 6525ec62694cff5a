from __future__ import annotations

import csv
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Protocol

from wordsolve.feedback import pattern_to_key
from wordsolve.logger import get_logger
from wordsolve.models import SolveSummary

LOGGER = get_logger(__name__)

FIELDNAMES = ["timestamp", "mode", "success", "answer", "guesses", "patterns", "reason"]


class HistoryRecorder(Protocol):
    def record(self, summary: SolveSummary, mode: str, timestamp: datetime) -> None: ...


class MemoryHistoryRecorder:
    """Keeps records in a list; handy for tests and short-lived sessions."""

    def __init__(self) -> None:
        self.records: List[dict] = []

    def record(self, summary: SolveSummary, mode: str, timestamp: datetime) -> None:
        self.records.append({"mode": mode, "timestamp": timestamp, "summary": summary})


class CsvHistoryRecorder:
    """Appends one row per finished attempt to a CSV file."""

    def __init__(self, path: str) -> None:
        self.path = Path(path)

    def record(self, summary: SolveSummary, mode: str, timestamp: datetime) -> None:
        new_file = not self.path.exists() or self.path.stat().st_size == 0
        with open(self.path, mode="a", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=FIELDNAMES)
            if new_file:
                writer.writeheader()
            writer.writerow(
                {
                    "timestamp": timestamp.isoformat(),
                    "mode": mode,
                    "success": summary.success,
                    "answer": summary.answer or "",
                    "guesses": " ".join(summary.guesses),
                    "patterns": " ".join(pattern_to_key(s.pattern) for s in summary.steps),
                    "reason": summary.reason or "",
                }
            )


def load_history(path: str) -> List[dict]:
    """Read back rows written by CsvHistoryRecorder (newest last)."""
    p = Path(path)
    if not p.exists():
        return []
    with open(p, newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    for row in rows:
        row["success"] = json.loads(row["success"].lower())
        row["guesses"] = row["guesses"].split()
        row["patterns"] = row["patterns"].split()
    return rows


def record_summary(
    recorder: Optional[HistoryRecorder],
    summary: SolveSummary,
    mode: str,
    timestamp: Optional[datetime] = None,
) -> None:
    """Hand a finished attempt to `recorder`; a storage error is logged, not raised."""
    if recorder is None:
        return
    timestamp = timestamp or datetime.now(timezone.utc)
    try:
        recorder.record(summary, mode, timestamp)
    except OSError as exc:
        LOGGER.warning("Could not record %s attempt on %s: %s", mode, summary.answer, exc)
