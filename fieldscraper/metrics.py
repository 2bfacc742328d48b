from __future__ import annotations

import time
from collections import Counter, deque
from dataclasses import fields
from threading import Lock
from typing import Deque, Dict, List

from .models import AttemptResult, AttemptStats


class MetricsCollector:
    """Collector for per-attempt scraping statistics.

    Records AttemptResult events and aggregates them into an AttemptStats
    snapshot for run summaries."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._events: Deque[tuple[float, AttemptResult]] = deque(maxlen=10000)

    def record_result(self, result: AttemptResult) -> None:
        """Record an attempt result with the current timestamp."""
        with self._lock:
            self._events.append((time.time(), result))

    def snapshot(self) -> AttemptStats:
        """Return aggregated statistics over every recorded attempt."""
        with self._lock:
            events: List[AttemptResult] = [e for _, e in self._events]
        total = len(events)
        success_count = sum(1 for e in events if e.success)
        error_counts: Dict[str, int] = dict(Counter(e.error_type for e in events if e.error_type))
        avg_latency_ms = (sum(e.latency_ms for e in events) / total) if total else 0.0

        return AttemptStats(
            total_attempts=total,
            success_count=success_count,
            failure_count=total - success_count,
            error_counts=error_counts,
            avg_latency_ms=avg_latency_ms,
            timestamp=time.time(),
        )

    def export_json(self) -> List[Dict]:
        """Export all recorded attempts as a list of dictionaries."""
        with self._lock:
            events = list(self._events)
        rows: List[Dict] = []
        for ts, e in events:
            row = {f.name: getattr(e, f.name) for f in fields(e) if f.name != "record"}
            rows.append({"timestamp": ts, **row})
        return rows
