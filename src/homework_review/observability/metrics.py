"""Timing metrics keyed by label.

Explicit state: one ``MetricsRegistry`` is created at startup and
passed to whoever records timings. Nothing here is process-global.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict, dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimerStats:
    """Aggregate of recorded durations (milliseconds) for one label."""

    avg: float
    min: float
    max: float
    count: int

    def as_dict(self) -> dict[str, float | int]:
        return asdict(self)


class MetricsRegistry:
    """Named timers plus accumulated durations per label."""

    def __init__(self) -> None:
        self._timers: dict[str, float] = {}
        self._metrics: dict[str, list[float]] = {}
        self._lock = threading.Lock()

    def start_timer(self, label: str) -> None:
        with self._lock:
            self._timers[label] = time.perf_counter()

    def end_timer(self, label: str) -> float:
        """Stop ``label`` and record its duration in ms.

        Returns 0 when the timer was never started.
        """
        with self._lock:
            started = self._timers.pop(label, None)
            if started is None:
                logger.warning("event=timer_not_started label=%s", label)
                return 0.0
            duration_ms = (time.perf_counter() - started) * 1000
            self._metrics.setdefault(label, []).append(duration_ms)

        logger.info(
            "event=timer label=%s duration_ms=%.1f", label, duration_ms
        )
        return duration_ms

    def record(self, label: str, duration_ms: float) -> None:
        with self._lock:
            self._metrics.setdefault(label, []).append(duration_ms)

    @contextmanager
    def timed(self, label: str) -> Iterator[None]:
        """Record the duration of the ``with`` body, even on error.

        Unlike start/end_timer this is safe for overlapping calls
        under the same label.
        """
        started = time.perf_counter()
        try:
            yield
        finally:
            duration_ms = (time.perf_counter() - started) * 1000
            self.record(label, duration_ms)
            logger.info(
                "event=timer label=%s duration_ms=%.1f",
                label,
                duration_ms,
            )

    def get_stats(self, label: str) -> TimerStats | None:
        with self._lock:
            values = list(self._metrics.get(label, ()))
        if not values:
            return None
        return TimerStats(
            avg=sum(values) / len(values),
            min=min(values),
            max=max(values),
            count=len(values),
        )

    def all_stats(self) -> dict[str, TimerStats]:
        with self._lock:
            labels = list(self._metrics)
        stats: dict[str, TimerStats] = {}
        for label in labels:
            s = self.get_stats(label)
            if s is not None:
                stats[label] = s
        return stats

    def clear(self, label: str | None = None) -> None:
        with self._lock:
            if label is None:
                self._metrics.clear()
            else:
                self._metrics.pop(label, None)
