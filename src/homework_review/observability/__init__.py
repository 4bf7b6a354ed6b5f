"""Observability: in-process timing metrics."""

from homework_review.observability.metrics import MetricsRegistry, TimerStats

__all__ = ["MetricsRegistry", "TimerStats"]
