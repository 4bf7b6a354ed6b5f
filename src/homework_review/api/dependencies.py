"""FastAPI dependency injection for app-scoped services."""

from __future__ import annotations

from fastapi import Request

from homework_review.config import Settings
from homework_review.observability.metrics import MetricsRegistry
from homework_review.services.review_service import ReviewService


def get_settings(request: Request) -> Settings:
    """Get Settings from app.state."""
    return request.app.state.settings  # type: ignore[no-any-return]


def get_metrics(request: Request) -> MetricsRegistry:
    """Get the MetricsRegistry from app.state."""
    return request.app.state.metrics  # type: ignore[no-any-return]


def get_review_service(request: Request) -> ReviewService:
    """Get ReviewService from app.state."""
    return request.app.state.review_service  # type: ignore[no-any-return]
