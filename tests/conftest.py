"""Shared test fixtures: app state with a fake review service."""

import os

# Force a demo API key for all tests; no real vision calls.
# Set unconditionally at import time so a real key in the shell
# environment never reaches Settings().
os.environ["ARK_API_KEY"] = "for-demo-purposes-only"

import pytest
from httpx import ASGITransport, AsyncClient

from homework_review.config import Settings
from homework_review.main import app
from homework_review.observability.metrics import MetricsRegistry
from homework_review.services.review_service import ReviewService


class FakeReviewService(ReviewService):
    """ReviewService that returns a canned completion."""

    def __init__(
        self,
        settings: Settings,
        metrics: MetricsRegistry,
        completion: str = "[]",
        error: Exception | None = None,
    ) -> None:
        super().__init__(settings, metrics)
        self.completion = completion
        self.error = error
        self.calls: list[tuple[int, str]] = []

    async def review(self, data: bytes, mime_type: str) -> str:
        self.calls.append((len(data), mime_type))
        if self.error is not None:
            raise self.error
        return self.completion


def setup_test_app(
    *,
    completion: str = "[]",
    error: Exception | None = None,
    **settings_overrides: object,
) -> FakeReviewService:
    """Common app-state setup for API test fixtures.

    ASGITransport does not run the lifespan, so state is attached
    here. Returns the fake service so tests can inspect calls.
    """
    settings = Settings(**settings_overrides)  # type: ignore[arg-type]
    metrics = MetricsRegistry()
    service = FakeReviewService(
        settings, metrics, completion=completion, error=error
    )
    app.state.settings = settings
    app.state.metrics = metrics
    app.state.review_service = service
    return service


@pytest.fixture
async def client():
    """Async client against the app with a fake review service."""
    setup_test_app()
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(
        transport=transport, base_url="http://test"
    ) as c:
        yield c
