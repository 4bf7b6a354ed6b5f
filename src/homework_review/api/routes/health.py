"""Health check endpoints."""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends

from homework_review import __version__
from homework_review.api.dependencies import get_metrics
from homework_review.api.schemas import HealthResponse, MetricsResponse
from homework_review.observability.metrics import MetricsRegistry

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
async def health() -> HealthResponse:
    """Basic health check for load balancers."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        timestamp=datetime.now(UTC).isoformat(),
    )


@router.get("/health/metrics")
async def health_metrics(
    metrics: MetricsRegistry = Depends(get_metrics),
) -> MetricsResponse:
    """Timing stats recorded since startup."""
    return MetricsResponse(
        metrics={
            label: stats.as_dict()
            for label, stats in metrics.all_stats().items()
        }
    )
