"""FastAPI application with lifespan startup."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

# Phase 1: Singleton logging, MUST be before any homework_review imports
# (the review service imports litellm, which reads LITELLM_LOG at import time)
from homework_review.logging_config import setup_logging

setup_logging()

from fastapi import FastAPI  # noqa: E402
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402

from homework_review import __version__  # noqa: E402
from homework_review.api.error_boundary import (  # noqa: E402
    install_error_boundary,
)
from homework_review.api.routes import health, review  # noqa: E402
from homework_review.config import Settings  # noqa: E402
from homework_review.logging_config import (  # noqa: E402
    cleanup_third_party_handlers,
    set_level,
)
from homework_review.observability.metrics import (  # noqa: E402
    MetricsRegistry,
)
from homework_review.services.review_service import (  # noqa: E402
    ReviewService,
)

# Phase 2: Now that all imports (including litellm) are done,
# clear litellm's duplicate handlers.
cleanup_third_party_handlers()

_logger = logging.getLogger(__name__)


def init_state(app: FastAPI, settings: Settings) -> None:
    """Attach settings and app-scoped services to ``app.state``."""
    metrics = MetricsRegistry()
    app.state.settings = settings
    app.state.metrics = metrics
    app.state.review_service = ReviewService(settings, metrics)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = _settings
    set_level(settings.log_level)
    init_state(app, settings)

    if not settings.ark_api_key:
        _logger.warning(
            "event=no_api_key action=review_endpoints_unavailable"
        )
    _logger.info(
        "event=startup port=%d docs=/api/docs model=%s",
        settings.port,
        settings.vision_model,
    )

    yield


app = FastAPI(
    title="Homework Review",
    description="Grades answer-sheet images with a vision-language model",
    version=__version__,
    openapi_url="/api/openapi.json",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    lifespan=lifespan,
)

_settings = Settings()

# Middleware stack (Starlette LIFO: last added = outermost = runs first)
#
# Inbound request order:
#   CORSMiddleware (outermost) -> ErrorBoundaryMiddleware -> Router
#
# CORS stays outermost so error responses still carry CORS headers.
app.state.reporter = install_error_boundary(app)

_cors_origins = _settings.cors_origin_list
app.add_middleware(
    CORSMiddleware,
    # "*" with credentials: reflect the request origin
    allow_origin_regex=".*" if "*" in _cors_origins else None,
    allow_origins=[o for o in _cors_origins if o != "*"],
    allow_methods=["GET", "POST", "DELETE", "PUT", "OPTIONS"],
    allow_headers=["*"],
    allow_credentials=True,
)

# Routes
app.include_router(health.router)
app.include_router(review.router)
