"""Answer-sheet review endpoints."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, File, UploadFile
from pydantic import ValidationError

from homework_review.api.dependencies import (
    get_metrics,
    get_review_service,
    get_settings,
)
from homework_review.api.error_boundary import BodyCapturingRoute
from homework_review.api.schemas import (
    QuestionResult,
    ScoredQuestion,
    SimilarityRequest,
    SimilarityResponse,
    StructuredReview,
)
from homework_review.comparison.similarity import text_similarity
from homework_review.config import Settings
from homework_review.constants import METRIC_EXTRACT
from homework_review.observability.metrics import MetricsRegistry
from homework_review.parsing.json_extract import ParseFailure, extract_json
from homework_review.resilience.errors import DomainError, ErrorKind
from homework_review.services.review_service import ReviewService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api", tags=["review"], route_class=BodyCapturingRoute
)


async def _read_image(
    image: UploadFile | None, settings: Settings
) -> tuple[bytes, str]:
    """Validate the upload and return its bytes and content type."""
    if image is None:
        raise DomainError(
            ErrorKind.INVALID_PARAMETERS, "An image file is required"
        )
    content_type = image.content_type or ""
    if not content_type.startswith("image/"):
        raise DomainError(
            ErrorKind.INVALID_PARAMETERS,
            f"Unsupported content type: {content_type or 'unknown'}",
        )
    data = await image.read()
    if not data:
        raise DomainError(
            ErrorKind.INVALID_PARAMETERS, "The uploaded image is empty"
        )
    if len(data) > settings.max_upload_bytes:
        raise DomainError(
            ErrorKind.INVALID_PARAMETERS,
            f"Image exceeds {settings.max_upload_bytes} bytes",
        )
    return data, content_type


def score_questions(
    items: list[QuestionResult], threshold: float
) -> list[ScoredQuestion]:
    """Attach answer/correct-answer similarity to each question."""
    scored: list[ScoredQuestion] = []
    for item in items:
        similarity = text_similarity(item.answer, item.correct_answer)
        scored.append(
            ScoredQuestion(
                **item.model_dump(),
                similarity=similarity,
                match=similarity >= threshold,
            )
        )
    return scored


def parse_review(content: str) -> list[QuestionResult]:
    """Recover the per-question list from a raw model completion."""
    try:
        data: Any = extract_json(content)
    except ParseFailure as exc:
        raise DomainError(
            ErrorKind.VISION_MODEL,
            "Vision model returned unparseable output",
            cause=exc,
        ) from exc

    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise DomainError(
            ErrorKind.VISION_MODEL,
            f"Expected a JSON array, got {type(data).__name__}",
        )
    try:
        return [QuestionResult.model_validate(item) for item in data]
    except ValidationError as exc:
        raise DomainError(
            ErrorKind.VISION_MODEL,
            "Vision model output does not match the grading format",
            cause=exc,
        ) from exc


@router.post("/review")
async def review(
    image: UploadFile | None = File(
        default=None, description="Answer sheet image"
    ),
    settings: Settings = Depends(get_settings),
    service: ReviewService = Depends(get_review_service),
) -> str:
    """Grade an uploaded answer sheet; returns the model's raw output."""
    data, content_type = await _read_image(image, settings)
    return await service.review(data, content_type)


@router.post("/review/structured")
async def review_structured(
    image: UploadFile | None = File(
        default=None, description="Answer sheet image"
    ),
    settings: Settings = Depends(get_settings),
    service: ReviewService = Depends(get_review_service),
    metrics: MetricsRegistry = Depends(get_metrics),
) -> StructuredReview:
    """Grade an answer sheet and return per-question results."""
    data, content_type = await _read_image(image, settings)
    content = await service.review(data, content_type)

    with metrics.timed(METRIC_EXTRACT):
        items = parse_review(content)
    questions = score_questions(items, settings.answer_match_threshold)
    correct = sum(1 for q in questions if q.result)

    logger.info(
        "event=review_structured questions=%d correct=%d",
        len(questions),
        correct,
    )
    return StructuredReview(
        questions=questions, total=len(questions), correct=correct
    )


@router.post("/similarity")
def similarity(
    body: SimilarityRequest,
    settings: Settings = Depends(get_settings),
) -> SimilarityResponse:
    """Whitespace-normalized edit-distance similarity of two texts."""
    threshold = (
        body.threshold
        if body.threshold is not None
        else settings.answer_match_threshold
    )
    score = text_similarity(body.text1, body.text2)
    return SimilarityResponse(similarity=score, match=score >= threshold)
