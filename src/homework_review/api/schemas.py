"""Request/response schemas for the HTTP API."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from homework_review.constants import MAX_COMPARE_CHARS


class QuestionResult(BaseModel):
    """One graded question as reported by the vision model."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    result: bool
    question: str = ""
    answer: str = ""
    correct_answer: str = Field(default="", alias="correctAnswer")

    @field_validator(
        "id", "question", "answer", "correct_answer", mode="before"
    )
    @classmethod
    def _coerce_text(cls, v: Any) -> Any:
        """Models emit numeric ids/answers and nulls; keep them as text."""
        if v is None:
            return ""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class ScoredQuestion(QuestionResult):
    """QuestionResult plus the textual answer similarity."""

    similarity: float = Field(ge=0.0, le=1.0)
    match: bool


class StructuredReview(BaseModel):
    """Response body for POST /api/review/structured."""

    questions: list[ScoredQuestion]
    total: int
    correct: int


class SimilarityRequest(BaseModel):
    """Request body for POST /api/similarity."""

    text1: str = Field(max_length=MAX_COMPARE_CHARS)
    text2: str = Field(max_length=MAX_COMPARE_CHARS)
    threshold: float | None = Field(default=None, ge=0.0, le=1.0)


class SimilarityResponse(BaseModel):
    similarity: float
    match: bool


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: str


class MetricsResponse(BaseModel):
    metrics: dict[str, dict[str, Any]]
