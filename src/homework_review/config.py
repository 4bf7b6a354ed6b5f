"""Environment-based configuration."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings

from homework_review.constants import (
    DEFAULT_MATCH_THRESHOLD,
    DEFAULT_VISION_API_BASE,
    DEFAULT_VISION_MODEL,
    MAX_UPLOAD_BYTES,
)

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Reads from .env file and environment variables."""

    # Vision model provider (OpenAI-compatible endpoint)
    ark_api_key: str = ""
    vision_api_base: str = DEFAULT_VISION_API_BASE
    vision_model: str = DEFAULT_VISION_MODEL
    llm_timeout_seconds: int = 120

    # Review
    max_upload_bytes: int = MAX_UPLOAD_BYTES
    answer_match_threshold: float = DEFAULT_MATCH_THRESHOLD

    # Logging
    log_level: str = "INFO"

    # API
    cors_origins: str = "*"
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 3000

    @field_validator("answer_match_threshold")
    @classmethod
    def _validate_threshold(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(
                "answer_match_threshold must be between 0 and 1"
            )
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            level = v.strip().upper()
            if level not in logging.getLevelNamesMapping():
                raise ValueError(f"Unknown log level: {v!r}")
            return level
        return v

    @property
    def cors_origin_list(self) -> list[str]:
        """Parsed CORS origins; ``["*"]`` reflects any origin."""
        return [
            o.strip() for o in self.cors_origins.split(",") if o.strip()
        ]

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "",
        "extra": "ignore",
    }
