"""Vision-model grading call.

Sends an uploaded answer sheet (as a base64 data URL) together with
the grading prompt to an OpenAI-compatible vision endpoint and returns
the model's raw text completion.
"""

from __future__ import annotations

import base64
import logging
from collections.abc import Callable, Coroutine
from typing import TYPE_CHECKING, Any

import litellm
from litellm.exceptions import RateLimitError as LitellmRateLimitError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from homework_review.config import Settings
from homework_review.constants import (
    ERROR_TRUNCATION_CHARS,
    LLM_MAX_OUTPUT_TOKENS,
    METRIC_VISION_CALL,
    RETRY_INITIAL_WAIT,
    RETRY_MAX_ATTEMPTS,
    RETRY_MAX_WAIT,
)
from homework_review.observability.metrics import MetricsRegistry
from homework_review.prompts import GRADING_PROMPT
from homework_review.resilience.errors import DomainError, ErrorKind

logger = logging.getLogger(__name__)

# litellm stubs have partially unknown types; typed alias
if TYPE_CHECKING:
    _acompletion: Callable[..., Coroutine[Any, Any, Any]]
else:
    _acompletion = litellm.acompletion


def encode_image(data: bytes, mime_type: str) -> str:
    """Encode raw image bytes as a ``data:`` URL."""
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def build_messages(image_url: str) -> list[dict[str, Any]]:
    return [
        {
            "role": "user",
            "content": [
                {"type": "image_url", "image_url": {"url": image_url}},
                {"type": "text", "text": GRADING_PROMPT},
            ],
        }
    ]


@retry(
    stop=stop_after_attempt(RETRY_MAX_ATTEMPTS),
    wait=wait_exponential_jitter(
        initial=RETRY_INITIAL_WAIT, max=RETRY_MAX_WAIT
    ),
    retry=retry_if_exception_type(LitellmRateLimitError),
    reraise=True,
)
async def _call_vision_model(
    settings: Settings, messages: list[dict[str, Any]]
) -> str:
    """Single completion call; rate-limit errors are retried with jitter."""
    response: Any = await _acompletion(
        model=settings.vision_model,
        messages=messages,
        api_base=settings.vision_api_base,
        api_key=settings.ark_api_key,
        timeout=settings.llm_timeout_seconds,
        max_tokens=LLM_MAX_OUTPUT_TOKENS,
    )
    return str(response.choices[0].message.content or "")


class ReviewService:
    """Grades an answer-sheet image with the configured vision model."""

    def __init__(self, settings: Settings, metrics: MetricsRegistry) -> None:
        self._settings = settings
        self._metrics = metrics

    async def review(self, data: bytes, mime_type: str) -> str:
        """Return the model's raw grading output for one image.

        Raises:
            DomainError: INVALID_INVOCATION when no API key is configured,
                VISION_MODEL when the call fails.
        """
        if not self._settings.ark_api_key:
            raise DomainError(
                ErrorKind.INVALID_INVOCATION,
                "ARK_API_KEY is not configured",
            )

        messages = build_messages(encode_image(data, mime_type))
        try:
            with self._metrics.timed(METRIC_VISION_CALL):
                content = await _call_vision_model(self._settings, messages)
        except Exception as exc:
            detail = str(exc)[:ERROR_TRUNCATION_CHARS]
            logger.warning(
                "event=vision_call_failed model=%s error=%s",
                self._settings.vision_model,
                detail,
            )
            raise DomainError(
                ErrorKind.VISION_MODEL,
                f"Vision model call failed: {detail}",
                cause=exc,
            ) from exc

        logger.info(
            "event=vision_call_done model=%s bytes=%d response_len=%d",
            self._settings.vision_model,
            len(data),
            len(content),
        )
        return content
