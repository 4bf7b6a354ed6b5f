"""Recover a JSON value from noisy, markdown-wrapped model output.

Cleanup stages run from least to most aggressive, and only after a
direct parse fails, so well-formed input is never touched:

1. direct ``json.loads``
2. strip a leading/trailing code fence
3. drop markdown heading lines and fully-bold lines
4. slice from the first ``[`` to the last ``]``
5. parse again, or raise ``ParseFailure``
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from homework_review.constants import (
    CLEANED_PREVIEW_CHARS,
    PARSE_PREVIEW_CHARS,
)

logger = logging.getLogger(__name__)

_FENCE_OPEN_RE = re.compile(r"^```(?:[\w+-]+)?[ \t]*\r?\n?", re.IGNORECASE)
_FENCE_CLOSE_RE = re.compile(r"\n?\s*```\s*$")
_HEADING_LINE_RE = re.compile(r"^#+.*(?:\n|$)", re.MULTILINE)
_BOLD_LINE_RE = re.compile(r"^\*\*.*\*\*[ \t]*(?:\n|$)", re.MULTILINE)


def _preview(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


class ParseFailure(ValueError):
    """No valid JSON could be recovered from the content.

    Carries truncated previews of the original and cleaned content;
    the underlying ``json.JSONDecodeError`` is chained as ``__cause__``.
    """

    def __init__(self, original: str, cleaned: str, reason: str) -> None:
        super().__init__(f"Failed to parse JSON response: {reason}")
        self.original_preview = _preview(original, PARSE_PREVIEW_CHARS)
        self.cleaned_preview = _preview(cleaned, PARSE_PREVIEW_CHARS)


def strip_fences(text: str) -> str:
    """Remove a wrapping ```` ```json ```` ... ```` ``` ```` pair."""
    cleaned = _FENCE_OPEN_RE.sub("", text.strip(), count=1)
    return _FENCE_CLOSE_RE.sub("", cleaned, count=1)


def strip_markup(text: str) -> str:
    """Drop heading lines and lines fully wrapped in ``**``."""
    text = _HEADING_LINE_RE.sub("", text)
    return _BOLD_LINE_RE.sub("", text)


def slice_array(text: str) -> str:
    """Narrow to the outermost ``[...]`` span when one exists."""
    start = text.find("[")
    end = text.rfind("]")
    if start != -1 and end != -1 and end > start:
        return text[start : end + 1]
    return text


def extract_json(content: str) -> Any:
    """Parse ``content`` as JSON, cleaning it up if the direct parse fails.

    Raises:
        ParseFailure: nothing parseable remains after cleanup.
    """
    try:
        return json.loads(content)
    except json.JSONDecodeError:
        logger.debug("event=direct_parse_failed length=%d", len(content))

    cleaned = slice_array(strip_markup(strip_fences(content)))
    logger.debug(
        "event=cleaned_preview content=%r",
        _preview(cleaned, CLEANED_PREVIEW_CHARS),
    )

    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as exc:
        failure = ParseFailure(content, cleaned, exc.msg)
        logger.error(
            "event=parse_failed error=%s original=%r cleaned=%r",
            exc,
            failure.original_preview,
            failure.cleaned_preview,
        )
        raise failure from exc
