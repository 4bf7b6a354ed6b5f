"""Text comparison: edit distance and normalized similarity."""

from homework_review.comparison.similarity import (
    is_match,
    levenshtein_distance,
    normalize_text,
    text_similarity,
)

__all__ = [
    "is_match",
    "levenshtein_distance",
    "normalize_text",
    "text_similarity",
]
