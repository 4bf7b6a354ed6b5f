"""Levenshtein distance and whitespace-normalized text similarity.

Used to compare a model-reported student answer against the
correct answer. Comparison is by raw code point: no case folding,
no Unicode normalization.
"""

from __future__ import annotations

import re

from homework_review.constants import DEFAULT_MATCH_THRESHOLD

_WHITESPACE_RE = re.compile(r"\s+")


def levenshtein_distance(a: str, b: str) -> int:
    """Minimum single-character insertions, deletions or substitutions
    needed to turn ``a`` into ``b``.

    Keeps two rows of the DP table: ``prev[j]`` is the distance between
    the first i - 1 characters of ``a`` and the first j characters of
    ``b``. Memory is O(min(len(a), len(b))).
    """
    if len(b) > len(a):
        a, b = b, a

    prev = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        curr = [i]
        for j, cb in enumerate(b, start=1):
            curr.append(
                min(
                    prev[j] + 1,  # deletion
                    curr[j - 1] + 1,  # insertion
                    prev[j - 1] + (ca != cb),  # substitution / match
                )
            )
        prev = curr

    return prev[-1]


def normalize_text(text: str) -> str:
    """Collapse whitespace runs (newlines included) and trim."""
    return _WHITESPACE_RE.sub(" ", text).strip()


def text_similarity(text1: str | None, text2: str | None) -> float:
    """Similarity in [0, 1]; 1.0 means identical after normalization.

    Empty or missing input on either side scores 0. The longer
    normalized text is the denominator so the score does not
    depend on argument order.
    """
    if not text1 or not text2:
        return 0.0

    clean1 = normalize_text(text1)
    clean2 = normalize_text(text2)
    if not clean1 or not clean2:
        return 0.0

    max_length = max(len(clean1), len(clean2))
    distance = levenshtein_distance(clean1, clean2)
    return 1 - distance / max_length


def is_match(
    text1: str | None,
    text2: str | None,
    threshold: float = DEFAULT_MATCH_THRESHOLD,
) -> bool:
    """True when the two texts are at least ``threshold`` similar."""
    return text_similarity(text1, text2) >= threshold
