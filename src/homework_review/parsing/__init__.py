"""Tolerant recovery of structured data from model completions."""

from homework_review.parsing.json_extract import ParseFailure, extract_json

__all__ = ["ParseFailure", "extract_json"]
