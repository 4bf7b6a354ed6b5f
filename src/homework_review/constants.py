"""Shared constants: single source of truth for cross-module values."""

from __future__ import annotations

# ── Diagnostics ──────────────────────────────────────────

PARSE_PREVIEW_CHARS = 500
CLEANED_PREVIEW_CHARS = 200
ERROR_TRUNCATION_CHARS = 200

# Framework-native statuses passed through untouched by the error boundary
PASSTHROUGH_STATUSES = frozenset({403, 404, 405})

# ── Similarity ───────────────────────────────────────────

DEFAULT_MATCH_THRESHOLD = 0.8

# Per-text cap for /api/similarity; comparison cost is O(m*n)
MAX_COMPARE_CHARS = 1_000

# ── Vision model ─────────────────────────────────────────

DEFAULT_VISION_API_BASE = "https://ark.cn-beijing.volces.com/api/v3"
DEFAULT_VISION_MODEL = "openai/doubao-seed-1-6-vision-250815"
LLM_MAX_OUTPUT_TOKENS = 4096

RETRY_MAX_ATTEMPTS = 3
RETRY_INITIAL_WAIT = 2
RETRY_MAX_WAIT = 10

# ── Uploads ──────────────────────────────────────────────

MAX_UPLOAD_BYTES = 25 * 1024 * 1024
IMAGE_FIELD_NAME = "image"

# ── Metric labels ────────────────────────────────────────

METRIC_VISION_CALL = "review.vision_call"
METRIC_EXTRACT = "review.extract"
