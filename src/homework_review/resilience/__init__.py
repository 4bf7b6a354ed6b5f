"""Error taxonomy and failure reporting."""

from homework_review.resilience.diagnostics import (
    DiagnosticRecord,
    DiagnosticReporter,
)
from homework_review.resilience.errors import (
    DomainError,
    ErrorKind,
    StatusClass,
)

__all__ = [
    "DiagnosticRecord",
    "DiagnosticReporter",
    "DomainError",
    "ErrorKind",
    "StatusClass",
]
