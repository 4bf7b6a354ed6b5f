"""Failure reporting: one wire record for the client, rich logs for operators.

Every failure that reaches the error boundary gets a fresh trace id.
The client sees only the ``DiagnosticRecord``; the stack, the cause
and the request payload go to the log, bracketed by
``>>>`` / ``<<< [trace_id] === path`` markers so multi-line output
stays greppable per request.
"""

from __future__ import annotations

import contextlib
import json
import logging
import traceback
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from http import HTTPStatus
from typing import Any

from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException

from homework_review.constants import PASSTHROUGH_STATUSES
from homework_review.resilience.errors import DomainError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiagnosticRecord:
    """Client-visible error body."""

    status_code: int
    timestamp: str  # ISO-8601, UTC
    path: str  # "[METHOD]URL"
    trace_id: str
    message: str
    error: str

    def to_wire(self) -> dict[str, Any]:
        return {
            "statusCode": self.status_code,
            "timestamp": self.timestamp,
            "path": self.path,
            "traceId": self.trace_id,
            "message": self.message,
            "error": self.error,
        }


def format_path(method: str, url: str) -> str:
    return f"[{method}]{url}"


def is_passthrough(exc: BaseException) -> bool:
    """Framework routing errors (403/404/405) keep their default body."""
    return (
        isinstance(exc, HTTPException)
        and exc.status_code in PASSTHROUGH_STATUSES
    )


def status_code_for(exc: BaseException) -> int:
    """Explicit status carried by the exception, else 500."""
    if isinstance(exc, RequestValidationError):
        return int(HTTPStatus.UNPROCESSABLE_ENTITY)
    status = getattr(exc, "status_code", None)
    if isinstance(status, int):
        return status
    return int(HTTPStatus.INTERNAL_SERVER_ERROR)


def kind_name(exc: BaseException) -> str:
    if isinstance(exc, DomainError):
        return exc.label
    return type(exc).__name__


def message_for(exc: BaseException) -> str:
    if isinstance(exc, DomainError):
        return exc.message
    if isinstance(exc, HTTPException):
        return str(exc.detail)
    if isinstance(exc, RequestValidationError):
        return "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}"
            for err in exc.errors()
        )
    return str(exc) or type(exc).__name__


def error_label_for(exc: BaseException) -> str:
    """Declared description, else kind label, else status phrase."""
    description = getattr(exc, "description", None)
    if isinstance(description, str) and description:
        return description
    if isinstance(exc, DomainError):
        return exc.label
    if isinstance(exc, HTTPException):
        try:
            return HTTPStatus(exc.status_code).phrase
        except ValueError:
            pass
    return type(exc).__name__


def cause_of(exc: BaseException) -> BaseException | None:
    cause = getattr(exc, "cause", None)
    if isinstance(cause, BaseException):
        return cause
    return exc.__cause__


def _format_trace(exc: BaseException) -> str:
    # chain=False: the cause gets its own log line, one level deep
    return "".join(
        traceback.format_exception(exc, chain=False)
    ).rstrip()


def _serialize_payload(payload: Any) -> str:
    try:
        return json.dumps(payload, ensure_ascii=False)
    except (TypeError, ValueError):
        return repr(payload)


class DiagnosticReporter:
    """Turns any exception into a ``DiagnosticRecord`` plus log lines.

    Safe to call concurrently; holds no per-request state. Never
    raises: a failure while writing logs only degrades log detail.
    """

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logger

    def report(
        self,
        exc: BaseException,
        method: str,
        url: str,
        payload: Any = None,
    ) -> DiagnosticRecord | None:
        """Classify ``exc`` and emit logs.

        Returns None for passthrough routing errors; the caller then
        falls back to the framework's default response.
        """
        path = format_path(method, url)

        if is_passthrough(exc):
            try:
                self._log.info(
                    "%s: %s === %s", kind_name(exc), message_for(exc), path
                )
            except Exception:  # noqa: BLE001
                self._warn("event=notice_failed path=%s", path)
            return None

        trace_id = str(uuid.uuid4())
        record = self._build_record(exc, path, trace_id)

        try:
            self._log_failure(exc, record, payload)
        except Exception:  # noqa: BLE001
            self._warn(
                "event=diagnostic_logging_failed trace_id=%s path=%s",
                trace_id,
                path,
            )
        return record

    def _warn(self, msg: str, *args: object) -> None:
        # The logger itself may be what failed
        with contextlib.suppress(Exception):
            self._log.warning(msg, *args)

    def _build_record(
        self, exc: BaseException, path: str, trace_id: str
    ) -> DiagnosticRecord:
        status_code = status_code_for(exc)
        try:
            message = message_for(exc)
            error = error_label_for(exc)
        except Exception:  # noqa: BLE001
            message = type(exc).__name__
            error = type(exc).__name__
        return DiagnosticRecord(
            status_code=status_code,
            timestamp=datetime.now(UTC).isoformat(),
            path=path,
            trace_id=trace_id,
            message=message,
            error=error,
        )

    def _log_failure(
        self,
        exc: BaseException,
        record: DiagnosticRecord,
        payload: Any,
    ) -> None:
        head = (
            f"{kind_name(exc)}: {record.message} "
            f"=== [{record.trace_id}] === {record.path} >>>"
        )
        tail = f"<<< [{record.trace_id}] === {record.path}"

        self._log.error("%s\n%s\n%s", head, _format_trace(exc), tail)

        cause = cause_of(exc)
        if cause is not None:
            self._log.error("%s\n%s\n%s", head, _format_trace(cause), tail)

        if payload:
            self._log.debug(
                "request data:%s\n%s", _serialize_payload(payload), tail
            )
