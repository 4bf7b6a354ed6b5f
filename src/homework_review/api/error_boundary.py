"""Single failure boundary for the request pipeline.

Anything that escapes a route ends up in ``DiagnosticReporter``:

- ``HTTPException``, ``RequestValidationError`` and ``DomainError``
  through exception handlers (Starlette's ExceptionMiddleware)
- everything else through ``ErrorBoundaryMiddleware``

Routes never catch-and-respond themselves. Routers built with
``route_class=BodyCapturingRoute`` keep their JSON body on
``request.state`` so a failing request logs what it was sent.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Coroutine
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.exception_handlers import http_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.routing import APIRoute
from starlette.exceptions import HTTPException
from starlette.middleware.base import (
    BaseHTTPMiddleware,
    RequestResponseEndpoint,
)
from starlette.responses import JSONResponse
from starlette.types import ASGIApp

from homework_review.resilience.diagnostics import DiagnosticReporter
from homework_review.resilience.errors import DomainError

logger = logging.getLogger(__name__)


class BodyCapturingRoute(APIRoute):
    """APIRoute that stores the raw JSON body as ``request.state.body``.

    ``request.state`` lives in the ASGI scope, so the exception
    handlers and the middleware see it too. Multipart uploads are
    skipped.
    """

    def get_route_handler(
        self,
    ) -> Callable[[Request], Coroutine[Any, Any, Response]]:
        handler = super().get_route_handler()

        async def capture(request: Request) -> Response:
            content_type = request.headers.get("content-type", "")
            if content_type.startswith("application/json"):
                # Request.body() caches, so the handler can read it again
                request.state.body = await request.body()
            return await handler(request)

        return capture


def request_url(request: Request) -> str:
    """Path plus query string, as the client sent it."""
    url = request.url.path
    if request.url.query:
        url += f"?{request.url.query}"
    return url


def _decode_body(raw: bytes) -> Any:
    try:
        return json.loads(raw)
    except ValueError:
        return raw.decode("utf-8", errors="replace")


def request_payload(
    request: Request, exc: BaseException
) -> dict[str, Any] | None:
    """Best-effort request context for the debug log."""
    payload: dict[str, Any] = {}
    if isinstance(exc, RequestValidationError) and exc.body is not None:
        payload["body"] = exc.body
    else:
        raw = getattr(request.state, "body", None)
        if raw:
            payload["body"] = _decode_body(raw)
    if request.path_params:
        payload["params"] = dict(request.path_params)
    if request.query_params:
        payload["query"] = dict(request.query_params)
    return payload or None


async def respond(
    reporter: DiagnosticReporter, request: Request, exc: Exception
) -> Response:
    record = reporter.report(
        exc,
        request.method,
        request_url(request),
        request_payload(request, exc),
    )
    if record is not None:
        return JSONResponse(
            status_code=record.status_code,
            content=record.to_wire(),
        )
    if not isinstance(exc, HTTPException):
        # Only HTTPException is ever passed through
        raise exc
    return await http_exception_handler(request, exc)


class ErrorBoundaryMiddleware(BaseHTTPMiddleware):
    """Catch-all for exceptions no handler claimed."""

    def __init__(self, app: ASGIApp, reporter: DiagnosticReporter) -> None:
        super().__init__(app)
        self._reporter = reporter

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:  # noqa: BLE001
            return await respond(self._reporter, request, exc)


def install_error_boundary(
    app: FastAPI, reporter: DiagnosticReporter | None = None
) -> DiagnosticReporter:
    """Route every failure on ``app`` through one reporter."""
    reporter = reporter or DiagnosticReporter()

    async def _handle(request: Request, exc: Exception) -> Response:
        return await respond(reporter, request, exc)

    app.add_exception_handler(HTTPException, _handle)
    app.add_exception_handler(RequestValidationError, _handle)
    app.add_exception_handler(DomainError, _handle)
    app.add_middleware(ErrorBoundaryMiddleware, reporter=reporter)
    return reporter
