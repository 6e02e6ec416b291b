"""
HTTP middleware for the voyage reporting API.

Every request gets an ID (X-Request-ID, generated when the client sends
none) that is echoed on the response, attached to error bodies and written
into the JSON request log. Report writes (submit, approve, reject) are
logged with the report or vessel they touch so a voyage's history can be
followed through the logs.
"""
import json
import logging
import re
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from fastapi import FastAPI
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

SERVICE_NAME = "voyage-report-api"
REQUEST_ID_HEADER = "X-Request-ID"

# Set per request by RequestIdMiddleware
request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

_REVIEW_PATH = re.compile(r"^/api/reports/(?P<report_id>\d+)/(?P<action>approve|reject)$")


def get_request_id() -> Optional[str]:
    """Request ID of the request being handled, or None outside a request."""
    return request_id_ctx.get()


class StructuredLogger:
    """
    Writes one JSON object per log line.

    Each entry carries timestamp, level, message, service and the current
    request ID; keyword arguments become extra keys and None values are
    left out.
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def _emit(self, level: int, message: str, **fields):
        if not self.logger.isEnabledFor(level):
            return
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": logging.getLevelName(level),
            "message": message,
            "service": SERVICE_NAME,
            "request_id": get_request_id(),
        }
        entry.update(fields)
        self.logger.log(level, json.dumps({k: v for k, v in entry.items() if v is not None}, default=str))

    def debug(self, message: str, **fields):
        self._emit(logging.DEBUG, message, **fields)

    def info(self, message: str, **fields):
        self._emit(logging.INFO, message, **fields)

    def warning(self, message: str, **fields):
        self._emit(logging.WARNING, message, **fields)

    def error(self, message: str, **fields):
        self._emit(logging.ERROR, message, **fields)


request_logger = StructuredLogger("voyage_reports.requests")


def report_write_context(request: Request) -> Dict[str, object]:
    """Log fields describing a report write, empty for anything else."""
    if request.method != "POST":
        return {}
    path = request.url.path
    if path == "/api/reports":
        return {"action": "submit"}
    match = _REVIEW_PATH.match(path)
    if match:
        return {"action": match.group("action"), "report_id": int(match.group("report_id"))}
    return {}


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Binds the request ID for the duration of the request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        token = request_id_ctx.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_ctx.reset(token)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):

    def __init__(self, app, enable_hsts: bool = False):
        super().__init__(app)
        self.enable_hsts = enable_hsts

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"
        response.headers["Cache-Control"] = "no-store"
        if self.enable_hsts:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs every request except health probes.

    Report writes are logged at INFO with their action; reads at DEBUG to
    keep polling clients out of the default log. Responses with status 409
    (pending report, disallowed transition) are logged as warnings.
    """

    SKIP_PATHS = frozenset({"/api/health"})

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in self.SKIP_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        context = report_write_context(request)
        fields = {
            "method": request.method,
            "path": request.url.path,
            "query": str(request.query_params) or None,
            "client_ip": request.client.host if request.client else None,
            **context,
        }

        try:
            response = await call_next(request)
        except Exception as e:
            request_logger.error(
                "Request failed",
                error_type=type(e).__name__,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
                **fields,
            )
            raise

        fields["status_code"] = response.status_code
        fields["duration_ms"] = round((time.perf_counter() - started) * 1000, 2)
        if response.status_code == 409:
            request_logger.warning("Report rejected by workflow rules", **fields)
        elif context:
            request_logger.info(f"Report {context['action']} handled", **fields)
        else:
            request_logger.debug("Request handled", **fields)
        return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Last-resort handler: any exception escaping the routers becomes a 500
    with the request ID, and the exception message only in debug mode.
    """

    def __init__(self, app, debug: bool = False):
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            request_id = get_request_id()
            logging.getLogger(__name__).exception(
                f"Unhandled error on {request.method} {request.url.path} (request {request_id})"
            )
            detail = str(e) if self.debug else (
                "An internal error occurred. Please contact support with the request ID."
            )
            return JSONResponse(
                status_code=500,
                content={"error": "internal_error", "detail": detail, "fields": [], "request_id": request_id},
            )


def setup_middleware(app: FastAPI, debug: bool = False, enable_hsts: bool = False) -> None:
    """
    Install the middleware stack.

    Starlette runs middleware in reverse order of registration, so
    RequestIdMiddleware (added last) wraps everything else and the ID is
    available to the loggers and the 500 handler.
    """
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware, enable_hsts=enable_hsts)
    app.add_middleware(ErrorHandlingMiddleware, debug=debug)
    app.add_middleware(RequestIdMiddleware)
