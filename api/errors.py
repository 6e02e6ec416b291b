"""
Exception handlers mapping reporting failures to HTTP responses.

Status codes come from the exception classes (src/reporting/errors.py).
Data integrity failures are logged in full and returned with a generic
message, like any other internal error.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from api.middleware import get_request_id
from src.reporting.errors import DataIntegrityError, ReportingError

logger = logging.getLogger(__name__)

INTEGRITY_DETAIL = "Stored voyage data is inconsistent. Please contact support with the request ID."


async def reporting_error_handler(request: Request, exc: ReportingError) -> JSONResponse:
    request_id = get_request_id()
    if isinstance(exc, DataIntegrityError):
        logger.error(f"Data integrity error on {request.method} {request.url.path}: {exc.message}")
        detail = INTEGRITY_DETAIL
    else:
        logger.info(f"{exc.kind} on {request.method} {request.url.path}: {exc.message}")
        detail = exc.message

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.kind,
            "detail": detail,
            "fields": list(getattr(exc, "fields", []) or []),
            "request_id": request_id,
        },
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning(f"Validation error on {request.method} {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={"error": "validation_error", "detail": jsonable_encoder(exc.errors())},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ReportingError, reporting_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
