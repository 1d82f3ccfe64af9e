"""Error Handlers — every failure leaves the API in one JSON envelope.

Invariants:
    - Body shape is always {"error": {code, message, category, severity, ...}}
    - SchedulerError carries its own status; 4xx logs at WARNING, 5xx at ERROR
    - Request validation is a 400 whose details name fields without the
      leading "body"/"query"/"path" segment
    - Router-level HTTP errors (unknown path, wrong method) reuse the envelope
    - Anything else is a 500 with a fixed message; internals stay in the log
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from scheduler.core.errors import ErrorCategory, ErrorSeverity, SchedulerError

logger = logging.getLogger(__name__)

_HTTP_CODES = {
    status.HTTP_404_NOT_FOUND: ("NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND),
    status.HTTP_405_METHOD_NOT_ALLOWED: ("METHOD_NOT_ALLOWED", ErrorCategory.VALIDATION),
}


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SchedulerError, handle_scheduler_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_unexpected)


def _envelope(
    http_status: int,
    code: str,
    message: str,
    category: ErrorCategory,
    severity: ErrorSeverity,
    **extra,
) -> JSONResponse:
    body = {
        "code": code, "message": message,
        "category": category.value, "severity": severity.value,
        **extra,
    }
    return JSONResponse(status_code=http_status, content={"error": body})


async def handle_scheduler_error(request: Request, exc: SchedulerError) -> JSONResponse:
    level = logging.WARNING if exc.http_status < 500 else logging.ERROR
    logger.log(
        level, f"{exc.code} on {request.method} {request.url.path}: {exc.message}",
        extra={"error_code": exc.code, "path": request.url.path},
    )
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


async def handle_request_validation(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    details = [_field_detail(err) for err in exc.errors()]
    logger.warning(
        f"Rejected request on {request.url.path}: "
        f"{', '.join(d['field'] for d in details)}",
        extra={"error_code": "VALIDATION_ERROR", "path": request.url.path},
    )
    return _envelope(
        status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR", "Invalid request data",
        ErrorCategory.VALIDATION, ErrorSeverity.ERROR, details=details,
    )


async def handle_http_exception(
    request: Request, exc: StarletteHTTPException,
) -> JSONResponse:
    code, category = _HTTP_CODES.get(
        exc.status_code, ("HTTP_ERROR", ErrorCategory.INTERNAL),
    )
    return _envelope(
        exc.status_code, code, str(exc.detail), category, ErrorSeverity.WARNING,
    )


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}",
        exc_info=exc,
        extra={"path": request.url.path},
    )
    return _envelope(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR",
        "An unexpected error occurred",
        ErrorCategory.INTERNAL, ErrorSeverity.CRITICAL,
    )


def _field_detail(err: dict) -> dict:
    loc = err.get("loc", ())
    path = loc[1:] if len(loc) > 1 else loc
    return {
        "field": ".".join(str(part) for part in path),
        "message": err["msg"],
        "type": err["type"],
    }
