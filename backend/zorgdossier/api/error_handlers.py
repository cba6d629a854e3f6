"""Error Handlers — every failure leaves the API in the same error envelope.

Invariants:
    - ZorgdossierError → its own http_status and to_response() body
    - RequestValidationError → 400 VALIDATION_ERROR with one detail per field
    - Any other exception → 500 INTERNAL_ERROR without internal details
    - 5xx logged at error level, 4xx at warning

Design Decisions:
    - Schema and unexpected failures are converted into ZorgdossierError first,
      so all three paths share one envelope builder
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from zorgdossier.core.errors import (
    ErrorCategory, ErrorContext, ErrorSeverity, ZorgdossierError,
)

logger = logging.getLogger(__name__)


def _respond(request: Request, error: ZorgdossierError) -> JSONResponse:
    log = logger.error if error.http_status >= 500 else logger.warning
    log(
        f"{error.code} on {request.method} {request.url.path}: {error.message}",
        extra={
            "error_code": error.code,
            "path": request.url.path,
            "client_id": error.context.client_id,
            "application_id": error.context.application_id,
        },
    )
    return JSONResponse(status_code=error.http_status, content=error.to_response())


def validation_details(exc: RequestValidationError) -> list[dict]:
    return [
        {
            "field": ".".join(str(part) for part in e["loc"]),
            # model_validator messages arrive as "Value error, <message>"
            "message": e["msg"].removeprefix("Value error, "),
            "type": e["type"],
        }
        for e in exc.errors()
    ]


def register_error_handlers(app: FastAPI) -> None:

    @app.exception_handler(ZorgdossierError)
    async def on_domain_error(request: Request, exc: ZorgdossierError):
        return _respond(request, exc)

    @app.exception_handler(RequestValidationError)
    async def on_validation_error(request: Request, exc: RequestValidationError):
        details = validation_details(exc)
        message = details[0]["message"] if len(details) == 1 else "Invalid request data"
        return _respond(request, ZorgdossierError(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, ErrorContext(operation=request.url.path), 400, details,
        ))

    @app.exception_handler(Exception)
    async def on_unexpected_error(request: Request, exc: Exception):
        logger.exception(f"Unhandled {type(exc).__name__} on {request.url.path}")
        return _respond(request, ZorgdossierError(
            "An unexpected error occurred", "INTERNAL_ERROR", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, http_status=500,
        ))
