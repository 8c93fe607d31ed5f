"""Exception handlers rendering errors as JSON."""

import structlog
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from clinic_scheduler.core.exceptions import AppException

logger = structlog.get_logger()


def _error_body(request: Request, error: str, message: object, **extra: object) -> dict:
    return {
        "error": error,
        "message": message,
        "path": str(request.url),
        **extra,
    }


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Handle application exceptions such as booking conflicts.

    Args:
        request: Request object
        exc: Application exception

    Returns:
        JSON error response
    """
    logger.info(
        "request_rejected",
        error=exc.__class__.__name__,
        status_code=exc.status_code,
        message=exc.message,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, exc.__class__.__name__, exc.message),
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """Handle HTTP exceptions, keeping headers such as WWW-Authenticate."""
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, "HTTPException", exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Handle request validation errors with field-level details."""
    return JSONResponse(
        status_code=422,
        content=_error_body(
            request,
            "ValidationError",
            "Request validation failed",
            details=jsonable_errors(exc),
        ),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions; details are logged, never returned."""
    logger.exception("unhandled_exception", error=str(exc))
    return JSONResponse(
        status_code=500,
        content=_error_body(request, "InternalServerError", "An unexpected error occurred"),
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    """Drop non-serializable context (e.g. the original ValueError) from errors."""
    errors = []
    for error in exc.errors():
        cleaned = {key: value for key, value in error.items() if key != "ctx"}
        if "ctx" in error:
            cleaned["ctx"] = {key: str(value) for key, value in error["ctx"].items()}
        errors.append(cleaned)
    return errors
