"""Mapping of catalog errors to HTTP responses.

Failure bodies have the shape ``{"message": ..., "errors": [...]}``;
``errors`` is present only when there are field or image details.
"""
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.errors import (
    ConversionError,
    InternalError,
    InvalidImageError,
    NotFoundError,
    ValidationError,
)
from app.core.logging import get_logger

logger = get_logger(__name__)

WRITE_METHODS = {"POST", "PUT", "PATCH", "DELETE"}


def _context(request: Request) -> dict:
    return {
        "request_id": getattr(request.state, "request_id", None),
        "method": request.method,
        "path": request.url.path,
    }


async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    logger.info(f"Validation failed: {exc.message}", extra=_context(request))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": exc.message, "errors": [error.to_dict() for error in exc.errors]},
    )


async def handle_invalid_image(request: Request, exc: InvalidImageError) -> JSONResponse:
    logger.info(f"Images rejected: {len(exc.issues)} invalid", extra=_context(request))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": exc.message, "errors": [issue.to_dict() for issue in exc.issues]},
    )


async def handle_not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    content = {"message": exc.message}
    if exc.ids:
        content["ids"] = exc.ids
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=content)


async def handle_conversion_error(request: Request, exc: ConversionError) -> JSONResponse:
    """Unknown currency: the client's fault on writes, unexpected on reads."""
    if request.method in WRITE_METHODS:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"message": exc.message},
        )
    logger.error(f"Currency conversion failed on read: {exc.message}", extra=_context(request))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Failed to convert prices"},
    )


async def handle_internal_error(request: Request, exc: InternalError) -> JSONResponse:
    logger.error(f"Internal error: {exc.message}", extra=_context(request), exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error"},
    )


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body") or "body",
            "message": error.get("msg", "invalid value"),
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Invalid request", "errors": errors},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationError, handle_validation_error)
    app.add_exception_handler(InvalidImageError, handle_invalid_image)
    app.add_exception_handler(NotFoundError, handle_not_found)
    app.add_exception_handler(ConversionError, handle_conversion_error)
    app.add_exception_handler(InternalError, handle_internal_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
