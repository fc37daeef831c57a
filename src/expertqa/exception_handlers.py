"""Exception handlers for FastAPI application."""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from expertqa.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DomainValidationError,
    ExpertQAException,
    NotFoundError,
    StateConflictError,
    UpstreamError,
)

_STATUS_BY_EXCEPTION: list[tuple[type[ExpertQAException], int]] = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (DomainValidationError, status.HTTP_400_BAD_REQUEST),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (AuthorizationError, status.HTTP_403_FORBIDDEN),
    (StateConflictError, status.HTTP_409_CONFLICT),
    (UpstreamError, status.HTTP_502_BAD_GATEWAY),
]


def get_request_id(request: Request) -> str | None:
    """Extract request_id from request state if available."""
    return getattr(request.state, "request_id", None)


async def expertqa_exception_handler(
    request: Request,
    exc: ExpertQAException,
) -> JSONResponse:
    """Handle custom ExpertQA exceptions."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for exc_type, mapped_status in _STATUS_BY_EXCEPTION:
        if isinstance(exc, exc_type):
            status_code = mapped_status
            break

    return JSONResponse(
        status_code=status_code,
        content={
            "detail": exc.message,
            "error_code": exc.error_code,
            "request_id": get_request_id(request),
            **exc.details,
        },
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Handle Pydantic validation errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": "Validation error",
            "error_code": "VALIDATION_ERROR",
            "request_id": get_request_id(request),
            "errors": exc.errors(),
        },
    )


async def generic_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception(
        "Unhandled exception",
        request_id=get_request_id(request),
        error=f"{type(exc).__name__}: {exc}",
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal server error",
            "error_code": "INTERNAL_ERROR",
            "request_id": get_request_id(request),
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the app."""
    app.add_exception_handler(ExpertQAException, expertqa_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
