"""Request logging middleware and loguru setup."""

import sys
import time
import uuid

from fastapi import FastAPI, Request, Response
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from expertqa.config import settings

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id and bind it to every log line it produces.

    Lifecycle transitions logged while handling the request therefore carry
    the same ``request_id`` and ``user_id`` as the access log entries.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        with logger.contextualize(
            request_id=request_id,
            user_id=request.headers.get("X-User-Id"),
        ):
            started = time.perf_counter()
            logger.info("Request started", method=request.method, path=request.url.path)

            response = await call_next(request)

            logger.info(
                "Request completed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def configure_logging() -> None:
    """Configure loguru: coloured lines in development, JSON in production."""
    logger.remove()
    logger.add(
        sink=sys.stderr,
        colorize=not settings.is_production,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "{extra} | "
            "<level>{message}</level>"
        ),
        level="DEBUG" if settings.debug else "INFO",
        serialize=settings.is_production,
    )


def register_middleware(app: FastAPI) -> None:
    """Register all middleware with the app."""
    app.add_middleware(RequestLoggingMiddleware)
