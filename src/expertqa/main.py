"""ExpertQA FastAPI Application Entry Point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from expertqa.config import settings
from expertqa.db import dispose_engine
from expertqa.exception_handlers import register_exception_handlers
from expertqa.middleware import configure_logging, register_middleware
from expertqa.routers import (
    answerers_router,
    answers_router,
    maintenance_router,
    question_types_router,
    questions_router,
    webhooks_router,
)
from expertqa.schemas import HealthResponse
from expertqa.services.scheduler import SweepScheduler
from expertqa.services.sweeper import MaintenanceSweeper


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan context manager."""
    configure_logging()
    logger.info(
        "Application starting",
        environment=settings.environment,
        debug=settings.debug,
        deadline_anchor=settings.deadline_anchor,
    )

    scheduler = None
    if settings.sweep_enabled:
        scheduler = SweepScheduler(
            sweeper=MaintenanceSweeper(),
            interval_seconds=settings.sweep_interval_seconds,
        )
        scheduler.start()

    yield

    if scheduler is not None:
        await scheduler.stop()
    await dispose_engine()
    logger.info("Application shutting down")


app = FastAPI(
    title="ExpertQA API",
    description="Paid expert Q&A marketplace: question lifecycle and SLA enforcement",
    version="0.1.0",
    lifespan=lifespan,
)

register_middleware(app)

register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.client_origin],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(questions_router, prefix="/api")
app.include_router(answers_router, prefix="/api")
app.include_router(question_types_router, prefix="/api")
app.include_router(answerers_router, prefix="/api")
app.include_router(webhooks_router, prefix="/api")
app.include_router(maintenance_router, prefix="/api")


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="Health check endpoint",
)
async def health_check() -> HealthResponse:
    """Health check endpoint for container orchestration."""
    return HealthResponse(
        status="healthy",
        service="expertqa-api",
        version="0.1.0",
    )
