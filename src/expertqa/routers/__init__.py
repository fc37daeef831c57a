"""API routers."""

from expertqa.routers.answerers import router as answerers_router
from expertqa.routers.answers import router as answers_router
from expertqa.routers.maintenance import router as maintenance_router
from expertqa.routers.question_types import router as question_types_router
from expertqa.routers.questions import router as questions_router
from expertqa.routers.webhooks import router as webhooks_router

__all__ = [
    "answerers_router",
    "answers_router",
    "maintenance_router",
    "question_types_router",
    "questions_router",
    "webhooks_router",
]
