"""Pydantic schemas for the ExpertQA API."""

from expertqa.schemas.answer import AnswerResponse, AnswerReviewRequest, AnswerSubmissionRequest
from expertqa.schemas.common import ErrorResponse, HealthResponse, StateConflictResponse
from expertqa.schemas.question import (
    CheckoutSessionResponse,
    QuestionCreateRequest,
    QuestionDetailResponse,
    QuestionListResponse,
    QuestionResponse,
)

__all__ = [
    "AnswerResponse",
    "AnswerReviewRequest",
    "AnswerSubmissionRequest",
    "CheckoutSessionResponse",
    "ErrorResponse",
    "HealthResponse",
    "QuestionCreateRequest",
    "QuestionDetailResponse",
    "QuestionListResponse",
    "QuestionResponse",
    "StateConflictResponse",
]
