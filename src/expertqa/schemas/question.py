"""Pydantic schemas for question endpoints."""

from datetime import datetime

from pydantic import BaseModel, Field

from expertqa.models.question import QuestionStatus, RefundStatus
from expertqa.schemas.answer import AnswerResponse


class QuestionCreateRequest(BaseModel):
    """Request model for asking a question."""

    question_type_id: int = Field(..., ge=1, description="Question type to ask under")
    answerer_id: int = Field(..., ge=1, description="Answerer the question is for")
    content: str = Field(
        ...,
        min_length=1,
        max_length=5000,
        description="Question text",
    )
    choices: list[str] = Field(
        default_factory=list,
        description="Options for multiple-choice questions",
    )


class QuestionResponse(BaseModel):
    """Response model for a question and its lifecycle state."""

    id: int = Field(..., description="Question ID")
    question_type_id: int = Field(..., description="Question type ID")
    questioner_id: int = Field(..., description="Asking user ID")
    answerer_id: int = Field(..., description="Answering user ID")
    content: str = Field(..., description="Question text")
    choices: list[str] = Field(default_factory=list, description="Multiple-choice options")
    price_cents: int = Field(..., description="Price captured at creation")
    response_time_hours: int = Field(..., description="Response window captured at creation")
    status: QuestionStatus = Field(..., description="Lifecycle status")
    paid: bool = Field(..., description="Whether payment was confirmed")
    refund_status: RefundStatus = Field(..., description="Refund progress")
    created_at: datetime = Field(..., description="Submission timestamp")
    paid_at: datetime | None = Field(None, description="Payment confirmation timestamp")
    deadline_at: datetime | None = Field(None, description="Answer deadline")
    answered_at: datetime | None = Field(None, description="Answer timestamp")
    expired_at: datetime | None = Field(None, description="Expiry timestamp")

    model_config = {"from_attributes": True}


class QuestionDetailResponse(QuestionResponse):
    """Question together with its answer, if any."""

    answer: AnswerResponse | None = Field(None, description="The answer, once given")


class QuestionListResponse(BaseModel):
    """Paginated list of questions."""

    total: int = Field(..., description="Total matching questions")
    page: int = Field(..., description="Current page (1-based)")
    limit: int = Field(..., description="Page size")
    questions: list[QuestionDetailResponse] = Field(default_factory=list)


class CheckoutSessionResponse(BaseModel):
    """Redirect handle for a payment checkout."""

    question_id: int = Field(..., description="Question being paid for")
    session_id: str = Field(..., description="Gateway checkout session ID")
    url: str = Field(..., description="URL to redirect the questioner to")
