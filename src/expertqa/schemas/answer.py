"""Pydantic schemas for answer endpoints."""

from datetime import datetime

from pydantic import BaseModel, Field


class AnswerSubmissionRequest(BaseModel):
    """Request model for answering a question."""

    content: str = Field(
        ...,
        min_length=1,
        max_length=10000,
        description="Answer text",
    )


class AnswerReviewRequest(BaseModel):
    """Request model for rating and reviewing an answer."""

    rating: int = Field(..., ge=1, le=5, description="Rating from 1 to 5")
    review: str | None = Field(None, max_length=5000, description="Optional review text")


class AnswerResponse(BaseModel):
    """Response model for a stored answer."""

    id: int = Field(..., description="Answer ID")
    question_id: int = Field(..., description="Answered question ID")
    content: str = Field(..., description="Answer text")
    rating: int | None = Field(None, description="Questioner's rating")
    review: str | None = Field(None, description="Questioner's review")
    created_at: datetime = Field(..., description="Submission timestamp")
    reviewed_at: datetime | None = Field(None, description="Review timestamp")

    model_config = {"from_attributes": True}
