"""Pydantic schemas for question type endpoints."""

from datetime import datetime

from pydantic import BaseModel, Field

from expertqa.models.question_type import QuestionKind


class QuestionTypeCreateRequest(BaseModel):
    """Request model for configuring a new question type."""

    kind: QuestionKind = Field(QuestionKind.TEXT, description="Question format")
    price_cents: int = Field(..., gt=0, description="Price in minor currency units")
    response_time_hours: int = Field(
        24, gt=0, le=24 * 30, description="Hours allowed to answer"
    )
    number_of_choice_options: int = Field(
        2, ge=2, le=10, description="Maximum options for multiple-choice questions"
    )
    enabled: bool = Field(True, description="Whether new questions may use this type")


class QuestionTypeUpdateRequest(BaseModel):
    """Partial update for a question type; affects only future questions."""

    kind: QuestionKind | None = None
    price_cents: int | None = Field(None, gt=0)
    response_time_hours: int | None = Field(None, gt=0, le=24 * 30)
    number_of_choice_options: int | None = Field(None, ge=2, le=10)
    enabled: bool | None = None


class QuestionTypeResponse(BaseModel):
    """Response model for a question type."""

    id: int
    answerer_id: int
    kind: QuestionKind
    price_cents: int
    response_time_hours: int
    number_of_choice_options: int
    enabled: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
