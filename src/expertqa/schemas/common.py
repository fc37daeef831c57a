"""Common Pydantic schemas for API requests and responses."""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str = Field(..., examples=["healthy"])
    service: str = Field(..., examples=["expertqa-api"])
    version: str = Field(..., examples=["0.1.0"])


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str = Field(..., description="Human-readable error message")
    error_code: str = Field(..., description="Machine-readable error code")
    request_id: str | None = Field(None, description="Request tracking ID")


class StateConflictResponse(ErrorResponse):
    """Error response for a failed lifecycle guard."""

    reason: str = Field(
        ...,
        description="Why the transition was refused",
        examples=["expired", "already_answered", "not_paid", "already_paid"],
    )
    question_id: int | None = Field(None, description="Question the guard applied to")
