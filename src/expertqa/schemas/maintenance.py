"""Pydantic schemas for maintenance and webhook endpoints."""

from datetime import datetime

from pydantic import BaseModel, Field

from expertqa.services.lifecycle import PaymentEventOutcome


class ItemFailureResponse(BaseModel):
    """A question that could not be processed."""

    question_id: int
    error: str

    model_config = {"from_attributes": True}


class SweepReportResponse(BaseModel):
    """Summary returned by a sweep run."""

    swept_at: datetime = Field(..., description="Time the sweep evaluated deadlines at")
    expired_count: int = Field(..., description="Questions moved to expired")
    refunded_count: int = Field(..., description="Refunds issued successfully")
    expired_question_ids: list[int] = Field(default_factory=list)
    refund_failures: list[ItemFailureResponse] = Field(default_factory=list)
    errors: list[ItemFailureResponse] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class RefundRetryResponse(BaseModel):
    """Summary returned by a failed-refund retry pass."""

    attempted: int
    succeeded: int
    failures: list[ItemFailureResponse] = Field(default_factory=list)


class WebhookResponse(BaseModel):
    """Acknowledgement for a payment gateway event."""

    status: str = Field("success", examples=["success"])
    outcome: PaymentEventOutcome = Field(..., description="What the event did")
