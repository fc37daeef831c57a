"""Pydantic schemas for answerer statistics."""

from pydantic import BaseModel, Field


class AnswererStatsResponse(BaseModel):
    """Track record of an answerer, computed on read."""

    answerer_id: int
    total_questions: int = Field(..., description="Paid questions received")
    pending: int
    answered: int
    expired: int
    response_rate: float = Field(..., ge=0.0, le=1.0, description="answered / resolved")
    rating_average: float
    number_of_reviews: int
    total_earnings_cents: int

    model_config = {"from_attributes": True}
