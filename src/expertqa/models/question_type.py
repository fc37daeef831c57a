"""QuestionType model: an answerer's priced offering."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from sqlalchemy import Boolean, DateTime, Enum, Integer, func
from sqlalchemy.orm import Mapped, mapped_column

from expertqa.models.base import Base


class QuestionKind(StrEnum):
    """Format of questions asked under a type."""

    TEXT = "text"
    MULTIPLE_CHOICE = "multiple_choice"


class QuestionType(Base):
    """Price and response-time configuration owned by one answerer.

    Questions snapshot ``price_cents`` and ``response_time_hours`` when they
    are created, so edits here never reach in-flight questions.
    """

    __tablename__ = "question_types"

    id: Mapped[int] = mapped_column(primary_key=True)
    answerer_id: Mapped[int] = mapped_column(Integer, index=True, nullable=False)
    kind: Mapped[QuestionKind] = mapped_column(
        Enum(QuestionKind), default=QuestionKind.TEXT, nullable=False
    )
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    response_time_hours: Mapped[int] = mapped_column(
        Integer, default=24, nullable=False
    )
    number_of_choice_options: Mapped[int] = mapped_column(
        Integer, default=2, nullable=False
    )
    enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
