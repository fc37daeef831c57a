"""Question model and its lifecycle states."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from expertqa.models.base import Base

if TYPE_CHECKING:
    from expertqa.models.answer import Answer


class QuestionStatus(StrEnum):
    """Lifecycle state of a question.

    Moves only NOT_PAID -> PENDING -> ANSWERED | EXPIRED.
    """

    NOT_PAID = "not_paid"
    PENDING = "pending"
    ANSWERED = "answered"
    EXPIRED = "expired"


class RefundStatus(StrEnum):
    """Refund progress for an expired question."""

    NOT_REQUIRED = "not_required"
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class Question(Base):
    """A paid question addressed to one answerer."""

    __tablename__ = "questions"

    id: Mapped[int] = mapped_column(primary_key=True)
    question_type_id: Mapped[int] = mapped_column(
        ForeignKey("question_types.id"), nullable=False
    )
    questioner_id: Mapped[int] = mapped_column(Integer, index=True, nullable=False)
    answerer_id: Mapped[int] = mapped_column(Integer, index=True, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    choices: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)

    # Snapshot of the question type at creation time
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    response_time_hours: Mapped[int] = mapped_column(Integer, nullable=False)

    status: Mapped[QuestionStatus] = mapped_column(
        Enum(QuestionStatus),
        default=QuestionStatus.NOT_PAID,
        index=True,
        nullable=False,
    )
    paid: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    payment_intent_id: Mapped[str | None] = mapped_column(String(255))
    checkout_session_id: Mapped[str | None] = mapped_column(String(255))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    deadline_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), index=True
    )
    answered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    expired_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    refund_status: Mapped[RefundStatus] = mapped_column(
        Enum(RefundStatus), default=RefundStatus.NOT_REQUIRED, nullable=False
    )
    refund_attempts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    refund_id: Mapped[str | None] = mapped_column(String(255))
    refund_error: Mapped[str | None] = mapped_column(Text)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    # Relationships
    answer: Mapped[Answer | None] = relationship(
        "Answer", back_populates="question", uselist=False, lazy="selectin"
    )
