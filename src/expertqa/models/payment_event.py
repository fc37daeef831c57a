"""Idempotency receipts for payment gateway events."""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from expertqa.models.base import Base


class PaymentEventReceipt(Base):
    """Marks a (question, event type) pair as handled."""

    __tablename__ = "payment_event_receipts"
    __table_args__ = (
        UniqueConstraint("question_id", "event_type", name="uq_receipt_question_event"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    question_id: Mapped[int] = mapped_column(Integer, nullable=False)
    event_type: Mapped[str] = mapped_column(String(64), nullable=False)
    event_id: Mapped[str | None] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
