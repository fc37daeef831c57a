"""Earning ledger model."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, func
from sqlalchemy.orm import Mapped, mapped_column

from expertqa.models.base import Base


class Earning(Base):
    """Append-only credit to an answerer for an accepted answer."""

    __tablename__ = "earnings"

    id: Mapped[int] = mapped_column(primary_key=True)
    answerer_id: Mapped[int] = mapped_column(Integer, index=True, nullable=False)
    question_id: Mapped[int] = mapped_column(
        ForeignKey("questions.id"), unique=True, nullable=False
    )
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
