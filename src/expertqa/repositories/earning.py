"""Repository for the earnings ledger."""

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from expertqa.models.earning import Earning


class EarningRepository:
    """Append-only access to answerer earnings."""

    @staticmethod
    async def credit(
        session: AsyncSession,
        answerer_id: int,
        question_id: int,
        amount_cents: int,
        created_at: datetime,
    ) -> Earning:
        """Append an earning for an accepted answer."""
        earning = Earning(
            answerer_id=answerer_id,
            question_id=question_id,
            amount_cents=amount_cents,
            created_at=created_at,
        )
        session.add(earning)
        await session.flush()
        await session.refresh(earning)
        return earning

    @staticmethod
    async def list_by_question_id(
        session: AsyncSession,
        question_id: int,
    ) -> list[Earning]:
        """Retrieve earnings credited for a question."""
        result = await session.execute(
            select(Earning).where(Earning.question_id == question_id)
        )
        return list(result.scalars().all())

    @staticmethod
    async def total_for_answerer(session: AsyncSession, answerer_id: int) -> int:
        """Sum all earnings credited to an answerer."""
        total = await session.scalar(
            select(func.coalesce(func.sum(Earning.amount_cents), 0)).where(
                Earning.answerer_id == answerer_id
            )
        )
        return int(total or 0)
