"""Repository for payment event receipts."""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from expertqa.models.payment_event import PaymentEventReceipt


class PaymentEventRepository:
    """Record which payment events were already handled."""

    @staticmethod
    async def record(
        session: AsyncSession,
        question_id: int,
        event_type: str,
        event_id: str | None,
    ) -> bool:
        """Insert a receipt; return False if one already exists.

        On a duplicate the session is rolled back, so call this before any
        other write in the transaction.
        """
        session.add(
            PaymentEventReceipt(
                question_id=question_id,
                event_type=event_type,
                event_id=event_id,
            )
        )
        try:
            await session.flush()
        except IntegrityError:
            await session.rollback()
            return False
        return True

    @staticmethod
    async def list_for_question(
        session: AsyncSession,
        question_id: int,
    ) -> list[PaymentEventReceipt]:
        """Retrieve receipts recorded for a question."""
        result = await session.execute(
            select(PaymentEventReceipt)
            .where(PaymentEventReceipt.question_id == question_id)
            .order_by(PaymentEventReceipt.id.asc())
        )
        return list(result.scalars().all())
