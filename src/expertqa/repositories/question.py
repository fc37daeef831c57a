"""Repository for question database operations.

State changes are conditional ``UPDATE`` statements: each returns whether
the row matched its guard, so concurrent callers never overwrite each other.
"""

from datetime import datetime

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from expertqa.models.answer import Answer
from expertqa.models.question import Question, QuestionStatus, RefundStatus


class QuestionRepository:
    """Handle question persistence and guarded transitions."""

    @staticmethod
    async def create(
        session: AsyncSession,
        question_type_id: int,
        questioner_id: int,
        answerer_id: int,
        content: str,
        choices: list[str],
        price_cents: int,
        response_time_hours: int,
        created_at: datetime,
    ) -> Question:
        """Insert a new unpaid question."""
        question = Question(
            question_type_id=question_type_id,
            questioner_id=questioner_id,
            answerer_id=answerer_id,
            content=content,
            choices=choices,
            price_cents=price_cents,
            response_time_hours=response_time_hours,
            status=QuestionStatus.NOT_PAID,
            paid=False,
            refund_status=RefundStatus.NOT_REQUIRED,
            refund_attempts=0,
            created_at=created_at,
        )
        session.add(question)
        await session.flush()
        await session.refresh(question)
        return question

    @staticmethod
    async def get_by_id(session: AsyncSession, question_id: int) -> Question | None:
        """Load a question, overwriting any stale copy held by the session."""
        return await session.get(Question, question_id, populate_existing=True)

    @staticmethod
    async def list_paid(
        session: AsyncSession,
        *,
        questioner_id: int | None = None,
        answerer_id: int | None = None,
        status: QuestionStatus | None = None,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[Question], int]:
        """Page through paid questions for one party, newest first."""
        filters = [Question.paid.is_(True)]
        if questioner_id is not None:
            filters.append(Question.questioner_id == questioner_id)
        if answerer_id is not None:
            filters.append(Question.answerer_id == answerer_id)
        if status is not None:
            filters.append(Question.status == status)

        total = await session.scalar(
            select(func.count()).select_from(Question).where(*filters)
        )
        result = await session.execute(
            select(Question)
            .where(*filters)
            .order_by(Question.created_at.desc(), Question.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), int(total or 0)

    @staticmethod
    async def set_checkout_session(
        session: AsyncSession,
        question_id: int,
        checkout_session_id: str,
    ) -> None:
        """Remember the latest checkout session issued for an unpaid question."""
        await session.execute(
            update(Question)
            .where(
                Question.id == question_id,
                Question.status == QuestionStatus.NOT_PAID,
            )
            .values(checkout_session_id=checkout_session_id)
            .execution_options(synchronize_session=False)
        )

    @staticmethod
    async def activate(
        session: AsyncSession,
        question_id: int,
        payment_intent_id: str | None,
        paid_at: datetime,
        deadline_at: datetime,
    ) -> bool:
        """NOT_PAID -> PENDING; marks the question paid exactly once."""
        result = await session.execute(
            update(Question)
            .where(
                Question.id == question_id,
                Question.status == QuestionStatus.NOT_PAID,
                Question.paid.is_(False),
            )
            .values(
                status=QuestionStatus.PENDING,
                paid=True,
                payment_intent_id=payment_intent_id,
                paid_at=paid_at,
                deadline_at=deadline_at,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    async def delete_unpaid(
        session: AsyncSession,
        question_id: int,
        checkout_session_id: str | None = None,
    ) -> bool:
        """Discard a question whose checkout failed; paid questions are kept.

        With ``checkout_session_id`` the row is only deleted while that session
        is still the question's current checkout.
        """
        stmt = delete(Question).where(
            Question.id == question_id,
            Question.status == QuestionStatus.NOT_PAID,
            Question.paid.is_(False),
        )
        if checkout_session_id is not None:
            stmt = stmt.where(Question.checkout_session_id == checkout_session_id)
        result = await session.execute(stmt.execution_options(synchronize_session=False))
        return result.rowcount == 1

    @staticmethod
    async def mark_answered(
        session: AsyncSession,
        question_id: int,
        now: datetime,
    ) -> bool:
        """PENDING -> ANSWERED, only while the deadline has not passed."""
        result = await session.execute(
            update(Question)
            .where(
                Question.id == question_id,
                Question.status == QuestionStatus.PENDING,
                Question.deadline_at >= now,
            )
            .values(status=QuestionStatus.ANSWERED, answered_at=now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    async def mark_expired(
        session: AsyncSession,
        question_id: int,
        now: datetime,
        refund_status: RefundStatus,
    ) -> bool:
        """PENDING -> EXPIRED, only past the deadline and with no answer."""
        result = await session.execute(
            update(Question)
            .where(
                Question.id == question_id,
                Question.status == QuestionStatus.PENDING,
                Question.deadline_at < now,
                Question.id.not_in(select(Answer.question_id)),
            )
            .values(
                status=QuestionStatus.EXPIRED,
                expired_at=now,
                refund_status=refund_status,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    async def list_overdue_ids(session: AsyncSession, now: datetime) -> list[int]:
        """Return ids of pending questions past their deadline with no answer."""
        result = await session.execute(
            select(Question.id)
            .where(
                Question.status == QuestionStatus.PENDING,
                Question.paid.is_(True),
                Question.deadline_at < now,
                Question.id.not_in(select(Answer.question_id)),
            )
            .order_by(Question.deadline_at.asc(), Question.id.asc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def list_refund_ids(
        session: AsyncSession,
        refund_status: RefundStatus,
        max_attempts: int | None = None,
    ) -> list[int]:
        """Return ids of expired questions whose refund is in ``refund_status``."""
        query = select(Question.id).where(
            Question.status == QuestionStatus.EXPIRED,
            Question.refund_status == refund_status,
        )
        if max_attempts is not None:
            query = query.where(Question.refund_attempts < max_attempts)
        result = await session.execute(query.order_by(Question.id.asc()))
        return list(result.scalars().all())

    @staticmethod
    async def claim_refund(
        session: AsyncSession,
        question_id: int,
        from_status: RefundStatus,
    ) -> bool:
        """Move a refund into PROCESSING so only one worker calls the gateway."""
        result = await session.execute(
            update(Question)
            .where(
                Question.id == question_id,
                Question.status == QuestionStatus.EXPIRED,
                Question.refund_status == from_status,
            )
            .values(
                refund_status=RefundStatus.PROCESSING,
                refund_attempts=Question.refund_attempts + 1,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    async def record_refund_result(
        session: AsyncSession,
        question_id: int,
        *,
        refund_id: str | None = None,
        error: str | None = None,
    ) -> None:
        """Finish a claimed refund as SUCCEEDED or FAILED."""
        values: dict = {
            "refund_status": RefundStatus.FAILED if error else RefundStatus.SUCCEEDED,
            "refund_error": error,
        }
        if refund_id is not None:
            values["refund_id"] = refund_id
        await session.execute(
            update(Question)
            .where(
                Question.id == question_id,
                Question.refund_status == RefundStatus.PROCESSING,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )

    @staticmethod
    async def count_by_status_for_answerer(
        session: AsyncSession,
        answerer_id: int,
    ) -> dict[QuestionStatus, int]:
        """Count an answerer's paid questions per status."""
        result = await session.execute(
            select(Question.status, func.count())
            .where(
                Question.answerer_id == answerer_id,
                Question.paid.is_(True),
            )
            .group_by(Question.status)
        )
        return {status: count for status, count in result.all()}
