"""Repository for answer database operations."""

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from expertqa.models.answer import Answer
from expertqa.models.question import Question


class AnswerRepository:
    """Handle answer persistence operations."""

    @staticmethod
    async def create(
        session: AsyncSession,
        question_id: int,
        content: str,
        created_at: datetime,
    ) -> Answer:
        """Create the answer record for a question."""
        answer = Answer(
            question_id=question_id,
            content=content,
            created_at=created_at,
        )
        session.add(answer)
        await session.flush()
        await session.refresh(answer)
        return answer

    @staticmethod
    async def get_by_id(session: AsyncSession, answer_id: int) -> Answer | None:
        """Retrieve an answer by id."""
        return await session.get(Answer, answer_id, populate_existing=True)

    @staticmethod
    async def get_by_question_id(
        session: AsyncSession,
        question_id: int,
    ) -> Answer | None:
        """Retrieve the answer for a question if it exists."""
        result = await session.execute(
            select(Answer).where(Answer.question_id == question_id)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def count_by_question_id(session: AsyncSession, question_id: int) -> int:
        """Count answers stored for a question."""
        total = await session.scalar(
            select(func.count())
            .select_from(Answer)
            .where(Answer.question_id == question_id)
        )
        return int(total or 0)

    @staticmethod
    async def save_review(
        session: AsyncSession,
        answer: Answer,
        rating: int,
        review: str | None,
        reviewed_at: datetime,
    ) -> Answer:
        """Attach the questioner's rating and review to an answer."""
        answer.rating = rating
        answer.review = review
        answer.reviewed_at = reviewed_at
        await session.flush()
        await session.refresh(answer)
        return answer

    @staticmethod
    async def rating_summary_for_answerer(
        session: AsyncSession,
        answerer_id: int,
    ) -> tuple[float, int]:
        """Return (average rating, number of reviews) across an answerer's answers."""
        result = await session.execute(
            select(func.avg(Answer.rating), func.count(Answer.rating))
            .join(Question, Question.id == Answer.question_id)
            .where(
                Question.answerer_id == answerer_id,
                Answer.rating.is_not(None),
            )
        )
        average, count = result.one()
        return float(average or 0.0), int(count or 0)
