"""Answerer statistics derived on read from the question store."""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from expertqa.models.question import QuestionStatus
from expertqa.repositories.answer import AnswerRepository
from expertqa.repositories.earning import EarningRepository
from expertqa.repositories.question import QuestionRepository


@dataclass
class AnswererStats:
    answerer_id: int
    total_questions: int
    pending: int
    answered: int
    expired: int
    response_rate: float
    rating_average: float
    number_of_reviews: int
    total_earnings_cents: int


class AnswererStatsService:
    """Aggregate an answerer's track record with SQL aggregates."""

    @staticmethod
    async def get_stats(session: AsyncSession, answerer_id: int) -> AnswererStats:
        counts = await QuestionRepository.count_by_status_for_answerer(
            session, answerer_id
        )
        answered = counts.get(QuestionStatus.ANSWERED, 0)
        expired = counts.get(QuestionStatus.EXPIRED, 0)
        resolved = answered + expired

        rating_average, number_of_reviews = (
            await AnswerRepository.rating_summary_for_answerer(session, answerer_id)
        )
        total_earnings = await EarningRepository.total_for_answerer(session, answerer_id)

        return AnswererStats(
            answerer_id=answerer_id,
            total_questions=sum(counts.values()),
            pending=counts.get(QuestionStatus.PENDING, 0),
            answered=answered,
            expired=expired,
            response_rate=answered / resolved if resolved else 0.0,
            rating_average=round(rating_average, 2),
            number_of_reviews=number_of_reviews,
            total_earnings_cents=total_earnings,
        )
