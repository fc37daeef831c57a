"""Repository for question type database operations."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from expertqa.models.question_type import QuestionKind, QuestionType


class QuestionTypeRepository:
    """Handle question type persistence operations."""

    @staticmethod
    async def create(
        session: AsyncSession,
        answerer_id: int,
        kind: QuestionKind,
        price_cents: int,
        response_time_hours: int,
        number_of_choice_options: int,
        enabled: bool,
    ) -> QuestionType:
        """Create a question type owned by an answerer."""
        question_type = QuestionType(
            answerer_id=answerer_id,
            kind=kind,
            price_cents=price_cents,
            response_time_hours=response_time_hours,
            number_of_choice_options=number_of_choice_options,
            enabled=enabled,
        )
        session.add(question_type)
        await session.flush()
        await session.refresh(question_type)
        return question_type

    @staticmethod
    async def get_by_id(
        session: AsyncSession,
        question_type_id: int,
    ) -> QuestionType | None:
        """Retrieve a question type by id."""
        return await session.get(QuestionType, question_type_id)

    @staticmethod
    async def list_by_answerer(
        session: AsyncSession,
        answerer_id: int,
    ) -> list[QuestionType]:
        """Retrieve all question types configured by an answerer."""
        result = await session.execute(
            select(QuestionType)
            .where(QuestionType.answerer_id == answerer_id)
            .order_by(QuestionType.id.asc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def update(
        session: AsyncSession,
        question_type: QuestionType,
        changes: dict,
    ) -> QuestionType:
        """Apply partial changes to a question type."""
        for field, value in changes.items():
            setattr(question_type, field, value)
        await session.flush()
        await session.refresh(question_type)
        return question_type
