"""Shared fixtures: a file-backed SQLite store and mocked collaborators."""

from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from expertqa.models import Base, Question, QuestionKind, QuestionType
from expertqa.repositories.question import QuestionRepository
from expertqa.services.lifecycle import QuestionLifecycleService
from expertqa.services.notifications import Notifier
from expertqa.services.payments import (
    CheckoutSession,
    PaymentGateway,
    RefundResult,
)
from expertqa.services.refunds import RefundService
from expertqa.services.sweeper import MaintenanceSweeper
from expertqa.sla import DeadlineAnchor

from factories import ANSWERER_ID, QUESTIONER_ID, T0, completed_event


@pytest.fixture
async def test_engine(tmp_path):
    """Create an async SQLite engine backed by a temporary file.

    A file (not :memory:) lets the sweeper open its own connections.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'expertqa.db'}", echo=False
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    """Create the session factory."""
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def test_session(session_factory):
    """Create a test session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_gateway() -> MagicMock:
    """Payment gateway whose checkout and refunds always succeed."""
    gateway = MagicMock(spec=PaymentGateway)
    gateway.create_checkout_session = AsyncMock(
        return_value=CheckoutSession(
            session_id="cs_test_1", url="https://checkout.example/cs_test_1"
        )
    )
    gateway.refund = AsyncMock(
        return_value=RefundResult(refund_id="re_test_1", status="succeeded")
    )
    return gateway


@pytest.fixture
def mock_notifier() -> MagicMock:
    """Notifier that records calls."""
    notifier = MagicMock(spec=Notifier)
    notifier.question_assigned = AsyncMock()
    notifier.question_answered = AsyncMock()
    notifier.answer_reviewed = AsyncMock()
    return notifier


@pytest.fixture
def lifecycle(mock_gateway: MagicMock, mock_notifier: MagicMock) -> QuestionLifecycleService:
    """Lifecycle engine anchored on question creation time."""
    return QuestionLifecycleService(
        payment_gateway=mock_gateway,
        notifier=mock_notifier,
        deadline_anchor=DeadlineAnchor.CREATED,
    )


@pytest.fixture
def sweeper(
    session_factory,
    mock_gateway: MagicMock,
    lifecycle: QuestionLifecycleService,
) -> MaintenanceSweeper:
    """Sweeper wired to the test store and mocked gateway."""
    return MaintenanceSweeper(
        session_factory=session_factory,
        refund_service=RefundService(payment_gateway=mock_gateway),
        lifecycle_service=lifecycle,
    )


@pytest.fixture
async def question_type(test_session: AsyncSession) -> QuestionType:
    """An enabled text question type: $25.00, 4 hour response time."""
    question_type = QuestionType(
        answerer_id=ANSWERER_ID,
        kind=QuestionKind.TEXT,
        price_cents=2500,
        response_time_hours=4,
        number_of_choice_options=2,
        enabled=True,
    )
    test_session.add(question_type)
    await test_session.commit()
    await test_session.refresh(question_type)
    return question_type


@pytest.fixture
def create_unpaid_question(
    test_session: AsyncSession,
    lifecycle: QuestionLifecycleService,
    question_type: QuestionType,
) -> Callable[..., Awaitable[Question]]:
    """Factory for committed NOT_PAID questions."""

    async def _create(created_at: datetime = T0) -> Question:
        question = await lifecycle.create_question(
            session=test_session,
            questioner_id=QUESTIONER_ID,
            question_type_id=question_type.id,
            answerer_id=ANSWERER_ID,
            content="Which index suits range queries on timestamps?",
            now=created_at,
        )
        await test_session.commit()
        return question

    return _create


@pytest.fixture
def create_pending_question(
    test_session: AsyncSession,
    lifecycle: QuestionLifecycleService,
    create_unpaid_question: Callable[..., Awaitable[Question]],
) -> Callable[..., Awaitable[Question]]:
    """Factory for paid PENDING questions (payment confirmed 5 minutes in)."""

    async def _create(
        created_at: datetime = T0,
        payment_intent_id: str | None = "pi_test_1",
    ) -> Question:
        question = await create_unpaid_question(created_at)
        await lifecycle.handle_payment_event(
            test_session,
            completed_event(
                question.id,
                payment_intent_id=payment_intent_id,
                event_id=f"evt_completed_{question.id}",
            ),
            now=created_at + timedelta(minutes=5),
        )
        return await QuestionRepository.get_by_id(test_session, question.id)

    return _create
