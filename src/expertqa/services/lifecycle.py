"""Question lifecycle engine.

A question moves NOT_PAID -> PENDING -> ANSWERED | EXPIRED. Every move is a
conditional update in the store; whichever caller matches the guard first
wins and the others observe a :class:`StateConflictError` or a no-op.
"""

from datetime import datetime
from enum import StrEnum

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from expertqa.config import settings
from expertqa.exceptions import (
    AuthorizationError,
    DomainValidationError,
    NotFoundError,
    StateConflictError,
)
from expertqa.models.answer import Answer
from expertqa.models.question import Question, QuestionStatus, RefundStatus
from expertqa.models.question_type import QuestionKind
from expertqa.repositories.answer import AnswerRepository
from expertqa.repositories.earning import EarningRepository
from expertqa.repositories.payment_event import PaymentEventRepository
from expertqa.repositories.question import QuestionRepository
from expertqa.repositories.question_type import QuestionTypeRepository
from expertqa.services.notifications import LoggingNotifier, Notifier
from expertqa.services.payments import (
    CheckoutSession,
    PaymentEvent,
    PaymentEventKind,
    PaymentGateway,
    get_payment_gateway,
)
from expertqa.sla import DeadlineAnchor, compute_deadline, utcnow


class PaymentEventOutcome(StrEnum):
    """What handling a payment event did."""

    ACTIVATED = "activated"
    DUPLICATE = "duplicate"
    DISCARDED = "discarded"
    IGNORED = "ignored"


class QuestionLifecycleService:
    """Drive questions through payment, answering and expiry."""

    def __init__(
        self,
        payment_gateway: PaymentGateway | None = None,
        notifier: Notifier | None = None,
        deadline_anchor: DeadlineAnchor | None = None,
    ) -> None:
        self._payment_gateway = payment_gateway
        self.notifier = notifier or LoggingNotifier()
        self.deadline_anchor = deadline_anchor or settings.deadline_anchor

    @property
    def payment_gateway(self) -> PaymentGateway:
        if self._payment_gateway is None:
            self._payment_gateway = get_payment_gateway()
        return self._payment_gateway

    async def create_question(
        self,
        session: AsyncSession,
        questioner_id: int,
        question_type_id: int,
        answerer_id: int,
        content: str,
        choices: list[str] | None = None,
        now: datetime | None = None,
    ) -> Question:
        """Create an unpaid question with a snapshot of its type's terms."""
        question_type = await QuestionTypeRepository.get_by_id(session, question_type_id)
        if question_type is None:
            raise NotFoundError(resource="QuestionType", resource_id=question_type_id)

        if not question_type.enabled:
            raise DomainValidationError(
                "Question type is disabled",
                field="question_type_id",
            )

        if question_type.answerer_id != answerer_id:
            raise DomainValidationError(
                "Question type does not belong to the selected answerer",
                field="answerer_id",
            )

        cleaned_choices = [c.strip() for c in choices or [] if c.strip()]
        if question_type.kind == QuestionKind.MULTIPLE_CHOICE:
            if not 2 <= len(cleaned_choices) <= question_type.number_of_choice_options:
                raise DomainValidationError(
                    f"Multiple-choice questions need between 2 and "
                    f"{question_type.number_of_choice_options} choices",
                    field="choices",
                )
        elif cleaned_choices:
            raise DomainValidationError(
                "Choices are only allowed for multiple-choice questions",
                field="choices",
            )

        question = await QuestionRepository.create(
            session=session,
            question_type_id=question_type.id,
            questioner_id=questioner_id,
            answerer_id=answerer_id,
            content=content,
            choices=cleaned_choices,
            price_cents=question_type.price_cents,
            response_time_hours=question_type.response_time_hours,
            created_at=now or utcnow(),
        )

        logger.info(
            "Question created",
            question_id=question.id,
            question_type_id=question_type.id,
            questioner_id=questioner_id,
            answerer_id=answerer_id,
            price_cents=question.price_cents,
        )

        return question

    async def get_question(
        self,
        session: AsyncSession,
        question_id: int,
        user_id: int,
    ) -> Question:
        """Return a question visible to one of its two parties."""
        question = await QuestionRepository.get_by_id(session, question_id)
        if question is None:
            raise NotFoundError(resource="Question", resource_id=question_id)

        if user_id not in (question.questioner_id, question.answerer_id):
            raise AuthorizationError(
                "Not authorized to view this question",
                details={"question_id": question_id},
            )

        return question

    async def create_checkout_session(
        self,
        session: AsyncSession,
        question_id: int,
        questioner_id: int,
        success_url: str | None = None,
        cancel_url: str | None = None,
    ) -> CheckoutSession:
        """Start payment for an unpaid question at its snapshotted price."""
        question = await QuestionRepository.get_by_id(session, question_id)
        if question is None:
            raise NotFoundError(resource="Question", resource_id=question_id)

        if question.questioner_id != questioner_id:
            raise AuthorizationError(
                "Not authorized to pay for this question",
                details={"question_id": question_id},
            )

        if question.status != QuestionStatus.NOT_PAID or question.paid:
            raise StateConflictError(
                "This question has already been paid",
                reason=StateConflictError.ALREADY_PAID,
                question_id=question_id,
            )

        checkout = await self.payment_gateway.create_checkout_session(
            question,
            success_url=success_url or settings.checkout_success_url,
            cancel_url=cancel_url or settings.checkout_cancel_url,
        )
        await QuestionRepository.set_checkout_session(
            session, question_id, checkout.session_id
        )

        logger.info(
            "Checkout session issued",
            question_id=question_id,
            session_id=checkout.session_id,
            price_cents=question.price_cents,
        )

        return checkout

    async def handle_payment_event(
        self,
        session: AsyncSession,
        event: PaymentEvent,
        now: datetime | None = None,
    ) -> PaymentEventOutcome:
        """Apply an authenticated gateway event; safe to call more than once."""
        now = now or utcnow()

        if event.kind == PaymentEventKind.UNSUPPORTED or event.question_id is None:
            logger.info(
                "Ignoring payment event",
                event_id=event.event_id,
                source_type=event.source_type,
                question_id=event.question_id,
            )
            return PaymentEventOutcome.IGNORED

        question = await QuestionRepository.get_by_id(session, event.question_id)
        if question is None:
            logger.warning(
                "Payment event for unknown question",
                event_id=event.event_id,
                question_id=event.question_id,
            )
            return PaymentEventOutcome.IGNORED

        if event.kind == PaymentEventKind.COMPLETED:
            return await self._confirm_payment(session, question, event, now)

        return await self._discard_unpaid(session, question, event)

    async def _confirm_payment(
        self,
        session: AsyncSession,
        question: Question,
        event: PaymentEvent,
        now: datetime,
    ) -> PaymentEventOutcome:
        question_id = question.id
        if question.status != QuestionStatus.NOT_PAID or question.paid:
            logger.info(
                "Payment already confirmed",
                question_id=question_id,
                event_id=event.event_id,
                status=question.status,
            )
            return PaymentEventOutcome.DUPLICATE

        recorded = await PaymentEventRepository.record(
            session, question_id, event.kind.value, event.event_id
        )
        if not recorded:
            logger.info(
                "Duplicate payment event",
                question_id=question_id,
                event_id=event.event_id,
            )
            return PaymentEventOutcome.DUPLICATE

        deadline_at = compute_deadline(
            created_at=question.created_at,
            paid_at=now,
            response_time_hours=question.response_time_hours,
            anchor=self.deadline_anchor,
        )
        activated = await QuestionRepository.activate(
            session,
            question_id,
            payment_intent_id=event.payment_intent_id,
            paid_at=now,
            deadline_at=deadline_at,
        )
        if not activated:
            await session.rollback()
            return PaymentEventOutcome.DUPLICATE

        await session.commit()

        logger.info(
            "Payment succeeded, question is pending",
            question_id=question_id,
            payment_intent_id=event.payment_intent_id,
            deadline_at=deadline_at.isoformat(),
        )

        question = await QuestionRepository.get_by_id(session, question_id)
        try:
            await self.notifier.question_assigned(question)
        except Exception as exc:
            logger.error(
                "Failed to notify answerer",
                question_id=question_id,
                error=f"{type(exc).__name__}: {exc}",
            )

        return PaymentEventOutcome.ACTIVATED

    async def _discard_unpaid(
        self,
        session: AsyncSession,
        question: Question,
        event: PaymentEvent,
    ) -> PaymentEventOutcome:
        question_id = question.id
        if question.paid or question.status != QuestionStatus.NOT_PAID:
            logger.warning(
                "Ignoring payment failure for a paid question",
                question_id=question_id,
                event_id=event.event_id,
                kind=event.kind,
            )
            return PaymentEventOutcome.IGNORED

        if (
            event.checkout_session_id is not None
            and event.checkout_session_id != question.checkout_session_id
        ):
            logger.info(
                "Ignoring payment failure for a superseded checkout session",
                question_id=question_id,
                event_id=event.event_id,
                checkout_session_id=event.checkout_session_id,
                current_checkout_session_id=question.checkout_session_id,
            )
            return PaymentEventOutcome.IGNORED

        deleted = await QuestionRepository.delete_unpaid(
            session, question_id, checkout_session_id=event.checkout_session_id
        )
        await session.commit()

        if not deleted:
            return PaymentEventOutcome.IGNORED

        logger.info(
            "Deleted unpaid question",
            question_id=question_id,
            kind=event.kind,
        )
        return PaymentEventOutcome.DISCARDED

    async def submit_answer(
        self,
        session: AsyncSession,
        question_id: int,
        answerer_id: int,
        content: str,
        now: datetime | None = None,
    ) -> Answer:
        """Answer a pending question before its deadline and credit the answerer.

        Raises:
            NotFoundError: If the question does not exist.
            AuthorizationError: If the caller is not the assigned answerer.
            StateConflictError: If the question is unpaid, answered or expired.
        """
        now = now or utcnow()

        question = await QuestionRepository.get_by_id(session, question_id)
        if question is None:
            raise NotFoundError(resource="Question", resource_id=question_id)

        if question.answerer_id != answerer_id:
            raise AuthorizationError(
                "Not authorized to answer this question",
                details={"question_id": question_id},
            )

        answered = await QuestionRepository.mark_answered(session, question_id, now)
        if not answered:
            await self._raise_answer_conflict(session, question_id, now)

        answer = await AnswerRepository.create(
            session=session,
            question_id=question_id,
            content=content,
            created_at=now,
        )
        earning = await EarningRepository.credit(
            session=session,
            answerer_id=question.answerer_id,
            question_id=question_id,
            amount_cents=question.price_cents,
            created_at=now,
        )
        await session.commit()

        logger.info(
            "Question answered",
            question_id=question_id,
            answer_id=answer.id,
            earning_id=earning.id,
            amount_cents=earning.amount_cents,
        )

        question = await QuestionRepository.get_by_id(session, question_id)
        try:
            await self.notifier.question_answered(question, answer)
        except Exception as exc:
            logger.error(
                "Failed to notify questioner",
                question_id=question_id,
                error=f"{type(exc).__name__}: {exc}",
            )

        return answer

    async def _raise_answer_conflict(
        self,
        session: AsyncSession,
        question_id: int,
        now: datetime,
    ) -> None:
        await session.rollback()
        current = await QuestionRepository.get_by_id(session, question_id)
        if current is None:
            raise NotFoundError(resource="Question", resource_id=question_id)

        if current.status == QuestionStatus.ANSWERED:
            raise StateConflictError(
                "This question has already been answered",
                reason=StateConflictError.ALREADY_ANSWERED,
                question_id=question_id,
            )
        if current.status == QuestionStatus.NOT_PAID:
            raise StateConflictError(
                "This question has not been paid yet",
                reason=StateConflictError.NOT_PAID,
                question_id=question_id,
            )
        if current.status == QuestionStatus.PENDING:
            # Past the deadline but not swept yet
            await self.expire_question(session, question_id, now)

        raise StateConflictError(
            "This question is already expired",
            reason=StateConflictError.EXPIRED,
            question_id=question_id,
        )

    async def expire_question(
        self,
        session: AsyncSession,
        question_id: int,
        now: datetime | None = None,
    ) -> bool:
        """PENDING -> EXPIRED for an overdue, unanswered question.

        Commits on its own so the expiry survives a failing caller. Returns
        False when another transition already claimed the question.
        """
        now = now or utcnow()

        question = await QuestionRepository.get_by_id(session, question_id)
        if question is None or question.status != QuestionStatus.PENDING:
            return False

        refund_status = (
            RefundStatus.PENDING if question.payment_intent_id else RefundStatus.NOT_REQUIRED
        )
        expired = await QuestionRepository.mark_expired(
            session, question_id, now, refund_status
        )
        await session.commit()

        if expired:
            logger.info(
                "Question expired (unanswered)",
                question_id=question_id,
                refund_status=refund_status,
            )
        return expired

    async def review_answer(
        self,
        session: AsyncSession,
        answer_id: int,
        questioner_id: int,
        rating: int,
        review: str | None = None,
        now: datetime | None = None,
    ) -> Answer:
        """Let the questioner rate and review the answer they received."""
        answer = await AnswerRepository.get_by_id(session, answer_id)
        if answer is None:
            raise NotFoundError(resource="Answer", resource_id=answer_id)

        question = await QuestionRepository.get_by_id(session, answer.question_id)
        if question is None or question.questioner_id != questioner_id:
            raise AuthorizationError(
                "Not authorized to review this answer",
                details={"answer_id": answer_id},
            )

        answer = await AnswerRepository.save_review(
            session, answer, rating, review, now or utcnow()
        )
        await session.commit()

        logger.info(
            "Answer reviewed",
            answer_id=answer_id,
            question_id=question.id,
            rating=rating,
        )

        try:
            await self.notifier.answer_reviewed(question, answer)
        except Exception as exc:
            logger.error(
                "Failed to notify answerer of review",
                answer_id=answer_id,
                question_id=question.id,
                error=f"{type(exc).__name__}: {exc}",
            )

        return answer
