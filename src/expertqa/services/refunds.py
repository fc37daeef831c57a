"""Refund processing for expired questions.

A refund is claimed (PENDING/FAILED -> PROCESSING) before the gateway is
called, so concurrent sweeps never refund the same question twice.
"""

from dataclasses import dataclass, field

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from expertqa.config import settings
from expertqa.models.question import RefundStatus
from expertqa.repositories.question import QuestionRepository
from expertqa.services.payments import PaymentGateway, get_payment_gateway


@dataclass
class RefundOutcome:
    """Result of one refund attempt."""

    question_id: int
    attempted: bool
    succeeded: bool = False
    refund_id: str | None = None
    error: str | None = None


@dataclass
class RefundRetryReport:
    """Summary of a failed-refund retry pass."""

    attempted: int = 0
    succeeded: int = 0
    failures: list[RefundOutcome] = field(default_factory=list)


class RefundService:
    """Issue refunds through the payment gateway and record the result."""

    def __init__(self, payment_gateway: PaymentGateway | None = None) -> None:
        self.payment_gateway = payment_gateway or get_payment_gateway()

    async def process_refund(
        self,
        session: AsyncSession,
        question_id: int,
        from_status: RefundStatus = RefundStatus.PENDING,
    ) -> RefundOutcome:
        """Claim and run the refund for an expired question.

        Gateway failures are recorded on the question (status FAILED) rather
        than raised; the question itself stays EXPIRED.
        """
        claimed = await QuestionRepository.claim_refund(session, question_id, from_status)
        await session.commit()
        if not claimed:
            return RefundOutcome(question_id=question_id, attempted=False)

        question = await QuestionRepository.get_by_id(session, question_id)
        refund_id = None
        error = None

        if not question.payment_intent_id:
            error = "No payment intent recorded for question"
        else:
            idempotency_key = f"refund-{question_id}-{question.refund_attempts}"
            try:
                result = await self.payment_gateway.refund(
                    question.payment_intent_id, idempotency_key
                )
                refund_id = result.refund_id
            except Exception as exc:
                error = f"{type(exc).__name__}: {exc}"

        await QuestionRepository.record_refund_result(
            session, question_id, refund_id=refund_id, error=error
        )
        await session.commit()

        if error:
            logger.error(
                "Failed to refund question",
                question_id=question_id,
                attempt=question.refund_attempts,
                error=error,
            )
            return RefundOutcome(
                question_id=question_id, attempted=True, succeeded=False, error=error
            )

        logger.info(
            "Refunded payment for question",
            question_id=question_id,
            refund_id=refund_id,
        )
        return RefundOutcome(
            question_id=question_id, attempted=True, succeeded=True, refund_id=refund_id
        )

    async def retry_failed_refunds(
        self,
        session: AsyncSession,
        max_attempts: int | None = None,
    ) -> RefundRetryReport:
        """Re-run refunds that previously failed, up to ``max_attempts`` tries."""
        max_attempts = max_attempts or settings.refund_max_attempts
        report = RefundRetryReport()

        question_ids = await QuestionRepository.list_refund_ids(
            session, RefundStatus.FAILED, max_attempts=max_attempts
        )
        for question_id in question_ids:
            outcome = await self.process_refund(
                session, question_id, from_status=RefundStatus.FAILED
            )
            if not outcome.attempted:
                continue
            report.attempted += 1
            if outcome.succeeded:
                report.succeeded += 1
            else:
                report.failures.append(outcome)

        logger.info(
            "Refund retry finished",
            attempted=report.attempted,
            succeeded=report.succeeded,
            failed=len(report.failures),
        )
        return report
