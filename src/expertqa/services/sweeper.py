"""Maintenance sweep: expire overdue questions and refund them.

Runs hourly from :mod:`expertqa.services.scheduler` and on demand from the
maintenance endpoint; both call :meth:`MaintenanceSweeper.sweep`.
"""

from dataclasses import dataclass, field
from datetime import datetime

from loguru import logger

from expertqa.db import SessionFactory, get_session_factory
from expertqa.models.question import RefundStatus
from expertqa.repositories.question import QuestionRepository
from expertqa.services.lifecycle import QuestionLifecycleService
from expertqa.services.refunds import RefundService
from expertqa.sla import utcnow


@dataclass
class ItemFailure:
    """A per-question error collected during a sweep."""

    question_id: int
    error: str


@dataclass
class SweepReport:
    """Summary of one sweep run."""

    swept_at: datetime
    expired_count: int = 0
    refunded_count: int = 0
    expired_question_ids: list[int] = field(default_factory=list)
    refund_failures: list[ItemFailure] = field(default_factory=list)
    errors: list[ItemFailure] = field(default_factory=list)


class MaintenanceSweeper:
    """Find overdue pending questions and drive them to EXPIRED."""

    def __init__(
        self,
        session_factory: SessionFactory | None = None,
        refund_service: RefundService | None = None,
        lifecycle_service: QuestionLifecycleService | None = None,
    ) -> None:
        self.session_factory = session_factory or get_session_factory()
        self.refund_service = refund_service or RefundService()
        self.lifecycle_service = lifecycle_service or QuestionLifecycleService(
            payment_gateway=self.refund_service.payment_gateway
        )

    async def sweep(self, now: datetime | None = None) -> SweepReport:
        """Expire every overdue question, then run pending refunds.

        Each question is handled in its own transaction; one failure never
        stops the others.
        """
        now = now or utcnow()
        report = SweepReport(swept_at=now)

        async with self.session_factory() as session:
            overdue_ids = await QuestionRepository.list_overdue_ids(session, now)
            logger.info("Sweep started", overdue_count=len(overdue_ids))

            for question_id in overdue_ids:
                try:
                    expired = await self.lifecycle_service.expire_question(
                        session, question_id, now
                    )
                except Exception as exc:
                    await session.rollback()
                    error = f"{type(exc).__name__}: {exc}"
                    logger.error(
                        "Failed to expire question",
                        question_id=question_id,
                        error=error,
                    )
                    report.errors.append(ItemFailure(question_id, error))
                    continue

                if expired:
                    report.expired_count += 1
                    report.expired_question_ids.append(question_id)

            refund_ids = await QuestionRepository.list_refund_ids(
                session, RefundStatus.PENDING
            )
            for question_id in refund_ids:
                try:
                    outcome = await self.refund_service.process_refund(
                        session, question_id
                    )
                except Exception as exc:
                    await session.rollback()
                    error = f"{type(exc).__name__}: {exc}"
                    logger.error(
                        "Refund processing crashed",
                        question_id=question_id,
                        error=error,
                    )
                    report.refund_failures.append(ItemFailure(question_id, error))
                    continue

                if not outcome.attempted:
                    continue
                if outcome.succeeded:
                    report.refunded_count += 1
                else:
                    report.refund_failures.append(
                        ItemFailure(question_id, outcome.error or "unknown error")
                    )

        logger.info(
            "Sweep finished",
            expired_count=report.expired_count,
            refunded_count=report.refunded_count,
            refund_failures=len(report.refund_failures),
            errors=len(report.errors),
        )
        return report
