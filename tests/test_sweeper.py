"""Tests for the maintenance sweep and refund processing."""

import asyncio
from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from expertqa.exceptions import StateConflictError, UpstreamError
from expertqa.models import QuestionStatus, RefundStatus
from expertqa.repositories import EarningRepository, QuestionRepository
from expertqa.services.lifecycle import QuestionLifecycleService
from expertqa.services.payments import RefundResult
from expertqa.services.refunds import RefundService
from expertqa.services.sweeper import MaintenanceSweeper

from factories import ANSWERER_ID, T0

BEFORE_DEADLINE = T0 + timedelta(hours=3, minutes=59)
AFTER_DEADLINE = T0 + timedelta(hours=4, minutes=1)


class TestSweepDeadlines:
    """Tests for deadline enforcement by the sweep."""

    async def test_question_within_deadline_stays_pending(
        self,
        test_session: AsyncSession,
        sweeper: MaintenanceSweeper,
        mock_gateway: MagicMock,
        create_pending_question,
    ) -> None:
        question = await create_pending_question()

        report = await sweeper.sweep(now=BEFORE_DEADLINE)

        assert report.expired_count == 0
        assert report.expired_question_ids == []
        stored = await QuestionRepository.get_by_id(test_session, question.id)
        assert stored.status == QuestionStatus.PENDING
        mock_gateway.refund.assert_not_awaited()

    async def test_overdue_question_expired_and_refunded(
        self,
        test_session: AsyncSession,
        sweeper: MaintenanceSweeper,
        mock_gateway: MagicMock,
        create_pending_question,
    ) -> None:
        question = await create_pending_question()

        report = await sweeper.sweep(now=AFTER_DEADLINE)

        assert report.expired_count == 1
        assert report.expired_question_ids == [question.id]
        assert report.refunded_count == 1
        assert report.refund_failures == []
        mock_gateway.refund.assert_awaited_once_with(
            "pi_test_1", f"refund-{question.id}-1"
        )

        stored = await QuestionRepository.get_by_id(test_session, question.id)
        assert stored.status == QuestionStatus.EXPIRED
        assert stored.refund_status == RefundStatus.SUCCEEDED
        assert stored.refund_id == "re_test_1"
        assert stored.refund_attempts == 1
        assert stored.expired_at is not None

    async def test_overdue_question_without_payment_intent_is_not_refunded(
        self,
        test_session: AsyncSession,
        sweeper: MaintenanceSweeper,
        mock_gateway: MagicMock,
        create_pending_question,
    ) -> None:
        question = await create_pending_question(payment_intent_id=None)

        report = await sweeper.sweep(now=AFTER_DEADLINE)

        assert report.expired_count == 1
        assert report.refunded_count == 0
        mock_gateway.refund.assert_not_awaited()
        stored = await QuestionRepository.get_by_id(test_session, question.id)
        assert stored.status == QuestionStatus.EXPIRED
        assert stored.refund_status == RefundStatus.NOT_REQUIRED

    async def test_unpaid_questions_are_never_swept(
        self,
        test_session: AsyncSession,
        sweeper: MaintenanceSweeper,
        create_unpaid_question,
    ) -> None:
        question = await create_unpaid_question()

        report = await sweeper.sweep(now=T0 + timedelta(days=30))

        assert report.expired_count == 0
        stored = await QuestionRepository.get_by_id(test_session, question.id)
        assert stored.status == QuestionStatus.NOT_PAID

    async def test_sweeping_twice_refunds_once(
        self,
        test_session: AsyncSession,
        sweeper: MaintenanceSweeper,
        mock_gateway: MagicMock,
        create_pending_question,
    ) -> None:
        question = await create_pending_question()

        first = await sweeper.sweep(now=AFTER_DEADLINE)
        second = await sweeper.sweep(now=AFTER_DEADLINE + timedelta(hours=1))

        assert first.expired_count == 1
        assert second.expired_count == 0
        assert second.refunded_count == 0
        mock_gateway.refund.assert_awaited_once()
        stored = await QuestionRepository.get_by_id(test_session, question.id)
        assert stored.refund_attempts == 1


class TestSweepFailureIsolation:
    """One bad question never blocks the rest of the sweep."""

    async def test_refund_failure_leaves_question_expired(
        self,
        test_session: AsyncSession,
        sweeper: MaintenanceSweeper,
        mock_gateway: MagicMock,
        create_pending_question,
    ) -> None:
        failing = await create_pending_question()
        healthy = await create_pending_question()
        mock_gateway.refund.side_effect = [
            UpstreamError("stripe", "card_declined"),
            RefundResult(refund_id="re_test_2", status="succeeded"),
        ]

        report = await sweeper.sweep(now=AFTER_DEADLINE)

        assert report.expired_count == 2
        assert report.refunded_count == 1
        assert [f.question_id for f in report.refund_failures] == [failing.id]
        assert "UpstreamError" in report.refund_failures[0].error

        failed = await QuestionRepository.get_by_id(test_session, failing.id)
        assert failed.status == QuestionStatus.EXPIRED
        assert failed.refund_status == RefundStatus.FAILED
        assert "card_declined" in failed.refund_error

        refunded = await QuestionRepository.get_by_id(test_session, healthy.id)
        assert refunded.status == QuestionStatus.EXPIRED
        assert refunded.refund_status == RefundStatus.SUCCEEDED
        assert refunded.refund_id == "re_test_2"

    async def test_expiry_error_is_reported_and_others_continue(
        self,
        test_session: AsyncSession,
        sweeper: MaintenanceSweeper,
        create_pending_question,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        broken = await create_pending_question()
        healthy = await create_pending_question()
        original = sweeper.lifecycle_service.expire_question

        async def flaky_expire(session, question_id, now=None):
            if question_id == broken.id:
                raise RuntimeError("database hiccup")
            return await original(session, question_id, now)

        monkeypatch.setattr(sweeper.lifecycle_service, "expire_question", flaky_expire)

        report = await sweeper.sweep(now=AFTER_DEADLINE)

        assert report.expired_question_ids == [healthy.id]
        assert len(report.errors) == 1
        assert report.errors[0].question_id == broken.id
        assert "database hiccup" in report.errors[0].error

        stored = await QuestionRepository.get_by_id(test_session, broken.id)
        assert stored.status == QuestionStatus.PENDING


class TestAnswerVersusSweep:
    """Answer and sweep race for the same question: one wins."""

    async def test_answer_first_then_sweep(
        self,
        test_session: AsyncSession,
        lifecycle: QuestionLifecycleService,
        sweeper: MaintenanceSweeper,
        mock_gateway: MagicMock,
        create_pending_question,
    ) -> None:
        question = await create_pending_question()
        await lifecycle.submit_answer(
            test_session, question.id, ANSWERER_ID, "On time.", now=BEFORE_DEADLINE
        )

        report = await sweeper.sweep(now=AFTER_DEADLINE)

        assert report.expired_count == 0
        mock_gateway.refund.assert_not_awaited()
        stored = await QuestionRepository.get_by_id(test_session, question.id)
        assert stored.status == QuestionStatus.ANSWERED
        assert stored.refund_status == RefundStatus.NOT_REQUIRED

    async def test_sweep_first_then_answer(
        self,
        test_session: AsyncSession,
        lifecycle: QuestionLifecycleService,
        sweeper: MaintenanceSweeper,
        create_pending_question,
    ) -> None:
        question = await create_pending_question()
        await sweeper.sweep(now=AFTER_DEADLINE)

        with pytest.raises(StateConflictError) as exc_info:
            await lifecycle.submit_answer(
                test_session, question.id, ANSWERER_ID, "Too late.", now=AFTER_DEADLINE
            )

        assert exc_info.value.reason == StateConflictError.EXPIRED
        assert await EarningRepository.list_by_question_id(test_session, question.id) == []

    async def test_late_answer_expiry_is_refunded_by_next_sweep(
        self,
        test_session: AsyncSession,
        lifecycle: QuestionLifecycleService,
        sweeper: MaintenanceSweeper,
        mock_gateway: MagicMock,
        create_pending_question,
    ) -> None:
        question = await create_pending_question()
        with pytest.raises(StateConflictError):
            await lifecycle.submit_answer(
                test_session, question.id, ANSWERER_ID, "Too late.", now=AFTER_DEADLINE
            )

        report = await sweeper.sweep(now=AFTER_DEADLINE + timedelta(minutes=1))

        assert report.expired_count == 0
        assert report.refunded_count == 1
        mock_gateway.refund.assert_awaited_once()
        stored = await QuestionRepository.get_by_id(test_session, question.id)
        assert stored.refund_status == RefundStatus.SUCCEEDED


    async def test_concurrent_answer_and_sweep_commit_exactly_one_transition(
        self,
        session_factory,
        test_session: AsyncSession,
        lifecycle: QuestionLifecycleService,
        sweeper: MaintenanceSweeper,
        create_pending_question,
    ) -> None:
        question = await create_pending_question()

        async def answer():
            async with session_factory() as session:
                return await lifecycle.submit_answer(
                    session, question.id, ANSWERER_ID, "Just in time.", now=BEFORE_DEADLINE
                )

        answer_result, report = await asyncio.gather(
            answer(),
            sweeper.sweep(now=AFTER_DEADLINE),
            return_exceptions=True,
        )

        assert not isinstance(report, Exception)
        stored = await QuestionRepository.get_by_id(test_session, question.id)
        earnings = await EarningRepository.list_by_question_id(test_session, question.id)
        if isinstance(answer_result, Exception):
            assert isinstance(answer_result, StateConflictError)
            assert answer_result.reason == StateConflictError.EXPIRED
            assert report.expired_question_ids == [question.id]
            assert stored.status == QuestionStatus.EXPIRED
            assert earnings == []
        else:
            assert report.expired_count == 0
            assert stored.status == QuestionStatus.ANSWERED
            assert stored.refund_status == RefundStatus.NOT_REQUIRED
            assert len(earnings) == 1


class TestRefundService:
    """Tests for claiming and retrying refunds."""

    async def _expire_with_failed_refund(
        self, sweeper: MaintenanceSweeper, mock_gateway: MagicMock, create_pending_question
    ):
        question = await create_pending_question()
        mock_gateway.refund.side_effect = UpstreamError("stripe", "api_connection_error")
        await sweeper.sweep(now=AFTER_DEADLINE)
        mock_gateway.refund.side_effect = None
        mock_gateway.refund.reset_mock()
        return question

    async def test_retry_recovers_failed_refund(
        self,
        test_session: AsyncSession,
        sweeper: MaintenanceSweeper,
        mock_gateway: MagicMock,
        create_pending_question,
    ) -> None:
        question = await self._expire_with_failed_refund(
            sweeper, mock_gateway, create_pending_question
        )
        refund_service = RefundService(payment_gateway=mock_gateway)

        report = await refund_service.retry_failed_refunds(test_session, max_attempts=5)

        assert report.attempted == 1
        assert report.succeeded == 1
        assert report.failures == []
        mock_gateway.refund.assert_awaited_once_with(
            "pi_test_1", f"refund-{question.id}-2"
        )
        stored = await QuestionRepository.get_by_id(test_session, question.id)
        assert stored.refund_status == RefundStatus.SUCCEEDED
        assert stored.refund_attempts == 2
        assert stored.refund_error is None

    async def test_retry_still_failing_is_reported(
        self,
        test_session: AsyncSession,
        sweeper: MaintenanceSweeper,
        mock_gateway: MagicMock,
        create_pending_question,
    ) -> None:
        question = await self._expire_with_failed_refund(
            sweeper, mock_gateway, create_pending_question
        )
        mock_gateway.refund.side_effect = UpstreamError("stripe", "still down")
        refund_service = RefundService(payment_gateway=mock_gateway)

        report = await refund_service.retry_failed_refunds(test_session, max_attempts=5)

        assert report.attempted == 1
        assert report.succeeded == 0
        assert [f.question_id for f in report.failures] == [question.id]
        stored = await QuestionRepository.get_by_id(test_session, question.id)
        assert stored.status == QuestionStatus.EXPIRED
        assert stored.refund_status == RefundStatus.FAILED

    async def test_retry_respects_attempt_cap(
        self,
        test_session: AsyncSession,
        sweeper: MaintenanceSweeper,
        mock_gateway: MagicMock,
        create_pending_question,
    ) -> None:
        await self._expire_with_failed_refund(sweeper, mock_gateway, create_pending_question)
        refund_service = RefundService(payment_gateway=mock_gateway)

        report = await refund_service.retry_failed_refunds(test_session, max_attempts=1)

        assert report.attempted == 0
        mock_gateway.refund.assert_not_awaited()

    async def test_sweep_does_not_retry_failed_refunds(
        self,
        sweeper: MaintenanceSweeper,
        mock_gateway: MagicMock,
        create_pending_question,
    ) -> None:
        await self._expire_with_failed_refund(sweeper, mock_gateway, create_pending_question)

        report = await sweeper.sweep(now=AFTER_DEADLINE + timedelta(hours=1))

        assert report.refunded_count == 0
        mock_gateway.refund.assert_not_awaited()

    async def test_claimed_refund_is_not_processed_twice(
        self,
        test_session: AsyncSession,
        sweeper: MaintenanceSweeper,
        mock_gateway: MagicMock,
        create_pending_question,
    ) -> None:
        question = await create_pending_question()
        await sweeper.sweep(now=AFTER_DEADLINE)
        mock_gateway.refund.reset_mock()
        refund_service = RefundService(payment_gateway=mock_gateway)

        outcome = await refund_service.process_refund(test_session, question.id)

        assert outcome.attempted is False
        mock_gateway.refund.assert_not_awaited()
