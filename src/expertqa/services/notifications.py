"""Notification dispatch for lifecycle events.

Message rendering and delivery belong to an external notification service;
this module only decides who is told what.
"""

from abc import ABC, abstractmethod
from typing import Any

import httpx
from loguru import logger

from expertqa.config import settings
from expertqa.exceptions import UpstreamError
from expertqa.models.answer import Answer
from expertqa.models.question import Question


class Notifier(ABC):
    """Abstract interface for notifying questioners and answerers."""

    @abstractmethod
    async def question_assigned(self, question: Question) -> None:
        """Tell the answerer a paid question is waiting for them."""

    @abstractmethod
    async def question_answered(self, question: Question, answer: Answer) -> None:
        """Tell the questioner their question was answered."""

    @abstractmethod
    async def answer_reviewed(self, question: Question, answer: Answer) -> None:
        """Tell the answerer the questioner rated their answer."""


def _assigned_payload(question: Question) -> dict[str, Any]:
    return {
        "event": "question.assigned",
        "recipient_id": question.answerer_id,
        "recipient_role": "answerer",
        "question_id": question.id,
        "content": question.content,
        "response_time_hours": question.response_time_hours,
        "deadline_at": question.deadline_at.isoformat() if question.deadline_at else None,
    }


def _answered_payload(question: Question, answer: Answer) -> dict[str, Any]:
    return {
        "event": "question.answered",
        "recipient_id": question.questioner_id,
        "recipient_role": "questioner",
        "question_id": question.id,
        "answer_id": answer.id,
        "answerer_id": question.answerer_id,
        "content": answer.content,
    }


def _reviewed_payload(question: Question, answer: Answer) -> dict[str, Any]:
    return {
        "event": "answer.reviewed",
        "recipient_id": question.answerer_id,
        "recipient_role": "answerer",
        "question_id": question.id,
        "answer_id": answer.id,
        "rating": answer.rating,
        "review": answer.review,
    }


class LoggingNotifier(Notifier):
    """Log notifications instead of sending them (development)."""

    async def question_assigned(self, question: Question) -> None:
        logger.info("Notification logged (not sent)", **_assigned_payload(question))

    async def question_answered(self, question: Question, answer: Answer) -> None:
        logger.info(
            "Notification logged (not sent)", **_answered_payload(question, answer)
        )

    async def answer_reviewed(self, question: Question, answer: Answer) -> None:
        logger.info(
            "Notification logged (not sent)", **_reviewed_payload(question, answer)
        )


class HttpNotifier(Notifier):
    """Forward notifications to the notification service over HTTP."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.notification_service_url).rstrip("/")
        self.timeout_seconds = timeout_seconds or settings.notification_timeout_seconds
        self.transport = transport

    async def question_assigned(self, question: Question) -> None:
        await self._post(_assigned_payload(question))

    async def question_answered(self, question: Question, answer: Answer) -> None:
        await self._post(_answered_payload(question, answer))

    async def answer_reviewed(self, question: Question, answer: Answer) -> None:
        await self._post(_reviewed_payload(question, answer))

    async def _post(self, payload: dict[str, Any]) -> None:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds, transport=self.transport
            ) as client:
                response = await client.post(f"{self.base_url}/notifications", json=payload)
                response.raise_for_status()
        except httpx.HTTPError as exc:
            raise UpstreamError(
                "notifications",
                str(exc),
                details={"event": payload["event"], "question_id": payload["question_id"]},
            ) from exc

        logger.info(
            "Notification sent",
            notification_event=payload["event"],
            question_id=payload["question_id"],
        )


def get_notifier() -> Notifier:
    """Return the notifier selected by ``settings.notification_backend``."""
    if settings.notification_backend == "http" and settings.notification_service_url:
        return HttpNotifier()
    return LoggingNotifier()
