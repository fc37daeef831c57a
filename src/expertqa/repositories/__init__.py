"""Repository layer for database operations."""

from expertqa.repositories.answer import AnswerRepository
from expertqa.repositories.earning import EarningRepository
from expertqa.repositories.payment_event import PaymentEventRepository
from expertqa.repositories.question import QuestionRepository
from expertqa.repositories.question_type import QuestionTypeRepository

__all__ = [
    "AnswerRepository",
    "EarningRepository",
    "PaymentEventRepository",
    "QuestionRepository",
    "QuestionTypeRepository",
]
