"""Database models package."""

from expertqa.models.answer import Answer
from expertqa.models.base import Base
from expertqa.models.earning import Earning
from expertqa.models.payment_event import PaymentEventReceipt
from expertqa.models.question import Question, QuestionStatus, RefundStatus
from expertqa.models.question_type import QuestionKind, QuestionType

__all__ = [
    "Answer",
    "Base",
    "Earning",
    "PaymentEventReceipt",
    "Question",
    "QuestionKind",
    "QuestionStatus",
    "QuestionType",
    "RefundStatus",
]
