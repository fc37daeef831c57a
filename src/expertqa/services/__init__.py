"""Service layer for business logic."""

from expertqa.services.lifecycle import PaymentEventOutcome, QuestionLifecycleService
from expertqa.services.notifications import HttpNotifier, LoggingNotifier, Notifier
from expertqa.services.payments import PaymentGateway, StripePaymentGateway
from expertqa.services.refunds import RefundService
from expertqa.services.scheduler import SweepScheduler
from expertqa.services.stats import AnswererStatsService
from expertqa.services.sweeper import MaintenanceSweeper, SweepReport

__all__ = [
    "AnswererStatsService",
    "HttpNotifier",
    "LoggingNotifier",
    "MaintenanceSweeper",
    "Notifier",
    "PaymentEventOutcome",
    "PaymentGateway",
    "QuestionLifecycleService",
    "RefundService",
    "StripePaymentGateway",
    "SweepReport",
    "SweepScheduler",
]
