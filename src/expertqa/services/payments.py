"""Payment gateway adapter.

The lifecycle engine only talks to :class:`PaymentGateway`; Stripe is the
single concrete provider.
"""

import asyncio
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

import stripe
from loguru import logger

from expertqa.config import settings
from expertqa.exceptions import UpstreamError, WebhookSignatureError
from expertqa.models.question import Question


class PaymentEventKind(StrEnum):
    """Gateway events the lifecycle engine reacts to."""

    COMPLETED = "completed"
    FAILED = "failed"
    EXPIRED = "expired"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class PaymentEvent:
    """An authenticated gateway event, reduced to what the core needs."""

    event_id: str
    kind: PaymentEventKind
    question_id: int | None
    payment_intent_id: str | None = None
    checkout_session_id: str | None = None
    source_type: str = ""


@dataclass(frozen=True)
class CheckoutSession:
    """Handle for a gateway-hosted checkout flow."""

    session_id: str
    url: str


@dataclass(frozen=True)
class RefundResult:
    """Outcome reported by the gateway for a refund request."""

    refund_id: str
    status: str


class PaymentGateway(ABC):
    """Abstract interface for payment providers."""

    @abstractmethod
    async def create_checkout_session(
        self,
        question: Question,
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        """Start a checkout for the question's snapshotted price."""

    @abstractmethod
    def construct_event(self, payload: bytes, signature: str | None) -> PaymentEvent:
        """Authenticate and parse a webhook payload.

        Raises:
            WebhookSignatureError: If the payload is not authentic.
        """

    @abstractmethod
    async def refund(self, payment_intent_id: str, idempotency_key: str) -> RefundResult:
        """Refund a captured payment.

        Raises:
            UpstreamError: If the gateway is unreachable or rejects the refund.
        """


_STRIPE_EVENT_KINDS: dict[str, PaymentEventKind] = {
    "checkout.session.completed": PaymentEventKind.COMPLETED,
    "checkout.session.async_payment_succeeded": PaymentEventKind.COMPLETED,
    "checkout.session.async_payment_failed": PaymentEventKind.FAILED,
    "checkout.session.expired": PaymentEventKind.EXPIRED,
}


def _parse_question_id(metadata: Any) -> int | None:
    raw = (metadata or {}).get("question_id")
    try:
        return int(raw) if raw is not None else None
    except (TypeError, ValueError):
        return None


class StripePaymentGateway(PaymentGateway):
    """Stripe Checkout implementation."""

    def __init__(
        self,
        secret_key: str | None = None,
        webhook_secret: str | None = None,
        currency: str | None = None,
    ) -> None:
        stripe.api_key = secret_key if secret_key is not None else settings.stripe_secret_key
        self.webhook_secret = (
            webhook_secret if webhook_secret is not None else settings.stripe_webhook_secret
        )
        self.currency = currency or settings.currency

    async def create_checkout_session(
        self,
        question: Question,
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        """Create a one-off payment session tagged with the question id."""
        metadata = {"question_id": str(question.id)}
        try:
            session = await asyncio.to_thread(
                stripe.checkout.Session.create,
                line_items=[
                    {
                        "price_data": {
                            "currency": self.currency,
                            "product_data": {"name": "Ask a Question"},
                            "unit_amount": question.price_cents,
                        },
                        "quantity": 1,
                    }
                ],
                mode="payment",
                success_url=success_url,
                cancel_url=cancel_url,
                metadata=metadata,
                payment_intent_data={"metadata": metadata},
            )
        except stripe.StripeError as exc:
            logger.error(
                "Failed to create checkout session",
                question_id=question.id,
                error=str(exc),
            )
            raise UpstreamError("stripe", str(exc)) from exc

        logger.info(
            "Created checkout session",
            question_id=question.id,
            session_id=session.id,
        )
        return CheckoutSession(session_id=session.id, url=session.url)

    def construct_event(self, payload: bytes, signature: str | None) -> PaymentEvent:
        """Verify the Stripe signature and map the event onto a PaymentEvent."""
        if not signature:
            raise WebhookSignatureError("Missing stripe-signature header")

        try:
            stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
            event = json.loads(payload)
        except ValueError as exc:
            raise WebhookSignatureError(f"Invalid payload: {exc}") from exc
        except stripe.SignatureVerificationError as exc:
            logger.warning("Stripe webhook signature verification failed", error=str(exc))
            raise WebhookSignatureError() from exc

        event_type = event["type"]
        data_object = event["data"]["object"]
        kind = _STRIPE_EVENT_KINDS.get(event_type, PaymentEventKind.UNSUPPORTED)

        # completed fires with payment_status "unpaid" for delayed payment methods;
        # those are confirmed later by async_payment_succeeded.
        if event_type == "checkout.session.completed" and data_object.get(
            "payment_status"
        ) not in ("paid", "no_payment_required"):
            kind = PaymentEventKind.UNSUPPORTED

        return PaymentEvent(
            event_id=event["id"],
            kind=kind,
            question_id=_parse_question_id(data_object.get("metadata")),
            payment_intent_id=data_object.get("payment_intent"),
            checkout_session_id=data_object.get("id"),
            source_type=event_type,
        )

    async def refund(self, payment_intent_id: str, idempotency_key: str) -> RefundResult:
        """Refund the full payment behind a payment intent."""
        try:
            refund = await asyncio.to_thread(
                stripe.Refund.create,
                payment_intent=payment_intent_id,
                reason="requested_by_customer",
                idempotency_key=idempotency_key,
            )
        except stripe.StripeError as exc:
            raise UpstreamError(
                "stripe",
                str(exc),
                details={"payment_intent_id": payment_intent_id},
            ) from exc

        return RefundResult(refund_id=refund.id, status=refund.status or "pending")


def get_payment_gateway() -> PaymentGateway:
    """Return the configured payment gateway."""
    return StripePaymentGateway()
