"""Tests for the Stripe payment gateway adapter."""

import hashlib
import hmac
import json
import time
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
import stripe

from expertqa.exceptions import UpstreamError, WebhookSignatureError
from expertqa.models import Question
from expertqa.services.payments import PaymentEventKind, StripePaymentGateway

WEBHOOK_SECRET = "whsec_test_secret"


def sign(payload: bytes, secret: str = WEBHOOK_SECRET) -> str:
    """Build a stripe-signature header the way Stripe does."""
    timestamp = int(time.time())
    signed = f"{timestamp}.{payload.decode('utf-8')}".encode()
    digest = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


def stripe_event(event_type: str, **data_object) -> bytes:
    return json.dumps(
        {
            "id": "evt_1",
            "object": "event",
            "type": event_type,
            "data": {"object": {"object": "checkout.session", **data_object}},
        }
    ).encode()


@pytest.fixture
def gateway() -> StripePaymentGateway:
    return StripePaymentGateway(
        secret_key="sk_test_123",
        webhook_secret=WEBHOOK_SECRET,
        currency="usd",
    )


class TestConstructEvent:
    """Tests for webhook authentication and event mapping."""

    def test_completed_paid_session(self, gateway: StripePaymentGateway) -> None:
        payload = stripe_event(
            "checkout.session.completed",
            id="cs_123",
            payment_status="paid",
            payment_intent="pi_123",
            metadata={"question_id": "42"},
        )

        event = gateway.construct_event(payload, sign(payload))

        assert event.event_id == "evt_1"
        assert event.kind == PaymentEventKind.COMPLETED
        assert event.question_id == 42
        assert event.payment_intent_id == "pi_123"
        assert event.checkout_session_id == "cs_123"
        assert event.source_type == "checkout.session.completed"

    def test_completed_but_unpaid_session_is_not_a_confirmation(
        self, gateway: StripePaymentGateway
    ) -> None:
        """Delayed payment methods confirm later via async_payment_succeeded."""
        payload = stripe_event(
            "checkout.session.completed",
            payment_status="unpaid",
            metadata={"question_id": "42"},
        )

        event = gateway.construct_event(payload, sign(payload))

        assert event.kind == PaymentEventKind.UNSUPPORTED

    @pytest.mark.parametrize(
        ("event_type", "kind"),
        [
            ("checkout.session.async_payment_succeeded", PaymentEventKind.COMPLETED),
            ("checkout.session.async_payment_failed", PaymentEventKind.FAILED),
            ("checkout.session.expired", PaymentEventKind.EXPIRED),
            ("charge.refunded", PaymentEventKind.UNSUPPORTED),
        ],
    )
    def test_event_kind_mapping(
        self,
        gateway: StripePaymentGateway,
        event_type: str,
        kind: PaymentEventKind,
    ) -> None:
        payload = stripe_event(event_type, metadata={"question_id": "7"})

        event = gateway.construct_event(payload, sign(payload))

        assert event.kind == kind
        assert event.question_id == 7

    @pytest.mark.parametrize("metadata", [None, {}, {"question_id": "abc"}])
    def test_missing_or_malformed_question_id(
        self, gateway: StripePaymentGateway, metadata
    ) -> None:
        payload = stripe_event(
            "checkout.session.completed", payment_status="paid", metadata=metadata
        )

        event = gateway.construct_event(payload, sign(payload))

        assert event.question_id is None

    def test_wrong_secret_rejected(self, gateway: StripePaymentGateway) -> None:
        payload = stripe_event("checkout.session.completed", payment_status="paid")

        with pytest.raises(WebhookSignatureError):
            gateway.construct_event(payload, sign(payload, secret="whsec_other"))

    def test_tampered_payload_rejected(self, gateway: StripePaymentGateway) -> None:
        payload = stripe_event(
            "checkout.session.completed",
            payment_status="paid",
            metadata={"question_id": "1"},
        )
        signature = sign(payload)
        tampered = payload.replace(b'"1"', b'"2"')

        with pytest.raises(WebhookSignatureError):
            gateway.construct_event(tampered, signature)

    def test_missing_signature_rejected(self, gateway: StripePaymentGateway) -> None:
        payload = stripe_event("checkout.session.completed", payment_status="paid")

        with pytest.raises(WebhookSignatureError) as exc_info:
            gateway.construct_event(payload, None)

        assert exc_info.value.error_code == "INVALID_SIGNATURE"


class TestCheckoutSession:
    """Tests for checkout session creation."""

    async def test_charges_snapshotted_price(
        self,
        gateway: StripePaymentGateway,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        create = MagicMock(
            return_value=SimpleNamespace(id="cs_1", url="https://checkout.stripe.com/cs_1")
        )
        monkeypatch.setattr(stripe.checkout.Session, "create", create)
        question = Question(id=5, price_cents=2500)

        checkout = await gateway.create_checkout_session(
            question,
            success_url="http://localhost:3000/ok",
            cancel_url="http://localhost:3000/cancel",
        )

        assert checkout.session_id == "cs_1"
        assert checkout.url == "https://checkout.stripe.com/cs_1"
        kwargs = create.call_args.kwargs
        assert kwargs["mode"] == "payment"
        assert kwargs["metadata"] == {"question_id": "5"}
        price_data = kwargs["line_items"][0]["price_data"]
        assert price_data["unit_amount"] == 2500
        assert price_data["currency"] == "usd"

    async def test_stripe_error_becomes_upstream_error(
        self,
        gateway: StripePaymentGateway,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr(
            stripe.checkout.Session,
            "create",
            MagicMock(side_effect=stripe.APIConnectionError("network down")),
        )

        with pytest.raises(UpstreamError):
            await gateway.create_checkout_session(
                Question(id=5, price_cents=2500),
                success_url="http://localhost:3000/ok",
                cancel_url="http://localhost:3000/cancel",
            )


class TestRefund:
    """Tests for refunds."""

    async def test_refund_passes_idempotency_key(
        self,
        gateway: StripePaymentGateway,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        create = MagicMock(return_value=SimpleNamespace(id="re_1", status="succeeded"))
        monkeypatch.setattr(stripe.Refund, "create", create)

        result = await gateway.refund("pi_123", "refund-5-1")

        assert result.refund_id == "re_1"
        assert result.status == "succeeded"
        create.assert_called_once_with(
            payment_intent="pi_123",
            reason="requested_by_customer",
            idempotency_key="refund-5-1",
        )

    async def test_refund_error_becomes_upstream_error(
        self,
        gateway: StripePaymentGateway,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr(
            stripe.Refund,
            "create",
            MagicMock(side_effect=stripe.InvalidRequestError("already refunded", "charge")),
        )

        with pytest.raises(UpstreamError) as exc_info:
            await gateway.refund("pi_123", "refund-5-1")

        assert exc_info.value.details["payment_intent_id"] == "pi_123"
