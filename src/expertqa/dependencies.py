"""FastAPI dependencies shared by the routers."""

from fastapi import Depends, Header

from expertqa.config import settings
from expertqa.exceptions import AuthenticationError, AuthorizationError
from expertqa.services.lifecycle import QuestionLifecycleService
from expertqa.services.notifications import Notifier, get_notifier
from expertqa.services.payments import PaymentGateway, get_payment_gateway
from expertqa.services.refunds import RefundService
from expertqa.services.sweeper import MaintenanceSweeper


def get_current_user_id(x_user_id: str | None = Header(None)) -> int:
    """Return the caller's user id as forwarded by the auth layer."""
    if not x_user_id:
        raise AuthenticationError()
    try:
        user_id = int(x_user_id)
    except ValueError as exc:
        raise AuthenticationError("Malformed X-User-Id header") from exc
    if user_id < 1:
        raise AuthenticationError("Malformed X-User-Id header")
    return user_id


def require_maintenance_token(x_maintenance_token: str | None = Header(None)) -> None:
    """Guard maintenance endpoints when a maintenance token is configured."""
    if settings.maintenance_token and x_maintenance_token != settings.maintenance_token:
        raise AuthorizationError("Invalid maintenance token")


def get_lifecycle_service(
    payment_gateway: PaymentGateway = Depends(get_payment_gateway),
    notifier: Notifier = Depends(get_notifier),
) -> QuestionLifecycleService:
    """Build the lifecycle engine with the configured collaborators."""
    return QuestionLifecycleService(payment_gateway=payment_gateway, notifier=notifier)


def get_refund_service(
    payment_gateway: PaymentGateway = Depends(get_payment_gateway),
) -> RefundService:
    """Build the refund service with the configured gateway."""
    return RefundService(payment_gateway=payment_gateway)


def get_sweeper(
    refund_service: RefundService = Depends(get_refund_service),
) -> MaintenanceSweeper:
    """Build the sweeper used by the on-demand maintenance endpoint."""
    return MaintenanceSweeper(refund_service=refund_service)
