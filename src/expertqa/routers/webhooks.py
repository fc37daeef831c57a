"""Payment gateway webhook endpoint.

No caller authentication: the payload signature is verified instead.
"""

from fastapi import APIRouter, Depends, Request
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from expertqa.db import get_db
from expertqa.dependencies import get_lifecycle_service
from expertqa.schemas.maintenance import WebhookResponse
from expertqa.services.lifecycle import QuestionLifecycleService

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


@router.post(
    "/payment",
    response_model=WebhookResponse,
    summary="Receive payment gateway events",
)
async def payment_webhook(
    request: Request,
    lifecycle: QuestionLifecycleService = Depends(get_lifecycle_service),
    session: AsyncSession = Depends(get_db),
) -> WebhookResponse:
    """Authenticate a gateway event and apply it to its question."""
    payload = await request.body()
    signature = request.headers.get("stripe-signature")

    event = lifecycle.payment_gateway.construct_event(payload, signature)

    logger.info(
        "Received payment event",
        event_id=event.event_id,
        kind=event.kind,
        question_id=event.question_id,
    )

    outcome = await lifecycle.handle_payment_event(session, event)
    return WebhookResponse(outcome=outcome)
