"""Question submission, checkout and lookup endpoints."""

from fastapi import APIRouter, Depends, Query, status
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from expertqa.db import get_db
from expertqa.dependencies import get_current_user_id, get_lifecycle_service
from expertqa.models.question import QuestionStatus
from expertqa.repositories.question import QuestionRepository
from expertqa.schemas.question import (
    CheckoutSessionResponse,
    QuestionCreateRequest,
    QuestionDetailResponse,
    QuestionListResponse,
    QuestionResponse,
)
from expertqa.services.lifecycle import QuestionLifecycleService

router = APIRouter(prefix="/questions", tags=["Questions"])


@router.post(
    "",
    response_model=QuestionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Ask a question",
    description=(
        "Create a question in the not_paid state. Price and response time are "
        "captured from the question type at this moment."
    ),
)
async def create_question(
    request: QuestionCreateRequest,
    user_id: int = Depends(get_current_user_id),
    lifecycle: QuestionLifecycleService = Depends(get_lifecycle_service),
    session: AsyncSession = Depends(get_db),
) -> QuestionResponse:
    """Create an unpaid question for the calling questioner."""
    question = await lifecycle.create_question(
        session=session,
        questioner_id=user_id,
        question_type_id=request.question_type_id,
        answerer_id=request.answerer_id,
        content=request.content,
        choices=request.choices,
    )
    return QuestionResponse.model_validate(question)


async def _list_questions(
    session: AsyncSession,
    page: int,
    limit: int,
    question_status: QuestionStatus | None,
    **party: int,
) -> QuestionListResponse:
    questions, total = await QuestionRepository.list_paid(
        session,
        status=question_status,
        offset=(page - 1) * limit,
        limit=limit,
        **party,
    )
    return QuestionListResponse(
        total=total,
        page=page,
        limit=limit,
        questions=[QuestionDetailResponse.model_validate(q) for q in questions],
    )


@router.get(
    "/asked",
    response_model=QuestionListResponse,
    summary="List questions I asked",
    description="Paid questions asked by the caller, newest first.",
)
async def list_asked_questions(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    question_status: QuestionStatus | None = Query(None, alias="status"),
    user_id: int = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db),
) -> QuestionListResponse:
    """List the caller's asked questions."""
    return await _list_questions(
        session, page, limit, question_status, questioner_id=user_id
    )


@router.get(
    "/received",
    response_model=QuestionListResponse,
    summary="List questions I received",
    description="Paid questions addressed to the caller, newest first.",
)
async def list_received_questions(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    question_status: QuestionStatus | None = Query(None, alias="status"),
    user_id: int = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db),
) -> QuestionListResponse:
    """List questions the caller has to answer."""
    return await _list_questions(
        session, page, limit, question_status, answerer_id=user_id
    )


@router.get(
    "/{question_id}",
    response_model=QuestionDetailResponse,
    summary="Get a question",
    description="Return a question and its answer to either of its two parties.",
)
async def get_question(
    question_id: int,
    user_id: int = Depends(get_current_user_id),
    lifecycle: QuestionLifecycleService = Depends(get_lifecycle_service),
    session: AsyncSession = Depends(get_db),
) -> QuestionDetailResponse:
    """Retrieve a question with its answer."""
    question = await lifecycle.get_question(session, question_id, user_id)
    return QuestionDetailResponse.model_validate(question)


@router.get(
    "/{question_id}/checkout-session",
    response_model=CheckoutSessionResponse,
    summary="Start payment for a question",
    description="Create a gateway checkout session for an unpaid question.",
)
async def create_checkout_session(
    question_id: int,
    user_id: int = Depends(get_current_user_id),
    lifecycle: QuestionLifecycleService = Depends(get_lifecycle_service),
    session: AsyncSession = Depends(get_db),
) -> CheckoutSessionResponse:
    """Return the redirect handle for paying a question."""
    checkout = await lifecycle.create_checkout_session(
        session=session,
        question_id=question_id,
        questioner_id=user_id,
    )

    logger.info(
        "Checkout session returned",
        question_id=question_id,
        session_id=checkout.session_id,
    )

    return CheckoutSessionResponse(
        question_id=question_id,
        session_id=checkout.session_id,
        url=checkout.url,
    )
