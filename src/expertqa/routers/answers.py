"""Answer submission and review endpoints."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from expertqa.db import get_db
from expertqa.dependencies import get_current_user_id, get_lifecycle_service
from expertqa.schemas.answer import (
    AnswerResponse,
    AnswerReviewRequest,
    AnswerSubmissionRequest,
)
from expertqa.schemas.common import ErrorResponse, StateConflictResponse
from expertqa.services.lifecycle import QuestionLifecycleService

router = APIRouter(prefix="/answers", tags=["Answers"])


@router.post(
    "/{question_id}",
    response_model=AnswerResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Answer a question",
    description=(
        "Submit the answer to a pending question before its deadline. "
        "Late answers are rejected with reason 'expired'."
    ),
    responses={
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": StateConflictResponse},
    },
)
async def submit_answer(
    question_id: int,
    request: AnswerSubmissionRequest,
    user_id: int = Depends(get_current_user_id),
    lifecycle: QuestionLifecycleService = Depends(get_lifecycle_service),
    session: AsyncSession = Depends(get_db),
) -> AnswerResponse:
    """Answer a question assigned to the caller."""
    answer = await lifecycle.submit_answer(
        session=session,
        question_id=question_id,
        answerer_id=user_id,
        content=request.content,
    )
    return AnswerResponse.model_validate(answer)


@router.post(
    "/{answer_id}/review",
    response_model=AnswerResponse,
    summary="Review an answer",
    description="Rate (1-5) and optionally review the answer to your question.",
)
async def review_answer(
    answer_id: int,
    request: AnswerReviewRequest,
    user_id: int = Depends(get_current_user_id),
    lifecycle: QuestionLifecycleService = Depends(get_lifecycle_service),
    session: AsyncSession = Depends(get_db),
) -> AnswerResponse:
    """Store the questioner's rating and review."""
    answer = await lifecycle.review_answer(
        session=session,
        answer_id=answer_id,
        questioner_id=user_id,
        rating=request.rating,
        review=request.review,
    )
    return AnswerResponse.model_validate(answer)
