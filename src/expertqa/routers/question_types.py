"""Question type configuration endpoints for answerers."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from expertqa.db import get_db
from expertqa.dependencies import get_current_user_id
from expertqa.exceptions import NotFoundError
from expertqa.repositories.question_type import QuestionTypeRepository
from expertqa.schemas.question_type import (
    QuestionTypeCreateRequest,
    QuestionTypeResponse,
    QuestionTypeUpdateRequest,
)

router = APIRouter(prefix="/question-types", tags=["Question Types"])


@router.get(
    "",
    response_model=list[QuestionTypeResponse],
    summary="List my question types",
)
async def list_question_types(
    user_id: int = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db),
) -> list[QuestionTypeResponse]:
    """List question types configured by the calling answerer."""
    question_types = await QuestionTypeRepository.list_by_answerer(session, user_id)
    return [QuestionTypeResponse.model_validate(qt) for qt in question_types]


@router.post(
    "",
    response_model=QuestionTypeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a question type",
)
async def create_question_type(
    request: QuestionTypeCreateRequest,
    user_id: int = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db),
) -> QuestionTypeResponse:
    """Create a question type owned by the calling answerer."""
    question_type = await QuestionTypeRepository.create(
        session=session,
        answerer_id=user_id,
        kind=request.kind,
        price_cents=request.price_cents,
        response_time_hours=request.response_time_hours,
        number_of_choice_options=request.number_of_choice_options,
        enabled=request.enabled,
    )
    return QuestionTypeResponse.model_validate(question_type)


@router.put(
    "/{question_type_id}",
    response_model=QuestionTypeResponse,
    summary="Update a question type",
    description="Changes apply to questions created afterwards only.",
)
async def update_question_type(
    question_type_id: int,
    request: QuestionTypeUpdateRequest,
    user_id: int = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db),
) -> QuestionTypeResponse:
    """Update a question type owned by the caller."""
    question_type = await QuestionTypeRepository.get_by_id(session, question_type_id)
    if question_type is None or question_type.answerer_id != user_id:
        raise NotFoundError(resource="QuestionType", resource_id=question_type_id)

    question_type = await QuestionTypeRepository.update(
        session, question_type, request.model_dump(exclude_unset=True, exclude_none=True)
    )
    return QuestionTypeResponse.model_validate(question_type)
