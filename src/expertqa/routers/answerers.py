"""Public answerer statistics endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from expertqa.db import get_db
from expertqa.schemas.stats import AnswererStatsResponse
from expertqa.services.stats import AnswererStatsService

router = APIRouter(prefix="/answerers", tags=["Answerers"])


@router.get(
    "/{answerer_id}/stats",
    response_model=AnswererStatsResponse,
    summary="Get answerer statistics",
    description="Response rate, rating and earnings derived from stored questions.",
)
async def get_answerer_stats(
    answerer_id: int,
    session: AsyncSession = Depends(get_db),
) -> AnswererStatsResponse:
    stats = await AnswererStatsService.get_stats(session, answerer_id)
    return AnswererStatsResponse.model_validate(stats)
