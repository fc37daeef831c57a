"""Operational endpoints: on-demand sweep and refund retry."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from expertqa.db import get_db
from expertqa.dependencies import get_refund_service, get_sweeper, require_maintenance_token
from expertqa.schemas.maintenance import (
    ItemFailureResponse,
    RefundRetryResponse,
    SweepReportResponse,
)
from expertqa.services.refunds import RefundService
from expertqa.services.sweeper import MaintenanceSweeper

router = APIRouter(
    prefix="/maintenance",
    tags=["Maintenance"],
    dependencies=[Depends(require_maintenance_token)],
)


@router.get(
    "/sweep",
    response_model=SweepReportResponse,
    summary="Run the maintenance sweep now",
    description=(
        "Expire overdue pending questions and refund them. Same routine as "
        "the hourly scheduled sweep."
    ),
)
async def run_sweep(
    sweeper: MaintenanceSweeper = Depends(get_sweeper),
) -> SweepReportResponse:
    """Trigger the sweep manually."""
    report = await sweeper.sweep()
    return SweepReportResponse.model_validate(report)


@router.post(
    "/refunds/retry",
    response_model=RefundRetryResponse,
    summary="Retry failed refunds",
)
async def retry_refunds(
    refund_service: RefundService = Depends(get_refund_service),
    session: AsyncSession = Depends(get_db),
) -> RefundRetryResponse:
    """Re-attempt refunds that failed during earlier sweeps."""
    report = await refund_service.retry_failed_refunds(session)
    return RefundRetryResponse(
        attempted=report.attempted,
        succeeded=report.succeeded,
        failures=[
            ItemFailureResponse(question_id=f.question_id, error=f.error or "unknown error")
            for f in report.failures
        ],
    )
