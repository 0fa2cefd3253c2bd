"""
Kindred Backend — Analytics Routes
===================================

What:  Client-reported session length and feedback, plus admin dashboards.
Who:   Session-end beacon and feedback form (any user); analytics page (admins).

Admin endpoints require the caller's id in ADMIN_USER_IDS (→ 403 otherwise).
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from kindred.database import get_db_session
from kindred.dependencies import get_current_user_id, require_admin
from kindred.schemas.analytics import (
    AlgorithmMetricResponse,
    FeedbackRequest,
    FeedbackSummaryResponse,
    SessionEndRequest,
    SuccessResponse,
    UserMetricsDay,
)
from kindred.schemas.common import ErrorResponse
from kindred.services.analytics_service import analytics_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/analytics", tags=["Analytics"])

_admin_errors = {
    401: {"description": "Missing or invalid X-User-ID", "model": ErrorResponse},
    403: {"description": "Admins only", "model": ErrorResponse},
}

_days = Query(default=30, ge=1, le=365, description="How many days back to include")


@router.post("/session-end", response_model=SuccessResponse, summary="Report session length")
async def session_end(
    payload: SessionEndRequest,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> SuccessResponse:
    await analytics_service.end_session(db, user_id, payload.duration)
    return SuccessResponse()


@router.post("/feedback", response_model=SuccessResponse, summary="Submit feedback")
async def submit_feedback(
    payload: FeedbackRequest,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> SuccessResponse:
    await analytics_service.submit_feedback(db, user_id, payload)
    return SuccessResponse()


@router.get(
    "/algorithm-metrics",
    response_model=List[AlgorithmMetricResponse],
    responses=_admin_errors,
    summary="Daily algorithm roll-ups",
)
async def algorithm_metrics(
    days: int = _days,
    _admin: int = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> List[AlgorithmMetricResponse]:
    return await analytics_service.list_algorithm_metrics(db, days)


@router.post(
    "/algorithm-metrics/record",
    response_model=AlgorithmMetricResponse,
    responses=_admin_errors,
    summary="Roll up yesterday's algorithm metrics",
    description="Meant for a daily scheduled job. Re-running overwrites that day's row.",
)
async def record_algorithm_metrics(
    admin_id: int = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> AlgorithmMetricResponse:
    logger.info("Algorithm metrics roll-up requested by user %s", admin_id)
    return await analytics_service.record_algorithm_metrics(db)


@router.get(
    "/user-metrics",
    response_model=List[UserMetricsDay],
    responses=_admin_errors,
    summary="Daily activity across all users",
)
async def user_metrics(
    days: int = _days,
    _admin: int = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> List[UserMetricsDay]:
    return await analytics_service.user_metrics_summary(db, days)


@router.get(
    "/feedback-summary",
    response_model=FeedbackSummaryResponse,
    responses=_admin_errors,
    summary="Average feedback ratings",
)
async def feedback_summary(
    days: int = _days,
    _admin: int = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> FeedbackSummaryResponse:
    return await analytics_service.feedback_summary(db, days)
