"""
Stats API Router

Read-only aggregations over the learner's quiz history.

Endpoints:
- GET /api/stats/overview - Totals, per-mode/difficulty stats, 7-day trend
- GET /api/stats/heatmap - Error counts per fretboard position
- GET /api/stats/note-mastery - Accuracy per note
- GET /api/stats/error-patterns - Breakdown of recent mistakes
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fretninja.db.base import get_db
from fretninja.dependencies import CurrentUser
from fretninja.enums.quiz import QuizType
from fretninja.middleware.error_handling import handle_endpoint_errors
from fretninja.models.stats import (
    ErrorPatternsResponse,
    HeatmapParams,
    HeatmapResponse,
    NoteMasteryResponse,
    StatsOverviewResponse,
)
from fretninja.services.practice import StatsService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/stats", tags=["stats"])


# ===========================================
# Dependency Injection
# ===========================================


async def get_stats_service(
    db: AsyncSession = Depends(get_db),
) -> StatsService:
    """Get stats service."""
    return StatsService(db)


# ===========================================
# Endpoints
# ===========================================


@router.get("/overview", response_model=StatsOverviewResponse)
@handle_endpoint_errors("Get stats overview")
async def get_overview(
    user_id: str = CurrentUser,
    service: StatsService = Depends(get_stats_service),
) -> StatsOverviewResponse:
    """
    Get overall statistics.

    Returns:
    - Completed quiz count and total practice time
    - Current and longest streak
    - Stats per quiz type and per difficulty
    - Last 7 days compared to the 7 days before
    """
    return await service.get_overview(user_id)


@router.get("/heatmap", response_model=HeatmapResponse)
@handle_endpoint_errors("Get error heatmap")
async def get_heatmap(
    params: Annotated[HeatmapParams, Query()],
    user_id: str = CurrentUser,
    service: StatsService = Depends(get_stats_service),
) -> HeatmapResponse:
    """
    Get error counts per fretboard position.

    Optional filters: quiz_type, from_date and to_date (YYYY-MM-DD, inclusive,
    matched against the session completion date).
    """
    return await service.get_heatmap(
        user_id, params.quiz_type, params.from_date, params.to_date
    )


@router.get("/note-mastery", response_model=NoteMasteryResponse)
@handle_endpoint_errors("Get note mastery")
async def get_note_mastery(
    user_id: str = CurrentUser,
    service: StatsService = Depends(get_stats_service),
) -> NoteMasteryResponse:
    """Get accuracy for each of the twelve notes."""
    return await service.get_note_mastery(user_id)


@router.get("/error-patterns", response_model=ErrorPatternsResponse)
@handle_endpoint_errors("Get error patterns")
async def get_error_patterns(
    quiz_type: Optional[QuizType] = Query(None, description="Limit to one quiz type"),
    user_id: str = CurrentUser,
    service: StatsService = Depends(get_stats_service),
) -> ErrorPatternsResponse:
    """
    Get a breakdown of recent mistakes by position, note and string.

    Returns 404 (insufficient_data) until enough mistakes have been recorded.
    """
    return await service.get_error_patterns(user_id, quiz_type)
