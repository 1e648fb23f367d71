"""
Achievements API Router

Endpoints:
- GET /api/achievements - Achievement catalog
- GET /api/user/achievements - Earned achievements and progress toward the rest
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fretninja.db.base import get_db
from fretninja.dependencies import CurrentUser
from fretninja.middleware.error_handling import handle_endpoint_errors
from fretninja.models.achievements import (
    AchievementListResponse,
    UserAchievementsResponse,
)
from fretninja.services.practice import AchievementService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["achievements"])


async def get_achievement_service(
    db: AsyncSession = Depends(get_db),
) -> AchievementService:
    """Get achievement service."""
    return AchievementService(db)


@router.get("/achievements", response_model=AchievementListResponse)
@handle_endpoint_errors("List achievements")
async def list_achievements(
    service: AchievementService = Depends(get_achievement_service),
) -> AchievementListResponse:
    """Get every achievement that can be earned."""
    return await service.list_achievements()


@router.get("/user/achievements", response_model=UserAchievementsResponse)
@handle_endpoint_errors("Get user achievements")
async def get_user_achievements(
    user_id: str = CurrentUser,
    service: AchievementService = Depends(get_achievement_service),
) -> UserAchievementsResponse:
    """
    Get the learner's achievements.

    earned is newest first; progress lists the rest, closest to unlocking first.
    """
    return await service.get_user_achievements(user_id)
