"""
Profile API Router

Endpoints:
- GET /api/profile - Learner profile (created on first access)
- PATCH /api/profile - Update display settings
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fretninja.db.base import get_db
from fretninja.dependencies import CurrentUser
from fretninja.middleware.error_handling import handle_endpoint_errors
from fretninja.models.profile import ProfileResponse, ProfileUpdateRequest
from fretninja.services.practice import ProfileService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/profile", tags=["profile"])


async def get_profile_service(
    db: AsyncSession = Depends(get_db),
) -> ProfileService:
    """Get profile service."""
    return ProfileService(db)


@router.get("", response_model=ProfileResponse)
@handle_endpoint_errors("Get profile")
async def get_profile(
    user_id: str = CurrentUser,
    service: ProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    """Get the learner's profile, creating it with defaults on first access."""
    return await service.get_or_create(user_id)


@router.patch("", response_model=ProfileResponse)
@handle_endpoint_errors("Update profile")
async def update_profile(
    request: ProfileUpdateRequest,
    user_id: str = CurrentUser,
    service: ProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    """Update display name, fretboard range, note names or tutorial progress."""
    return await service.update_settings(user_id, request)
