"""
Profile Service

Creates learner profiles on first use and updates their display settings.
Progress fields (streaks, counters) are owned by session finalization and
are never written here.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from fretninja.db.models import Profile
from fretninja.middleware.error_handling import NotFoundError
from fretninja.models.profile import ProfileResponse, ProfileUpdateRequest

logger = logging.getLogger(__name__)


class ProfileService:
    def __init__(
        self,
        db: AsyncSession,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.db = db
        self._now = clock or (lambda: datetime.now(timezone.utc))

    async def ensure_profile(self, user_id: str) -> None:
        """
        Insert a default profile unless one exists.

        Uses INSERT ... ON CONFLICT DO NOTHING so that two first requests
        from the same learner don't collide. Does not commit.
        """
        now = self._now()
        await self.db.execute(
            pg_insert(Profile)
            .values(id=user_id, created_at=now, updated_at=now)
            .on_conflict_do_nothing(index_elements=[Profile.id])
        )

    async def get_or_create(self, user_id: str) -> ProfileResponse:
        """Return the learner's profile, creating it with defaults if needed."""
        await self.ensure_profile(user_id)
        result = await self.db.execute(select(Profile).where(Profile.id == user_id))
        profile = result.scalar_one()
        await self.db.commit()
        return ProfileResponse.model_validate(profile)

    async def get_profile(self, user_id: str) -> ProfileResponse:
        profile = await self._get(user_id)
        return ProfileResponse.model_validate(profile)

    async def update_settings(
        self, user_id: str, changes: ProfileUpdateRequest
    ) -> ProfileResponse:
        """
        Apply a partial settings update.

        Raises:
            NotFoundError: If the learner has no profile yet.
        """
        profile = await self._get(user_id)

        updates = changes.model_dump(exclude_unset=True)
        if "tutorial_completed_modes" in updates and updates["tutorial_completed_modes"] is not None:
            # Stored as plain strings, deduplicated in first-seen order
            updates["tutorial_completed_modes"] = list(
                dict.fromkeys(m.value for m in changes.tutorial_completed_modes)
            )

        for field, value in updates.items():
            setattr(profile, field, value)
        profile.updated_at = self._now()

        await self.db.commit()
        logger.info(f"Updated settings for {user_id}: {sorted(updates)}")
        return ProfileResponse.model_validate(profile)

    async def _get(self, user_id: str) -> Profile:
        result = await self.db.execute(select(Profile).where(Profile.id == user_id))
        profile = result.scalar_one_or_none()
        if profile is None:
            raise NotFoundError(f"Profile {user_id} not found")
        return profile
