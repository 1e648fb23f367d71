"""
Achievement Evaluator

Decides which catalog achievements a learner has unlocked and reports
progress toward the rest.

Evaluation runs inside the finalize unit of work, against the profile as it
will be after the completed session is applied. Grants are idempotent: the
(user_id, achievement_id) unique constraint is the source of truth, and a
collision with a concurrent grant is treated as "already earned".

Usage:
    from fretninja.services.practice.achievement_service import AchievementService

    service = AchievementService(db)
    earned = await service.evaluate_and_grant(user_id, snapshot, quiz_type, score)
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from fretninja.config import settings
from fretninja.db.models import Achievement, Profile, UserAchievement
from fretninja.enums.quiz import QuizType
from fretninja.models.achievements import (
    AchievementEarned,
    AchievementListResponse,
    AchievementProgress,
    AchievementResponse,
    Criterion,
    EarnedAchievement,
    PerfectScoreCriterion,
    ProgressValue,
    QuizCountCriterion,
    StreakCriterion,
    TotalQuizzesCriterion,
    UserAchievementsResponse,
    parse_criterion,
)
from fretninja.services.practice.streak import ProfileSnapshot

logger = logging.getLogger(__name__)


# Seeded catalog. Ids are fixed so every environment shares them.
DEFAULT_ACHIEVEMENTS: list[dict] = [
    {
        "id": uuid.UUID("a1b2c3d4-0001-4000-8000-000000000001"),
        "name": "first_steps",
        "display_name": "First Steps",
        "description": "Complete your first quiz",
        "criteria": {"type": "total_quizzes", "count": 1},
    },
    {
        "id": uuid.UUID("a1b2c3d4-0002-4000-8000-000000000002"),
        "name": "perfect_round",
        "display_name": "Perfect Round",
        "description": "Score 10/10 on any quiz",
        "criteria": {"type": "perfect_score"},
    },
    {
        "id": uuid.UUID("a1b2c3d4-0003-4000-8000-000000000003"),
        "name": "week_warrior",
        "display_name": "Week Warrior",
        "description": "Maintain a 7-day streak",
        "criteria": {"type": "streak", "days": 7},
    },
    {
        "id": uuid.UUID("a1b2c3d4-0004-4000-8000-000000000004"),
        "name": "string_master",
        "display_name": "String Master",
        "description": 'Complete 50 "Find the Note" quizzes',
        "criteria": {"type": "quiz_count", "quiz_type": "find_note", "count": 50},
    },
    {
        "id": uuid.UUID("a1b2c3d4-0005-4000-8000-000000000005"),
        "name": "chord_ninja",
        "display_name": "Chord Ninja",
        "description": 'Complete 50 "Mark the Chord" quizzes',
        "criteria": {"type": "quiz_count", "quiz_type": "mark_chord", "count": 50},
    },
]


# ===========================================
# Pure evaluation
# ===========================================


def calculate_progress(
    criterion: Optional[Criterion], snapshot: ProfileSnapshot
) -> ProgressValue:
    """
    Progress toward a criterion.

    percentage is floored (1 of 3 is 33) and clamped to [0, 100]. Unknown
    criteria report 0 of 1.
    """
    if isinstance(criterion, TotalQuizzesCriterion):
        current, target = snapshot.total_quizzes, criterion.count
    elif isinstance(criterion, PerfectScoreCriterion):
        # Not tracked on the profile; unearned means not reached yet
        current, target = 0, 1
    elif isinstance(criterion, StreakCriterion):
        current, target = snapshot.current_streak, criterion.days
    elif isinstance(criterion, QuizCountCriterion):
        current, target = snapshot.quiz_count(criterion.quiz_type), criterion.count
    else:
        return ProgressValue(current=0, target=1, percentage=0)

    percentage = max(0, min(100, current * 100 // target))
    return ProgressValue(current=current, target=target, percentage=percentage)


def is_eligible(
    criterion: Optional[Criterion],
    snapshot: ProfileSnapshot,
    score: Optional[int],
) -> bool:
    """Whether the updated profile and the session score satisfy a criterion."""
    if isinstance(criterion, TotalQuizzesCriterion):
        return snapshot.total_quizzes >= criterion.count
    if isinstance(criterion, PerfectScoreCriterion):
        return score == settings.QUESTIONS_PER_SESSION
    if isinstance(criterion, StreakCriterion):
        return snapshot.current_streak >= criterion.days
    if isinstance(criterion, QuizCountCriterion):
        return snapshot.quiz_count(criterion.quiz_type) >= criterion.count
    return False


# ===========================================
# Service
# ===========================================


class AchievementService:
    """Catalog reads, per-user progress, and idempotent grants."""

    def __init__(
        self,
        db: AsyncSession,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the achievement service.

        Args:
            db: SQLAlchemy async database session.
            clock: Returns the current UTC time (defaults to the system clock).
        """
        self.db = db
        self._now = clock or (lambda: datetime.now(timezone.utc))

    async def list_achievements(self) -> AchievementListResponse:
        """Return the full catalog in creation order."""
        catalog = await self._load_catalog()
        return AchievementListResponse(
            data=[AchievementResponse.model_validate(a) for a in catalog]
        )

    async def get_user_achievements(self, user_id: str) -> UserAchievementsResponse:
        """
        Return earned achievements (newest first) and progress toward the rest
        (highest percentage first).
        """
        result = await self.db.execute(
            select(UserAchievement)
            .options(selectinload(UserAchievement.achievement))
            .where(UserAchievement.user_id == user_id)
            .order_by(UserAchievement.earned_at.desc())
        )
        user_achievements = result.scalars().all()

        result = await self.db.execute(select(Profile).where(Profile.id == user_id))
        profile = result.scalar_one_or_none()
        snapshot = ProfileSnapshot.from_profile(profile) if profile else ProfileSnapshot()

        catalog = await self._load_catalog()

        earned = [
            EarnedAchievement(
                id=ua.achievement.id,
                name=ua.achievement.name,
                display_name=ua.achievement.display_name,
                description=ua.achievement.description,
                earned_at=ua.earned_at,
            )
            for ua in user_achievements
        ]
        earned_ids = {ua.achievement_id for ua in user_achievements}

        progress = []
        for achievement in catalog:
            if achievement.id in earned_ids:
                continue
            value = calculate_progress(parse_criterion(achievement.criteria), snapshot)
            progress.append(
                AchievementProgress(
                    id=achievement.id,
                    name=achievement.name,
                    display_name=achievement.display_name,
                    description=achievement.description,
                    **value.model_dump(),
                )
            )
        progress.sort(key=lambda p: p.percentage, reverse=True)

        return UserAchievementsResponse(earned=earned, progress=progress)

    async def evaluate_and_grant(
        self,
        user_id: str,
        snapshot: ProfileSnapshot,
        quiz_type: QuizType,
        score: Optional[int],
    ) -> list[AchievementEarned]:
        """
        Grant every eligible achievement the learner doesn't have yet.

        Must run inside the caller's transaction; grants are flushed inside
        savepoints but not committed here.

        Args:
            user_id: Learner id.
            snapshot: Profile values after the completed session is applied.
            quiz_type: Mode of the completed session.
            score: Score of the completed session.

        Returns:
            Achievements newly granted by this call.
        """
        catalog = await self._load_catalog()

        result = await self.db.execute(
            select(UserAchievement.achievement_id).where(
                UserAchievement.user_id == user_id
            )
        )
        earned_ids = set(result.scalars().all())

        granted: list[AchievementEarned] = []
        for achievement in catalog:
            if achievement.id in earned_ids:
                continue
            criterion = parse_criterion(achievement.criteria)
            if not is_eligible(criterion, snapshot, score):
                continue
            if await self._grant(user_id, achievement):
                granted.append(
                    AchievementEarned(
                        id=achievement.id,
                        name=achievement.name,
                        display_name=achievement.display_name,
                    )
                )

        if granted:
            logger.info(
                f"User {user_id} earned {[a.name for a in granted]} "
                f"after {quiz_type.value} quiz (score={score})"
            )
        return granted

    async def _grant(self, user_id: str, achievement: Achievement) -> bool:
        """Insert one grant in a savepoint. Returns False if it already exists."""
        try:
            async with self.db.begin_nested():
                self.db.add(
                    UserAchievement(
                        user_id=user_id,
                        achievement_id=achievement.id,
                        earned_at=self._now(),
                    )
                )
                await self.db.flush()
        except IntegrityError:
            logger.info(
                f"Achievement {achievement.name} already granted to {user_id}, skipping"
            )
            return False
        return True

    async def _load_catalog(self) -> list[Achievement]:
        result = await self.db.execute(
            select(Achievement).order_by(Achievement.created_at, Achievement.name)
        )
        return list(result.scalars().all())


async def seed_achievements(db: AsyncSession) -> int:
    """
    Insert catalog entries missing by name. Safe to run on every startup.

    Returns:
        Number of entries inserted.
    """
    result = await db.execute(select(Achievement.name))
    existing = set(result.scalars().all())

    missing = [entry for entry in DEFAULT_ACHIEVEMENTS if entry["name"] not in existing]
    for entry in missing:
        db.add(Achievement(**entry))

    if missing:
        await db.commit()
        logger.info(f"Seeded {len(missing)} achievements")
    return len(missing)
