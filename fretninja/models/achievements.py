"""
Achievement API Models (Pydantic)

Request/response schemas for the achievement catalog and for the typed
unlock criteria stored as JSON on each catalog entry.

Criteria are a tagged union keyed on "type":

    {"type": "total_quizzes", "count": 10}
    {"type": "perfect_score"}
    {"type": "streak", "days": 7}
    {"type": "quiz_count", "quiz_type": "find_note", "count": 50}

Entries with an unknown tag (or malformed parameters) parse to None so that
catalog rows added ahead of a code release don't break evaluation.
"""

import logging
from datetime import datetime
from typing import Annotated, Any, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from fretninja.enums.quiz import QuizType
from fretninja.models.base import StrictResponse

logger = logging.getLogger(__name__)


# ===========================================
# Unlock Criteria
# ===========================================


class TotalQuizzesCriterion(BaseModel):
    """Completed quizzes across all four modes reach `count`."""

    type: Literal["total_quizzes"] = "total_quizzes"
    count: int = Field(..., ge=1)


class PerfectScoreCriterion(BaseModel):
    """A completed quiz scored 10/10."""

    type: Literal["perfect_score"] = "perfect_score"


class StreakCriterion(BaseModel):
    """Current streak reaches `days`."""

    type: Literal["streak"] = "streak"
    days: int = Field(..., ge=1)


class QuizCountCriterion(BaseModel):
    """Completed quizzes of one mode reach `count`."""

    type: Literal["quiz_count"] = "quiz_count"
    quiz_type: QuizType
    count: int = Field(..., ge=1)


Criterion = Annotated[
    Union[
        TotalQuizzesCriterion,
        PerfectScoreCriterion,
        StreakCriterion,
        QuizCountCriterion,
    ],
    Field(discriminator="type"),
]

_criterion_adapter: TypeAdapter = TypeAdapter(Criterion)


def parse_criterion(raw: Any) -> Optional[Criterion]:
    """
    Parse a catalog criteria object.

    Args:
        raw: The JSON value stored in achievements.criteria.

    Returns:
        The typed criterion, or None if the tag is unknown or the
        parameters are invalid.
    """
    try:
        return _criterion_adapter.validate_python(raw)
    except PydanticValidationError:
        logger.warning(f"Unrecognized achievement criteria: {raw!r}")
        return None


# ===========================================
# Response Models
# ===========================================


class AchievementResponse(StrictResponse):
    """Catalog entry as exposed by the API."""

    id: UUID
    name: str
    display_name: str
    description: str
    criteria: dict


class AchievementListResponse(StrictResponse):
    """Full achievement catalog."""

    data: list[AchievementResponse]


class AchievementEarned(StrictResponse):
    """Achievement granted by the session that was just finalized."""

    id: UUID
    name: str
    display_name: str


class ProgressValue(StrictResponse):
    """Progress toward a single criterion."""

    current: int
    target: int
    percentage: int = Field(..., ge=0, le=100)


class EarnedAchievement(StrictResponse):
    """Achievement the learner has earned."""

    id: UUID
    name: str
    display_name: str
    description: str
    earned_at: datetime


class AchievementProgress(ProgressValue):
    """Achievement not yet earned, with progress toward it."""

    id: UUID
    name: str
    display_name: str
    description: str


class UserAchievementsResponse(StrictResponse):
    """
    Learner's achievement overview.

    earned is ordered newest first; progress by percentage, highest first.
    """

    earned: list[EarnedAchievement]
    progress: list[AchievementProgress]
