"""Pydantic models for the application."""

from fretninja.models.achievements import (
    AchievementEarned,
    AchievementProgress,
    AchievementResponse,
    Criterion,
    EarnedAchievement,
    UserAchievementsResponse,
    parse_criterion,
)
from fretninja.models.quiz import (
    QuizAnswerCreateRequest,
    QuizAnswerResponse,
    QuizSessionCreateRequest,
    QuizSessionResponse,
    QuizSessionUpdateRequest,
)

__all__ = [
    "AchievementEarned",
    "AchievementProgress",
    "AchievementResponse",
    "Criterion",
    "EarnedAchievement",
    "UserAchievementsResponse",
    "parse_criterion",
    "QuizAnswerCreateRequest",
    "QuizAnswerResponse",
    "QuizSessionCreateRequest",
    "QuizSessionResponse",
    "QuizSessionUpdateRequest",
]
