"""
Practice Services

Quiz session lifecycle and progress aggregation.

Modules:
- streak: Pure streak calculator and profile completion update
- session_service: Session state machine (create, finalize, history)
- answer_service: Answer ledger
- achievement_service: Achievement evaluator and catalog
- stats_service: Heatmap, note mastery, overview and error patterns
- profile_service: Profile creation and settings

Usage:
    from fretninja.services.practice import (
        QuizSessionService,
        AnswerService,
        AchievementService,
        StatsService,
        ProfileService,
    )
"""

from fretninja.services.practice.achievement_service import (
    DEFAULT_ACHIEVEMENTS,
    AchievementService,
    calculate_progress,
    is_eligible,
    seed_achievements,
)
from fretninja.services.practice.answer_service import AnswerService
from fretninja.services.practice.profile_service import ProfileService
from fretninja.services.practice.session_service import QuizSessionService
from fretninja.services.practice.stats_service import (
    StatsService,
    aggregate_heatmap,
    calculate_improvement,
    compute_note_mastery,
    round_half_up,
    summarize_sessions,
)
from fretninja.services.practice.streak import (
    QUIZ_COUNTERS,
    ProfileSnapshot,
    apply_completion,
    calculate_streak,
)

__all__ = [
    # Services
    "AchievementService",
    "AnswerService",
    "ProfileService",
    "QuizSessionService",
    "StatsService",
    # Achievements
    "DEFAULT_ACHIEVEMENTS",
    "calculate_progress",
    "is_eligible",
    "seed_achievements",
    # Stats reducers
    "aggregate_heatmap",
    "calculate_improvement",
    "compute_note_mastery",
    "round_half_up",
    "summarize_sessions",
    # Streak
    "QUIZ_COUNTERS",
    "ProfileSnapshot",
    "apply_completion",
    "calculate_streak",
]
