"""
Stats API Models (Pydantic)

Response schemas for the read-side aggregations over a learner's history:
error heatmap, note mastery, overview with recent trend, and error patterns.
"""

from datetime import date
from typing import Optional

from pydantic import Field, model_validator

from fretninja.enums.quiz import Difficulty, Note, QuizType
from fretninja.models.base import StrictRequest, StrictResponse


# ===========================================
# Heatmap
# ===========================================


class HeatmapParams(StrictRequest):
    """Heatmap filters. Dates are calendar days (YYYY-MM-DD), both inclusive."""

    quiz_type: Optional[QuizType] = None
    from_date: Optional[date] = None
    to_date: Optional[date] = None

    @model_validator(mode="after")
    def _ordered_range(self) -> "HeatmapParams":
        if self.from_date and self.to_date and self.from_date > self.to_date:
            raise ValueError("from_date must not be after to_date")
        return self


class HeatmapCell(StrictResponse):
    """Error count at one fretboard position."""

    fret_position: int
    string_number: int
    error_count: int


class HeatmapResponse(StrictResponse):
    """Fretboard error heatmap."""

    data: list[HeatmapCell]
    max_error_count: int
    total_errors: int
    filters: HeatmapParams


# ===========================================
# Note Mastery
# ===========================================


class NoteMasteryItem(StrictResponse):
    """Accuracy for one pitch class."""

    note: Note
    total_attempts: int
    correct_count: int
    error_count: int
    accuracy: int  # Whole percent, 0 when there are no attempts


class NoteMasteryResponse(StrictResponse):
    """Accuracy for all twelve notes, in chromatic order from C."""

    data: list[NoteMasteryItem]
    total_attempts: int
    total_errors: int
    overall_accuracy: int


# ===========================================
# Overview
# ===========================================


class QuizTypeStats(StrictResponse):
    count: int = 0
    average_score: float = 0.0
    best_score: int = 0
    total_time_seconds: int = 0


class DifficultyStats(StrictResponse):
    count: int = 0
    average_score: float = 0.0


class TrendWindow(StrictResponse):
    quizzes: int
    average_score: float


class RecentTrend(StrictResponse):
    """
    Last seven days against the seven before.

    improvement is the percentage change of the average score, one decimal.
    """

    last_7_days: TrendWindow
    previous_7_days: TrendWindow
    improvement: float


class StatsOverviewResponse(StrictResponse):
    """Lifetime totals, per-mode and per-difficulty breakdowns and trend."""

    total_quizzes: int
    total_time_seconds: int
    current_streak: int
    longest_streak: int
    by_quiz_type: dict[QuizType, QuizTypeStats]
    by_difficulty: dict[Difficulty, DifficultyStats]
    recent_trend: RecentTrend


# ===========================================
# Error Patterns
# ===========================================


class NoteErrorCount(StrictResponse):
    note: Note
    error_count: int


class StringErrorCount(StrictResponse):
    string_number: int
    error_count: int


class ErrorPatternsResponse(StrictResponse):
    """
    Where recent mistakes concentrate.

    Built from the most recent incorrect answers that carry a fret position.
    Each list is sorted by error count, highest first.
    """

    sample_size: int
    quiz_type: Optional[QuizType] = None
    by_position: list[HeatmapCell] = Field(default_factory=list)
    by_note: list[NoteErrorCount] = Field(default_factory=list)
    by_string: list[StringErrorCount] = Field(default_factory=list)
