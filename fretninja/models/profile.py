"""
Profile API Models (Pydantic)

Learner profile as returned by the API, and the settings update request.
Streak and counter fields are read-only here; they change only when a
quiz session is completed.
"""

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import Field

from fretninja.enums.quiz import QuizType
from fretninja.models.base import StrictRequest, StrictResponse


class ProfileResponse(StrictResponse):
    id: str
    display_name: Optional[str] = None
    current_streak: int
    longest_streak: int
    last_activity_date: Optional[date] = None
    find_note_count: int
    name_note_count: int
    mark_chord_count: int
    recognize_interval_count: int
    fretboard_range: int
    show_note_names: bool
    tutorial_completed_modes: list[QuizType] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class ProfileUpdateRequest(StrictRequest):
    """Partial settings update; omitted fields are left unchanged."""

    display_name: Optional[str] = Field(None, min_length=2, max_length=50)
    fretboard_range: Optional[Literal[12, 24]] = None
    show_note_names: Optional[bool] = None
    tutorial_completed_modes: Optional[list[QuizType]] = None
