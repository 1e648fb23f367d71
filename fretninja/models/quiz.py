"""
Quiz Session API Models (Pydantic)

Request/response schemas for the quiz session lifecycle:

- Session creation and finalization
- Answer submission (the answer ledger)
- Session history listing with filters, sorting and pagination

Enums are imported from fretninja.enums.quiz.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from fretninja.enums.quiz import (
    ChordType,
    Difficulty,
    Interval,
    Note,
    QuizType,
    SessionSortField,
    SessionStatus,
    SortOrder,
)
from fretninja.models.achievements import AchievementEarned
from fretninja.models.base import Pagination, StrictRequest, StrictResponse


class FretPosition(BaseModel):
    """A single fretboard position."""

    fret: int = Field(..., ge=0, le=24)
    string: int = Field(..., ge=1, le=6)


# ===========================================
# Session Requests
# ===========================================


class QuizSessionCreateRequest(StrictRequest):
    """
    Request to start a quiz session.

    Hard difficulty runs with a per-question countdown and therefore needs
    a positive time limit. The limit is ignored for other difficulties.
    """

    quiz_type: QuizType
    difficulty: Difficulty
    time_limit_seconds: Optional[int] = Field(None, gt=0)

    @model_validator(mode="after")
    def _require_time_limit_for_hard(self) -> "QuizSessionCreateRequest":
        if self.difficulty == Difficulty.HARD and self.time_limit_seconds is None:
            raise ValueError("time_limit_seconds is required for hard difficulty")
        return self


class QuizSessionUpdateRequest(StrictRequest):
    """Request to finalize a session as completed or abandoned."""

    status: SessionStatus
    time_taken_seconds: Optional[int] = Field(None, ge=0)

    @field_validator("status")
    @classmethod
    def _terminal_status_only(cls, v: SessionStatus) -> SessionStatus:
        if not v.is_terminal:
            raise ValueError("status must be 'completed' or 'abandoned'")
        return v

    @model_validator(mode="after")
    def _require_time_for_completion(self) -> "QuizSessionUpdateRequest":
        if self.status == SessionStatus.COMPLETED and self.time_taken_seconds is None:
            raise ValueError("time_taken_seconds is required when completing a session")
        return self


class QuizSessionListParams(StrictRequest):
    """Query parameters for the session history listing."""

    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1, le=100)
    quiz_type: Optional[QuizType] = None
    difficulty: Optional[Difficulty] = None
    status: Optional[SessionStatus] = None
    sort: str = Field("completed_at:desc", pattern=r"^(completed_at|started_at|score):(asc|desc)$")

    @property
    def sort_field(self) -> SessionSortField:
        return SessionSortField(self.sort.split(":", 1)[0])

    @property
    def sort_order(self) -> SortOrder:
        return SortOrder(self.sort.split(":", 1)[1])


# ===========================================
# Answer Requests
# ===========================================


class QuizAnswerCreateRequest(StrictRequest):
    """
    A single answer submission.

    Only question_number and is_correct are always present; the target and
    response fields depend on the quiz type.
    """

    question_number: int = Field(..., ge=1, le=10)
    is_correct: bool
    time_taken_ms: Optional[int] = Field(None, ge=0)

    fret_position: Optional[int] = Field(None, ge=0, le=24)
    string_number: Optional[int] = Field(None, ge=1, le=6)

    target_note: Optional[Note] = None
    target_root_note: Optional[Note] = None
    target_chord_type: Optional[ChordType] = None
    target_interval: Optional[Interval] = None
    reference_fret_position: Optional[int] = Field(None, ge=0, le=24)
    reference_string_number: Optional[int] = Field(None, ge=1, le=6)

    user_answer_note: Optional[Note] = None
    user_answer_interval: Optional[Interval] = None
    user_answer_positions: Optional[list[FretPosition]] = None


# ===========================================
# Responses
# ===========================================


class QuizAnswerResponse(StrictResponse):
    """Stored answer."""

    id: UUID
    session_id: UUID
    question_number: int
    is_correct: bool
    time_taken_ms: Optional[int] = None
    fret_position: Optional[int] = None
    string_number: Optional[int] = None
    target_note: Optional[Note] = None
    target_root_note: Optional[Note] = None
    target_chord_type: Optional[ChordType] = None
    target_interval: Optional[Interval] = None
    reference_fret_position: Optional[int] = None
    reference_string_number: Optional[int] = None
    user_answer_note: Optional[Note] = None
    user_answer_interval: Optional[Interval] = None
    user_answer_positions: Optional[list[FretPosition]] = None
    created_at: datetime


class QuizSessionResponse(StrictResponse):
    """Quiz session state."""

    id: UUID
    user_id: str
    quiz_type: QuizType
    difficulty: Difficulty
    status: SessionStatus
    score: Optional[int] = None
    time_limit_seconds: Optional[int] = None
    time_taken_seconds: Optional[int] = None
    started_at: datetime
    completed_at: Optional[datetime] = None


class QuizSessionDetailResponse(QuizSessionResponse):
    """Session with its answers in question order."""

    answers: list[QuizAnswerResponse] = Field(default_factory=list)


class QuizSessionFinalizeResponse(QuizSessionResponse):
    """Finalized session plus achievements granted by it."""

    achievements_earned: list[AchievementEarned] = Field(default_factory=list)


class QuizSessionListResponse(StrictResponse):
    """Page of session history."""

    data: list[QuizSessionResponse]
    pagination: Pagination


class QuizAnswerListResponse(StrictResponse):
    """Answers of one session in question order."""

    session_id: UUID
    answers: list[QuizAnswerResponse]
