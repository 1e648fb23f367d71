"""
SQLAlchemy Database Models

These models define the PostgreSQL schema for quiz practice tracking.

Tables:
- profiles: One row per learner; streaks, lifetime counters, settings
- quiz_sessions: 10-question drill attempts and their lifecycle state
- quiz_answers: One answer per (session, question number)
- achievements: Static catalog of unlockable milestones
- user_achievements: Earned milestones, unique per (user, achievement)

ARCHITECTURE NOTE:
    This file contains SQLALCHEMY models for database persistence.
    The corresponding Pydantic schemas live in fretninja/models/.

    Data flows: Service Layer → Pydantic → SQLAlchemy → Database

Concurrency invariants are enforced here, not in the services:
- uq_quiz_sessions_one_active: at most one in_progress session per user
- uq_quiz_answers_session_question: one answer per question
- uq_user_achievements_user_achievement: a milestone is earned once
"""

from datetime import date, datetime, timezone
from typing import List, Optional
import uuid


def _utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


from sqlalchemy import (  # noqa: E402
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB  # noqa: E402
from sqlalchemy.orm import Mapped, mapped_column, relationship  # noqa: E402

from fretninja.db.base import Base  # noqa: E402
from fretninja.enums.quiz import (  # noqa: E402
    ChordType,
    Difficulty,
    Interval,
    Note,
    QuizType,
    SessionStatus,
)


def _pg_enum(enum_cls, name: str) -> SQLEnum:
    """Map a str Enum onto a named PostgreSQL enum storing member values."""
    return SQLEnum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
    )


NOTE_ENUM = _pg_enum(Note, "note_enum")
INTERVAL_ENUM = _pg_enum(Interval, "interval_enum")


# ===========================================
# Profiles
# ===========================================


class Profile(Base):
    """
    Learner profile.

    Created on the learner's first session. Streak and counter fields are
    mutated only when a session is finalized as completed.

    Attributes:
        id: Opaque user identifier resolved by the identity layer.
        display_name: Optional display name (2-50 characters).
        current_streak: Consecutive calendar days with a completed quiz.
        longest_streak: Best streak ever; never below current_streak.
        last_activity_date: Calendar day (UTC) of the latest completion.
        find_note_count: Completed "find the note" quizzes.
        name_note_count: Completed "name the note" quizzes.
        mark_chord_count: Completed "mark the chord" quizzes.
        recognize_interval_count: Completed "recognize the interval" quizzes.
        fretboard_range: Number of frets shown (12 or 24).
        show_note_names: Whether note names are printed on the fretboard.
        tutorial_completed_modes: Quiz types whose tutorial was dismissed.
    """

    __tablename__ = "profiles"
    __table_args__ = (
        CheckConstraint("current_streak >= 0", name="ck_profiles_current_streak"),
        CheckConstraint("longest_streak >= 0", name="ck_profiles_longest_streak"),
        CheckConstraint("fretboard_range in (12, 24)", name="ck_profiles_fretboard_range"),
    )

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    display_name: Mapped[Optional[str]] = mapped_column(String(50))

    # Streak tracking
    current_streak: Mapped[int] = mapped_column(Integer, default=0)
    longest_streak: Mapped[int] = mapped_column(Integer, default=0)
    last_activity_date: Mapped[Optional[date]] = mapped_column(Date)

    # Lifetime completion counters (achievement inputs)
    find_note_count: Mapped[int] = mapped_column(Integer, default=0)
    name_note_count: Mapped[int] = mapped_column(Integer, default=0)
    mark_chord_count: Mapped[int] = mapped_column(Integer, default=0)
    recognize_interval_count: Mapped[int] = mapped_column(Integer, default=0)

    # Settings
    fretboard_range: Mapped[int] = mapped_column(Integer, default=12)
    show_note_names: Mapped[bool] = mapped_column(Boolean, default=False)
    tutorial_completed_modes: Mapped[list] = mapped_column(
        ARRAY(String), default=list
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, onupdate=_utc_now
    )

    sessions: Mapped[List["QuizSession"]] = relationship(back_populates="profile")


# ===========================================
# Quiz Sessions & Answers
# ===========================================


class QuizSession(Base):
    """
    A single attempt at a 10-question drill.

    Attributes:
        id: UUID primary key.
        user_id: Owning profile.
        quiz_type: Drill mode.
        difficulty: easy, medium or hard.
        status: in_progress until finalized as completed or abandoned.
        score: Correct answers (0-10); null while in progress or if abandoned.
        time_limit_seconds: Per-question limit, hard difficulty only.
        time_taken_seconds: Total duration reported at finalization.
        started_at: Creation time of the session.
        completed_at: Finalization time (completed or abandoned).
    """

    __tablename__ = "quiz_sessions"
    __table_args__ = (
        CheckConstraint("score >= 0 and score <= 10", name="ck_quiz_sessions_score"),
        CheckConstraint("time_limit_seconds > 0", name="ck_quiz_sessions_time_limit"),
        CheckConstraint("time_taken_seconds >= 0", name="ck_quiz_sessions_time_taken"),
        Index(
            "uq_quiz_sessions_one_active",
            "user_id",
            unique=True,
            postgresql_where=text("status = 'in_progress'"),
            sqlite_where=text("status = 'in_progress'"),
        ),
        Index("idx_quiz_sessions_user_completed", "user_id", "completed_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), index=True
    )

    # Quiz configuration
    quiz_type: Mapped[QuizType] = mapped_column(_pg_enum(QuizType, "quiz_type_enum"))
    difficulty: Mapped[Difficulty] = mapped_column(
        _pg_enum(Difficulty, "difficulty_enum")
    )

    # Lifecycle
    status: Mapped[SessionStatus] = mapped_column(
        _pg_enum(SessionStatus, "session_status_enum"),
        default=SessionStatus.IN_PROGRESS,
    )
    score: Mapped[Optional[int]] = mapped_column(Integer)

    # Timing
    time_limit_seconds: Mapped[Optional[int]] = mapped_column(Integer)
    time_taken_seconds: Mapped[Optional[int]] = mapped_column(Integer)
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )

    # Relationships
    profile: Mapped["Profile"] = relationship(back_populates="sessions")
    answers: Mapped[List["QuizAnswer"]] = relationship(
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="QuizAnswer.question_number",
    )


class QuizAnswer(Base):
    """
    One answer within a quiz session. Immutable once written.

    Which target/response columns are filled depends on the quiz type:
    - find_note / name_note: target_note, fret_position, string_number,
      user_answer_note (name_note)
    - mark_chord: target_root_note, target_chord_type, user_answer_positions
    - recognize_interval: target_interval, reference position,
      user_answer_interval
    """

    __tablename__ = "quiz_answers"
    __table_args__ = (
        UniqueConstraint(
            "session_id", "question_number", name="uq_quiz_answers_session_question"
        ),
        CheckConstraint(
            "question_number >= 1 and question_number <= 10",
            name="ck_quiz_answers_question_number",
        ),
        CheckConstraint("time_taken_ms >= 0", name="ck_quiz_answers_time_taken"),
        CheckConstraint(
            "fret_position >= 0 and fret_position <= 24",
            name="ck_quiz_answers_fret_position",
        ),
        CheckConstraint(
            "string_number >= 1 and string_number <= 6",
            name="ck_quiz_answers_string_number",
        ),
        Index(
            "idx_quiz_answers_errors",
            "session_id",
            "fret_position",
            "string_number",
            postgresql_where=text("is_correct = false"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    session_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("quiz_sessions.id", ondelete="CASCADE"), index=True
    )

    # Common fields
    question_number: Mapped[int] = mapped_column(Integer)
    is_correct: Mapped[bool] = mapped_column(Boolean)
    time_taken_ms: Mapped[Optional[int]] = mapped_column(Integer)

    # Position (heatmap input)
    fret_position: Mapped[Optional[int]] = mapped_column(Integer)
    string_number: Mapped[Optional[int]] = mapped_column(Integer)

    # Targets
    target_note: Mapped[Optional[Note]] = mapped_column(NOTE_ENUM)
    target_root_note: Mapped[Optional[Note]] = mapped_column(NOTE_ENUM)
    target_chord_type: Mapped[Optional[ChordType]] = mapped_column(
        _pg_enum(ChordType, "chord_type_enum")
    )
    target_interval: Mapped[Optional[Interval]] = mapped_column(INTERVAL_ENUM)
    reference_fret_position: Mapped[Optional[int]] = mapped_column(Integer)
    reference_string_number: Mapped[Optional[int]] = mapped_column(Integer)

    # Learner response
    user_answer_note: Mapped[Optional[Note]] = mapped_column(NOTE_ENUM)
    user_answer_interval: Mapped[Optional[Interval]] = mapped_column(INTERVAL_ENUM)
    user_answer_positions: Mapped[Optional[list]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql")
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )

    session: Mapped["QuizSession"] = relationship(back_populates="answers")


# ===========================================
# Achievements
# ===========================================


class Achievement(Base):
    """
    Catalog entry for an unlockable milestone.

    Attributes:
        id: UUID primary key (fixed values for seeded entries).
        name: Stable machine name (e.g. "week_warrior").
        display_name: Human readable title.
        description: What the learner has to do.
        criteria: Tagged JSON object, e.g. {"type": "streak", "days": 7}.
    """

    __tablename__ = "achievements"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(50), unique=True)
    display_name: Mapped[str] = mapped_column(String(100))
    description: Mapped[str] = mapped_column(Text)
    criteria: Mapped[dict] = mapped_column(JSON().with_variant(JSONB(), "postgresql"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )


class UserAchievement(Base):
    """
    An achievement earned by a learner.

    The (user_id, achievement_id) pair is the idempotency key for grants.
    """

    __tablename__ = "user_achievements"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "achievement_id",
            name="uq_user_achievements_user_achievement",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), index=True
    )
    achievement_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("achievements.id", ondelete="CASCADE")
    )
    earned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )

    achievement: Mapped["Achievement"] = relationship()
