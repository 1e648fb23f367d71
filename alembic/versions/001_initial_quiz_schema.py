"""Initial Quiz Schema

Creates the quiz practice schema:
- Enum types for quiz modes, difficulty, session status, notes, chords, intervals
- profiles: learner streaks, completion counters, settings
- quiz_sessions: one row per drill attempt, at most one in progress per user
- quiz_answers: one row per answered question
- achievements / user_achievements: catalog and earned milestones
- Seeds the achievement catalog

Revision ID: 001
Revises:
Create Date: 2026-01-26
"""

import uuid

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


QUIZ_TYPES = ("find_note", "name_note", "mark_chord", "recognize_interval")
DIFFICULTIES = ("easy", "medium", "hard")
SESSION_STATUSES = ("in_progress", "completed", "abandoned")
NOTES = ("C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B")
CHORD_TYPES = ("major", "minor", "diminished", "augmented")
INTERVALS = (
    "minor_2nd",
    "major_2nd",
    "minor_3rd",
    "major_3rd",
    "perfect_4th",
    "tritone",
    "perfect_5th",
    "minor_6th",
    "major_6th",
    "minor_7th",
    "major_7th",
    "octave",
)

quiz_type_enum = postgresql.ENUM(*QUIZ_TYPES, name="quiz_type_enum", create_type=False)
difficulty_enum = postgresql.ENUM(*DIFFICULTIES, name="difficulty_enum", create_type=False)
session_status_enum = postgresql.ENUM(
    *SESSION_STATUSES, name="session_status_enum", create_type=False
)
note_enum = postgresql.ENUM(*NOTES, name="note_enum", create_type=False)
chord_type_enum = postgresql.ENUM(*CHORD_TYPES, name="chord_type_enum", create_type=False)
interval_enum = postgresql.ENUM(*INTERVALS, name="interval_enum", create_type=False)

ALL_ENUMS = (
    quiz_type_enum,
    difficulty_enum,
    session_status_enum,
    note_enum,
    chord_type_enum,
    interval_enum,
)


def upgrade() -> None:
    bind = op.get_bind()
    for enum in ALL_ENUMS:
        enum.create(bind, checkfirst=True)

    # ===========================================
    # Profiles
    # ===========================================

    op.create_table(
        "profiles",
        sa.Column("id", sa.String(255), primary_key=True),
        sa.Column("display_name", sa.String(50), nullable=True),
        sa.Column("current_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("longest_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_activity_date", sa.Date(), nullable=True),
        sa.Column("find_note_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("name_note_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("mark_chord_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "recognize_interval_count", sa.Integer(), nullable=False, server_default="0"
        ),
        sa.Column("fretboard_range", sa.Integer(), nullable=False, server_default="12"),
        sa.Column(
            "show_note_names", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column(
            "tutorial_completed_modes",
            postgresql.ARRAY(sa.String()),
            nullable=False,
            server_default="{}",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint("current_streak >= 0", name="ck_profiles_current_streak"),
        sa.CheckConstraint("longest_streak >= 0", name="ck_profiles_longest_streak"),
        sa.CheckConstraint(
            "fretboard_range in (12, 24)", name="ck_profiles_fretboard_range"
        ),
    )

    # ===========================================
    # Quiz Sessions
    # ===========================================

    op.create_table(
        "quiz_sessions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "user_id",
            sa.String(255),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("quiz_type", quiz_type_enum, nullable=False),
        sa.Column("difficulty", difficulty_enum, nullable=False),
        sa.Column(
            "status",
            session_status_enum,
            nullable=False,
            server_default="in_progress",
        ),
        sa.Column("score", sa.Integer(), nullable=True),
        sa.Column("time_limit_seconds", sa.Integer(), nullable=True),
        sa.Column("time_taken_seconds", sa.Integer(), nullable=True),
        sa.Column(
            "started_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint("score >= 0 and score <= 10", name="ck_quiz_sessions_score"),
        sa.CheckConstraint("time_limit_seconds > 0", name="ck_quiz_sessions_time_limit"),
        sa.CheckConstraint("time_taken_seconds >= 0", name="ck_quiz_sessions_time_taken"),
    )
    op.create_index("ix_quiz_sessions_user_id", "quiz_sessions", ["user_id"])
    op.create_index(
        "idx_quiz_sessions_user_completed", "quiz_sessions", ["user_id", "completed_at"]
    )
    # At most one in-progress session per learner
    op.create_index(
        "uq_quiz_sessions_one_active",
        "quiz_sessions",
        ["user_id"],
        unique=True,
        postgresql_where=sa.text("status = 'in_progress'"),
    )

    # ===========================================
    # Quiz Answers
    # ===========================================

    op.create_table(
        "quiz_answers",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "session_id",
            sa.Uuid(),
            sa.ForeignKey("quiz_sessions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("question_number", sa.Integer(), nullable=False),
        sa.Column("is_correct", sa.Boolean(), nullable=False),
        sa.Column("time_taken_ms", sa.Integer(), nullable=True),
        sa.Column("fret_position", sa.Integer(), nullable=True),
        sa.Column("string_number", sa.Integer(), nullable=True),
        sa.Column("target_note", note_enum, nullable=True),
        sa.Column("target_root_note", note_enum, nullable=True),
        sa.Column("target_chord_type", chord_type_enum, nullable=True),
        sa.Column("target_interval", interval_enum, nullable=True),
        sa.Column("reference_fret_position", sa.Integer(), nullable=True),
        sa.Column("reference_string_number", sa.Integer(), nullable=True),
        sa.Column("user_answer_note", note_enum, nullable=True),
        sa.Column("user_answer_interval", interval_enum, nullable=True),
        sa.Column(
            "user_answer_positions",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=True,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint(
            "session_id", "question_number", name="uq_quiz_answers_session_question"
        ),
        sa.CheckConstraint(
            "question_number >= 1 and question_number <= 10",
            name="ck_quiz_answers_question_number",
        ),
        sa.CheckConstraint("time_taken_ms >= 0", name="ck_quiz_answers_time_taken"),
        sa.CheckConstraint(
            "fret_position >= 0 and fret_position <= 24",
            name="ck_quiz_answers_fret_position",
        ),
        sa.CheckConstraint(
            "string_number >= 1 and string_number <= 6",
            name="ck_quiz_answers_string_number",
        ),
    )
    op.create_index("ix_quiz_answers_session_id", "quiz_answers", ["session_id"])
    # Heatmap / error pattern lookups only touch incorrect answers
    op.create_index(
        "idx_quiz_answers_errors",
        "quiz_answers",
        ["session_id", "fret_position", "string_number"],
        postgresql_where=sa.text("is_correct = false"),
    )

    # ===========================================
    # Achievements
    # ===========================================

    achievements = op.create_table(
        "achievements",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(50), nullable=False, unique=True),
        sa.Column("display_name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("criteria", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )

    op.create_table(
        "user_achievements",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "user_id",
            sa.String(255),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "achievement_id",
            sa.Uuid(),
            sa.ForeignKey("achievements.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "earned_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint(
            "user_id", "achievement_id", name="uq_user_achievements_user_achievement"
        ),
    )
    op.create_index("ix_user_achievements_user_id", "user_achievements", ["user_id"])

    op.bulk_insert(
        achievements,
        [
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
        ],
    )


def downgrade() -> None:
    op.drop_table("user_achievements")
    op.drop_table("achievements")
    op.drop_index("idx_quiz_answers_errors", table_name="quiz_answers")
    op.drop_table("quiz_answers")
    op.drop_index("uq_quiz_sessions_one_active", table_name="quiz_sessions")
    op.drop_table("quiz_sessions")
    op.drop_table("profiles")

    bind = op.get_bind()
    for enum in reversed(ALL_ENUMS):
        enum.drop(bind, checkfirst=True)
