"""
Centralized enum definitions for the application.

All enums are organized by domain:
- quiz.py: Quiz modes, difficulty, session status, notes, chords, intervals,
  achievement criterion types

Usage:
    from fretninja.enums import QuizType, Difficulty, SessionStatus

    # Or import from specific module
    from fretninja.enums.quiz import Note
"""

from fretninja.enums.quiz import (
    ChordType,
    CriterionType,
    Difficulty,
    Interval,
    Note,
    QuizType,
    SessionSortField,
    SessionStatus,
    SortOrder,
)

__all__ = [
    "ChordType",
    "CriterionType",
    "Difficulty",
    "Interval",
    "Note",
    "QuizType",
    "SessionSortField",
    "SessionStatus",
    "SortOrder",
]
