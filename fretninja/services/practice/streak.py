"""
Streak Calculator

Pure functions computing the profile update applied when a quiz session is
completed: the daily streak and the per-mode completion counter.

A streak counts consecutive calendar days (UTC) with at least one completed
quiz. Completing a second quiz on the same day leaves it unchanged; missing
a day resets it to 1 on the next completion.

Usage:
    from fretninja.services.practice.streak import apply_completion, ProfileSnapshot

    snapshot = ProfileSnapshot.from_profile(profile)
    updated = apply_completion(snapshot, QuizType.FIND_NOTE, today)
"""

from dataclasses import dataclass, fields, replace
from datetime import date, timedelta
from typing import Callable, NamedTuple, Optional

from fretninja.enums.quiz import QuizType


class QuizCounter(NamedTuple):
    """Reads and bumps the completion counter of one quiz type on a snapshot."""

    read: Callable[["ProfileSnapshot"], int]
    increment: Callable[["ProfileSnapshot"], "ProfileSnapshot"]


@dataclass(frozen=True)
class ProfileSnapshot:
    """
    The progress fields of a profile, detached from the ORM row.

    Achievement evaluation and progress reporting read from a snapshot so
    they can run against the updated values before they are flushed.
    """

    current_streak: int = 0
    longest_streak: int = 0
    last_activity_date: Optional[date] = None
    find_note_count: int = 0
    name_note_count: int = 0
    mark_chord_count: int = 0
    recognize_interval_count: int = 0

    @classmethod
    def from_profile(cls, profile) -> "ProfileSnapshot":
        """Build a snapshot from a Profile row (None counters read as 0)."""
        values = {}
        for f in fields(cls):
            value = getattr(profile, f.name, None)
            if value is None and f.name != "last_activity_date":
                value = 0
            values[f.name] = value
        return cls(**values)

    @property
    def total_quizzes(self) -> int:
        return sum(counter.read(self) for counter in QUIZ_COUNTERS.values())

    def quiz_count(self, quiz_type: QuizType) -> int:
        return QUIZ_COUNTERS[quiz_type].read(self)

    def apply_to(self, profile) -> None:
        """Copy the snapshot values onto a Profile row."""
        for f in fields(self):
            setattr(profile, f.name, getattr(self, f.name))


# Completion counter per quiz type
QUIZ_COUNTERS: dict[QuizType, QuizCounter] = {
    QuizType.FIND_NOTE: QuizCounter(
        read=lambda s: s.find_note_count,
        increment=lambda s: replace(s, find_note_count=s.find_note_count + 1),
    ),
    QuizType.NAME_NOTE: QuizCounter(
        read=lambda s: s.name_note_count,
        increment=lambda s: replace(s, name_note_count=s.name_note_count + 1),
    ),
    QuizType.MARK_CHORD: QuizCounter(
        read=lambda s: s.mark_chord_count,
        increment=lambda s: replace(s, mark_chord_count=s.mark_chord_count + 1),
    ),
    QuizType.RECOGNIZE_INTERVAL: QuizCounter(
        read=lambda s: s.recognize_interval_count,
        increment=lambda s: replace(
            s, recognize_interval_count=s.recognize_interval_count + 1
        ),
    ),
}


def calculate_streak(
    current: int,
    longest: int,
    last_activity_date: Optional[date],
    today: date,
) -> tuple[int, int]:
    """
    Compute the streak after a completion on `today`.

    Args:
        current: Current streak before the completion.
        longest: Longest streak before the completion.
        last_activity_date: Day of the previous completion, if any.
        today: Day of this completion.

    Returns:
        (new_current, new_longest)
    """
    if last_activity_date is None:
        new_current = 1
    elif last_activity_date >= today:
        # Same day, or a last activity in the future (clock skew)
        new_current = current
    elif last_activity_date == today - timedelta(days=1):
        new_current = current + 1
    else:
        new_current = 1

    return new_current, max(longest, new_current)


def apply_completion(
    snapshot: ProfileSnapshot, quiz_type: QuizType, today: date
) -> ProfileSnapshot:
    """Return the snapshot after completing a quiz of `quiz_type` on `today`."""
    new_current, new_longest = calculate_streak(
        snapshot.current_streak,
        snapshot.longest_streak,
        snapshot.last_activity_date,
        today,
    )
    updated = QUIZ_COUNTERS[quiz_type].increment(snapshot)

    return replace(
        updated,
        current_streak=new_current,
        longest_streak=new_longest,
        last_activity_date=today,
    )
