"""
Quiz Enums

Defines the closed vocabularies used by quiz sessions, answers and
achievements: drill modes, difficulty levels, session lifecycle states,
pitch classes, chord qualities and intervals.
"""

from enum import Enum


class QuizType(str, Enum):
    """
    The four drill modes.

    - FIND_NOTE: locate a named note on the fretboard
    - NAME_NOTE: name the note at a highlighted position
    - MARK_CHORD: mark every tone of a triad
    - RECOGNIZE_INTERVAL: name the interval between two positions
    """

    FIND_NOTE = "find_note"
    NAME_NOTE = "name_note"
    MARK_CHORD = "mark_chord"
    RECOGNIZE_INTERVAL = "recognize_interval"


class Difficulty(str, Enum):
    """
    Difficulty levels affecting fretboard scope and timing.

    Only HARD runs with a per-question countdown, so it is the only level
    that carries a time limit.
    """

    EASY = "easy"  # Limited strings, no timer
    MEDIUM = "medium"  # Full fretboard (frets 0-12), no timer
    HARD = "hard"  # Full fretboard with countdown timer


class SessionStatus(str, Enum):
    """
    Quiz session lifecycle states.

    State transitions:
    - IN_PROGRESS → COMPLETED (all answers submitted)
    - IN_PROGRESS → ABANDONED (left before the end)

    COMPLETED and ABANDONED are terminal.
    """

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ABANDONED = "abandoned"

    @property
    def is_terminal(self) -> bool:
        return self is not SessionStatus.IN_PROGRESS


class Note(str, Enum):
    """The twelve pitch classes, in chromatic order starting from C."""

    C = "C"
    C_SHARP = "C#"
    D = "D"
    D_SHARP = "D#"
    E = "E"
    F = "F"
    F_SHARP = "F#"
    G = "G"
    G_SHARP = "G#"
    A = "A"
    A_SHARP = "A#"
    B = "B"


class ChordType(str, Enum):
    """Triad qualities used by the mark-the-chord drill."""

    MAJOR = "major"  # 1-3-5
    MINOR = "minor"  # 1-b3-5
    DIMINISHED = "diminished"  # 1-b3-b5
    AUGMENTED = "augmented"  # 1-3-#5


class Interval(str, Enum):
    """Intervals up to one octave, named by semitone distance."""

    MINOR_2ND = "minor_2nd"  # 1 semitone
    MAJOR_2ND = "major_2nd"  # 2
    MINOR_3RD = "minor_3rd"  # 3
    MAJOR_3RD = "major_3rd"  # 4
    PERFECT_4TH = "perfect_4th"  # 5
    TRITONE = "tritone"  # 6
    PERFECT_5TH = "perfect_5th"  # 7
    MINOR_6TH = "minor_6th"  # 8
    MAJOR_6TH = "major_6th"  # 9
    MINOR_7TH = "minor_7th"  # 10
    MAJOR_7TH = "major_7th"  # 11
    OCTAVE = "octave"  # 12


class CriterionType(str, Enum):
    """Discriminator values of achievement unlock criteria."""

    TOTAL_QUIZZES = "total_quizzes"
    PERFECT_SCORE = "perfect_score"
    STREAK = "streak"
    QUIZ_COUNT = "quiz_count"


class SessionSortField(str, Enum):
    """Columns a session history listing can be ordered by."""

    COMPLETED_AT = "completed_at"
    STARTED_AT = "started_at"
    SCORE = "score"


class SortOrder(str, Enum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"
