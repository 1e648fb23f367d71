"""
Stats Aggregator

Read-side reducers that summarize a learner's quiz history:

- Error heatmap: incorrect answers counted per (fret, string) position
- Note mastery: accuracy per pitch class over all answers with a target note
- Overview: totals, per-mode and per-difficulty stats, 7-day trend
- Error patterns: where the most recent mistakes concentrate

The SQL queries only select and filter rows; the counting and rounding is
done by the pure functions at the top of this module so it can be tested
without a database.

Rounding is half-up throughout: averages and improvement to one decimal,
mastery accuracy to a whole percent.

Usage:
    from fretninja.services.practice.stats_service import StatsService

    service = StatsService(db)
    heatmap = await service.get_heatmap(user_id, quiz_type=QuizType.FIND_NOTE)
    overview = await service.get_overview(user_id)
"""

import logging
from collections import Counter
from datetime import date, datetime, time, timedelta, timezone
from decimal import ROUND_FLOOR, Decimal
from typing import Callable, Iterable, Optional, Sequence, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fretninja.config import settings
from fretninja.db.models import Profile, QuizAnswer, QuizSession
from fretninja.enums.quiz import Difficulty, Note, QuizType, SessionStatus
from fretninja.middleware.error_handling import InsufficientDataError
from fretninja.models.stats import (
    DifficultyStats,
    ErrorPatternsResponse,
    HeatmapCell,
    HeatmapParams,
    HeatmapResponse,
    NoteErrorCount,
    NoteMasteryItem,
    NoteMasteryResponse,
    QuizTypeStats,
    RecentTrend,
    StatsOverviewResponse,
    StringErrorCount,
    TrendWindow,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Rounding
# =============================================================================


def round_half_up(value: Union[float, Decimal], digits: int = 0) -> float:
    """floor(value + 0.5) at `digits` decimals (2.5 -> 3, 41.66 -> 41.7, -2.25 -> -2.2)."""
    scaled = Decimal(str(value)).scaleb(digits) + Decimal("0.5")
    return float(scaled.to_integral_value(rounding=ROUND_FLOOR).scaleb(-digits))


def percent_half_up(part: int, whole: int) -> int:
    """Whole percent of part / whole, rounded half up on integers (29/200 -> 15)."""
    if whole <= 0:
        return 0
    return (200 * part + whole) // (2 * whole)


def _average(scores: Sequence[int]) -> float:
    if not scores:
        return 0.0
    # Tenths, rounded half up
    tenths = (20 * sum(scores) + len(scores)) // (2 * len(scores))
    return tenths / 10


# =============================================================================
# Pure reducers
# =============================================================================


def aggregate_heatmap(positions: Iterable[tuple[int, int]]) -> list[HeatmapCell]:
    """
    Count errors per (fret_position, string_number).

    Cells are ordered by error count (highest first), then fret and string.
    """
    counts = Counter(positions)
    cells = [
        HeatmapCell(fret_position=fret, string_number=string, error_count=count)
        for (fret, string), count in counts.items()
    ]
    cells.sort(key=lambda c: (-c.error_count, c.fret_position, c.string_number))
    return cells


def compute_note_mastery(
    attempts: Iterable[tuple[Note, bool]],
) -> NoteMasteryResponse:
    """
    Accuracy per note from (target_note, is_correct) pairs.

    All twelve notes are reported; notes without attempts have accuracy 0.
    """
    totals: Counter = Counter()
    correct: Counter = Counter()
    for note, is_correct in attempts:
        note = Note(note)
        totals[note] += 1
        if is_correct:
            correct[note] += 1

    items = []
    for note in Note:
        total = totals[note]
        hits = correct[note]
        items.append(
            NoteMasteryItem(
                note=note,
                total_attempts=total,
                correct_count=hits,
                error_count=total - hits,
                accuracy=percent_half_up(hits, total),
            )
        )

    total_attempts = sum(totals.values())
    total_correct = sum(correct.values())
    return NoteMasteryResponse(
        data=items,
        total_attempts=total_attempts,
        total_errors=total_attempts - total_correct,
        overall_accuracy=percent_half_up(total_correct, total_attempts),
    )


def calculate_improvement(
    recent_scores: Sequence[int], prior_scores: Sequence[int]
) -> float:
    """
    Percentage change of the average score between two windows.

    - prior average > 0: (recent - prior) / prior * 100, one decimal
    - no prior average but recent results: 100
    - neither: 0

    Averages are rounded to one decimal before comparing.
    """
    recent_avg = _average(recent_scores)
    prior_avg = _average(prior_scores)

    if prior_avg > 0:
        recent, prior = Decimal(str(recent_avg)), Decimal(str(prior_avg))
        return round_half_up((recent - prior) / prior * 100, 1)
    if recent_avg > 0 or (recent_scores and not prior_scores):
        return 100.0
    return 0.0


def summarize_sessions(
    sessions: Sequence[QuizSession],
    now: datetime,
    window_days: int = 7,
) -> dict:
    """
    Reduce completed sessions to the overview fields (without streaks).

    Trend windows are [now - window, now] and [now - 2 * window, now - window).
    Sessions without a completed_at fall outside both windows.
    """
    by_quiz_type = {}
    for quiz_type in QuizType:
        group = [s for s in sessions if s.quiz_type == quiz_type]
        scores = [s.score for s in group if s.score is not None]
        by_quiz_type[quiz_type] = QuizTypeStats(
            count=len(group),
            average_score=_average(scores),
            best_score=max(scores) if scores else 0,
            total_time_seconds=sum(s.time_taken_seconds or 0 for s in group),
        )

    by_difficulty = {}
    for difficulty in Difficulty:
        group = [s for s in sessions if s.difficulty == difficulty]
        scores = [s.score for s in group if s.score is not None]
        by_difficulty[difficulty] = DifficultyStats(
            count=len(group), average_score=_average(scores)
        )

    window = timedelta(days=window_days)
    recent_start = now - window
    prior_start = now - 2 * window
    recent = [
        s for s in sessions if s.completed_at and recent_start <= s.completed_at <= now
    ]
    prior = [
        s
        for s in sessions
        if s.completed_at and prior_start <= s.completed_at < recent_start
    ]
    recent_scores = [s.score for s in recent if s.score is not None]
    prior_scores = [s.score for s in prior if s.score is not None]

    return {
        "total_quizzes": len(sessions),
        "total_time_seconds": sum(s.time_taken_seconds or 0 for s in sessions),
        "by_quiz_type": by_quiz_type,
        "by_difficulty": by_difficulty,
        "recent_trend": RecentTrend(
            last_7_days=TrendWindow(
                quizzes=len(recent), average_score=_average(recent_scores)
            ),
            previous_7_days=TrendWindow(
                quizzes=len(prior), average_score=_average(prior_scores)
            ),
            improvement=calculate_improvement(recent_scores, prior_scores),
        ),
    }


def _ranked(counter: Counter) -> list[tuple]:
    """Counter items by count (highest first), ties by key."""
    return sorted(counter.items(), key=lambda item: (-item[1], item[0]))


# =============================================================================
# Service
# =============================================================================


class StatsService:
    """
    Aggregated statistics for one learner.

    All methods are read-only; each issues its own queries and may observe
    a different snapshot than a concurrent finalize.
    """

    def __init__(
        self,
        db: AsyncSession,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the stats service.

        Args:
            db: SQLAlchemy async database session.
            clock: Returns the current UTC time (defaults to the system clock).
        """
        self.db = db
        self._now = clock or (lambda: datetime.now(timezone.utc))

    async def get_heatmap(
        self,
        user_id: str,
        quiz_type: Optional[QuizType] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> HeatmapResponse:
        """
        Error counts per fretboard position.

        Date filters apply to the session's completion day (UTC), inclusive on
        both ends; sessions that were never finalized are excluded when a date
        filter is given.
        """
        query = (
            select(QuizAnswer.fret_position, QuizAnswer.string_number)
            .join(QuizSession, QuizAnswer.session_id == QuizSession.id)
            .where(
                QuizSession.user_id == user_id,
                QuizAnswer.is_correct.is_(False),
                QuizAnswer.fret_position.is_not(None),
                QuizAnswer.string_number.is_not(None),
            )
        )
        if quiz_type:
            query = query.where(QuizSession.quiz_type == quiz_type)
        if from_date:
            start = datetime.combine(from_date, time.min, tzinfo=timezone.utc)
            query = query.where(QuizSession.completed_at >= start)
        if to_date:
            end = datetime.combine(
                to_date + timedelta(days=1), time.min, tzinfo=timezone.utc
            )
            query = query.where(QuizSession.completed_at < end)

        result = await self.db.execute(query)
        cells = aggregate_heatmap((fret, string) for fret, string in result.all())

        return HeatmapResponse(
            data=cells,
            max_error_count=max((c.error_count for c in cells), default=0),
            total_errors=sum(c.error_count for c in cells),
            filters=HeatmapParams(
                quiz_type=quiz_type, from_date=from_date, to_date=to_date
            ),
        )

    async def get_note_mastery(self, user_id: str) -> NoteMasteryResponse:
        """Accuracy for each of the twelve notes over all answers with a target note."""
        result = await self.db.execute(
            select(QuizAnswer.target_note, QuizAnswer.is_correct)
            .join(QuizSession, QuizAnswer.session_id == QuizSession.id)
            .where(
                QuizSession.user_id == user_id,
                QuizAnswer.target_note.is_not(None),
            )
        )
        return compute_note_mastery(result.all())

    async def get_overview(
        self, user_id: str, now: Optional[datetime] = None
    ) -> StatsOverviewResponse:
        """
        Lifetime overview over completed sessions.

        Args:
            user_id: Learner id.
            now: Reference time for the trend windows (defaults to the clock).
        """
        now = now or self._now()

        result = await self.db.execute(select(Profile).where(Profile.id == user_id))
        profile = result.scalar_one_or_none()

        result = await self.db.execute(
            select(QuizSession).where(
                QuizSession.user_id == user_id,
                QuizSession.status == SessionStatus.COMPLETED,
            )
        )
        sessions = result.scalars().all()

        summary = summarize_sessions(sessions, now, settings.TREND_WINDOW_DAYS)
        return StatsOverviewResponse(
            current_streak=profile.current_streak if profile else 0,
            longest_streak=profile.longest_streak if profile else 0,
            **summary,
        )

    async def get_error_patterns(
        self, user_id: str, quiz_type: Optional[QuizType] = None
    ) -> ErrorPatternsResponse:
        """
        Break down the most recent mistakes by position, note and string.

        Raises:
            InsufficientDataError: Fewer recent mistakes than needed for a
                meaningful breakdown.
        """
        query = (
            select(
                QuizAnswer.fret_position,
                QuizAnswer.string_number,
                QuizAnswer.target_note,
            )
            .join(QuizSession, QuizAnswer.session_id == QuizSession.id)
            .where(
                QuizSession.user_id == user_id,
                QuizAnswer.is_correct.is_(False),
                QuizAnswer.fret_position.is_not(None),
            )
            .order_by(QuizAnswer.created_at.desc())
            .limit(settings.ERROR_PATTERNS_SAMPLE_LIMIT)
        )
        if quiz_type:
            query = query.where(QuizSession.quiz_type == quiz_type)

        result = await self.db.execute(query)
        rows = result.all()

        if len(rows) < settings.ERROR_PATTERNS_MIN_ERRORS:
            raise InsufficientDataError(
                "Not enough quiz history to analyze error patterns",
                details={
                    "errors": len(rows),
                    "required": settings.ERROR_PATTERNS_MIN_ERRORS,
                },
            )

        by_note = Counter(Note(note) for _, _, note in rows if note is not None)
        by_string = Counter(string for _, string, _ in rows if string is not None)

        return ErrorPatternsResponse(
            sample_size=len(rows),
            quiz_type=quiz_type,
            by_position=aggregate_heatmap(
                (fret, string) for fret, string, _ in rows if string is not None
            ),
            by_note=[
                NoteErrorCount(note=note, error_count=count)
                for note, count in _ranked(by_note)
            ],
            by_string=[
                StringErrorCount(string_number=string, error_count=count)
                for string, count in _ranked(by_string)
            ],
        )
