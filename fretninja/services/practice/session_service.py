"""
Quiz Session Service

State machine for a quiz session, from creation to finalization:

    in_progress ──► completed   (all answers recorded; score, streak, achievements)
         │
         └──────► abandoned     (no progress update)

Completed and abandoned are terminal.

Concurrency is handled by the database rather than in-process locks:
- A partial unique index allows one in_progress session per learner, so
  a racing create surfaces as an IntegrityError and maps to SessionConflictError.
- finalize reads the session row FOR UPDATE; a double submit waits for the
  first and then sees a terminal status.
- The profile row is locked FOR UPDATE while the streak is applied.

Usage:
    from fretninja.services.practice.session_service import QuizSessionService

    service = QuizSessionService(db)
    session = await service.create_session(user_id, QuizType.FIND_NOTE, Difficulty.EASY)
    result = await service.finalize(user_id, session.id, SessionStatus.COMPLETED, 95)
"""

import logging
import math
import uuid
from datetime import datetime, timezone
from typing import Callable, Optional, Union

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from fretninja.config import settings
from fretninja.db.models import Profile, QuizAnswer, QuizSession
from fretninja.enums.quiz import (
    Difficulty,
    QuizType,
    SessionSortField,
    SessionStatus,
    SortOrder,
)
from fretninja.middleware.error_handling import (
    AlreadyFinalizedError,
    AuthorizationError,
    IncompleteAnswersError,
    NotFoundError,
    SessionConflictError,
    ValidationError,
)
from fretninja.models.base import Pagination
from fretninja.models.quiz import (
    QuizSessionDetailResponse,
    QuizSessionFinalizeResponse,
    QuizSessionListParams,
    QuizSessionListResponse,
    QuizSessionResponse,
)
from fretninja.services.practice.achievement_service import AchievementService
from fretninja.services.practice.profile_service import ProfileService
from fretninja.services.practice.streak import ProfileSnapshot, apply_completion

logger = logging.getLogger(__name__)

_SORT_COLUMNS = {
    SessionSortField.COMPLETED_AT: QuizSession.completed_at,
    SessionSortField.STARTED_AT: QuizSession.started_at,
    SessionSortField.SCORE: QuizSession.score,
}


def parse_session_id(session_id: Union[str, uuid.UUID]) -> uuid.UUID:
    """Parse a session id; malformed ids are reported as not found."""
    if isinstance(session_id, uuid.UUID):
        return session_id
    try:
        return uuid.UUID(str(session_id))
    except ValueError:
        raise NotFoundError(f"Quiz session {session_id} not found") from None


async def get_owned_session(
    db: AsyncSession,
    user_id: str,
    session_id: Union[str, uuid.UUID],
    *,
    lock: Optional[str] = None,
    with_answers: bool = False,
) -> QuizSession:
    """
    Load a session and check that `user_id` owns it.

    Args:
        db: Database session.
        user_id: Caller.
        session_id: Session id, possibly malformed.
        lock: "update" for FOR UPDATE, "share" for FOR SHARE, None for no lock.
        with_answers: Eager-load answers.

    Raises:
        NotFoundError: Malformed or unknown id.
        AuthorizationError: Session belongs to someone else.
    """
    sid = parse_session_id(session_id)

    query = select(QuizSession).where(QuizSession.id == sid)
    if with_answers:
        query = query.options(selectinload(QuizSession.answers))
    if lock == "update":
        query = query.with_for_update()
    elif lock == "share":
        query = query.with_for_update(read=True)

    result = await db.execute(query)
    session = result.scalar_one_or_none()
    if session is None:
        raise NotFoundError(f"Quiz session {session_id} not found")
    if session.user_id != user_id:
        raise AuthorizationError("You do not have access to this quiz session")
    return session


class QuizSessionService:
    """
    Quiz session lifecycle.

    Each mutating operation is one unit of work: it commits on success and
    rolls back on any failure.
    """

    def __init__(
        self,
        db: AsyncSession,
        achievement_service: Optional[AchievementService] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize session service.

        Args:
            db: Database session
            achievement_service: Evaluator run on completion (built from db if omitted)
            clock: Returns the current UTC time (defaults to the system clock)
        """
        self.db = db
        self._now = clock or (lambda: datetime.now(timezone.utc))
        self.achievements = achievement_service or AchievementService(db, clock=self._now)
        self.profiles = ProfileService(db, clock=self._now)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def create_session(
        self,
        user_id: str,
        quiz_type: QuizType,
        difficulty: Difficulty,
        time_limit_seconds: Optional[int] = None,
    ) -> QuizSessionResponse:
        """
        Start a new session.

        Args:
            user_id: Learner id.
            quiz_type: Drill mode.
            difficulty: Difficulty level.
            time_limit_seconds: Per-question limit; required (positive) for hard,
                ignored otherwise.

        Raises:
            ValidationError: Hard difficulty without a positive time limit.
            SessionConflictError: The learner already has a session in progress.
        """
        if difficulty == Difficulty.HARD and (
            time_limit_seconds is None or time_limit_seconds <= 0
        ):
            raise ValidationError(
                "time_limit_seconds must be a positive integer for hard difficulty"
            )

        now = self._now()
        try:
            await self.profiles.ensure_profile(user_id)

            result = await self.db.execute(
                select(QuizSession.id).where(
                    QuizSession.user_id == user_id,
                    QuizSession.status == SessionStatus.IN_PROGRESS,
                )
            )
            active_id = result.scalar_one_or_none()
            if active_id is not None:
                raise SessionConflictError(
                    "You have an unfinished quiz session",
                    details={"session_id": str(active_id)},
                )

            session = QuizSession(
                id=uuid.uuid4(),
                user_id=user_id,
                quiz_type=quiz_type,
                difficulty=difficulty,
                status=SessionStatus.IN_PROGRESS,
                time_limit_seconds=(
                    time_limit_seconds if difficulty == Difficulty.HARD else None
                ),
                started_at=now,
                created_at=now,
            )
            self.db.add(session)
            await self.db.flush()
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.info(f"Concurrent session start rejected for {user_id}")
            raise SessionConflictError("You have an unfinished quiz session") from None
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            f"Started session {session.id} for {user_id} "
            f"({quiz_type.value}, {difficulty.value})"
        )
        return QuizSessionResponse.model_validate(session)

    async def finalize(
        self,
        user_id: str,
        session_id: Union[str, uuid.UUID],
        status: SessionStatus,
        time_taken_seconds: Optional[int] = None,
    ) -> QuizSessionFinalizeResponse:
        """
        Finalize a session as completed or abandoned.

        Completion scores the session, applies the streak and counter update
        to the profile and grants achievements, all in one transaction.

        Raises:
            NotFoundError / AuthorizationError: See get_owned_session.
            AlreadyFinalizedError: Session is not in progress.
            IncompleteAnswersError: Completing without every answer recorded.
        """
        if not status.is_terminal:
            raise ValidationError("status must be 'completed' or 'abandoned'")

        try:
            session = await get_owned_session(
                self.db, user_id, session_id, lock="update"
            )
            if session.status != SessionStatus.IN_PROGRESS:
                raise AlreadyFinalizedError(
                    f"Quiz session is already {session.status.value}"
                )

            now = self._now()
            earned = []

            if status == SessionStatus.COMPLETED:
                result = await self.db.execute(
                    select(
                        func.count(QuizAnswer.id),
                        func.count(QuizAnswer.id).filter(QuizAnswer.is_correct.is_(True)),
                    ).where(QuizAnswer.session_id == session.id)
                )
                answer_count, correct_count = result.one()
                required = settings.QUESTIONS_PER_SESSION
                if answer_count != required:
                    raise IncompleteAnswersError(
                        f"Quiz has {answer_count} of {required} answers",
                        details={"answered": answer_count, "required": required},
                    )

                result = await self.db.execute(
                    select(Profile).where(Profile.id == user_id).with_for_update()
                )
                profile = result.scalar_one_or_none()
                if profile is None:
                    raise NotFoundError(f"Profile {user_id} not found")

                snapshot = apply_completion(
                    ProfileSnapshot.from_profile(profile), session.quiz_type, now.date()
                )
                snapshot.apply_to(profile)
                profile.updated_at = now

                session.score = correct_count
                earned = await self.achievements.evaluate_and_grant(
                    user_id, snapshot, session.quiz_type, correct_count
                )
            else:
                session.score = None

            session.status = status
            session.completed_at = now
            session.time_taken_seconds = time_taken_seconds

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            f"Session {session.id} {status.value} for {user_id} "
            f"(score={session.score}, achievements={len(earned)})"
        )
        response = QuizSessionResponse.model_validate(session)
        return QuizSessionFinalizeResponse(
            **response.model_dump(), achievements_earned=earned
        )

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_session(
        self, user_id: str, session_id: Union[str, uuid.UUID]
    ) -> QuizSessionDetailResponse:
        """Session detail with answers in question order."""
        session = await get_owned_session(
            self.db, user_id, session_id, with_answers=True
        )
        return QuizSessionDetailResponse.model_validate(session)

    async def list_sessions(
        self, user_id: str, params: QuizSessionListParams
    ) -> QuizSessionListResponse:
        """Paginated session history with optional filters. Nulls sort last."""
        conditions = [QuizSession.user_id == user_id]
        if params.quiz_type:
            conditions.append(QuizSession.quiz_type == params.quiz_type)
        if params.difficulty:
            conditions.append(QuizSession.difficulty == params.difficulty)
        if params.status:
            conditions.append(QuizSession.status == params.status)

        result = await self.db.execute(
            select(func.count(QuizSession.id)).where(*conditions)
        )
        total = result.scalar() or 0

        column = _SORT_COLUMNS[params.sort_field]
        ordering = column.asc() if params.sort_order == SortOrder.ASC else column.desc()

        result = await self.db.execute(
            select(QuizSession)
            .where(*conditions)
            .order_by(ordering.nulls_last(), QuizSession.created_at.desc())
            .offset((params.page - 1) * params.limit)
            .limit(params.limit)
        )
        sessions = result.scalars().all()

        return QuizSessionListResponse(
            data=[QuizSessionResponse.model_validate(s) for s in sessions],
            pagination=Pagination(
                page=params.page,
                limit=params.limit,
                total=total,
                total_pages=math.ceil(total / params.limit) if total else 0,
            ),
        )
