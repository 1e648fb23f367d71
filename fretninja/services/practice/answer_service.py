"""
Answer Ledger

Append-only record of answers within a quiz session. An answer can be
written only while its session is in progress, and at most once per
question number.

The (session_id, question_number) unique constraint backs the duplicate
pre-check, so two racing submissions of the same question still yield a
single row and a DuplicateAnswerError for the loser.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, Optional, Union

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fretninja.db.models import QuizAnswer
from fretninja.enums.quiz import SessionStatus
from fretninja.middleware.error_handling import DuplicateAnswerError, SessionNotActiveError
from fretninja.models.quiz import (
    QuizAnswerCreateRequest,
    QuizAnswerListResponse,
    QuizAnswerResponse,
)
from fretninja.services.practice.session_service import get_owned_session

logger = logging.getLogger(__name__)


class AnswerService:
    def __init__(
        self,
        db: AsyncSession,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.db = db
        self._now = clock or (lambda: datetime.now(timezone.utc))

    async def record_answer(
        self,
        user_id: str,
        session_id: Union[str, uuid.UUID],
        answer: QuizAnswerCreateRequest,
    ) -> QuizAnswerResponse:
        """
        Append one answer to an in-progress session.

        The session row is read FOR SHARE so finalize (FOR UPDATE) cannot
        complete the session while the answer is being written.

        Raises:
            NotFoundError / AuthorizationError: Unknown or foreign session.
            SessionNotActiveError: Session is completed or abandoned.
            DuplicateAnswerError: Question already answered.
        """
        try:
            session = await get_owned_session(self.db, user_id, session_id, lock="share")
            if session.status != SessionStatus.IN_PROGRESS:
                raise SessionNotActiveError(
                    f"Quiz session is {session.status.value}, answers are closed"
                )

            result = await self.db.execute(
                select(QuizAnswer.id).where(
                    QuizAnswer.session_id == session.id,
                    QuizAnswer.question_number == answer.question_number,
                )
            )
            if result.scalar_one_or_none() is not None:
                raise DuplicateAnswerError(
                    f"Question {answer.question_number} has already been answered"
                )

            values = answer.model_dump(exclude={"user_answer_positions"})
            positions = (
                [p.model_dump() for p in answer.user_answer_positions]
                if answer.user_answer_positions is not None
                else None
            )
            row = QuizAnswer(
                id=uuid.uuid4(),
                session_id=session.id,
                user_answer_positions=positions,
                created_at=self._now(),
                **values,
            )
            self.db.add(row)
            await self.db.flush()
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.info(
                f"Concurrent duplicate answer for question {answer.question_number} "
                f"of session {session_id} rejected"
            )
            raise DuplicateAnswerError(
                f"Question {answer.question_number} has already been answered"
            ) from None
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            f"Recorded answer {answer.question_number} for session {session_id} "
            f"(correct={answer.is_correct})"
        )
        return QuizAnswerResponse.model_validate(row)

    async def list_answers(
        self, user_id: str, session_id: Union[str, uuid.UUID]
    ) -> QuizAnswerListResponse:
        """Answers of a session in question order."""
        session = await get_owned_session(self.db, user_id, session_id)
        result = await self.db.execute(
            select(QuizAnswer)
            .where(QuizAnswer.session_id == session.id)
            .order_by(QuizAnswer.question_number)
        )
        return QuizAnswerListResponse(
            session_id=session.id,
            answers=[QuizAnswerResponse.model_validate(a) for a in result.scalars().all()],
        )
