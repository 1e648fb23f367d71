"""
Quiz Sessions API Router

Endpoints for the quiz session lifecycle and its answers.

Endpoints:
- POST /api/quiz-sessions - Start a session
- GET /api/quiz-sessions - Session history (filters, sorting, pagination)
- GET /api/quiz-sessions/{id} - Session detail with answers
- PATCH /api/quiz-sessions/{id} - Finalize as completed or abandoned
- POST /api/quiz-sessions/{id}/answers - Record one answer
- GET /api/quiz-sessions/{id}/answers - List answers
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from fretninja.db.base import get_db
from fretninja.dependencies import CurrentUser
from fretninja.middleware.error_handling import handle_endpoint_errors
from fretninja.models.quiz import (
    QuizAnswerCreateRequest,
    QuizAnswerListResponse,
    QuizAnswerResponse,
    QuizSessionCreateRequest,
    QuizSessionDetailResponse,
    QuizSessionFinalizeResponse,
    QuizSessionListParams,
    QuizSessionListResponse,
    QuizSessionResponse,
    QuizSessionUpdateRequest,
)
from fretninja.services.practice import AnswerService, QuizSessionService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/quiz-sessions", tags=["quiz-sessions"])


# ===========================================
# Dependency Injection
# ===========================================


async def get_session_service(
    db: AsyncSession = Depends(get_db),
) -> QuizSessionService:
    """Get quiz session service."""
    return QuizSessionService(db)


async def get_answer_service(
    db: AsyncSession = Depends(get_db),
) -> AnswerService:
    """Get answer ledger service."""
    return AnswerService(db)


# ===========================================
# Session Endpoints
# ===========================================


@router.post("", response_model=QuizSessionResponse, status_code=status.HTTP_201_CREATED)
@handle_endpoint_errors("Create quiz session")
async def create_session(
    request: QuizSessionCreateRequest,
    user_id: str = CurrentUser,
    service: QuizSessionService = Depends(get_session_service),
) -> QuizSessionResponse:
    """
    Start a quiz session.

    Returns 409 if the learner already has a session in progress.
    """
    return await service.create_session(
        user_id,
        request.quiz_type,
        request.difficulty,
        request.time_limit_seconds,
    )


@router.get("", response_model=QuizSessionListResponse)
@handle_endpoint_errors("List quiz sessions")
async def list_sessions(
    params: Annotated[QuizSessionListParams, Query()],
    user_id: str = CurrentUser,
    service: QuizSessionService = Depends(get_session_service),
) -> QuizSessionListResponse:
    """
    Get the learner's session history.

    Query parameters:
    - quiz_type, difficulty, status: optional filters
    - sort: "<completed_at|started_at|score>:<asc|desc>" (default completed_at:desc)
    - page, limit: pagination (limit at most 100)
    """
    return await service.list_sessions(user_id, params)


@router.get("/{session_id}", response_model=QuizSessionDetailResponse)
@handle_endpoint_errors("Get quiz session")
async def get_session(
    session_id: str,
    user_id: str = CurrentUser,
    service: QuizSessionService = Depends(get_session_service),
) -> QuizSessionDetailResponse:
    """Get a session with its answers in question order."""
    return await service.get_session(user_id, session_id)


@router.patch("/{session_id}", response_model=QuizSessionFinalizeResponse)
@handle_endpoint_errors("Finalize quiz session")
async def finalize_session(
    session_id: str,
    request: QuizSessionUpdateRequest,
    user_id: str = CurrentUser,
    service: QuizSessionService = Depends(get_session_service),
) -> QuizSessionFinalizeResponse:
    """
    Finalize a session.

    Completing requires all answers; it updates the streak and returns any
    achievements earned. Abandoning records no score.
    """
    return await service.finalize(
        user_id, session_id, request.status, request.time_taken_seconds
    )


# ===========================================
# Answer Endpoints
# ===========================================


@router.post(
    "/{session_id}/answers",
    response_model=QuizAnswerResponse,
    status_code=status.HTTP_201_CREATED,
)
@handle_endpoint_errors("Record answer")
async def record_answer(
    session_id: str,
    request: QuizAnswerCreateRequest,
    user_id: str = CurrentUser,
    service: AnswerService = Depends(get_answer_service),
) -> QuizAnswerResponse:
    """Record the answer to one question of an in-progress session."""
    return await service.record_answer(user_id, session_id, request)


@router.get("/{session_id}/answers", response_model=QuizAnswerListResponse)
@handle_endpoint_errors("List answers")
async def list_answers(
    session_id: str,
    user_id: str = CurrentUser,
    service: AnswerService = Depends(get_answer_service),
) -> QuizAnswerListResponse:
    """List the answers of a session in question order."""
    return await service.list_answers(user_id, session_id)
