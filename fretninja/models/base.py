"""
Strict Base Models for API Request/Response Validation

Request models reject unknown fields so that client/server drift in the
quiz API fails loudly with 422 instead of being silently ignored. Response
models are built from ORM rows and drop columns they don't declare.

Usage:
    class QuizSessionCreateRequest(StrictRequest):
        quiz_type: QuizType
        difficulty: Difficulty

    class QuizSessionResponse(StrictResponse):
        id: UUID
        status: SessionStatus

    QuizSessionResponse.model_validate(session_row)
"""

from pydantic import BaseModel, ConfigDict


class StrictRequest(BaseModel):
    """
    Base model for request bodies and query parameter models.

    - extra="forbid": unknown fields raise 422
    - str_strip_whitespace=True: strings are trimmed before length checks
    """

    model_config = ConfigDict(
        extra="forbid",
        validate_default=True,
        str_strip_whitespace=True,
        from_attributes=True,
    )


class StrictResponse(BaseModel):
    """Base model for response bodies; accepts ORM rows via from_attributes."""

    model_config = ConfigDict(
        extra="ignore",
        validate_default=True,
        from_attributes=True,
    )


class Pagination(StrictResponse):
    """Page metadata attached to list responses."""

    page: int
    limit: int
    total: int
    total_pages: int
