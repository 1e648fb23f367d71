"""
Unit tests for error handling and caller identity.

Tests cover:
- Status code and error code of each service error kind
- handle_endpoint_errors wrapping of unexpected exceptions
- JSON error bodies rendered for a live app
- Identity header resolution (401 when missing)
"""

import pytest
import pytest_asyncio
from fastapi import Depends, FastAPI
from httpx import ASGITransport, AsyncClient

from fretninja.dependencies import CurrentUser
from fretninja.middleware.error_handling import (
    AlreadyFinalizedError,
    AuthorizationError,
    DuplicateAnswerError,
    IncompleteAnswersError,
    InsufficientDataError,
    NotFoundError,
    ServerError,
    ServiceError,
    SessionConflictError,
    SessionNotActiveError,
    ValidationError,
    handle_endpoint_errors,
    setup_error_handling,
)


# =============================================================================
# Fixtures
# =============================================================================


def build_app(debug: bool = False) -> FastAPI:
    """Small app wired like the real one, with routes that fail on purpose."""
    app = FastAPI()
    setup_error_handling(app, debug=debug)

    @app.get("/conflict")
    @handle_endpoint_errors("Create session")
    async def conflict():
        raise SessionConflictError(
            "You have an unfinished quiz session",
            details={"session_id": "abc"},
        )

    @app.get("/boom")
    @handle_endpoint_errors("Get stats overview")
    async def boom():
        raise RuntimeError("connection reset")

    @app.get("/unwrapped")
    async def unwrapped():
        raise RuntimeError("unexpected")

    async def missing_session():
        raise NotFoundError("Quiz session not found", details={"session_id": "xyz"})

    @app.get("/from-dependency")
    async def from_dependency(session=Depends(missing_session)):
        return session

    @app.get("/whoami")
    async def whoami(user_id: str = CurrentUser):
        return {"user_id": user_id}

    return app


@pytest_asyncio.fixture
async def client():
    transport = ASGITransport(app=build_app())
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def debug_client():
    transport = ASGITransport(app=build_app(debug=True))
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# =============================================================================
# Exception Classes
# =============================================================================


class TestServiceErrors:
    @pytest.mark.parametrize(
        "error_class,status_code,error_code",
        [
            (ServerError, 500, "server_error"),
            (ValidationError, 422, "validation_error"),
            (NotFoundError, 404, "not_found"),
            (AuthorizationError, 403, "forbidden"),
            (SessionConflictError, 409, "session_in_progress"),
            (SessionNotActiveError, 409, "session_not_active"),
            (DuplicateAnswerError, 409, "duplicate_answer"),
            (AlreadyFinalizedError, 409, "already_finalized"),
            (IncompleteAnswersError, 400, "incomplete_answers"),
            (InsufficientDataError, 404, "insufficient_data"),
        ],
    )
    def test_error_kinds(self, error_class, status_code, error_code):
        error = error_class("message")

        assert isinstance(error, ServiceError)
        assert error.status_code == status_code
        assert error.error_code == error_code
        assert error.message == "message"

    def test_overrides(self):
        error = ServiceError("down", status_code=503, error_code="unavailable")
        assert (error.status_code, error.error_code) == (503, "unavailable")


class TestHandleEndpointErrors:
    @pytest.mark.asyncio
    async def test_passes_service_errors_through(self):
        @handle_endpoint_errors("Finalize session")
        async def handler():
            raise AlreadyFinalizedError("Session already finalized")

        with pytest.raises(AlreadyFinalizedError):
            await handler()

    @pytest.mark.asyncio
    async def test_wraps_unexpected_errors(self):
        @handle_endpoint_errors("Finalize session")
        async def handler():
            raise KeyError("score")

        with pytest.raises(ServerError, match="Finalize session failed") as exc_info:
            await handler()
        assert isinstance(exc_info.value.__cause__, KeyError)

    @pytest.mark.asyncio
    async def test_returns_result(self):
        @handle_endpoint_errors("List sessions")
        async def handler(value):
            return value * 2

        assert await handler(21) == 42


# =============================================================================
# Rendered Responses
# =============================================================================


class TestErrorResponses:
    @pytest.mark.asyncio
    async def test_service_error_body(self, client: AsyncClient):
        response = await client.get("/conflict")

        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "session_in_progress"
        assert body["message"] == "You have an unfinished quiz session"
        assert body["details"] == {"session_id": "abc"}
        assert len(body["error_id"]) == 8
        assert "timestamp" in body

    @pytest.mark.asyncio
    async def test_dependency_service_error_body(self, client: AsyncClient):
        response = await client.get("/from-dependency")

        assert response.status_code == 404
        body = response.json()
        assert body["error"] == "not_found"
        assert body["details"] == {"session_id": "xyz"}

    @pytest.mark.asyncio
    async def test_debug_mode_exposes_unhandled_exception(
        self, debug_client: AsyncClient
    ):
        response = await debug_client.get("/unwrapped")
        assert response.json()["details"]["exception"] == "RuntimeError"

    @pytest.mark.asyncio
    async def test_wrapped_failure_is_server_error(self, client: AsyncClient):
        response = await client.get("/boom")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "server_error"
        assert "connection reset" not in body["message"]

    @pytest.mark.asyncio
    async def test_unhandled_failure_is_sanitized(self, client: AsyncClient):
        response = await client.get("/unwrapped")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "internal_server_error"
        assert "details" not in body


# =============================================================================
# Caller Identity
# =============================================================================


class TestCurrentUser:
    @pytest.mark.asyncio
    async def test_reads_identity_header(self, client: AsyncClient):
        response = await client.get("/whoami", headers={"X-User-Id": "learner-42"})

        assert response.status_code == 200
        assert response.json() == {"user_id": "learner-42"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("headers", [{}, {"X-User-Id": "   "}])
    async def test_missing_identity(self, client: AsyncClient, headers):
        response = await client.get("/whoami", headers=headers)
        assert response.status_code == 401
