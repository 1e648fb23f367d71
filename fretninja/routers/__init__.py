"""API Routers package."""

from fretninja.routers import achievements as achievements_router
from fretninja.routers import health as health_router
from fretninja.routers import profile as profile_router
from fretninja.routers import quiz_sessions as quiz_sessions_router
from fretninja.routers import stats as stats_router

__all__ = [
    "achievements_router",
    "health_router",
    "profile_router",
    "quiz_sessions_router",
    "stats_router",
]
