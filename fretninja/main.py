"""
FretNinja API

FastAPI application for the fretboard quiz practice engine.

Run with:
    uvicorn fretninja.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fretninja.config import settings
from fretninja.db.base import async_session_maker, init_db
from fretninja.middleware.error_handling import setup_error_handling
from fretninja.routers import (
    achievements_router,
    health_router,
    profile_router,
    quiz_sessions_router,
    stats_router,
)
from fretninja.services.practice import seed_achievements

logger = logging.getLogger(__name__)


def setup_logging(debug: bool = False) -> None:
    """Configure root logging for the API process."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )
    # Reduce noise from SQLAlchemy (unless debugging)
    if not debug:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
        logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables (development) and seed the achievement catalog."""
    logger.info(f"Starting {settings.APP_NAME}")
    if settings.DEBUG:
        await init_db()

    async with async_session_maker() as db:
        await seed_achievements(db)

    yield

    logger.info(f"Shutting down {settings.APP_NAME}")


setup_logging(settings.DEBUG)

app = FastAPI(
    title=f"{settings.APP_NAME} API",
    description="Quiz session lifecycle, streaks, achievements and practice stats",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_error_handling(app, debug=settings.DEBUG)

app.include_router(health_router.router)
app.include_router(quiz_sessions_router.router)
app.include_router(achievements_router.router)
app.include_router(stats_router.router)
app.include_router(profile_router.router)


@app.get("/")
async def root():
    return {"message": f"{settings.APP_NAME} API"}
