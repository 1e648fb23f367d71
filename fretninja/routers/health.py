"""
Health Check Endpoints

Provides health check endpoints for monitoring and orchestration.

Endpoints:
- GET /api/health - Basic health check
- GET /api/health/detailed - Health with database connectivity
"""

from fastapi import APIRouter, Depends
from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from fretninja.config import settings
from fretninja.db.base import get_db
from fretninja.db.models import Achievement

router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("")
async def health_check():
    """
    Basic health check.

    Returns a simple status response indicating the API is running.
    """
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
    }


@router.get("/detailed")
async def detailed_health_check(db: AsyncSession = Depends(get_db)):
    """
    Detailed health check with dependency status.

    Checks PostgreSQL connectivity and that the achievement catalog is seeded.
    """
    health = {"status": "healthy", "service": settings.APP_NAME, "dependencies": {}}

    try:
        await db.execute(text("SELECT 1"))
        health["dependencies"]["postgres"] = {"status": "healthy"}
    except Exception as e:
        health["dependencies"]["postgres"] = {"status": "unhealthy", "error": str(e)}
        health["status"] = "degraded"
        return health

    try:
        result = await db.execute(select(func.count(Achievement.id)))
        count = result.scalar() or 0
        health["dependencies"]["achievement_catalog"] = {
            "status": "healthy" if count else "unhealthy",
            "entries": count,
        }
        if not count:
            health["status"] = "degraded"
    except Exception as e:
        health["dependencies"]["achievement_catalog"] = {
            "status": "unhealthy",
            "error": str(e),
        }
        health["status"] = "degraded"

    return health
