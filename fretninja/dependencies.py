"""
FastAPI Dependencies

Caller identity for the quiz API.

Authentication happens upstream (reverse proxy / auth gateway), which
forwards the verified user id in a header. The value is opaque here.
"""

from fastapi import Depends, HTTPException, Request, status

from fretninja.config import settings


async def get_current_user_id(request: Request) -> str:
    """
    Resolve the calling learner from the identity header.

    Returns:
        str: The opaque user id

    Raises:
        HTTPException: 401 if the header is missing or blank
    """
    user_id = request.headers.get(settings.USER_ID_HEADER, "").strip()

    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing {settings.USER_ID_HEADER} header",
        )

    return user_id


# Dependency that can be used in routers
CurrentUser = Depends(get_current_user_id)
