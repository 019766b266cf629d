"""
FastAPI dependencies. Injected into route handlers.
"""

from fastapi import Header
from sqlalchemy.ext.asyncio import AsyncSession

from .auth import AuthenticatedUser, get_current_user, verify_cron_secret
from .database import get_db as _get_db
from .errors import FeatureDisabledError, UnauthorizedError
from .flags import get_flags


async def get_db() -> AsyncSession:
    """Yields an async DB session per request."""
    async for session in _get_db():
        yield session


async def get_user(
    authorization: str = Header(default=""),
) -> AuthenticatedUser:
    """
    Resolve authenticated user from Authorization header.
    Returns dev user if FF_USE_AUTH=false.
    """
    try:
        return await get_current_user(authorization)
    except PermissionError:
        raise UnauthorizedError()


async def require_cron(authorization: str = Header(default="")) -> None:
    """Cron endpoints are called by the scheduler with `Bearer <CRON_SECRET>`."""
    if not verify_cron_secret(authorization):
        raise UnauthorizedError()


def require_feature(name: str):
    """Dependency factory: 404 when the FF_<NAME>_ENABLED flag is off."""

    async def _check() -> None:
        if not getattr(get_flags(), f"{name}_enabled"):
            raise FeatureDisabledError(name)

    return _check
