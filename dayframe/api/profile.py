"""
Profile and dashboard statistics.

GET   /api/profile   Current user's profile (404 until created)
POST  /api/profile   Create the profile on first sign-in (idempotent)
PATCH /api/profile   Update display name, timezone or preferences
GET   /api/stats     Activity/summary/report counters
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import AuthenticatedUser
from ..core.dependencies import get_db, get_user
from ..core.errors import NotFoundError
from ..services import crud

logger = logging.getLogger(__name__)

profile_router = APIRouter(tags=["profile"])


class ProfileCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    display_name: Optional[str] = Field(None, alias="displayName")


class ProfileUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    display_name: Optional[str] = Field(None, alias="displayName")
    timezone: Optional[str] = None
    preferences: Optional[dict] = None


@profile_router.get("/profile")
async def get_profile(
    user: AuthenticatedUser = Depends(get_user),
    db: AsyncSession = Depends(get_db),
):
    profile = await crud.get_profile(db, user.user_id)
    if profile is None:
        raise NotFoundError("Profile not found")
    return profile.to_dict()


@profile_router.post("/profile", status_code=201)
async def create_profile(
    req: ProfileCreate,
    user: AuthenticatedUser = Depends(get_user),
    db: AsyncSession = Depends(get_db),
):
    profile = await crud.get_profile(db, user.user_id)
    if profile is None:
        profile = await crud.create_profile(db, user.user_id, user.email, req.display_name)
        logger.info("Created profile for user %s", user.user_id)
    return profile.to_dict()


@profile_router.patch("/profile")
async def update_profile(
    req: ProfileUpdate,
    user: AuthenticatedUser = Depends(get_user),
    db: AsyncSession = Depends(get_db),
):
    profile = await crud.update_profile(db, user.user_id, req.model_dump(exclude_unset=True))
    return profile.to_dict()


@profile_router.get("/stats")
async def get_stats(
    user: AuthenticatedUser = Depends(get_user),
    db: AsyncSession = Depends(get_db),
):
    return await crud.get_user_stats(db, user.user_id, date.today())
