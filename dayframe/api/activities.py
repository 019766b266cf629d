"""
Activities API.

GET    /api/activities?date=YYYY-MM-DD    Activities logged on a day
POST   /api/activities                    Log an activity
PATCH  /api/activities/{activity_id}      Edit an activity's text
DELETE /api/activities/{activity_id}      Delete an activity and its embedding
"""

import logging
from datetime import date, datetime

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import AuthenticatedUser
from ..core.config import get_settings
from ..core.dependencies import get_db, get_user
from ..core.errors import RateLimitError
from ..services import crud
from ..services.indexing import index_content

logger = logging.getLogger(__name__)

activities_router = APIRouter(prefix="/activities", tags=["activities"])


class ActivityCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: str = Field(..., min_length=1)
    activity_date: datetime = Field(..., alias="activityDate")


class ActivityUpdate(BaseModel):
    content: str = Field(..., min_length=1)


@activities_router.get("")
async def list_activities(
    day: date = Query(..., alias="date"),
    user: AuthenticatedUser = Depends(get_user),
    db: AsyncSession = Depends(get_db),
):
    activities = await crud.get_activities_by_date(db, user.user_id, day)
    return [a.to_dict() for a in activities]


@activities_router.post("", status_code=201)
async def create_activity(
    req: ActivityCreate,
    background_tasks: BackgroundTasks,
    user: AuthenticatedUser = Depends(get_user),
    db: AsyncSession = Depends(get_db),
):
    """Log an activity. The embedding is computed after the response is sent."""
    limit = get_settings().max_activities_per_day
    day = req.activity_date.date()
    if await crud.count_activities_on(db, user.user_id, day) >= limit:
        raise RateLimitError("Daily activity limit reached", limit)

    activity = await crud.create_activity(db, user.user_id, req.content.strip(), req.activity_date)

    background_tasks.add_task(
        index_content, user.user_id, "activity", activity.id, activity.content, activity.activity_date,
    )
    return activity.to_dict()


@activities_router.patch("/{activity_id}")
async def update_activity(
    activity_id: str,
    req: ActivityUpdate,
    background_tasks: BackgroundTasks,
    user: AuthenticatedUser = Depends(get_user),
    db: AsyncSession = Depends(get_db),
):
    activity = await crud.update_activity(db, user.user_id, activity_id, req.content.strip())

    background_tasks.add_task(
        index_content, user.user_id, "activity", activity.id, activity.content, activity.activity_date,
    )
    return activity.to_dict()


@activities_router.delete("/{activity_id}")
async def delete_activity(
    activity_id: str,
    user: AuthenticatedUser = Depends(get_user),
    db: AsyncSession = Depends(get_db),
):
    logger.info("Deleting activity %s for user %s", activity_id, user.user_id)
    await crud.delete_activity(db, user.user_id, activity_id)
    await crud.delete_embedding(db, user.user_id, "activity", activity_id)
    return {"success": True}
