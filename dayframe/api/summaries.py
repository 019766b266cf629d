"""
Daily summaries API.

GET  /api/summaries/daily?date=YYYY-MM-DD   Stored summary for a day
POST /api/summaries/daily                   Generate (or regenerate) a day's summary
"""

import logging
from datetime import date

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import AuthenticatedUser
from ..core.dependencies import get_db, get_user
from ..core.errors import DayFrameError, NotFoundError
from ..services import crud
from ..services.indexing import index_content
from ..services.summaries import generate_daily_summary, summary_text

logger = logging.getLogger(__name__)

summaries_router = APIRouter(prefix="/summaries", tags=["summaries"])


class SummaryRequest(BaseModel):
    date: date


@summaries_router.get("/daily")
async def get_daily_summary(
    day: date = Query(..., alias="date"),
    user: AuthenticatedUser = Depends(get_user),
    db: AsyncSession = Depends(get_db),
):
    summary = await crud.get_daily_summary(db, user.user_id, day)
    if summary is None:
        raise NotFoundError("Summary not found")
    return summary.to_dict()


@summaries_router.post("/daily", status_code=201)
async def create_daily_summary(
    req: SummaryRequest,
    background_tasks: BackgroundTasks,
    user: AuthenticatedUser = Depends(get_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        summary = await generate_daily_summary(db, user.user_id, req.date)
    except DayFrameError:
        raise
    except Exception as e:
        logger.error("Summary generation failed for %s: %s", req.date, e)
        raise DayFrameError("Failed to generate summary")

    background_tasks.add_task(
        index_content, user.user_id, "summary", summary.id, summary_text(summary.content), summary.summary_date,
    )
    return summary.to_dict()
