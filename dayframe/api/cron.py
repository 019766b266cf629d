"""
Scheduled jobs. Called by the platform scheduler, not by users.

GET /api/cron/daily-summaries   Summarize yesterday for every active user (02:00 nightly)
"""

import logging
from datetime import date, timedelta

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import get_db, require_cron
from ..services.summaries import run_daily_summary_batch

logger = logging.getLogger(__name__)

cron_router = APIRouter(prefix="/cron", tags=["cron"], dependencies=[Depends(require_cron)])


@cron_router.get("/daily-summaries")
async def daily_summaries(db: AsyncSession = Depends(get_db)):
    yesterday = date.today() - timedelta(days=1)
    logger.info("Nightly summary batch for %s", yesterday)
    return await run_daily_summary_batch(db, yesterday)
