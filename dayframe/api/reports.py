"""
Periodic reports API.

GET  /api/reports?type=weekly   Stored reports, optionally of one type
POST /api/reports               Generate a report for the period containing `date`
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import AuthenticatedUser
from ..core.dependencies import get_db, get_user
from ..core.errors import DayFrameError
from ..models.report import ReportType
from ..services import crud
from ..services.reports import generate_report

logger = logging.getLogger(__name__)

reports_router = APIRouter(prefix="/reports", tags=["reports"])


class ReportRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    report_type: ReportType = Field(..., alias="reportType")
    date: date


@reports_router.get("")
async def list_reports(
    report_type: Optional[ReportType] = Query(None, alias="type"),
    user: AuthenticatedUser = Depends(get_user),
    db: AsyncSession = Depends(get_db),
):
    if report_type:
        reports = await crud.get_periodic_reports_by_type(db, user.user_id, report_type.value, limit=20)
    else:
        reports = await crud.get_all_periodic_reports(db, user.user_id, limit=50)
    return [r.to_dict() for r in reports]


@reports_router.post("", status_code=201)
async def create_report(
    req: ReportRequest,
    user: AuthenticatedUser = Depends(get_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        report = await generate_report(db, user.user_id, req.report_type.value, req.date)
    except DayFrameError:
        raise
    except Exception as e:
        logger.error("%s report generation failed: %s", req.report_type.value, e)
        raise DayFrameError("Failed to generate report")
    return report.to_dict()
