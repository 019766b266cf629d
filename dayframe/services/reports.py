"""
Periodic report generation.

Each report type rolls up the level below it: weekly reads daily summaries,
monthly reads weekly reports, quarterly reads monthly reports, and the
half-year and yearly reports read quarterly ones.
"""

import logging
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import ValidationError
from ..models.report import PeriodicReport, ReportType
from . import crud, llm
from .periods import month_label, period_bounds, quarter_label, short_date
from .prompts import (
    BIANNUAL_REPORT_SYSTEM_PROMPT,
    MONTHLY_REPORT_SYSTEM_PROMPT,
    QUARTERLY_REPORT_SYSTEM_PROMPT,
    WEEKLY_REPORT_SYSTEM_PROMPT,
    YEARLY_REPORT_SYSTEM_PROMPT,
    create_biannual_report_prompt,
    create_monthly_report_prompt,
    create_quarterly_report_prompt,
    create_weekly_report_prompt,
    create_yearly_report_prompt,
    parse_ai_json_response,
)

logger = logging.getLogger(__name__)

REPORT_TYPES = tuple(t.value for t in ReportType)

# How many lower-level reports are read before filtering to the period.
SOURCE_LIMITS = {
    "monthly": ("weekly", 10),
    "quarterly": ("monthly", 6),
    "biannual": ("quarterly", 4),
    "yearly": ("quarterly", 8),
}


async def _reports_in_period(
    db: AsyncSession, user_id: str, report_type: str, start: date, end: date
) -> list[PeriodicReport]:
    source_type, limit = SOURCE_LIMITS[report_type]
    reports = await crud.get_periodic_reports_by_type(db, user_id, source_type, limit)
    relevant = [r for r in reports if start <= r.start_date <= end]
    return sorted(relevant, key=lambda r: r.start_date)


async def _activity_stats(db: AsyncSession, user_id: str, start: date, end: date) -> tuple[int, int]:
    """(total activities, distinct days with activity)"""
    activities = await crud.get_activities_by_date_range(db, user_id, start, end)
    return len(activities), len({a.activity_date for a in activities})


async def _build_prompt(
    db: AsyncSession, user_id: str, report_type: str, start: date, end: date, base_date: date
) -> tuple[str, str]:
    total, active_days = await _activity_stats(db, user_id, start, end)
    start_label, end_label = short_date(start), short_date(end)

    if report_type == "weekly":
        summaries = await crud.get_daily_summaries_by_date_range(db, user_id, start, end)
        return WEEKLY_REPORT_SYSTEM_PROMPT, create_weekly_report_prompt(
            start_label,
            end_label,
            [{"date": s.summary_date.isoformat(), "summary": s.content} for s in summaries],
            total,
        )

    sources = await _reports_in_period(db, user_id, report_type, start, end)

    if report_type == "monthly":
        return MONTHLY_REPORT_SYSTEM_PROMPT, create_monthly_report_prompt(
            start_label,
            end_label,
            [{"week_start": r.start_date.isoformat(), "summary": r.content} for r in sources],
            total,
            active_days,
        )

    if report_type == "quarterly":
        return QUARTERLY_REPORT_SYSTEM_PROMPT, create_quarterly_report_prompt(
            start_label,
            end_label,
            [{"month": month_label(r.start_date), "summary": r.content} for r in sources],
            total,
        )

    quarters = [{"quarter": quarter_label(r.start_date), "summary": r.content} for r in sources]

    if report_type == "biannual":
        return BIANNUAL_REPORT_SYSTEM_PROMPT, create_biannual_report_prompt(
            start_label, end_label, quarters, total, active_days
        )

    return YEARLY_REPORT_SYSTEM_PROMPT, create_yearly_report_prompt(
        str(base_date.year), quarters, total, active_days
    )


async def generate_report(
    db: AsyncSession,
    user_id: str,
    report_type: str,
    base_date: date,
) -> PeriodicReport:
    if report_type not in REPORT_TYPES:
        raise ValidationError("Unsupported report type", {"reportType": report_type})

    start, end = period_bounds(report_type, base_date)
    logger.info("Generating %s report for %s..%s", report_type, start, end)

    system, prompt = await _build_prompt(db, user_id, report_type, start, end, base_date)
    completion = await llm.generate_report(prompt, system)
    content = parse_ai_json_response(completion.content)

    return await crud.upsert_periodic_report(
        db,
        user_id,
        report_type,
        start,
        end,
        content=content,
        ai_model=completion.model,
        token_count=completion.usage.get("total_tokens") or None,
    )
