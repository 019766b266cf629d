"""
Database helpers: one async function per query the routes need.

Every user-facing query is scoped by user_id. Commits belong to the request
(`get_db`) or to the batch job; helpers only flush.

Public API
----------
Activities:       create_activity, get_activity, get_activities_by_date,
                  get_activities_by_date_range, get_recent_activities,
                  count_activities_on, update_activity, delete_activity,
                  get_activity_user_ids_on
Daily summaries:  upsert_daily_summary, get_daily_summary,
                  get_daily_summaries_by_date_range, get_recent_daily_summaries
Periodic reports: upsert_periodic_report, get_periodic_report,
                  get_periodic_reports_by_type, get_all_periodic_reports
Chat history:     save_chat_history, get_chat_history, delete_chat_message
Embeddings:       upsert_embedding, delete_embedding, search_similar_content
Profile:          get_profile, create_profile, update_profile
Stats:            get_user_stats
"""

import json
import logging
from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy import delete as sql_delete, func, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import NotFoundError
from ..models.activity import Activity
from ..models.base import utcnow
from ..models.chat import ChatHistory
from ..models.embedding import ChatEmbedding
from ..models.profile import Profile
from ..models.report import PeriodicReport
from ..models.summary import DailySummary
from .periods import week_bounds

logger = logging.getLogger(__name__)


# =====================================================================
# ACTIVITIES
# =====================================================================

async def create_activity(
    db: AsyncSession,
    user_id: str,
    content: str,
    activity_timestamp: datetime,
) -> Activity:
    activity = Activity(
        user_id=user_id,
        content=content,
        activity_date=activity_timestamp.date(),
        activity_timestamp=activity_timestamp,
    )
    db.add(activity)
    await db.flush()
    return activity


async def get_activity(db: AsyncSession, user_id: str, activity_id: str) -> Optional[Activity]:
    result = await db.execute(
        select(Activity).where(
            Activity.id == activity_id,
            Activity.user_id == user_id,
        )
    )
    return result.scalar_one_or_none()


def _live_activities(user_id: str):
    return select(Activity).where(
        Activity.user_id == user_id,
        Activity.is_deleted == False,  # noqa: E712
    )


async def get_activities_by_date(db: AsyncSession, user_id: str, day: date) -> list[Activity]:
    result = await db.execute(
        _live_activities(user_id)
        .where(Activity.activity_date == day)
        .order_by(Activity.activity_timestamp.asc())
    )
    activities = list(result.scalars().all())
    logger.debug("get_activities_by_date user=%s day=%s found=%d", user_id, day, len(activities))
    return activities


async def get_activities_by_date_range(
    db: AsyncSession, user_id: str, start: date, end: date
) -> list[Activity]:
    result = await db.execute(
        _live_activities(user_id)
        .where(Activity.activity_date >= start, Activity.activity_date <= end)
        .order_by(Activity.activity_timestamp.asc())
    )
    return list(result.scalars().all())


async def get_recent_activities(
    db: AsyncSession, user_id: str, limit: Optional[int] = None
) -> list[Activity]:
    query = _live_activities(user_id).order_by(Activity.activity_timestamp.desc())
    if limit:
        query = query.limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())


async def count_activities_on(db: AsyncSession, user_id: str, day: date) -> int:
    result = await db.execute(
        select(func.count(Activity.id)).where(
            Activity.user_id == user_id,
            Activity.activity_date == day,
            Activity.is_deleted == False,  # noqa: E712
        )
    )
    return result.scalar_one()


async def update_activity(
    db: AsyncSession, user_id: str, activity_id: str, content: str
) -> Activity:
    activity = await get_activity(db, user_id, activity_id)
    if activity is None or activity.is_deleted:
        raise NotFoundError("Activity not found")
    activity.content = content
    await db.flush()
    return activity


async def delete_activity(db: AsyncSession, user_id: str, activity_id: str) -> None:
    """Hard delete. Raises NotFoundError if the row is missing or not the user's."""
    activity = await get_activity(db, user_id, activity_id)
    if activity is None:
        raise NotFoundError("Activity not found")
    await db.delete(activity)
    await db.flush()


async def get_activity_user_ids_on(db: AsyncSession, day: date) -> list[str]:
    """Distinct users with at least one live activity on `day` (batch job, unscoped)."""
    result = await db.execute(
        select(Activity.user_id)
        .where(Activity.activity_date == day, Activity.is_deleted == False)  # noqa: E712
        .distinct()
        .order_by(Activity.user_id)
    )
    return list(result.scalars().all())


# =====================================================================
# DAILY SUMMARIES
# =====================================================================

async def get_daily_summary(db: AsyncSession, user_id: str, day: date) -> Optional[DailySummary]:
    result = await db.execute(
        select(DailySummary).where(
            DailySummary.user_id == user_id,
            DailySummary.summary_date == day,
        )
    )
    return result.scalar_one_or_none()


async def upsert_daily_summary(
    db: AsyncSession,
    user_id: str,
    day: date,
    content: dict,
    ai_model: str,
    token_count: Optional[int] = None,
) -> DailySummary:
    """Insert or replace the summary keyed on (user_id, summary_date)."""
    summary = await get_daily_summary(db, user_id, day)
    if summary:
        summary.content = content
        summary.ai_model = ai_model
        summary.token_count = token_count
        summary.generated_at = utcnow()
    else:
        summary = DailySummary(
            user_id=user_id,
            summary_date=day,
            content=content,
            ai_model=ai_model,
            token_count=token_count,
        )
        db.add(summary)
    await db.flush()
    return summary


async def get_daily_summaries_by_date_range(
    db: AsyncSession, user_id: str, start: date, end: date
) -> list[DailySummary]:
    result = await db.execute(
        select(DailySummary)
        .where(
            DailySummary.user_id == user_id,
            DailySummary.summary_date >= start,
            DailySummary.summary_date <= end,
        )
        .order_by(DailySummary.summary_date.asc())
    )
    return list(result.scalars().all())


async def get_recent_daily_summaries(
    db: AsyncSession, user_id: str, limit: int = 7
) -> list[DailySummary]:
    result = await db.execute(
        select(DailySummary)
        .where(DailySummary.user_id == user_id)
        .order_by(DailySummary.summary_date.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


# =====================================================================
# PERIODIC REPORTS
# =====================================================================

async def get_periodic_report(
    db: AsyncSession, user_id: str, report_type: str, start: date, end: date
) -> Optional[PeriodicReport]:
    result = await db.execute(
        select(PeriodicReport).where(
            PeriodicReport.user_id == user_id,
            PeriodicReport.report_type == report_type,
            PeriodicReport.start_date == start,
            PeriodicReport.end_date == end,
        )
    )
    return result.scalar_one_or_none()


async def upsert_periodic_report(
    db: AsyncSession,
    user_id: str,
    report_type: str,
    start: date,
    end: date,
    content: dict,
    ai_model: str,
    token_count: Optional[int] = None,
) -> PeriodicReport:
    """Insert or replace the report keyed on (user_id, report_type, start_date, end_date)."""
    report = await get_periodic_report(db, user_id, report_type, start, end)
    if report:
        report.content = content
        report.ai_model = ai_model
        report.token_count = token_count
        report.generated_at = utcnow()
    else:
        report = PeriodicReport(
            user_id=user_id,
            report_type=report_type,
            start_date=start,
            end_date=end,
            content=content,
            ai_model=ai_model,
            token_count=token_count,
        )
        db.add(report)
    await db.flush()
    return report


async def get_periodic_reports_by_type(
    db: AsyncSession, user_id: str, report_type: str, limit: int = 10
) -> list[PeriodicReport]:
    result = await db.execute(
        select(PeriodicReport)
        .where(
            PeriodicReport.user_id == user_id,
            PeriodicReport.report_type == report_type,
        )
        .order_by(PeriodicReport.start_date.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def get_all_periodic_reports(
    db: AsyncSession, user_id: str, limit: int = 50
) -> list[PeriodicReport]:
    result = await db.execute(
        select(PeriodicReport)
        .where(PeriodicReport.user_id == user_id)
        .order_by(PeriodicReport.start_date.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


# =====================================================================
# CHAT HISTORY
# =====================================================================

async def save_chat_history(
    db: AsyncSession,
    user_id: str,
    question: str,
    answer: str,
    context_used: dict,
    ai_model: str,
) -> ChatHistory:
    entry = ChatHistory(
        user_id=user_id,
        question=question,
        answer=answer,
        context_used=context_used,
        ai_model=ai_model,
    )
    db.add(entry)
    await db.flush()
    return entry


async def get_chat_history(db: AsyncSession, user_id: str, limit: int = 50) -> list[ChatHistory]:
    result = await db.execute(
        select(ChatHistory)
        .where(ChatHistory.user_id == user_id)
        .order_by(ChatHistory.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def delete_chat_message(db: AsyncSession, user_id: str, chat_id: str) -> None:
    result = await db.execute(
        sql_delete(ChatHistory).where(
            ChatHistory.id == chat_id,
            ChatHistory.user_id == user_id,
        )
    )
    if result.rowcount == 0:
        raise NotFoundError("Chat message not found")


# =====================================================================
# VECTOR EMBEDDINGS
# =====================================================================

async def upsert_embedding(
    db: AsyncSession,
    user_id: str,
    content_type: str,
    content_id: str,
    content_text: str,
    content_date: date,
    embedding: list[float],
) -> ChatEmbedding:
    """Insert or replace the embedding keyed on (content_type, content_id).

    Raises NotFoundError when the key is already held by another user.
    """
    result = await db.execute(
        select(ChatEmbedding).where(
            ChatEmbedding.content_type == content_type,
            ChatEmbedding.content_id == content_id,
        )
    )
    row = result.scalar_one_or_none()
    if row and row.user_id != user_id:
        raise NotFoundError("Content not found")
    if row:
        row.content_text = content_text
        row.content_date = content_date
        row.embedding = embedding
    else:
        row = ChatEmbedding(
            user_id=user_id,
            content_type=content_type,
            content_id=content_id,
            content_text=content_text,
            content_date=content_date,
            embedding=embedding,
        )
        db.add(row)
    await db.flush()
    return row


async def delete_embedding(db: AsyncSession, user_id: str, content_type: str, content_id: str) -> None:
    await db.execute(
        sql_delete(ChatEmbedding).where(
            ChatEmbedding.user_id == user_id,
            ChatEmbedding.content_type == content_type,
            ChatEmbedding.content_id == content_id,
        )
    )


_MATCH_EMBEDDINGS_SQL = text("""
    SELECT id, content_type, content_id, content_text, content_date, similarity
    FROM match_embeddings(
        CAST(CAST(:query_embedding AS text) AS vector),
        :match_user_id,
        :match_threshold,
        :match_count
    )
""")


async def search_similar_content(
    db: AsyncSession,
    user_id: str,
    query_embedding: list[float],
    threshold: float = 0.5,
    limit: int = 10,
) -> list[dict[str, Any]]:
    """
    Cosine-similarity search through the database function `match_embeddings`.
    Returns [{id, content_type, content_id, content_text, content_date, similarity}].
    """
    result = await db.execute(
        _MATCH_EMBEDDINGS_SQL,
        {
            "query_embedding": json.dumps(query_embedding),
            "match_user_id": user_id,
            "match_threshold": threshold,
            "match_count": limit,
        },
    )
    rows = []
    for row in result.mappings().all():
        item = dict(row)
        for key in ("id", "content_id"):
            if item.get(key) is not None:
                item[key] = str(item[key])
        if hasattr(item.get("content_date"), "isoformat"):
            item["content_date"] = item["content_date"].isoformat()
        if item.get("similarity") is not None:
            item["similarity"] = float(item["similarity"])
        rows.append(item)
    return rows


# =====================================================================
# PROFILE
# =====================================================================

async def get_profile(db: AsyncSession, user_id: str) -> Optional[Profile]:
    return await db.get(Profile, user_id)


async def create_profile(
    db: AsyncSession, user_id: str, email: str, display_name: Optional[str] = None
) -> Profile:
    profile = Profile(id=user_id, email=email, display_name=display_name)
    db.add(profile)
    await db.flush()
    return profile


async def update_profile(db: AsyncSession, user_id: str, updates: dict) -> Profile:
    profile = await get_profile(db, user_id)
    if profile is None:
        raise NotFoundError("Profile not found")
    for key in ("display_name", "timezone", "preferences"):
        if key in updates:
            setattr(profile, key, updates[key])
    await db.flush()
    return profile


# =====================================================================
# STATISTICS
# =====================================================================

async def _count(db: AsyncSession, query) -> int:
    result = await db.execute(query)
    return result.scalar_one() or 0


async def get_user_stats(db: AsyncSession, user_id: str, today: date) -> dict[str, int]:
    week_start, week_end = week_bounds(today)
    return {
        "totalActivities": await _count(
            db,
            select(func.count(Activity.id)).where(
                Activity.user_id == user_id, Activity.is_deleted == False,  # noqa: E712
            ),
        ),
        "totalSummaries": await _count(
            db, select(func.count(DailySummary.id)).where(DailySummary.user_id == user_id),
        ),
        "totalReports": await _count(
            db, select(func.count(PeriodicReport.id)).where(PeriodicReport.user_id == user_id),
        ),
        "activitiesThisWeek": await _count(
            db,
            select(func.count(Activity.id)).where(
                Activity.user_id == user_id,
                Activity.is_deleted == False,  # noqa: E712
                Activity.activity_date >= week_start,
                Activity.activity_date <= week_end,
            ),
        ),
    }
