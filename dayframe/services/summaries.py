"""
Daily summary generation, on demand and in the nightly batch.
"""

import logging
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import ValidationError
from ..models.activity import Activity
from ..models.summary import DailySummary
from . import crud, llm
from .periods import clock_time, long_date
from .prompts import DAILY_SUMMARY_SYSTEM_PROMPT, create_daily_summary_prompt, parse_ai_json_response

logger = logging.getLogger(__name__)


def summary_text(content: dict) -> str:
    """Plain text of a summary for embedding and chat context."""
    if not isinstance(content, dict):
        return ""
    highlights = content.get("highlights") or []
    parts = [
        content.get("summary") or "",
        " ".join(str(h) for h in highlights) if isinstance(highlights, list) else "",
        content.get("conclusion") or "",
    ]
    return " ".join(p for p in parts if p).strip()


async def _summarize(
    db: AsyncSession,
    user_id: str,
    day: date,
    activities: list[Activity],
) -> DailySummary:
    prompt = create_daily_summary_prompt(
        long_date(day),
        [{"timestamp": clock_time(a.activity_timestamp), "content": a.content} for a in activities],
    )
    completion = await llm.generate_summary(prompt, DAILY_SUMMARY_SYSTEM_PROMPT)
    content = parse_ai_json_response(completion.content)

    return await crud.upsert_daily_summary(
        db,
        user_id,
        day,
        content=content,
        ai_model=completion.model,
        token_count=completion.usage.get("total_tokens") or None,
    )


async def generate_daily_summary(db: AsyncSession, user_id: str, day: date) -> DailySummary:
    """Summarize one user's day. Raises ValidationError when nothing was logged."""
    activities = await crud.get_activities_by_date(db, user_id, day)
    logger.info("Generating summary for %s: %d activities", day, len(activities))

    if not activities:
        raise ValidationError("No activities found for this day")

    return await _summarize(db, user_id, day, activities)


async def run_daily_summary_batch(db: AsyncSession, day: date) -> dict:
    """
    Generate the missing summaries for `day`, one user at a time.

    Each success is committed on its own; a failing user is rolled back,
    recorded, and the loop moves on.
    """
    user_ids = await crud.get_activity_user_ids_on(db, day)
    success_count = 0
    errors: list[dict] = []

    for user_id in user_ids:
        try:
            if await crud.get_daily_summary(db, user_id, day):
                continue

            activities = await crud.get_activities_by_date(db, user_id, day)
            if not activities:
                continue

            await _summarize(db, user_id, day, activities)
            await db.commit()
            success_count += 1
        except Exception as e:
            logger.error("Failed to generate summary for user %s: %s", user_id, e)
            await db.rollback()
            errors.append({"userId": user_id, "error": str(e)})

    logger.info(
        "Daily summary batch %s: users=%d ok=%d errors=%d",
        day, len(user_ids), success_count, len(errors),
    )

    result = {
        "success": True,
        "date": day.isoformat(),
        "totalUsers": len(user_ids),
        "successCount": success_count,
        "errorCount": len(errors),
    }
    if errors:
        result["errors"] = errors
    return result
