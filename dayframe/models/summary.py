"""
Daily summaries. One per user per day, regenerated in place.

content: {"summary", "highlights", "problems", "conclusion", "suggestions"}
"""

from datetime import date, datetime

from sqlalchemy import Date, DateTime, Integer, JSON, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import UserOwnedBase, utcnow


class DailySummary(UserOwnedBase):
    __tablename__ = "daily_summaries"
    __table_args__ = (
        UniqueConstraint("user_id", "summary_date", name="uq_daily_summaries_user_date"),
    )

    summary_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    content: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    ai_model: Mapped[str] = mapped_column(String, nullable=False)
    token_count: Mapped[int] = mapped_column(Integer, nullable=True)
    generated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )
