"""
Periodic reports (weekly, monthly, quarterly, biannual, yearly).

content: {"summary", "patterns", "trends", "key_observations", "conclusion", "suggestions"}
"""

import enum
from datetime import date, datetime

from sqlalchemy import Date, DateTime, Integer, JSON, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import UserOwnedBase, utcnow


class ReportType(str, enum.Enum):
    weekly = "weekly"
    monthly = "monthly"
    quarterly = "quarterly"
    biannual = "biannual"
    yearly = "yearly"


class PeriodicReport(UserOwnedBase):
    __tablename__ = "periodic_reports"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "report_type", "start_date", "end_date",
            name="uq_periodic_reports_user_type_period",
        ),
    )

    report_type: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    content: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    ai_model: Mapped[str] = mapped_column(String, nullable=False)
    token_count: Mapped[int] = mapped_column(Integer, nullable=True)
    generated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )
