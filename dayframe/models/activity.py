"""
Activities: the raw log entries a user writes during the day.
"""

from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, JSON, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from .base import UserOwnedBase, utcnow


class Activity(UserOwnedBase):
    __tablename__ = "activities"

    content: Mapped[str] = mapped_column(Text, nullable=False)
    activity_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    activity_timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    # Reads filter on this flag; the delete endpoint removes the row outright.
    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    metadata_: Mapped[dict] = mapped_column("metadata", JSON, nullable=True, default=dict)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow
    )

    def to_dict(self) -> dict:
        out = super().to_dict()
        out["metadata"] = out.pop("metadata_", None) or {}
        return out
