"""
Base model with per-user scoping. Every user-owned row inherits from this.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base


def utcnow():
    return datetime.now(timezone.utc)


def new_uuid():
    return str(uuid.uuid4())


class UserOwnedBase(Base):
    """Abstract base with user_id on every row (the Supabase auth user id)."""

    __abstract__ = True

    id: Mapped[str] = mapped_column(
        String, primary_key=True, default=new_uuid
    )
    user_id: Mapped[str] = mapped_column(
        String, nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    def to_dict(self) -> dict:
        """Row as a JSON-ready dict (dates as ISO strings)."""
        out = {}
        for attr in self.__mapper__.column_attrs:
            value = getattr(self, attr.key)
            if hasattr(value, "isoformat"):
                value = value.isoformat()
            out[attr.key] = value
        return out
